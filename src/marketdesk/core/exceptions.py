"""Custom exceptions for MarketDesk.

Every exception carries a human-readable message, a machine-readable error
code, the HTTP status used when it escapes to the API surface and a dict of
contextual details for logging.
"""

from __future__ import annotations

from enum import Enum
from http import HTTPStatus
from typing import Any


class ErrorCode(str, Enum):
    """Machine-readable error codes for API responses."""

    # General errors (1xxx)
    INTERNAL_ERROR = "MD1000"
    UNKNOWN_ERROR = "MD1001"
    CONFIGURATION_ERROR = "MD1002"

    # Validation errors (4xxx)
    VALIDATION_ERROR = "MD4000"
    RESOURCE_NOT_FOUND = "MD4004"

    # Persistence errors (6xxx)
    PERSISTENCE_ERROR = "MD6000"
    TRANSACTION_FAILED = "MD6001"
    UNSUPPORTED_DIALECT = "MD6002"

    # Provider errors (7xxx)
    PROVIDER_ERROR = "MD7000"
    PROVIDER_RATE_LIMITED = "MD7001"
    PROVIDER_BAD_RESPONSE = "MD7002"
    PROVIDER_UNAVAILABLE = "MD7003"


class MarketDeskException(Exception):
    """Base exception for all MarketDesk errors.

    Attributes:
        message: Human-readable error message.
        error_code: Machine-readable error code.
        http_status: HTTP status code for API responses.
        details: Additional context for debugging.
    """

    message: str = "An unexpected error occurred"
    error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR
    http_status: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str | None = None,
        *,
        error_code: ErrorCode | None = None,
        http_status: HTTPStatus | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.__class__.message
        self.error_code = error_code or self.__class__.error_code
        self.http_status = http_status or self.__class__.http_status
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to the API error envelope."""
        return {
            "success": False,
            "error": self.message,
            "code": self.error_code.value,
        }

    def __str__(self) -> str:
        return f"[{self.error_code.value}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code.value}, "
            f"http_status={self.http_status.value}, "
            f"details={self.details!r}"
            f")"
        )


class ConfigurationError(MarketDeskException):
    """Required credential or configuration value is missing."""

    message = "Configuration error"
    error_code = ErrorCode.CONFIGURATION_ERROR

    def __init__(self, message: str | None = None, *, setting: str | None = None, **kwargs: Any) -> None:
        details = kwargs.pop("details", {}) or {}
        if setting:
            details["setting"] = setting
        super().__init__(message, details=details, **kwargs)


class ValidationError(MarketDeskException):
    """Caller-supplied value is malformed."""

    message = "Validation error"
    error_code = ErrorCode.VALIDATION_ERROR
    http_status = HTTPStatus.BAD_REQUEST

    def __init__(
        self,
        message: str | None = None,
        *,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {}) or {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        super().__init__(message, details=details, **kwargs)


# ============================================================================
# Persistence Exceptions
# ============================================================================


class PersistenceError(MarketDeskException):
    """Storage operation failed.

    Raised with the underlying database error chained as ``__cause__``.
    """

    message = "Persistence error"
    error_code = ErrorCode.PERSISTENCE_ERROR

    def __init__(
        self,
        message: str | None = None,
        *,
        operation: str | None = None,
        **kwargs: Any,
    ) -> None:
        self.operation = operation
        details = kwargs.pop("details", {}) or {}
        if operation:
            details["operation"] = operation
        super().__init__(message, details=details, **kwargs)


class TransactionError(PersistenceError):
    """A multi-statement unit of work was rolled back."""

    message = "Database transaction failed"
    error_code = ErrorCode.TRANSACTION_FAILED


# ============================================================================
# Provider Exceptions
# ============================================================================


class ProviderError(MarketDeskException):
    """Upstream provider call failed."""

    message = "Provider error"
    error_code = ErrorCode.PROVIDER_ERROR

    def __init__(
        self,
        message: str,
        provider: str,
        *,
        instrument: str | None = None,
        status_code: int | None = None,
        response_body: str | None = None,
        **kwargs: Any,
    ) -> None:
        self.provider = provider
        self.instrument = instrument
        self.api_status_code = status_code

        details = kwargs.pop("details", {}) or {}
        details["provider"] = provider
        if instrument:
            details["instrument"] = instrument
        if status_code:
            details["api_status_code"] = status_code
        if response_body:
            details["response_preview"] = response_body[:500]

        super().__init__(message, details=details, **kwargs)


class ProviderRateLimitError(ProviderError):
    """Provider rejected the call because the quota is exhausted."""

    error_code = ErrorCode.PROVIDER_RATE_LIMITED


class ProviderResponseError(ProviderError):
    """Provider answered with an error sentinel or a malformed payload."""

    error_code = ErrorCode.PROVIDER_BAD_RESPONSE


class ProviderUnavailableError(ProviderError):
    """Provider could not be reached or answered with a server error."""

    error_code = ErrorCode.PROVIDER_UNAVAILABLE
