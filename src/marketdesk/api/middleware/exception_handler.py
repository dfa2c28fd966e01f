"""Exception handlers for FastAPI.

Every failure leaves the API as ``{"success": false, "error": "<message>"}``
plus a machine-readable ``code`` and the request correlation id.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from marketdesk.core.exceptions import ErrorCode, MarketDeskException
from marketdesk.core.logging import get_correlation_id, get_logger
from marketdesk.schemas.base import ErrorResponse

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = get_logger(__name__)


def create_error_response(error_code: str, message: str) -> dict[str, object]:
    """Build the error envelope for the current request."""
    return ErrorResponse(
        error=message,
        code=error_code,
        correlation_id=get_correlation_id(),
    ).model_dump(exclude_none=True)


async def marketdesk_exception_handler(
    request: Request,
    exc: MarketDeskException,
) -> JSONResponse:
    """Handle MarketDeskException and subclasses."""
    logger.warning(
        "marketdesk_exception",
        error_code=exc.error_code.value,
        error_message=exc.message,
        http_status=exc.http_status.value,
        path=request.url.path,
        details=exc.details,
    )

    return JSONResponse(
        status_code=exc.http_status.value,
        content=create_error_response(exc.error_code.value, exc.message),
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Handle FastAPI request validation errors."""
    fields = [" -> ".join(str(loc) for loc in error["loc"]) for error in exc.errors()]

    logger.warning("validation_error", path=request.url.path, fields=fields[:5])

    return JSONResponse(
        status_code=400,
        content=create_error_response(
            ErrorCode.VALIDATION_ERROR.value,
            f"Invalid request parameters: {', '.join(fields)}" if fields else "Invalid request",
        ),
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Map Starlette HTTP exceptions (404, 405, ...) to the error envelope."""
    if exc.status_code == 404:
        error_code = ErrorCode.RESOURCE_NOT_FOUND
    elif 400 <= exc.status_code < 500:
        error_code = ErrorCode.VALIDATION_ERROR
    else:
        error_code = ErrorCode.INTERNAL_ERROR

    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(
            error_code.value,
            str(exc.detail) if exc.detail else "An error occurred",
        ),
        headers=getattr(exc, "headers", None),
    )


async def generic_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle unexpected exceptions without leaking implementation details."""
    logger.exception(
        "unhandled_exception",
        error_type=type(exc).__name__,
        error_message=str(exc),
        path=request.url.path,
    )

    return JSONResponse(
        status_code=500,
        content=create_error_response(
            ErrorCode.INTERNAL_ERROR.value,
            "An unexpected error occurred. Please try again later.",
        ),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application."""
    app.add_exception_handler(MarketDeskException, marketdesk_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
