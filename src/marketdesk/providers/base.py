"""Base class for provider API clients."""

from __future__ import annotations

from typing import Any

import httpx

from marketdesk.core.exceptions import (
    ProviderError,
    ProviderRateLimitError,
    ProviderResponseError,
    ProviderUnavailableError,
)
from marketdesk.core.logging import get_logger
from marketdesk.core.retry import RetryConfig, retry_with_backoff

logger = get_logger(__name__)


class BaseAPIClient:
    """GET-and-decode-JSON client shared by the provider integrations.

    Transport failures and 5xx responses raise ``ProviderUnavailableError`` and
    are retried with exponential backoff. Every other failure raises on the
    first attempt.

    An ``httpx.AsyncClient`` may be passed in; it is then borrowed and never
    closed by this class.
    """

    provider_name: str = "provider"

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 15.0,
        max_retries: int = 3,
        http_client: httpx.AsyncClient | None = None,
        retry_config: RetryConfig | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None

        retry_config = retry_config or RetryConfig(
            max_attempts=max(1, max_retries),
            retry_exceptions=(ProviderUnavailableError,),
        )
        self._get_json = retry_with_backoff(retry_config)(self._get_json_once)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> BaseAPIClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _get_json_once(
        self,
        path: str,
        params: dict[str, Any],
        *,
        instrument: str | None = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = await self._get_client().get(url, params=params)
        except httpx.TimeoutException as e:
            raise ProviderUnavailableError(
                f"{self.provider_name} request timed out",
                self.provider_name,
                instrument=instrument,
            ) from e
        except httpx.HTTPError as e:
            raise ProviderUnavailableError(
                f"{self.provider_name} request failed: {e}",
                self.provider_name,
                instrument=instrument,
            ) from e

        if response.is_error:
            logger.warning(
                "provider_http_error",
                provider=self.provider_name,
                instrument=instrument,
                status_code=response.status_code,
            )
            raise self._error_for_status(response, instrument=instrument)

        try:
            return response.json()
        except ValueError as e:
            raise ProviderResponseError(
                f"{self.provider_name} returned a non-JSON response",
                self.provider_name,
                instrument=instrument,
                status_code=response.status_code,
                response_body=response.text,
            ) from e

    def _error_for_status(
        self,
        response: httpx.Response,
        *,
        instrument: str | None = None,
    ) -> ProviderError:
        """Build the exception raised for a non-2xx response."""
        message = f"API request failed: {response.status_code}"
        kwargs: dict[str, Any] = {
            "instrument": instrument,
            "status_code": response.status_code,
            "response_body": response.text,
        }
        if response.status_code == 429:
            return ProviderRateLimitError(message, self.provider_name, **kwargs)
        if response.status_code >= 500:
            return ProviderUnavailableError(message, self.provider_name, **kwargs)
        return ProviderError(message, self.provider_name, **kwargs)
