"""Marketaux news API client."""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from marketdesk.core.config import Settings
from marketdesk.core.exceptions import (
    ConfigurationError,
    ProviderError,
    ProviderRateLimitError,
    ProviderResponseError,
    ProviderUnavailableError,
)
from marketdesk.core.logging import get_logger
from marketdesk.core.retry import RetryConfig
from marketdesk.providers.base import BaseAPIClient
from marketdesk.schemas.news import (
    MarketauxNewsMeta,
    MarketauxNewsResponse,
    NewsArticleData,
    NewsFilterParams,
    check_sentiment_bound,
)

logger = get_logger(__name__)

PROVIDER_NAME = "marketaux"

_STATUS_ERRORS: dict[int, tuple[type[ProviderError], str]] = {
    401: (ProviderError, "Invalid API token"),
    402: (ProviderRateLimitError, "Usage limit reached"),
    403: (ProviderError, "Access to this endpoint is restricted on your plan"),
    404: (ProviderError, "API endpoint not found"),
    429: (ProviderRateLimitError, "Rate limit exceeded. Please try again later."),
    500: (ProviderUnavailableError, "Marketaux API server error"),
    503: (ProviderUnavailableError, "Marketaux API is under maintenance"),
}


def build_query(api_token: str, params: NewsFilterParams) -> dict[str, str]:
    """Translate filter parameters into Marketaux query-string values.

    Unset filters are omitted. Booleans are sent as ``true``/``false``.

    Raises:
        ValidationError: If a sentiment bound lies outside [-1, 1].
    """
    for field in ("sentiment_gte", "sentiment_lte"):
        bound = getattr(params, field)
        if bound is not None:
            check_sentiment_bound(field, bound)
    query: dict[str, str] = {"api_token": api_token}
    for name, value in params.model_dump(exclude_none=True).items():
        if isinstance(value, bool):
            query[name] = "true" if value else "false"
        elif value != "":
            query[name] = str(value)
    return query


class MarketauxClient(BaseAPIClient):
    """Client for the Marketaux ``/news/all`` endpoint."""

    provider_name = PROVIDER_NAME

    def __init__(
        self,
        api_token: str | None,
        *,
        base_url: str = "https://api.marketaux.com/v1",
        timeout: float = 15.0,
        max_retries: int = 3,
        http_client: httpx.AsyncClient | None = None,
        retry_config: RetryConfig | None = None,
    ) -> None:
        super().__init__(
            base_url,
            timeout=timeout,
            max_retries=max_retries,
            http_client=http_client,
            retry_config=retry_config,
        )
        self.api_token = api_token

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> MarketauxClient:
        return cls(
            settings.marketaux_api_key,
            base_url=settings.marketaux_base_url,
            timeout=settings.provider_timeout_seconds,
            max_retries=settings.provider_max_retries,
            http_client=http_client,
        )

    def _error_for_status(
        self,
        response: httpx.Response,
        *,
        instrument: str | None = None,
    ) -> ProviderError:
        known = _STATUS_ERRORS.get(response.status_code)
        if known is None:
            error_cls: type[ProviderError] = (
                ProviderUnavailableError if response.status_code >= 500 else ProviderError
            )
            message = f"API request failed: {response.status_code} {response.reason_phrase}".rstrip()
        else:
            error_cls, message = known
        return error_cls(
            message,
            PROVIDER_NAME,
            instrument=instrument,
            status_code=response.status_code,
            response_body=response.text,
        )

    async def fetch_news(self, params: NewsFilterParams | None = None) -> MarketauxNewsResponse:
        """Search news articles.

        Articles that fail validation are logged and dropped; the remaining
        ones are returned in provider order.

        Raises:
            ConfigurationError: If no API token is configured.
            ProviderError: On HTTP failures, an ``error`` payload or a
                response without ``meta`` and ``data``.
        """
        if not self.api_token:
            raise ConfigurationError(
                "Marketaux API key is not configured",
                setting="marketaux_api_key",
            )
        params = params or NewsFilterParams()
        instrument = params.symbols or "all"

        payload = await self._get_json(
            "/news/all",
            build_query(self.api_token, params),
            instrument=instrument,
        )
        if not isinstance(payload, dict):
            raise ProviderResponseError(
                "Invalid API response format",
                PROVIDER_NAME,
                instrument=instrument,
            )

        error = payload.get("error")
        if error:
            code = error.get("code") if isinstance(error, dict) else None
            message = error.get("message") if isinstance(error, dict) else error
            raise ProviderResponseError(
                f"Marketaux API error: {code} - {message}",
                PROVIDER_NAME,
                instrument=instrument,
            )

        if payload.get("meta") is None and payload.get("data") is None:
            raise ProviderResponseError(
                "Invalid API response format",
                PROVIDER_NAME,
                instrument=instrument,
            )

        return MarketauxNewsResponse(
            meta=self._parse_meta(payload.get("meta")),
            data=self._parse_articles(payload.get("data") or [], instrument),
        )

    @staticmethod
    def _parse_meta(raw: Any) -> MarketauxNewsMeta | None:
        if not isinstance(raw, dict):
            return None
        try:
            return MarketauxNewsMeta.model_validate(raw)
        except PydanticValidationError:
            logger.warning("marketaux_meta_invalid", meta=raw)
            return None

    @staticmethod
    def _parse_articles(raw: Any, instrument: str) -> list[NewsArticleData]:
        if not isinstance(raw, list):
            raise ProviderResponseError(
                "Invalid API response format",
                PROVIDER_NAME,
                instrument=instrument,
            )

        articles: list[NewsArticleData] = []
        for item in raw:
            try:
                articles.append(NewsArticleData.model_validate(item))
            except PydanticValidationError as e:
                uuid = item.get("uuid") if isinstance(item, dict) else None
                logger.warning(
                    "marketaux_article_invalid",
                    uuid=uuid,
                    errors=e.error_count(),
                )
        return articles
