"""Alpha Vantage client for currency exchange rates and stock/ETF quotes."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from marketdesk.core.config import Settings
from marketdesk.core.exceptions import (
    ConfigurationError,
    ProviderRateLimitError,
    ProviderResponseError,
)
from marketdesk.core.logging import get_logger
from marketdesk.core.retry import RetryConfig
from marketdesk.providers.base import BaseAPIClient

logger = get_logger(__name__)

PROVIDER_NAME = "alpha_vantage"

_EMPTY_VALUES = {"", "-", "none", "null", "n/a"}


@dataclass(frozen=True)
class CurrencyQuote:
    """Realtime exchange rate for one currency pair."""

    from_currency: str
    to_currency: str
    exchange_rate: Decimal
    bid_price: Decimal | None
    ask_price: Decimal | None
    last_refreshed: str | None
    time_zone: str | None


@dataclass(frozen=True)
class StockQuote:
    """Latest daily quote for one listed symbol."""

    symbol: str
    price: Decimal
    open: Decimal | None
    high: Decimal | None
    low: Decimal | None
    volume: int | None
    latest_trading_day: str | None
    previous_close: Decimal | None
    change: Decimal | None
    change_percent: Decimal | None


def parse_decimal(value: Any) -> Decimal | None:
    """Parse a provider numeric string exactly; ``"-"``/blank become None.

    A trailing percent sign is dropped, so ``"0.5200%"`` parses to
    ``Decimal("0.5200")``.
    """
    if value is None:
        return None
    text = str(value).strip()
    if text.lower() in _EMPTY_VALUES:
        return None
    text = text.removesuffix("%").strip()
    try:
        parsed = Decimal(text)
    except InvalidOperation:
        return None
    return parsed if parsed.is_finite() else None


def parse_int(value: Any) -> int | None:
    parsed = parse_decimal(value)
    return int(parsed) if parsed is not None else None


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class AlphaVantageClient(BaseAPIClient):
    """Client for the Alpha Vantage query endpoint.

    The free tier allows 5 calls per minute; pacing is the caller's job.
    Quota notices (``Note`` / ``Information``) and ``Error Message`` payloads
    are returned with HTTP 200 and are translated into typed errors here.
    """

    provider_name = PROVIDER_NAME

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = "https://www.alphavantage.co/query",
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
        self.api_key = api_key

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> AlphaVantageClient:
        return cls(
            settings.alpha_vantage_api_key,
            base_url=settings.alpha_vantage_base_url,
            timeout=settings.provider_timeout_seconds,
            max_retries=settings.provider_max_retries,
            http_client=http_client,
        )

    def _require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError(
                "Alpha Vantage API key is not configured",
                setting="alpha_vantage_api_key",
            )
        return self.api_key

    async def _query(self, function: str, instrument: str, **params: str) -> dict[str, Any]:
        api_key = self._require_api_key()
        payload = await self._get_json(
            "",
            {"function": function, **params, "apikey": api_key},
            instrument=instrument,
        )
        if not isinstance(payload, dict):
            raise ProviderResponseError(
                "Unexpected response format",
                PROVIDER_NAME,
                instrument=instrument,
            )

        notice = payload.get("Note") or payload.get("Information")
        if notice:
            logger.warning("alpha_vantage_rate_limited", instrument=instrument, notice=notice)
            raise ProviderRateLimitError(
                "API call frequency limit exceeded",
                PROVIDER_NAME,
                instrument=instrument,
                response_body=str(notice),
            )
        if payload.get("Error Message"):
            raise ProviderResponseError(
                str(payload["Error Message"]),
                PROVIDER_NAME,
                instrument=instrument,
            )
        return payload

    async def fetch_currency_rate(self, from_currency: str, to_currency: str) -> CurrencyQuote:
        """Fetch the realtime exchange rate for ``from_currency``/``to_currency``.

        Raises:
            ConfigurationError: If no API key is configured.
            ProviderRateLimitError: If the quota is exhausted.
            ProviderResponseError: If the rate is missing from the response.
        """
        pair = f"{from_currency}/{to_currency}"
        payload = await self._query(
            "CURRENCY_EXCHANGE_RATE",
            pair,
            from_currency=from_currency,
            to_currency=to_currency,
        )

        data = payload.get("Realtime Currency Exchange Rate")
        rate = parse_decimal(data.get("5. Exchange Rate")) if isinstance(data, dict) else None
        if rate is None:
            raise ProviderResponseError(
                f"Currency rate not found for {pair}",
                PROVIDER_NAME,
                instrument=pair,
            )

        return CurrencyQuote(
            from_currency=_text(data.get("1. From_Currency Code")) or from_currency,
            to_currency=_text(data.get("3. To_Currency Code")) or to_currency,
            exchange_rate=rate,
            bid_price=parse_decimal(data.get("8. Bid Price")),
            ask_price=parse_decimal(data.get("9. Ask Price")),
            last_refreshed=_text(data.get("6. Last Refreshed")),
            time_zone=_text(data.get("7. Time Zone")),
        )

    async def fetch_global_quote(self, symbol: str) -> StockQuote:
        """Fetch the latest quote for ``symbol``.

        Raises:
            ConfigurationError: If no API key is configured.
            ProviderRateLimitError: If the quota is exhausted.
            ProviderResponseError: If the symbol is unknown to the provider.
        """
        payload = await self._query("GLOBAL_QUOTE", symbol, symbol=symbol)

        data = payload.get("Global Quote")
        price = parse_decimal(data.get("05. price")) if isinstance(data, dict) else None
        if price is None:
            raise ProviderResponseError(
                f'Stock symbol "{symbol}" not found',
                PROVIDER_NAME,
                instrument=symbol,
            )

        return StockQuote(
            symbol=_text(data.get("01. symbol")) or symbol,
            price=price,
            open=parse_decimal(data.get("02. open")),
            high=parse_decimal(data.get("03. high")),
            low=parse_decimal(data.get("04. low")),
            volume=parse_int(data.get("06. volume")),
            latest_trading_day=_text(data.get("07. latest trading day")),
            previous_close=parse_decimal(data.get("08. previous close")),
            change=parse_decimal(data.get("09. change")),
            change_percent=parse_decimal(data.get("10. change percent")),
        )
