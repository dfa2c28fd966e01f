"""Daily cache-or-fetch of currency rates and commodity prices."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Protocol

from marketdesk.core.clock import Clock, SystemClock
from marketdesk.core.exceptions import PersistenceError, ProviderError
from marketdesk.core.logging import get_logger
from marketdesk.core.pacing import RateLimitPacer
from marketdesk.persistence.market_store import MarketDataStore
from marketdesk.providers.alpha_vantage import CurrencyQuote, StockQuote
from marketdesk.schemas.market import CommodityPriceData, CurrencyRateData

logger = get_logger(__name__)


@dataclass(frozen=True)
class CurrencyPair:
    from_currency: str
    to_currency: str

    @property
    def label(self) -> str:
        return f"{self.from_currency}/{self.to_currency}"


@dataclass(frozen=True)
class TrackedCommodity:
    """Commodity tracked through an ETF proxy symbol."""

    symbol: str
    name: str
    unit: str


CURRENCY_PAIRS: tuple[CurrencyPair, ...] = (
    CurrencyPair("USD", "CNY"),
    CurrencyPair("EUR", "USD"),
    CurrencyPair("GBP", "USD"),
    CurrencyPair("USD", "JPY"),
)

COMMODITIES: tuple[TrackedCommodity, ...] = (
    TrackedCommodity("GLD", "Gold", "USD/oz"),
    TrackedCommodity("SLV", "Silver", "USD/oz"),
    TrackedCommodity("USO", "Crude Oil", "USD/barrel"),
    TrackedCommodity("CPER", "Copper", "USD/lb"),
    TrackedCommodity("CORN", "Corn", "USD/bushel"),
    TrackedCommodity("WEAT", "Wheat", "USD/bushel"),
    TrackedCommodity("SOYB", "Soybean", "USD/bushel"),
    TrackedCommodity("NIB", "Cocoa", "USD/metric ton"),
)


class QuoteProvider(Protocol):
    async def fetch_currency_rate(self, from_currency: str, to_currency: str) -> CurrencyQuote: ...

    async def fetch_global_quote(self, symbol: str) -> StockQuote: ...


class MarketDataService:
    """Serves today's currency rates and commodity prices from the cache,
    fetching every tracked instrument on a cache miss.

    Instruments are fetched one at a time through the pacer. A failed
    instrument is logged and skipped; the batch returns whatever succeeded,
    possibly nothing.
    """

    def __init__(
        self,
        store: MarketDataStore,
        quotes: QuoteProvider,
        *,
        clock: Clock | None = None,
        pacer: RateLimitPacer | None = None,
        currency_pairs: tuple[CurrencyPair, ...] = CURRENCY_PAIRS,
        commodities: tuple[TrackedCommodity, ...] = COMMODITIES,
    ) -> None:
        self.store = store
        self.quotes = quotes
        self.clock = clock or SystemClock()
        self.pacer = pacer or RateLimitPacer(12.0)
        self.currency_pairs = currency_pairs
        self.commodities = commodities

    async def check_and_get_currency_rates(
        self,
        today: dt.date | None = None,
    ) -> list[CurrencyRateData]:
        today = today or self.clock.today()

        cached = await self.store.get_currency_rates_for_date(today)
        if cached:
            logger.debug("currency_rates_cache_hit", date=today.isoformat(), count=len(cached))
            return cached

        logger.info("currency_rates_cache_miss", date=today.isoformat())
        results: list[CurrencyRateData] = []
        async for pair in self.pacer.pace(self.currency_pairs):
            try:
                quote = await self.quotes.fetch_currency_rate(pair.from_currency, pair.to_currency)
                rate = CurrencyRateData(
                    from_currency=pair.from_currency,
                    to_currency=pair.to_currency,
                    exchange_rate=quote.exchange_rate,
                    bid_price=quote.bid_price,
                    ask_price=quote.ask_price,
                    time_zone=quote.time_zone,
                    date=today,
                )
                results.append(await self.store.upsert_currency_rate(rate))
            except (ProviderError, PersistenceError) as e:
                logger.warning(
                    "currency_rate_fetch_failed",
                    pair=pair.label,
                    error=e.message,
                    code=e.error_code.value,
                )

        logger.info(
            "currency_rates_fetched",
            date=today.isoformat(),
            succeeded=len(results),
            tracked=len(self.currency_pairs),
        )
        return results

    async def check_and_get_commodity_prices(
        self,
        today: dt.date | None = None,
    ) -> list[CommodityPriceData]:
        today = today or self.clock.today()

        cached = await self.store.get_commodity_prices_for_date(today)
        if cached:
            logger.debug("commodity_prices_cache_hit", date=today.isoformat(), count=len(cached))
            return cached

        logger.info("commodity_prices_cache_miss", date=today.isoformat())
        results: list[CommodityPriceData] = []
        async for commodity in self.pacer.pace(self.commodities):
            try:
                quote = await self.quotes.fetch_global_quote(commodity.symbol)
                price = CommodityPriceData(
                    symbol=commodity.symbol,
                    name=commodity.name,
                    price=quote.price,
                    open_price=quote.open,
                    high_price=quote.high,
                    low_price=quote.low,
                    previous_close=quote.previous_close,
                    change_amount=quote.change,
                    change_percent=quote.change_percent,
                    volume=quote.volume,
                    unit=commodity.unit,
                    date=today,
                )
                results.append(await self.store.upsert_commodity_price(price))
            except (ProviderError, PersistenceError) as e:
                logger.warning(
                    "commodity_price_fetch_failed",
                    symbol=commodity.symbol,
                    error=e.message,
                    code=e.error_code.value,
                )

        logger.info(
            "commodity_prices_fetched",
            date=today.isoformat(),
            succeeded=len(results),
            tracked=len(self.commodities),
        )
        return results
