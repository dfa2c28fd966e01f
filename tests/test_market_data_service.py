"""Tests for MarketDataService cache-or-fetch behaviour."""

from datetime import date
from decimal import Decimal

import pytest

from marketdesk.core.clock import FixedClock
from marketdesk.core.database import Database
from marketdesk.core.exceptions import ConfigurationError, PersistenceError
from marketdesk.core.pacing import RateLimitPacer
from marketdesk.persistence.market_store import MarketDataStore
from marketdesk.providers.alpha_vantage import AlphaVantageClient
from marketdesk.schemas.market import CommodityPriceData, CurrencyRateData
from marketdesk.services.market_data import (
    COMMODITIES,
    CURRENCY_PAIRS,
    CurrencyPair,
    MarketDataService,
)

from tests.conftest import TODAY, FakeQuoteProvider, FakeTime


class FlakyMarketStore(MarketDataStore):
    """Store whose upserts fail for selected symbols."""

    def __init__(self, database: Database, failing_symbols: set[str]) -> None:
        super().__init__(database)
        self.failing_symbols = failing_symbols

    async def upsert_commodity_price(self, price: CommodityPriceData) -> CommodityPriceData:
        if price.symbol in self.failing_symbols:
            raise PersistenceError("Failed to save", operation="upsert_commodity_price")
        return await super().upsert_commodity_price(price)


class TestCurrencyRates:
    """Tests for check_and_get_currency_rates."""

    @pytest.mark.asyncio
    async def test_cache_miss_fetches_all_pairs(
        self,
        market_service: MarketDataService,
        market_store: MarketDataStore,
        quote_provider: FakeQuoteProvider,
        fake_time: FakeTime,
    ) -> None:
        """Test cache miss fetches every default pair with pacing."""
        rates = await market_service.check_and_get_currency_rates()

        assert quote_provider.currency_calls == ["USD/CNY", "EUR/USD", "GBP/USD", "USD/JPY"]
        assert [(r.from_currency, r.to_currency) for r in rates] == [
            (p.from_currency, p.to_currency) for p in CURRENCY_PAIRS
        ]
        assert all(r.date == TODAY for r in rates)
        assert all(r.exchange_rate == Decimal("1.2345") for r in rates)
        assert len(await market_store.get_currency_rates_for_date(TODAY)) == 4
        assert fake_time.sleeps == [12.0, 12.0, 12.0]

    @pytest.mark.asyncio
    async def test_cache_hit_makes_no_provider_calls(
        self,
        market_service: MarketDataService,
        market_store: MarketDataStore,
        quote_provider: FakeQuoteProvider,
        fake_time: FakeTime,
    ) -> None:
        """Test cache hit makes no provider calls."""
        await market_store.upsert_currency_rate(
            CurrencyRateData(
                from_currency="EUR",
                to_currency="USD",
                exchange_rate=Decimal("1.0912"),
                date=TODAY,
            )
        )

        rates = await market_service.check_and_get_currency_rates()

        assert [r.exchange_rate for r in rates] == [Decimal("1.0912")]
        assert quote_provider.currency_calls == []
        assert fake_time.sleeps == []

    @pytest.mark.asyncio
    async def test_previous_day_is_not_a_hit(
        self,
        market_service: MarketDataService,
        market_store: MarketDataStore,
        quote_provider: FakeQuoteProvider,
    ) -> None:
        """Test rows from a previous day do not count as cached."""
        await market_store.upsert_currency_rate(
            CurrencyRateData(
                from_currency="EUR",
                to_currency="USD",
                exchange_rate=Decimal("1.0912"),
                date=date(2024, 1, 14),
            )
        )

        rates = await market_service.check_and_get_currency_rates()

        assert len(rates) == 4
        assert len(quote_provider.currency_calls) == 4

    @pytest.mark.asyncio
    async def test_failed_pair_is_skipped(
        self,
        market_store: MarketDataStore,
        clock: FixedClock,
        pacer: RateLimitPacer,
        fake_time: FakeTime,
    ) -> None:
        """Test a failing pair is skipped."""
        quotes = FakeQuoteProvider(failing={"EUR/USD"})
        service = MarketDataService(market_store, quotes, clock=clock, pacer=pacer)

        rates = await service.check_and_get_currency_rates()

        assert [r.from_currency + r.to_currency for r in rates] == ["USDCNY", "GBPUSD", "USDJPY"]
        assert len(quotes.currency_calls) == 4
        assert fake_time.sleeps == [12.0, 12.0, 12.0]

    @pytest.mark.asyncio
    async def test_all_pairs_failing_returns_empty(
        self,
        market_store: MarketDataStore,
        clock: FixedClock,
        pacer: RateLimitPacer,
    ) -> None:
        """Test all pairs failing returns an empty list."""
        quotes = FakeQuoteProvider(failing={p.label for p in CURRENCY_PAIRS})
        service = MarketDataService(market_store, quotes, clock=clock, pacer=pacer)

        assert await service.check_and_get_currency_rates() == []
        assert await market_store.get_currency_rates_for_date(TODAY) == []

    @pytest.mark.asyncio
    async def test_missing_credentials_propagate(
        self,
        market_store: MarketDataStore,
        clock: FixedClock,
        pacer: RateLimitPacer,
    ) -> None:
        """Test missing credentials are not swallowed."""
        service = MarketDataService(market_store, AlphaVantageClient(None), clock=clock, pacer=pacer)

        with pytest.raises(ConfigurationError):
            await service.check_and_get_currency_rates()

    @pytest.mark.asyncio
    async def test_custom_pairs_and_explicit_day(
        self,
        market_store: MarketDataStore,
        quote_provider: FakeQuoteProvider,
        clock: FixedClock,
        pacer: RateLimitPacer,
    ) -> None:
        """Test custom pairs and an explicit day."""
        service = MarketDataService(
            market_store,
            quote_provider,
            clock=clock,
            pacer=pacer,
            currency_pairs=(CurrencyPair("CHF", "USD"),),
        )
        day = date(2024, 2, 1)

        [rate] = await service.check_and_get_currency_rates(day)

        assert rate.date == day
        assert (rate.from_currency, rate.to_currency) == ("CHF", "USD")


class TestCommodityPrices:
    """Tests for check_and_get_commodity_prices."""

    @pytest.mark.asyncio
    async def test_cache_miss_fetches_every_commodity(
        self,
        market_service: MarketDataService,
        quote_provider: FakeQuoteProvider,
        fake_time: FakeTime,
    ) -> None:
        """Test cache miss fetches every commodity with pacing."""
        prices = await market_service.check_and_get_commodity_prices()

        assert quote_provider.quote_calls == [c.symbol for c in COMMODITIES]
        assert [(p.symbol, p.name, p.unit) for p in prices] == [
            (c.symbol, c.name, c.unit) for c in COMMODITIES
        ]
        assert prices[0].price == Decimal("185.42")
        assert prices[0].change_amount == Decimal("1.42")
        assert len(fake_time.sleeps) == 7

    @pytest.mark.asyncio
    async def test_one_failing_symbol_does_not_abort_batch(
        self,
        market_store: MarketDataStore,
        clock: FixedClock,
        pacer: RateLimitPacer,
        fake_time: FakeTime,
    ) -> None:
        """Test one failing symbol does not abort the batch."""
        failing = COMMODITIES[1].symbol
        quotes = FakeQuoteProvider(failing={failing})
        service = MarketDataService(market_store, quotes, clock=clock, pacer=pacer)

        prices = await service.check_and_get_commodity_prices()

        assert [p.symbol for p in prices] == [c.symbol for c in COMMODITIES if c.symbol != failing]
        assert quotes.quote_calls == [c.symbol for c in COMMODITIES]
        assert fake_time.sleeps == [12.0] * 7

    @pytest.mark.asyncio
    async def test_storage_failure_skips_symbol(
        self,
        database: Database,
        quote_provider: FakeQuoteProvider,
        clock: FixedClock,
        pacer: RateLimitPacer,
    ) -> None:
        """Test a storage failure skips only that symbol."""
        store = FlakyMarketStore(database, {"USO"})
        service = MarketDataService(store, quote_provider, clock=clock, pacer=pacer)

        prices = await service.check_and_get_commodity_prices()

        assert "USO" not in [p.symbol for p in prices]
        assert len(prices) == len(COMMODITIES) - 1
        stored = await store.get_commodity_prices_for_date(TODAY)
        assert sorted(p.symbol for p in stored) == sorted(p.symbol for p in prices)

    @pytest.mark.asyncio
    async def test_second_call_is_served_from_cache(
        self,
        market_service: MarketDataService,
        quote_provider: FakeQuoteProvider,
    ) -> None:
        """Test a second call is served from cache."""
        first = await market_service.check_and_get_commodity_prices()
        second = await market_service.check_and_get_commodity_prices()

        assert len(quote_provider.quote_calls) == len(COMMODITIES)
        assert sorted(p.symbol for p in second) == sorted(p.symbol for p in first)
