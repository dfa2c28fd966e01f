"""Test configuration and fixtures."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Generator, Iterable
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

from marketdesk.api.dependencies.services import (
    get_database,
    get_market_data_service,
    get_news_service,
)
from marketdesk.api.main import create_app
from marketdesk.core.clock import FixedClock
from marketdesk.core.config import Settings
from marketdesk.core.database import Database
from marketdesk.core.exceptions import ProviderRateLimitError, ProviderResponseError
from marketdesk.core.pacing import RateLimitPacer
from marketdesk.persistence.market_store import MarketDataStore
from marketdesk.persistence.news_store import NewsStore
from marketdesk.providers.alpha_vantage import CurrencyQuote, StockQuote
from marketdesk.schemas.news import (
    MarketauxNewsMeta,
    MarketauxNewsResponse,
    NewsArticleData,
    NewsFilterParams,
)
from marketdesk.services.market_data import MarketDataService
from marketdesk.services.news import NewsService

TODAY = date(2024, 1, 15)


class FakeTime:
    """Monotonic clock and sleep that advance together without waiting."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeQuoteProvider:
    """Quote provider double recording every call."""

    def __init__(self, failing: Iterable[str] = ()) -> None:
        self.failing = set(failing)
        self.currency_calls: list[str] = []
        self.quote_calls: list[str] = []

    async def fetch_currency_rate(self, from_currency: str, to_currency: str) -> CurrencyQuote:
        pair = f"{from_currency}/{to_currency}"
        self.currency_calls.append(pair)
        if pair in self.failing:
            raise ProviderRateLimitError(
                "API call frequency limit exceeded",
                "alpha_vantage",
                instrument=pair,
            )
        return CurrencyQuote(
            from_currency=from_currency,
            to_currency=to_currency,
            exchange_rate=Decimal("1.2345"),
            bid_price=Decimal("1.2344"),
            ask_price=Decimal("1.2346"),
            last_refreshed="2024-01-15 10:00:00",
            time_zone="UTC",
        )

    async def fetch_global_quote(self, symbol: str) -> StockQuote:
        self.quote_calls.append(symbol)
        if symbol in self.failing:
            raise ProviderResponseError(f'Stock symbol "{symbol}" not found', "alpha_vantage")
        return StockQuote(
            symbol=symbol,
            price=Decimal("185.42"),
            open=Decimal("184.10"),
            high=Decimal("186.00"),
            low=Decimal("183.75"),
            volume=8123456,
            latest_trading_day="2024-01-12",
            previous_close=Decimal("184.00"),
            change=Decimal("1.42"),
            change_percent=Decimal("0.7717"),
        )


class FakeNewsProvider:
    """News provider double returning a fixed list of articles."""

    def __init__(self, articles: list[NewsArticleData] | None = None) -> None:
        self.articles = articles or []
        self.calls: list[NewsFilterParams | None] = []

    async def fetch_news(self, params: NewsFilterParams | None = None) -> MarketauxNewsResponse:
        self.calls.append(params)
        return MarketauxNewsResponse(
            meta=MarketauxNewsMeta(found=len(self.articles), returned=len(self.articles)),
            data=list(self.articles),
        )


def make_entity(
    name: str = "Apple Inc.",
    *,
    symbol: str | None = "AAPL",
    sentiment: float | None = 0.1,
    match_score: float | None = 10.0,
    highlights: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    return {
        "symbol": symbol,
        "name": name,
        "exchange": "NASDAQ",
        "exchange_long": "NASDAQ Stock Exchange",
        "country": "us",
        "type": "equity",
        "industry": "Technology",
        "match_score": match_score,
        "sentiment_score": sentiment,
        "highlights": highlights
        if highlights is not None
        else [{"highlight": f"{name} shares rose.", "sentiment": sentiment, "highlighted_in": "main_text"}],
    }


def make_article(
    uuid: str,
    *,
    published_at: str | datetime = "2024-01-15T10:30:00.000000Z",
    categories: list[str] | None = None,
    entities: list[dict[str, Any]] | None = None,
    similar: list[dict[str, Any]] | None = None,
    title: str | None = None,
) -> NewsArticleData:
    return NewsArticleData.model_validate(
        {
            "uuid": uuid,
            "title": title or f"Article {uuid}",
            "description": "Markets moved today.",
            "snippet": "Stocks rallied on Monday...",
            "url": f"https://news.example.com/{uuid}",
            "image_url": f"https://news.example.com/{uuid}.jpg",
            "language": "en",
            "published_at": published_at,
            "source": "news.example.com",
            "categories": categories if categories is not None else ["business"],
            "entities": entities if entities is not None else [make_entity()],
            "similar": similar if similar is not None else [],
        }
    )


def make_articles(count: int, day: date = TODAY) -> list[NewsArticleData]:
    start = datetime(day.year, day.month, day.day, 23, 0, 0)
    return [
        make_article(f"uuid-{i:03d}", published_at=start - timedelta(minutes=i), entities=[])
        for i in range(count)
    ]


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[Database, None]:
    """In-memory SQLite database with all tables created."""
    db = Database(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(TODAY)


@pytest.fixture
def fake_time() -> FakeTime:
    return FakeTime()


@pytest.fixture
def pacer(fake_time: FakeTime) -> RateLimitPacer:
    return RateLimitPacer(12.0, sleep=fake_time.sleep, monotonic=fake_time.monotonic)


@pytest.fixture
def market_store(database: Database) -> MarketDataStore:
    return MarketDataStore(database)


@pytest.fixture
def news_store(database: Database) -> NewsStore:
    return NewsStore(database)


@pytest.fixture
def quote_provider() -> FakeQuoteProvider:
    return FakeQuoteProvider()


@pytest.fixture
def news_provider() -> FakeNewsProvider:
    return FakeNewsProvider()


@pytest.fixture
def market_service(
    market_store: MarketDataStore,
    quote_provider: FakeQuoteProvider,
    clock: FixedClock,
    pacer: RateLimitPacer,
) -> MarketDataService:
    return MarketDataService(market_store, quote_provider, clock=clock, pacer=pacer)


@pytest.fixture
def news_service(
    news_store: NewsStore,
    news_provider: FakeNewsProvider,
    clock: FixedClock,
) -> NewsService:
    return NewsService(news_store, news_provider, clock=clock)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        database_url="sqlite+aiosqlite://",
        alpha_vantage_api_key=None,
        marketaux_api_key=None,
        provider_call_interval_seconds=0,
    )


@pytest.fixture
def app(
    test_settings: Settings,
    database: Database,
    market_service: MarketDataService,
    news_service: NewsService,
) -> Generator[FastAPI, None, None]:
    """Application wired to the test database and fake providers."""
    application = create_app(test_settings)
    application.dependency_overrides[get_database] = lambda: database
    application.dependency_overrides[get_market_data_service] = lambda: market_service
    application.dependency_overrides[get_news_service] = lambda: news_service
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create test client for the application."""
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
