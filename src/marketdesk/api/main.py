"""FastAPI application factory and main entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from marketdesk import __version__
from marketdesk.api.middleware.exception_handler import setup_exception_handlers
from marketdesk.api.middleware.logging import LoggingMiddleware
from marketdesk.api.routes import health, market, news
from marketdesk.core.config import Settings, get_settings
from marketdesk.core.database import Database
from marketdesk.core.logging import configure_logging, get_logger
from marketdesk.core.pacing import RateLimitPacer
from marketdesk.persistence.market_store import MarketDataStore
from marketdesk.persistence.news_store import NewsStore
from marketdesk.providers.alpha_vantage import AlphaVantageClient
from marketdesk.providers.marketaux import MarketauxClient
from marketdesk.services.market_data import MarketDataService
from marketdesk.services.news import NewsService

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Connect the storage handle on startup; close clients and drain the pool on shutdown."""
    settings: Settings = app.state.settings
    logger.info("application_startup", app_name=settings.app_name, env=settings.app_env)
    await app.state.database.connect(create_tables=settings.db_auto_create)
    yield
    logger.info("application_shutdown")
    await app.state.quotes_client.aclose()
    await app.state.news_client.aclose()
    await app.state.database.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()
    configure_logging(
        json_logs=settings.is_production,
        log_level="DEBUG" if settings.debug else "INFO",
    )

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        description="Cached currency rates, commodity prices and market news",
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )

    database = Database.from_settings(settings)
    quotes_client = AlphaVantageClient.from_settings(settings)
    news_client = MarketauxClient.from_settings(settings)

    app.state.settings = settings
    app.state.database = database
    app.state.quotes_client = quotes_client
    app.state.news_client = news_client
    app.state.market_data_service = MarketDataService(
        MarketDataStore(database),
        quotes_client,
        pacer=RateLimitPacer(settings.provider_call_interval_seconds),
    )
    app.state.news_service = NewsService(
        NewsStore(database),
        news_client,
        default_limit=settings.news_default_limit,
        max_limit=settings.news_max_limit,
        default_language=settings.news_default_language,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)

    setup_exception_handlers(app)

    app.include_router(health.router, tags=["Health"])
    app.include_router(market.router, prefix=settings.api_prefix, tags=["Market"])
    app.include_router(news.router, prefix=settings.api_prefix, tags=["News"])

    return app


app = create_app()
