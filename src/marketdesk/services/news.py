"""Daily cache-or-fetch of news articles and headline derivation."""

from __future__ import annotations

import datetime as dt
from typing import Protocol

from marketdesk.core.clock import Clock, SystemClock
from marketdesk.core.exceptions import PersistenceError
from marketdesk.core.logging import get_logger
from marketdesk.persistence.news_store import NewsStore
from marketdesk.schemas.news import (
    MarketauxNewsResponse,
    NewsArticleData,
    NewsFilterParams,
    NewsPage,
)
from marketdesk.services.headlines import select_headlines

logger = get_logger(__name__)

DEFAULT_LIMIT = 50
MAX_LIMIT = 100
DEFAULT_LANGUAGE = "en"


class NewsProvider(Protocol):
    async def fetch_news(self, params: NewsFilterParams | None = None) -> MarketauxNewsResponse: ...


class NewsService:
    """Serves today's news from the cache or fetches, saves and indexes it.

    Cached articles are only served when no symbol or sentiment filter is
    given; such filters always trigger a fresh fetch.
    """

    def __init__(
        self,
        store: NewsStore,
        provider: NewsProvider,
        *,
        clock: Clock | None = None,
        default_limit: int = DEFAULT_LIMIT,
        max_limit: int = MAX_LIMIT,
        default_language: str = DEFAULT_LANGUAGE,
    ) -> None:
        self.store = store
        self.provider = provider
        self.clock = clock or SystemClock()
        self.default_limit = default_limit
        self.max_limit = max_limit
        self.default_language = default_language

    async def check_and_get_news(
        self,
        params: NewsFilterParams | None = None,
        *,
        today: dt.date | None = None,
    ) -> list[NewsArticleData]:
        """Return today's articles, fetching them when the cache cannot answer."""
        params = params or NewsFilterParams()
        today = today or self.clock.today()

        if await self.store.news_exists_for_date(today):
            if not params.bypasses_cache:
                logger.debug("news_cache_hit", date=today.isoformat())
                return await self.store.get_news_for_date(today)
            logger.info("news_cache_bypassed", date=today.isoformat(), symbols=params.symbols)
        else:
            logger.info("news_cache_miss", date=today.isoformat())

        return await self._fetch_and_save(params, today)

    async def get_news_with_pagination(
        self,
        params: NewsFilterParams | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> NewsPage:
        """Slice the result of :meth:`check_and_get_news` into one page.

        ``total`` is the size of the full list before slicing.
        """
        params = params or NewsFilterParams()
        page = max(page, 1)
        limit = limit or params.limit or self.default_limit

        articles = await self.check_and_get_news(params)
        start = (page - 1) * limit
        return NewsPage(
            articles=articles[start : start + limit],
            total=len(articles),
            page=page,
            limit=limit,
        )

    async def get_headline_news_for_today(self, limit: int | None = None) -> list[NewsArticleData]:
        """Today's headlines, fetching general news first if nothing is cached."""
        today = self.clock.today()
        if not await self.store.news_exists_for_date(today):
            await self.check_and_get_news(NewsFilterParams(), today=today)
        return await self.store.get_headlines_for_date(today, limit=limit)

    def _provider_params(self, params: NewsFilterParams) -> NewsFilterParams:
        limit = min(params.limit or self.default_limit, self.max_limit)
        return params.model_copy(
            update={
                "limit": limit,
                "language": params.language or self.default_language,
            }
        )

    async def _fetch_and_save(
        self,
        params: NewsFilterParams,
        today: dt.date,
    ) -> list[NewsArticleData]:
        response = await self.provider.fetch_news(self._provider_params(params))
        if not response.data:
            logger.info("news_fetch_empty", date=today.isoformat())
            return []

        saved: list[NewsArticleData] = []
        for article in response.data:
            try:
                await self.store.save_news_article_with_relations(article)
            except PersistenceError as e:
                logger.warning("news_article_skipped", uuid=article.uuid, error=e.message)
                continue
            saved.append(article)

        uuids, priorities = select_headlines(saved)
        if uuids:
            try:
                await self.store.mark_headlines(uuids, today, priorities)
            except PersistenceError as e:
                logger.warning(
                    "headline_marking_failed",
                    date=today.isoformat(),
                    candidates=len(uuids),
                    error=e.message,
                )

        logger.info(
            "news_fetched",
            date=today.isoformat(),
            received=len(response.data),
            saved=len(saved),
            headlines=len(uuids),
        )
        return saved
