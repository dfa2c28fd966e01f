"""Tests for NewsService and headline selection."""

from collections.abc import Iterable
from datetime import date
from typing import Any

import pytest

from marketdesk.core.clock import FixedClock
from marketdesk.core.database import Database
from marketdesk.core.exceptions import PersistenceError
from marketdesk.persistence.news_store import NewsStore
from marketdesk.schemas.news import NewsArticleData, NewsFilterParams
from marketdesk.services.headlines import (
    headline_priority,
    is_headline_candidate,
    select_headlines,
)
from marketdesk.services.news import NewsService

from tests.conftest import TODAY, FakeNewsProvider, make_article, make_articles, make_entity


class FlakyNewsStore(NewsStore):
    """Store that fails to save selected uuids and optionally headline marks."""

    def __init__(
        self,
        database: Database,
        failing_uuids: Iterable[str] = (),
        *,
        fail_headlines: bool = False,
    ) -> None:
        super().__init__(database)
        self.failing_uuids = set(failing_uuids)
        self.fail_headlines = fail_headlines
        self.headline_calls: list[tuple[list[str], list[int] | None]] = []

    async def save_news_article_with_relations(self, article: NewsArticleData) -> None:
        if article.uuid in self.failing_uuids:
            raise PersistenceError("Failed to save", operation="save_news_article_with_relations")
        await super().save_news_article_with_relations(article)

    async def mark_headlines(self, uuids: Any, day: date, priorities: Any = None) -> int:
        self.headline_calls.append((list(uuids), list(priorities) if priorities else None))
        if self.fail_headlines:
            raise PersistenceError("Failed to mark headline news", operation="mark_headlines")
        return await super().mark_headlines(uuids, day, priorities)


class TestHeadlineSelection:
    """Tests for headline candidacy and priority."""

    def test_strong_sentiment_is_candidate(self) -> None:
        """Test strong sentiment qualifies an article."""
        article = make_article("a", entities=[make_entity(sentiment=-0.5, match_score=10.0)])
        assert is_headline_candidate(article)
        assert headline_priority(article) == 50

    def test_strong_match_is_candidate(self) -> None:
        """Test a high match score qualifies an article."""
        article = make_article("a", entities=[make_entity(sentiment=0.1, match_score=25.0)])
        assert is_headline_candidate(article)
        assert headline_priority(article) == 10

    def test_weak_entities_are_not_candidates(self) -> None:
        """Test weak entities do not qualify."""
        article = make_article(
            "a",
            entities=[
                make_entity(sentiment=0.3, match_score=20.0),
                make_entity("Tesla", sentiment=-0.2, match_score=5.0),
            ],
        )
        assert not is_headline_candidate(article)

    def test_no_entities_is_not_candidate(self) -> None:
        """Test articles without entities do not qualify."""
        assert not is_headline_candidate(make_article("a", entities=[]))

    def test_priority_uses_strongest_sentiment(self) -> None:
        """Test priority follows the strongest sentiment."""
        article = make_article(
            "a",
            entities=[
                make_entity(sentiment=0.42),
                make_entity("Tesla", sentiment=-0.875),
                make_entity("Ford", sentiment=None, match_score=30.0),
            ],
        )
        assert headline_priority(article) == 88

    def test_priority_without_sentiment_is_zero(self) -> None:
        """Test priority is zero without sentiment."""
        article = make_article("a", entities=[make_entity(sentiment=None, match_score=50.0)])
        assert is_headline_candidate(article)
        assert headline_priority(article) == 0

    def test_select_headlines_keeps_order(self) -> None:
        """Test headline selection keeps article order."""
        articles = [
            make_article("weak", entities=[make_entity(sentiment=0.1, match_score=1.0)]),
            make_article("b", entities=[make_entity(sentiment=0.9)]),
            make_article("c", entities=[make_entity(sentiment=-0.31)]),
        ]
        assert select_headlines(articles) == (["b", "c"], [90, 31])


class TestCheckAndGetNews:
    """Tests for check_and_get_news."""

    @pytest.mark.asyncio
    async def test_cache_miss_fetches_and_saves(
        self,
        news_service: NewsService,
        news_provider: FakeNewsProvider,
        news_store: NewsStore,
    ) -> None:
        """Test cache miss fetches and saves news."""
        news_provider.articles = [
            make_article("a-1", entities=[make_entity(sentiment=-0.5, match_score=10.0)]),
            make_article("a-2", entities=[make_entity(sentiment=0.1, match_score=5.0)]),
        ]

        articles = await news_service.check_and_get_news()

        assert [a.uuid for a in articles] == ["a-1", "a-2"]
        assert len(news_provider.calls) == 1
        assert await news_store.news_exists_for_date(TODAY)
        headlines = await news_store.get_headlines_for_date(TODAY)
        assert [a.uuid for a in headlines] == ["a-1"]

    @pytest.mark.asyncio
    async def test_provider_params_defaults(
        self,
        news_service: NewsService,
        news_provider: FakeNewsProvider,
    ) -> None:
        """Test default provider parameters."""
        await news_service.check_and_get_news()

        [params] = news_provider.calls
        assert params is not None
        assert params.limit == 50
        assert params.language == "en"

    @pytest.mark.asyncio
    async def test_provider_limit_is_capped(
        self,
        news_service: NewsService,
        news_provider: FakeNewsProvider,
    ) -> None:
        """Test provider limit is capped."""
        await news_service.check_and_get_news(NewsFilterParams(limit=500, language="de"))

        [params] = news_provider.calls
        assert params is not None
        assert params.limit == 100
        assert params.language == "de"

    @pytest.mark.asyncio
    async def test_cache_hit_makes_no_provider_call(
        self,
        news_service: NewsService,
        news_provider: FakeNewsProvider,
        news_store: NewsStore,
    ) -> None:
        """Test cache hit makes no provider call."""
        await news_store.save_news_article_with_relations(make_article("cached"))

        articles = await news_service.check_and_get_news(NewsFilterParams(limit=10))

        assert [a.uuid for a in articles] == ["cached"]
        assert news_provider.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "params",
        [
            NewsFilterParams(symbols="TSLA"),
            NewsFilterParams(sentiment_gte=0.2),
            NewsFilterParams(sentiment_lte=-0.2),
        ],
    )
    async def test_symbol_and_sentiment_filters_bypass_cache(
        self,
        news_service: NewsService,
        news_provider: FakeNewsProvider,
        news_store: NewsStore,
        params: NewsFilterParams,
    ) -> None:
        """Test symbol and sentiment filters bypass the cache."""
        await news_store.save_news_article_with_relations(make_article("cached"))
        news_provider.articles = [make_article("fresh")]

        articles = await news_service.check_and_get_news(params)

        assert [a.uuid for a in articles] == ["fresh"]
        assert len(news_provider.calls) == 1

    @pytest.mark.asyncio
    async def test_empty_provider_response(
        self,
        news_service: NewsService,
        news_store: NewsStore,
    ) -> None:
        """Test an empty provider response."""
        assert await news_service.check_and_get_news() == []
        assert not await news_store.news_exists_for_date(TODAY)

    @pytest.mark.asyncio
    async def test_failed_article_is_skipped(
        self,
        database: Database,
        news_provider: FakeNewsProvider,
        clock: FixedClock,
    ) -> None:
        """Test a failing article is skipped."""
        store = FlakyNewsStore(database, {"a-2"})
        service = NewsService(store, news_provider, clock=clock)
        news_provider.articles = [
            make_article("a-1", entities=[make_entity(sentiment=0.6)]),
            make_article("a-2", entities=[make_entity(sentiment=0.7)]),
            make_article("a-3"),
        ]

        articles = await service.check_and_get_news()

        assert [a.uuid for a in articles] == ["a-1", "a-3"]
        assert store.headline_calls == [(["a-1"], [60])]

    @pytest.mark.asyncio
    async def test_headline_failure_is_not_fatal(
        self,
        database: Database,
        news_provider: FakeNewsProvider,
        clock: FixedClock,
    ) -> None:
        """Test headline marking failures are not fatal."""
        store = FlakyNewsStore(database, fail_headlines=True)
        service = NewsService(store, news_provider, clock=clock)
        news_provider.articles = [make_article("a-1", entities=[make_entity(sentiment=0.6)])]

        articles = await service.check_and_get_news()

        assert [a.uuid for a in articles] == ["a-1"]
        assert await store.get_headlines_for_date(TODAY) == []

    @pytest.mark.asyncio
    async def test_no_candidates_skips_headline_marking(
        self,
        database: Database,
        news_provider: FakeNewsProvider,
        clock: FixedClock,
    ) -> None:
        """Test headline marking is skipped without candidates."""
        store = FlakyNewsStore(database)
        service = NewsService(store, news_provider, clock=clock)
        news_provider.articles = make_articles(3)

        await service.check_and_get_news()

        assert store.headline_calls == []


class TestPagination:
    """Tests for get_news_with_pagination."""

    @pytest.mark.asyncio
    async def test_second_page(
        self,
        news_service: NewsService,
        news_provider: FakeNewsProvider,
    ) -> None:
        """Test slicing the second page."""
        news_provider.articles = make_articles(120)
        expected = [a.uuid for a in news_provider.articles]

        page = await news_service.get_news_with_pagination(NewsFilterParams(limit=120), page=2, limit=50)

        assert page.total == 120
        assert page.page == 2
        assert page.limit == 50
        assert [a.uuid for a in page.articles] == expected[50:100]

    @pytest.mark.asyncio
    async def test_last_partial_page_and_beyond(
        self,
        news_service: NewsService,
        news_store: NewsStore,
    ) -> None:
        """Test partial last page and pages past the end."""
        for article in make_articles(7):
            await news_store.save_news_article_with_relations(article)

        last = await news_service.get_news_with_pagination(page=2, limit=5)
        beyond = await news_service.get_news_with_pagination(page=3, limit=5)

        assert [a.uuid for a in last.articles] == ["uuid-005", "uuid-006"]
        assert last.total == 7
        assert beyond.articles == []
        assert beyond.total == 7

    @pytest.mark.asyncio
    async def test_defaults(self, news_service: NewsService, news_store: NewsStore) -> None:
        """Test default page and limit."""
        for article in make_articles(3):
            await news_store.save_news_article_with_relations(article)

        page = await news_service.get_news_with_pagination(page=0)

        assert page.page == 1
        assert page.limit == 50
        assert page.total == 3


class TestHeadlineNews:
    """Tests for get_headline_news_for_today."""

    @pytest.mark.asyncio
    async def test_fetches_general_news_when_cache_empty(
        self,
        news_service: NewsService,
        news_provider: FakeNewsProvider,
    ) -> None:
        """Test headlines trigger a fetch when the cache is empty."""
        news_provider.articles = [
            make_article("calm", entities=[make_entity(sentiment=0.05)]),
            make_article("mild", entities=[make_entity(sentiment=0.4)]),
            make_article("hot", entities=[make_entity(sentiment=-0.9)]),
        ]

        headlines = await news_service.get_headline_news_for_today()

        assert [a.uuid for a in headlines] == ["hot", "mild"]
        [params] = news_provider.calls
        assert params is not None
        assert params.symbols is None

    @pytest.mark.asyncio
    async def test_cached_news_without_headlines(
        self,
        news_service: NewsService,
        news_provider: FakeNewsProvider,
        news_store: NewsStore,
    ) -> None:
        """Test cached news with no headlines returns nothing."""
        await news_store.save_news_article_with_relations(make_article("cached"))

        assert await news_service.get_headline_news_for_today() == []
        assert news_provider.calls == []

    @pytest.mark.asyncio
    async def test_limit(self, news_service: NewsService, news_provider: FakeNewsProvider) -> None:
        """Test headline limit."""
        news_provider.articles = [
            make_article(f"h-{i}", entities=[make_entity(sentiment=0.5 + i / 10)]) for i in range(4)
        ]

        headlines = await news_service.get_headline_news_for_today(limit=2)

        assert [a.uuid for a in headlines] == ["h-3", "h-2"]
