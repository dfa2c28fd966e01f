"""Storage of news articles, their owned relations and the daily headline index."""

from __future__ import annotations

import datetime as dt
from collections import defaultdict
from collections.abc import Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from marketdesk.core.clock import day_bounds
from marketdesk.core.database import Database
from marketdesk.core.exceptions import PersistenceError, TransactionError
from marketdesk.core.logging import get_logger
from marketdesk.models.news import (
    NewsArticle,
    NewsCategory,
    NewsDailyCache,
    NewsEntity,
    NewsEntityHighlight,
    NewsSimilar,
)
from marketdesk.persistence.upsert import build_upsert
from marketdesk.schemas.news import (
    EntityHighlightData,
    NewsArticleData,
    NewsEntityData,
    SimilarNewsData,
)

logger = get_logger(__name__)

_ARTICLE_COLUMNS = (
    "uuid",
    "title",
    "description",
    "snippet",
    "url",
    "image_url",
    "language",
    "published_at",
    "source",
)


class NewsStore:
    """Articles keyed by provider uuid, with categories, entities, highlights
    and similar-article references.

    An article is always saved together with its relations in one transaction:
    the article row is upserted and every relation is deleted and re-inserted,
    so the stored relations mirror the latest save exactly.
    """

    def __init__(self, database: Database) -> None:
        self.database = database

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def save_news_article_with_relations(self, article: NewsArticleData) -> None:
        """Upsert the article and replace all of its relations atomically.

        Raises:
            TransactionError: If any step fails. Nothing written for this
                article in the current call survives.
        """
        try:
            async with self.database.session() as session:
                await self._upsert_article(session, article)
                await self._replace_categories(session, article.uuid, article.categories)
                await self._replace_entities(session, article.uuid, article.entities)
                await self._replace_similar(session, article.uuid, article.similar)
        except SQLAlchemyError as e:
            logger.error("news_article_save_failed", uuid=article.uuid, error=str(e))
            raise TransactionError(
                f"Failed to save news article {article.uuid}",
                operation="save_news_article_with_relations",
                details={"uuid": article.uuid},
            ) from e

        logger.debug(
            "news_article_saved",
            uuid=article.uuid,
            categories=len(article.categories),
            entities=len(article.entities),
            similar=len(article.similar),
        )

    async def _upsert_article(self, session: AsyncSession, article: NewsArticleData) -> None:
        values = article.model_dump(include=set(_ARTICLE_COLUMNS))
        # the field serializer renders a string; the column takes the datetime
        values["published_at"] = article.published_at
        stmt = build_upsert(
            self.database.dialect_name,
            NewsArticle,
            values,
            conflict_columns=("uuid",),
        )
        await session.execute(stmt)

    async def _replace_categories(
        self,
        session: AsyncSession,
        news_uuid: str,
        categories: Sequence[str],
    ) -> None:
        await session.execute(delete(NewsCategory).where(NewsCategory.news_uuid == news_uuid))
        unique = [c for c in dict.fromkeys(c.strip() for c in categories) if c]
        session.add_all(NewsCategory(news_uuid=news_uuid, category=c) for c in unique)
        await session.flush()

    async def _replace_entities(
        self,
        session: AsyncSession,
        news_uuid: str,
        entities: Sequence[NewsEntityData],
    ) -> None:
        entity_ids = select(NewsEntity.id).where(NewsEntity.news_uuid == news_uuid)
        await session.execute(
            delete(NewsEntityHighlight).where(NewsEntityHighlight.entity_id.in_(entity_ids))
        )
        await session.execute(delete(NewsEntity).where(NewsEntity.news_uuid == news_uuid))

        for entity in entities:
            row = NewsEntity(
                news_uuid=news_uuid,
                **entity.model_dump(exclude={"highlights"}),
            )
            session.add(row)
            await session.flush()
            await self._insert_highlights(session, row.id, entity.highlights)

    async def _insert_highlights(
        self,
        session: AsyncSession,
        entity_id: int,
        highlights: Sequence[EntityHighlightData],
    ) -> None:
        session.add_all(
            NewsEntityHighlight(entity_id=entity_id, **h.model_dump()) for h in highlights
        )
        await session.flush()

    async def _replace_similar(
        self,
        session: AsyncSession,
        news_uuid: str,
        similar: Sequence[SimilarNewsData],
    ) -> None:
        await session.execute(delete(NewsSimilar).where(NewsSimilar.news_uuid == news_uuid))
        session.add_all(
            NewsSimilar(
                news_uuid=news_uuid,
                similar_uuid=s.uuid,
                similar_title=s.title,
                similar_published_at=s.published_at,
                similar_source=s.source,
            )
            for s in similar
        )
        await session.flush()

    async def mark_headlines(
        self,
        uuids: Sequence[str],
        day: dt.date,
        priorities: Sequence[int] | None = None,
    ) -> int:
        """Flag articles as headlines of ``day`` with the given priorities.

        ``priorities`` is aligned with ``uuids``; a missing entry means 0.
        Uuids with no article published on ``day`` are skipped.

        Returns:
            Number of headline marks written.

        Raises:
            PersistenceError: If none of the uuids has an article published
                on ``day``, or the write fails.
        """
        if not uuids:
            return 0

        priority_by_uuid: dict[str, int] = {}
        for index, uuid in enumerate(uuids):
            priority = priorities[index] if priorities is not None and index < len(priorities) else 0
            priority_by_uuid[uuid] = int(priority)

        start, end = day_bounds(day)
        try:
            async with self.database.session() as session:
                existing = set(
                    (
                        await session.execute(
                            select(NewsArticle.uuid).where(
                                NewsArticle.uuid.in_(list(priority_by_uuid)),
                                NewsArticle.published_at >= start,
                                NewsArticle.published_at < end,
                            )
                        )
                    ).scalars()
                )
                if not existing:
                    raise PersistenceError(
                        f"No articles published on {day.isoformat()} for the given uuids",
                        operation="mark_headlines",
                        details={"uuids": list(priority_by_uuid)},
                    )

                skipped = [u for u in priority_by_uuid if u not in existing]
                if skipped:
                    logger.warning(
                        "headline_uuids_skipped",
                        date=day.isoformat(),
                        count=len(skipped),
                        uuids=skipped,
                    )

                for uuid in priority_by_uuid:
                    if uuid not in existing:
                        continue
                    await session.execute(
                        build_upsert(
                            self.database.dialect_name,
                            NewsDailyCache,
                            {
                                "news_uuid": uuid,
                                "date": day,
                                "is_headline": True,
                                "priority": priority_by_uuid[uuid],
                            },
                            conflict_columns=("news_uuid", "date"),
                        )
                    )
        except SQLAlchemyError as e:
            logger.error("headline_mark_failed", date=day.isoformat(), error=str(e))
            raise PersistenceError(
                "Failed to mark headline news",
                operation="mark_headlines",
            ) from e

        logger.info("headlines_marked", date=day.isoformat(), count=len(existing))
        return len(existing)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def news_exists_for_date(self, day: dt.date) -> bool:
        start, end = day_bounds(day)
        stmt = (
            select(NewsArticle.id)
            .where(NewsArticle.published_at >= start, NewsArticle.published_at < end)
            .limit(1)
        )
        try:
            async with self.database.session() as session:
                found = (await session.execute(stmt)).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise PersistenceError(
                "Failed to check cached news",
                operation="news_exists_for_date",
            ) from e
        return found is not None

    async def get_news_for_date(self, day: dt.date) -> list[NewsArticleData]:
        """Articles published on ``day``, newest first, with all relations."""
        start, end = day_bounds(day)
        stmt = (
            select(NewsArticle)
            .where(NewsArticle.published_at >= start, NewsArticle.published_at < end)
            .order_by(NewsArticle.published_at.desc(), NewsArticle.id.desc())
        )
        try:
            async with self.database.session() as session:
                articles = (await session.execute(stmt)).scalars().all()
                return await self._assemble(session, articles)
        except SQLAlchemyError as e:
            raise PersistenceError(
                "Failed to load cached news",
                operation="get_news_for_date",
            ) from e

    async def get_headlines_for_date(
        self,
        day: dt.date,
        limit: int | None = None,
    ) -> list[NewsArticleData]:
        """Headline articles of ``day`` by priority, then newest first."""
        stmt = (
            select(NewsArticle)
            .join(NewsDailyCache, NewsDailyCache.news_uuid == NewsArticle.uuid)
            .where(NewsDailyCache.date == day, NewsDailyCache.is_headline.is_(True))
            .order_by(
                NewsDailyCache.priority.desc(),
                NewsArticle.published_at.desc(),
                NewsArticle.id.desc(),
            )
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            async with self.database.session() as session:
                articles = (await session.execute(stmt)).scalars().all()
                return await self._assemble(session, articles)
        except SQLAlchemyError as e:
            raise PersistenceError(
                "Failed to load headline news",
                operation="get_headlines_for_date",
            ) from e

    async def _assemble(
        self,
        session: AsyncSession,
        articles: Sequence[NewsArticle],
    ) -> list[NewsArticleData]:
        """Attach categories, entities with highlights and similar references."""
        if not articles:
            return []
        uuids = [a.uuid for a in articles]

        categories: dict[str, list[str]] = defaultdict(list)
        rows = await session.execute(
            select(NewsCategory.news_uuid, NewsCategory.category)
            .where(NewsCategory.news_uuid.in_(uuids))
            .order_by(NewsCategory.id)
        )
        for news_uuid, category in rows:
            categories[news_uuid].append(category)

        entity_rows = (
            await session.execute(
                select(NewsEntity).where(NewsEntity.news_uuid.in_(uuids)).order_by(NewsEntity.id)
            )
        ).scalars().all()

        highlights: dict[int, list[EntityHighlightData]] = defaultdict(list)
        if entity_rows:
            highlight_rows = (
                await session.execute(
                    select(NewsEntityHighlight)
                    .where(NewsEntityHighlight.entity_id.in_([e.id for e in entity_rows]))
                    .order_by(NewsEntityHighlight.id)
                )
            ).scalars().all()
            for h in highlight_rows:
                highlights[h.entity_id].append(EntityHighlightData.model_validate(h))

        entities: dict[str, list[NewsEntityData]] = defaultdict(list)
        for e in entity_rows:
            entities[e.news_uuid].append(
                NewsEntityData(
                    symbol=e.symbol,
                    name=e.name,
                    exchange=e.exchange,
                    exchange_long=e.exchange_long,
                    country=e.country,
                    type=e.type,
                    industry=e.industry,
                    match_score=e.match_score,
                    sentiment_score=e.sentiment_score,
                    highlights=highlights[e.id],
                )
            )

        similar: dict[str, list[SimilarNewsData]] = defaultdict(list)
        similar_rows = (
            await session.execute(
                select(NewsSimilar).where(NewsSimilar.news_uuid.in_(uuids)).order_by(NewsSimilar.id)
            )
        ).scalars().all()
        for s in similar_rows:
            similar[s.news_uuid].append(
                SimilarNewsData(
                    uuid=s.similar_uuid,
                    title=s.similar_title,
                    published_at=s.similar_published_at,
                    source=s.similar_source,
                )
            )

        return [
            NewsArticleData(
                uuid=a.uuid,
                title=a.title,
                description=a.description,
                snippet=a.snippet,
                url=a.url,
                image_url=a.image_url,
                language=a.language,
                published_at=a.published_at,
                source=a.source,
                categories=categories[a.uuid],
                entities=entities[a.uuid],
                similar=similar[a.uuid],
            )
            for a in articles
        ]
