"""News article model and its owned relations."""

from __future__ import annotations

import datetime as dt

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from marketdesk.models.base import Base, TimestampMixin


class NewsArticle(Base, TimestampMixin):
    """Article as returned by the news provider, keyed by its provider uuid.

    ``published_at`` is stored as naive UTC at second precision.
    """

    __tablename__ = "news_articles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uuid: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    title: Mapped[str] = mapped_column(String(1000), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    snippet: Mapped[str | None] = mapped_column(Text, nullable=True)
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    language: Mapped[str] = mapped_column(String(10), nullable=False)
    published_at: Mapped[dt.datetime] = mapped_column(DateTime, index=True, nullable=False)
    source: Mapped[str] = mapped_column(String(255), nullable=False)


class NewsCategory(Base):
    __tablename__ = "news_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    news_uuid: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("news_articles.uuid", ondelete="CASCADE"),
        nullable=False,
    )
    category: Mapped[str] = mapped_column(String(100), nullable=False)

    __table_args__ = (
        UniqueConstraint("news_uuid", "category", name="uq_news_categories_uuid_category"),
    )


class NewsEntity(Base):
    """Entity (company, index, currency...) recognised in an article."""

    __tablename__ = "news_entities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    news_uuid: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("news_articles.uuid", ondelete="CASCADE"),
        nullable=False,
    )
    symbol: Mapped[str | None] = mapped_column(String(50), nullable=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    exchange: Mapped[str | None] = mapped_column(String(50), nullable=True)
    exchange_long: Mapped[str | None] = mapped_column(String(255), nullable=True)
    country: Mapped[str | None] = mapped_column(String(10), nullable=True)
    type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    industry: Mapped[str | None] = mapped_column(String(100), nullable=True)
    match_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    sentiment_score: Mapped[float | None] = mapped_column(Float, nullable=True)

    __table_args__ = (Index("ix_news_entities_news_uuid", "news_uuid"),)


class NewsEntityHighlight(Base):
    __tablename__ = "news_entity_highlights"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entity_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("news_entities.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    highlight: Mapped[str] = mapped_column(Text, nullable=False)
    sentiment: Mapped[float | None] = mapped_column(Float, nullable=True)
    highlighted_in: Mapped[str | None] = mapped_column(String(50), nullable=True)


class NewsSimilar(Base):
    """Lightweight reference from an article to a related article."""

    __tablename__ = "news_similar"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    news_uuid: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("news_articles.uuid", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    similar_uuid: Mapped[str] = mapped_column(String(64), nullable=False)
    similar_title: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    similar_published_at: Mapped[dt.datetime | None] = mapped_column(DateTime, nullable=True)
    similar_source: Mapped[str | None] = mapped_column(String(255), nullable=True)


class NewsDailyCache(Base):
    """Daily headline index over news articles."""

    __tablename__ = "news_daily_cache"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    news_uuid: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("news_articles.uuid", ondelete="CASCADE"),
        nullable=False,
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    is_headline: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    priority: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    __table_args__ = (
        UniqueConstraint("news_uuid", "date", name="uq_news_daily_cache_uuid_date"),
        Index("ix_news_daily_cache_date_priority", "date", "priority"),
    )
