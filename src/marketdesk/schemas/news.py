"""News schemas.

Articles keep the news provider's snake_case field names. Timestamps are
normalised to naive UTC at second precision on the way in and rendered as
ISO-8601 with a ``Z`` suffix on the way out.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from marketdesk.core.clock import normalize_timestamp
from marketdesk.core.exceptions import ValidationError

SENTIMENT_MIN = -1.0
SENTIMENT_MAX = 1.0


def check_sentiment_bound(field: str, value: float) -> float:
    """Return ``value`` if it is a usable entity sentiment bound.

    Raises:
        ValidationError: If ``value`` lies outside [-1, 1].
    """
    if not SENTIMENT_MIN <= value <= SENTIMENT_MAX:
        raise ValidationError(
            f"{field} must be between {SENTIMENT_MIN} and {SENTIMENT_MAX}",
            field=field,
            value=value,
        )
    return value


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _render_utc(value: datetime | None) -> str | None:
    return f"{value.isoformat()}Z" if value is not None else None


class EntityHighlightData(BaseModel):
    """Passage of an article mentioning an entity."""

    model_config = ConfigDict(from_attributes=True)

    highlight: str
    sentiment: float | None = None
    highlighted_in: str | None = None

    @field_validator("highlighted_in", mode="before")
    @classmethod
    def _blank_highlighted_in(cls, v: Any) -> Any:
        return _blank_to_none(v)


class NewsEntityData(BaseModel):
    """Entity recognised in an article, with its highlights."""

    model_config = ConfigDict(from_attributes=True)

    symbol: str | None = None
    name: str
    exchange: str | None = None
    exchange_long: str | None = None
    country: str | None = None
    type: str | None = None
    industry: str | None = None
    match_score: float | None = None
    sentiment_score: float | None = None
    highlights: list[EntityHighlightData] = Field(default_factory=list)

    @field_validator(
        "symbol",
        "exchange",
        "exchange_long",
        "country",
        "type",
        "industry",
        mode="before",
    )
    @classmethod
    def _blank_text(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("highlights", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return v or []


class SimilarNewsData(BaseModel):
    """Reference to a related article."""

    uuid: str
    title: str | None = None
    published_at: datetime | None = None
    source: str | None = None

    @field_validator("title", "source", mode="before")
    @classmethod
    def _blank_text(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("published_at", mode="before")
    @classmethod
    def _normalize_published_at(cls, v: Any) -> datetime | None:
        if v is None or v == "":
            return None
        try:
            return normalize_timestamp(v)
        except (TypeError, ValueError):
            return None

    @field_serializer("published_at")
    def _serialize_published_at(self, v: datetime | None) -> str | None:
        return _render_utc(v)


class NewsArticleData(BaseModel):
    """Article with its categories, entities and similar-article references."""

    uuid: str
    title: str
    description: str | None = None
    snippet: str | None = None
    url: str
    image_url: str | None = None
    language: str
    published_at: datetime
    source: str
    categories: list[str] = Field(default_factory=list)
    entities: list[NewsEntityData] = Field(default_factory=list)
    similar: list[SimilarNewsData] = Field(default_factory=list)

    @field_validator("description", "snippet", "image_url", mode="before")
    @classmethod
    def _blank_text(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("categories", "entities", "similar", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return v or []

    @field_validator("published_at", mode="before")
    @classmethod
    def _normalize_published_at(cls, v: Any) -> datetime:
        if isinstance(v, str | datetime):
            return normalize_timestamp(v)
        return v

    @field_serializer("published_at")
    def _serialize_published_at(self, v: datetime) -> str | None:
        return _render_utc(v)


class NewsFilterParams(BaseModel):
    """Filters forwarded to the news provider."""

    symbols: str | None = None
    limit: int | None = Field(default=None, ge=1)
    language: str | None = None
    sentiment_gte: float | None = None
    sentiment_lte: float | None = None
    countries: str | None = None
    entity_types: str | None = None
    industries: str | None = None
    filter_entities: bool | None = None
    must_have_entities: bool | None = None

    @property
    def bypasses_cache(self) -> bool:
        """Whether the cached daily set cannot answer these filters."""
        return bool(self.symbols) or self.sentiment_gte is not None or self.sentiment_lte is not None


class NewsPage(BaseModel):
    """One slice of a news list and the size of the full list."""

    articles: list[NewsArticleData]
    total: int
    page: int
    limit: int


class MarketauxNewsMeta(BaseModel):
    found: int | None = None
    returned: int | None = None
    limit: int | None = None
    page: int | None = None


class MarketauxNewsResponse(BaseModel):
    """Parsed news search response."""

    meta: MarketauxNewsMeta | None = None
    data: list[NewsArticleData] = Field(default_factory=list)
