"""SQLAlchemy models."""

from marketdesk.models.base import Base, TimestampMixin
from marketdesk.models.market import CommodityPrice, CurrencyRate
from marketdesk.models.news import (
    NewsArticle,
    NewsCategory,
    NewsDailyCache,
    NewsEntity,
    NewsEntityHighlight,
    NewsSimilar,
)

__all__ = [
    "Base",
    "CommodityPrice",
    "CurrencyRate",
    "NewsArticle",
    "NewsCategory",
    "NewsDailyCache",
    "NewsEntity",
    "NewsEntityHighlight",
    "NewsSimilar",
    "TimestampMixin",
]
