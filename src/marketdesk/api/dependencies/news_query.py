"""Lenient parsing of ``GET /news`` query parameters.

Malformed values are dropped rather than rejected: a non-numeric or
non-positive ``limit`` or ``page`` falls back to the default, and sentiment
bounds that are unparsable or outside [-1, 1] are ignored. Boolean flags are
only honoured for the literal strings ``true`` and ``false``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Query

from marketdesk.api.dependencies.services import get_news_service
from marketdesk.core.exceptions import ValidationError
from marketdesk.core.logging import get_logger
from marketdesk.schemas.news import NewsFilterParams, check_sentiment_bound
from marketdesk.services.news import NewsService

logger = get_logger(__name__)


@dataclass(frozen=True)
class NewsQuery:
    filters: NewsFilterParams
    page: int | None
    limit: int | None
    paginate: bool
    headlines: bool


def parse_positive_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        parsed = int(value.strip())
    except ValueError:
        return None
    return parsed if parsed > 0 else None


def parse_float(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        parsed = float(value.strip())
    except ValueError:
        return None
    return parsed if math.isfinite(parsed) else None


def parse_sentiment(field: str, value: str | None) -> float | None:
    parsed = parse_float(value)
    if parsed is None:
        return None
    try:
        return check_sentiment_bound(field, parsed)
    except ValidationError as e:
        logger.debug("news_query_param_ignored", field=field, reason=e.message)
        return None


def parse_flag(value: str | None) -> bool | None:
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def _text(value: str | None) -> str | None:
    return value if value else None


def parse_news_query(
    news_service: Annotated[NewsService, Depends(get_news_service)],
    symbols: Annotated[str | None, Query(description="Comma-separated symbols, e.g. AAPL,TSLA")] = None,
    limit: Annotated[str | None, Query(description="Results per page (default 50, max 100)")] = None,
    page: Annotated[str | None, Query(description="Page number, 1-indexed")] = None,
    language: Annotated[str | None, Query(description="Language code (default en)")] = None,
    sentiment_gte: Annotated[str | None, Query(description="Minimum entity sentiment")] = None,
    sentiment_lte: Annotated[str | None, Query(description="Maximum entity sentiment")] = None,
    countries: Annotated[str | None, Query(description="Comma-separated country codes")] = None,
    entity_types: Annotated[str | None, Query(description="Comma-separated entity types")] = None,
    industries: Annotated[str | None, Query(description="Comma-separated industries")] = None,
    filter_entities: Annotated[str | None, Query(description="true/false")] = None,
    must_have_entities: Annotated[str | None, Query(description="true/false")] = None,
    headlines: Annotated[str | None, Query(description="true for today's headlines only")] = None,
) -> NewsQuery:
    parsed_limit = parse_positive_int(limit)
    if parsed_limit is not None:
        parsed_limit = min(parsed_limit, news_service.max_limit)

    filters = NewsFilterParams(
        symbols=_text(symbols),
        limit=parsed_limit,
        language=_text(language),
        sentiment_gte=parse_sentiment("sentiment_gte", sentiment_gte),
        sentiment_lte=parse_sentiment("sentiment_lte", sentiment_lte),
        countries=_text(countries),
        entity_types=_text(entity_types),
        industries=_text(industries),
        filter_entities=parse_flag(filter_entities),
        must_have_entities=parse_flag(must_have_entities),
    )
    return NewsQuery(
        filters=filters,
        page=parse_positive_int(page),
        limit=parsed_limit,
        paginate=bool(page) or bool(limit),
        headlines=headlines == "true",
    )
