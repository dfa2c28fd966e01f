"""Headline selection for freshly fetched news.

An article is a headline candidate when at least one of its entities carries
a strong sentiment (``|sentiment_score| > 0.3``) or a strong match
(``match_score > 20``). Candidates are ranked by the strongest absolute
sentiment among their entities, scaled to 0-100.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from marketdesk.schemas.news import NewsArticleData, NewsEntityData

SENTIMENT_THRESHOLD = 0.3
MATCH_SCORE_THRESHOLD = 20.0


def _is_strong(entity: NewsEntityData) -> bool:
    if entity.sentiment_score is not None and abs(entity.sentiment_score) > SENTIMENT_THRESHOLD:
        return True
    return entity.match_score is not None and entity.match_score > MATCH_SCORE_THRESHOLD


def is_headline_candidate(article: NewsArticleData) -> bool:
    return any(_is_strong(entity) for entity in article.entities)


def headline_priority(article: NewsArticleData) -> int:
    """Round half up of ``100 * max(|sentiment_score|)``; 0 without sentiment."""
    scores = [
        abs(entity.sentiment_score)
        for entity in article.entities
        if entity.sentiment_score is not None
    ]
    if not scores:
        return 0
    return math.floor(max(scores) * 100 + 0.5)


def select_headlines(articles: Iterable[NewsArticleData]) -> tuple[list[str], list[int]]:
    """Return the uuids of headline candidates and their aligned priorities."""
    uuids: list[str] = []
    priorities: list[int] = []
    for article in articles:
        if is_headline_candidate(article):
            uuids.append(article.uuid)
            priorities.append(headline_priority(article))
    return uuids, priorities
