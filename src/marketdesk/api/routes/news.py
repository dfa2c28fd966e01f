"""News routes."""

from typing import Annotated

from fastapi import APIRouter, Depends

from marketdesk.api.dependencies.news_query import NewsQuery, parse_news_query
from marketdesk.api.dependencies.services import get_news_service
from marketdesk.schemas.base import DataResponse, PaginatedResponse, PaginationMeta
from marketdesk.schemas.news import NewsArticleData
from marketdesk.services.news import NewsService

router = APIRouter()

NewsListResponse = DataResponse[list[NewsArticleData]]
PaginatedNewsResponse = PaginatedResponse[list[NewsArticleData]]


@router.get("/news", response_model=NewsListResponse | PaginatedNewsResponse)
async def get_news(
    query: Annotated[NewsQuery, Depends(parse_news_query)],
    service: Annotated[NewsService, Depends(get_news_service)],
) -> NewsListResponse | PaginatedNewsResponse:
    """Today's news.

    ``headlines=true`` returns today's headlines and ignores every other
    parameter. When ``page`` or ``limit`` is given the response carries a
    ``meta`` block with pagination info.
    """
    if query.headlines:
        return NewsListResponse(data=await service.get_headline_news_for_today())

    if query.paginate:
        result = await service.get_news_with_pagination(
            query.filters,
            page=query.page or 1,
            limit=query.limit or service.default_limit,
        )
        return PaginatedNewsResponse(
            data=result.articles,
            meta=PaginationMeta.calculate(result.total, result.page, result.limit),
        )

    return NewsListResponse(data=await service.check_and_get_news(query.filters))
