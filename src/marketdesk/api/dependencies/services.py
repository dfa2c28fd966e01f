"""Dependencies resolving the storage handle and services held on app state."""

from fastapi import Request

from marketdesk.core.database import Database
from marketdesk.services.market_data import MarketDataService
from marketdesk.services.news import NewsService


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_market_data_service(request: Request) -> MarketDataService:
    return request.app.state.market_data_service


def get_news_service(request: Request) -> NewsService:
    return request.app.state.news_service
