"""Storage of daily currency rates and commodity prices."""

from __future__ import annotations

import datetime as dt

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from marketdesk.core.database import Database
from marketdesk.core.exceptions import PersistenceError
from marketdesk.core.logging import get_logger
from marketdesk.models.market import CommodityPrice, CurrencyRate
from marketdesk.persistence.upsert import build_upsert
from marketdesk.schemas.market import CommodityPriceData, CurrencyRateData

logger = get_logger(__name__)


class MarketDataStore:
    """Daily currency rate and commodity price rows.

    Each upsert runs in its own unit of work and is keyed on the natural key:
    ``(from_currency, to_currency, date)`` for rates, ``(symbol, date)`` for
    commodity prices.
    """

    def __init__(self, database: Database) -> None:
        self.database = database

    async def upsert_currency_rate(self, rate: CurrencyRateData) -> CurrencyRateData:
        """Insert the rate, or overwrite the stored one for the same pair and date."""
        stmt = build_upsert(
            self.database.dialect_name,
            CurrencyRate,
            rate.model_dump(),
            conflict_columns=("from_currency", "to_currency", "date"),
        )
        try:
            async with self.database.session() as session:
                await session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(
                "currency_rate_upsert_failed",
                pair=f"{rate.from_currency}/{rate.to_currency}",
                date=rate.date.isoformat(),
                error=str(e),
            )
            raise PersistenceError(
                f"Failed to save currency rate {rate.from_currency}/{rate.to_currency}",
                operation="upsert_currency_rate",
            ) from e

        logger.debug(
            "currency_rate_saved",
            pair=f"{rate.from_currency}/{rate.to_currency}",
            date=rate.date.isoformat(),
        )
        return rate

    async def get_currency_rates_for_date(self, day: dt.date) -> list[CurrencyRateData]:
        stmt = (
            select(CurrencyRate)
            .where(CurrencyRate.date == day)
            .order_by(CurrencyRate.from_currency, CurrencyRate.to_currency)
        )
        try:
            async with self.database.session() as session:
                rows = (await session.execute(stmt)).scalars().all()
        except SQLAlchemyError as e:
            raise PersistenceError(
                "Failed to load currency rates",
                operation="get_currency_rates_for_date",
            ) from e
        return [CurrencyRateData.model_validate(row) for row in rows]

    async def upsert_commodity_price(self, price: CommodityPriceData) -> CommodityPriceData:
        """Insert the price, or overwrite the stored one for the same symbol and date."""
        stmt = build_upsert(
            self.database.dialect_name,
            CommodityPrice,
            price.model_dump(),
            conflict_columns=("symbol", "date"),
        )
        try:
            async with self.database.session() as session:
                await session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(
                "commodity_price_upsert_failed",
                symbol=price.symbol,
                date=price.date.isoformat(),
                error=str(e),
            )
            raise PersistenceError(
                f"Failed to save commodity price {price.symbol}",
                operation="upsert_commodity_price",
            ) from e

        logger.debug("commodity_price_saved", symbol=price.symbol, date=price.date.isoformat())
        return price

    async def get_commodity_prices_for_date(self, day: dt.date) -> list[CommodityPriceData]:
        stmt = (
            select(CommodityPrice)
            .where(CommodityPrice.date == day)
            .order_by(CommodityPrice.symbol)
        )
        try:
            async with self.database.session() as session:
                rows = (await session.execute(stmt)).scalars().all()
        except SQLAlchemyError as e:
            raise PersistenceError(
                "Failed to load commodity prices",
                operation="get_commodity_prices_for_date",
            ) from e
        return [CommodityPriceData.model_validate(row) for row in rows]
