"""Daily currency rate and commodity price models."""

import datetime as dt
from decimal import Decimal

from sqlalchemy import BigInteger, Date, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from marketdesk.models.base import Base, TimestampMixin


class CurrencyRate(Base, TimestampMixin):
    """Exchange rate for one currency pair on one calendar date."""

    __tablename__ = "currency_rates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    from_currency: Mapped[str] = mapped_column(String(10), nullable=False)
    to_currency: Mapped[str] = mapped_column(String(10), nullable=False)
    exchange_rate: Mapped[Decimal] = mapped_column(
        Numeric(precision=24, scale=10),
        nullable=False,
    )
    bid_price: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=24, scale=10),
        nullable=True,
    )
    ask_price: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=24, scale=10),
        nullable=True,
    )
    time_zone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    date: Mapped[dt.date] = mapped_column(Date, index=True, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "from_currency",
            "to_currency",
            "date",
            name="uq_currency_rates_pair_date",
        ),
    )


class CommodityPrice(Base, TimestampMixin):
    """Quote of a commodity ETF proxy on one calendar date."""

    __tablename__ = "commodity_prices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    symbol: Mapped[str] = mapped_column(String(20), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(precision=20, scale=6), nullable=False)
    open_price: Mapped[Decimal | None] = mapped_column(Numeric(precision=20, scale=6), nullable=True)
    high_price: Mapped[Decimal | None] = mapped_column(Numeric(precision=20, scale=6), nullable=True)
    low_price: Mapped[Decimal | None] = mapped_column(Numeric(precision=20, scale=6), nullable=True)
    previous_close: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=20, scale=6),
        nullable=True,
    )
    change_amount: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=20, scale=6),
        nullable=True,
    )
    change_percent: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=12, scale=6),
        nullable=True,
    )
    volume: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    unit: Mapped[str] = mapped_column(String(30), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, index=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("symbol", "date", name="uq_commodity_prices_symbol_date"),
    )
