"""Currency rate and commodity price schemas.

Records serialize with camelCase keys for the frontend. Decimal values are
kept exactly as the provider reported them and serialize as JSON strings.
"""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class CurrencyRateData(_CamelModel):
    """Exchange rate for one currency pair on one date."""

    from_currency: str
    to_currency: str
    exchange_rate: Decimal
    bid_price: Decimal | None = None
    ask_price: Decimal | None = None
    time_zone: str | None = None
    date: dt.date


class CommodityPriceData(_CamelModel):
    """Quote of a commodity ETF proxy on one date."""

    symbol: str
    name: str
    price: Decimal
    open_price: Decimal | None = None
    high_price: Decimal | None = None
    low_price: Decimal | None = None
    previous_close: Decimal | None = None
    change_amount: Decimal | None = None
    change_percent: Decimal | None = None
    volume: int | None = None
    unit: str
    date: dt.date
