"""Currency rate and commodity price routes."""

from typing import Annotated

from fastapi import APIRouter, Depends

from marketdesk.api.dependencies.services import get_market_data_service
from marketdesk.schemas.base import DataResponse
from marketdesk.schemas.market import CommodityPriceData, CurrencyRateData
from marketdesk.services.market_data import MarketDataService

router = APIRouter()


@router.get("/currency-rates", response_model=DataResponse[list[CurrencyRateData]])
async def get_currency_rates(
    service: Annotated[MarketDataService, Depends(get_market_data_service)],
) -> DataResponse[list[CurrencyRateData]]:
    """Today's exchange rates, fetched from the provider on a cache miss."""
    return DataResponse(data=await service.check_and_get_currency_rates())


@router.get("/commodity-prices", response_model=DataResponse[list[CommodityPriceData]])
async def get_commodity_prices(
    service: Annotated[MarketDataService, Depends(get_market_data_service)],
) -> DataResponse[list[CommodityPriceData]]:
    """Today's commodity ETF quotes, fetched from the provider on a cache miss."""
    return DataResponse(data=await service.check_and_get_commodity_prices())
