"""Forecasting API routes."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.logging import get_logger
from app.core.security import Caller, get_manager
from app.features.forecasting.schemas import RevenueForecastResponse
from app.features.forecasting.service import ForecastingService

logger = get_logger(__name__)

router = APIRouter(prefix="/forecasting", tags=["forecasting"])


@router.get(
    "/revenue",
    response_model=RevenueForecastResponse,
    summary="Forecast monthly revenue",
    description="""
Project revenue and litres for the coming months. Admins and managers only.

**Method:** the mean of the monthly Delivered totals over the last 6 months
(180 days) is projected flat over every future month and rounded half-up.

**No history:** returns empty `historical` and `forecast` lists, a null
`summary` and `insufficient_data: true`.
""",
)
async def revenue_forecast(
    months: int | None = Query(
        None,
        ge=1,
        description="Months to forecast (default 3, max 24).",
    ),
    caller: Caller = Depends(get_manager),
    db: AsyncSession = Depends(get_db),
) -> RevenueForecastResponse:
    """Forecast the next months' revenue."""
    logger.info("forecasting.revenue_request_received", months=months)
    service = ForecastingService()
    return await service.revenue_forecast(db=db, caller=caller, months=months)
