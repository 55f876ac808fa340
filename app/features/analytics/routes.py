"""API routes for analytics endpoints.

The dashboard is open to every role; every other report is restricted to
admins and managers. All reports are limited to the caller's customers.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.logging import get_logger
from app.core.security import Caller, get_caller, get_manager
from app.features.analytics.schemas import (
    AreaWiseResponse,
    DashboardResponse,
    DeliveryPerformanceResponse,
    MonthlyComparisonResponse,
    PaymentTrendsResponse,
    RetentionResponse,
)
from app.features.analytics.service import AnalyticsService

logger = get_logger(__name__)

router = APIRouter(prefix="/analytics", tags=["analytics"])


# =============================================================================
# Dashboard
# =============================================================================


@router.get(
    "/dashboard",
    response_model=DashboardResponse,
    summary="Dashboard snapshot",
    description="""
Headline numbers for the caller's customers.

**Overview:**
- `total_active_customers`: customers with status `Active`
- `today_delivered_count` / `today_pending_count`: records dated today
- `month_to_date_litres` / `month_to_date_revenue`: Delivered records this month

**Weekly trend:** Delivered litres and revenue over the last 7 days, one bucket
per weekday (1 = Sunday ... 7 = Saturday), all seven always present.

**Top customers:** the 5 customers with the most Delivered litres this month.
""",
)
async def get_dashboard(
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> DashboardResponse:
    """Compute the dashboard snapshot."""
    service = AnalyticsService()
    return await service.dashboard(db=db, caller=caller)


# =============================================================================
# Reports (admin / manager)
# =============================================================================


@router.get(
    "/monthly-comparison",
    response_model=MonthlyComparisonResponse,
    summary="Month-over-month comparison",
)
async def get_monthly_comparison(
    months: int | None = Query(
        None,
        ge=1,
        le=60,
        description="Look back months x 30 days (default 6).",
    ),
    caller: Caller = Depends(get_manager),
    db: AsyncSession = Depends(get_db),
) -> MonthlyComparisonResponse:
    """Delivered totals per calendar month, ascending."""
    service = AnalyticsService()
    return await service.monthly_comparison(db=db, caller=caller, months=months)


@router.get(
    "/area-wise",
    response_model=AreaWiseResponse,
    summary="Area-wise statistics",
)
async def get_area_wise(
    start_date: date | None = Query(None, description="Inclusive start. Format: YYYY-MM-DD."),
    end_date: date | None = Query(None, description="Inclusive end. Format: YYYY-MM-DD."),
    caller: Caller = Depends(get_manager),
    db: AsyncSession = Depends(get_db),
) -> AreaWiseResponse:
    """Per-area customers, litres and revenue, highest revenue first."""
    service = AnalyticsService()
    return await service.area_wise(
        db=db, caller=caller, start_date=start_date, end_date=end_date
    )


@router.get(
    "/delivery-performance",
    response_model=DeliveryPerformanceResponse,
    summary="Delivery staff performance",
)
async def get_delivery_performance(
    start_date: date | None = Query(None, description="Inclusive start. Format: YYYY-MM-DD."),
    end_date: date | None = Query(None, description="Inclusive end. Format: YYYY-MM-DD."),
    caller: Caller = Depends(get_manager),
    db: AsyncSession = Depends(get_db),
) -> DeliveryPerformanceResponse:
    """Deliveries, litres and revenue per staff member."""
    service = AnalyticsService()
    return await service.delivery_performance(
        db=db, caller=caller, start_date=start_date, end_date=end_date
    )


@router.get(
    "/customer-retention",
    response_model=RetentionResponse,
    summary="Customer retention",
    description="""
Compares customers with Delivered records in the last 30 days against the
30 days before that. `retention_rate` is a percentage string with 2 decimals
(`"100.00"` when nobody was active in the earlier window).
""",
)
async def get_customer_retention(
    caller: Caller = Depends(get_manager),
    db: AsyncSession = Depends(get_db),
) -> RetentionResponse:
    """Active, new and churned customers."""
    service = AnalyticsService()
    return await service.customer_retention(db=db, caller=caller)


@router.get(
    "/payment-trends",
    response_model=PaymentTrendsResponse,
    summary="Payment collection trends",
)
async def get_payment_trends(
    caller: Caller = Depends(get_manager),
    db: AsyncSession = Depends(get_db),
) -> PaymentTrendsResponse:
    """Totals per payment status and monthly Paid collections."""
    service = AnalyticsService()
    return await service.payment_trends(db=db, caller=caller)
