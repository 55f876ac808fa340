"""Pydantic schemas for analytics endpoints.

Every aggregate is computed over Delivered records only. Monetary and litre
values are JSON numbers; the retention rate alone is a 2-decimal string.
"""

from pydantic import BaseModel, Field

# =============================================================================
# Dashboard
# =============================================================================


class DashboardOverview(BaseModel):
    """Headline numbers for the caller's customers."""

    total_active_customers: int = Field(..., ge=0)
    today_delivered_count: int = Field(
        ...,
        ge=0,
        description="Delivered records dated today, server-local midnight to midnight.",
    )
    today_pending_count: int = Field(..., ge=0)
    month_to_date_litres: float = Field(
        ...,
        description="Delivered litres dated in the current calendar month.",
    )
    month_to_date_revenue: float


class WeekdayTrend(BaseModel):
    """Delivered totals over the last 7 days for one weekday."""

    day: int = Field(..., ge=1, le=7, description="1 = Sunday ... 7 = Saturday.")
    day_name: str
    litres: float
    revenue: float


class TopCustomer(BaseModel):
    customer_id: str
    customer_name: str
    customer_phone: str
    total_litres: float
    total_amount: float


class DashboardResponse(BaseModel):
    overview: DashboardOverview
    weekly_trend: list[WeekdayTrend] = Field(..., min_length=7, max_length=7)
    top_customers: list[TopCustomer] = Field(
        ...,
        description="Highest consumption this month, by litres.",
    )


# =============================================================================
# Trends
# =============================================================================


class MonthComparison(BaseModel):
    month: str = Field(..., description='Label "{year}-{month}", e.g. "2024-3".')
    year: int
    month_number: int = Field(..., ge=1, le=12)
    total_litres: float
    total_revenue: float
    delivery_count: int


class MonthlyComparisonResponse(BaseModel):
    months_back: int
    monthly_comparison: list[MonthComparison]


class PaymentStat(BaseModel):
    payment_status: str
    count: int
    total_amount: float


class MonthlyCollection(BaseModel):
    year: int
    month: int
    collected_amount: float
    payment_count: int


class PaymentTrendsResponse(BaseModel):
    payment_stats: list[PaymentStat]
    monthly_payments: list[MonthlyCollection] = Field(
        ...,
        description="Paid amounts for the most recent months, ascending.",
    )


# =============================================================================
# Areas, staff and retention
# =============================================================================


class AreaStat(BaseModel):
    area: str
    customer_count: int
    total_litres: float
    total_revenue: float
    delivery_count: int


class AreaWiseResponse(BaseModel):
    area_stats: list[AreaStat]


class StaffPerformance(BaseModel):
    staff_id: str | None
    staff_name: str | None = Field(None, description="Null when no staff row exists.")
    staff_username: str | None = None
    total_deliveries: int
    total_litres: float
    total_revenue: float
    avg_litres_per_delivery: float = Field(..., description="0 when there are no deliveries.")


class DeliveryPerformanceResponse(BaseModel):
    performance: list[StaffPerformance]


class RetentionResponse(BaseModel):
    active_customers: int
    new_customers: int = Field(..., description="Active customers who started in the window.")
    churned_customers: int
    retention_rate: str = Field(..., description='Percentage with 2 decimals, e.g. "66.67".')
