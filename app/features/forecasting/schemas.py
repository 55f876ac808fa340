"""Pydantic schemas for the revenue forecast endpoint."""

from pydantic import BaseModel, Field


class HistoricalMonth(BaseModel):
    """Delivered totals for one past calendar month."""

    year: int
    month: int = Field(..., ge=1, le=12)
    total_revenue: float
    total_litres: float


class ForecastMonth(BaseModel):
    """Projected totals for one future month, rounded half-up to whole units."""

    year: int
    month: int = Field(..., ge=1, le=12)
    forecast_revenue: int
    forecast_litres: int


class ForecastSummary(BaseModel):
    avg_monthly_revenue: int
    avg_monthly_litres: int
    n_months: int = Field(..., ge=1, description="Months of history averaged.")


class RevenueForecastResponse(BaseModel):
    """Flat average forecast.

    With no history in the window, ``historical`` and ``forecast`` are empty,
    ``summary`` is null and ``insufficient_data`` is true.
    """

    months: int = Field(..., ge=1, description="Number of months forecast.")
    historical: list[HistoricalMonth]
    forecast: list[ForecastMonth]
    summary: ForecastSummary | None
    insufficient_data: bool = False
