"""Forecasting service for revenue projections.

Builds per-month Delivered history for the trailing window and fits a
``MeanForecaster`` on revenue and on litres separately.
"""

from __future__ import annotations

import time
from datetime import datetime, timedelta

import numpy as np
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.exceptions import InsufficientDataError, ValidationError
from app.core.logging import get_logger
from app.core.security import Caller
from app.features.analytics.aggregations import MonthBucket, group_by_month
from app.features.customers.access import customer_scope
from app.features.customers.models import Customer
from app.features.deliveries.models import DeliveryRecord, DeliveryStatus
from app.features.forecasting.models import MeanForecaster
from app.features.forecasting.schemas import (
    ForecastMonth,
    ForecastSummary,
    HistoricalMonth,
    RevenueForecastResponse,
)
from app.shared.periods import shift_month
from app.shared.utils import round_half_up

logger = get_logger(__name__)


def project(
    history: list[MonthBucket],
    months: int,
    now: datetime,
) -> tuple[list[ForecastMonth], ForecastSummary]:
    """Fit on monthly history and project ``months`` calendar months after ``now``.

    Raises:
        InsufficientDataError: If ``history`` is empty.
    """
    revenue = MeanForecaster().fit(np.array([float(b.total_revenue) for b in history]))
    litres = MeanForecaster().fit(np.array([float(b.total_litres) for b in history]))

    revenue_path = revenue.predict(months)
    litres_path = litres.predict(months)

    forecast = []
    for step in range(months):
        year, month = shift_month(now.year, now.month, step + 1)
        forecast.append(
            ForecastMonth(
                year=year,
                month=month,
                forecast_revenue=round_half_up(revenue_path[step]),
                forecast_litres=round_half_up(litres_path[step]),
            )
        )

    summary = ForecastSummary(
        avg_monthly_revenue=round_half_up(revenue.fit_result.level if revenue.fit_result else 0),
        avg_monthly_litres=round_half_up(litres.fit_result.level if litres.fit_result else 0),
        n_months=len(history),
    )
    return forecast, summary


class ForecastingService:
    """Service for revenue forecasting."""

    def __init__(self) -> None:
        """Initialize forecasting service."""
        self.settings = get_settings()

    async def load_history(
        self,
        db: AsyncSession,
        caller: Caller,
        now: datetime,
    ) -> list[MonthBucket]:
        """Delivered totals per month for records dated within the history window."""
        since = now - timedelta(days=self.settings.forecast_history_months * 30)
        stmt = (
            select(DeliveryRecord)
            .join(Customer, DeliveryRecord.customer_id == Customer.id)
            .where(
                DeliveryRecord.status == DeliveryStatus.DELIVERED.value,
                DeliveryRecord.date >= since,
            )
            .order_by(DeliveryRecord.date, DeliveryRecord.id)
        )
        predicate = customer_scope(caller)
        if predicate is not None:
            stmt = stmt.where(predicate)
        records = (await db.execute(stmt)).scalars().all()
        return group_by_month(records)

    async def revenue_forecast(
        self,
        db: AsyncSession,
        caller: Caller,
        months: int | None = None,
        now: datetime | None = None,
    ) -> RevenueForecastResponse:
        """Forecast revenue and litres for the next ``months`` calendar months.

        Args:
            db: Database session.
            caller: Requesting staff member.
            months: Months to forecast; defaults to the configured value.
            now: Reference time; defaults to the current time.

        Returns:
            History, forecast and summary. Without history the lists are
            empty and ``insufficient_data`` is set.

        Raises:
            ValidationError: If ``months`` is outside 1..forecast_max_months.
        """
        months = months or self.settings.forecast_default_months
        if not 1 <= months <= self.settings.forecast_max_months:
            message = f"months must be between 1 and {self.settings.forecast_max_months}"
            raise ValidationError(
                message,
                errors=[{"field": "months", "message": message, "type": "range"}],
            )

        now = now or datetime.now()
        start_time = time.perf_counter()
        history = await self.load_history(db, caller, now)

        try:
            forecast, summary = project(history, months, now)
        except InsufficientDataError:
            logger.warning("forecasting.insufficient_data", months=months)
            return RevenueForecastResponse(
                months=months,
                historical=[],
                forecast=[],
                summary=None,
                insufficient_data=True,
            )

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "forecasting.revenue_forecast_completed",
            months=months,
            n_history_months=len(history),
            avg_monthly_revenue=summary.avg_monthly_revenue,
            duration_ms=duration_ms,
        )
        return RevenueForecastResponse(
            months=months,
            historical=[
                HistoricalMonth(
                    year=b.year,
                    month=b.month,
                    total_revenue=float(b.total_revenue),
                    total_litres=float(b.total_litres),
                )
                for b in history
            ],
            forecast=forecast,
            summary=summary,
        )
