"""Pure reducers behind the analytics endpoints.

Each reducer takes rows the service has already filtered (Delivered status,
date window, caller scope) and groups them in Python. None of them raise on
empty input; they return zeroed or empty structures instead.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol

from app.features.billing.calculator import CustomerTotals, group_by_customer
from app.shared.periods import WEEKDAY_NAMES, weekday_index
from app.shared.utils import to_decimal

ZERO = Decimal("0")


class DeliveredRow(Protocol):
    id: str
    customer_id: str
    date: datetime
    litres: Decimal
    price_per_litre: Decimal
    total_amount: Decimal
    status: str
    payment_status: str
    delivered_by: str | None


# =============================================================================
# Dashboard
# =============================================================================


@dataclass
class WeekdayBucket:
    """Litres and revenue for one day of the week (1 = Sunday ... 7 = Saturday)."""

    day: int
    litres: Decimal = ZERO
    revenue: Decimal = ZERO

    @property
    def day_name(self) -> str:
        return WEEKDAY_NAMES[self.day]


def weekly_trend(records: Iterable[DeliveredRow]) -> list[WeekdayBucket]:
    """Bucket records by weekday of their date; always returns all seven days."""
    buckets = {day: WeekdayBucket(day) for day in range(1, 8)}
    for record in records:
        bucket = buckets[weekday_index(record.date)]
        bucket.litres += to_decimal(record.litres)
        bucket.revenue += to_decimal(record.total_amount)
    return [buckets[day] for day in range(1, 8)]


def top_customers(records: Iterable[DeliveredRow], limit: int = 5) -> list[CustomerTotals]:
    """Customers by summed litres, descending.

    Ties keep first-seen order of the input records.
    """
    grouped = group_by_customer(records)
    ranked = sorted(grouped.values(), key=lambda totals: totals.total_litres, reverse=True)
    return ranked[:limit]


def count_by_status(statuses: Iterable[str]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for status in statuses:
        counts[status] = counts.get(status, 0) + 1
    return counts


# =============================================================================
# Monthly comparison and payment collections
# =============================================================================


@dataclass
class MonthBucket:
    year: int
    month: int
    total_litres: Decimal = ZERO
    total_revenue: Decimal = ZERO
    delivery_count: int = 0

    @property
    def label(self) -> str:
        """``"{year}-{month}"`` with the month unpadded, e.g. ``"2024-3"``."""
        return f"{self.year}-{self.month}"


def group_by_month(records: Iterable[DeliveredRow]) -> list[MonthBucket]:
    """Bucket records by (year, month) of their date, ascending."""
    grouped: dict[tuple[int, int], MonthBucket] = {}
    for record in records:
        key = (record.date.year, record.date.month)
        bucket = grouped.get(key)
        if bucket is None:
            bucket = grouped[key] = MonthBucket(*key)
        bucket.total_litres += to_decimal(record.litres)
        bucket.total_revenue += to_decimal(record.total_amount)
        bucket.delivery_count += 1
    return [grouped[key] for key in sorted(grouped)]


@dataclass
class PaymentStatusTotals:
    payment_status: str
    count: int = 0
    total_amount: Decimal = ZERO


def payment_breakdown(records: Iterable[DeliveredRow]) -> list[PaymentStatusTotals]:
    """Count and sum of total_amount per payment status, ordered by status."""
    grouped: dict[str, PaymentStatusTotals] = {}
    for record in records:
        totals = grouped.setdefault(
            record.payment_status, PaymentStatusTotals(record.payment_status)
        )
        totals.count += 1
        totals.total_amount += to_decimal(record.total_amount)
    return [grouped[status] for status in sorted(grouped)]


def monthly_collections(records: Iterable[DeliveredRow], months: int = 12) -> list[MonthBucket]:
    """Paid amounts by month: the most recent ``months`` buckets, ascending."""
    paid = (r for r in records if r.payment_status == "Paid")
    buckets = group_by_month(paid)
    return buckets[-months:] if months > 0 else []


# =============================================================================
# Areas and staff
# =============================================================================


@dataclass
class AreaTotals:
    area: str
    customer_count: int = 0
    total_litres: Decimal = ZERO
    total_revenue: Decimal = ZERO
    delivery_count: int = 0


def area_wise(
    customer_areas: Mapping[str, str],
    records: Iterable[DeliveredRow],
) -> list[AreaTotals]:
    """Per-area totals over Active customers and their own records.

    Args:
        customer_areas: Active customer id -> area.
        records: Delivered records; those of customers not in
            ``customer_areas`` are ignored.

    Returns:
        Areas sorted by total revenue, descending.
    """
    grouped: dict[str, AreaTotals] = {}
    for area in customer_areas.values():
        totals = grouped.setdefault(area, AreaTotals(area))
        totals.customer_count += 1

    for record in records:
        area = customer_areas.get(record.customer_id)
        if area is None:
            continue
        totals = grouped[area]
        totals.total_litres += to_decimal(record.litres)
        totals.total_revenue += to_decimal(record.total_amount)
        totals.delivery_count += 1

    return sorted(grouped.values(), key=lambda t: t.total_revenue, reverse=True)


@dataclass
class StaffTotals:
    staff_id: str | None
    total_deliveries: int = 0
    total_litres: Decimal = ZERO
    total_revenue: Decimal = ZERO

    @property
    def avg_litres_per_delivery(self) -> Decimal:
        return average_litres(self.total_litres, self.total_deliveries)


def average_litres(total_litres: Decimal, deliveries: int) -> Decimal:
    """Exact litres per delivery; 0 when there are no deliveries."""
    if deliveries == 0:
        return ZERO
    return to_decimal(total_litres) / deliveries


def delivery_performance(records: Iterable[DeliveredRow]) -> list[StaffTotals]:
    """Group by delivered_by, sorted by total deliveries descending."""
    grouped: dict[str | None, StaffTotals] = {}
    for record in records:
        totals = grouped.setdefault(record.delivered_by, StaffTotals(record.delivered_by))
        totals.total_deliveries += 1
        totals.total_litres += to_decimal(record.litres)
        totals.total_revenue += to_decimal(record.total_amount)
    return sorted(grouped.values(), key=lambda t: t.total_deliveries, reverse=True)


# =============================================================================
# Retention
# =============================================================================


@dataclass
class Retention:
    churned: int
    rate: str


def retention(previously_active: set[str], recently_active: set[str]) -> Retention:
    """Churn and retention rate between two consecutive windows.

    churned = customers active in the earlier window but not the later one.
    The rate is a percentage formatted with 2 decimals; "100.00" when
    nobody was active in the earlier window.
    """
    churned = len(previously_active - recently_active)
    if not previously_active:
        rate = Decimal("100")
    else:
        rate = Decimal(len(previously_active) - churned) / len(previously_active) * 100
    return Retention(
        churned=churned,
        rate=str(rate.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)),
    )
