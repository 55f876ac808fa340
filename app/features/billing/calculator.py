"""Pure billing arithmetic.

Nothing here touches the database: functions take already-fetched rows
(ORM objects or anything with the same attributes) and return plain
values or schema objects. The service layer does the fetching.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Protocol, TypeVar

from app.core.exceptions import InvalidAmountError
from app.shared.periods import month_bounds
from app.shared.utils import to_decimal

PAID = "Paid"
PENDING = "Pending"
DELIVERED = "Delivered"


class BillableRecord(Protocol):
    """Attributes the calculator reads from a delivery record."""

    id: str
    customer_id: str
    date: datetime
    litres: Decimal
    price_per_litre: Decimal
    total_amount: Decimal
    status: str
    payment_status: str


class BillableCustomer(Protocol):
    """Attributes the calculator reads from a customer."""

    id: str
    price_per_litre: Decimal


def price_record(litres: Decimal | float, price_per_litre: Decimal | float) -> Decimal:
    """Monetary value of one delivery: litres x price per litre."""
    return to_decimal(litres) * to_decimal(price_per_litre)


def monthly_bill(
    milk_per_day: Decimal | float,
    price_per_litre: Decimal | float,
    days: int = 30,
) -> Decimal:
    """Expected monthly bill for a subscription (not stored)."""
    return to_decimal(milk_per_day) * days * to_decimal(price_per_litre)


@dataclass
class BillingSummary:
    """Totals over a set of delivered records."""

    total_litres: Decimal = Decimal("0")
    total_amount: Decimal = Decimal("0")
    total_deliveries: int = 0
    paid_amount: Decimal = Decimal("0")
    pending_amount: Decimal = Decimal("0")


def summarize_customer_billing(records: Iterable[BillableRecord]) -> BillingSummary:
    """Sum litres/amounts and split by payment status.

    Partial payments count towards neither paid nor pending.
    An empty iterable yields an all-zero summary.
    """
    summary = BillingSummary()
    for record in records:
        amount = to_decimal(record.total_amount)
        summary.total_litres += to_decimal(record.litres)
        summary.total_amount += amount
        summary.total_deliveries += 1
        if record.payment_status == PAID:
            summary.paid_amount += amount
        elif record.payment_status == PENDING:
            summary.pending_amount += amount
    return summary


def invoice_number(customer_id: str, year: int, month: int) -> str:
    """Invoice number ``INV-{year}{month:02d}-{last 6 chars of customer id}``."""
    return f"INV-{year}{month:02d}-{customer_id[-6:]}"


@dataclass
class InvoiceLine:
    date: datetime
    litres: Decimal
    price_per_litre: Decimal
    amount: Decimal


@dataclass
class Invoice:
    """Computed invoice; serialized by ``billing.schemas.InvoiceResponse``."""

    invoice_number: str
    period_start: datetime
    period_end: datetime
    month_name: str
    year: int
    month: int
    lines: list[InvoiceLine]
    total_litres: Decimal
    total_amount: Decimal
    delivery_count: int
    price_per_litre: Decimal


def in_period(moment: datetime, start: datetime, end: datetime) -> bool:
    """Inclusive period membership."""
    return start <= moment <= end


def generate_invoice(
    customer: BillableCustomer,
    records: Sequence[BillableRecord],
    year: int,
    month: int,
) -> Invoice:
    """Build a monthly invoice for one customer.

    Only Delivered records dated inside [1st 00:00:00, last day 23:59:59]
    become line items, ordered by date.
    """
    start, end = month_bounds(year, month)
    billable = sorted(
        (r for r in records if r.status == DELIVERED and in_period(r.date, start, end)),
        key=lambda r: r.date,
    )
    lines = [
        InvoiceLine(
            date=r.date,
            litres=to_decimal(r.litres),
            price_per_litre=to_decimal(r.price_per_litre),
            amount=to_decimal(r.total_amount),
        )
        for r in billable
    ]
    return Invoice(
        invoice_number=invoice_number(customer.id, year, month),
        period_start=start,
        period_end=end,
        month_name=calendar.month_name[month],
        year=year,
        month=month,
        lines=lines,
        total_litres=sum((line.litres for line in lines), Decimal("0")),
        total_amount=sum((line.amount for line in lines), Decimal("0")),
        delivery_count=len(lines),
        price_per_litre=to_decimal(customer.price_per_litre),
    )


def validate_payment_amount(amount: Decimal | float | None) -> Decimal:
    """Return the amount as Decimal, or raise InvalidAmountError if not > 0."""
    if amount is None or to_decimal(amount) <= 0:
        raise InvalidAmountError(details={"amount": None if amount is None else str(amount)})
    return to_decimal(amount)


R = TypeVar("R", bound=BillableRecord)


def select_payable_records(
    records: Iterable[R],
    customer_id: str,
    record_ids: Iterable[str],
) -> list[R]:
    """Records to mark Paid: exactly those listed that belong to the customer."""
    wanted = set(record_ids)
    return [r for r in records if r.id in wanted and r.customer_id == customer_id]


# =============================================================================
# Grouping reducers
# =============================================================================


@dataclass
class CustomerTotals:
    """Per-customer totals over Delivered records."""

    customer_id: str
    total_litres: Decimal = Decimal("0")
    total_amount: Decimal = Decimal("0")
    delivery_count: int = 0
    oldest_record: datetime | None = None


def group_by_customer(records: Iterable[BillableRecord]) -> dict[str, CustomerTotals]:
    """Sum litres/amounts per customer, tracking the oldest record date.

    Keys keep first-seen order.
    """
    grouped: dict[str, CustomerTotals] = {}
    for record in records:
        totals = grouped.get(record.customer_id)
        if totals is None:
            totals = grouped[record.customer_id] = CustomerTotals(record.customer_id)
        totals.total_litres += to_decimal(record.litres)
        totals.total_amount += to_decimal(record.total_amount)
        totals.delivery_count += 1
        if totals.oldest_record is None or record.date < totals.oldest_record:
            totals.oldest_record = record.date
    return grouped


@dataclass
class DailyTotals:
    day: date
    total_litres: Decimal = Decimal("0")
    total_revenue: Decimal = Decimal("0")
    delivery_count: int = 0


def group_by_day(records: Iterable[BillableRecord]) -> list[DailyTotals]:
    """Bucket records by calendar day of ``date``, ascending."""
    grouped: dict[date, DailyTotals] = {}
    for record in records:
        day = record.date.date()
        totals = grouped.setdefault(day, DailyTotals(day))
        totals.total_litres += to_decimal(record.litres)
        totals.total_revenue += to_decimal(record.total_amount)
        totals.delivery_count += 1
    return [grouped[day] for day in sorted(grouped)]
