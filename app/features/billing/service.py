"""Service layer for billing operations.

Queries fetch scoped, filtered delivery records; all arithmetic is done by
the pure functions in ``billing.calculator``.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import ColumnElement, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ValidationError
from app.core.logging import get_logger
from app.core.security import Caller
from app.features.billing import calculator
from app.features.billing.schemas import (
    AreaBillingResponse,
    BilledCustomer,
    BilledRecord,
    BillingPeriod,
    CustomerBill,
    CustomerBillingResponse,
    CustomerBillingSummary,
    DailyRevenue,
    DailyRevenueResponse,
    InvoiceCustomer,
    InvoiceDetail,
    InvoiceLineResponse,
    InvoicePeriod,
    InvoiceResponse,
    InvoiceSummary,
    MonthlyBillingResponse,
    MonthlyBillingSummary,
    PaymentReceipt,
    PaymentRequest,
    PaymentResponse,
    PendingPayment,
    PendingPaymentsResponse,
    PendingPaymentsSummary,
)
from app.features.customers.access import customer_scope, scope_query
from app.features.customers.models import Customer, CustomerStatus
from app.features.customers.service import CustomerService
from app.features.deliveries.models import DeliveryRecord, DeliveryStatus, PaymentStatus
from app.shared.periods import date_range_bounds, month_bounds

logger = get_logger(__name__)


def _period(year: int, month: int) -> tuple[datetime, datetime]:
    try:
        return month_bounds(year, month)
    except ValueError as e:
        raise ValidationError(
            str(e),
            errors=[{"field": "month", "message": str(e), "type": "range"}],
        ) from e


def _range(start_date: date | None, end_date: date | None) -> list[ColumnElement[bool]]:
    start, end = date_range_bounds(start_date, end_date)
    filters: list[ColumnElement[bool]] = []
    if start is not None:
        filters.append(DeliveryRecord.date >= start)
    if end is not None:
        filters.append(DeliveryRecord.date < end)
    return filters


def _customer_summary(summary: calculator.BillingSummary) -> CustomerBillingSummary:
    return CustomerBillingSummary(
        total_litres=float(summary.total_litres),
        total_amount=float(summary.total_amount),
        total_deliveries=summary.total_deliveries,
        paid_amount=float(summary.paid_amount),
        pending_amount=float(summary.pending_amount),
    )


class BillingService:
    """Billing, payments and invoices over Delivered records."""

    def __init__(self) -> None:
        self.customers = CustomerService()

    async def _delivered(
        self,
        db: AsyncSession,
        caller: Caller,
        *filters: ColumnElement[bool],
    ) -> Sequence[tuple[DeliveryRecord, Customer]]:
        """Delivered records of visible customers, by date then id."""
        stmt = (
            select(DeliveryRecord, Customer)
            .join(Customer, DeliveryRecord.customer_id == Customer.id)
            .where(DeliveryRecord.status == DeliveryStatus.DELIVERED.value, *filters)
            .order_by(DeliveryRecord.date, DeliveryRecord.id)
        )
        predicate = customer_scope(caller)
        if predicate is not None:
            stmt = stmt.where(predicate)
        rows = (await db.execute(stmt)).all()
        return [(record, customer) for record, customer in rows]

    async def monthly_billing(
        self,
        db: AsyncSession,
        caller: Caller,
        year: int,
        month: int,
    ) -> MonthlyBillingResponse:
        """Per-customer bills for a calendar month, sorted by customer name.

        Args:
            db: Database session.
            caller: Requesting staff member.
            year: Billing year.
            month: Billing month (1-12).

        Returns:
            Bills plus totals across all customers.
        """
        start, end = _period(year, month)
        rows = await self._delivered(
            db, caller, DeliveryRecord.date >= start, DeliveryRecord.date <= end
        )

        customers = {customer.id: customer for _record, customer in rows}
        grouped = calculator.group_by_customer(record for record, _customer in rows)

        bills = sorted(
            (
                CustomerBill(
                    customer_id=totals.customer_id,
                    customer_name=customers[totals.customer_id].name,
                    customer_phone=customers[totals.customer_id].phone,
                    customer_area=customers[totals.customer_id].area,
                    total_litres=float(totals.total_litres),
                    total_amount=float(totals.total_amount),
                    delivery_count=totals.delivery_count,
                    price_per_litre=float(customers[totals.customer_id].price_per_litre),
                )
                for totals in grouped.values()
            ),
            key=lambda bill: bill.customer_name,
        )

        summary = MonthlyBillingSummary(
            total_customers=len(bills),
            total_litres=float(sum((t.total_litres for t in grouped.values()), Decimal("0"))),
            total_revenue=float(sum((t.total_amount for t in grouped.values()), Decimal("0"))),
            total_deliveries=sum(t.delivery_count for t in grouped.values()),
        )

        logger.info(
            "billing.monthly_computed",
            year=year,
            month=month,
            total_customers=summary.total_customers,
        )
        return MonthlyBillingResponse(
            bills=bills,
            summary=summary,
            period=BillingPeriod(year=year, month=month),
        )

    async def customer_billing(
        self,
        db: AsyncSession,
        caller: Caller,
        customer_id: str,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> CustomerBillingResponse:
        """Delivered records of one customer in range, newest first, with totals."""
        customer = await self.customers.load_customer(db, caller, customer_id)
        rows = await self._delivered(
            db,
            caller,
            DeliveryRecord.customer_id == customer.id,
            *_range(start_date, end_date),
        )
        records = [record for record, _customer in reversed(rows)]

        return CustomerBillingResponse(
            customer=BilledCustomer(
                id=customer.id,
                name=customer.name,
                phone=customer.phone,
                address=customer.address,
                area=customer.area,
                price_per_litre=float(customer.price_per_litre),
            ),
            records=[
                BilledRecord(
                    id=r.id,
                    date=r.date,
                    litres=float(r.litres),
                    price_per_litre=float(r.price_per_litre),
                    total_amount=float(r.total_amount),
                    payment_status=r.payment_status,
                )
                for r in records
            ],
            summary=_customer_summary(calculator.summarize_customer_billing(records)),
        )

    async def record_payment(
        self,
        db: AsyncSession,
        caller: Caller,
        customer_id: str,
        payload: PaymentRequest,
    ) -> PaymentResponse:
        """Record a payment and mark the listed records Paid.

        Only listed records that belong to this customer are touched.

        Raises:
            InvalidAmountError: If the amount is missing or not positive.
            NotFoundError: Unknown customer.
            ForbiddenError: Customer outside the caller's scope.
        """
        amount = calculator.validate_payment_amount(payload.amount)
        customer = await self.customers.load_customer(db, caller, customer_id)

        updated: list[DeliveryRecord] = []
        if payload.record_ids:
            stmt = select(DeliveryRecord).where(
                DeliveryRecord.id.in_(payload.record_ids),
                DeliveryRecord.customer_id == customer.id,
            )
            candidates = (await db.execute(stmt)).scalars().all()
            updated = calculator.select_payable_records(
                candidates, customer.id, payload.record_ids
            )
            for record in updated:
                record.payment_status = PaymentStatus.PAID.value
            await db.flush()

        logger.info(
            "billing.payment_recorded",
            customer_id=customer.id,
            amount=str(amount),
            payment_method=payload.payment_method,
            records_updated=len(updated),
        )
        return PaymentResponse(
            message="Payment recorded successfully",
            payment=PaymentReceipt(
                customer_id=customer.id,
                customer_name=customer.name,
                amount=float(amount),
                payment_method=payload.payment_method,
                records_updated=len(updated),
                paid_at=datetime.now(),
                notes=payload.notes,
            ),
        )

    async def pending_payments(
        self,
        db: AsyncSession,
        caller: Caller,
    ) -> PendingPaymentsResponse:
        """Customers with Delivered, Pending-payment records, largest amount first."""
        rows = await self._delivered(
            db, caller, DeliveryRecord.payment_status == PaymentStatus.PENDING.value
        )
        customers = {customer.id: customer for _record, customer in rows}
        grouped = calculator.group_by_customer(record for record, _customer in rows)

        pending = sorted(
            (
                PendingPayment(
                    customer_id=totals.customer_id,
                    customer_name=customers[totals.customer_id].name,
                    customer_phone=customers[totals.customer_id].phone,
                    customer_area=customers[totals.customer_id].area,
                    total_amount=float(totals.total_amount),
                    record_count=totals.delivery_count,
                    oldest_record=totals.oldest_record,
                )
                for totals in grouped.values()
            ),
            key=lambda p: p.total_amount,
            reverse=True,
        )
        return PendingPaymentsResponse(
            pending_payments=pending,
            summary=PendingPaymentsSummary(
                total_customers=len(pending),
                total_pending_amount=float(
                    sum((t.total_amount for t in grouped.values()), Decimal("0"))
                ),
                total_pending_records=sum(p.record_count for p in pending),
            ),
        )

    async def area_billing(
        self,
        db: AsyncSession,
        caller: Caller,
        area: str,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> AreaBillingResponse:
        """Billing totals for visible Active customers whose area matches."""
        customer_stmt = scope_query(
            select(Customer.id).where(
                Customer.area.ilike(f"%{area}%"),
                Customer.status == CustomerStatus.ACTIVE.value,
            ),
            caller,
        )
        customer_ids = list((await db.execute(customer_stmt)).scalars().all())

        records: list[DeliveryRecord] = []
        if customer_ids:
            rows = await self._delivered(
                db,
                caller,
                DeliveryRecord.customer_id.in_(customer_ids),
                *_range(start_date, end_date),
            )
            records = [record for record, _customer in rows]

        summary = calculator.summarize_customer_billing(records)
        return AreaBillingResponse(
            area=area,
            total_customers=len(customer_ids),
            total_litres=float(summary.total_litres),
            total_revenue=float(summary.total_amount),
            total_deliveries=summary.total_deliveries,
            paid_amount=float(summary.paid_amount),
            pending_amount=float(summary.pending_amount),
        )

    async def daily_revenue(
        self,
        db: AsyncSession,
        caller: Caller,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> DailyRevenueResponse:
        """Delivered totals per calendar day, ascending."""
        rows = await self._delivered(db, caller, *_range(start_date, end_date))
        days = calculator.group_by_day(record for record, _customer in rows)
        return DailyRevenueResponse(
            daily_revenue=[
                DailyRevenue(
                    date=d.day,
                    total_litres=float(d.total_litres),
                    total_revenue=float(d.total_revenue),
                    delivery_count=d.delivery_count,
                )
                for d in days
            ]
        )

    async def invoice(
        self,
        db: AsyncSession,
        caller: Caller,
        customer_id: str,
        year: int,
        month: int,
    ) -> InvoiceResponse:
        """Monthly invoice for one customer."""
        start, end = _period(year, month)
        customer = await self.customers.load_customer(db, caller, customer_id)
        rows = await self._delivered(
            db,
            caller,
            DeliveryRecord.customer_id == customer.id,
            DeliveryRecord.date >= start,
            DeliveryRecord.date <= end,
        )
        invoice = calculator.generate_invoice(
            customer, [record for record, _customer in rows], year, month
        )

        logger.info(
            "billing.invoice_generated",
            customer_id=customer.id,
            invoice_number=invoice.invoice_number,
            delivery_count=invoice.delivery_count,
        )
        return InvoiceResponse(
            invoice=InvoiceDetail(
                invoice_number=invoice.invoice_number,
                date=datetime.now(),
                customer=InvoiceCustomer(
                    name=customer.name,
                    phone=customer.phone,
                    address=customer.address,
                    area=customer.area,
                ),
                billing_period=InvoicePeriod(
                    start=invoice.period_start,
                    end=invoice.period_end,
                    month=invoice.month_name,
                    year=invoice.year,
                ),
                records=[
                    InvoiceLineResponse(
                        date=line.date,
                        litres=float(line.litres),
                        price_per_litre=float(line.price_per_litre),
                        amount=float(line.amount),
                    )
                    for line in invoice.lines
                ],
                summary=InvoiceSummary(
                    total_litres=float(invoice.total_litres),
                    total_amount=float(invoice.total_amount),
                    delivery_count=invoice.delivery_count,
                    price_per_litre=float(invoice.price_per_litre),
                ),
            )
        )
