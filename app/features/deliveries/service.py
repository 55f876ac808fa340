"""Service layer for delivery records.

Records are always reached through their customer, so the customer access
policy scopes every query here as well.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import ColumnElement, Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ForbiddenError, NotFoundError
from app.core.logging import get_logger
from app.core.security import Caller, Role
from app.features.customers.access import customer_scope, ensure_customer_access
from app.features.customers.models import Customer, CustomerStatus
from app.features.customers.service import CustomerService
from app.features.deliveries.models import DeliveryRecord, DeliveryStatus
from app.features.deliveries.schemas import (
    BulkCreateRequest,
    BulkCreateResponse,
    CustomerDeliveriesResponse,
    CustomerDeliverySummary,
    DailyDeliveriesResponse,
    DailySummary,
    DeliveryCreate,
    DeliveryResponse,
    DeliveryStatsResponse,
    DeliveryUpdate,
    StatusStat,
)
from app.features.staff.models import Staff
from app.shared.periods import date_range_bounds, day_bounds
from app.shared.schemas import PaginatedResponse, PaginationParams
from app.shared.utils import paginate_response, to_decimal

logger = get_logger(__name__)


def to_response(
    record: DeliveryRecord,
    customer: Customer | None = None,
    staff_name: str | None = None,
) -> DeliveryResponse:
    """Serialize a record with optional customer and staff display fields."""
    return DeliveryResponse(
        id=record.id,
        customer_id=record.customer_id,
        customer_name=customer.name if customer else None,
        customer_phone=customer.phone if customer else None,
        customer_area=customer.area if customer else None,
        date=record.date,
        litres=float(record.litres),
        status=DeliveryStatus(record.status),
        price_per_litre=float(record.price_per_litre),
        total_amount=float(record.total_amount),
        payment_status=record.payment_status,
        delivered_by=record.delivered_by,
        delivered_by_name=staff_name,
        delivery_time=record.delivery_time,
        notes=record.notes or "",
        signature=record.signature,
    )


def _joined() -> Select[tuple[DeliveryRecord, Customer, str | None]]:
    return (
        select(DeliveryRecord, Customer, Staff.full_name)
        .join(Customer, DeliveryRecord.customer_id == Customer.id)
        .outerjoin(Staff, Staff.id == DeliveryRecord.delivered_by)
    )


def _range_filters(start_date: date | None, end_date: date | None) -> list[ColumnElement[bool]]:
    start, end = date_range_bounds(start_date, end_date)
    filters: list[ColumnElement[bool]] = []
    if start is not None:
        filters.append(DeliveryRecord.date >= start)
    if end is not None:
        filters.append(DeliveryRecord.date < end)
    return filters


def _scoped(caller: Caller, filters: list[ColumnElement[bool]]) -> list[ColumnElement[bool]]:
    predicate = customer_scope(caller)
    return filters if predicate is None else [*filters, predicate]


def _count_status(records: Sequence[DeliveryRecord], status: DeliveryStatus) -> int:
    return sum(1 for r in records if r.status == status.value)


class DeliveryService:
    """Delivery record operations scoped to the calling staff member."""

    def __init__(self) -> None:
        self.customers = CustomerService()

    async def _load_record(
        self,
        db: AsyncSession,
        caller: Caller,
        record_id: str,
    ) -> tuple[DeliveryRecord, Customer]:
        record = await db.get(DeliveryRecord, record_id)
        if record is None:
            raise NotFoundError("Record not found", details={"record_id": record_id})
        customer = await db.get(Customer, record.customer_id)
        if customer is None:
            raise NotFoundError("Customer not found", details={"customer_id": record.customer_id})
        ensure_customer_access(caller, customer)
        return record, customer

    async def _staff_name(self, db: AsyncSession, staff_id: str | None) -> str | None:
        if staff_id is None:
            return None
        staff = await db.get(Staff, staff_id)
        return staff.full_name if staff else None

    async def list_records(
        self,
        db: AsyncSession,
        caller: Caller,
        pagination: PaginationParams,
        status: DeliveryStatus | None = None,
        customer_id: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> PaginatedResponse[DeliveryResponse]:
        """List visible records, newest first.

        Args:
            db: Database session.
            caller: Requesting staff member.
            pagination: Page and page size.
            status: Exact delivery status filter.
            customer_id: Restrict to one customer.
            start_date: Inclusive start day.
            end_date: Inclusive end day (covers the whole day).

        Returns:
            One page of records with customer and staff display fields.
        """
        filters = _range_filters(start_date, end_date)
        if status is not None:
            filters.append(DeliveryRecord.status == status.value)
        if customer_id:
            filters.append(DeliveryRecord.customer_id == customer_id)
        filters = _scoped(caller, filters)

        count_stmt = (
            select(func.count(DeliveryRecord.id))
            .join(Customer, DeliveryRecord.customer_id == Customer.id)
            .where(*filters)
        )
        total = (await db.execute(count_stmt)).scalar_one()

        stmt = (
            _joined()
            .where(*filters)
            .order_by(DeliveryRecord.date.desc(), DeliveryRecord.id)
            .offset(pagination.offset)
            .limit(pagination.limit)
        )
        rows = (await db.execute(stmt)).all()

        logger.info(
            "deliveries.listed",
            total=total,
            page=pagination.page,
            status=status.value if status else None,
            customer_id=customer_id,
        )
        items = [to_response(record, customer, name) for record, customer, name in rows]
        return paginate_response(items, total, pagination)

    async def get_record(
        self,
        db: AsyncSession,
        caller: Caller,
        record_id: str,
    ) -> DeliveryResponse:
        """Get one record whose customer the caller may access."""
        record, customer = await self._load_record(db, caller, record_id)
        return to_response(record, customer, await self._staff_name(db, record.delivered_by))

    async def create_record(
        self,
        db: AsyncSession,
        caller: Caller,
        payload: DeliveryCreate,
    ) -> DeliveryResponse:
        """Log a delivery for a visible customer.

        The record snapshots the customer's price unless one is given, and is
        attributed to the caller.

        Raises:
            NotFoundError: Unknown customer.
            ForbiddenError: Customer outside the caller's scope.
        """
        customer = await self.customers.load_customer(db, caller, payload.customer_id)
        now = datetime.now()

        record = DeliveryRecord(
            customer_id=customer.id,
            date=payload.date or now,
            litres=payload.litres if payload.litres is not None else customer.milk_per_day,
            price_per_litre=(
                payload.price_per_litre
                if payload.price_per_litre is not None
                else customer.price_per_litre
            ),
            status=payload.status.value,
            payment_status=payload.payment_status.value,
            delivered_by=caller.id,
            notes=payload.notes,
            signature=payload.signature,
        )
        if payload.status == DeliveryStatus.DELIVERED:
            record.mark_delivered(caller.id, now)

        db.add(record)
        await db.flush()

        logger.info(
            "deliveries.record_created",
            record_id=record.id,
            customer_id=customer.id,
            status=record.status,
            litres=str(record.litres),
        )
        return to_response(record, customer, await self._staff_name(db, record.delivered_by))

    async def update_record(
        self,
        db: AsyncSession,
        caller: Caller,
        record_id: str,
        payload: DeliveryUpdate,
    ) -> DeliveryResponse:
        """Update litres, status, payment status, notes or signature.

        ``delivery_time`` is stamped on the first transition to Delivered and
        never changed afterwards.
        """
        record, customer = await self._load_record(db, caller, record_id)

        if payload.litres is not None:
            record.litres = payload.litres
        if payload.status is not None:
            if payload.status == DeliveryStatus.DELIVERED:
                stamped = record.mark_delivered(caller.id, datetime.now())
                if stamped:
                    logger.info("deliveries.record_delivered", record_id=record.id)
            else:
                record.status = payload.status.value
        if payload.notes is not None:
            record.notes = payload.notes
        if payload.payment_status is not None:
            record.payment_status = payload.payment_status.value
        if payload.signature:
            record.signature = payload.signature

        await db.flush()

        logger.info(
            "deliveries.record_updated",
            record_id=record.id,
            fields=sorted(payload.model_dump(exclude_none=True)),
        )
        return to_response(record, customer, await self._staff_name(db, record.delivered_by))

    async def delete_record(
        self,
        db: AsyncSession,
        caller: Caller,
        record_id: str,
    ) -> None:
        """Hard delete a record.

        Raises:
            ForbiddenError: Unless the caller is an admin, or the delivery
                staff member who owns a still-Pending record.
        """
        record, _customer = await self._load_record(db, caller, record_id)

        if not caller.is_admin and (
            caller.role != Role.DELIVERY
            or record.status != DeliveryStatus.PENDING.value
            or record.delivered_by != caller.id
        ):
            raise ForbiddenError(
                "Not authorized to delete this record",
                details={"record_id": record_id},
            )

        await db.delete(record)
        await db.flush()
        logger.info("deliveries.record_deleted", record_id=record_id)

    async def bulk_create(
        self,
        db: AsyncSession,
        caller: Caller,
        payload: BulkCreateRequest,
    ) -> BulkCreateResponse:
        """Create one record per visible Active customer.

        Raises:
            NotFoundError: If the caller has no Active customers.
        """
        stmt = select(Customer).where(
            Customer.status == CustomerStatus.ACTIVE.value,
            *_scoped(caller, []),
        )
        customers = (await db.execute(stmt)).scalars().all()
        if not customers:
            raise NotFoundError("No active customers found")

        now = datetime.now()
        day = payload.date or now
        records = []
        for customer in customers:
            record = DeliveryRecord(
                customer_id=customer.id,
                date=day,
                litres=customer.milk_per_day,
                price_per_litre=customer.price_per_litre,
                status=payload.status.value,
                delivered_by=caller.id,
                notes="",
            )
            if payload.status == DeliveryStatus.DELIVERED:
                record.mark_delivered(caller.id, now)
            records.append(record)

        db.add_all(records)
        await db.flush()

        logger.info("deliveries.bulk_created", count=len(records), status=payload.status.value)
        return BulkCreateResponse(
            message=f"{len(records)} records created successfully",
            count=len(records),
        )

    async def customer_records(
        self,
        db: AsyncSession,
        caller: Caller,
        customer_id: str,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> CustomerDeliveriesResponse:
        """Records for one customer in range, newest first, with totals."""
        customer = await self.customers.load_customer(db, caller, customer_id)

        stmt = (
            select(DeliveryRecord, Staff.full_name)
            .outerjoin(Staff, Staff.id == DeliveryRecord.delivered_by)
            .where(
                DeliveryRecord.customer_id == customer.id,
                *_range_filters(start_date, end_date),
            )
            .order_by(DeliveryRecord.date.desc(), DeliveryRecord.id)
        )
        rows = (await db.execute(stmt)).all()
        records = [record for record, _name in rows]

        summary = CustomerDeliverySummary(
            total_litres=float(sum((to_decimal(r.litres) for r in records), Decimal("0"))),
            total_amount=float(sum((to_decimal(r.total_amount) for r in records), Decimal("0"))),
            delivered=_count_status(records, DeliveryStatus.DELIVERED),
            pending=_count_status(records, DeliveryStatus.PENDING),
        )
        return CustomerDeliveriesResponse(
            records=[to_response(record, customer, name) for record, name in rows],
            summary=summary,
        )

    async def daily_records(
        self,
        db: AsyncSession,
        caller: Caller,
        day: date,
    ) -> DailyDeliveriesResponse:
        """Every visible record on one calendar day, ordered by customer area."""
        start, end = day_bounds(day)
        stmt = (
            _joined()
            .where(*_scoped(caller, [DeliveryRecord.date >= start, DeliveryRecord.date < end]))
            .order_by(Customer.area, Customer.name, DeliveryRecord.id)
        )
        rows = (await db.execute(stmt)).all()
        records = [record for record, _customer, _name in rows]

        summary = DailySummary(
            total_records=len(records),
            total_litres=float(sum((to_decimal(r.litres) for r in records), Decimal("0"))),
            total_amount=float(sum((to_decimal(r.total_amount) for r in records), Decimal("0"))),
            delivered=_count_status(records, DeliveryStatus.DELIVERED),
            pending=_count_status(records, DeliveryStatus.PENDING),
            cancelled=_count_status(records, DeliveryStatus.CANCELLED),
        )
        return DailyDeliveriesResponse(
            date=day,
            records=[to_response(record, customer, name) for record, customer, name in rows],
            summary=summary,
        )

    async def stats_summary(
        self,
        db: AsyncSession,
        caller: Caller,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> DeliveryStatsResponse:
        """Count, litres and amount per delivery status in range."""
        stmt = (
            select(DeliveryRecord.status, DeliveryRecord.litres, DeliveryRecord.total_amount)
            .join(Customer, DeliveryRecord.customer_id == Customer.id)
            .where(*_scoped(caller, _range_filters(start_date, end_date)))
        )
        rows = (await db.execute(stmt)).all()

        grouped: dict[str, dict[str, Any]] = {}
        for row in rows:
            bucket = grouped.setdefault(
                row.status,
                {"count": 0, "litres": Decimal("0"), "amount": Decimal("0")},
            )
            bucket["count"] += 1
            bucket["litres"] += to_decimal(row.litres)
            bucket["amount"] += to_decimal(row.total_amount)

        return DeliveryStatsResponse(
            stats=[
                StatusStat(
                    status=DeliveryStatus(status),
                    count=bucket["count"],
                    total_litres=float(bucket["litres"]),
                    total_amount=float(bucket["amount"]),
                )
                for status, bucket in sorted(grouped.items())
            ]
        )
