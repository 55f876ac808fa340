"""Delivery record ORM model.

One row per customer per delivery occasion.

CRITICAL: ``total_amount`` always equals ``litres * price_per_litre``. It is
recomputed whenever either operand is assigned and again before every
INSERT/UPDATE, so no write path can persist a stale total.
"""

from __future__ import annotations

import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    event,
)
from sqlalchemy.orm import Mapped, Mapper, mapped_column, relationship, validates

from app.core.database import Base
from app.features.billing.calculator import price_record
from app.features.customers.models import Customer
from app.shared.models import IdMixin, TimestampMixin
from app.shared.utils import to_cents


class DeliveryStatus(str, Enum):
    """Delivery outcome. Only DELIVERED counts towards revenue and litres."""

    DELIVERED = "Delivered"
    PENDING = "Pending"
    CANCELLED = "Cancelled"
    SKIPPED = "Skipped"


class PaymentStatus(str, Enum):
    """Payment state, independent of the delivery status."""

    PAID = "Paid"
    PENDING = "Pending"
    PARTIAL = "Partial"


class DeliveryRecord(IdMixin, TimestampMixin, Base):
    """Milk delivery log entry.

    Attributes:
        id: Opaque 32-char id.
        customer_id: Customer delivered to (FK).
        date: Delivery day; keeps its time of day.
        litres: Quantity (>= 0).
        status: Delivered, Pending, Cancelled or Skipped.
        price_per_litre: Price snapshot taken at creation.
        total_amount: litres * price_per_litre.
        payment_status: Paid, Pending or Partial.
        delivered_by: Staff id.
        delivery_time: First moment the record became Delivered.
        notes: Free text.
        signature: Base64-encoded signature image.
    """

    __tablename__ = "delivery_record"

    customer_id: Mapped[str] = mapped_column(String(32), ForeignKey("customer.id"), index=True)
    date: Mapped[datetime.datetime] = mapped_column(DateTime, default=datetime.datetime.now)
    litres: Mapped[Decimal] = mapped_column(Numeric(8, 2))
    status: Mapped[str] = mapped_column(String(20), default=DeliveryStatus.PENDING.value)
    price_per_litre: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("60"))
    total_amount: Mapped[Decimal] = mapped_column(Numeric(14, 4), default=Decimal("0"))
    payment_status: Mapped[str] = mapped_column(String(20), default=PaymentStatus.PENDING.value)
    delivered_by: Mapped[str | None] = mapped_column(String(32), nullable=True, index=True)
    delivery_time: Mapped[datetime.datetime | None] = mapped_column(DateTime, nullable=True)
    notes: Mapped[str] = mapped_column(Text, default="")
    signature: Mapped[str | None] = mapped_column(Text, nullable=True)

    customer: Mapped[Customer] = relationship(lazy="raise")

    __table_args__ = (
        Index("ix_delivery_record_customer_date", "customer_id", "date"),
        Index("ix_delivery_record_status_date", "status", "date"),
        Index("ix_delivery_record_staff_date", "delivered_by", "date"),
        CheckConstraint("litres >= 0", name="ck_delivery_record_litres_positive"),
        CheckConstraint(
            "status IN ('Delivered', 'Pending', 'Cancelled', 'Skipped')",
            name="ck_delivery_record_valid_status",
        ),
        CheckConstraint(
            "payment_status IN ('Paid', 'Pending', 'Partial')",
            name="ck_delivery_record_valid_payment_status",
        ),
    )

    @validates("litres", "price_per_litre")
    def _reprice_on_assign(self, key: str, value: Any) -> Decimal:  # noqa: ANN401
        # Stored at the column scale, so the total is priced on what persists.
        value = to_cents(value)
        litres = value if key == "litres" else self.litres
        price = value if key == "price_per_litre" else self.price_per_litre
        if litres is not None and price is not None:
            self.total_amount = price_record(litres, price)
        return value

    def reprice(self) -> None:
        """Recompute total_amount from the current litres and price."""
        if self.price_per_litre is None:
            self.price_per_litre = Decimal("60")
        self.total_amount = price_record(self.litres, self.price_per_litre)

    def mark_delivered(self, staff_id: str | None, now: datetime.datetime) -> bool:
        """Transition to Delivered, stamping delivery_time only the first time.

        Returns:
            True if delivery_time was stamped by this call.
        """
        self.status = DeliveryStatus.DELIVERED.value
        if self.delivery_time is not None:
            return False
        self.delivery_time = now
        if staff_id is not None:
            self.delivered_by = staff_id
        return True


@event.listens_for(DeliveryRecord, "before_insert")
@event.listens_for(DeliveryRecord, "before_update")
def _reprice_before_persist(
    _mapper: Mapper[DeliveryRecord],
    _connection: Any,  # noqa: ANN401
    target: DeliveryRecord,
) -> None:
    target.reprice()
