"""Customer ORM model.

A customer is a household subscribed to a daily milk quantity at a
per-litre price. Ownership (``created_by``) drives per-operator data
isolation; see ``app.features.customers.access``.
"""

from __future__ import annotations

import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Float,
    Index,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, validates

from app.core.database import Base
from app.shared.models import IdMixin, TimestampMixin
from app.shared.utils import to_cents


class CustomerStatus(str, Enum):
    """Subscription state. Soft delete moves a customer to INACTIVE."""

    ACTIVE = "Active"
    INACTIVE = "Inactive"
    SUSPENDED = "Suspended"


class Customer(IdMixin, TimestampMixin, Base):
    """Milk delivery customer.

    Attributes:
        id: Opaque 32-char id.
        name: Customer name (min 2 chars).
        phone: 10-digit Indian mobile number.
        address: Delivery address.
        area: Locality used for grouping and staff assignment.
        lat: Optional latitude.
        lng: Optional longitude.
        milk_per_day: Default daily litres (>= 0.5).
        price_per_litre: Current price; copied onto new delivery records.
        status: Active, Inactive or Suspended.
        assigned_to: Delivery staff id (optional).
        created_by: Owning staff id.
        start_date: Subscription start.
        end_date: Set when deactivated.
        notes: Free text.
    """

    __tablename__ = "customer"

    name: Mapped[str] = mapped_column(String(100))
    phone: Mapped[str] = mapped_column(String(10), index=True)
    address: Mapped[str] = mapped_column(String(500))
    area: Mapped[str] = mapped_column(String(100))
    lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    lng: Mapped[float | None] = mapped_column(Float, nullable=True)
    milk_per_day: Mapped[Decimal] = mapped_column(Numeric(8, 2), default=Decimal("1"))
    price_per_litre: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("60"))
    status: Mapped[str] = mapped_column(String(20), default=CustomerStatus.ACTIVE.value)
    assigned_to: Mapped[str | None] = mapped_column(String(32), nullable=True, index=True)
    created_by: Mapped[str] = mapped_column(String(32), index=True)
    start_date: Mapped[datetime.datetime] = mapped_column(
        DateTime, default=datetime.datetime.now
    )
    end_date: Mapped[datetime.datetime | None] = mapped_column(DateTime, nullable=True)
    notes: Mapped[str] = mapped_column(Text, default="")

    __table_args__ = (
        Index("ix_customer_area_status", "area", "status"),
        CheckConstraint(
            "status IN ('Active', 'Inactive', 'Suspended')",
            name="ck_customer_valid_status",
        ),
        CheckConstraint("milk_per_day >= 0.5", name="ck_customer_milk_per_day_min"),
        CheckConstraint("price_per_litre >= 0", name="ck_customer_price_positive"),
    )

    @validates("milk_per_day", "price_per_litre")
    def _to_column_scale(self, _key: str, value: Decimal | float | str) -> Decimal:
        return to_cents(value)
