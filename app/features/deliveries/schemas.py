"""Pydantic schemas for delivery record endpoints."""

from __future__ import annotations

from datetime import date as date_type
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.features.deliveries.models import DeliveryStatus, PaymentStatus


def _to_server_local(value: datetime | None) -> datetime | None:
    """Convert an offset-aware timestamp to naive server-local time.

    Stored dates and every day/month window are naive server-local.
    """
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


class DeliveryCreate(BaseModel):
    """Request body for logging one delivery.

    ``litres`` defaults to the customer's daily quantity and
    ``price_per_litre`` to the customer's current price.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    customer_id: str = Field(..., min_length=1)
    date: datetime | None = Field(None, description="Delivery timestamp. Defaults to now.")
    litres: Decimal | None = Field(None, ge=0)
    status: DeliveryStatus = DeliveryStatus.PENDING
    price_per_litre: Decimal | None = Field(None, ge=0)
    payment_status: PaymentStatus = PaymentStatus.PENDING
    notes: str = ""
    signature: str | None = Field(None, description="Base64-encoded signature image.")

    _local_date = field_validator("date")(_to_server_local)


class DeliveryUpdate(BaseModel):
    """Request body for updating a delivery. Omitted fields are unchanged.

    Setting ``status`` to Delivered stamps ``delivery_time`` the first time only.
    """

    litres: Decimal | None = Field(None, ge=0)
    status: DeliveryStatus | None = None
    payment_status: PaymentStatus | None = None
    notes: str | None = None
    signature: str | None = None


class DeliveryResponse(BaseModel):
    """Delivery record with denormalized customer and staff display fields."""

    id: str
    customer_id: str
    customer_name: str | None = None
    customer_phone: str | None = None
    customer_area: str | None = None
    date: datetime
    litres: float
    status: DeliveryStatus
    price_per_litre: float
    total_amount: float
    payment_status: PaymentStatus
    delivered_by: str | None
    delivered_by_name: str | None = None
    delivery_time: datetime | None
    notes: str
    signature: str | None = None


class DeliveryMutationResponse(BaseModel):
    message: str
    record: DeliveryResponse


class BulkCreateRequest(BaseModel):
    """Create one record per visible Active customer for a date."""

    date: datetime | None = Field(None, description="Delivery timestamp. Defaults to now.")
    status: DeliveryStatus = DeliveryStatus.PENDING

    _local_date = field_validator("date")(_to_server_local)


class BulkCreateResponse(BaseModel):
    message: str
    count: int = Field(..., ge=0)


class CustomerDeliverySummary(BaseModel):
    """Totals over a customer's records in range (all statuses)."""

    total_litres: float
    total_amount: float
    delivered: int
    pending: int


class CustomerDeliveriesResponse(BaseModel):
    records: list[DeliveryResponse]
    summary: CustomerDeliverySummary


class DailySummary(BaseModel):
    """Totals over every record on one calendar day."""

    total_records: int
    total_litres: float
    total_amount: float
    delivered: int
    pending: int
    cancelled: int


class DailyDeliveriesResponse(BaseModel):
    date: date_type
    records: list[DeliveryResponse]
    summary: DailySummary


class StatusStat(BaseModel):
    status: DeliveryStatus
    count: int
    total_litres: float
    total_amount: float


class DeliveryStatsResponse(BaseModel):
    """Per-status counts and totals, ordered by status name."""

    stats: list[StatusStat]
