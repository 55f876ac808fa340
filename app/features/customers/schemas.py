"""Pydantic schemas for customer endpoints.

Range and format rules live in ``customers.validation`` so they apply to
merged update state too; these schemas only fix shapes and types.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from app.features.customers.models import CustomerStatus


class Location(BaseModel):
    """Geographic point picked on the dashboard map."""

    lat: float | None = Field(None, description="Latitude in [-90, 90].")
    lng: float | None = Field(None, description="Longitude in [-180, 180].")


class CustomerCreate(BaseModel):
    """Request body for creating a customer.

    Location may be sent nested (``location``) or as top-level ``lat``/``lng``.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., max_length=100, description="Customer name (min 2 chars).")
    address: str = Field(..., max_length=500, description="Delivery address.")
    phone: str = Field(..., max_length=10, description="10-digit mobile, starts with 6-9.")
    area: str = Field(..., max_length=100, description="Area/locality.")
    location: Location | None = None
    lat: float | None = None
    lng: float | None = None
    milk_per_day: Decimal = Field(Decimal("1"), description="Daily litres (>= 0.5).")
    price_per_litre: Decimal | None = Field(
        None,
        description="Price per litre. Defaults to the configured price (60).",
    )
    notes: str = ""
    assigned_to: str | None = Field(None, description="Delivery staff id.")


class CustomerUpdate(BaseModel):
    """Request body for updating a customer. Omitted fields are unchanged."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(None, max_length=100)
    address: str | None = Field(None, max_length=500)
    phone: str | None = Field(None, max_length=10)
    area: str | None = Field(None, max_length=100)
    location: Location | None = None
    lat: float | None = None
    lng: float | None = None
    milk_per_day: Decimal | None = None
    price_per_litre: Decimal | None = None
    status: CustomerStatus | None = None
    notes: str | None = None
    assigned_to: str | None = Field(
        None,
        description="Delivery staff id. Only admins and managers may reassign.",
    )


class CustomerResponse(BaseModel):
    """Customer as returned by the API, with the derived monthly bill."""

    id: str
    name: str
    phone: str
    address: str
    area: str
    location: Location | None
    milk_per_day: float
    price_per_litre: float
    monthly_bill: float = Field(
        ...,
        description="milk_per_day x 30 x price_per_litre; computed, never stored.",
    )
    status: CustomerStatus
    assigned_to: str | None
    created_by: str
    start_date: datetime | None
    end_date: datetime | None
    notes: str


class CustomerMutationResponse(BaseModel):
    """Acknowledgement carrying the affected customer."""

    message: str
    customer: CustomerResponse


class AreaCount(BaseModel):
    area: str
    count: int


class CustomerStatsResponse(BaseModel):
    """Summary of the caller's active customers."""

    total_customers: int
    total_milk_per_day: float
    customers_by_area: list[AreaCount]
