"""Service layer for customer operations.

Every read and write goes through the access policy in
``customers.access``; deletion is always a soft delete.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from app.core.logging import get_logger
from app.core.security import Caller, Role, require_role
from app.features.billing.calculator import monthly_bill
from app.features.customers.access import ensure_customer_access, scope_query
from app.features.customers.models import Customer, CustomerStatus
from app.features.customers.schemas import (
    AreaCount,
    CustomerCreate,
    CustomerResponse,
    CustomerStatsResponse,
    CustomerUpdate,
    Location,
)
from app.features.customers.validation import validate_customer
from app.shared.schemas import PaginatedResponse, PaginationParams
from app.shared.utils import paginate_response, to_decimal

logger = get_logger(__name__)

_EDITABLE_FIELDS = (
    "name",
    "address",
    "phone",
    "area",
    "milk_per_day",
    "price_per_litre",
    "notes",
)


def to_response(customer: Customer, days_per_month: int = 30) -> CustomerResponse:
    """Serialize a customer, computing monthly_bill at the boundary."""
    location = None
    if customer.lat is not None or customer.lng is not None:
        location = Location(lat=customer.lat, lng=customer.lng)

    return CustomerResponse(
        id=customer.id,
        name=customer.name,
        phone=customer.phone,
        address=customer.address,
        area=customer.area,
        location=location,
        milk_per_day=float(customer.milk_per_day),
        price_per_litre=float(customer.price_per_litre),
        monthly_bill=float(
            monthly_bill(customer.milk_per_day, customer.price_per_litre, days_per_month)
        ),
        status=CustomerStatus(customer.status),
        assigned_to=customer.assigned_to,
        created_by=customer.created_by,
        start_date=customer.start_date,
        end_date=customer.end_date,
        notes=customer.notes or "",
    )


def _resolve_location(
    location: Location | None,
    lat: float | None,
    lng: float | None,
    current: tuple[float | None, float | None] = (None, None),
) -> tuple[float | None, float | None]:
    """Top-level lat/lng win over a nested location; missing parts keep ``current``."""
    if lat is not None or lng is not None:
        return (
            lat if lat is not None else current[0],
            lng if lng is not None else current[1],
        )
    if location is not None:
        return location.lat, location.lng
    return current


def _field_values(customer: Customer) -> dict[str, Any]:
    return {
        "name": customer.name,
        "address": customer.address,
        "phone": customer.phone,
        "area": customer.area,
        "milk_per_day": customer.milk_per_day,
        "price_per_litre": customer.price_per_litre,
        "lat": customer.lat,
        "lng": customer.lng,
        "status": customer.status,
    }


def _raise_if_invalid(values: dict[str, Any]) -> None:
    errors = validate_customer(values)
    if errors:
        raise ValidationError(
            f"Customer validation failed with {len(errors)} error(s)",
            errors=errors,
        )


class CustomerService:
    """Customer CRUD scoped to the calling staff member."""

    def __init__(self) -> None:
        """Initialize customer service."""
        self.settings = get_settings()

    async def load_customer(
        self,
        db: AsyncSession,
        caller: Caller,
        customer_id: str,
    ) -> Customer:
        """Fetch a customer the caller may access.

        Raises:
            NotFoundError: If no customer has this id.
            ForbiddenError: If the caller may not access it.
        """
        customer = await db.get(Customer, customer_id)
        if customer is None:
            raise NotFoundError("Customer not found", details={"customer_id": customer_id})
        ensure_customer_access(caller, customer)
        return customer

    async def list_customers(
        self,
        db: AsyncSession,
        caller: Caller,
        pagination: PaginationParams,
        status: CustomerStatus | None = None,
        area: str | None = None,
        search: str | None = None,
    ) -> PaginatedResponse[CustomerResponse]:
        """List visible customers, newest first.

        Args:
            db: Database session.
            caller: Requesting staff member.
            pagination: Page and page size.
            status: Exact status filter.
            area: Case-insensitive substring match on area.
            search: Case-insensitive substring match on name, phone or address.

        Returns:
            One page of customers.
        """
        stmt = scope_query(select(Customer), caller)

        if status is not None:
            stmt = stmt.where(Customer.status == status.value)
        if area:
            stmt = stmt.where(Customer.area.ilike(f"%{area}%"))
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(
                    Customer.name.ilike(pattern),
                    Customer.phone.ilike(pattern),
                    Customer.address.ilike(pattern),
                )
            )

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await db.execute(count_stmt)).scalar_one()

        stmt = (
            stmt.order_by(Customer.start_date.desc(), Customer.id)
            .offset(pagination.offset)
            .limit(pagination.limit)
        )
        customers = (await db.execute(stmt)).scalars().all()

        logger.info(
            "customers.listed",
            total=total,
            page=pagination.page,
            filters={"status": status.value if status else None, "area": area, "search": search},
        )

        days = self.settings.billing_days_per_month
        return paginate_response([to_response(c, days) for c in customers], total, pagination)

    async def get_customer(
        self,
        db: AsyncSession,
        caller: Caller,
        customer_id: str,
    ) -> CustomerResponse:
        """Get one visible customer."""
        customer = await self.load_customer(db, caller, customer_id)
        return to_response(customer, self.settings.billing_days_per_month)

    async def create_customer(
        self,
        db: AsyncSession,
        caller: Caller,
        payload: CustomerCreate,
    ) -> CustomerResponse:
        """Create a customer owned by the caller (admin/manager only).

        Raises:
            ForbiddenError: If the caller is delivery staff.
            ConflictError: If the caller already owns a customer with this phone.
            ValidationError: If any field rule fails.
        """
        require_role(caller, Role.ADMIN, Role.MANAGER)

        lat, lng = _resolve_location(payload.location, payload.lat, payload.lng)
        price = (
            payload.price_per_litre
            if payload.price_per_litre
            else self.settings.default_price_per_litre
        )
        values: dict[str, Any] = {
            "name": payload.name,
            "address": payload.address,
            "phone": payload.phone,
            "area": payload.area,
            "milk_per_day": payload.milk_per_day,
            "price_per_litre": price,
            "lat": lat,
            "lng": lng,
            "status": CustomerStatus.ACTIVE.value,
        }
        _raise_if_invalid(values)

        existing = await db.execute(
            select(Customer.id).where(
                (Customer.phone == payload.phone) & (Customer.created_by == caller.id)
            )
        )
        if existing.first() is not None:
            raise ConflictError(
                "Customer with this phone number already exists in your dairy",
                details={"phone": payload.phone},
            )

        customer = Customer(
            **values,
            notes=payload.notes,
            created_by=caller.id,
            assigned_to=payload.assigned_to,
            start_date=datetime.now(),
        )
        db.add(customer)
        await db.flush()

        logger.info(
            "customers.customer_created",
            customer_id=customer.id,
            area=customer.area,
        )
        return to_response(customer, self.settings.billing_days_per_month)

    async def update_customer(
        self,
        db: AsyncSession,
        caller: Caller,
        customer_id: str,
        payload: CustomerUpdate,
    ) -> CustomerResponse:
        """Apply a partial update after re-validating the merged state.

        Raises:
            NotFoundError: Unknown customer.
            ForbiddenError: Customer not visible, or a delivery caller reassigning.
            ValidationError: If the merged customer breaks a field rule.
        """
        customer = await self.load_customer(db, caller, customer_id)

        if payload.assigned_to is not None and not caller.is_admin_or_manager:
            raise ForbiddenError("Only admins and managers can reassign customers")

        values = _field_values(customer)
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        for field in _EDITABLE_FIELDS:
            if field in changes:
                values[field] = changes[field]
        if payload.status is not None:
            values["status"] = payload.status.value
        values["lat"], values["lng"] = _resolve_location(
            payload.location,
            payload.lat,
            payload.lng,
            current=(customer.lat, customer.lng),
        )
        _raise_if_invalid(values)

        for field, value in values.items():
            setattr(customer, field, value)
        if payload.notes is not None:
            customer.notes = payload.notes
        if payload.assigned_to is not None:
            customer.assigned_to = payload.assigned_to

        await db.flush()

        logger.info(
            "customers.customer_updated",
            customer_id=customer.id,
            fields=sorted(changes),
        )
        return to_response(customer, self.settings.billing_days_per_month)

    async def deactivate_customer(
        self,
        db: AsyncSession,
        caller: Caller,
        customer_id: str,
    ) -> CustomerResponse:
        """Soft delete: status -> Inactive and end_date -> now.

        Raises:
            ForbiddenError: If the caller is not an admin or the managing creator.
        """
        require_role(caller, Role.ADMIN, Role.MANAGER)
        customer = await self.load_customer(db, caller, customer_id)
        if not caller.is_admin and customer.created_by != caller.id:
            raise ForbiddenError("Access denied. You can only delete customers you created.")

        customer.status = CustomerStatus.INACTIVE.value
        customer.end_date = datetime.now()
        await db.flush()

        logger.info("customers.customer_deactivated", customer_id=customer.id)
        return to_response(customer, self.settings.billing_days_per_month)

    async def list_by_area(
        self,
        db: AsyncSession,
        caller: Caller,
        area: str,
    ) -> list[CustomerResponse]:
        """Active visible customers whose area matches, ordered by name."""
        stmt = scope_query(
            select(Customer).where(
                Customer.area.ilike(f"%{area}%"),
                Customer.status == CustomerStatus.ACTIVE.value,
            ),
            caller,
        ).order_by(Customer.name)
        customers = (await db.execute(stmt)).scalars().all()
        days = self.settings.billing_days_per_month
        return [to_response(c, days) for c in customers]

    async def stats_summary(
        self,
        db: AsyncSession,
        caller: Caller,
    ) -> CustomerStatsResponse:
        """Count and total daily litres of visible active customers, per area."""
        stmt = scope_query(
            select(Customer.area, Customer.milk_per_day).where(
                Customer.status == CustomerStatus.ACTIVE.value
            ),
            caller,
        )
        rows = (await db.execute(stmt)).all()

        per_area: dict[str, int] = {}
        total_milk = Decimal("0")
        for row in rows:
            per_area[row.area] = per_area.get(row.area, 0) + 1
            total_milk += to_decimal(row.milk_per_day)

        by_area = sorted(per_area.items(), key=lambda item: item[1], reverse=True)
        return CustomerStatsResponse(
            total_customers=len(rows),
            total_milk_per_day=float(total_milk),
            customers_by_area=[AreaCount(area=a, count=n) for a, n in by_area],
        )
