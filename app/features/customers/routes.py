"""Customer API routes."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import DatabaseError
from app.core.logging import get_logger
from app.core.security import Caller, get_caller, get_manager
from app.features.customers.models import CustomerStatus
from app.features.customers.schemas import (
    CustomerCreate,
    CustomerMutationResponse,
    CustomerResponse,
    CustomerStatsResponse,
    CustomerUpdate,
)
from app.features.customers.service import CustomerService
from app.shared.schemas import PaginatedResponse, PaginationParams

logger = get_logger(__name__)

router = APIRouter(prefix="/customers", tags=["customers"])


# =============================================================================
# Listing and lookups
# =============================================================================


@router.get(
    "",
    response_model=PaginatedResponse[CustomerResponse],
    summary="List customers",
    description="""
List the customers visible to the caller, newest first.

**Visibility:**
- `admin`: every customer
- `manager`: customers they created
- `delivery`: customers they created, are assigned to, or that sit in one
  of their assigned areas

**Filters:**
- `status`: exact status (`Active`, `Inactive`, `Suspended`)
- `area`: case-insensitive substring of the area
- `search`: case-insensitive substring of name, phone or address
""",
)
async def list_customers(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(50, ge=1, le=500, description="Customers per page"),
    status_filter: CustomerStatus | None = Query(None, alias="status"),
    area: str | None = Query(None, description="Area substring."),
    search: str | None = Query(None, description="Name, phone or address substring."),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> PaginatedResponse[CustomerResponse]:
    """List visible customers."""
    service = CustomerService()
    return await service.list_customers(
        db=db,
        caller=caller,
        pagination=PaginationParams(page=page, page_size=page_size),
        status=status_filter,
        area=area,
        search=search,
    )


@router.get(
    "/stats/summary",
    response_model=CustomerStatsResponse,
    summary="Active customer summary",
)
async def customer_stats(
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> CustomerStatsResponse:
    """Count, daily litres and per-area counts of visible active customers."""
    service = CustomerService()
    return await service.stats_summary(db=db, caller=caller)


@router.get(
    "/area/{area}",
    response_model=list[CustomerResponse],
    summary="Active customers in an area",
)
async def customers_by_area(
    area: str,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> list[CustomerResponse]:
    """Active visible customers whose area contains ``area``, by name."""
    service = CustomerService()
    return await service.list_by_area(db=db, caller=caller, area=area)


@router.get(
    "/{customer_id}",
    response_model=CustomerResponse,
    summary="Get a customer",
)
async def get_customer(
    customer_id: str,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> CustomerResponse:
    """Get one customer.

    Raises:
        NotFoundError: Unknown customer.
        ForbiddenError: Customer outside the caller's scope.
    """
    service = CustomerService()
    return await service.get_customer(db=db, caller=caller, customer_id=customer_id)


# =============================================================================
# Mutations
# =============================================================================


@router.post(
    "",
    response_model=CustomerMutationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a customer",
    description="""
Create a customer owned by the caller. Admins and managers only.

**Validation** (all failing fields are reported together):
- `name`: required, at least 2 characters
- `phone`: 10 digits starting with 6-9, unique per owner
- `address`, `area`: required
- `milk_per_day`: at least 0.5 litres
- `price_per_litre`: zero or more, defaults to 60
- `location.lat` / `location.lng`: within [-90, 90] / [-180, 180]
""",
)
async def create_customer(
    payload: CustomerCreate,
    caller: Caller = Depends(get_manager),
    db: AsyncSession = Depends(get_db),
) -> CustomerMutationResponse:
    """Create a customer."""
    service = CustomerService()
    try:
        customer = await service.create_customer(db=db, caller=caller, payload=payload)
    except SQLAlchemyError as e:
        logger.error(
            "customers.create_failed",
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        raise DatabaseError(
            message="Failed to create customer",
            details={"error": str(e)},
        ) from e
    return CustomerMutationResponse(message="Customer created successfully", customer=customer)


@router.put(
    "/{customer_id}",
    response_model=CustomerMutationResponse,
    summary="Update a customer",
)
async def update_customer(
    customer_id: str,
    payload: CustomerUpdate,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> CustomerMutationResponse:
    """Partially update a customer; the merged state is re-validated."""
    service = CustomerService()
    try:
        customer = await service.update_customer(
            db=db,
            caller=caller,
            customer_id=customer_id,
            payload=payload,
        )
    except SQLAlchemyError as e:
        logger.error(
            "customers.update_failed",
            customer_id=customer_id,
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        raise DatabaseError(
            message="Failed to update customer",
            details={"error": str(e)},
        ) from e
    return CustomerMutationResponse(message="Customer updated successfully", customer=customer)


@router.delete(
    "/{customer_id}",
    response_model=CustomerMutationResponse,
    summary="Deactivate a customer",
    description="""
Soft delete: the customer becomes `Inactive` and `end_date` is set.
Delivery history is kept. Allowed for admins and for the managing creator.
""",
)
async def delete_customer(
    customer_id: str,
    caller: Caller = Depends(get_manager),
    db: AsyncSession = Depends(get_db),
) -> CustomerMutationResponse:
    """Deactivate a customer."""
    service = CustomerService()
    customer = await service.deactivate_customer(db=db, caller=caller, customer_id=customer_id)
    return CustomerMutationResponse(message="Customer deactivated successfully", customer=customer)
