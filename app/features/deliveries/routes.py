"""Delivery record API routes."""

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import DatabaseError
from app.core.logging import get_logger
from app.core.security import Caller, get_caller
from app.features.deliveries.models import DeliveryStatus
from app.features.deliveries.schemas import (
    BulkCreateRequest,
    BulkCreateResponse,
    CustomerDeliveriesResponse,
    DailyDeliveriesResponse,
    DeliveryCreate,
    DeliveryMutationResponse,
    DeliveryResponse,
    DeliveryStatsResponse,
    DeliveryUpdate,
)
from app.features.deliveries.service import DeliveryService
from app.shared.schemas import MessageResponse, PaginatedResponse, PaginationParams

logger = get_logger(__name__)

router = APIRouter(prefix="/deliveries", tags=["deliveries"])


# =============================================================================
# Reports
# =============================================================================


@router.get(
    "/stats/summary",
    response_model=DeliveryStatsResponse,
    summary="Delivery statistics by status",
)
async def delivery_stats(
    start_date: date | None = Query(None, description="Inclusive start. Format: YYYY-MM-DD."),
    end_date: date | None = Query(None, description="Inclusive end. Format: YYYY-MM-DD."),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> DeliveryStatsResponse:
    """Count, litres and amount per status for visible records."""
    service = DeliveryService()
    return await service.stats_summary(
        db=db, caller=caller, start_date=start_date, end_date=end_date
    )


@router.get(
    "/daily/{day}",
    response_model=DailyDeliveriesResponse,
    summary="Records for one day",
)
async def daily_deliveries(
    day: date,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> DailyDeliveriesResponse:
    """Visible records dated on ``day`` with a status breakdown."""
    service = DeliveryService()
    return await service.daily_records(db=db, caller=caller, day=day)


@router.get(
    "/customer/{customer_id}",
    response_model=CustomerDeliveriesResponse,
    summary="Records for one customer",
)
async def customer_deliveries(
    customer_id: str,
    start_date: date | None = Query(None, description="Inclusive start. Format: YYYY-MM-DD."),
    end_date: date | None = Query(None, description="Inclusive end. Format: YYYY-MM-DD."),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> CustomerDeliveriesResponse:
    """A customer's records in range, newest first, with totals."""
    service = DeliveryService()
    return await service.customer_records(
        db=db,
        caller=caller,
        customer_id=customer_id,
        start_date=start_date,
        end_date=end_date,
    )


# =============================================================================
# Records
# =============================================================================


@router.get(
    "",
    response_model=PaginatedResponse[DeliveryResponse],
    summary="List delivery records",
    description="""
List delivery records of customers visible to the caller, newest first.

**Filters:**
- `status`: `Delivered`, `Pending`, `Cancelled` or `Skipped`
- `customer_id`: one customer
- `start_date` / `end_date`: inclusive ISO dates; the end date covers the whole day
""",
)
async def list_deliveries(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(50, ge=1, le=500, description="Records per page"),
    status_filter: DeliveryStatus | None = Query(None, alias="status"),
    customer_id: str | None = Query(None),
    start_date: date | None = Query(None, description="Inclusive start. Format: YYYY-MM-DD."),
    end_date: date | None = Query(None, description="Inclusive end. Format: YYYY-MM-DD."),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> PaginatedResponse[DeliveryResponse]:
    """List visible delivery records."""
    service = DeliveryService()
    return await service.list_records(
        db=db,
        caller=caller,
        pagination=PaginationParams(page=page, page_size=page_size),
        status=status_filter,
        customer_id=customer_id,
        start_date=start_date,
        end_date=end_date,
    )


@router.get(
    "/{record_id}",
    response_model=DeliveryResponse,
    summary="Get a delivery record",
)
async def get_delivery(
    record_id: str,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> DeliveryResponse:
    """Get one delivery record."""
    service = DeliveryService()
    return await service.get_record(db=db, caller=caller, record_id=record_id)


@router.post(
    "",
    response_model=DeliveryMutationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Log a delivery",
    description="""
Log one delivery for a visible customer.

- `litres` defaults to the customer's `milk_per_day`
- `price_per_litre` defaults to the customer's current price and is
  snapshotted on the record
- `total_amount` is always `litres x price_per_litre`
- `status=Delivered` stamps `delivery_time`
""",
)
async def create_delivery(
    payload: DeliveryCreate,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> DeliveryMutationResponse:
    """Create a delivery record."""
    service = DeliveryService()
    try:
        record = await service.create_record(db=db, caller=caller, payload=payload)
    except SQLAlchemyError as e:
        logger.error(
            "deliveries.create_failed",
            customer_id=payload.customer_id,
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        raise DatabaseError(
            message="Failed to create milk record",
            details={"error": str(e)},
        ) from e
    return DeliveryMutationResponse(message="Milk record created successfully", record=record)


@router.post(
    "/bulk",
    response_model=BulkCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create records for all active customers",
)
async def bulk_create_deliveries(
    payload: BulkCreateRequest,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> BulkCreateResponse:
    """One record per visible Active customer at its daily quantity and price."""
    service = DeliveryService()
    try:
        return await service.bulk_create(db=db, caller=caller, payload=payload)
    except SQLAlchemyError as e:
        logger.error(
            "deliveries.bulk_create_failed",
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        raise DatabaseError(
            message="Failed to create bulk records",
            details={"error": str(e)},
        ) from e


@router.put(
    "/{record_id}",
    response_model=DeliveryMutationResponse,
    summary="Update a delivery record",
)
async def update_delivery(
    record_id: str,
    payload: DeliveryUpdate,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> DeliveryMutationResponse:
    """Update a delivery record; ``delivery_time`` is only ever stamped once."""
    service = DeliveryService()
    record = await service.update_record(
        db=db,
        caller=caller,
        record_id=record_id,
        payload=payload,
    )
    return DeliveryMutationResponse(message="Record updated successfully", record=record)


@router.delete(
    "/{record_id}",
    response_model=MessageResponse,
    summary="Delete a delivery record",
    description="Admins may delete any record; delivery staff only their own Pending records.",
)
async def delete_delivery(
    record_id: str,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Delete a delivery record."""
    service = DeliveryService()
    await service.delete_record(db=db, caller=caller, record_id=record_id)
    return MessageResponse(message="Record deleted successfully")
