"""Billing API routes: monthly bills, payments, pending balances and invoices."""

from datetime import date

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import DatabaseError
from app.core.logging import get_logger
from app.core.security import Caller, get_caller, get_manager
from app.features.billing.schemas import (
    AreaBillingResponse,
    CustomerBillingResponse,
    DailyRevenueResponse,
    InvoiceResponse,
    MonthlyBillingResponse,
    PaymentRequest,
    PaymentResponse,
    PendingPaymentsResponse,
)
from app.features.billing.service import BillingService

logger = get_logger(__name__)

router = APIRouter(prefix="/billing", tags=["billing"])


@router.get(
    "/monthly/{year}/{month}",
    response_model=MonthlyBillingResponse,
    summary="Monthly billing for all customers",
    description="""
Per-customer totals of Delivered records for one calendar month
(1st 00:00:00 through the last day 23:59:59), sorted by customer name.
""",
)
async def monthly_billing(
    year: int = Path(..., ge=2000, le=2100),
    month: int = Path(..., ge=1, le=12),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> MonthlyBillingResponse:
    """Monthly billing for visible customers."""
    service = BillingService()
    return await service.monthly_billing(db=db, caller=caller, year=year, month=month)


@router.get(
    "/customers/{customer_id}",
    response_model=CustomerBillingResponse,
    summary="Billing for one customer",
)
async def customer_billing(
    customer_id: str,
    start_date: date | None = Query(None, description="Inclusive start. Format: YYYY-MM-DD."),
    end_date: date | None = Query(None, description="Inclusive end. Format: YYYY-MM-DD."),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> CustomerBillingResponse:
    """Delivered records and paid/pending totals for one customer."""
    service = BillingService()
    return await service.customer_billing(
        db=db,
        caller=caller,
        customer_id=customer_id,
        start_date=start_date,
        end_date=end_date,
    )


@router.post(
    "/customers/{customer_id}/payments",
    response_model=PaymentResponse,
    summary="Record a payment",
    description="""
Record a payment for a customer.

- `amount` must be greater than zero (400 otherwise)
- every record in `record_ids` that belongs to this customer is marked `Paid`;
  other records are left untouched
- the amount is not reconciled against the marked records
""",
)
async def record_payment(
    customer_id: str,
    payload: PaymentRequest,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> PaymentResponse:
    """Record a payment."""
    service = BillingService()
    try:
        return await service.record_payment(
            db=db,
            caller=caller,
            customer_id=customer_id,
            payload=payload,
        )
    except SQLAlchemyError as e:
        logger.error(
            "billing.payment_failed",
            customer_id=customer_id,
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        raise DatabaseError(
            message="Failed to record payment",
            details={"error": str(e)},
        ) from e


@router.get(
    "/pending",
    response_model=PendingPaymentsResponse,
    summary="Pending payments",
    description="Customers with Delivered but unpaid records. Admins and managers only.",
)
async def pending_payments(
    caller: Caller = Depends(get_manager),
    db: AsyncSession = Depends(get_db),
) -> PendingPaymentsResponse:
    """Outstanding balances per customer."""
    service = BillingService()
    return await service.pending_payments(db=db, caller=caller)


@router.get(
    "/areas/{area}",
    response_model=AreaBillingResponse,
    summary="Billing summary for an area",
)
async def area_billing(
    area: str,
    start_date: date | None = Query(None, description="Inclusive start. Format: YYYY-MM-DD."),
    end_date: date | None = Query(None, description="Inclusive end. Format: YYYY-MM-DD."),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> AreaBillingResponse:
    """Totals over Active customers whose area contains ``area``."""
    service = BillingService()
    return await service.area_billing(
        db=db,
        caller=caller,
        area=area,
        start_date=start_date,
        end_date=end_date,
    )


@router.get(
    "/revenue/daily",
    response_model=DailyRevenueResponse,
    summary="Daily revenue",
    description="Delivered litres and revenue per calendar day. Admins and managers only.",
)
async def daily_revenue(
    start_date: date | None = Query(None, description="Inclusive start. Format: YYYY-MM-DD."),
    end_date: date | None = Query(None, description="Inclusive end. Format: YYYY-MM-DD."),
    caller: Caller = Depends(get_manager),
    db: AsyncSession = Depends(get_db),
) -> DailyRevenueResponse:
    """Revenue per day, ascending."""
    service = BillingService()
    return await service.daily_revenue(
        db=db, caller=caller, start_date=start_date, end_date=end_date
    )


@router.get(
    "/invoices/{customer_id}/{year}/{month}",
    response_model=InvoiceResponse,
    summary="Generate a monthly invoice",
    description="""
Invoice number format: `INV-{year}{month:02d}-{last 6 characters of customer id}`.
Only Delivered records dated within the month are listed.
""",
)
async def invoice(
    customer_id: str,
    year: int = Path(..., ge=2000, le=2100),
    month: int = Path(..., ge=1, le=12),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> InvoiceResponse:
    """Generate an invoice."""
    service = BillingService()
    return await service.invoice(
        db=db,
        caller=caller,
        customer_id=customer_id,
        year=year,
        month=month,
    )
