"""Pydantic schemas for billing endpoints.

Money is computed as Decimal and serialized as JSON numbers.
"""

from __future__ import annotations

from datetime import date as date_type
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


# =============================================================================
# Monthly billing
# =============================================================================


class CustomerBill(BaseModel):
    """One customer's Delivered totals for a month."""

    customer_id: str
    customer_name: str
    customer_phone: str
    customer_area: str
    total_litres: float
    total_amount: float
    delivery_count: int
    price_per_litre: float


class MonthlyBillingSummary(BaseModel):
    total_customers: int
    total_litres: float
    total_revenue: float
    total_deliveries: int


class BillingPeriod(BaseModel):
    year: int
    month: int


class MonthlyBillingResponse(BaseModel):
    """Bills sorted by customer name."""

    bills: list[CustomerBill]
    summary: MonthlyBillingSummary
    period: BillingPeriod


# =============================================================================
# Customer billing and payments
# =============================================================================


class BilledCustomer(BaseModel):
    id: str
    name: str
    phone: str
    address: str
    area: str
    price_per_litre: float


class BilledRecord(BaseModel):
    id: str
    date: datetime
    litres: float
    price_per_litre: float
    total_amount: float
    payment_status: str


class CustomerBillingSummary(BaseModel):
    """Partial payments count towards neither paid nor pending."""

    total_litres: float
    total_amount: float
    total_deliveries: int
    paid_amount: float
    pending_amount: float


class CustomerBillingResponse(BaseModel):
    customer: BilledCustomer
    records: list[BilledRecord]
    summary: CustomerBillingSummary


class PaymentRequest(BaseModel):
    """Payment against a customer's account.

    ``amount`` is not reconciled against the records being marked Paid.
    """

    amount: Decimal | None = Field(None, description="Amount received; must be > 0.")
    payment_method: str | None = Field(None, max_length=50)
    record_ids: list[str] = Field(
        default_factory=list,
        description="Delivery records of this customer to mark Paid.",
    )
    notes: str | None = None


class PaymentReceipt(BaseModel):
    customer_id: str
    customer_name: str
    amount: float
    payment_method: str | None
    records_updated: int
    paid_at: datetime
    notes: str | None


class PaymentResponse(BaseModel):
    message: str
    payment: PaymentReceipt


# =============================================================================
# Pending payments, areas and revenue
# =============================================================================


class PendingPayment(BaseModel):
    customer_id: str
    customer_name: str
    customer_phone: str
    customer_area: str
    total_amount: float
    record_count: int
    oldest_record: datetime | None


class PendingPaymentsSummary(BaseModel):
    total_customers: int
    total_pending_amount: float
    total_pending_records: int


class PendingPaymentsResponse(BaseModel):
    """Customers with Delivered but unpaid records, largest balance first."""

    pending_payments: list[PendingPayment]
    summary: PendingPaymentsSummary


class AreaBillingResponse(BaseModel):
    area: str
    total_customers: int
    total_litres: float
    total_revenue: float
    total_deliveries: int
    paid_amount: float
    pending_amount: float


class DailyRevenue(BaseModel):
    date: date_type
    total_litres: float
    total_revenue: float
    delivery_count: int


class DailyRevenueResponse(BaseModel):
    daily_revenue: list[DailyRevenue]


# =============================================================================
# Invoices
# =============================================================================


class InvoiceCustomer(BaseModel):
    name: str
    phone: str
    address: str
    area: str


class InvoicePeriod(BaseModel):
    start: datetime
    end: datetime
    month: str = Field(..., description="Month name, e.g. 'March'.")
    year: int


class InvoiceLineResponse(BaseModel):
    date: datetime
    litres: float
    price_per_litre: float
    amount: float


class InvoiceSummary(BaseModel):
    total_litres: float
    total_amount: float
    delivery_count: int
    price_per_litre: float = Field(..., description="Customer's current price.")


class InvoiceDetail(BaseModel):
    invoice_number: str
    date: datetime = Field(..., description="Generation time.")
    customer: InvoiceCustomer
    billing_period: InvoicePeriod
    records: list[InvoiceLineResponse]
    summary: InvoiceSummary


class InvoiceResponse(BaseModel):
    invoice: InvoiceDetail
