"""Billing: pure calculator plus payment, invoice and revenue endpoints."""

from app.features.billing.calculator import (
    BillingSummary,
    generate_invoice,
    invoice_number,
    monthly_bill,
    price_record,
    summarize_customer_billing,
)

__all__ = [
    "BillingSummary",
    "generate_invoice",
    "invoice_number",
    "monthly_bill",
    "price_record",
    "summarize_customer_billing",
]
