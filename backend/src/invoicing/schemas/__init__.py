"""Pydantic schemas for API request/response validation."""

from invoicing.schemas.error import ErrorCode, ErrorDetail, ErrorResponse
from invoicing.schemas.invoice import (
    Invoice,
    InvoiceCreate,
    InvoiceItem,
    InvoiceItemCreate,
    InvoiceList,
)
from invoicing.schemas.payment import Payment, PaymentCreate, PaymentResponse

__all__ = [
    "ErrorCode",
    "ErrorDetail",
    "ErrorResponse",
    "Invoice",
    "InvoiceCreate",
    "InvoiceItem",
    "InvoiceItemCreate",
    "InvoiceList",
    "Payment",
    "PaymentCreate",
    "PaymentResponse",
]
