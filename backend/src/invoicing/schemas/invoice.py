"""Pydantic schemas for invoices and line items."""
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from invoicing.models.invoice import InvoiceStatus, InvoiceType


class InvoiceItemCreate(BaseModel):
    """Schema for one requested line item."""

    item_name: str = Field(..., min_length=1, description="Item name")
    description: str | None = Field(default=None, description="Optional item description")
    quantity: int = Field(..., ge=1, description="Quantity (whole units)")
    price: Decimal = Field(..., gt=0, description="Unit price (any scale; line gross is rounded half-up)")
    discount: Decimal | None = Field(
        default=None, ge=0, description="Item-level discount (defaults to 0, rounded half-up)"
    )
    gst_rate: Decimal = Field(..., ge=0, max_digits=5, decimal_places=2, description="GST rate in percent (e.g., 18)")


class InvoiceCreate(BaseModel):
    """Schema for creating a new invoice."""

    customer_id: UUID | None = Field(default=None, description="Customer ID (optional, for walk-in sales)")
    title: str | None = Field(default=None, description="Invoice title")
    invoice_date: date = Field(..., description="Invoice date")
    due_date: date | None = Field(default=None, description="Payment due date")
    template_id: UUID | None = Field(default=None, description="Template used to render this invoice")
    notes: str | None = Field(default=None, description="Free-text notes")
    total_discount: Decimal | None = Field(
        default=None, description="Invoice-level discount applied after tax, rounded half-up"
    )
    items: list[InvoiceItemCreate] = Field(..., min_length=1, description="Line items (at least one)")


class InvoiceItem(BaseModel):
    """Schema for returning a line item."""

    id: UUID
    item_name: str
    description: str | None
    quantity: int
    price: Decimal
    discount: Decimal
    gst_rate: Decimal
    line_total: Decimal

    model_config = ConfigDict(from_attributes=True)


class Invoice(BaseModel):
    """Schema for returning invoice data."""

    id: UUID
    invoice_number: str
    business_id: UUID
    customer_id: UUID | None
    customer_name: str | None = None
    template_id: UUID | None
    title: str | None
    invoice_date: date
    due_date: date | None
    notes: str | None
    invoice_type: InvoiceType
    subtotal: Decimal
    total_discount: Decimal
    cgst: Decimal
    sgst: Decimal
    igst: Decimal
    tax_total: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    due_amount: Decimal
    status: InvoiceStatus
    items: list[InvoiceItem] = Field(default_factory=list)
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class InvoiceList(BaseModel):
    """Schema for paginated invoice list."""

    items: list[Invoice]
    total: int
    page: int
    page_size: int
