"""Pydantic schemas for payment entities."""
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from invoicing.models.payment import PaymentMethod


class PaymentCreate(BaseModel):
    """Schema for recording a payment."""

    invoice_id: UUID
    payment_method: PaymentMethod = Field(..., description="CASH, BANK, UPI, CARD, CHEQUE or OTHER")
    reference_id: Optional[str] = Field(None, description="Transaction reference (UPI ref, cheque number, ...)")
    bank_name: Optional[str] = None
    account_details: Optional[str] = None
    amount: Decimal = Field(..., gt=0, description="Amount paid, rounded half-up to paise on save")
    payment_date: date

    @field_validator("payment_method", mode="before")
    @classmethod
    def normalize_method(cls, value: Any) -> Any:
        """Accept payment methods in any letter case."""
        if isinstance(value, str):
            return value.strip().upper()
        return value


class PaymentResponse(BaseModel):
    """Schema for payment response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    invoice_id: UUID
    payment_method: PaymentMethod
    reference_id: Optional[str] = None
    bank_name: Optional[str] = None
    account_details: Optional[str] = None
    amount: Decimal
    payment_date: date
    created_at: datetime


# Alias for symmetry with the invoice schemas
Payment = PaymentResponse
