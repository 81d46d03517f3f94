"""Payment endpoints for recording and reconciling invoice payments."""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from invoicing.api.deps import get_current_business, get_db
from invoicing.schemas.payment import PaymentCreate, PaymentResponse
from invoicing.services.directory import BusinessContext
from invoicing.services.payment_ledger import PaymentLedger

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def add_payment(
    payment_data: PaymentCreate,
    business: BusinessContext = Depends(get_current_business),
    db: AsyncSession = Depends(get_db),
) -> PaymentResponse:
    """
    Record a payment against an invoice.

    The invoice's paid amount, due amount and status are recomputed from all
    of its payments. Amounts above the outstanding balance are accepted.
    """
    ledger = PaymentLedger(db)
    payment = await ledger.add_payment(payment_data)
    await db.commit()
    return PaymentResponse.model_validate(payment)


@router.get("/invoice/{invoice_id}", response_model=List[PaymentResponse])
async def list_invoice_payments(
    invoice_id: UUID,
    business: BusinessContext = Depends(get_current_business),
    db: AsyncSession = Depends(get_db),
) -> List[PaymentResponse]:
    """List payments for an invoice, latest payment date first."""
    ledger = PaymentLedger(db)
    payments = await ledger.list_payments(invoice_id)
    return [PaymentResponse.model_validate(p) for p in payments]


@router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment(
    payment_id: UUID,
    business: BusinessContext = Depends(get_current_business),
    db: AsyncSession = Depends(get_db),
) -> PaymentResponse:
    """Get payment details by ID."""
    ledger = PaymentLedger(db)
    payment = await ledger.get_payment(payment_id)
    return PaymentResponse.model_validate(payment)


@router.delete("/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_payment(
    payment_id: UUID,
    business: BusinessContext = Depends(get_current_business),
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Delete a payment and recompute its invoice's balance and status."""
    ledger = PaymentLedger(db)
    await ledger.delete_payment(payment_id)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
