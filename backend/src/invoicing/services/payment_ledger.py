"""Payment ledger: records payments and reconciles invoice balances."""
from typing import List, Optional
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from invoicing.config import settings
from invoicing.exceptions import ConflictError, NotFoundError
from invoicing.metrics import ledger_conflicts_total, payments_deleted_total, payments_recorded_total
from invoicing.models.invoice import Invoice
from invoicing.models.payment import Payment
from invoicing.schemas.error import ErrorCode
from invoicing.schemas.payment import PaymentCreate
from invoicing.services.invoice_status import derive_payment_state
from invoicing.utils.money import ZERO, round_money

logger = structlog.get_logger(__name__)


class PaymentLedger:
    """
    Service for payment recording and invoice reconciliation.

    Paid amount, due amount and status are always rebuilt from the full set
    of payment rows, never adjusted by deltas, so any drift is corrected on
    the next mutation. Mutations lock the invoice row first; payments on
    different invoices do not block each other.
    """

    def __init__(self, db: AsyncSession, max_attempts: Optional[int] = None):
        """
        Initialize payment ledger.

        Args:
            db: Database session
            max_attempts: Reconciliation attempts before ConflictError
        """
        self.db = db
        self.max_attempts = max_attempts or settings.ledger_max_attempts

    async def add_payment(self, data: PaymentCreate) -> Payment:
        """
        Record a payment and reconcile its invoice.

        Payments are not capped at the outstanding amount; overpayment leaves
        a negative due amount on a PAID invoice.

        Args:
            data: Payment details

        Returns:
            Persisted payment

        Raises:
            NotFoundError: If the invoice does not exist
            ConflictError: If the invoice kept changing underneath us
        """
        invoice = await self._lock_invoice(data.invoice_id)
        if not invoice:
            raise NotFoundError(
                f"Invoice {data.invoice_id} not found",
                code=ErrorCode.INVOICE_NOT_FOUND,
            )

        payment = Payment(
            invoice_id=invoice.id,
            payment_method=data.payment_method,
            reference_id=data.reference_id,
            bank_name=data.bank_name,
            account_details=data.account_details,
            amount=round_money(data.amount),
            payment_date=data.payment_date,
        )
        self.db.add(payment)
        await self.db.flush()

        await self._reconcile(invoice)

        payments_recorded_total.labels(payment_method=payment.payment_method.value).inc()
        logger.info(
            "payment_recorded",
            payment_id=str(payment.id),
            invoice_id=str(invoice.id),
            payment_method=payment.payment_method.value,
            amount=str(payment.amount),
        )
        return payment

    async def delete_payment(self, payment_id: UUID) -> None:
        """
        Delete a payment and reconcile its invoice.

        Payments whose invoice has already been deleted are removed without
        reconciliation.

        Args:
            payment_id: Payment UUID

        Raises:
            NotFoundError: If the payment does not exist
            ConflictError: If the invoice kept changing underneath us
        """
        payment = await self.get_payment(payment_id)
        invoice = await self._lock_invoice(payment.invoice_id)

        await self.db.delete(payment)
        await self.db.flush()

        if invoice:
            await self._reconcile(invoice)
        else:
            logger.warning(
                "orphan_payment_deleted",
                payment_id=str(payment_id),
                invoice_id=str(payment.invoice_id),
            )

        payments_deleted_total.inc()
        logger.info("payment_deleted", payment_id=str(payment_id), invoice_id=str(payment.invoice_id))

    async def get_payment(self, payment_id: UUID) -> Payment:
        """
        Get payment by ID.

        Raises:
            NotFoundError: If the payment does not exist
        """
        result = await self.db.execute(select(Payment).where(Payment.id == payment_id))
        payment = result.scalar_one_or_none()
        if not payment:
            raise NotFoundError(
                f"Payment {payment_id} not found",
                code=ErrorCode.PAYMENT_NOT_FOUND,
            )
        return payment

    async def list_payments(self, invoice_id: UUID) -> List[Payment]:
        """
        List payments for an invoice, latest payment date first.

        Args:
            invoice_id: Invoice UUID

        Returns:
            Payments (empty if the invoice has none or does not exist)
        """
        result = await self.db.execute(
            select(Payment)
            .where(Payment.invoice_id == invoice_id)
            .order_by(Payment.payment_date.desc(), Payment.created_at.desc())
        )
        return list(result.scalars().all())

    async def recompute(self, invoice: Invoice) -> Invoice:
        """
        Rebuild paid amount, due amount and status from all payment rows.

        Idempotent: calling it again without a payment change leaves the
        invoice untouched.

        Args:
            invoice: Invoice to reconcile (should be locked by the caller)

        Returns:
            The reconciled invoice
        """
        result = await self.db.execute(select(Payment.amount).where(Payment.invoice_id == invoice.id))
        paid_amount = round_money(sum((amount for amount in result.scalars()), ZERO))

        status, due_amount = derive_payment_state(invoice.total_amount, paid_amount)

        invoice.paid_amount = paid_amount
        invoice.due_amount = due_amount
        invoice.status = status
        await self.db.flush()

        logger.debug(
            "invoice_payments_reconciled",
            invoice_id=str(invoice.id),
            paid_amount=str(paid_amount),
            due_amount=str(due_amount),
            status=status.value,
        )
        return invoice

    async def _lock_invoice(self, invoice_id: UUID) -> Optional[Invoice]:
        """Load an invoice with a row lock held until the transaction ends."""
        result = await self.db.execute(
            select(Invoice)
            .where(Invoice.id == invoice_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _reconcile(self, invoice: Invoice) -> Invoice:
        """Recompute inside a savepoint, retrying when the version check fails."""
        invoice_id = invoice.id
        for attempt in range(1, self.max_attempts + 1):
            try:
                async with self.db.begin_nested():
                    return await self.recompute(invoice)
            except StaleDataError:
                ledger_conflicts_total.inc()
                logger.warning("ledger_conflict_retry", invoice_id=str(invoice_id), attempt=attempt)
                invoice = await self._lock_invoice(invoice_id)
                if not invoice:
                    raise NotFoundError(
                        f"Invoice {invoice_id} not found",
                        code=ErrorCode.INVOICE_NOT_FOUND,
                    )

        raise ConflictError(
            f"Invoice {invoice_id} was updated concurrently; payment not reconciled",
            code=ErrorCode.LEDGER_CONFLICT,
        )
