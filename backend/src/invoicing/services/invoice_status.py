"""Payment status derivation shared by invoice creation and the ledger."""
from decimal import Decimal

from invoicing.models.invoice import InvoiceStatus
from invoicing.utils.money import round_money


def derive_payment_state(total_amount: Decimal, paid_amount: Decimal) -> tuple[InvoiceStatus, Decimal]:
    """
    Derive status and due amount from the invoice total and cumulative payments.

    Overpayment is accepted: anything at or above the total is PAID and the
    due amount goes negative.

    Args:
        total_amount: Invoice total
        paid_amount: Sum of all payments recorded against the invoice

    Returns:
        Tuple of (status, due_amount)
    """
    if paid_amount == 0:
        status = InvoiceStatus.DUE
    elif paid_amount < total_amount:
        status = InvoiceStatus.PARTIAL
    else:
        status = InvoiceStatus.PAID
    return status, round_money(total_amount - paid_amount)
