"""Payment recorded against an invoice."""
import enum

from sqlalchemy import Column, Date, Enum as SQLEnum, Numeric, String, Uuid

from invoicing.models.base import Base


class PaymentMethod(enum.Enum):
    """How the customer paid."""

    CASH = "CASH"
    BANK = "BANK"
    UPI = "UPI"
    CARD = "CARD"
    CHEQUE = "CHEQUE"
    OTHER = "OTHER"


class Payment(Base):
    """
    Manually recorded payment.

    invoice_id is a plain reference: deleting an invoice leaves its payments
    in place.
    """

    __tablename__ = "payments"

    invoice_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    payment_method = Column(SQLEnum(PaymentMethod), nullable=False)
    reference_id = Column(String, nullable=True)  # UPI ref, cheque number, card auth code
    bank_name = Column(String, nullable=True)
    account_details = Column(String, nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    payment_date = Column(Date, nullable=False, index=True)

    def __repr__(self) -> str:
        """String representation."""
        return f"<Payment(id={self.id}, invoice_id={self.invoice_id}, method={self.payment_method.value}, amount={self.amount})>"
