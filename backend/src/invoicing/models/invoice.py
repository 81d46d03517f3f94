"""Invoice aggregate: invoice header plus owned line items."""
import enum

from sqlalchemy import (
    Column,
    Date,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import relationship

from invoicing.models.base import Base

MONEY = Numeric(12, 2)
UNIT_PRICE = Numeric(14, 4)


class InvoiceType(enum.Enum):
    """GST treatment fixed at creation."""

    INTRA = "INTRA"  # Same state: CGST + SGST
    INTER = "INTER"  # Different state: IGST


class InvoiceStatus(enum.Enum):
    """Payment status derived from the payment ledger."""

    DUE = "DUE"
    PARTIAL = "PARTIAL"
    PAID = "PAID"


class Invoice(Base):
    """
    Tax invoice issued by a business.

    Money fields and items are written once at creation. Only paid_amount,
    due_amount and status change afterwards, and only through the payment
    ledger.
    """

    __tablename__ = "invoices"

    invoice_number = Column(String, nullable=False, unique=True, index=True)  # INV-20250101120000[-n]
    business_id = Column(Uuid(as_uuid=True), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)
    customer_id = Column(Uuid(as_uuid=True), ForeignKey("customers.id"), nullable=True, index=True)
    template_id = Column(Uuid(as_uuid=True), nullable=True)

    title = Column(String, nullable=True)
    invoice_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)

    invoice_type = Column(SQLEnum(InvoiceType), nullable=False)

    subtotal = Column(MONEY, nullable=False)
    total_discount = Column(MONEY, nullable=False, default=0)
    cgst = Column(MONEY, nullable=False, default=0)
    sgst = Column(MONEY, nullable=False, default=0)
    igst = Column(MONEY, nullable=False, default=0)
    tax_total = Column(MONEY, nullable=False, default=0)
    total_amount = Column(MONEY, nullable=False)
    paid_amount = Column(MONEY, nullable=False, default=0)
    due_amount = Column(MONEY, nullable=False, default=0)

    status = Column(SQLEnum(InvoiceStatus), nullable=False, default=InvoiceStatus.DUE, index=True)
    version_id = Column(Integer, nullable=False)

    # Relationships
    items = relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.position",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Invoice(id={self.id}, number={self.invoice_number}, status={self.status.value}, "
            f"total_amount={self.total_amount})>"
        )


class InvoiceItem(Base):
    """Line item owned by exactly one invoice."""

    __tablename__ = "invoice_items"

    invoice_id = Column(Uuid(as_uuid=True), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    item_name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    quantity = Column(Integer, nullable=False)
    price = Column(UNIT_PRICE, nullable=False)
    discount = Column(MONEY, nullable=False, default=0)
    gst_rate = Column(Numeric(5, 2), nullable=False)
    line_total = Column(MONEY, nullable=False)

    invoice = relationship("Invoice", back_populates="items")

    def __repr__(self) -> str:
        """String representation."""
        return f"<InvoiceItem(id={self.id}, item_name={self.item_name}, line_total={self.line_total})>"
