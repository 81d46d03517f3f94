"""SQLAlchemy ORM models for the invoicing service."""
# Import all models here to ensure they are registered with Alembic

from invoicing.models.base import Base
from invoicing.models.business import Business
from invoicing.models.customer import Customer
from invoicing.models.invoice import Invoice, InvoiceItem, InvoiceStatus, InvoiceType
from invoicing.models.payment import Payment, PaymentMethod

__all__ = [
    "Base",
    "Business",
    "Customer",
    "Invoice",
    "InvoiceItem",
    "InvoiceStatus",
    "InvoiceType",
    "Payment",
    "PaymentMethod",
]
