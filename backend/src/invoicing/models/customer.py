"""Customer of a business."""
from sqlalchemy import Column, ForeignKey, String, Uuid

from invoicing.models.base import Base


class Customer(Base):
    """Customer record; state code decides intra- vs inter-state tax."""

    __tablename__ = "customers"

    business_id = Column(Uuid(as_uuid=True), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    state_code = Column(String(2), nullable=True)
    gstin = Column(String, nullable=True)

    def __repr__(self) -> str:
        """String representation."""
        return f"<Customer(id={self.id}, business_id={self.business_id}, state_code={self.state_code})>"
