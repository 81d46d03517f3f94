"""Business profile owned by a registered user."""
from sqlalchemy import Column, String

from invoicing.models.base import Base


class Business(Base):
    """
    Invoicing business profile.

    Maintained by the profile service; the invoicing core only reads the
    id and the registered GST state code.
    """

    __tablename__ = "businesses"

    user_id = Column(String, nullable=False, unique=True, index=True)  # Identity subject (JWT "sub")
    business_name = Column(String, nullable=False)
    state_code = Column(String(2), nullable=False)  # Two-character GST state code
    gst_number = Column(String, nullable=True)

    def __repr__(self) -> str:
        """String representation."""
        return f"<Business(id={self.id}, name={self.business_name}, state_code={self.state_code})>"
