"""Read-only lookups against the business and customer profile stores."""
from dataclasses import dataclass
from typing import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from invoicing.exceptions import NotFoundError
from invoicing.models.business import Business
from invoicing.models.customer import Customer
from invoicing.schemas.error import ErrorCode


@dataclass(frozen=True)
class BusinessContext:
    """The requester's business, resolved once per request."""

    id: UUID
    state_code: str


class DirectoryService:
    """Resolve requester identities and customers for the invoicing core."""

    def __init__(self, db: AsyncSession):
        """Initialize directory service with database session."""
        self.db = db

    async def get_business_for_user(self, user_id: str) -> BusinessContext:
        """
        Resolve the business owned by an authenticated user.

        Args:
            user_id: Identity subject from the access token

        Returns:
            BusinessContext for the user's business

        Raises:
            NotFoundError: If the user has no business profile
        """
        result = await self.db.execute(select(Business).where(Business.user_id == user_id))
        business = result.scalar_one_or_none()
        if not business:
            raise NotFoundError(
                "Business not found. Please create a business profile first.",
                code=ErrorCode.BUSINESS_NOT_FOUND,
            )
        return BusinessContext(id=business.id, state_code=business.state_code)

    async def get_customer(self, customer_id: UUID) -> Customer | None:
        """Get customer by ID."""
        result = await self.db.execute(select(Customer).where(Customer.id == customer_id))
        return result.scalar_one_or_none()

    async def get_customer_names(self, customer_ids: Iterable[UUID]) -> dict[UUID, str]:
        """Map customer IDs to display names in one query."""
        ids = {customer_id for customer_id in customer_ids if customer_id is not None}
        if not ids:
            return {}
        result = await self.db.execute(select(Customer.id, Customer.name).where(Customer.id.in_(ids)))
        return {row.id: row.name for row in result}
