"""Invoice number allocation."""
from datetime import datetime
from typing import Callable

import structlog
from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from invoicing.models.invoice import Invoice

logger = structlog.get_logger(__name__)

INVOICE_NUMBER_PREFIX = "INV-"


class InvoiceNumberAllocator:
    """
    Allocate human-readable, time-ordered invoice numbers.

    Format: ``INV-{yyyyMMddHHmmss}``, with ``-1``, ``-2``, ... appended when
    the base number is already taken (e.g. several invoices in one second).

    The existence check alone is racy: two transactions can both see the same
    candidate as free before either commits. The unique index on
    ``invoices.invoice_number`` is the real guarantee; ``InvoiceService``
    retries allocation when the insert hits it.
    """

    def __init__(self, db: AsyncSession, clock: Callable[[], datetime] | None = None):
        """
        Initialize allocator.

        Args:
            db: Database session used as the uniqueness oracle
            clock: Source of the current time (defaults to local now)
        """
        self.db = db
        self.clock = clock or datetime.now

    @staticmethod
    def base_number(moment: datetime) -> str:
        """Return the unsuffixed number for a timestamp, e.g. INV-20250131235959."""
        return f"{INVOICE_NUMBER_PREFIX}{moment.strftime('%Y%m%d%H%M%S')}"

    async def exists(self, invoice_number: str) -> bool:
        """Check whether an invoice already uses this number."""
        result = await self.db.execute(
            select(exists().where(Invoice.invoice_number == invoice_number))
        )
        return bool(result.scalar())

    async def allocate(self) -> str:
        """
        Find the first unused number for the current second.

        Returns:
            Invoice number not present in storage at the time of the check
        """
        base = self.base_number(self.clock())
        candidate = base
        counter = 1
        while await self.exists(candidate):
            candidate = f"{base}-{counter}"
            counter += 1

        if candidate != base:
            logger.debug("invoice_number_suffixed", base=base, invoice_number=candidate)
        return candidate
