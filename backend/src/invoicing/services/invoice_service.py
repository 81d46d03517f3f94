"""Invoice service: creation, retrieval and deletion of invoices."""
from uuid import UUID

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from invoicing.config import settings
from invoicing.exceptions import ConflictError, ForbiddenError, NotFoundError
from invoicing.metrics import invoice_number_collisions_total, invoices_created_total, invoices_deleted_total
from invoicing.models.invoice import Invoice, InvoiceItem, InvoiceStatus
from invoicing.schemas.error import ErrorCode
from invoicing.schemas.invoice import Invoice as InvoiceView
from invoicing.schemas.invoice import InvoiceCreate
from invoicing.services.directory import BusinessContext, DirectoryService
from invoicing.services.invoice_number import InvoiceNumberAllocator
from invoicing.services.tax_engine import (
    InvoiceTotals,
    LineItemInput,
    compute_invoice_totals,
    determine_invoice_type,
)

logger = structlog.get_logger(__name__)


class InvoiceService:
    """Service layer for invoice operations.

    Every operation takes the requester's ``BusinessContext`` explicitly;
    owning the business is the only access rule.
    """

    def __init__(
        self,
        db: AsyncSession,
        allocator: InvoiceNumberAllocator | None = None,
        max_number_attempts: int | None = None,
    ):
        """Initialize invoice service with database session."""
        self.db = db
        self.directory = DirectoryService(db)
        self.allocator = allocator or InvoiceNumberAllocator(db)
        self.max_number_attempts = max_number_attempts or settings.invoice_number_max_attempts

    async def create_invoice(self, business: BusinessContext, data: InvoiceCreate) -> Invoice:
        """
        Create an invoice with its line items.

        Steps:
        1. Resolve and ownership-check the customer (if any)
        2. Fix the invoice type from the business/customer state codes
        3. Compute all money fields
        4. Allocate a unique invoice number and insert invoice + items together

        Args:
            business: Requester's business
            data: Invoice creation data

        Returns:
            Persisted invoice with items

        Raises:
            ValidationError: If items are missing or invalid
            NotFoundError: If the customer does not exist
            ForbiddenError: If the customer belongs to another business
            ConflictError: If no unique invoice number could be claimed
        """
        customer_state_code = None
        if data.customer_id is not None:
            customer = await self.directory.get_customer(data.customer_id)
            if not customer:
                raise NotFoundError(
                    f"Customer {data.customer_id} not found",
                    code=ErrorCode.CUSTOMER_NOT_FOUND,
                )
            if customer.business_id != business.id:
                raise ForbiddenError("Unauthorized access to customer")
            customer_state_code = customer.state_code

        invoice_type = determine_invoice_type(business.state_code, customer_state_code)

        items = [
            LineItemInput(
                item_name=item.item_name,
                description=item.description,
                quantity=item.quantity,
                price=item.price,
                discount=item.discount,
                gst_rate=item.gst_rate,
            )
            for item in data.items
        ]
        totals = compute_invoice_totals(items, invoice_type, data.total_discount)

        invoice = self._build_invoice(business, data, totals)
        await self._insert_with_unique_number(invoice)

        invoices_created_total.labels(invoice_type=invoice.invoice_type.value).inc()
        logger.info(
            "invoice_created",
            invoice_id=str(invoice.id),
            invoice_number=invoice.invoice_number,
            business_id=str(business.id),
            invoice_type=invoice.invoice_type.value,
            total_amount=str(invoice.total_amount),
            item_count=len(invoice.items),
        )
        return invoice

    async def get_invoice(self, business: BusinessContext, invoice_id: UUID) -> Invoice:
        """
        Get invoice by ID.

        Raises:
            NotFoundError: If the invoice does not exist
            ForbiddenError: If the invoice belongs to another business
        """
        result = await self.db.execute(select(Invoice).where(Invoice.id == invoice_id))
        invoice = result.scalar_one_or_none()
        if not invoice:
            raise NotFoundError(
                f"Invoice {invoice_id} not found",
                code=ErrorCode.INVOICE_NOT_FOUND,
            )
        if invoice.business_id != business.id:
            raise ForbiddenError("Unauthorized access to invoice")
        return invoice

    async def list_invoices(
        self,
        business: BusinessContext,
        status: InvoiceStatus | None = None,
        page: int = 1,
        page_size: int = 100,
    ) -> tuple[list[Invoice], int]:
        """
        List the business's invoices, newest first.

        Args:
            business: Requester's business
            status: Filter by status
            page: Page number (1-indexed)
            page_size: Items per page

        Returns:
            Tuple of (invoices, total_count)
        """
        query = select(Invoice).where(Invoice.business_id == business.id)
        if status:
            query = query.where(Invoice.status == status)

        count_query = select(func.count()).select_from(query.subquery())
        total = await self.db.scalar(count_query)

        query = query.order_by(Invoice.created_at.desc(), Invoice.invoice_number.desc())
        query = query.offset((page - 1) * page_size).limit(page_size)

        result = await self.db.execute(query)
        return list(result.scalars().all()), total or 0

    async def delete_invoice(self, business: BusinessContext, invoice_id: UUID) -> None:
        """
        Delete an invoice and its items.

        Payments recorded against the invoice are left in place.

        Raises:
            NotFoundError: If the invoice does not exist
            ForbiddenError: If the invoice belongs to another business
        """
        invoice = await self.get_invoice(business, invoice_id)
        invoice_number = invoice.invoice_number

        await self.db.delete(invoice)
        await self.db.flush()

        invoices_deleted_total.inc()
        logger.info(
            "invoice_deleted",
            invoice_id=str(invoice_id),
            invoice_number=invoice_number,
            business_id=str(business.id),
        )

    async def to_view(self, invoice: Invoice) -> InvoiceView:
        """Convert a persisted invoice into its response view."""
        views = await self.to_views([invoice])
        return views[0]

    async def to_views(self, invoices: list[Invoice]) -> list[InvoiceView]:
        """Convert invoices into response views, resolving customer names in one query."""
        names = await self.directory.get_customer_names(invoice.customer_id for invoice in invoices)
        return [
            InvoiceView.model_validate(invoice).model_copy(
                update={"customer_name": names.get(invoice.customer_id)}
            )
            for invoice in invoices
        ]

    def _build_invoice(self, business: BusinessContext, data: InvoiceCreate, totals: InvoiceTotals) -> Invoice:
        """Assemble the invoice aggregate from request data and computed totals."""
        invoice = Invoice(
            business_id=business.id,
            customer_id=data.customer_id,
            template_id=data.template_id,
            title=data.title,
            invoice_date=data.invoice_date,
            due_date=data.due_date,
            notes=data.notes,
            invoice_type=totals.invoice_type,
            subtotal=totals.subtotal,
            total_discount=totals.total_discount,
            cgst=totals.cgst,
            sgst=totals.sgst,
            igst=totals.igst,
            tax_total=totals.tax_total,
            total_amount=totals.total_amount,
            paid_amount=totals.paid_amount,
            due_amount=totals.due_amount,
            status=totals.status,
        )
        invoice.items = [
            InvoiceItem(
                position=position,
                item_name=line.item.item_name,
                description=line.item.description,
                quantity=line.item.quantity,
                price=line.item.price,
                discount=line.discount,
                gst_rate=line.item.gst_rate,
                line_total=line.line_total,
            )
            for position, line in enumerate(totals.lines)
        ]
        return invoice

    async def _insert_with_unique_number(self, invoice: Invoice) -> None:
        """
        Allocate a number and insert the aggregate, retrying on a unique-index clash.

        Each attempt runs in a savepoint so a clash rolls back only the
        insert, not the caller's transaction.
        """
        for attempt in range(1, self.max_number_attempts + 1):
            invoice.invoice_number = await self.allocator.allocate()
            try:
                async with self.db.begin_nested():
                    self.db.add(invoice)
                    await self.db.flush()
                return
            except IntegrityError:
                if not await self.allocator.exists(invoice.invoice_number):
                    raise
                invoice_number_collisions_total.inc()
                logger.warning(
                    "invoice_number_collision",
                    invoice_number=invoice.invoice_number,
                    attempt=attempt,
                )

        raise ConflictError(
            "Could not allocate a unique invoice number; please retry",
            code=ErrorCode.INVOICE_NUMBER_CONFLICT,
        )
