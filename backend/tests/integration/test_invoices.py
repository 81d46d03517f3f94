"""Integration tests for invoice creation, retrieval and deletion."""
from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from invoicing.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from invoicing.models.customer import Customer
from invoicing.models.invoice import InvoiceItem, InvoiceStatus, InvoiceType
from invoicing.models.payment import Payment, PaymentMethod
from invoicing.schemas.error import ErrorCode
from invoicing.schemas.invoice import InvoiceCreate, InvoiceItemCreate
from invoicing.services.directory import BusinessContext
from invoicing.services.invoice_number import InvoiceNumberAllocator
from invoicing.services.invoice_service import InvoiceService

FIXED_NOW = datetime(2025, 1, 15, 10, 30, 45)


def _invoice_data(customer_id=None, **overrides) -> InvoiceCreate:
    data = {
        "customer_id": customer_id,
        "title": "January supplies",
        "invoice_date": date(2025, 1, 15),
        "items": [
            InvoiceItemCreate(item_name="Steel rod", quantity=2, price=Decimal("100.00"), gst_rate=Decimal("18")),
        ],
    }
    data.update(overrides)
    return InvoiceCreate(**data)


class _StaleAllocator(InvoiceNumberAllocator):
    """Hands out pre-taken numbers first, as a racing writer would."""

    def __init__(self, db: AsyncSession, clock, stale_numbers: list[str]):
        super().__init__(db, clock)
        self.stale_numbers = list(stale_numbers)

    async def allocate(self) -> str:
        if self.stale_numbers:
            return self.stale_numbers.pop(0)
        return await super().allocate()


@pytest.mark.asyncio
async def test_create_invoice_same_state_customer(
    db_session: AsyncSession, business_context: BusinessContext, local_customer: Customer
) -> None:
    """Same-state customer gets an INTRA invoice with CGST and SGST."""
    service = InvoiceService(db_session)

    invoice = await service.create_invoice(business_context, _invoice_data(local_customer.id))
    await db_session.commit()

    assert invoice.invoice_type == InvoiceType.INTRA
    assert invoice.subtotal == Decimal("200.00")
    assert invoice.tax_total == Decimal("36.00")
    assert invoice.cgst == Decimal("18.00")
    assert invoice.sgst == Decimal("18.00")
    assert invoice.igst == Decimal("0.00")
    assert invoice.total_amount == Decimal("236.00")
    assert invoice.paid_amount == Decimal("0.00")
    assert invoice.due_amount == Decimal("236.00")
    assert invoice.status == InvoiceStatus.DUE
    assert invoice.business_id == business_context.id
    assert invoice.invoice_number.startswith("INV-")
    assert len(invoice.items) == 1
    assert invoice.items[0].line_total == Decimal("236.00")


@pytest.mark.asyncio
async def test_create_invoice_interstate_customer(
    db_session: AsyncSession, business_context: BusinessContext, interstate_customer: Customer
) -> None:
    """Different-state customer gets an INTER invoice with IGST only."""
    service = InvoiceService(db_session)

    invoice = await service.create_invoice(business_context, _invoice_data(interstate_customer.id))

    assert invoice.invoice_type == InvoiceType.INTER
    assert invoice.igst == Decimal("36.00")
    assert invoice.cgst == Decimal("0.00")
    assert invoice.sgst == Decimal("0.00")
    assert invoice.total_amount == Decimal("236.00")


@pytest.mark.asyncio
async def test_create_invoice_without_customer_is_intra(
    db_session: AsyncSession, other_business_context: BusinessContext
) -> None:
    """No customer resolves to INTRA whatever the business's state."""
    service = InvoiceService(db_session)

    invoice = await service.create_invoice(other_business_context, _invoice_data())

    assert invoice.customer_id is None
    assert invoice.invoice_type == InvoiceType.INTRA


@pytest.mark.asyncio
async def test_create_invoice_customer_without_state_is_intra(
    db_session: AsyncSession, business_context: BusinessContext, stateless_customer: Customer
) -> None:
    service = InvoiceService(db_session)

    invoice = await service.create_invoice(business_context, _invoice_data(stateless_customer.id))

    assert invoice.invoice_type == InvoiceType.INTRA


@pytest.mark.asyncio
async def test_create_invoice_persists_items_in_order(
    db_session: AsyncSession, business_context: BusinessContext
) -> None:
    """Items are stored with their computed line totals, in request order."""
    service = InvoiceService(db_session)
    data = _invoice_data(
        items=[
            InvoiceItemCreate(item_name="Steel rod", quantity=2, price=Decimal("100.00"), gst_rate=Decimal("18")),
            InvoiceItemCreate(
                item_name="Bolts",
                quantity=3,
                price=Decimal("50.00"),
                discount=Decimal("10.00"),
                gst_rate=Decimal("12"),
            ),
        ],
        total_discount=Decimal("2.80"),
    )

    invoice = await service.create_invoice(business_context, data)
    await db_session.commit()

    result = await db_session.execute(
        select(InvoiceItem).where(InvoiceItem.invoice_id == invoice.id).order_by(InvoiceItem.position)
    )
    items = list(result.scalars().all())
    assert [item.item_name for item in items] == ["Steel rod", "Bolts"]
    assert items[0].discount == Decimal("0.00")
    assert items[1].discount == Decimal("10.00")
    assert items[1].line_total == Decimal("156.80")
    assert invoice.total_discount == Decimal("2.80")
    assert invoice.total_amount == Decimal("390.00")


@pytest.mark.asyncio
async def test_create_invoice_missing_customer(
    db_session: AsyncSession, business_context: BusinessContext
) -> None:
    service = InvoiceService(db_session)

    with pytest.raises(NotFoundError) as exc_info:
        await service.create_invoice(business_context, _invoice_data(uuid4()))

    assert exc_info.value.code == ErrorCode.CUSTOMER_NOT_FOUND


@pytest.mark.asyncio
async def test_create_invoice_foreign_customer_forbidden(
    db_session: AsyncSession, business_context: BusinessContext, foreign_customer: Customer
) -> None:
    """A customer of another business cannot be invoiced, and nothing is written."""
    service = InvoiceService(db_session)

    with pytest.raises(ForbiddenError):
        await service.create_invoice(business_context, _invoice_data(foreign_customer.id))

    _, total = await service.list_invoices(business_context)
    assert total == 0


@pytest.mark.asyncio
async def test_create_invoice_invalid_item_writes_nothing(
    db_session: AsyncSession, business_context: BusinessContext
) -> None:
    """Engine-level validation runs before any insert."""
    service = InvoiceService(db_session)
    data = _invoice_data()
    data.items[0].quantity = 0

    with pytest.raises(ValidationError):
        await service.create_invoice(business_context, data)

    count = await db_session.scalar(select(func.count()).select_from(InvoiceItem))
    assert count == 0


@pytest.mark.asyncio
async def test_get_invoice(db_session: AsyncSession, business_context: BusinessContext) -> None:
    service = InvoiceService(db_session)
    created = await service.create_invoice(business_context, _invoice_data())
    await db_session.commit()

    invoice = await service.get_invoice(business_context, created.id)

    assert invoice.id == created.id
    assert invoice.invoice_number == created.invoice_number


@pytest.mark.asyncio
async def test_get_invoice_not_found(db_session: AsyncSession, business_context: BusinessContext) -> None:
    service = InvoiceService(db_session)

    with pytest.raises(NotFoundError) as exc_info:
        await service.get_invoice(business_context, uuid4())

    assert exc_info.value.code == ErrorCode.INVOICE_NOT_FOUND


@pytest.mark.asyncio
async def test_get_invoice_of_other_business_forbidden(
    db_session: AsyncSession,
    business_context: BusinessContext,
    other_business_context: BusinessContext,
) -> None:
    service = InvoiceService(db_session)
    created = await service.create_invoice(other_business_context, _invoice_data())
    await db_session.commit()

    with pytest.raises(ForbiddenError):
        await service.get_invoice(business_context, created.id)


@pytest.mark.asyncio
async def test_list_invoices_newest_first_and_scoped(
    db_session: AsyncSession,
    business_context: BusinessContext,
    other_business_context: BusinessContext,
) -> None:
    """Only the requester's invoices are listed, most recent first."""
    service = InvoiceService(db_session)
    first = await service.create_invoice(business_context, _invoice_data(title="first"))
    second = await service.create_invoice(business_context, _invoice_data(title="second"))
    await service.create_invoice(other_business_context, _invoice_data(title="foreign"))
    await db_session.commit()

    invoices, total = await service.list_invoices(business_context)

    assert total == 2
    assert [invoice.id for invoice in invoices] == [second.id, first.id]


@pytest.mark.asyncio
async def test_list_invoices_status_filter_and_paging(
    db_session: AsyncSession, business_context: BusinessContext
) -> None:
    service = InvoiceService(db_session)
    for _ in range(3):
        await service.create_invoice(business_context, _invoice_data())
    await db_session.commit()

    paid, paid_total = await service.list_invoices(business_context, status=InvoiceStatus.PAID)
    page, total = await service.list_invoices(business_context, page=2, page_size=2)

    assert paid == [] and paid_total == 0
    assert total == 3
    assert len(page) == 1


@pytest.mark.asyncio
async def test_to_views_resolve_customer_names(
    db_session: AsyncSession, business_context: BusinessContext, local_customer: Customer
) -> None:
    service = InvoiceService(db_session)
    with_customer = await service.create_invoice(business_context, _invoice_data(local_customer.id))
    walk_in = await service.create_invoice(business_context, _invoice_data())

    views = await service.to_views([with_customer, walk_in])

    assert views[0].customer_name == "Pune Retail LLP"
    assert views[1].customer_name is None
    assert views[0].items[0].line_total == Decimal("236.00")


@pytest.mark.asyncio
async def test_delete_invoice_removes_items_and_keeps_payments(
    db_session: AsyncSession, business_context: BusinessContext
) -> None:
    """Line items go with the invoice; payments are left behind."""
    service = InvoiceService(db_session)
    invoice = await service.create_invoice(business_context, _invoice_data())
    db_session.add(
        Payment(
            invoice_id=invoice.id,
            payment_method=PaymentMethod.CASH,
            amount=Decimal("50.00"),
            payment_date=date(2025, 1, 16),
        )
    )
    await db_session.commit()
    invoice_id = invoice.id

    await service.delete_invoice(business_context, invoice_id)
    await db_session.commit()

    item_count = await db_session.scalar(
        select(func.count()).select_from(InvoiceItem).where(InvoiceItem.invoice_id == invoice_id)
    )
    payment_count = await db_session.scalar(
        select(func.count()).select_from(Payment).where(Payment.invoice_id == invoice_id)
    )
    assert item_count == 0
    assert payment_count == 1
    with pytest.raises(NotFoundError):
        await service.get_invoice(business_context, invoice_id)


@pytest.mark.asyncio
async def test_delete_invoice_of_other_business_forbidden(
    db_session: AsyncSession,
    business_context: BusinessContext,
    other_business_context: BusinessContext,
) -> None:
    service = InvoiceService(db_session)
    invoice = await service.create_invoice(other_business_context, _invoice_data())
    await db_session.commit()

    with pytest.raises(ForbiddenError):
        await service.delete_invoice(business_context, invoice.id)


class TestInvoiceNumbers:
    """Invoice number allocation."""

    def test_base_number_format(self) -> None:
        assert InvoiceNumberAllocator.base_number(FIXED_NOW) == "INV-20250115103045"

    @pytest.mark.asyncio
    async def test_same_second_invoices_get_suffixes(
        self, db_session: AsyncSession, business_context: BusinessContext
    ) -> None:
        """Invoices created within one second get -1, -2, ... suffixes."""
        allocator = InvoiceNumberAllocator(db_session, clock=lambda: FIXED_NOW)
        service = InvoiceService(db_session, allocator=allocator)

        numbers = []
        for _ in range(4):
            invoice = await service.create_invoice(business_context, _invoice_data())
            numbers.append(invoice.invoice_number)
        await db_session.commit()

        assert numbers == [
            "INV-20250115103045",
            "INV-20250115103045-1",
            "INV-20250115103045-2",
            "INV-20250115103045-3",
        ]

    @pytest.mark.asyncio
    async def test_unique_index_clash_is_retried(
        self, db_session: AsyncSession, business_context: BusinessContext
    ) -> None:
        """A number taken between check and insert is retried, not surfaced."""
        service = InvoiceService(db_session, allocator=InvoiceNumberAllocator(db_session, clock=lambda: FIXED_NOW))
        taken = await service.create_invoice(business_context, _invoice_data())
        await db_session.commit()

        racing = InvoiceService(
            db_session,
            allocator=_StaleAllocator(db_session, lambda: FIXED_NOW, [taken.invoice_number]),
        )
        invoice = await racing.create_invoice(business_context, _invoice_data())
        await db_session.commit()

        assert invoice.invoice_number == "INV-20250115103045-1"
        _, total = await service.list_invoices(business_context)
        assert total == 2

    @pytest.mark.asyncio
    async def test_persistent_clash_raises_conflict(
        self, db_session: AsyncSession, business_context: BusinessContext
    ) -> None:
        """Giving up after the configured attempts leaves no partial invoice."""
        service = InvoiceService(db_session, allocator=InvoiceNumberAllocator(db_session, clock=lambda: FIXED_NOW))
        taken = await service.create_invoice(business_context, _invoice_data())
        await db_session.commit()

        racing = InvoiceService(
            db_session,
            allocator=_StaleAllocator(db_session, lambda: FIXED_NOW, [taken.invoice_number] * 3),
            max_number_attempts=3,
        )
        with pytest.raises(ConflictError) as exc_info:
            await racing.create_invoice(business_context, _invoice_data())

        assert exc_info.value.code == ErrorCode.INVOICE_NUMBER_CONFLICT
        _, total = await service.list_invoices(business_context)
        assert total == 1
