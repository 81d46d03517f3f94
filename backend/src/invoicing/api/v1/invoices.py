"""Invoice API endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from invoicing.api.deps import get_current_business, get_db
from invoicing.models.invoice import InvoiceStatus
from invoicing.schemas.invoice import Invoice, InvoiceCreate, InvoiceList
from invoicing.services.directory import BusinessContext
from invoicing.services.invoice_service import InvoiceService

router = APIRouter(prefix="/invoices", tags=["Invoices"])


@router.post("", response_model=Invoice, status_code=status.HTTP_201_CREATED)
async def create_invoice(
    invoice_data: InvoiceCreate,
    business: BusinessContext = Depends(get_current_business),
    db: AsyncSession = Depends(get_db),
) -> Invoice:
    """
    Create a tax invoice.

    - **customer_id**: optional; must belong to your business
    - **items**: at least one line item with quantity, price, optional discount and GST rate
    - **total_discount**: optional invoice-level discount applied after tax

    The invoice type is fixed here: **INTRA** (CGST + SGST) when the customer's
    state matches your business's state or no customer state is known,
    **INTER** (IGST) otherwise. New invoices start as **DUE**.
    """
    service = InvoiceService(db)
    invoice = await service.create_invoice(business, invoice_data)
    await db.commit()
    return await service.to_view(invoice)


@router.get("", response_model=InvoiceList)
async def list_invoices(
    status: InvoiceStatus | None = Query(default=None, description="Filter by status"),
    page: int = Query(default=1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(default=100, ge=1, le=1000, description="Items per page (max 1000)"),
    business: BusinessContext = Depends(get_current_business),
    db: AsyncSession = Depends(get_db),
) -> InvoiceList:
    """
    List your business's invoices, newest first.

    Filter by **status** (DUE, PARTIAL, PAID) and paginate with **page** / **page_size**.
    """
    service = InvoiceService(db)
    invoices, total = await service.list_invoices(business, status=status, page=page, page_size=page_size)

    return InvoiceList(
        items=await service.to_views(invoices),
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{invoice_id}", response_model=Invoice)
async def get_invoice(
    invoice_id: UUID,
    business: BusinessContext = Depends(get_current_business),
    db: AsyncSession = Depends(get_db),
) -> Invoice:
    """
    Get invoice by ID, including line items and payment totals.

    **Status Meanings**:
    - **DUE**: nothing paid yet
    - **PARTIAL**: some payment recorded, balance outstanding
    - **PAID**: payments cover the total (overpayment shows as a negative due amount)
    """
    service = InvoiceService(db)
    invoice = await service.get_invoice(business, invoice_id)
    return await service.to_view(invoice)


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_invoice(
    invoice_id: UUID,
    business: BusinessContext = Depends(get_current_business),
    db: AsyncSession = Depends(get_db),
) -> Response:
    """
    Delete an invoice and its line items.

    Payments already recorded against the invoice are kept.
    """
    service = InvoiceService(db)
    await service.delete_invoice(business, invoice_id)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
