"""GST computation for invoice line items.

Pure functions only: no database access, no logging. Every intermediate
money value is rounded half-up to two decimals before it feeds the next step,
so the same request always yields the same stored figures.

Per item::

    gross      = round(price * quantity)
    net        = gross - round(discount)
    tax        = round(net * gst_rate / 100)
    line_total = net + tax

Invoice::

    subtotal     = sum(net)
    tax_total    = sum(tax)
    total_amount = subtotal + tax_total - overall_discount

Intra-state invoices split ``tax_total`` into equal CGST and SGST halves;
inter-state invoices carry it all as IGST.
"""
from decimal import Decimal
from typing import Sequence, assert_never

from pydantic import BaseModel, ConfigDict

from invoicing.exceptions import ValidationError
from invoicing.models.invoice import InvoiceStatus, InvoiceType
from invoicing.schemas.error import ErrorCode
from invoicing.services.invoice_status import derive_payment_state
from invoicing.utils.money import ZERO, Numeric, percent_of, round_money, to_decimal


class LineItemInput(BaseModel):
    """One requested line item."""

    model_config = ConfigDict(frozen=True)

    item_name: str
    quantity: int
    price: Decimal
    gst_rate: Decimal
    discount: Decimal | None = None
    description: str | None = None


class LineItemResult(BaseModel):
    """Computed figures for one line item."""

    model_config = ConfigDict(frozen=True)

    item: LineItemInput
    gross: Decimal
    discount: Decimal
    net: Decimal
    tax: Decimal
    line_total: Decimal


class TaxSplit(BaseModel):
    """GST components of an invoice."""

    model_config = ConfigDict(frozen=True)

    cgst: Decimal
    sgst: Decimal
    igst: Decimal


class InvoiceTotals(BaseModel):
    """Everything the invoice header stores about money at creation time."""

    model_config = ConfigDict(frozen=True)

    lines: tuple[LineItemResult, ...]
    invoice_type: InvoiceType
    subtotal: Decimal
    item_discount_total: Decimal
    total_discount: Decimal
    tax_total: Decimal
    cgst: Decimal
    sgst: Decimal
    igst: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    due_amount: Decimal
    status: InvoiceStatus


def is_same_state(business_state_code: str, customer_state_code: str | None) -> bool:
    """
    Decide whether a sale is intra-state.

    A missing customer, or a customer without a recorded state, is treated as
    same-state. Codes are compared as opaque strings.
    """
    if customer_state_code is None:
        return True
    return business_state_code == customer_state_code


def determine_invoice_type(business_state_code: str, customer_state_code: str | None) -> InvoiceType:
    """Map the business/customer state codes to INTRA or INTER."""
    if is_same_state(business_state_code, customer_state_code):
        return InvoiceType.INTRA
    return InvoiceType.INTER


def validate_line_items(items: Sequence[LineItemInput]) -> None:
    """
    Reject item lists the engine cannot price.

    Raises:
        ValidationError: On an empty list, blank name, quantity below 1,
            non-positive price, or negative discount / GST rate
    """
    if not items:
        raise ValidationError(
            "Invoice must have at least one item",
            code=ErrorCode.MISSING_REQUIRED_FIELD,
            field="items",
            value=[],
        )

    for index, item in enumerate(items):
        prefix = f"items[{index}]"
        if not item.item_name or not item.item_name.strip():
            raise ValidationError(
                "Item name is required",
                code=ErrorCode.MISSING_REQUIRED_FIELD,
                field=f"{prefix}.item_name",
                value=item.item_name,
            )
        if isinstance(item.quantity, bool) or not isinstance(item.quantity, int) or item.quantity < 1:
            raise ValidationError(
                "Quantity must be at least 1",
                code=ErrorCode.INVALID_QUANTITY,
                field=f"{prefix}.quantity",
                value=item.quantity,
            )
        if item.price is None or to_decimal(item.price) <= 0:
            raise ValidationError(
                "Price must be greater than 0",
                code=ErrorCode.INVALID_AMOUNT,
                field=f"{prefix}.price",
                value=str(item.price),
            )
        if item.discount is not None and to_decimal(item.discount) < 0:
            raise ValidationError(
                "Discount must be 0 or greater",
                code=ErrorCode.INVALID_AMOUNT,
                field=f"{prefix}.discount",
                value=str(item.discount),
            )
        if item.gst_rate is None or to_decimal(item.gst_rate) < 0:
            raise ValidationError(
                "GST rate must be 0 or greater",
                code=ErrorCode.INVALID_RATE,
                field=f"{prefix}.gst_rate",
                value=str(item.gst_rate),
            )


def compute_line(item: LineItemInput) -> LineItemResult:
    """Price a single, already validated, line item."""
    gross = round_money(to_decimal(item.price) * item.quantity)
    discount = round_money(to_decimal(item.discount))
    net = gross - discount
    tax = percent_of(net, to_decimal(item.gst_rate))
    return LineItemResult(
        item=item,
        gross=gross,
        discount=discount,
        net=net,
        tax=tax,
        line_total=net + tax,
    )


def split_tax(tax_total: Decimal, invoice_type: InvoiceType) -> TaxSplit:
    """Split aggregate GST into CGST/SGST or IGST."""
    if invoice_type is InvoiceType.INTRA:
        half = round_money(tax_total / 2)
        return TaxSplit(cgst=half, sgst=half, igst=ZERO)
    elif invoice_type is InvoiceType.INTER:
        return TaxSplit(cgst=ZERO, sgst=ZERO, igst=round_money(tax_total))
    else:
        assert_never(invoice_type)


def compute_invoice_totals(
    items: Sequence[LineItemInput],
    invoice_type: InvoiceType,
    overall_discount: Numeric | None = None,
) -> InvoiceTotals:
    """
    Compute every money field of a new invoice.

    Args:
        items: Line items in invoice order
        invoice_type: INTRA for same-state sales, INTER otherwise
        overall_discount: Invoice-level discount, independent of item discounts

    Returns:
        InvoiceTotals with paid_amount 0, due_amount equal to the total and
        status DUE

    Raises:
        ValidationError: If the item list is empty or an item is invalid
    """
    validate_line_items(items)

    lines = tuple(compute_line(item) for item in items)

    subtotal = sum((line.net for line in lines), ZERO)
    tax_total = sum((line.tax for line in lines), ZERO)
    item_discount_total = sum((line.discount for line in lines), ZERO)

    split = split_tax(tax_total, invoice_type)

    total_discount = round_money(to_decimal(overall_discount))
    total_amount = subtotal + tax_total - total_discount
    paid_amount = ZERO
    status, due_amount = derive_payment_state(total_amount, paid_amount)

    return InvoiceTotals(
        lines=lines,
        invoice_type=invoice_type,
        subtotal=subtotal,
        item_discount_total=item_discount_total,
        total_discount=total_discount,
        tax_total=tax_total,
        cgst=split.cgst,
        sgst=split.sgst,
        igst=split.igst,
        total_amount=total_amount,
        paid_amount=paid_amount,
        due_amount=due_amount,
        status=status,
    )
