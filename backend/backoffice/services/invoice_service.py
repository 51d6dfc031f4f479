"""
Invoice Service - billing documents derived from orders or entered by hand.

Every invoice carries a flat 21% tax on its subtotal and is due 30 days after
issue. At most one invoice may reference a given order; the check is made
when the invoice is created.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from ..models import (
    BatchResult,
    GenerationType,
    Invoice,
    InvoiceId,
    InvoiceItem,
    InvoiceStatus,
    ItemOutcome,
    Order,
    OrderStatus,
)
from ..validation import (
    DuplicateLinkError,
    FulfillmentError,
    NotFoundError,
    ReferentialIntegrityError,
    normalize_line_items,
    parse_enum,
)
from backoffice.time_utils import add_days, utcnow
from . import record_store
from .document_service import generate_invoice_number, new_record_id
from .lookup_service import product_index, product_labels

logger = logging.getLogger(__name__)


TAX_RATE = Decimal("0.21")
INVOICE_DUE_DAYS = 30


def compute_taxes(subtotal_cents: int) -> int:
    """Tax in cents, rounded half-up to the cent."""
    return int((Decimal(subtotal_cents) * TAX_RATE).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _load_invoices() -> list[Invoice]:
    return [Invoice.from_dict(record) for record in record_store.read_all(record_store.INVOICES)]


def _save_invoices(invoices: list[Invoice]) -> None:
    record_store.write_all(record_store.INVOICES, [invoice.to_dict() for invoice in invoices])


def _load_orders() -> list[Order]:
    return [Order.from_dict(record) for record in record_store.read_all(record_store.ORDERS)]


def _new_invoice(
    *,
    order_id: str,
    store_id: str,
    seller_id: str,
    items: list[InvoiceItem],
    subtotal_cents: int,
    created_by: str,
    generation_type: GenerationType,
    notes: str | None = None,
) -> Invoice:
    invoice_id = InvoiceId(new_record_id("invoice"))
    for item in items:
        item.invoice_id = invoice_id

    taxes = compute_taxes(subtotal_cents)
    issue_date = utcnow()
    return Invoice(
        id=invoice_id,
        invoice_number=generate_invoice_number(),
        order_id=order_id,
        store_id=store_id,
        seller_id=seller_id,
        status=InvoiceStatus.DRAFT,
        generation_type=generation_type,
        subtotal_cents=subtotal_cents,
        taxes_cents=taxes,
        total_cents=subtotal_cents + taxes,
        issue_date=issue_date,
        due_date=add_days(issue_date, INVOICE_DUE_DAYS),
        created_by=created_by,
        created_at=issue_date,
        updated_at=issue_date,
        items=items,
        notes=notes,
    )


def create_invoice_from_order(
    order_id: str,
    created_by: str,
    generation_type: GenerationType | str = GenerationType.MANUAL,
) -> Invoice:
    """
    Bill an order. Lines are copied from the order as they stand now.

    Raises NotFoundError if the order does not exist and DuplicateLinkError if
    an invoice already references it.
    """
    generation_type = parse_enum(GenerationType, generation_type, "generation_type")

    order = next((o for o in _load_orders() if o.id == order_id), None)
    if order is None:
        raise NotFoundError("Order not found", details={"order_id": order_id})

    invoices = _load_invoices()
    existing = next((inv for inv in invoices if inv.order_id == order_id), None)
    if existing is not None:
        raise DuplicateLinkError(
            "An invoice already exists for this order",
            details={"order_id": order_id, "invoice_id": existing.id},
        )

    items = [
        InvoiceItem(
            id=new_record_id("inv-item"),
            invoice_id="",
            product_id=item.product_id,
            quantity=item.quantity,
            unit_price_cents=item.unit_price_cents,
            subtotal_cents=item.subtotal_cents,
            product_name=item.product_name,
            product_brand=item.product_brand,
        )
        for item in order.items
    ]

    invoice = _new_invoice(
        order_id=order.id,
        store_id=order.store_id,
        seller_id=order.salesperson_id,
        items=items,
        subtotal_cents=order.subtotal_cents,
        created_by=created_by,
        generation_type=generation_type,
    )

    invoices.append(invoice)
    _save_invoices(invoices)
    return invoice


def create_manual_invoice(
    store_id: str,
    seller_id: str,
    items: list[dict],
    created_by: str,
    notes: str | None = None,
) -> Invoice:
    """Invoice with no backing order (order_id is "")."""
    lines = normalize_line_items(items)
    products = product_index()

    invoice_items = []
    for line in lines:
        name, brand = product_labels(products.get(line["product_id"]))
        invoice_items.append(InvoiceItem(
            id=new_record_id("inv-item"),
            invoice_id="",
            product_id=line["product_id"],
            quantity=line["quantity"],
            unit_price_cents=line["unit_price_cents"],
            subtotal_cents=line["quantity"] * line["unit_price_cents"],
            product_name=name,
            product_brand=brand,
        ))

    invoices = _load_invoices()
    invoice = _new_invoice(
        order_id="",
        store_id=store_id,
        seller_id=seller_id,
        items=invoice_items,
        subtotal_cents=sum(item.subtotal_cents for item in invoice_items),
        created_by=created_by,
        generation_type=GenerationType.MANUAL,
        notes=notes,
    )

    invoices.append(invoice)
    _save_invoices(invoices)
    return invoice


def update_invoice_status(
    invoice_id: str,
    status: InvoiceStatus | str,
    paid_date: datetime | None = None,
) -> Invoice | None:
    """
    Set the invoice status. Moving to paid stamps paid_date with now unless
    one is supplied. Returns None if the invoice does not exist.
    """
    status = parse_enum(InvoiceStatus, status)
    invoices = _load_invoices()

    invoice = next((inv for inv in invoices if inv.id == invoice_id), None)
    if invoice is None:
        return None

    invoice.status = status
    if paid_date is not None:
        invoice.paid_date = paid_date
    elif status is InvoiceStatus.PAID:
        invoice.paid_date = utcnow()
    invoice.updated_at = utcnow()

    _save_invoices(invoices)
    return invoice


def link_pod_to_invoice(invoice_id: str, pod_id: str) -> Invoice | None:
    """
    Point the invoice at a POD. Only the invoice side is written; a POD that
    does not point back is reported by the integrity scan as a mismatch.
    """
    invoices = _load_invoices()

    invoice = next((inv for inv in invoices if inv.id == invoice_id), None)
    if invoice is None:
        return None

    invoice.pod_id = pod_id
    invoice.updated_at = utcnow()

    _save_invoices(invoices)
    return invoice


def delete_invoice(invoice_id: str) -> bool:
    """Delete an invoice. Refused while it has a POD."""
    invoices = _load_invoices()

    invoice = next((inv for inv in invoices if inv.id == invoice_id), None)
    if invoice is None:
        raise NotFoundError("Invoice not found", details={"invoice_id": invoice_id})

    if invoice.pod_id:
        raise ReferentialIntegrityError(
            "Cannot delete an invoice that has a POD",
            details={"invoice_id": invoice_id, "pod_id": invoice.pod_id},
        )

    _save_invoices([inv for inv in invoices if inv.id != invoice_id])
    return True


def generate_automatic_invoices(created_by: str) -> BatchResult:
    """
    Bill every completed order that has no invoice yet.

    Best effort: a failure on one order is logged and recorded in the result,
    and the remaining orders are still processed.
    """
    invoiced = {inv.order_id for inv in _load_invoices() if inv.order_id}
    candidates = [
        order for order in _load_orders()
        if order.status is OrderStatus.COMPLETED and order.id not in invoiced
    ]

    result = BatchResult()
    for order in candidates:
        try:
            invoice = create_invoice_from_order(order.id, created_by, GenerationType.AUTOMATIC)
        except FulfillmentError as exc:
            logger.warning("Could not invoice order %s: %s", order.id, exc)
            result.outcomes.append(ItemOutcome(item_id=order.id, ok=False, reason=str(exc)))
            continue
        except Exception as exc:
            logger.exception("Unexpected error invoicing order %s", order.id)
            result.outcomes.append(ItemOutcome(item_id=order.id, ok=False, reason=str(exc)))
            continue

        result.invoices.append(invoice)
        result.outcomes.append(ItemOutcome(item_id=order.id, ok=True, record_id=invoice.id))

    if candidates:
        logger.info(
            "Automatic invoicing: %s created, %s failed",
            result.succeeded,
            result.failed,
        )
    return result


def get_invoice(invoice_id: str) -> Invoice | None:
    return next((inv for inv in _load_invoices() if inv.id == invoice_id), None)


def list_invoices(
    *,
    seller_id: str | None = None,
    store_id: str | None = None,
    status: InvoiceStatus | str | None = None,
) -> list[Invoice]:
    invoices = _load_invoices()
    if seller_id:
        invoices = [inv for inv in invoices if inv.seller_id == seller_id]
    if store_id:
        invoices = [inv for inv in invoices if inv.store_id == store_id]
    if status:
        wanted = parse_enum(InvoiceStatus, status)
        invoices = [inv for inv in invoices if inv.status is wanted]
    return invoices


def get_invoices_without_pod() -> list[Invoice]:
    return [inv for inv in _load_invoices() if not inv.pod_id]


def get_invoices_by_seller(seller_id: str) -> list[Invoice]:
    return list_invoices(seller_id=seller_id)


def get_invoices_by_store(store_id: str) -> list[Invoice]:
    return list_invoices(store_id=store_id)


def get_invoice_stats() -> dict:
    invoices = _load_invoices()
    open_statuses = {InvoiceStatus.DRAFT, InvoiceStatus.SENT}
    return {
        "total_invoices": len(invoices),
        "draft_invoices": sum(1 for inv in invoices if inv.status is InvoiceStatus.DRAFT),
        "sent_invoices": sum(1 for inv in invoices if inv.status is InvoiceStatus.SENT),
        "paid_invoices": sum(1 for inv in invoices if inv.status is InvoiceStatus.PAID),
        "total_amount_cents": sum(inv.total_cents for inv in invoices),
        "pending_amount_cents": sum(inv.total_cents for inv in invoices if inv.status in open_statuses),
    }
