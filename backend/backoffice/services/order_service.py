"""
Order Service - purchase orders from a salesperson to a store.

Orders carry no tax: subtotal and total are both the sum of line subtotals.
Tax is applied when the order is billed (see invoice_service).
"""

from __future__ import annotations

from datetime import datetime

from ..models import Order, OrderId, OrderItem, OrderItemStatus, OrderStatus, Invoice
from ..validation import NotFoundError, ReferentialIntegrityError, normalize_line_items, parse_enum
from backoffice.time_utils import utcnow
from . import record_store
from .document_service import generate_po_number, new_record_id
from .lookup_service import product_index, product_labels


def _load_orders() -> list[Order]:
    return [Order.from_dict(record) for record in record_store.read_all(record_store.ORDERS)]


def _save_orders(orders: list[Order]) -> None:
    record_store.write_all(record_store.ORDERS, [order.to_dict() for order in orders])


def _load_invoices() -> list[Invoice]:
    return [Invoice.from_dict(record) for record in record_store.read_all(record_store.INVOICES)]


def _build_items(order_id: str, items: list[dict]) -> list[OrderItem]:
    lines = normalize_line_items(items)
    products = product_index()

    built = []
    for line in lines:
        name, brand = product_labels(products.get(line["product_id"]))
        built.append(OrderItem(
            id=new_record_id("item"),
            order_id=order_id,
            product_id=line["product_id"],
            quantity=line["quantity"],
            unit_price_cents=line["unit_price_cents"],
            subtotal_cents=line["quantity"] * line["unit_price_cents"],
            status=OrderItemStatus.PENDING,
            product_name=name,
            product_brand=brand,
        ))
    return built


def create_order(
    salesperson_id: str,
    store_id: str,
    items: list[dict],
    planogram_id: str | None = None,
    notes: str | None = None,
) -> Order:
    """Create a pending order; subtotal == total == sum of line subtotals."""
    orders = _load_orders()

    order_id = OrderId(new_record_id("order"))
    order_items = _build_items(order_id, items)
    subtotal = sum(item.subtotal_cents for item in order_items)

    now = utcnow()
    order = Order(
        id=order_id,
        po=generate_po_number(),
        salesperson_id=salesperson_id,
        store_id=store_id,
        planogram_id=planogram_id,
        status=OrderStatus.PENDING,
        subtotal_cents=subtotal,
        total_cents=subtotal,
        notes=notes,
        created_at=now,
        updated_at=now,
        items=order_items,
    )

    orders.append(order)
    _save_orders(orders)
    return order


def update_order_status(
    order_id: str,
    status: OrderStatus | str,
    completed_at: datetime | None = None,
) -> Order | None:
    """
    Set the order status. Moving to completed stamps completed_at with now
    unless a timestamp is supplied. Returns None if the order does not exist.
    """
    status = parse_enum(OrderStatus, status)
    orders = _load_orders()

    order = next((o for o in orders if o.id == order_id), None)
    if order is None:
        return None

    order.status = status
    if completed_at is not None:
        order.completed_at = completed_at
    elif status is OrderStatus.COMPLETED:
        order.completed_at = utcnow()
    order.updated_at = utcnow()

    _save_orders(orders)
    return order


def update_order_items(order_id: str, items: list[dict]) -> Order | None:
    """
    Replace the item list and recompute totals.

    An invoice already issued for this order keeps its own copy of the lines.
    """
    orders = _load_orders()

    order = next((o for o in orders if o.id == order_id), None)
    if order is None:
        return None

    order.items = _build_items(order.id, items)
    order.subtotal_cents = sum(item.subtotal_cents for item in order.items)
    order.total_cents = order.subtotal_cents
    order.updated_at = utcnow()

    _save_orders(orders)
    return order


def delete_order(order_id: str) -> bool:
    """Delete an order. Refused while any invoice references it."""
    orders = _load_orders()
    if not any(o.id == order_id for o in orders):
        raise NotFoundError("Order not found", details={"order_id": order_id})

    if any(invoice.order_id == order_id for invoice in _load_invoices()):
        raise ReferentialIntegrityError(
            "Cannot delete an order that has an invoice",
            details={"order_id": order_id},
        )

    _save_orders([o for o in orders if o.id != order_id])
    return True


def get_order(order_id: str) -> Order | None:
    return next((o for o in _load_orders() if o.id == order_id), None)


def list_orders(
    *,
    salesperson_id: str | None = None,
    store_id: str | None = None,
    status: OrderStatus | str | None = None,
) -> list[Order]:
    orders = _load_orders()
    if salesperson_id:
        orders = [o for o in orders if o.salesperson_id == salesperson_id]
    if store_id:
        orders = [o for o in orders if o.store_id == store_id]
    if status:
        wanted = parse_enum(OrderStatus, status)
        orders = [o for o in orders if o.status is wanted]
    return orders


def get_orders_by_salesperson(salesperson_id: str) -> list[Order]:
    return list_orders(salesperson_id=salesperson_id)


def get_orders_by_store(store_id: str) -> list[Order]:
    return list_orders(store_id=store_id)


def get_orders_without_invoice() -> list[Order]:
    invoiced = {invoice.order_id for invoice in _load_invoices() if invoice.order_id}
    return [o for o in _load_orders() if o.id not in invoiced]


def get_order_stats() -> dict:
    orders = _load_orders()
    total_revenue = sum(o.total_cents for o in orders)
    return {
        "total_orders": len(orders),
        "pending_orders": sum(1 for o in orders if o.status is OrderStatus.PENDING),
        "completed_orders": sum(1 for o in orders if o.status is OrderStatus.COMPLETED),
        "total_revenue_cents": total_revenue,
        "average_order_value_cents": round(total_revenue / len(orders)) if orders else 0,
    }
