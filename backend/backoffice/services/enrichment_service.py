# Overview: Display joins for orders, invoices and PODs; read-only, no side effects.

from __future__ import annotations

from ..models import Invoice, Order, POD
from . import record_store
from .lookup_service import full_name, planogram_index, product_index, product_labels, store_index, user_index


STORE_NOT_FOUND = "Store not found"
SELLER_NOT_FOUND = "Seller not found"
USER_NOT_FOUND = "User not found"
PRODUCT_NOT_FOUND = "Product not found"
NO_CATEGORY = "Uncategorized"
NO_PLANOGRAM = "No planogram"
NO_ORDER = "No order"
NO_INVOICE = "No invoice"


def _enrich_items(items: list[dict], products: dict[str, dict]) -> list[dict]:
    enriched = []
    for item in items:
        name, brand = product_labels(products.get(item["product_id"]))
        enriched.append({
            **item,
            "product_name": name or PRODUCT_NOT_FOUND,
            "product_brand": brand or NO_CATEGORY,
        })
    return enriched


def _order_po_by_id() -> dict[str, str]:
    return {
        record["id"]: record.get("po") or ""
        for record in record_store.read_all(record_store.ORDERS)
    }


def enrich_order(order: Order) -> dict:
    stores = store_index()
    users = user_index()
    planograms = planogram_index()

    data = order.to_dict()
    store = stores.get(order.store_id)
    planogram = planograms.get(order.planogram_id or "")
    data.update({
        "store_name": (store or {}).get("name") or STORE_NOT_FOUND,
        "seller_name": full_name(users.get(order.salesperson_id)) or SELLER_NOT_FOUND,
        "planogram_name": (planogram or {}).get("name") or NO_PLANOGRAM,
        "items": _enrich_items(data["items"], product_index()),
    })
    return data


def enrich_invoice(invoice: Invoice) -> dict:
    stores = store_index()
    users = user_index()

    data = invoice.to_dict()
    store = stores.get(invoice.store_id)
    data.update({
        "store_name": (store or {}).get("name") or STORE_NOT_FOUND,
        "seller_name": full_name(users.get(invoice.seller_id)) or SELLER_NOT_FOUND,
        "order_number": _order_po_by_id().get(invoice.order_id) or NO_ORDER,
        "items": _enrich_items(data["items"], product_index()),
    })
    return data


def enrich_pod(pod: POD) -> dict:
    stores = store_index()
    users = user_index()
    invoice_numbers = {
        record["id"]: record.get("invoice_number") or ""
        for record in record_store.read_all(record_store.INVOICES)
    }

    data = pod.to_dict()
    store = stores.get(pod.store_id)
    data.update({
        "store_name": (store or {}).get("name") or STORE_NOT_FOUND,
        "seller_name": full_name(users.get(pod.salesperson_id)) or SELLER_NOT_FOUND,
        "uploaded_by_name": full_name(users.get(pod.uploaded_by)) or USER_NOT_FOUND,
        "order_number": _order_po_by_id().get(pod.order_id or "") or NO_ORDER,
        "invoice_number": invoice_numbers.get(pod.invoice_id or "") or NO_INVOICE,
    })
    return data
