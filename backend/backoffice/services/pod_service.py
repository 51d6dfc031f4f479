"""
POD Service - proof-of-delivery records.

A POD created from an invoice links both ways: POD.invoice_id and
Invoice.pod_id. Both collections are written in one commit. A manual POD has
no links and shows up as an orphan in the integrity scan until it is linked.
"""

from __future__ import annotations

from ..models import Invoice, Order, POD, PODId, PODStatus
from ..validation import DuplicateLinkError, NotFoundError, ValidationError, parse_enum
from backoffice.time_utils import utcnow
from . import record_store
from .document_service import new_record_id


def _load_pods() -> list[POD]:
    return [POD.from_dict(record) for record in record_store.read_all(record_store.PODS)]


def _save_pods(pods: list[POD]) -> None:
    record_store.write_all(record_store.PODS, [pod.to_dict() for pod in pods])


def _load_invoices() -> list[Invoice]:
    return [Invoice.from_dict(record) for record in record_store.read_all(record_store.INVOICES)]


def _load_orders() -> list[Order]:
    return [Order.from_dict(record) for record in record_store.read_all(record_store.ORDERS)]


def create_pod_from_invoice(
    invoice_id: str,
    image_url: str,
    uploaded_by: str,
    notes: str | None = None,
) -> POD:
    """
    Record delivery of an invoice.

    The POD reference is the originating order's PO number, falling back to
    the invoice number for manual invoices.
    """
    if not image_url:
        raise ValidationError("image_url required")

    invoices = _load_invoices()
    invoice = next((inv for inv in invoices if inv.id == invoice_id), None)
    if invoice is None:
        raise NotFoundError("Invoice not found", details={"invoice_id": invoice_id})

    pods = _load_pods()
    existing = next((p for p in pods if p.invoice_id == invoice_id), None)
    if existing is not None:
        raise DuplicateLinkError(
            "A POD already exists for this invoice",
            details={"invoice_id": invoice_id, "pod_id": existing.id},
        )

    order = None
    if invoice.order_id:
        order = next((o for o in _load_orders() if o.id == invoice.order_id), None)

    now = utcnow()
    pod = POD(
        id=PODId(new_record_id("pod")),
        po=order.po if order else invoice.invoice_number,
        salesperson_id=invoice.seller_id,
        store_id=invoice.store_id,
        status=PODStatus.COMPLETED,
        order_id=invoice.order_id or None,
        invoice_id=invoice.id,
        image_url=image_url,
        uploaded_at=now,
        uploaded_by=uploaded_by,
        notes=notes,
        is_validated=False,
        created_at=now,
        updated_at=now,
    )
    pods.append(pod)

    invoice.pod_id = pod.id
    invoice.updated_at = now

    record_store.write_many({
        record_store.PODS: [p.to_dict() for p in pods],
        record_store.INVOICES: [inv.to_dict() for inv in invoices],
    })
    return pod


def create_manual_pod(
    salesperson_id: str,
    store_id: str,
    po: str,
    image_url: str,
    uploaded_by: str,
    notes: str | None = None,
) -> POD:
    """POD entered without an invoice; it carries no order or invoice link."""
    if not image_url:
        raise ValidationError("image_url required")

    pods = _load_pods()

    now = utcnow()
    pod = POD(
        id=PODId(new_record_id("pod")),
        po=po,
        salesperson_id=salesperson_id,
        store_id=store_id,
        status=PODStatus.COMPLETED,
        image_url=image_url,
        uploaded_at=now,
        uploaded_by=uploaded_by,
        notes=notes,
        is_validated=False,
        created_at=now,
        updated_at=now,
    )

    pods.append(pod)
    _save_pods(pods)
    return pod


def validate_pod(pod_id: str, validated_by: str) -> POD | None:
    pods = _load_pods()
    pod = next((p for p in pods if p.id == pod_id), None)
    if pod is None:
        return None

    now = utcnow()
    pod.is_validated = True
    pod.validated_at = now
    pod.validated_by = validated_by
    pod.updated_at = now

    _save_pods(pods)
    return pod


def invalidate_pod(pod_id: str) -> POD | None:
    pods = _load_pods()
    pod = next((p for p in pods if p.id == pod_id), None)
    if pod is None:
        return None

    pod.is_validated = False
    pod.validated_at = None
    pod.validated_by = None
    pod.updated_at = utcnow()

    _save_pods(pods)
    return pod


def update_pod_status(pod_id: str, status: PODStatus | str) -> POD | None:
    status = parse_enum(PODStatus, status)
    pods = _load_pods()
    pod = next((p for p in pods if p.id == pod_id), None)
    if pod is None:
        return None

    pod.status = status
    pod.updated_at = utcnow()

    _save_pods(pods)
    return pod


def delete_pod(pod_id: str) -> bool:
    """Delete a POD, clearing Invoice.pod_id first if the invoice points at it."""
    pods = _load_pods()
    pod = next((p for p in pods if p.id == pod_id), None)
    if pod is None:
        raise NotFoundError("POD not found", details={"pod_id": pod_id})

    writes = {record_store.PODS: [p.to_dict() for p in pods if p.id != pod_id]}

    if pod.invoice_id:
        invoices = _load_invoices()
        invoice = next((inv for inv in invoices if inv.id == pod.invoice_id), None)
        if invoice is not None and invoice.pod_id == pod.id:
            invoice.pod_id = None
            invoice.updated_at = utcnow()
            writes[record_store.INVOICES] = [inv.to_dict() for inv in invoices]

    record_store.write_many(writes)
    return True


def get_pod(pod_id: str) -> POD | None:
    return next((p for p in _load_pods() if p.id == pod_id), None)


def list_pods(
    *,
    salesperson_id: str | None = None,
    store_id: str | None = None,
    unvalidated: bool = False,
) -> list[POD]:
    pods = _load_pods()
    if salesperson_id:
        pods = [p for p in pods if p.salesperson_id == salesperson_id]
    if store_id:
        pods = [p for p in pods if p.store_id == store_id]
    if unvalidated:
        pods = [p for p in pods if not p.is_validated]
    return pods


def get_pods_by_salesperson(salesperson_id: str) -> list[POD]:
    return list_pods(salesperson_id=salesperson_id)


def get_pods_by_store(store_id: str) -> list[POD]:
    return list_pods(store_id=store_id)


def get_unvalidated_pods() -> list[POD]:
    return list_pods(unvalidated=True)
