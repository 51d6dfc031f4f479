"""
Integrity reconciliation for the Order -> Invoice -> POD pipeline.

The three collections are written independently, so links between them can
drift (a crash between two writes, another writer, a hand-edited record).
check_integrity() finds the drift; auto_fix_integrity_issues() repairs the one
kind that has an unambiguous fix: a completed order that was never billed.

Scans, in this order, each over a fresh read of the store:
1. completed orders with no invoice           -> order_without_invoice (high)
2. paid invoices with no POD                  -> invoice_without_pod   (high)
3. PODs with neither an order nor an invoice  -> orphan_pod            (medium)
4. invoice.pod_id resolves to a POD whose invoice_id points elsewhere
                                              -> data_mismatch         (medium)

Issues are returned in scan order, then collection order. Nothing is
deduplicated or sorted; use sort_by_severity() for display.
"""

from __future__ import annotations

import logging

from ..models import (
    GenerationType,
    IntegrityIssue,
    Invoice,
    InvoiceId,
    InvoiceItem,
    InvoiceStatus,
    IssueType,
    ItemOutcome,
    Order,
    POD,
    RepairReport,
    Severity,
)
from ..models.fulfillment import SEVERITY_RANK
from ..validation import NotFoundError, RepairFailure
from backoffice.time_utils import add_days, utcnow
from . import record_store
from .document_service import generate_invoice_number, new_record_id
from .invoice_service import INVOICE_DUE_DAYS, compute_taxes

logger = logging.getLogger(__name__)


def _issue(issue_type: IssueType, severity: Severity, description: str, **refs) -> IntegrityIssue:
    return IntegrityIssue(
        id=new_record_id("issue"),
        type=issue_type,
        description=description,
        severity=severity,
        created_at=utcnow(),
        **refs,
    )


def _orders_without_invoice(orders: list[Order], invoices: list[Invoice]) -> list[IntegrityIssue]:
    invoiced = {inv.order_id for inv in invoices if inv.order_id}
    return [
        _issue(
            IssueType.ORDER_WITHOUT_INVOICE,
            Severity.HIGH,
            f"Order {order.po} is completed but has no invoice",
            order_id=order.id,
        )
        for order in orders
        if order.is_completed and order.id not in invoiced
    ]


def _paid_invoices_without_pod(invoices: list[Invoice]) -> list[IntegrityIssue]:
    return [
        _issue(
            IssueType.INVOICE_WITHOUT_POD,
            Severity.HIGH,
            f"Invoice {invoice.invoice_number} is paid but has no POD",
            invoice_id=invoice.id,
        )
        for invoice in invoices
        if invoice.status is InvoiceStatus.PAID and not invoice.pod_id
    ]


def _orphan_pods(pods: list[POD]) -> list[IntegrityIssue]:
    return [
        _issue(
            IssueType.ORPHAN_POD,
            Severity.MEDIUM,
            f"POD {pod.po} is not linked to any invoice or order",
            pod_id=pod.id,
        )
        for pod in pods
        if pod.is_orphan
    ]


def _link_mismatches(invoices: list[Invoice], pods: list[POD]) -> list[IntegrityIssue]:
    pods_by_id = {pod.id: pod for pod in pods}
    issues = []
    for invoice in invoices:
        if not invoice.pod_id:
            continue
        pod = pods_by_id.get(invoice.pod_id)
        # A pod_id that resolves to nothing is not reported by this scan
        if pod is not None and pod.invoice_id != invoice.id:
            issues.append(_issue(
                IssueType.DATA_MISMATCH,
                Severity.MEDIUM,
                f"Invoice {invoice.invoice_number} and POD {pod.po} do not reference each other",
                invoice_id=invoice.id,
                pod_id=pod.id,
            ))
    return issues


def check_integrity() -> list[IntegrityIssue]:
    """
    Run the four scans and return every issue found. Read-only.

    Record store failures propagate; they never read as "no issues".
    """
    orders = [Order.from_dict(r) for r in record_store.read_all(record_store.ORDERS)]
    invoices = [Invoice.from_dict(r) for r in record_store.read_all(record_store.INVOICES)]
    pods = [POD.from_dict(r) for r in record_store.read_all(record_store.PODS)]

    issues: list[IntegrityIssue] = []
    issues.extend(_orders_without_invoice(orders, invoices))
    issues.extend(_paid_invoices_without_pod(invoices))
    issues.extend(_orphan_pods(pods))
    issues.extend(_link_mismatches(invoices, pods))
    return issues


def sort_by_severity(issues: list[IntegrityIssue]) -> list[IntegrityIssue]:
    """High first; stable, so scan order is kept within a severity."""
    return sorted(issues, key=lambda issue: SEVERITY_RANK[issue.severity])


def summarize(issues: list[IntegrityIssue]) -> dict:
    counts = {severity.value: 0 for severity in Severity}
    by_type = {issue_type.value: 0 for issue_type in IssueType}
    for issue in issues:
        counts[issue.severity.value] += 1
        by_type[issue.type.value] += 1
    return {"total": len(issues), "by_severity": counts, "by_type": by_type}


def _synthesize_invoice(order_id: str, user_id: str) -> Invoice:
    orders = [Order.from_dict(r) for r in record_store.read_all(record_store.ORDERS)]
    order = next((o for o in orders if o.id == order_id), None)
    if order is None:
        raise NotFoundError("Order not found", details={"order_id": order_id})

    invoice_id = InvoiceId(new_record_id("invoice"))
    items = [
        InvoiceItem(
            id=new_record_id("inv-item"),
            invoice_id=invoice_id,
            product_id=item.product_id,
            quantity=item.quantity,
            unit_price_cents=item.unit_price_cents,
            subtotal_cents=item.subtotal_cents,
            product_name=item.product_name,
            product_brand=item.product_brand,
        )
        for item in order.items
    ]

    subtotal = order.subtotal_cents
    taxes = compute_taxes(subtotal)
    now = utcnow()
    invoice = Invoice(
        id=invoice_id,
        invoice_number=generate_invoice_number(),
        order_id=order.id,
        store_id=order.store_id,
        seller_id=order.salesperson_id,
        status=InvoiceStatus.DRAFT,
        generation_type=GenerationType.AUTOMATIC,
        subtotal_cents=subtotal,
        taxes_cents=taxes,
        total_cents=subtotal + taxes,
        issue_date=now,
        due_date=add_days(now, INVOICE_DUE_DAYS),
        created_by=user_id,
        created_at=now,
        updated_at=now,
        items=items,
    )

    invoices = record_store.read_all(record_store.INVOICES)
    invoices.append(invoice.to_dict())
    record_store.write_all(record_store.INVOICES, invoices)
    return invoice


def _repair_order_without_invoice(issue: IntegrityIssue, user_id: str) -> Invoice:
    try:
        return _synthesize_invoice(issue.order_id, user_id)
    except Exception as exc:
        raise RepairFailure(
            f"Could not invoice order {issue.order_id}: {exc}",
            details={"issue_id": issue.id, "order_id": issue.order_id},
        ) from exc


def auto_fix_integrity_issues(user_id: str) -> RepairReport:
    """
    Re-scan and bill every completed order that has no invoice.

    Only order_without_invoice issues are repaired; the other types have no
    unambiguous fix and are left for a person. A failed repair is recorded and
    the pass continues. Run check_integrity() again to see what remains.
    """
    report = RepairReport()

    for issue in check_integrity():
        if issue.type is not IssueType.ORDER_WITHOUT_INVOICE or not issue.order_id:
            continue

        try:
            invoice = _repair_order_without_invoice(issue, user_id)
        except RepairFailure as failure:
            logger.exception("Auto-repair failed for issue %s", issue.id)
            report.outcomes.append(ItemOutcome(item_id=issue.id, ok=False, reason=failure.message))
            continue

        report.invoices.append(invoice)
        report.outcomes.append(ItemOutcome(item_id=issue.id, ok=True, record_id=invoice.id))

    logger.info("Auto-repair by %s: %s fixed, %s errors", user_id, report.fixed, report.errors)
    return report
