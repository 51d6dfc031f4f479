"""
Fulfillment records: orders, invoices and proof-of-delivery (POD) documents.

These are plain dataclasses, not SQLAlchemy models. Each collection is stored
as a list of JSON dicts in a RecordCollection row; services load the list,
turn it into dataclasses, mutate in memory and write the whole list back.

Amounts are integer cents. Timestamps are UTC-naive datetimes in memory and
ISO-8601 "Z" strings on disk.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, NewType, Optional

from backoffice.time_utils import parse_iso_datetime, to_utc_z, utcnow


OrderId = NewType("OrderId", str)
InvoiceId = NewType("InvoiceId", str)
PODId = NewType("PODId", str)


class OrderStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class OrderItemStatus(str, Enum):
    PENDING = "pending"
    FULFILLED = "fulfilled"
    PARTIAL = "partial"
    CANCELLED = "cancelled"


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    CANCELLED = "cancelled"


class GenerationType(str, Enum):
    MANUAL = "manual"
    AUTOMATIC = "automatic"


class PODStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class IssueType(str, Enum):
    ORDER_WITHOUT_INVOICE = "order_without_invoice"
    INVOICE_WITHOUT_POD = "invoice_without_pod"
    ORPHAN_POD = "orphan_pod"
    DATA_MISMATCH = "data_mismatch"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


SEVERITY_RANK = {Severity.HIGH: 0, Severity.MEDIUM: 1, Severity.LOW: 2}

# Statuses written by earlier releases of the back office
LEGACY_ORDER_STATUSES = {
    "delivered": OrderStatus.COMPLETED,
    "processing": OrderStatus.COMPLETED,
    "cancelled": OrderStatus.PENDING,
}
LEGACY_POD_STATUSES = {
    "delivered": PODStatus.COMPLETED,
    "cancelled": PODStatus.PENDING,
}


def coerce_order_status(value: Any) -> OrderStatus:
    if isinstance(value, str) and value in LEGACY_ORDER_STATUSES:
        return LEGACY_ORDER_STATUSES[value]
    return OrderStatus(value)


def coerce_pod_status(value: Any) -> PODStatus:
    if isinstance(value, str) and value in LEGACY_POD_STATUSES:
        return LEGACY_POD_STATUSES[value]
    return PODStatus(value)


def _dt(value: Any) -> Optional[datetime]:
    return parse_iso_datetime(value)


@dataclass
class OrderItem:
    id: str
    order_id: str
    product_id: str
    quantity: int
    unit_price_cents: int
    subtotal_cents: int
    status: OrderItemStatus = OrderItemStatus.PENDING
    product_name: Optional[str] = None
    product_brand: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "subtotal_cents": self.subtotal_cents,
            "status": self.status.value,
            "product_name": self.product_name,
            "product_brand": self.product_brand,
        }

    @classmethod
    def from_dict(cls, data: dict) -> OrderItem:
        return cls(
            id=data["id"],
            order_id=data.get("order_id") or "",
            product_id=data["product_id"],
            quantity=int(data["quantity"]),
            unit_price_cents=int(data["unit_price_cents"]),
            subtotal_cents=int(data["subtotal_cents"]),
            status=OrderItemStatus(data.get("status") or OrderItemStatus.PENDING.value),
            product_name=data.get("product_name"),
            product_brand=data.get("product_brand"),
        )


@dataclass
class Order:
    """Purchase request from a salesperson to a store. No tax at this stage."""
    id: OrderId
    po: str
    salesperson_id: str
    store_id: str
    status: OrderStatus
    subtotal_cents: int
    total_cents: int
    created_at: datetime
    updated_at: datetime
    items: list[OrderItem] = field(default_factory=list)
    planogram_id: Optional[str] = None
    notes: Optional[str] = None
    completed_at: Optional[datetime] = None

    @property
    def is_completed(self) -> bool:
        return self.status is OrderStatus.COMPLETED

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "po": self.po,
            "salesperson_id": self.salesperson_id,
            "store_id": self.store_id,
            "planogram_id": self.planogram_id,
            "status": self.status.value,
            "subtotal_cents": self.subtotal_cents,
            "total_cents": self.total_cents,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "completed_at": to_utc_z(self.completed_at) if self.completed_at else None,
            "items": [item.to_dict() for item in self.items],
        }

    @classmethod
    def from_dict(cls, data: dict) -> Order:
        created_at = _dt(data.get("created_at")) or utcnow()
        return cls(
            id=OrderId(data["id"]),
            po=data.get("po") or "",
            salesperson_id=data.get("salesperson_id") or "",
            store_id=data.get("store_id") or "",
            planogram_id=data.get("planogram_id"),
            status=coerce_order_status(data.get("status") or OrderStatus.PENDING.value),
            subtotal_cents=int(data.get("subtotal_cents") or 0),
            total_cents=int(data.get("total_cents") or 0),
            notes=data.get("notes"),
            created_at=created_at,
            updated_at=_dt(data.get("updated_at")) or created_at,
            # delivered_at is the field name used before completion was renamed
            completed_at=_dt(data.get("completed_at") or data.get("delivered_at")),
            items=[OrderItem.from_dict(item) for item in data.get("items") or []],
        )


@dataclass
class InvoiceItem:
    id: str
    invoice_id: str
    product_id: str
    quantity: int
    unit_price_cents: int
    subtotal_cents: int
    product_name: Optional[str] = None
    product_brand: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoice_id": self.invoice_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "subtotal_cents": self.subtotal_cents,
            "product_name": self.product_name,
            "product_brand": self.product_brand,
        }

    @classmethod
    def from_dict(cls, data: dict) -> InvoiceItem:
        return cls(
            id=data["id"],
            invoice_id=data.get("invoice_id") or "",
            product_id=data["product_id"],
            quantity=int(data["quantity"]),
            unit_price_cents=int(data["unit_price_cents"]),
            subtotal_cents=int(data["subtotal_cents"]),
            product_name=data.get("product_name"),
            product_brand=data.get("product_brand"),
        )


@dataclass
class Invoice:
    """
    Billable document derived from zero or one order.

    order_id is "" for manual invoices. pod_id is set once a POD is created
    against the invoice.
    """
    id: InvoiceId
    invoice_number: str
    order_id: str
    store_id: str
    seller_id: str
    status: InvoiceStatus
    generation_type: GenerationType
    subtotal_cents: int
    taxes_cents: int
    total_cents: int
    issue_date: datetime
    due_date: datetime
    created_by: str
    created_at: datetime
    updated_at: datetime
    items: list[InvoiceItem] = field(default_factory=list)
    paid_date: Optional[datetime] = None
    pod_id: Optional[str] = None
    notes: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "order_id": self.order_id,
            "store_id": self.store_id,
            "seller_id": self.seller_id,
            "status": self.status.value,
            "generation_type": self.generation_type.value,
            "subtotal_cents": self.subtotal_cents,
            "taxes_cents": self.taxes_cents,
            "total_cents": self.total_cents,
            "issue_date": to_utc_z(self.issue_date),
            "due_date": to_utc_z(self.due_date),
            "paid_date": to_utc_z(self.paid_date) if self.paid_date else None,
            "pod_id": self.pod_id,
            "notes": self.notes,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "items": [item.to_dict() for item in self.items],
        }

    @classmethod
    def from_dict(cls, data: dict) -> Invoice:
        created_at = _dt(data.get("created_at")) or utcnow()
        issue_date = _dt(data.get("issue_date")) or created_at
        return cls(
            id=InvoiceId(data["id"]),
            invoice_number=data.get("invoice_number") or "",
            order_id=data.get("order_id") or "",
            store_id=data.get("store_id") or "",
            seller_id=data.get("seller_id") or "",
            status=InvoiceStatus(data.get("status") or InvoiceStatus.DRAFT.value),
            generation_type=GenerationType(data.get("generation_type") or GenerationType.MANUAL.value),
            subtotal_cents=int(data.get("subtotal_cents") or 0),
            taxes_cents=int(data.get("taxes_cents") or 0),
            total_cents=int(data.get("total_cents") or 0),
            issue_date=issue_date,
            due_date=_dt(data.get("due_date")) or issue_date,
            paid_date=_dt(data.get("paid_date")),
            pod_id=data.get("pod_id") or None,
            notes=data.get("notes"),
            created_by=data.get("created_by") or "",
            created_at=created_at,
            updated_at=_dt(data.get("updated_at")) or created_at,
            items=[InvoiceItem.from_dict(item) for item in data.get("items") or []],
        )


@dataclass
class POD:
    """Proof of delivery: an uploaded image plus who/when metadata."""
    id: PODId
    po: str
    salesperson_id: str
    store_id: str
    status: PODStatus
    image_url: str
    uploaded_at: datetime
    uploaded_by: str
    created_at: datetime
    updated_at: datetime
    order_id: Optional[str] = None
    invoice_id: Optional[str] = None
    notes: Optional[str] = None
    is_validated: bool = False
    validated_at: Optional[datetime] = None
    validated_by: Optional[str] = None

    @property
    def is_orphan(self) -> bool:
        return not self.order_id and not self.invoice_id

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "po": self.po,
            "salesperson_id": self.salesperson_id,
            "store_id": self.store_id,
            "status": self.status.value,
            "order_id": self.order_id,
            "invoice_id": self.invoice_id,
            "image_url": self.image_url,
            "uploaded_at": to_utc_z(self.uploaded_at),
            "uploaded_by": self.uploaded_by,
            "notes": self.notes,
            "is_validated": self.is_validated,
            "validated_at": to_utc_z(self.validated_at) if self.validated_at else None,
            "validated_by": self.validated_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> POD:
        created_at = _dt(data.get("created_at")) or utcnow()
        return cls(
            id=PODId(data["id"]),
            po=data.get("po") or "",
            salesperson_id=data.get("salesperson_id") or "",
            store_id=data.get("store_id") or "",
            status=coerce_pod_status(data.get("status") or PODStatus.PENDING.value),
            order_id=data.get("order_id") or None,
            invoice_id=data.get("invoice_id") or None,
            image_url=data.get("image_url") or "",
            uploaded_at=_dt(data.get("uploaded_at")) or created_at,
            uploaded_by=data.get("uploaded_by") or "",
            notes=data.get("notes"),
            is_validated=bool(data.get("is_validated", False)),
            validated_at=_dt(data.get("validated_at")),
            validated_by=data.get("validated_by"),
            created_at=created_at,
            updated_at=_dt(data.get("updated_at")) or created_at,
        )


@dataclass(frozen=True)
class IntegrityIssue:
    """A finding of the integrity scan. Never stored."""
    id: str
    type: IssueType
    description: str
    severity: Severity
    created_at: datetime
    order_id: Optional[str] = None
    invoice_id: Optional[str] = None
    pod_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "order_id": self.order_id,
            "invoice_id": self.invoice_id,
            "pod_id": self.pod_id,
            "description": self.description,
            "severity": self.severity.value,
            "created_at": to_utc_z(self.created_at),
        }


@dataclass
class ItemOutcome:
    """Result of one item in a batch: ok, or the reason it failed."""
    item_id: str
    ok: bool
    reason: Optional[str] = None
    record_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "item_id": self.item_id,
            "ok": self.ok,
            "reason": self.reason,
            "record_id": self.record_id,
        }


@dataclass
class BatchResult:
    outcomes: list[ItemOutcome] = field(default_factory=list)
    invoices: list[Invoice] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.ok)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.ok)

    def to_dict(self) -> dict:
        return {
            "succeeded": self.succeeded,
            "failed": self.failed,
            "outcomes": [outcome.to_dict() for outcome in self.outcomes],
            "invoices": [invoice.to_dict() for invoice in self.invoices],
        }


@dataclass
class RepairReport(BatchResult):
    """Outcome of an auto-repair pass; outcomes are keyed by issue id."""

    @property
    def fixed(self) -> int:
        return self.succeeded

    @property
    def errors(self) -> int:
        return self.failed

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["fixed"] = self.fixed
        data["errors"] = self.errors
        return data
