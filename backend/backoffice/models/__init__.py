from .records import RecordCollection
from .fulfillment import (
    OrderId, InvoiceId, PODId,
    OrderStatus, OrderItemStatus, InvoiceStatus, GenerationType, PODStatus,
    IssueType, Severity,
    OrderItem, Order, InvoiceItem, Invoice, POD, IntegrityIssue,
    ItemOutcome, BatchResult, RepairReport,
)

__all__ = [
    'RecordCollection',
    'OrderId', 'InvoiceId', 'PODId',
    'OrderStatus', 'OrderItemStatus', 'InvoiceStatus', 'GenerationType', 'PODStatus',
    'IssueType', 'Severity',
    'OrderItem', 'Order', 'InvoiceItem', 'Invoice', 'POD', 'IntegrityIssue',
    'ItemOutcome', 'BatchResult', 'RepairReport',
]
