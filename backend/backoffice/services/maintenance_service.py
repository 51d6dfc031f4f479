# Overview: One-off repairs of stored records written by earlier releases.

from __future__ import annotations

import logging

from ..models.fulfillment import LEGACY_ORDER_STATUSES, LEGACY_POD_STATUSES
from . import record_store

logger = logging.getLogger(__name__)


def migrate_legacy_statuses() -> dict:
    """
    Rewrite old status values in place.

    Orders: delivered/processing -> completed, cancelled -> pending, and
    delivered_at is renamed completed_at. PODs: delivered -> completed,
    cancelled -> pending. Collections with nothing to change are not written.
    """
    orders = record_store.read_all(record_store.ORDERS)
    orders_changed = 0
    for record in orders:
        changed = False
        status = record.get("status")
        if status in LEGACY_ORDER_STATUSES:
            record["status"] = LEGACY_ORDER_STATUSES[status].value
            changed = True
        if "delivered_at" in record:
            delivered_at = record.pop("delivered_at")
            if not record.get("completed_at"):
                record["completed_at"] = delivered_at
            changed = True
        orders_changed += changed

    pods = record_store.read_all(record_store.PODS)
    pods_changed = 0
    for record in pods:
        status = record.get("status")
        if status in LEGACY_POD_STATUSES:
            record["status"] = LEGACY_POD_STATUSES[status].value
            pods_changed += 1

    writes = {}
    if orders_changed:
        writes[record_store.ORDERS] = orders
    if pods_changed:
        writes[record_store.PODS] = pods
    record_store.write_many(writes)

    if writes:
        logger.info("Migrated legacy statuses: %s orders, %s PODs", orders_changed, pods_changed)
    return {"orders": orders_changed, "pods": pods_changed}
