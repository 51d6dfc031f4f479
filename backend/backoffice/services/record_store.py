# Overview: Keyed collection store; read or replace every record under a collection name.

from __future__ import annotations

import copy
import logging

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.attributes import flag_modified

from ..extensions import db
from ..models import RecordCollection
from ..validation import RecordStoreError
from .concurrency import run_with_retry

logger = logging.getLogger(__name__)


ORDERS = "orders"
INVOICES = "invoices"
PODS = "pods"

# Read-only lookup collections owned by the rest of the back office
PRODUCTS = "products"
STORES = "stores"
USERS = "users"
PLANOGRAMS = "planograms"


def _commit_attempts() -> int:
    return int(current_app.config.get("STORE_COMMIT_ATTEMPTS", 3))


def read_all(collection: str) -> list[dict]:
    """
    Return every record stored under `collection` ([] if it was never written).

    The result is a deep copy; callers may mutate it freely.
    """
    try:
        row = db.session.get(RecordCollection, collection)
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise RecordStoreError(f"Failed to read collection '{collection}'") from exc

    if row is None:
        return []
    return copy.deepcopy(row.records or [])


def _stage(collection: str, records: list[dict]) -> None:
    row = db.session.get(RecordCollection, collection)
    if row is None:
        row = RecordCollection(name=collection, records=list(records))
        db.session.add(row)
    else:
        row.records = list(records)
        flag_modified(row, "records")


def write_many(writes: dict[str, list[dict]]) -> None:
    """
    Replace several collections and commit them together.

    Used for the two halves of a bidirectional link so that both land in the
    same database transaction.
    """
    if not writes:
        return

    def _op():
        for collection, records in writes.items():
            _stage(collection, records)
        db.session.commit()

    try:
        run_with_retry(_op, attempts=_commit_attempts())
    except SQLAlchemyError as exc:
        db.session.rollback()
        names = ", ".join(sorted(writes))
        raise RecordStoreError(f"Failed to write collection(s) {names}") from exc

    logger.debug("Wrote %s", {name: len(records) for name, records in writes.items()})


def write_all(collection: str, records: list[dict]) -> None:
    """Replace every record under `collection` with `records`."""
    write_many({collection: records})


def list_collections() -> list[RecordCollection]:
    try:
        return db.session.query(RecordCollection).order_by(RecordCollection.name).all()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise RecordStoreError("Failed to list collections") from exc
