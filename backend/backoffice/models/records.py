from __future__ import annotations

from ..extensions import db
from backoffice.time_utils import to_utc_z, utcnow


class RecordCollection(db.Model):
    """
    One named collection of JSON records (e.g. "orders", "invoices", "pods").

    The whole list is read and replaced as a unit. There is no row per record
    and no version column: cross-collection consistency is checked by the
    integrity scan, not enforced here.
    """
    __tablename__ = "record_collections"

    name = db.Column(db.String(64), primary_key=True)
    records = db.Column(db.JSON, nullable=False, default=list)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "record_count": len(self.records or []),
            "updated_at": to_utc_z(self.updated_at),
        }
