# backend/backoffice/routes/system.py
"""
System health and version endpoints.
"""

import sys
import time
from flask import Blueprint, current_app

from ..services import record_store
from ..validation import RecordStoreError
from backoffice.time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_record_store_health() -> dict:
    """
    Check that the record store answers and report collection sizes.
    """
    start_time = time.time()
    try:
        collections = record_store.list_collections()
        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {row.name: row.to_dict()["record_count"] for row in collections},
        }
    except RecordStoreError:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Record store health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Record store error",
        }


@system_bp.get("/api/health")
def health():
    """
    Returns:
    - 200: record store reachable
    - 503: record store unreachable
    """
    store_health = check_record_store_health()
    http_status = 503 if store_health["status"] == "unhealthy" else 200

    response = {
        "status": store_health["status"],
        "timestamp": to_utc_z(utcnow()),
        "checks": {"record_store": store_health},
    }
    return response, http_status


@system_bp.get("/api/version")
def version():
    env = "production" if not current_app.debug else "development"

    return {
        "api_version": "1.0.0",
        "environment": env,
        "python_version": sys.version.split()[0],
        "server_time": to_utc_z(utcnow()),
    }
