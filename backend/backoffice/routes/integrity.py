# Overview: Flask API routes for the order/invoice/POD integrity scan and auto-repair.

from flask import Blueprint, request, jsonify, g, current_app

from ..models import Severity
from ..services import integrity_service
from ..validation import FulfillmentError, parse_enum
from ..decorators import require_actor, error_response, query_flag


integrity_bp = Blueprint("integrity", __name__, url_prefix="/api/integrity")


@integrity_bp.get("/issues")
def list_issues_route():
    """
    Run the integrity scan.

    Query params:
    - severity: only issues of this severity
    - sort=1: order by severity (high first) instead of scan order
    """
    try:
        issues = integrity_service.check_integrity()

        severity = request.args.get("severity")
        if severity:
            wanted = parse_enum(Severity, severity, "severity")
            issues = [issue for issue in issues if issue.severity is wanted]

        if query_flag("sort"):
            issues = integrity_service.sort_by_severity(issues)

        return jsonify({
            "issues": [issue.to_dict() for issue in issues],
            "summary": integrity_service.summarize(issues),
        }), 200

    except FulfillmentError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to run integrity check")
        return jsonify({"error": "Internal server error"}), 500


@integrity_bp.post("/auto-fix")
@require_actor
def auto_fix_route():
    """Invoice completed orders that have none; other issue types are left alone."""
    try:
        report = integrity_service.auto_fix_integrity_issues(user_id=g.actor_id)
        return jsonify({"report": report.to_dict()}), 200

    except Exception:
        current_app.logger.exception("Failed to auto-fix integrity issues")
        return jsonify({"error": "Internal server error"}), 500
