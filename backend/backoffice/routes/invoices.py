# Overview: Flask API routes for invoices; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, current_app

from ..services import invoice_service
from ..services.enrichment_service import enrich_invoice
from ..validation import FulfillmentError, parse_optional_datetime
from ..decorators import require_actor, error_response, query_flag


invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")


@invoices_bp.post("/from-order")
@require_actor
def create_invoice_from_order_route():
    """
    Bill an existing order.

    Returns 404 if the order is missing, 409 if it already has an invoice.
    """
    try:
        data = request.get_json() or {}
        order_id = data.get("order_id")
        if not order_id:
            return jsonify({"error": "order_id required"}), 400

        invoice = invoice_service.create_invoice_from_order(
            order_id,
            created_by=g.actor_id,
            generation_type=data.get("generation_type") or "manual",
        )
        return jsonify({"invoice": invoice.to_dict()}), 201

    except FulfillmentError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create invoice from order")
        return jsonify({"error": "Internal server error"}), 500


@invoices_bp.post("/")
@require_actor
def create_manual_invoice_route():
    """Create an invoice with no backing order."""
    try:
        data = request.get_json() or {}
        store_id = data.get("store_id")
        seller_id = data.get("seller_id")

        if not all([store_id, seller_id]):
            return jsonify({"error": "store_id and seller_id required"}), 400

        invoice = invoice_service.create_manual_invoice(
            store_id=store_id,
            seller_id=seller_id,
            items=data.get("items"),
            created_by=g.actor_id,
            notes=data.get("notes"),
        )
        return jsonify({"invoice": invoice.to_dict()}), 201

    except FulfillmentError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create manual invoice")
        return jsonify({"error": "Internal server error"}), 500


@invoices_bp.get("/")
def list_invoices_route():
    """
    List invoices.

    Query params: seller_id, store_id, status, without_pod=1
    """
    try:
        if query_flag("without_pod"):
            invoices = invoice_service.get_invoices_without_pod()
        else:
            invoices = invoice_service.list_invoices(
                seller_id=request.args.get("seller_id"),
                store_id=request.args.get("store_id"),
                status=request.args.get("status"),
            )
        return jsonify({"invoices": [inv.to_dict() for inv in invoices]}), 200

    except FulfillmentError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list invoices")
        return jsonify({"error": "Internal server error"}), 500


@invoices_bp.get("/stats")
def invoice_stats_route():
    return jsonify({"stats": invoice_service.get_invoice_stats()}), 200


@invoices_bp.get("/<invoice_id>")
def get_invoice_route(invoice_id: str):
    invoice = invoice_service.get_invoice(invoice_id)
    if not invoice:
        return jsonify({"error": "Invoice not found"}), 404

    return jsonify({"invoice": enrich_invoice(invoice)}), 200


@invoices_bp.patch("/<invoice_id>/status")
@require_actor
def update_invoice_status_route(invoice_id: str):
    """Change status; paid_date defaults to now when marking paid."""
    try:
        data = request.get_json() or {}
        status = data.get("status")
        if not status:
            return jsonify({"error": "status required"}), 400

        invoice = invoice_service.update_invoice_status(
            invoice_id,
            status,
            paid_date=parse_optional_datetime(data.get("paid_date"), "paid_date"),
        )
        if not invoice:
            return jsonify({"error": "Invoice not found"}), 404

        return jsonify({"invoice": invoice.to_dict()}), 200

    except FulfillmentError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update invoice status")
        return jsonify({"error": "Internal server error"}), 500


@invoices_bp.post("/<invoice_id>/pod")
@require_actor
def link_pod_route(invoice_id: str):
    try:
        data = request.get_json() or {}
        pod_id = data.get("pod_id")
        if not pod_id:
            return jsonify({"error": "pod_id required"}), 400

        invoice = invoice_service.link_pod_to_invoice(invoice_id, pod_id)
        if not invoice:
            return jsonify({"error": "Invoice not found"}), 404

        return jsonify({"invoice": invoice.to_dict()}), 200

    except Exception:
        current_app.logger.exception("Failed to link POD to invoice")
        return jsonify({"error": "Internal server error"}), 500


@invoices_bp.delete("/<invoice_id>")
@require_actor
def delete_invoice_route(invoice_id: str):
    try:
        invoice_service.delete_invoice(invoice_id)
        return jsonify({"deleted": True}), 200

    except FulfillmentError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete invoice")
        return jsonify({"error": "Internal server error"}), 500


@invoices_bp.post("/generate-automatic")
@require_actor
def generate_automatic_invoices_route():
    """Invoice every completed order that has none. Per-order failures are reported, not raised."""
    try:
        result = invoice_service.generate_automatic_invoices(created_by=g.actor_id)
        return jsonify({"result": result.to_dict()}), 200

    except Exception:
        current_app.logger.exception("Failed to generate automatic invoices")
        return jsonify({"error": "Internal server error"}), 500
