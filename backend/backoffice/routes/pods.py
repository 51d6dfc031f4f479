# Overview: Flask API routes for proof-of-delivery records; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, current_app

from ..services import pod_service
from ..services.enrichment_service import enrich_pod
from ..validation import FulfillmentError
from ..decorators import require_actor, error_response, query_flag


pods_bp = Blueprint("pods", __name__, url_prefix="/api/pods")


@pods_bp.post("/from-invoice")
@require_actor
def create_pod_from_invoice_route():
    """
    Record delivery for an invoice and link the invoice back to the POD.

    Returns 404 if the invoice is missing, 409 if it already has a POD.
    """
    try:
        data = request.get_json() or {}
        invoice_id = data.get("invoice_id")
        if not invoice_id:
            return jsonify({"error": "invoice_id required"}), 400

        pod = pod_service.create_pod_from_invoice(
            invoice_id,
            image_url=data.get("image_url"),
            uploaded_by=g.actor_id,
            notes=data.get("notes"),
        )
        return jsonify({"pod": pod.to_dict()}), 201

    except FulfillmentError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create POD from invoice")
        return jsonify({"error": "Internal server error"}), 500


@pods_bp.post("/")
@require_actor
def create_manual_pod_route():
    try:
        data = request.get_json() or {}
        salesperson_id = data.get("salesperson_id")
        store_id = data.get("store_id")
        po = data.get("po")

        if not all([salesperson_id, store_id, po]):
            return jsonify({"error": "salesperson_id, store_id and po required"}), 400

        pod = pod_service.create_manual_pod(
            salesperson_id=salesperson_id,
            store_id=store_id,
            po=po,
            image_url=data.get("image_url"),
            uploaded_by=g.actor_id,
            notes=data.get("notes"),
        )
        return jsonify({"pod": pod.to_dict()}), 201

    except FulfillmentError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create manual POD")
        return jsonify({"error": "Internal server error"}), 500


@pods_bp.get("/")
def list_pods_route():
    """Query params: salesperson_id, store_id, unvalidated=1"""
    pods = pod_service.list_pods(
        salesperson_id=request.args.get("salesperson_id"),
        store_id=request.args.get("store_id"),
        unvalidated=query_flag("unvalidated"),
    )
    return jsonify({"pods": [p.to_dict() for p in pods]}), 200


@pods_bp.get("/<pod_id>")
def get_pod_route(pod_id: str):
    pod = pod_service.get_pod(pod_id)
    if not pod:
        return jsonify({"error": "POD not found"}), 404

    return jsonify({"pod": enrich_pod(pod)}), 200


@pods_bp.patch("/<pod_id>/status")
@require_actor
def update_pod_status_route(pod_id: str):
    try:
        data = request.get_json() or {}
        status = data.get("status")
        if not status:
            return jsonify({"error": "status required"}), 400

        pod = pod_service.update_pod_status(pod_id, status)
        if not pod:
            return jsonify({"error": "POD not found"}), 404

        return jsonify({"pod": pod.to_dict()}), 200

    except FulfillmentError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update POD status")
        return jsonify({"error": "Internal server error"}), 500


@pods_bp.post("/<pod_id>/validate")
@require_actor
def validate_pod_route(pod_id: str):
    pod = pod_service.validate_pod(pod_id, validated_by=g.actor_id)
    if not pod:
        return jsonify({"error": "POD not found"}), 404

    return jsonify({"pod": pod.to_dict()}), 200


@pods_bp.post("/<pod_id>/invalidate")
@require_actor
def invalidate_pod_route(pod_id: str):
    pod = pod_service.invalidate_pod(pod_id)
    if not pod:
        return jsonify({"error": "POD not found"}), 404

    return jsonify({"pod": pod.to_dict()}), 200


@pods_bp.delete("/<pod_id>")
@require_actor
def delete_pod_route(pod_id: str):
    """Delete a POD; the invoice that pointed at it loses its pod_id."""
    try:
        pod_service.delete_pod(pod_id)
        return jsonify({"deleted": True}), 200

    except FulfillmentError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete POD")
        return jsonify({"error": "Internal server error"}), 500
