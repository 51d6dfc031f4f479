# Overview: Flask API routes for purchase orders; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..services import order_service
from ..services.enrichment_service import enrich_order
from ..validation import FulfillmentError, parse_optional_datetime
from ..decorators import require_actor, error_response, query_flag


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.post("/")
@require_actor
def create_order_route():
    """Create a pending order from line items (unit prices in cents)."""
    try:
        data = request.get_json() or {}
        salesperson_id = data.get("salesperson_id")
        store_id = data.get("store_id")

        if not all([salesperson_id, store_id]):
            return jsonify({"error": "salesperson_id and store_id required"}), 400

        order = order_service.create_order(
            salesperson_id=salesperson_id,
            store_id=store_id,
            items=data.get("items"),
            planogram_id=data.get("planogram_id"),
            notes=data.get("notes"),
        )
        return jsonify({"order": order.to_dict()}), 201

    except FulfillmentError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/")
def list_orders_route():
    """
    List orders.

    Query params: salesperson_id, store_id, status, without_invoice=1
    """
    try:
        if query_flag("without_invoice"):
            orders = order_service.get_orders_without_invoice()
        else:
            orders = order_service.list_orders(
                salesperson_id=request.args.get("salesperson_id"),
                store_id=request.args.get("store_id"),
                status=request.args.get("status"),
            )
        return jsonify({"orders": [o.to_dict() for o in orders]}), 200

    except FulfillmentError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list orders")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/stats")
def order_stats_route():
    return jsonify({"stats": order_service.get_order_stats()}), 200


@orders_bp.get("/<order_id>")
def get_order_route(order_id: str):
    """Get one order with store, seller, planogram and product names."""
    order = order_service.get_order(order_id)
    if not order:
        return jsonify({"error": "Order not found"}), 404

    return jsonify({"order": enrich_order(order)}), 200


@orders_bp.patch("/<order_id>/status")
@require_actor
def update_order_status_route(order_id: str):
    try:
        data = request.get_json() or {}
        status = data.get("status")
        if not status:
            return jsonify({"error": "status required"}), 400

        order = order_service.update_order_status(
            order_id,
            status,
            completed_at=parse_optional_datetime(data.get("completed_at"), "completed_at"),
        )
        if not order:
            return jsonify({"error": "Order not found"}), 404

        return jsonify({"order": order.to_dict()}), 200

    except FulfillmentError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update order status")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.put("/<order_id>/items")
@require_actor
def update_order_items_route(order_id: str):
    """Replace all line items. Existing invoices are not changed."""
    try:
        data = request.get_json() or {}
        order = order_service.update_order_items(order_id, data.get("items"))
        if not order:
            return jsonify({"error": "Order not found"}), 404

        return jsonify({"order": order.to_dict()}), 200

    except FulfillmentError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update order items")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.delete("/<order_id>")
@require_actor
def delete_order_route(order_id: str):
    try:
        order_service.delete_order(order_id)
        return jsonify({"deleted": True}), 200

    except FulfillmentError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete order")
        return jsonify({"error": "Internal server error"}), 500
