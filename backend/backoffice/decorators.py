# Overview: Request decorators and error mapping for the fulfillment API routes.

from functools import wraps
from flask import request, jsonify, g

from .validation import (
    DuplicateLinkError,
    FulfillmentError,
    NotFoundError,
    ReferentialIntegrityError,
    ValidationError,
)


ACTOR_HEADER = "X-Actor-Id"


def require_actor(f):
    """
    Require the acting user's id and expose it as g.actor_id.

    Services never read ambient identity; routes pass g.actor_id explicitly
    as created_by / uploaded_by / validated_by / user_id.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        actor_id = (request.headers.get(ACTOR_HEADER) or "").strip()
        if not actor_id:
            return jsonify({"error": f"{ACTOR_HEADER} header required"}), 401

        g.actor_id = actor_id
        return f(*args, **kwargs)

    return decorated_function


_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (DuplicateLinkError, 409),
    (ReferentialIntegrityError, 409),
)


def error_response(exc: FulfillmentError):
    """JSON body and HTTP status for a service error."""
    status = next((code for cls, code in _STATUS_BY_ERROR if isinstance(exc, cls)), 400)
    return jsonify({"error": exc.message, "details": exc.details}), status


def query_flag(name: str) -> bool:
    return (request.args.get(name) or "").strip().lower() in ("1", "true", "yes")
