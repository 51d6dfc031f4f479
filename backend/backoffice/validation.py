from __future__ import annotations

import re
from enum import Enum
from typing import Any, Iterable, TypeVar

from backoffice.time_utils import parse_iso_datetime


E = TypeVar("E", bound=Enum)

MAX_PRICE_CENTS = 999_999_999


class FulfillmentError(Exception):
    """Base for order/invoice/POD operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(FulfillmentError, ValueError):
    """400-level input problem (bad line items, unknown status)."""


class NotFoundError(FulfillmentError):
    """Referenced order, invoice or POD does not exist."""


class DuplicateLinkError(FulfillmentError):
    """An invoice already exists for the order, or a POD for the invoice."""


class ReferentialIntegrityError(FulfillmentError):
    """Deleting the record would leave a dangling reference."""


class RepairFailure(FulfillmentError):
    """Synthesizing an invoice during auto-repair failed."""


class RecordStoreError(Exception):
    """The record store could not read or write a collection."""


def _to_int(value: Any, field_name: str, index: int) -> int:
    # Reject bools, floats and anything but ASCII digit strings
    if isinstance(value, bool):
        raise ValidationError(f"items[{index}].{field_name} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if re.fullmatch(r"-?[0-9]+", stripped):
            return int(stripped)
    raise ValidationError(f"items[{index}].{field_name} must be an integer")


def normalize_line_items(items: Iterable[dict] | None) -> list[dict]:
    """
    Structural check of caller-supplied line data.

    Each item needs product_id, an integer quantity > 0 and an integer
    unit_price_cents between 0 and MAX_PRICE_CENTS. Prices and quantities are otherwise trusted.
    Returns new dicts with exactly those three keys.
    """
    if items is None:
        raise ValidationError("items required")
    if isinstance(items, (str, bytes, dict)):
        raise ValidationError("items must be a list")

    normalized: list[dict] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"items[{index}] must be an object")

        product_id = item.get("product_id")
        if product_id in (None, ""):
            raise ValidationError(f"items[{index}].product_id required")

        quantity = _to_int(item.get("quantity"), "quantity", index)
        if quantity <= 0:
            raise ValidationError(f"items[{index}].quantity must be greater than 0")

        unit_price_cents = _to_int(item.get("unit_price_cents"), "unit_price_cents", index)
        if unit_price_cents < 0:
            raise ValidationError(f"items[{index}].unit_price_cents cannot be negative")
        if unit_price_cents > MAX_PRICE_CENTS:
            raise ValidationError(f"items[{index}].unit_price_cents cannot exceed {MAX_PRICE_CENTS}")

        normalized.append({
            "product_id": str(product_id),
            "quantity": quantity,
            "unit_price_cents": unit_price_cents,
        })
    return normalized


def parse_enum(enum_cls: type[E], value: Any, field_name: str = "status") -> E:
    """Coerce a raw string into enum_cls, raising ValidationError on unknown values."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(
            f"Invalid {field_name} '{value}'",
            details={"allowed": allowed},
        )


def parse_optional_datetime(value: Any, field_name: str):
    """ISO-8601 string (or None) to a UTC-naive datetime; ValidationError if malformed."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be an ISO-8601 string")
    try:
        return parse_iso_datetime(value)
    except ValueError:
        raise ValidationError(f"{field_name} must be an ISO-8601 datetime")
