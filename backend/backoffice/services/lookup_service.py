# Overview: Read-only lookups into the catalog, store, user and planogram collections.

from __future__ import annotations

from . import record_store


def _index(collection: str) -> dict[str, dict]:
    return {str(record.get("id")): record for record in record_store.read_all(collection)}


def product_index() -> dict[str, dict]:
    return _index(record_store.PRODUCTS)


def store_index() -> dict[str, dict]:
    return _index(record_store.STORES)


def user_index() -> dict[str, dict]:
    return _index(record_store.USERS)


def planogram_index() -> dict[str, dict]:
    return _index(record_store.PLANOGRAMS)


def product_labels(product: dict | None) -> tuple[str | None, str | None]:
    """(name, brand) for a product record. The catalog keeps the brand in `category`."""
    if not product:
        return None, None
    return product.get("name"), product.get("category")


def full_name(user: dict | None) -> str:
    if not user:
        return ""
    return f"{user.get('first_name') or ''} {user.get('last_name') or ''}".strip()
