# Overview: Identifier and document number generation for orders, invoices and PODs.

from __future__ import annotations

import random
import secrets

from backoffice.time_utils import epoch_millis


def _three_digit_suffix() -> str:
    return f"{random.randint(0, 999):03d}"


def next_document_number(prefix: str) -> str:
    """
    Human-facing document number: "<prefix>-<epoch-ms>-<3 digits>".

    Not guaranteed unique; two numbers generated in the same millisecond
    collide one time in a thousand.
    """
    return f"{prefix}-{epoch_millis()}-{_three_digit_suffix()}"


def generate_po_number() -> str:
    return next_document_number("PO")


def generate_invoice_number() -> str:
    return next_document_number("INV")


def new_record_id(kind: str) -> str:
    """Record id such as "order-1718000000000-9f2c1a"; the random part keeps ids unique within a millisecond."""
    return f"{kind}-{epoch_millis()}-{secrets.token_hex(3)}"
