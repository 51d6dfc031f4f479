# Overview: Retry helper for record store commits.

from __future__ import annotations

import logging
import time

from sqlalchemy.exc import OperationalError

from ..extensions import db

logger = logging.getLogger(__name__)


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Call func(), retrying when the database reports a lock.

    OperationalError covers SQLite "database is locked" and deadlocks on
    server databases. The session is rolled back before each retry, so func
    must stage its writes again itself. The final failure is re-raised.
    """
    attempt = 1
    while True:
        try:
            return func()
        except OperationalError as exc:
            db.session.rollback()
            if attempt >= attempts:
                raise
            delay = backoff_base * (2 ** (attempt - 1))
            logger.warning(
                "Database busy, retrying in %.2fs (attempt %s of %s): %s",
                delay, attempt, attempts, exc,
            )
            time.sleep(delay)
            attempt += 1
