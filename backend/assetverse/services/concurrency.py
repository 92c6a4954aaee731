# Overview: Transaction helpers shared by the multi-step workflow operations.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..errors import ServiceError
from ..validation import ValidationError


RETRYABLE_ERRORS = (OperationalError, StaleDataError)


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1, retry_on: tuple = ()):
    """
    Execute a DB operation as one transaction, retrying concurrency failures.

    Retries on OperationalError (deadlocks, locks), StaleDataError
    (optimistic locking conflicts) and any extra exception types passed in
    retry_on (e.g. IntegrityError where a UNIQUE race is expected).

    Domain errors (ServiceError, ValidationError) roll the session back and
    propagate immediately so no partial write survives.
    """
    retryable = RETRYABLE_ERRORS + tuple(retry_on)
    for attempt in range(attempts):
        try:
            return func()
        except (ServiceError, ValidationError):
            db.session.rollback()
            raise
        except retryable as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            current_app.logger.warning(
                "Retrying transaction after %s (attempt %d of %d)",
                type(exc).__name__, attempt + 1, attempts,
            )
            time.sleep(backoff_base * (2 ** attempt))
