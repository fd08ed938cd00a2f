# Overview: Transaction helpers for ledger writes: row locks, bounded retry, unique-constraint mapping.

from __future__ import annotations

import time

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..validation import ConflictError


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    The guarded UPDATE in inventory_service is what keeps SQLite correct.
    """
    return query.with_for_update().populate_existing()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a unit of work as one transaction.

    Any exception rolls the session back, so a failed operation leaves no
    partial writes behind. OperationalError (deadlocks, locks) and
    StaleDataError are retried with exponential backoff; everything else
    is re-raised immediately.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError):
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
        except Exception:
            db.session.rollback()
            raise


def flush_unique(conflict_message: str) -> None:
    """
    Flush pending rows, turning a unique-constraint violation into ConflictError.

    The service layer checks uniqueness before writing; this is the backstop
    for two writers racing past that check.
    """
    try:
        db.session.flush()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError(conflict_message) from exc
