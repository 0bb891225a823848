# Overview: Transaction helpers shared by services that mutate contended rows.

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError, SQLAlchemyError

from ..extensions import db
from ..validation import ServiceError, StorageFailure


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE (it serializes writers on
    the whole database instead); PostgreSQL/MySQL honor it.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on lock/deadlock failures.

    Every attempt starts from a rolled-back session, so a retried
    operation re-reads current rows.
    """
    for attempt in range(attempts):
        try:
            return func()
        except OperationalError:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))


def run_atomic(func, *, failure_message: str = "Something went wrong", attempts: int = 3):
    """
    Run func as one all-or-nothing unit.

    func must commit on success. Any exception rolls the session back;
    ServiceErrors propagate unchanged, storage errors are replaced by a
    StorageFailure carrying only failure_message.
    """
    try:
        return run_with_retry(func, attempts=attempts)
    except ServiceError:
        db.session.rollback()
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise StorageFailure(failure_message) from exc
    except Exception:
        db.session.rollback()
        raise
