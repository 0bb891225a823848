from __future__ import annotations

from flask import current_app

from storepos.extensions import db
from storepos.models import User, ROLE_CASHIER, ROLE_STORE_MANAGER
from storepos.validation import NotFoundError
from storepos.services.concurrency import lock_for_update, run_atomic


def list_store_managers() -> list[User]:
    return (
        db.session.query(User)
        .filter(User.role == ROLE_STORE_MANAGER)
        .order_by(User.created_at.asc(), User.id.asc())
        .all()
    )


def set_cashier_active(store_id: int, cashier_id: int, active: bool) -> User:
    """
    Soft-delete or reactivate a cashier of the given store.

    Users outside the store, or non-cashiers, are reported as not found.
    """
    def _op():
        user = lock_for_update(db.session.query(User).filter_by(id=cashier_id)).first()
        if user is None or user.store_id != store_id or user.role != ROLE_CASHIER:
            raise NotFoundError("Cashier not found")
        user.is_active = active
        db.session.commit()
        return user

    user = run_atomic(_op)
    current_app.logger.info(
        "Cashier %s %s in store %s", cashier_id, "reactivated" if active else "deactivated", store_id,
    )
    return user
