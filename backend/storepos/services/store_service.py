from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import IntegrityError

from storepos.extensions import db
from storepos.models import Store, User, ROLE_STORE_MANAGER
from storepos.validation import ValidationError, NotFoundError, ConflictError
from storepos.services.concurrency import lock_for_update, run_atomic


def _admin_store_name() -> str:
    return current_app.config["ADMIN_STORE_NAME"]


def create_store(name: str | None) -> Store:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Store name is required")
    if name.lower() == _admin_store_name().lower():
        raise ValidationError("Store name is reserved")

    def _op():
        if db.session.query(Store).filter_by(name=name).first():
            raise ConflictError("Store name already exists")

        store = Store(name=name)
        db.session.add(store)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError("Store name already exists")
        return store

    return run_atomic(_op)


def rename_store(store_id: int, new_name: str | None) -> Store:
    """Rename a store; names are normalised to lowercase."""
    name = (new_name or "").strip().lower()
    if not name:
        raise ValidationError("Store name cannot be empty.")

    def _op():
        store = lock_for_update(db.session.query(Store).filter_by(id=store_id)).first()
        if not store:
            raise NotFoundError("Store not found")
        if store.name == _admin_store_name():
            raise ValidationError("The admin store cannot be renamed")

        clash = db.session.query(Store).filter(Store.name == name, Store.id != store_id).first()
        if clash:
            raise ConflictError("Store name already exists. Choose a different name.")

        store.name = name
        db.session.commit()
        return store

    return run_atomic(_op)


def delete_store(store_id: int) -> None:
    """Delete a store together with its users, products and sales."""
    def _op():
        store = db.session.get(Store, store_id)
        if not store:
            raise NotFoundError("Store not found")
        if store.name == _admin_store_name():
            raise ValidationError("The admin store cannot be deleted")
        db.session.delete(store)
        db.session.commit()

    run_atomic(_op)


def get_store(store_id: int) -> Store | None:
    return db.session.get(Store, store_id)


def get_admin_store() -> Store | None:
    return db.session.query(Store).filter_by(name=_admin_store_name()).first()


def ensure_admin_store() -> Store:
    store = get_admin_store()
    if store is None:
        store = Store(name=_admin_store_name())
        db.session.add(store)
        db.session.commit()
    return store


def list_stores(*, include_admin_store: bool = False) -> list[Store]:
    query = db.session.query(Store)
    if not include_admin_store:
        query = query.filter(Store.name != _admin_store_name())
    return query.order_by(Store.created_at.desc(), Store.id.desc()).all()


def list_stores_with_managers() -> list[dict]:
    result = []
    for store in list_stores():
        managers = [u for u in store.users if u.role == ROLE_STORE_MANAGER]
        result.append(dict(store.to_dict(), managers=[{"name": u.name} for u in managers]))
    return result


def list_store_users(store_id: int, role: str | None = None) -> list[User]:
    query = db.session.query(User).filter(User.store_id == store_id)
    if role is not None:
        query = query.filter(User.role == role)
    return query.order_by(User.created_at.asc(), User.id.asc()).all()
