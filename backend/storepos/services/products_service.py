# backend/storepos/services/products_service.py
"""
Products Service with Store Scoping

MULTI-TENANT: Every product operation is scoped to one store.
- list_products filters by store
- update_product and delete_product only touch rows of the caller's store;
  products of other stores are reported as not found
- Stock is only ever set here by a manager edit; sales decrement it in
  sales_service.checkout
"""
from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Product, Store
from ..validation import (
    ValidationError, NotFoundError, MAX_QUANTITY, require_text, parse_int, parse_price_cents,
)
from .concurrency import lock_for_update, run_atomic

PRODUCT_MUTABLE_FIELDS = {"name", "description", "price", "stock"}


def validate_product_patch(payload: dict, *, partial: bool) -> dict:
    """
    Validate and normalise product input into column values.

    partial=False: create semantics (name, price, stock, description required)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid payload")

    if not partial:
        missing = [f for f in ("name", "price", "stock", "description") if payload.get(f) in (None, "")]
        if missing:
            raise ValidationError("All fields are required")

    patch: dict = {}
    if "name" in payload:
        patch["name"] = require_text(payload, "name", label="Name")
    if "description" in payload:
        patch["description"] = require_text(payload, "description", label="Description")
    if "price" in payload:
        patch["price_cents"] = parse_price_cents(payload["price"])
    if "stock" in payload:
        patch["stock"] = parse_int(payload["stock"], label="stock", minimum=0, maximum=MAX_QUANTITY)
    return patch


def list_products(store_id: int | None = None, *, low_stock_below: int | None = None) -> list[Product]:
    """Products of one store (or all stores when store_id is None)."""
    query = db.session.query(Product)
    if store_id is not None:
        query = query.filter(Product.store_id == store_id)
    if low_stock_below is not None:
        query = query.filter(Product.stock < low_stock_below)
    return query.order_by(Product.name.asc(), Product.id.asc()).all()


def list_low_stock(store_id: int) -> list[Product]:
    threshold = current_app.config.get("LOW_STOCK_THRESHOLD", 10)
    return list_products(store_id, low_stock_below=threshold)


def get_product(product_id: int, store_id: int | None = None) -> Product:
    product = db.session.get(Product, product_id)
    if product is None or (store_id is not None and product.store_id != store_id):
        raise NotFoundError("Product not found")
    return product


def create_product(*, store_id: int, payload: dict) -> Product:
    patch = validate_product_patch(payload, partial=False)

    def _op():
        if db.session.get(Store, store_id) is None:
            raise NotFoundError("Store not found")
        product = Product(store_id=store_id, **patch)
        db.session.add(product)
        db.session.commit()
        return product

    return run_atomic(_op)


def update_product(*, product_id: int, store_id: int | None, payload: dict) -> Product:
    """
    Apply a partial update. store_id=None means unscoped (admin).
    """
    patch = validate_product_patch(payload, partial=True)
    if not patch:
        raise ValidationError("No fields to update")

    def _op():
        product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
        if product is None or (store_id is not None and product.store_id != store_id):
            raise NotFoundError("Product not found")
        for key, value in patch.items():
            setattr(product, key, value)
        db.session.commit()
        return product

    return run_atomic(_op)


def delete_product(*, product_id: int, store_id: int | None) -> None:
    def _op():
        product = db.session.get(Product, product_id)
        if product is None or (store_id is not None and product.store_id != store_id):
            raise NotFoundError("Product not found")
        db.session.delete(product)
        db.session.commit()

    run_atomic(_op)
