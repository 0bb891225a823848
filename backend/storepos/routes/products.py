# Overview: Flask routes for product add/edit/delete; parses input and returns JSON responses.

# backend/storepos/routes/products.py
"""
Product management routes with store scoping.

MULTI-TENANT: Store managers act on their own store only; the store is
taken from the session, never from the form. Admins may act on any
store and must name it (store_id) when adding a product.

SECURITY: All routes require the storeManager or admin role.
"""
from flask import Blueprint, current_app, g, jsonify

from ..decorators import require_role
from ..models import ROLE_ADMIN, ROLE_STORE_MANAGER
from ..services import products_service
from ..validation import ServiceError, request_payload, parse_int


products_bp = Blueprint("products", __name__, url_prefix="/products")

product_roles = require_role(ROLE_STORE_MANAGER, ROLE_ADMIN)


def _scope_store_id() -> int | None:
    """None (unscoped) for admins, the session store for managers."""
    if g.claims.role == ROLE_ADMIN:
        return None
    return g.claims.store_id


@products_bp.post("/add")
@product_roles
def add_product():
    """Body: name, price, stock, description (+ store_id for admins)."""
    try:
        data = request_payload()
        store_id = _scope_store_id()
        if store_id is None:
            if data.get("store_id") in (None, ""):
                return jsonify({"error": "Store not found"}), 400
            store_id = parse_int(data.get("store_id"), label="store_id")

        product = products_service.create_product(store_id=store_id, payload=data)
        current_app.logger.info("User %s added product %s to store %s", g.current_user.id, product.id, store_id)
        return jsonify({"product": product.to_dict()}), 201

    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to add product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.get("/<int:product_id>/edit")
@product_roles
def get_product(product_id: int):
    try:
        product = products_service.get_product(product_id, store_id=_scope_store_id())
        return jsonify({"product": product.to_dict()}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@products_bp.post("/<int:product_id>/edit")
@product_roles
def edit_product(product_id: int):
    try:
        data = request_payload()
        patch = {k: v for k, v in data.items() if k in products_service.PRODUCT_MUTABLE_FIELDS}
        product = products_service.update_product(
            product_id=product_id, store_id=_scope_store_id(), payload=patch,
        )
        return jsonify({"product": product.to_dict()}), 200

    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.post("/<int:product_id>/delete")
@product_roles
def delete_product(product_id: int):
    try:
        products_service.delete_product(product_id=product_id, store_id=_scope_store_id())
        current_app.logger.info("User %s deleted product %s", g.current_user.id, product_id)
        return jsonify({"ok": True}), 200

    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return jsonify({"error": "Internal server error"}), 500
