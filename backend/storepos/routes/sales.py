# Overview: Flask routes for the cashier cart; lists sellable products and runs checkout.

# backend/storepos/routes/sales.py
"""Cart and checkout routes"""

from flask import Blueprint, current_app, g, jsonify

from ..decorators import require_role
from ..models import ROLE_STORE_MANAGER, ROLE_CASHIER
from ..services import products_service, sales_service, store_service
from ..validation import ServiceError, request_payload


sales_bp = Blueprint("sales", __name__, url_prefix="/store/cart")


@sales_bp.get("")
@require_role(ROLE_CASHIER, ROLE_STORE_MANAGER, redirect_on_mismatch=True)
def cart():
    """Products of the caller's store plus the store and caller (admins are redirected)."""
    store_id = g.claims.store_id
    store = store_service.get_store(store_id)
    products = products_service.list_products(store_id)
    return jsonify({
        "products": [p.to_dict() for p in products],
        "user": g.claims.to_payload(),
        "store": store.to_dict() if store else None,
    }), 200


@sales_bp.post("")
@require_role(ROLE_CASHIER, ROLE_STORE_MANAGER)
def checkout():
    """
    Check out the submitted cart.

    Body: `cart`, the serialized cart (JSON string in a form field, or a
    JSON array). Prices and stock in the cart are ignored; the receipt is
    priced from storage.

    Returns 201 {"success": true, "receipt": {...}}.
    """
    store_id = g.claims.store_id
    try:
        data = request_payload()
        lines = sales_service.parse_cart(data.get("cart"))
        sale = sales_service.checkout(store_id, g.current_user.id, lines)
        return jsonify({"success": True, "receipt": sale.to_dict()}), 201

    except ServiceError as e:
        current_app.logger.info(
            "Checkout rejected for user %s in store %s: %s", g.current_user.id, store_id, e.message,
        )
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to check out cart")
        return jsonify({"error": "Internal server error"}), 500
