# Overview: Flask routes for the store manager dashboard.

from flask import Blueprint, current_app, g, jsonify

from ..decorators import require_role
from ..models import ROLE_STORE_MANAGER, ROLE_CASHIER
from ..services import auth_service, products_service, sales_service, store_service, user_service
from ..validation import ServiceError, request_payload, parse_int


store_bp = Blueprint("store", __name__, url_prefix="/store/dashboard")

manager_loader = require_role(ROLE_STORE_MANAGER, redirect_on_mismatch=True)
manager_action = require_role(ROLE_STORE_MANAGER)


@store_bp.get("")
@manager_loader
def dashboard():
    store_id = g.claims.store_id
    store = store_service.get_store(store_id)
    if store is None:
        return jsonify({"error": "Store not found"}), 404

    cashiers = store_service.list_store_users(store_id, ROLE_CASHIER)
    managers = store_service.list_store_users(store_id, ROLE_STORE_MANAGER)
    low_stock = products_service.list_low_stock(store_id)

    return jsonify({
        "manager": g.claims.to_payload(),
        "store": store.to_dict(),
        "sales": [s.to_dict() for s in sales_service.list_sales(store_id)],
        "cashiers": [u.to_dict() for u in cashiers],
        "managers": [
            {"id": u.id, "name": u.name, "email": u.email, "created_at": u.to_dict()["created_at"]}
            for u in managers
        ],
        "lowStockProducts": [{"name": p.name, "stock": p.stock} for p in low_stock],
    }), 200


@store_bp.get("/products")
@manager_loader
def list_products():
    products = products_service.list_products(g.claims.store_id)
    return jsonify({"products": [p.to_dict() for p in products]}), 200


@store_bp.post("/products")
@manager_action
def delete_product():
    """Inline delete from the product table (productId)."""
    try:
        data = request_payload()
        if data.get("productId") in (None, ""):
            return jsonify({"error": "Invalid product or store"}), 400
        product_id = parse_int(data.get("productId"), label="productId")
        products_service.delete_product(product_id=product_id, store_id=g.claims.store_id)
        return jsonify({"success": True}), 200

    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return jsonify({"error": "Internal server error"}), 500


@store_bp.get("/sales")
@manager_loader
def list_sales():
    sales = sales_service.list_sales(g.claims.store_id)
    return jsonify({"sales": [s.to_dict(include_user=True) for s in sales]}), 200


@store_bp.get("/store_managers")
@manager_loader
def list_store_managers():
    managers = store_service.list_store_users(g.claims.store_id, ROLE_STORE_MANAGER)
    return jsonify({
        "managers": [u.to_dict() for u in managers],
        "user": g.claims.to_payload(),
    }), 200


@store_bp.post("/store_managers")
@manager_action
def confirm_store_managers_access():
    try:
        data = request_payload()
        auth_service.confirm_password(g.current_user.id, data.get("password"))
        return jsonify({"success": True}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@store_bp.get("/manage_cashiers")
@manager_loader
def list_cashiers():
    cashiers = store_service.list_store_users(g.claims.store_id, ROLE_CASHIER)
    return jsonify({
        "cashiers": [u.to_dict() for u in cashiers],
        "user": g.claims.to_payload(),
    }), 200


@store_bp.post("/manage_cashiers")
@manager_action
def manage_cashier():
    """
    Password-confirmed cashier management.

    actionType:
    - delete: deactivate (soft delete) a cashier
    - reactivate: reactivate a cashier
    - add: redirect target for the signup form
    """
    try:
        data = request_payload()
        auth_service.confirm_password(g.current_user.id, data.get("password"))

        action_type = data.get("actionType")
        store_id = g.claims.store_id

        if action_type == "add":
            return jsonify({"redirect": f"/auth/signup?store={store_id}"}), 200

        if action_type in ("delete", "reactivate"):
            if data.get("cashierId") in (None, ""):
                return jsonify({"error": "cashierId is required"}), 400
            cashier_id = parse_int(data.get("cashierId"), label="cashierId")
            user = user_service.set_cashier_active(store_id, cashier_id, active=(action_type == "reactivate"))
            return jsonify({"success": True, "cashier": user.to_dict()}), 200

        return jsonify({"error": "Invalid action"}), 400

    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update cashier")
        return jsonify({"error": "Internal server error"}), 500
