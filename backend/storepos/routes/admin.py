# Overview: Flask routes for the administrator dashboard; stores, managers, sales and reset requests.

# backend/storepos/routes/admin.py
"""
Administrator dashboard

All routes require the admin role. GET loaders redirect other roles to
their own dashboard; POST actions answer 401/403.

Sensitive listings (admin store, store managers, store switching) are
unlocked client-side after the admin re-enters their password; the
confirmation always checks the session user, never a client-supplied id.
"""

from flask import Blueprint, current_app, g, jsonify

from ..decorators import require_role, require_admin
from ..models import ROLE_ADMIN
from ..services import (
    auth_service,
    password_reset_service,
    products_service,
    sales_service,
    store_service,
    user_service,
)
from ..validation import ServiceError, request_payload, parse_int


admin_bp = Blueprint("admin", __name__, url_prefix="/admin/dashboard")

admin_loader = require_role(ROLE_ADMIN, redirect_on_mismatch=True)


def _confirm_admin_password() -> None:
    data = request_payload()
    auth_service.confirm_password(g.current_user.id, data.get("password"))


@admin_bp.get("")
@admin_loader
def dashboard():
    admin_store_name = current_app.config["ADMIN_STORE_NAME"]
    sales = sales_service.list_sales()
    stores = store_service.list_stores()
    managers = user_service.list_store_managers()

    return jsonify({
        "user": g.claims.to_payload(),
        "sales": [s.to_dict(include_store=True) for s in sales],
        "stores": [s.to_dict() for s in stores],
        "users": [u.to_dict() for u in managers],
        "salesByStore": sales_service.summarize_sales_by_store(exclude_store_name=admin_store_name),
    }), 200


@admin_bp.post("/create_store")
@require_admin
def create_store():
    try:
        data = request_payload()
        store = store_service.create_store(data.get("storeName") or data.get("name"))
        current_app.logger.info("Admin %s created store %s", g.current_user.id, store.id)
        return jsonify({"store": store.to_dict()}), 201

    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create store")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.get("/stores")
@admin_loader
def list_stores():
    return jsonify({"stores": store_service.list_stores_with_managers()}), 200


@admin_bp.post("/stores")
@require_admin
def edit_or_delete_store():
    """actionType=edit (storeId, newName) or actionType=delete (storeId)."""
    try:
        data = request_payload()
        action_type = data.get("actionType")
        if data.get("storeId") in (None, ""):
            return jsonify({"error": "storeId is required"}), 400
        store_id = parse_int(data.get("storeId"), label="storeId")

        if action_type == "delete":
            store_service.delete_store(store_id)
            current_app.logger.info("Admin %s deleted store %s", g.current_user.id, store_id)
            return jsonify({"success": True}), 200

        if action_type == "edit":
            store = store_service.rename_store(store_id, data.get("newName"))
            return jsonify({"success": True, "store": store.to_dict()}), 200

        return jsonify({"error": "Invalid action."}), 400

    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update store")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.get("/adminStore")
@admin_loader
def admin_store():
    store = store_service.get_admin_store()
    if store is None:
        return jsonify({"error": "POS Admins store not found."}), 404
    return jsonify({
        "adminStore": dict(store.to_dict(), users=[u.to_dict() for u in store.users]),
        "admin": g.claims.to_payload(),
    }), 200


@admin_bp.post("/adminStore")
@require_admin
def confirm_admin_store_access():
    try:
        _confirm_admin_password()
        return jsonify({"success": True}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@admin_bp.get("/manageStores")
@admin_loader
def manage_stores():
    stores = store_service.list_stores(include_admin_store=True)
    return jsonify({
        "stores": [{"id": s.id, "name": s.name} for s in stores],
        "user": g.claims.to_payload(),
    }), 200


@admin_bp.post("/manageStores")
@require_admin
def confirm_manage_store():
    try:
        data = request_payload()
        if data.get("storeId") in (None, ""):
            return jsonify({"error": "Invalid request"}), 400
        store_id = parse_int(data.get("storeId"), label="storeId")
        if store_service.get_store(store_id) is None:
            return jsonify({"error": "Store not found"}), 404

        _confirm_admin_password()
        return jsonify({"success": True, "storeId": store_id}), 200

    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@admin_bp.get("/sales")
@admin_loader
def list_sales():
    sales = sales_service.list_sales()
    stores = store_service.list_stores()
    return jsonify({
        "sales": [s.to_dict(include_store=True, include_user=True) for s in sales],
        "stores": [{"id": s.id, "name": s.name} for s in stores],
    }), 200


@admin_bp.get("/products")
@admin_loader
def list_products():
    products = products_service.list_products()
    stores = store_service.list_stores(include_admin_store=True)
    return jsonify({
        "products": [p.to_dict(include_store=True) for p in products],
        "stores": [{"id": s.id, "name": s.name} for s in stores],
    }), 200


@admin_bp.get("/store_managers")
@admin_loader
def list_store_managers():
    managers = user_service.list_store_managers()
    return jsonify({
        "storeManagers": [
            dict(u.to_dict(), store=u.store.to_dict() if u.store else None)
            for u in managers
        ],
        "admin": g.claims.to_payload(),
    }), 200


@admin_bp.post("/store_managers")
@require_admin
def confirm_store_managers_access():
    try:
        _confirm_admin_password()
        return jsonify({"success": True}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@admin_bp.get("/resetRequests")
@admin_loader
def list_reset_requests():
    return jsonify([r.to_dict() for r in password_reset_service.list_pending()]), 200


@admin_bp.post("/resetRequests")
@require_admin
def resolve_reset_request():
    """
    Resolve a pending reset: returns the temporary password once.
    The password is only in this response; it is not stored or logged.
    """
    try:
        data = request_payload()
        if data.get("userId") in (None, ""):
            return jsonify({"error": "Invalid request"}), 400
        user_id = parse_int(data.get("userId"), label="userId")

        temp_password = password_reset_service.resolve_reset(user_id)
        user = auth_service.get_user(user_id)
        return jsonify({
            "success": "Password reset.",
            "temporary_password": temp_password,
            "user": user.to_dict() if user else None,
        }), 200

    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to resolve password reset")
        return jsonify({"error": "Internal server error"}), 500
