# Overview: Flask routes for login, logout, signup and forgotten passwords.

"""
Authentication routes

SECURITY FEATURES:
- Session token issued only after bcrypt verification and active check
- One message for unknown email and wrong password (no enumeration)
- Forgot-password answers identically whether or not the email exists
- Signup is restricted to admins and store managers
"""

from flask import Blueprint, current_app, g, jsonify, redirect, request

from ..extensions import session_codec
from ..decorators import require_role, current_claims, home_for
from ..models import ROLE_ADMIN, ROLE_STORE_MANAGER
from ..services import auth_service, password_reset_service, store_service
from ..services.session_service import (
    SessionClaims,
    set_session_cookie,
    clear_session_cookie,
)
from ..validation import (
    ServiceError,
    ValidationError,
    request_payload,
    parse_int,
)


auth_bp = Blueprint("auth", __name__)


@auth_bp.get("/")
def index_route():
    """Logged-in users are sent to their own dashboard."""
    claims = current_claims()
    if isinstance(claims, SessionClaims):
        return redirect(home_for(claims.role))
    return jsonify({"authenticated": False}), 200


@auth_bp.post("/")
def login_route():
    """
    Authenticate by email + password and set the session cookie.

    Optional store_id disambiguates an email registered in several stores.
    Redirects (302) to the role's home on success.
    """
    data = request_payload()
    email = (data.get("email") or "").strip()
    password = data.get("password")
    store_id = data.get("store_id")

    try:
        if store_id not in (None, ""):
            store_id = parse_int(store_id, label="store_id")
        else:
            store_id = None
        user = auth_service.authenticate(email, password, store_id=store_id)
    except ServiceError as exc:
        if exc.status_code in (401, 403):
            current_app.logger.warning("Login failed from %s: %s", request.remote_addr, exc.message)
        return jsonify(exc.to_dict()), exc.status_code

    token = session_codec.issue(SessionClaims.from_user(user))
    response = redirect(home_for(user.role))
    set_session_cookie(
        response,
        token,
        max_age=session_codec.max_age,
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
    )
    current_app.logger.info("User %s logged in (role=%s store=%s)", user.id, user.role, user.store_id)
    return response


@auth_bp.get("/auth/logout")
def logout_route():
    """Clear the session cookie and return to the login page."""
    response = redirect("/")
    clear_session_cookie(response, secure=current_app.config.get("SESSION_COOKIE_SECURE", False))
    return response


@auth_bp.get("/auth/signup")
@require_role(ROLE_ADMIN, ROLE_STORE_MANAGER, redirect_on_mismatch=True)
def signup_form_route():
    """Resolve the target store for the signup form (?store=<id>)."""
    raw_store = request.args.get("store")
    store = None
    if raw_store:
        try:
            store = store_service.get_store(parse_int(raw_store, label="store"))
        except ValidationError:
            store = None
    if store is None:
        return redirect("/?error=Invalid store selection")

    return jsonify({
        "user": g.claims.to_payload(),
        "store_id": store.id,
        "storeName": store.name,
    }), 200


@auth_bp.post("/auth/signup")
@require_role(ROLE_ADMIN, ROLE_STORE_MANAGER)
def signup_route():
    """
    Create a user account in a store.

    Body: name, email, password, role (default cashier), store_id.
    Duplicate email within the same store -> 409.
    """
    try:
        data = request_payload()
        store_id = data.get("store_id") or data.get("storeId")
        if store_id in (None, ""):
            return jsonify({"error": "Invalid store ID"}), 400

        user = auth_service.create_user(
            name=data.get("name"),
            email=data.get("email"),
            password=data.get("password"),
            role=data.get("role") or None,
            store_id=parse_int(store_id, label="store_id"),
            actor=g.current_user,
        )
        current_app.logger.info(
            "User %s created user %s (role=%s store=%s)", g.current_user.id, user.id, user.role, user.store_id,
        )
        return jsonify({"user": user.to_dict()}), 201

    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/auth/forgot_password")
def forgot_password_route():
    """Queue a password reset request for an administrator."""
    try:
        data = request_payload()
        message = password_reset_service.request_reset(data.get("email"))
        return jsonify({"success": message}), 200

    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to queue password reset")
        return jsonify({"error": "Internal server error"}), 500
