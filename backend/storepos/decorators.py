# Overview: Session and role guard applied before every protected route.

from __future__ import annotations

from dataclasses import dataclass
from functools import wraps

from flask import current_app, g, jsonify, redirect, request

from .extensions import db, session_codec
from .models import User, ROLE_ADMIN, ROLE_STORE_MANAGER, ROLE_CASHIER
from .services.session_service import (
    SessionClaims,
    InvalidSession,
    read_session_cookie,
    clear_session_cookie,
)


LOGIN_ROUTE = "/"

# Where each role lands after login, and where a wrong-role request is sent
ROLE_HOME = {
    ROLE_ADMIN: "/admin/dashboard",
    ROLE_STORE_MANAGER: "/store/dashboard",
    ROLE_CASHIER: "/store/cart",
}


@dataclass(frozen=True)
class Denied:
    """Outcome of a failed role check."""
    status: int
    message: str
    redirect_to: str

    def __bool__(self) -> bool:
        return False


def home_for(role: str) -> str:
    return ROLE_HOME.get(role, LOGIN_ROUTE)


def check_role(claims: SessionClaims | InvalidSession | None, allowed) -> SessionClaims | Denied:
    """
    Decide whether the caller may proceed.

    - No (or invalid) session -> 401, redirect to the login route
    - Session with a role outside `allowed` -> 403, redirect to that role's home
    """
    if not isinstance(claims, SessionClaims):
        return Denied(status=401, message="Authentication required", redirect_to=LOGIN_ROUTE)
    if claims.role not in allowed:
        return Denied(status=403, message="Permission denied", redirect_to=home_for(claims.role))
    return claims


def _secure_cookies() -> bool:
    return bool(current_app.config.get("SESSION_COOKIE_SECURE"))


def _deny(denied: Denied, *, redirect_on_mismatch: bool, clear_cookie: bool = False):
    if redirect_on_mismatch:
        response = redirect(denied.redirect_to)
    else:
        response = jsonify({"error": denied.message})
        response.status_code = denied.status
    if clear_cookie:
        clear_session_cookie(response, secure=_secure_cookies())
    return response


def current_claims() -> SessionClaims | InvalidSession:
    return session_codec.verify(read_session_cookie(request))


def require_role(*roles: str, redirect_on_mismatch: bool = False):
    """
    Require a valid session whose role is one of `roles`.

    Sets the following Flask g attributes:
    - g.claims: the verified SessionClaims
    - g.current_user: the User row, reloaded to catch deactivation

    Page loaders pass redirect_on_mismatch=True and answer with a 302 to
    the login route or the caller's own dashboard. Actions answer JSON
    with 401 (no session / inactive account) or 403 (wrong role).
    """
    allowed = frozenset(roles)

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            claims = current_claims()
            outcome = check_role(claims, allowed)

            if isinstance(outcome, Denied):
                if outcome.status == 403:
                    current_app.logger.warning(
                        "Role %s denied on %s %s (user %s)",
                        claims.role, request.method, request.path, claims.user_id,
                    )
                stale_cookie = isinstance(claims, InvalidSession) and claims.reason != "missing"
                return _deny(outcome, redirect_on_mismatch=redirect_on_mismatch, clear_cookie=stale_cookie)

            # Tokens are stateless; catch accounts deactivated since login
            user = db.session.get(User, outcome.user_id)
            if (
                user is None
                or not user.is_active
                or user.store_id != outcome.store_id
                or user.role != outcome.role
            ):
                denied = Denied(status=401, message="Session is no longer valid", redirect_to=LOGIN_ROUTE)
                return _deny(denied, redirect_on_mismatch=redirect_on_mismatch, clear_cookie=True)

            g.claims = outcome
            g.current_user = user
            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_admin(f):
    """Shorthand for admin-only actions."""
    return require_role(ROLE_ADMIN)(f)
