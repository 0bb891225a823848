# backend/storepos/routes/system.py
"""
System health endpoint for deployment checks.

Reports the database and whether the POS has been bootstrapped (the
admin store exists). A missing admin store is "degraded": the app
serves requests but nobody can log in as an administrator yet.
"""

import time
from flask import Blueprint, current_app
from sqlalchemy import text

from ..extensions import db
from ..services import store_service
from storepos.time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__)


def _elapsed_ms(start_time: float) -> float:
    return round((time.time() - start_time) * 1000, 2)


def check_database_health() -> dict:
    """Round-trip a trivial query."""
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        return {"status": "healthy", "latency_ms": _elapsed_ms(start_time)}
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Database health check failed")
        return {"status": "unhealthy", "latency_ms": _elapsed_ms(start_time), "error": "Database error"}


def check_bootstrap_health() -> dict:
    """The admin store must exist (see `flask system init`)."""
    try:
        admin_store = store_service.get_admin_store()
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Bootstrap health check failed")
        return {"status": "unhealthy", "error": "Database error"}

    if admin_store is None:
        return {"status": "degraded", "warning": "Admin store missing; run 'flask system init'"}
    return {"status": "healthy", "admin_users": len(admin_store.users)}


@system_bp.get("/health")
def health():
    """
    200 when healthy or degraded, 503 when the database is unreachable.
    """
    checks = {
        "database": check_database_health(),
        "bootstrap": check_bootstrap_health(),
    }
    statuses = {check["status"] for check in checks.values()}

    if "unhealthy" in statuses:
        overall, http_status = "unhealthy", 503
    elif "degraded" in statuses:
        overall, http_status = "degraded", 200
    else:
        overall, http_status = "healthy", 200

    return {
        "status": overall,
        "timestamp": to_utc_z(utcnow()),
        "checks": checks,
    }, http_status
