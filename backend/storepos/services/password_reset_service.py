"""
Password Reset Workflow

A two-party state machine per user:

    (none) --request--> pending --resolve--> completed --request--> pending ...

Users request a reset by email; an administrator resolves it, which
issues a temporary password shown once to the admin for hand-off.

SECURITY:
- request_reset answers the same way whether or not the email exists
- Only the bcrypt hash of the temporary password is stored
- The temporary password is never logged
"""

from __future__ import annotations

import secrets

from flask import current_app

from ..extensions import db
from ..models import User, PasswordResetRequest, RESET_PENDING, RESET_COMPLETED
from ..validation import ValidationError, NotFoundError, ConflictError
from storepos.time_utils import utcnow
from .auth_service import hash_password
from .concurrency import lock_for_update, run_atomic


GENERIC_REQUEST_MESSAGE = (
    "If an account exists for that email, a password reset request has been sent to an administrator."
)
TEMP_PASSWORD_BYTES = 9  # 12 url-safe characters


def generate_temporary_password() -> str:
    return secrets.token_urlsafe(TEMP_PASSWORD_BYTES)


def request_reset(email: str | None) -> str:
    """
    Create or re-arm a pending reset request for every account with this
    email (email is only unique per store). Returns the generic message.
    """
    if not email or not email.strip():
        raise ValidationError("Email is required")
    email = email.strip().lower()

    def _op():
        users = db.session.query(User).filter(User.email == email).all()
        now = utcnow()
        for user in users:
            request = lock_for_update(
                db.session.query(PasswordResetRequest).filter_by(user_id=user.id)
            ).first()
            if request:
                request.status = RESET_PENDING
                request.updated_at = now
            else:
                db.session.add(PasswordResetRequest(
                    user_id=user.id,
                    status=RESET_PENDING,
                    created_at=now,
                    updated_at=now,
                ))
        db.session.commit()
        return [user.id for user in users]

    user_ids = run_atomic(_op)
    if user_ids:
        current_app.logger.info("Password reset requested for user(s) %s", user_ids)
    return GENERIC_REQUEST_MESSAGE


def resolve_reset(user_id: int) -> str:
    """
    Admin action: set a new temporary password on the user, mark the
    request completed, and return the plaintext password exactly once.

    Raises:
        NotFoundError: no reset request for this user
        ConflictError: the request is not pending
    """
    temp_password = generate_temporary_password()

    def _op():
        request = lock_for_update(
            db.session.query(PasswordResetRequest).filter_by(user_id=user_id)
        ).first()
        if request is None or request.user is None:
            raise NotFoundError("Reset request not found")
        if request.status != RESET_PENDING:
            raise ConflictError("Reset request is not pending")

        request.user.password_hash = hash_password(temp_password)
        request.status = RESET_COMPLETED
        request.updated_at = utcnow()
        db.session.commit()
        return request

    run_atomic(_op)
    current_app.logger.info("Password reset resolved for user %s", user_id)
    return temp_password


def list_pending() -> list[PasswordResetRequest]:
    return (
        db.session.query(PasswordResetRequest)
        .filter(PasswordResetRequest.status == RESET_PENDING)
        .order_by(PasswordResetRequest.updated_at.asc(), PasswordResetRequest.id.asc())
        .all()
    )
