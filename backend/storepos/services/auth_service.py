# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service with Store-Scoped Accounts

WHY: Every sale must be attributable to a user. Uses bcrypt for secure
password hashing.

MULTI-TENANT: Users belong to exactly one store (store_id). Email
uniqueness is store-scoped, so login may find several candidate
accounts for one email; the password (and optional store_id) decides.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Minimum length from PASSWORD_MIN_LENGTH (default 6)
- Session tokens are issued separately (see session_service.py)
- Administrators live in the admin store only
"""

import bcrypt
from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import User, Store, ROLES, ROLE_ADMIN, ROLE_STORE_MANAGER, ROLE_CASHIER
from ..validation import (
    ValidationError,
    UnauthorizedError,
    ForbiddenError,
    NotFoundError,
    ConflictError,
    require_text,
    validate_email,
)
from storepos.time_utils import utcnow


NAME_MIN_LENGTH = 3


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str | None) -> None:
    """
    Validate password meets the configured minimum length.

    Raises PasswordValidationError if requirements not met.
    """
    min_length = current_app.config.get("PASSWORD_MIN_LENGTH", 6)
    if not password or len(password) < min_length:
        raise PasswordValidationError(f"Password must be at least {min_length} characters")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    WHY configurable rounds: production keeps cost factor 12; the test
    suite lowers it so fixtures stay fast.
    """
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    WHY timing-safe: bcrypt.checkpw() prevents timing attacks automatically.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash in storage
        return False


def create_user(
    *,
    name: str,
    email: str,
    password: str,
    store_id: int,
    role: str = ROLE_CASHIER,
    actor=None,
) -> User:
    """
    Create new user with bcrypt password hashing (the signup action).

    MULTI-TENANT: Email uniqueness is scoped to the store.

    Args:
        actor: the authenticated User performing the signup, or None for
            CLI bootstrap. Store managers may only add cashiers and store
            managers to their own store; only admins create admins.

    Raises:
        ValidationError: malformed field or password too short
        NotFoundError: store does not exist
        ForbiddenError: actor may not create this account
        ConflictError: email already exists in this store
    """
    name = require_text({"name": name}, "name", label="Name", min_length=NAME_MIN_LENGTH)
    email = validate_email(email)
    validate_password_strength(password)

    role = role or ROLE_CASHIER
    if role not in ROLES:
        raise ValidationError(f"Invalid role: {role}")

    store = db.session.get(Store, store_id) if store_id is not None else None
    if store is None:
        raise NotFoundError("Store not found")

    if actor is not None and actor.role != ROLE_ADMIN:
        if actor.role != ROLE_STORE_MANAGER or actor.store_id != store.id:
            raise ForbiddenError("You can only add users to your own store")
        if role == ROLE_ADMIN:
            raise ForbiddenError("Only administrators can create administrators")

    is_admin_store = store.name == current_app.config["ADMIN_STORE_NAME"]
    if role == ROLE_ADMIN and not is_admin_store:
        raise ValidationError("Administrators must belong to the admin store")
    if role != ROLE_ADMIN and is_admin_store:
        raise ValidationError("Only administrators can belong to the admin store")

    existing = db.session.query(User).filter_by(store_id=store.id, email=email).first()
    if existing:
        raise ConflictError("User already exists in this store")

    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=role,
        store_id=store.id,
        is_active=True,
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race with a concurrent signup for the same (store, email)
        db.session.rollback()
        raise ConflictError("User already exists in this store")
    return user


def authenticate(email: str, password: str, store_id: int | None = None) -> User:
    """
    Authenticate user by email and password.

    MULTI-TENANT: If store_id is provided, the lookup is scoped to that
    store; otherwise every account with the email is a candidate and the
    first active account whose password matches wins.

    Returns the User on success and updates last_login_at.

    Raises:
        ValidationError: email or password missing
        UnauthorizedError: no account matches the credentials
        ForbiddenError: credentials match only inactive accounts
    """
    if not email or not password:
        raise ValidationError("All fields are required")

    query = db.session.query(User).filter(User.email == email.strip().lower())
    if store_id is not None:
        query = query.filter(User.store_id == store_id)

    inactive_match = False
    for user in query.order_by(User.id.asc()).all():
        if not verify_password(password, user.password_hash):
            continue
        if not user.is_active:
            # Another store may still hold an active account for this email
            inactive_match = True
            continue
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    if inactive_match:
        raise ForbiddenError("User is inactive. Please contact the administrator")
    raise UnauthorizedError("Invalid email or password")


def get_user(user_id: int) -> User | None:
    return db.session.get(User, user_id)


def confirm_password(user_id: int, password: str | None) -> User:
    """
    Re-confirm the acting user's own password before a sensitive view or
    action. The user id always comes from the session, never the client.
    """
    if not password:
        raise ValidationError("Password is required")

    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    if not verify_password(password, user.password_hash):
        raise UnauthorizedError("Invalid password")
    return user
