from __future__ import annotations

from ..extensions import db
from storepos.time_utils import to_utc_z


ROLE_ADMIN = "admin"
ROLE_STORE_MANAGER = "storeManager"
ROLE_CASHIER = "cashier"
ROLES = (ROLE_ADMIN, ROLE_STORE_MANAGER, ROLE_CASHIER)

RESET_PENDING = "pending"
RESET_COMPLETED = "completed"


class User(db.Model):
    """
    User accounts for authentication and attribution.

    MULTI-TENANT: Users belong to exactly one store (store_id).
    Email is unique within a store, not globally, so the same person can
    hold separate accounts in different stores.

    Accounts are never deleted by the application; managers flip
    is_active instead.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("store_id", "email", name="uq_users_store_email"),
        db.Index("ix_users_store_role", "store_id", "role"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)

    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), nullable=False, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(32), nullable=False, default=ROLE_CASHIER)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    store = db.relationship("Store", back_populates="users")
    reset_request = db.relationship(
        "PasswordResetRequest", back_populates="user", uselist=False,
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at) if self.last_login_at else None,
        }


class PasswordResetRequest(db.Model):
    """
    Forgotten-password workflow record: at most one per user.

    State machine: (none) -> pending -> completed -> pending ...
    Users re-arm their own request; an admin resolves it.
    """
    __tablename__ = "password_reset_requests"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, unique=True)
    status = db.Column(db.String(16), nullable=False, default=RESET_PENDING, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    user = db.relationship("User", back_populates="reset_request")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "user": self.user.to_dict() if self.user else None,
        }
