from __future__ import annotations

from ..extensions import db
from storepos.time_utils import to_utc_z


class Store(db.Model):
    """
    A tenant: owns its users, products and sales.

    Deleting a store cascades to everything it owns. One store (named by
    ADMIN_STORE_NAME) holds the administrator accounts and is left out of
    ordinary store listings.
    """
    __tablename__ = "stores"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )

    users = db.relationship(
        "User", back_populates="store", lazy=True, cascade="all, delete-orphan",
        order_by="User.created_at",
    )
    products = db.relationship(
        "Product", back_populates="store", lazy=True, cascade="all, delete-orphan",
    )
    sales = db.relationship(
        "Sale", back_populates="store", lazy=True, cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Store id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "created_at": to_utc_z(self.created_at),
        }
