from __future__ import annotations

from sqlalchemy import event

from ..extensions import db
from storepos.time_utils import to_utc_z
from storepos.validation import format_cents


class Sale(db.Model):
    """
    Sale receipt: a frozen snapshot of what was sold.

    Items are embedded JSON copied at checkout, independent of later
    product edits or deletion. Each item is
    {product_id, name, price_cents, quantity, line_total_cents}.

    Immutable once created; see _reject_sale_update below.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_store_created", "store_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    total_cents = db.Column(db.Integer, nullable=False)
    items = db.Column(db.JSON, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    store = db.relationship("Store", back_populates="sales")
    user = db.relationship("User")

    def __repr__(self) -> str:
        return f"<Sale id={self.id} store_id={self.store_id} total_cents={self.total_cents}>"

    def to_dict(self, *, include_store: bool = False, include_user: bool = False) -> dict:
        data = {
            "id": self.id,
            "store_id": self.store_id,
            "user_id": self.user_id,
            "total_cents": self.total_cents,
            "total": format_cents(self.total_cents),
            "items": [
                dict(item, price=format_cents(item["price_cents"]))
                for item in (self.items or [])
            ],
            "created_at": to_utc_z(self.created_at),
        }
        if include_store:
            data["store"] = self.store.to_dict() if self.store else None
        if include_user:
            data["user"] = {"name": self.user.name} if self.user else None
        return data


@event.listens_for(Sale, "before_update")
def _reject_sale_update(mapper, connection, target):
    raise ValueError("Sales are immutable once created")
