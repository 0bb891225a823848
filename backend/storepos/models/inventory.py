from __future__ import annotations

from ..extensions import db
from storepos.time_utils import to_utc_z
from storepos.validation import format_cents


class Product(db.Model):
    """
    Store-scoped product with its on-hand stock.

    Stock is only decremented by checkout, through a conditional UPDATE
    (stock >= quantity). The CHECK constraint keeps it non-negative.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        db.CheckConstraint("price_cents >= 0", name="ck_products_price_non_negative"),
        db.Index("ix_products_store_name", "store_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    # Backend authority for pricing; clients never set the price at checkout
    price_cents = db.Column(db.Integer, nullable=False)
    stock = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    store = db.relationship("Store", back_populates="products")

    def __repr__(self) -> str:
        return f"<Product id={self.id} store_id={self.store_id} stock={self.stock}>"

    def to_dict(self, *, include_store: bool = False) -> dict:
        data = {
            "id": self.id,
            "store_id": self.store_id,
            "name": self.name,
            "description": self.description,
            "price_cents": self.price_cents,
            "price": format_cents(self.price_cents),
            "stock": self.stock,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_store:
            data["store"] = self.store.to_dict() if self.store else None
        return data
