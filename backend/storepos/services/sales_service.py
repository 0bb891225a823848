"""
Checkout Service - cart to receipt in one atomic unit

WHY: Product.stock is shared, contended state. The only safe mutation
path is a conditional decrement (stock >= quantity) applied in the same
transaction as the Sale insert, so readers never see decremented stock
without its receipt or a receipt without its decrement.

The submitted cart is untrusted: only product ids and quantities are
read from it. Prices come from storage at transaction time.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

from flask import current_app
from sqlalchemy import update, func

from ..extensions import db
from ..models import Sale, Product, Store
from ..validation import ValidationError, NotFoundError, ConflictError, MAX_QUANTITY, parse_int
from .concurrency import lock_for_update, run_atomic


CHECKOUT_FAILURE_MESSAGE = "Failed to process order"


@dataclass(frozen=True)
class CartLine:
    product_id: int
    quantity: int


def parse_cart(raw) -> list[CartLine]:
    """
    Parse the serialized cart field.

    Accepts a JSON string or an already-decoded list of objects shaped
    {id, name, price, stock, quantity}. name/price/stock are display data
    from the client and are ignored.
    """
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise ValidationError("Cart is empty")

    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError:
            raise ValidationError("Cart is not valid JSON")

    if not isinstance(raw, list):
        raise ValidationError("Cart must be a list of items")
    if not raw:
        raise ValidationError("Cart is empty")

    lines = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValidationError(f"Cart item {index + 1} is malformed")
        if item.get("id") is None:
            raise ValidationError(f"Cart item {index + 1} is missing a product id")
        product_id = parse_int(item.get("id"), label="product id", minimum=1)
        quantity = parse_int(item.get("quantity"), label="quantity", minimum=1, maximum=MAX_QUANTITY)
        lines.append(CartLine(product_id=product_id, quantity=quantity))

    return merge_lines(lines)


def merge_lines(lines: list[CartLine]) -> list[CartLine]:
    """Collapse duplicate products, summing quantities, keeping first-seen order."""
    totals: dict[int, int] = {}
    for line in lines:
        if line.quantity < 1:
            raise ValidationError("quantity must be >= 1")
        totals[line.product_id] = totals.get(line.product_id, 0) + line.quantity
        if totals[line.product_id] > MAX_QUANTITY:
            raise ValidationError(f"quantity must be <= {MAX_QUANTITY}")
    return [CartLine(product_id=pid, quantity=qty) for pid, qty in totals.items()]


def decrement_stock(store_id: int, product_id: int, quantity: int) -> bool:
    """
    Conditional decrement: UPDATE ... SET stock = stock - q
    WHERE id = ? AND store_id = ? AND stock >= q.

    Returns False when the guard rejected the row (insufficient stock or
    wrong store). Does not commit.
    """
    result = db.session.execute(
        update(Product)
        .where(
            Product.id == product_id,
            Product.store_id == store_id,
            Product.stock >= quantity,
        )
        .values(stock=Product.stock - quantity)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _load_products(store_id: int, lines: list[CartLine]) -> dict[int, Product]:
    ids = [line.product_id for line in lines]
    products = lock_for_update(
        db.session.query(Product).filter(Product.id.in_(ids))
    ).all()
    by_id = {p.id: p for p in products}

    for line in lines:
        product = by_id.get(line.product_id)
        # Cross-store references look exactly like unknown products
        if product is None or product.store_id != store_id:
            raise NotFoundError(f"Product {line.product_id} not found")
    return by_id


def _validate_on_hand(lines: list[CartLine], products: dict[int, Product]) -> None:
    insufficient = []
    for line in lines:
        product = products[line.product_id]
        if product.stock < line.quantity:
            insufficient.append({
                "product_id": product.id,
                "name": product.name,
                "requested_quantity": line.quantity,
                "on_hand": product.stock,
            })

    if insufficient:
        raise ConflictError("Insufficient stock", details={"items": insufficient})


def checkout(store_id: int, user_id: int | None, lines: list[CartLine]) -> Sale:
    """
    Convert a cart into a durable Sale.

    Steps (all inside one transaction):
    1. Lock and load every product; reject unknown or cross-store ids.
    2. Price each line from storage.
    3. Reject the whole cart if any line exceeds stock.
    4. Conditionally decrement every line; abort if any guard fails.
    5. Insert the Sale with its frozen item snapshot; commit.

    Raises:
        ValidationError: empty cart or bad quantity
        NotFoundError: unknown product or product of another store
        ConflictError: insufficient stock
        StorageFailure: backend error (transaction rolled back)
    """
    lines = merge_lines(lines)
    if not lines:
        raise ValidationError("Cart is empty")

    def _op():
        products = _load_products(store_id, lines)
        _validate_on_hand(lines, products)

        items = []
        total_cents = 0
        for line in lines:
            product = products[line.product_id]
            line_total = product.price_cents * line.quantity
            total_cents += line_total
            items.append({
                "product_id": product.id,
                "name": product.name,
                "price_cents": product.price_cents,
                "quantity": line.quantity,
                "line_total_cents": line_total,
            })

        for line in lines:
            if not decrement_stock(store_id, line.product_id, line.quantity):
                # Stock moved between the read and the guarded write
                raise ConflictError(
                    "Insufficient stock",
                    details={"items": [{"product_id": line.product_id,
                                        "requested_quantity": line.quantity}]},
                )

        sale = Sale(
            store_id=store_id,
            user_id=user_id,
            total_cents=total_cents,
            items=items,
        )
        db.session.add(sale)
        db.session.commit()
        return sale

    sale = run_atomic(_op, failure_message=CHECKOUT_FAILURE_MESSAGE)
    current_app.logger.info(
        "Checkout completed: sale=%s store=%s user=%s lines=%d total_cents=%d",
        sale.id, store_id, user_id, len(lines), sale.total_cents,
    )
    return sale


# =============================================================================
# REPORTING
# =============================================================================

def list_sales(store_id: int | None = None) -> list[Sale]:
    query = db.session.query(Sale)
    if store_id is not None:
        query = query.filter(Sale.store_id == store_id)
    return query.order_by(Sale.created_at.desc(), Sale.id.desc()).all()


def summarize_sales_by_store(exclude_store_name: str | None = None) -> list[dict]:
    """Per-store sale count and revenue, for the admin dashboard charts."""
    query = (
        db.session.query(
            Store.id,
            Store.name,
            func.count(Sale.id),
            func.coalesce(func.sum(Sale.total_cents), 0),
        )
        .outerjoin(Sale, Sale.store_id == Store.id)
        .group_by(Store.id, Store.name)
        .order_by(Store.name.asc())
    )
    if exclude_store_name is not None:
        query = query.filter(Store.name != exclude_store_name)

    return [
        {
            "store_id": store_id,
            "store_name": name,
            "sale_count": count,
            "total_cents": int(total),
        }
        for store_id, name, count, total in query.all()
    ]
