# Overview: Stock ledger; the only code path that mutates products.stock_quantity.

"""
Stock Ledger

Every mutation is a single SQL UPDATE evaluated by the database against the
current row value, never a read-modify-write in Python. Callers own the
transaction: nothing here commits.

    decrement  -> UPDATE products SET stock_quantity = stock_quantity - :q
                  WHERE id = :id AND stock_quantity >= :q
    increment  -> UPDATE products SET stock_quantity = stock_quantity + :q
                  WHERE id = :id
"""

from __future__ import annotations

from sqlalchemy import update

from ..extensions import db
from ..models import Product


class InsufficientStockError(Exception):
    """Raised when a guarded decrement finds less stock than requested."""

    def __init__(self, product: Product, requested: int):
        super().__init__(
            f"Insufficient stock for '{product.name}'. Requested: {requested}"
        )
        self.product_id = product.id
        self.requested = requested


def has_sufficient_stock(product: Product, quantity: int) -> bool:
    return product.stock_quantity >= quantity


def decrement(product: Product, quantity: int) -> bool:
    """
    Atomically take `quantity` units out of stock.

    Returns False, with no mutation, when the row holds fewer than `quantity`
    units at the moment the statement runs.
    """
    if quantity < 1:
        raise ValueError("quantity must be >= 1")

    result = db.session.execute(
        update(Product)
        .where(Product.id == product.id, Product.stock_quantity >= quantity)
        .values(stock_quantity=Product.stock_quantity - quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        return False

    db.session.expire(product, ["stock_quantity", "updated_at"])
    return True


def decrement_or_raise(product: Product, quantity: int) -> None:
    if not decrement(product, quantity):
        raise InsufficientStockError(product, quantity)


def increment(product: Product, quantity: int) -> None:
    """Unconditionally put `quantity` units back (compensation for cancel/delete)."""
    if quantity < 1:
        raise ValueError("quantity must be >= 1")

    db.session.execute(
        update(Product)
        .where(Product.id == product.id)
        .values(stock_quantity=Product.stock_quantity + quantity)
        .execution_options(synchronize_session=False)
    )
    db.session.expire(product, ["stock_quantity", "updated_at"])


def low_stock_products(tenant_id: int) -> list[Product]:
    """Active products at or below their low-stock threshold, emptiest first."""
    return (
        db.session.query(Product)
        .filter(
            Product.tenant_id == tenant_id,
            Product.is_active.is_(True),
            Product.deleted_at.is_(None),
            Product.stock_quantity <= Product.low_stock_threshold,
        )
        .order_by(Product.stock_quantity.asc(), Product.id.asc())
        .all()
    )
