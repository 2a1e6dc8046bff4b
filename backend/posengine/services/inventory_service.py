# Overview: Service-layer operations for inventory; the only code that writes products.stock_quantity.

"""
Inventory invariants (authoritative)

- products.stock_quantity is never negative, under any interleaving of
  concurrent writers. A CHECK constraint backs this up in the schema.
- The counter is only changed by single relative UPDATE statements issued
  here. Nothing reads the value, computes a new one in Python and writes it
  back; that read-modify-write shape is exactly what loses updates.
- reserve_stock runs inside the caller's transaction. It never commits or
  rolls back; the caller's unit of work owns that decision.
"""

from __future__ import annotations

from sqlalchemy import update

from ..errors import InsufficientStockError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Product
from posengine.time_utils import utcnow


def get_stock_quantity(product_id: int) -> int | None:
    """Read the current counter straight from the database (bypasses the identity map)."""
    return (
        db.session.query(Product.stock_quantity)
        .filter(Product.id == product_id)
        .scalar()
    )


def reserve_stock(product_id: int, quantity: int, *, product_name: str | None = None) -> None:
    """
    Atomically take `quantity` units of a product, or fail.

    Issues:
        UPDATE products SET stock_quantity = stock_quantity - :q
        WHERE id = :id AND stock_quantity >= :q

    The check and the decrement are one statement, so two transactions can
    never both pass the check against the same stale value. Zero affected
    rows means the stock was not there; that is reported as
    InsufficientStockError with the quantity this transaction can see.
    """
    if quantity < 1:
        raise ValidationError("quantity must be >= 1", details={"product_id": product_id})

    result = db.session.execute(
        update(Product)
        .where(Product.id == product_id, Product.stock_quantity >= quantity)
        .values(stock_quantity=Product.stock_quantity - quantity, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    _expire_stock(product_id)

    if result.rowcount == 1:
        return

    available = get_stock_quantity(product_id)
    if available is None:
        raise NotFoundError("Product", product_id)
    raise InsufficientStockError(
        product_id=product_id,
        available=available,
        requested=quantity,
        product_name=product_name,
    )


def restock(product_id: int, quantity: int, *, commit: bool = True) -> Product:
    """Add received units with a relative increment (never a read-then-write)."""
    if quantity < 1:
        raise ValidationError("quantity must be >= 1")

    result = db.session.execute(
        update(Product)
        .where(Product.id == product_id)
        .values(stock_quantity=Product.stock_quantity + quantity, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotFoundError("Product", product_id)

    _expire_stock(product_id)
    if commit:
        db.session.commit()
    return db.session.get(Product, product_id)


def _expire_stock(product_id: int) -> None:
    # The UPDATE bypassed the ORM; drop any cached counter so the next
    # attribute access reloads it.
    cached = db.session.identity_map.get(db.session.identity_key(Product, product_id))
    if cached is not None:
        db.session.expire(cached, ["stock_quantity", "updated_at"])
