# backend/posengine/services/products_service.py
"""
Products Service - catalog collaborator of the sale engine

The sale engine reads price and stock from here and nothing else writes the
stock counter: creation sets the opening quantity once, restock goes through
inventory_service's relative increment, and updates cannot touch it.
"""
from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Product, SaleItem
from . import inventory_service

# stock_quantity is settable on create only
PRODUCT_MUTABLE_FIELDS = {"sku", "name", "category", "price", "image_url"}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _ensure_sku_free(sku: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Product.id).filter(Product.sku == sku)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first() is not None:
        raise ConflictError("SKU already exists", details={"field": "sku", "sku": sku})


def _raise_integrity_failure(sku: str, exclude_id: int | None = None):
    """
    Classify a rejected write after rollback. A concurrent writer that took the
    SKU is a conflict; any other constraint (price or stock checks) is bad input.
    """
    _ensure_sku_free(sku, exclude_id=exclude_id)
    raise ValidationError("Product violates a catalog constraint (price and stock must be >= 0)")


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product", product_id, message="Product not found")
    return product


def create_product(*, patch: dict) -> Product:
    """
    Create product using a validated patch dict.

    Raises:
        ConflictError: If SKU already exists
        ValidationError: If a CHECK constraint rejects the row
    """
    _ensure_sku_free(patch["sku"])

    p = Product(stock_quantity=patch.get("stock_quantity") or 0)
    apply_product_patch(p, patch)
    db.session.add(p)

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        _raise_integrity_failure(patch["sku"])
    return p


def update_product(*, product_id: int, patch: dict) -> Product:
    """
    Apply a catalog edit. Price changes affect future sales only; lines
    already sold keep their captured unit price.
    """
    p = get_product(product_id)

    if "sku" in patch and patch["sku"] != p.sku:
        _ensure_sku_free(patch["sku"], exclude_id=product_id)

    apply_product_patch(p, patch)

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        _raise_integrity_failure(patch.get("sku") or p.sku, exclude_id=product_id)
    return p


def restock_product(*, product_id: int, quantity: int) -> Product:
    get_product(product_id)
    return inventory_service.restock(product_id, quantity)


def delete_product(*, product_id: int) -> None:
    """Delete a product that no sale line references."""
    p = get_product(product_id)

    referenced = (
        db.session.query(SaleItem.id)
        .filter(SaleItem.product_id == product_id)
        .first()
    )
    if referenced is not None:
        raise ConflictError(
            "Product has sales history and cannot be deleted",
            details={"product_id": product_id},
        )

    db.session.delete(p)
    try:
        db.session.commit()
    except IntegrityError:
        # A sale referencing it committed after the check above
        db.session.rollback()
        raise ConflictError(
            "Product has sales history and cannot be deleted",
            details={"product_id": product_id},
        )
