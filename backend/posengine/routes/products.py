# Overview: Flask API routes for the product catalog; parses input and returns JSON responses.

# backend/posengine/routes/products.py
"""
Product catalog routes.

The sale engine depends on these for price and stock. Stock can only be
set when a product is created; afterwards it moves through sales and the
restock endpoint, both of which are atomic relative updates.
"""
from flask import Blueprint, request, jsonify

from . import error_response
from ..errors import ServiceError, ValidationError
from ..models import Product
from ..services import products_service
from ..validation import (
    MAX_DB_INT,
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
)
from ..decorators import require_user

PRODUCT_CREATE_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"sku", "name", "category", "price", "stock_quantity", "image_url"}),
    required_on_create=frozenset({"sku", "name", "price"}),
)

PRODUCT_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"sku", "name", "category", "price", "image_url"}),
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.post("")
@require_user
def create_product_route():
    """Create a new product (sku must be unique)."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_CREATE_POLICY, partial=False)
        enforce_rules_product(patch)
        created = products_service.create_product(patch=patch)
    except ServiceError as e:
        return error_response(e)

    return jsonify(created.to_dict()), 201


@products_bp.get("/<int:product_id>")
@require_user
def get_product_route(product_id: int):
    try:
        product = products_service.get_product(product_id)
    except ServiceError as e:
        return error_response(e)
    return jsonify(product.to_dict()), 200


@products_bp.put("/<int:product_id>")
@require_user
def update_product_route(product_id: int):
    """
    Update a product.

    stock_quantity is rejected here; use POST /<id>/restock.
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_UPDATE_POLICY, partial=True)
        enforce_rules_product(patch)
        updated = products_service.update_product(product_id=product_id, patch=patch)
    except ServiceError as e:
        return error_response(e)

    return jsonify(updated.to_dict()), 200


@products_bp.post("/<int:product_id>/restock")
@require_user
def restock_product_route(product_id: int):
    """Body: {"quantity": int >= 1}"""
    payload = request.get_json(silent=True) or {}
    quantity = payload.get("quantity")

    try:
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValidationError("quantity must be an integer", details={"field": "quantity"})
        if quantity > MAX_DB_INT:
            raise ValidationError("quantity is out of range", details={"field": "quantity"})
        product = products_service.restock_product(product_id=product_id, quantity=quantity)
    except ServiceError as e:
        return error_response(e)

    return jsonify(product.to_dict()), 200


@products_bp.delete("/<int:product_id>")
@require_user
def delete_product_route(product_id: int):
    """Delete a product. Products referenced by sales are kept (409)."""
    try:
        products_service.delete_product(product_id=product_id)
    except ServiceError as e:
        return error_response(e)

    return jsonify({"ok": True}), 200
