# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/posengine/routes/sales.py
"""Sales API routes"""

from flask import Blueprint, request, jsonify, g, current_app

from . import error_response
from ..services import sales_service
from ..errors import ServiceError
from ..decorators import require_user


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("")
@require_user
def create_sale_route():
    """
    Create a sale in one shot.

    Body: {"items": [{"product_id": int, "quantity": int}, ...], "customer_id": int?}

    Responses:
    - 201 created sale with items, captured prices, customer and requester
    - 400 validation_error, 404 not_found, 409 insufficient_stock
    - 503 transaction_timeout / persistence_error (retryable: true)
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "JSON object body required", "code": "validation_error",
                        "details": {}, "retryable": False}), 400

    try:
        sale = sales_service.create_sale(
            user_id=g.current_user.id,
            items=data.get("items"),
            customer_id=data.get("customer_id"),
        )
        return jsonify({"sale": sale.to_dict()}), 201

    except ServiceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("")
@require_user
def list_sales_route():
    """
    Sale history, newest first.

    Query params: page, limit, startDate, endDate (ISO-8601, inclusive)
    """
    try:
        result = sales_service.list_sales(
            page=request.args.get("page", type=int),
            limit=request.args.get("limit", type=int),
            start_date=request.args.get("startDate"),
            end_date=request.args.get("endDate"),
        )
        return jsonify(result), 200

    except ServiceError as e:
        return error_response(e)


@sales_bp.get("/<int:sale_id>")
@require_user
def get_sale_route(sale_id: int):
    """Get sale with items, customer and requester."""
    try:
        sale = sales_service.get_sale(sale_id)
    except ServiceError as e:
        return error_response(e)

    return jsonify({"sale": sale.to_dict()}), 200
