# Overview: Flask API routes for customers; parses input and returns JSON responses.

# backend/posengine/routes/customers.py
"""
Customer routes.

List and detail responses carry total_orders, total_spent and last_visit,
derived from sales at request time.
"""
from flask import Blueprint, request, jsonify

from . import error_response
from ..errors import ServiceError
from ..models import Customer
from ..services import customers_service
from ..validation import ModelValidationPolicy, validate_payload, enforce_rules_customer
from ..decorators import require_user

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"first_name", "last_name", "email", "phone", "internal_notes"}),
    required_on_create=frozenset({"first_name", "last_name", "email", "phone"}),
)

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_user
def list_customers_route():
    """
    Query params:
    - page, limit: pagination (stats are computed for this page only)
    - search: matches first/last name, email or phone
    - sortBy: created_at | updated_at | first_name | last_name | email
    - order: asc | desc
    """
    try:
        result = customers_service.list_customers(
            page=request.args.get("page", type=int),
            limit=request.args.get("limit", type=int),
            search=request.args.get("search"),
            sort_by=request.args.get("sortBy"),
            order=request.args.get("order"),
        )
    except ServiceError as e:
        return error_response(e)
    return jsonify(result), 200


@customers_bp.get("/<int:customer_id>")
@require_user
def get_customer_route(customer_id: int):
    try:
        detail = customers_service.get_customer_detail(customer_id)
    except ServiceError as e:
        return error_response(e)
    return jsonify(detail), 200


@customers_bp.post("")
@require_user
def create_customer_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=False)
        enforce_rules_customer(patch)
        customer = customers_service.create_customer(patch=patch)
    except ServiceError as e:
        return error_response(e)
    return jsonify(customer.to_dict()), 201


@customers_bp.put("/<int:customer_id>")
@require_user
def update_customer_route(customer_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=True)
        enforce_rules_customer(patch)
        customer = customers_service.update_customer(customer_id=customer_id, patch=patch)
    except ServiceError as e:
        return error_response(e)
    return jsonify(customer.to_dict()), 200


@customers_bp.delete("/<int:customer_id>")
@require_user
def delete_customer_route(customer_id: int):
    try:
        customers_service.delete_customer(customer_id=customer_id)
    except ServiceError as e:
        return error_response(e)
    return jsonify({"ok": True}), 200
