"""
Sales Service - all-or-nothing sale creation

WHY: A sale touches several rows at once (one sale, its lines, and one stock
counter per line). Either all of them change together or none do.

FLOW (create_sale):
1. Validate the request shape. Nothing is opened for a malformed request.
2. Open one UnitOfWork for everything below, with a wall-clock budget.
3. Resolve requester and (optional) customer.
4. For each item in request order: look up the product, reserve stock with
   the conditional UPDATE, snapshot the unit price, add to the running total.
5. Insert the sale and its lines, commit once.
Any error at any step leaves the unit of work uncommitted and it rolls back,
so earlier reservations in the same call are undone.

DUPLICATES: the same product_id may appear on several lines of one request.
Each line is reserved on its own, in order; quantities are not merged.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from flask import current_app
from sqlalchemy.orm import joinedload, selectinload

from ..errors import NotFoundError, ServiceError, ValidationError
from ..extensions import db
from ..models import Customer, Product, Sale, SaleItem, User
from ..money import ZERO, line_subtotal
from posengine.time_utils import parse_iso_datetime, utcnow
from posengine.validation import MAX_DB_INT
from .concurrency import UnitOfWork
from .inventory_service import reserve_stock
from .pagination import page_args


@dataclass(frozen=True)
class SaleItemRequest:
    product_id: int
    quantity: int


def _require_int(value, field: str, *, index: int | None = None) -> int:
    # bool is an int subclass; JSON true must not pass as 1
    details = {"field": field}
    if index is not None:
        details["index"] = index
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer", details=details)
    if abs(value) > MAX_DB_INT:
        raise ValidationError(f"{field} is out of range", details=details)
    return value


def parse_sale_items(items) -> list[SaleItemRequest]:
    """Validate raw request items. Runs before any transaction is opened."""
    if not isinstance(items, list) or not items:
        raise ValidationError("Sale must contain at least one item", details={"field": "items"})

    parsed: list[SaleItemRequest] = []
    for index, raw in enumerate(items):
        if not isinstance(raw, dict):
            raise ValidationError(
                "Each item must be an object with product_id and quantity",
                details={"index": index},
            )
        if "product_id" not in raw or "quantity" not in raw:
            raise ValidationError(
                "product_id and quantity required",
                details={"index": index},
            )
        product_id = _require_int(raw["product_id"], "product_id", index=index)
        quantity = _require_int(raw["quantity"], "quantity", index=index)
        if quantity < 1:
            raise ValidationError(
                "quantity must be >= 1",
                details={"index": index, "product_id": product_id, "quantity": quantity},
            )
        parsed.append(SaleItemRequest(product_id=product_id, quantity=quantity))
    return parsed


def create_sale(user_id: int, items, customer_id: int | None = None) -> Sale:
    """
    Create and commit a sale, decrementing stock for every line.

    Raises:
        ValidationError: malformed request (no transaction opened)
        NotFoundError: unknown user, customer or product
        InsufficientStockError: a line asks for more than is available
        TransactionTimeoutError: the budget ran out; safe to retry
        PersistenceError: storage failed; nothing committed, safe to retry
    """
    requested = parse_sale_items(items)
    if customer_id is not None:
        customer_id = _require_int(customer_id, "customer_id")

    timeout = current_app.config.get("SALE_TRANSACTION_TIMEOUT_SECONDS", 10)

    try:
        with UnitOfWork(timeout_seconds=timeout, label="sale") as uow:
            sale = _build_sale(uow, user_id, customer_id, requested)
            uow.commit()
    except ServiceError as exc:
        current_app.logger.warning(
            "Sale aborted for user %s (%s): %s", user_id, exc.code, exc.message
        )
        raise

    current_app.logger.info(
        "Sale %s committed: user=%s customer=%s lines=%d total=%s",
        sale.id, user_id, customer_id, len(requested), sale.total_amount,
    )
    return sale


def _build_sale(uow: UnitOfWork, user_id: int, customer_id: int | None, requested: list[SaleItemRequest]) -> Sale:
    session = uow.session

    user = session.get(User, user_id)
    if user is None:
        raise NotFoundError("User", user_id)

    if customer_id is not None and session.get(Customer, customer_id) is None:
        raise NotFoundError("Customer", customer_id)

    total = ZERO
    lines: list[SaleItem] = []

    for item in requested:
        product = session.get(Product, item.product_id)
        if product is None:
            raise NotFoundError("Product", item.product_id)

        reserve_stock(product.id, item.quantity, product_name=product.name)

        unit_price = Decimal(product.price)
        subtotal = line_subtotal(unit_price, item.quantity)
        total += subtotal

        lines.append(SaleItem(
            product_id=product.id,
            quantity=item.quantity,
            unit_price=unit_price,
            subtotal=subtotal,
        ))
        uow.check_deadline()

    sale = Sale(
        user_id=user.id,
        customer_id=customer_id,
        total_amount=total,
        created_at=utcnow(),
    )
    sale.items = lines
    session.add(sale)
    session.flush()
    return sale


def _sale_query():
    return db.session.query(Sale).options(
        joinedload(Sale.user),
        joinedload(Sale.customer),
        selectinload(Sale.items).joinedload(SaleItem.product),
    )


def get_sale(sale_id: int) -> Sale:
    sale = _sale_query().filter(Sale.id == sale_id).first()
    if sale is None:
        raise NotFoundError("Sale", sale_id, message="Sale not found")
    return sale


def list_sales(
    page: int | None = None,
    limit: int | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
) -> dict:
    """
    Sale history, newest first, with optional inclusive date bounds.

    Returns:
        Dict with 'sales', 'total', 'page' and 'limit'.
    """
    page, limit = page_args(page, limit)

    try:
        start = parse_iso_datetime(start_date)
        end = parse_iso_datetime(end_date)
    except ValueError:
        raise ValidationError("startDate and endDate must be ISO-8601 datetimes")

    filters = []
    if start is not None:
        filters.append(Sale.created_at >= start)
    if end is not None:
        filters.append(Sale.created_at <= end)

    total = db.session.query(Sale).filter(*filters).count()
    sales = (
        _sale_query()
        .filter(*filters)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return {
        "sales": [s.to_dict() for s in sales],
        "total": total,
        "page": page,
        "limit": limit,
    }
