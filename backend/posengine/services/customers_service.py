# backend/posengine/services/customers_service.py
"""
Customers Service

DERIVED STATISTICS:
total_orders, total_spent and last_visit are never stored. They are
recomputed from the customer's sales every time a customer is read, for the
detail view and for each customer on the current page of the list view.
That costs a read per page, and in exchange the numbers cannot go stale or
drift from the sales they summarize. If this ever needs caching, invalidate
the cache from sales_service.create_sale; do not keep running counters.
"""
from __future__ import annotations

from collections import defaultdict
from decimal import Decimal

from sqlalchemy import or_
from sqlalchemy.orm import selectinload

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Customer, Sale, SaleItem
from ..money import ZERO, format_money
from .pagination import page_args
from posengine.time_utils import to_utc_z

CUSTOMER_MUTABLE_FIELDS = {"first_name", "last_name", "email", "phone", "internal_notes"}
SORTABLE_FIELDS = {"created_at", "updated_at", "first_name", "last_name", "email"}


def compute_stats(sales: list[Sale]) -> dict:
    """
    Summarize sales that are already ordered newest first.

    total_spent is a Decimal sum of total_amount; last_visit is the
    created_at of the first (newest) sale, or None for no sales.
    """
    total_spent = ZERO
    for sale in sales:
        total_spent += Decimal(sale.total_amount)
    return {
        "total_orders": len(sales),
        "total_spent": total_spent,
        "last_visit": sales[0].created_at if sales else None,
    }


def _stats_to_dict(stats: dict) -> dict:
    return {
        "total_orders": stats["total_orders"],
        "total_spent": format_money(stats["total_spent"]),
        "last_visit": to_utc_z(stats["last_visit"]),
    }


def _sales_for(customer_ids: list[int]) -> dict[int, list[Sale]]:
    """Sales per customer, newest first, for just the given customers."""
    grouped: dict[int, list[Sale]] = defaultdict(list)
    if not customer_ids:
        return grouped
    rows = (
        db.session.query(Sale)
        .filter(Sale.customer_id.in_(customer_ids))
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .all()
    )
    for sale in rows:
        grouped[sale.customer_id].append(sale)
    return grouped


def customer_stats(customer_id: int) -> dict:
    """{total_orders, total_spent, last_visit} for one customer, derived fresh."""
    get_customer(customer_id)
    return compute_stats(_sales_for([customer_id])[customer_id])


def get_customer(customer_id: int) -> Customer:
    customer = db.session.get(Customer, customer_id)
    if customer is None:
        raise NotFoundError("Customer", customer_id, message="Customer not found")
    return customer


def get_customer_detail(customer_id: int) -> dict:
    """Customer with its sales (newest first, lines included) and stats."""
    customer = get_customer(customer_id)
    sales = (
        db.session.query(Sale)
        .options(selectinload(Sale.items).joinedload(SaleItem.product))
        .filter(Sale.customer_id == customer_id)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .all()
    )
    data = customer.to_dict()
    data["sales"] = [s.to_dict() for s in sales]
    data.update(_stats_to_dict(compute_stats(sales)))
    return data


def list_customers(
    page: int | None = None,
    limit: int | None = None,
    search: str | None = None,
    sort_by: str | None = None,
    order: str | None = None,
) -> dict:
    """
    Paginated customer list with per-customer stats for this page only.

    Returns:
        Dict with 'customers', 'total', 'page' and 'limit'.
    """
    page, limit = page_args(page, limit)

    sort_by = sort_by or "created_at"
    if sort_by not in SORTABLE_FIELDS:
        raise ValidationError(f"sortBy must be one of: {', '.join(sorted(SORTABLE_FIELDS))}")
    order = (order or "desc").lower()
    if order not in ("asc", "desc"):
        raise ValidationError("order must be asc or desc")

    query = db.session.query(Customer)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            Customer.first_name.ilike(pattern),
            Customer.last_name.ilike(pattern),
            Customer.email.ilike(pattern),
            Customer.phone.ilike(pattern),
        ))

    total = query.count()

    column = getattr(Customer, sort_by)
    ordering = column.asc() if order == "asc" else column.desc()
    customers = (
        query.order_by(ordering, Customer.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    sales_by_customer = _sales_for([c.id for c in customers])
    items = []
    for customer in customers:
        data = customer.to_dict()
        data.update(_stats_to_dict(compute_stats(sales_by_customer[customer.id])))
        items.append(data)

    return {"customers": items, "total": total, "page": page, "limit": limit}


def create_customer(*, patch: dict) -> Customer:
    customer = Customer()
    for k, v in patch.items():
        if k in CUSTOMER_MUTABLE_FIELDS:
            setattr(customer, k, v)
    db.session.add(customer)
    db.session.commit()
    return customer


def update_customer(*, customer_id: int, patch: dict) -> Customer:
    customer = get_customer(customer_id)
    for k, v in patch.items():
        if k in CUSTOMER_MUTABLE_FIELDS:
            setattr(customer, k, v)
    db.session.commit()
    return customer


def delete_customer(*, customer_id: int) -> None:
    """Customers with purchase history are kept so their sales stay attributable."""
    customer = get_customer(customer_id)
    has_sales = db.session.query(Sale.id).filter(Sale.customer_id == customer_id).first()
    if has_sales is not None:
        raise ConflictError(
            "Customer has sales history and cannot be deleted",
            details={"customer_id": customer_id},
        )
    db.session.delete(customer)
    db.session.commit()
