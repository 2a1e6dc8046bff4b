# Overview: Pytest coverage for the conditional stock reservation.

import pytest
from sqlalchemy.exc import IntegrityError

from posengine.errors import InsufficientStockError, NotFoundError, ValidationError
from posengine.services.inventory_service import get_stock_quantity, reserve_stock, restock


class TestReserveStock:

    def test_reserve_decrements_inside_open_transaction(self, db_session, make_product):
        p = make_product("MUG", stock=5)

        reserve_stock(p.id, 2)

        # Visible to this transaction, undone by its rollback
        assert get_stock_quantity(p.id) == 3
        db_session.rollback()
        assert get_stock_quantity(p.id) == 5

    def test_reserve_never_commits(self, db_session, make_product):
        p = make_product("MUG", stock=5)

        reserve_stock(p.id, 5)
        assert db_session().in_transaction()
        db_session.rollback()

        assert get_stock_quantity(p.id) == 5

    def test_zero_rows_is_insufficient_stock(self, db_session, make_product):
        p = make_product("MUG", stock=1)

        with pytest.raises(InsufficientStockError) as exc_info:
            reserve_stock(p.id, 2, product_name="Mug")

        assert exc_info.value.to_dict() == {
            "error": "Insufficient stock for Mug. Available: 1, Requested: 2",
            "code": "insufficient_stock",
            "details": {"product_id": p.id, "available": 1, "requested": 2},
            "retryable": False,
        }
        assert get_stock_quantity(p.id) == 1

    def test_missing_product_is_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            reserve_stock(12345, 1)

    def test_non_positive_quantity_rejected(self, db_session, make_product):
        p = make_product("MUG", stock=5)

        with pytest.raises(ValidationError):
            reserve_stock(p.id, 0)

    def test_cached_product_sees_new_counter(self, db_session, make_product):
        p = make_product("MUG", stock=5)
        assert p.stock_quantity == 5

        reserve_stock(p.id, 4)

        assert p.stock_quantity == 1


class TestRestock:

    def test_restock_is_relative(self, db_session, make_product):
        p = make_product("MUG", stock=5)

        product = restock(p.id, 7)

        assert product.stock_quantity == 12

    def test_restock_unknown_product(self, db_session):
        with pytest.raises(NotFoundError):
            restock(999, 1)


def test_schema_rejects_negative_stock(db_session, make_product):
    """Direct writes that would go negative fail in the database itself."""
    p = make_product("MUG", stock=1)

    p.stock_quantity = -1
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()

    assert get_stock_quantity(p.id) == 1
