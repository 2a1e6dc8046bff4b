"""
Pytest fixtures for the sale engine backend tests.

Provides an in-memory application, a per-test table wipe, and small
factories for users, customers and products.
"""

from decimal import Decimal

import pytest
from posengine import create_app
from posengine.extensions import db
from posengine.models import User, Customer, Product


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def cashier(db_session):
    """Active staff member who rings up sales."""
    user = User(username="cashier", email="cashier@pos.local", is_active=True)
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def customer(db_session):
    customer = Customer(
        first_name="Ada",
        last_name="Lovelace",
        email="ada@example.com",
        phone="555-0100",
    )
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: make_product(sku, price="9.99", stock=10)."""
    def _make(sku: str, price: str = "9.99", stock: int = 10, name: str | None = None) -> Product:
        product = Product(
            sku=sku,
            name=name or f"Product {sku}",
            category="General",
            price=Decimal(price),
            stock_quantity=stock,
        )
        db_session.add(product)
        db_session.commit()
        return product
    return _make


def user_headers(user) -> dict:
    """Identity header the upstream gateway would forward."""
    return {'X-User-Id': str(user.id)}


@pytest.fixture(scope='function')
def cashier_headers(cashier) -> dict:
    return user_headers(cashier)
