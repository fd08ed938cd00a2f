"""
Pytest fixtures for Stockroom backend tests.

Provides test database setup, an authenticated user, and factories for
categories and products.
"""

from decimal import Decimal

import pytest
from stockroom import create_app
from stockroom.config import TestConfig
from stockroom.extensions import db
from stockroom.models import Category, Product
from stockroom.services import auth_service, session_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestConfig)

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
        db.session.expunge_all()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def user(db_session):
    """Create a regular user."""
    return auth_service.create_user(
        email="clerk@stockroom.test",
        password="Password123",
        full_name="Stock Clerk",
    )


@pytest.fixture(scope='function')
def admin_user(db_session):
    """Create an admin user."""
    return auth_service.create_user(
        email="admin@stockroom.test",
        password="Password123",
        full_name="Admin",
        role="admin",
    )


@pytest.fixture(scope='function')
def auth_headers(user):
    """Authorization headers for the regular user."""
    _session, token = session_service.create_session(user.id)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(admin_user):
    _session, token = session_service.create_session(admin_user.id)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def make_category(db_session):
    """Insert a category directly (no notifications)."""
    def _make(name="Beverages", description=None):
        category = Category(name=name, description=description)
        db_session.add(category)
        db_session.commit()
        return category
    return _make


@pytest.fixture(scope='function')
def make_product(db_session):
    """Insert a product directly (no notifications, no movements)."""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        fields = {
            "name": f"Product {counter['n']}",
            "sku": f"SKU-{counter['n']:04d}",
            "price": Decimal("2.50"),
            "quantity": 20,
            "min_stock_level": 10,
        }
        fields.update(overrides)
        product = Product(**fields)
        db_session.add(product)
        db_session.commit()
        return product
    return _make


@pytest.fixture(scope='function')
def product(make_product):
    """Product with quantity 20 and min_stock_level 10."""
    return make_product(name="Cold Brew", sku="CB-001", price=Decimal("4.00"))
