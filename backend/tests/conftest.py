"""
Pytest fixtures for billing backend tests.

Provides the test app (in-memory SQLite), a per-test table wipe, two
independent tenants (owner + shop each) with products and customers, and
auth header helpers.
"""

from decimal import Decimal

import pytest
from billing import create_app
from billing.extensions import db
from billing.models import User, Shop, Product, Customer, Category
from billing.services.auth_service import hash_password
from billing.services.session_service import create_session

TEST_PASSWORD = "Password123"


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


@pytest.fixture(scope='session')
def password_hash():
    """bcrypt is slow by design; hash the shared test password once."""
    return hash_password(TEST_PASSWORD)


def _make_owner(session, email: str, name: str, password_hash: str) -> User:
    user = User(email=email, full_name=name, password_hash=password_hash)
    session.add(user)
    session.commit()
    return user


def _make_shop(session, owner: User, name: str, prefix: str = "INV") -> Shop:
    shop = Shop(
        owner_user_id=owner.id,
        shop_name=name,
        tax_rate=Decimal("18.00"),
        invoice_prefix=prefix,
        currency="INR",
    )
    session.add(shop)
    session.commit()
    return shop


@pytest.fixture(scope='function')
def owner_a(db_session, password_hash):
    """Owner of Shop A (first tenant)."""
    return _make_owner(db_session, "owner_a@acme.test", "Owner A", password_hash)


@pytest.fixture(scope='function')
def owner_b(db_session, password_hash):
    """Owner of Shop B (second tenant)."""
    return _make_owner(db_session, "owner_b@beta.test", "Owner B", password_hash)


@pytest.fixture(scope='function')
def shop_a(db_session, owner_a):
    return _make_shop(db_session, owner_a, "Acme Stores")


@pytest.fixture(scope='function')
def shop_b(db_session, owner_b):
    return _make_shop(db_session, owner_b, "Beta Mart", prefix="BM")


@pytest.fixture(scope='function')
def category_a(db_session, shop_a):
    category = Category(shop_id=shop_a.id, name="Stationery")
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture(scope='function')
def product_a(db_session, shop_a):
    """Tracked product in Shop A: 100.00, 50 on hand."""
    product = Product(
        shop_id=shop_a.id,
        name="Notebook",
        selling_price=Decimal("100.00"),
        sku="NB-001",
        current_stock=50,
        low_stock_alert=10,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def service_product_a(db_session, shop_a):
    """Untracked product in Shop A (a service)."""
    product = Product(
        shop_id=shop_a.id,
        name="Gift Wrapping",
        selling_price=Decimal("25.50"),
        track_inventory=False,
        current_stock=0,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def product_b(db_session, shop_b):
    product = Product(
        shop_id=shop_b.id,
        name="Pen",
        selling_price=Decimal("20.00"),
        current_stock=100,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def customer_a(db_session, shop_a):
    customer = Customer(shop_id=shop_a.id, name="Ravi Kumar", phone_number="9876543210", email="ravi@example.com")
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def customer_b(db_session, shop_b):
    customer = Customer(shop_id=shop_b.id, name="Meera Shah")
    db_session.add(customer)
    db_session.commit()
    return customer


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def headers_a(db_session, owner_a):
    _, token = create_session(owner_a.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def headers_b(db_session, owner_b):
    _, token = create_session(owner_b.id)
    return auth_headers(token)


def invoice_payload(*items, **extra) -> dict:
    """Build a create-invoice payload from (product_id, quantity) pairs or item dicts."""
    payload = {
        "invoice_date": "2026-03-15T10:00:00Z",
        "items": [
            item if isinstance(item, dict) else {"product_id": item[0], "quantity": item[1]}
            for item in items
        ],
    }
    payload.update(extra)
    return payload
