# Overview: Pytest fixtures for tdpos backend tests.

"""
Pytest fixtures for tdpos backend tests.

Provides the test app (in-memory SQLite), a fresh database per test, the
store clients, and a few catalog fixtures shared across modules.
"""

from datetime import datetime
from decimal import Decimal

import pytest

from tdpos import create_app
from tdpos.config import TestingConfig
from tdpos.extensions import db
from tdpos.models import BaleProduct, Branch, Employee, TireProduct
from tdpos.models.orders import OrderLineRecord, OrderRecord
from tdpos.services.employee_service import hash_password
from tdpos.stores import get_stores


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestingConfig)

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
def stores(db_session):
    """(catalog, orders) store clients bound to the test app."""
    return get_stores()


@pytest.fixture(scope='function')
def catalog(stores):
    return stores[0]


@pytest.fixture(scope='function')
def orders(stores):
    return stores[1]


@pytest.fixture(scope='session')
def password_hash():
    """bcrypt hash of 'secret123', computed once (cost 12 is slow)."""
    return hash_password("secret123")


@pytest.fixture(scope='function')
def branch_a(db_session):
    branch = Branch(name="TD Maseru", location="Maseru")
    db_session.add(branch)
    db_session.commit()
    return branch


@pytest.fixture(scope='function')
def branch_b(db_session):
    branch = Branch(name="TD Leribe", location="Leribe")
    db_session.add(branch)
    db_session.commit()
    return branch


@pytest.fixture(scope='function')
def tire(db_session, branch_a, branch_b):
    """Tire stocked in both branches: 10 x 100.00."""
    product = TireProduct(
        name="Road Grip 195/65R15",
        price=Decimal("100.00"),
        quantity=10,
        grade="A",
        tire_size="195/65R15",
        tire_type="Passenger",
        load_index="91",
        speed_rating="H",
    )
    product.branches = [branch_a, branch_b]
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def bale(db_session, branch_a):
    """Bale stocked in branch A only: 3 x 250.00."""
    product = BaleProduct(
        name="Winter Clothing Bale",
        price=Decimal("250.00"),
        quantity=3,
        grade="B",
        bale_weight=Decimal("45.00"),
        bale_category="Clothing",
        origin_country="United Kingdom",
    )
    product.branches = [branch_a]
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def cashier(db_session, branch_a, password_hash):
    employee = Employee(
        first_name="Lerato",
        last_name="Mokoena",
        email="lerato@td.co.ls",
        role="Cashier",
        branch_id=branch_a.id,
        password_hash=password_hash,
    )
    db_session.add(employee)
    db_session.commit()
    return employee


def make_order(
    *,
    branch_id="1",
    cashier_id="1",
    lines=(("1", 1, "100.00", "0.00"),),
    method="cash",
    created_at=None,
    order_number=None,
    received=None,
):
    """
    OrderRecord built straight from (product_id, qty, price, discount) tuples.

    Skips the checkout service so dashboard/store tests can place orders at
    arbitrary timestamps.
    """
    items = tuple(
        OrderLineRecord(
            product_id=pid,
            quantity=qty,
            price=Decimal(price),
            discount=Decimal(discount),
            subtotal=Decimal(price) * qty - Decimal(discount),
        )
        for pid, qty, price, discount in lines
    )
    total = sum((item.subtotal for item in items), Decimal("0.00"))
    make_order.counter += 1
    return OrderRecord(
        order_number=order_number or f"ORD-TEST{make_order.counter:02d}-{make_order.counter % 1000:03d}",
        items=items,
        total_amount=total,
        branch_id=branch_id,
        cashier_id=cashier_id,
        payment_method=method,
        amount_received=received if received is not None else total,
        change_amount=Decimal("0.00"),
        created_at=created_at or datetime(2026, 3, 10, 12, 0, 0),
    )


make_order.counter = 0


@pytest.fixture
def order_factory():
    return make_order
