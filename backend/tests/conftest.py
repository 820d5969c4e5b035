"""
Pytest fixtures for smallbiz backend tests.

Provides test database setup, two isolated tenants with owner/staff users,
catalog fixtures and authenticated header helpers.
"""

from datetime import datetime

import pytest
from smallbiz import create_app
from smallbiz.config import TestingConfig
from smallbiz.extensions import db
from smallbiz.models import Tenant, User, Product, Customer, Order, OrderItem
from smallbiz.models.auth import ROLE_OWNER, ROLE_STAFF
from smallbiz.models.orders import ORDER_STATUS_PAID
from smallbiz.services.auth_service import hash_password
from smallbiz.services.session_service import create_session

PASSWORD = "Password123!"


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


@pytest.fixture(scope='session')
def password_hash():
    """bcrypt is deliberately slow; hash the shared test password once."""
    return hash_password(PASSWORD)


@pytest.fixture(scope='function')
def tenant_a(db_session):
    tenant = Tenant(name="Acme Corp", domain="acme.test", is_active=True)
    db_session.add(tenant)
    db_session.commit()
    return tenant


@pytest.fixture(scope='function')
def tenant_b(db_session):
    tenant = Tenant(name="Beta Inc", domain="beta.test", is_active=True)
    db_session.add(tenant)
    db_session.commit()
    return tenant


def _make_user(db_session, tenant, email, role, password_hash):
    user = User(
        tenant_id=tenant.id,
        name=email.split("@")[0],
        email=email,
        password_hash=password_hash,
        role=role,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def owner_a(db_session, tenant_a, password_hash):
    return _make_user(db_session, tenant_a, "owner@acme.test", ROLE_OWNER, password_hash)


@pytest.fixture(scope='function')
def staff_a(db_session, tenant_a, password_hash):
    return _make_user(db_session, tenant_a, "staff@acme.test", ROLE_STAFF, password_hash)


@pytest.fixture(scope='function')
def owner_b(db_session, tenant_b, password_hash):
    return _make_user(db_session, tenant_b, "owner@beta.test", ROLE_OWNER, password_hash)


def auth_headers(user: User) -> dict:
    """Authorization + tenant headers for a user acting in their own tenant."""
    _, token = create_session(user)
    return {
        'Authorization': f'Bearer {token}',
        'X-Tenant-ID': str(user.tenant_id),
    }


@pytest.fixture(scope='function')
def owner_headers(owner_a):
    return auth_headers(owner_a)


@pytest.fixture(scope='function')
def staff_headers(staff_a):
    return auth_headers(staff_a)


@pytest.fixture(scope='function')
def owner_b_headers(owner_b):
    return auth_headers(owner_b)


@pytest.fixture(scope='function')
def product_a(db_session, tenant_a):
    """$25.00, 10 on hand, low-stock threshold 3."""
    product = Product(
        tenant_id=tenant_a.id,
        sku="ACME-001",
        name="Widget",
        price_cents=2500,
        stock_quantity=10,
        low_stock_threshold=3,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def product_a2(db_session, tenant_a):
    """$12.50, 5 on hand."""
    product = Product(
        tenant_id=tenant_a.id,
        sku="ACME-002",
        name="Gadget",
        price_cents=1250,
        stock_quantity=5,
        low_stock_threshold=1,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def product_b(db_session, tenant_b):
    product = Product(
        tenant_id=tenant_b.id,
        sku="BETA-001",
        name="Beta Widget",
        price_cents=2000,
        stock_quantity=10,
        low_stock_threshold=2,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def customer_a(db_session, tenant_a):
    customer = Customer(tenant_id=tenant_a.id, name="Alice Buyer", email="alice@example.com")
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def customer_b(db_session, tenant_b):
    customer = Customer(tenant_id=tenant_b.id, name="Bob Buyer", email="bob@example.com")
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def make_order(db_session):
    """
    Insert an order directly (no stock movement) for reporting tests.

    lines: list of (product, quantity[, unit_price_cents])
    """
    counter = {"n": 0}

    def _make(tenant, lines, *, status=ORDER_STATUS_PAID, created_at: datetime | None = None, customer=None):
        counter["n"] += 1
        order = Order(
            tenant_id=tenant.id,
            customer_id=customer.id if customer else None,
            order_number=f"ORD-TEST{counter['n']:012d}",
            status=status,
            total_amount_cents=0,
        )
        if created_at is not None:
            order.created_at = created_at
        db_session.add(order)
        db_session.flush()

        total = 0
        for line in lines:
            product, quantity = line[0], line[1]
            unit = line[2] if len(line) > 2 else product.price_cents
            db_session.add(OrderItem(
                order_id=order.id,
                product_id=product.id,
                quantity=quantity,
                unit_price_cents=unit,
                total_price_cents=unit * quantity,
            ))
            total += unit * quantity

        order.total_amount_cents = total
        db_session.commit()
        return order

    return _make
