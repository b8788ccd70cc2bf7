"""
Pytest fixtures for back-office tests.

Provides test database setup, one account per portal, catalogue fixtures,
and auth helpers for the Flask test client.
"""

import pytest

from backoffice import create_app
from backoffice.extensions import db
from backoffice.models import Product, Order, OrderItem
from backoffice.services import account_service


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
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
def admin_user(db_session):
    return account_service.create_admin(email="admin@test.rw", password=PASSWORD, name="Admin")


@pytest.fixture(scope='function')
def retailer(db_session):
    """Retailer with a wallet of 1,000.00 and a credit limit of 1,000.00."""
    profile = account_service.create_retailer(
        email="shop@test.rw",
        password=PASSWORD,
        business_name="Corner Shop",
        phone="+250788111111",
        credit_limit_cents=100000,
    )
    profile.wallet_balance_cents = 100000
    db_session.commit()
    return profile


@pytest.fixture(scope='function')
def other_retailer(db_session):
    return account_service.create_retailer(
        email="other@test.rw",
        password=PASSWORD,
        business_name="Other Shop",
        phone="+250788222222",
    )


@pytest.fixture(scope='function')
def wholesaler(db_session):
    return account_service.create_wholesaler(
        email="wholesale@test.rw",
        password=PASSWORD,
        company_name="Kigali Wholesale",
        phone="+250788333333",
    )


@pytest.fixture(scope='function')
def other_wholesaler(db_session):
    return account_service.create_wholesaler(
        email="wholesale2@test.rw",
        password=PASSWORD,
        company_name="Huye Wholesale",
    )


@pytest.fixture(scope='function')
def consumer(db_session):
    return account_service.create_consumer(
        email="customer@test.rw",
        password=PASSWORD,
        full_name="Aline Uwase",
        phone="+250788444444",
    )


def _make_product(db_session, *, retailer=None, wholesaler=None, name="Item", price_cents=100,
                  stock=10, cost_price_cents=None, **extra):
    product = Product(
        retailer_id=retailer.id if retailer else None,
        wholesaler_id=wholesaler.id if wholesaler else None,
        name=name,
        price_cents=price_cents,
        cost_price_cents=cost_price_cents,
        stock=stock,
        **extra
    )
    db_session.add(product)
    db_session.commit()
    return product


def _make_order(db_session, *, retailer, wholesaler, product, quantity=1, price_cents=None, status="pending"):
    """Insert an order directly, bypassing the wallet debit."""
    price_cents = product.price_cents if price_cents is None else price_cents
    order = Order(
        retailer_id=retailer.id,
        wholesaler_id=wholesaler.id,
        total_amount_cents=price_cents * quantity,
        status=status,
    )
    db_session.add(order)
    db_session.flush()
    db_session.add(OrderItem(order_id=order.id, product_id=product.id, quantity=quantity, price_cents=price_cents))
    db_session.commit()
    return order


@pytest.fixture(scope='function')
def shop_products(db_session, retailer):
    """Two shop products: P1 (stock 10, price 100) and P2 (stock 5, price 50)."""
    p1 = _make_product(db_session, retailer=retailer, name="Sugar 1kg", price_cents=100, stock=10,
                       cost_price_cents=80, barcode="6001000000011", sku="SUG-1")
    p2 = _make_product(db_session, retailer=retailer, name="Milk 500ml", price_cents=50, stock=5,
                       cost_price_cents=40, barcode="6001000000028", sku="MLK-1")
    return p1, p2


@pytest.fixture(scope='function')
def catalogue_product(db_session, wholesaler):
    return _make_product(db_session, wholesaler=wholesaler, name="Rice 25kg", price_cents=3000,
                         cost_price_cents=2500, stock=100, category="Food", low_stock_threshold=10)


def get_auth_token(client, email: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, "admin@test.rw"))


@pytest.fixture(scope='function')
def retailer_headers(client, retailer):
    return auth_headers(get_auth_token(client, "shop@test.rw"))


@pytest.fixture(scope='function')
def wholesaler_headers(client, wholesaler):
    return auth_headers(get_auth_token(client, "wholesale@test.rw"))


@pytest.fixture(scope='function')
def make_product(db_session):
    def factory(**kwargs):
        return _make_product(db_session, **kwargs)
    return factory


@pytest.fixture(scope='function')
def make_order(db_session):
    def factory(**kwargs):
        return _make_order(db_session, **kwargs)
    return factory


@pytest.fixture(scope='function')
def login(client):
    """Returns a function mapping an email to Authorization headers."""
    def _login(email: str, password: str = PASSWORD) -> dict:
        return auth_headers(get_auth_token(client, email, password))
    return _login
