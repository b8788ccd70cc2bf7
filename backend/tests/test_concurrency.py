# Overview: Pytest coverage for lost-update handling in the sale and order flows.

"""
Concurrency tests

Runs against a file-backed SQLite database so a second engine can commit
a competing write between the locked read and the commit of a flow.

Verifies:
- A sale that loses a stock race is retried and re-validated against the
  fresh stock; it never oversells
- A wholesale order that loses a wallet race is retried and re-validated
  against the fresh balance
"""

import pytest
from sqlalchemy import create_engine, text

from backoffice import create_app
from backoffice.extensions import db
from backoffice.models import Order, Product, RetailerProfile, Sale
from backoffice.services import account_service, order_service, sales_service
from backoffice.services.order_service import OrderError, OrderLineRequest
from backoffice.services.sales_service import SaleError, SaleLineRequest


PASSWORD = "Password123!"


@pytest.fixture(scope='function')
def file_app(tmp_path):
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'race.sqlite3'}",
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture(scope='function')
def other_engine(file_app):
    """Independent connection pool standing in for a second register."""
    engine = create_engine(file_app.config['SQLALCHEMY_DATABASE_URI'])
    yield engine
    engine.dispose()


@pytest.fixture(scope='function')
def shop(file_app):
    profile = account_service.create_retailer(
        email="race@test.rw",
        password=PASSWORD,
        business_name="Race Shop",
        credit_limit_cents=0,
    )
    profile.wallet_balance_cents = 100000
    db.session.commit()
    return profile


def _add_product(**fields):
    product = Product(**fields)
    db.session.add(product)
    db.session.commit()
    return product


def _commit_elsewhere(engine, sql, **params):
    with engine.begin() as conn:
        conn.execute(text(sql), params)


def _interleave_after_first_read(monkeypatch, module, concurrent_write):
    """
    Wrap module.lock_for_update so concurrent_write runs once, right after
    the first locked read. Returns the list of locked reads made.
    """
    real_lock = module.lock_for_update
    reads = []

    class _Interleaved:
        def __init__(self, query):
            self._query = query

        def all(self):
            return self._after_read(self._query.all())

        def first(self):
            return self._after_read(self._query.first())

        def _after_read(self, result):
            if len(reads) == 1:
                concurrent_write()
            return result

    def lock(query):
        reads.append(query)
        return _Interleaved(real_lock(query))

    monkeypatch.setattr(module, "lock_for_update", lock)
    return reads


class TestSaleStockRace:

    def test_losing_sale_revalidates_and_fails(self, monkeypatch, other_engine, shop):
        milk = _add_product(retailer_id=shop.id, name="Milk", price_cents=50, stock=2)

        reads = _interleave_after_first_read(monkeypatch, sales_service, lambda: _commit_elsewhere(
            other_engine,
            "UPDATE products SET stock = 1, version_id = version_id + 1 WHERE id = :id",
            id=milk.id,
        ))

        with pytest.raises(SaleError) as exc:
            sales_service.create_sale(
                retailer_id=shop.id,
                lines=[SaleLineRequest(product_id=milk.id, quantity=2, price_cents=50)],
                payment_method="cash",
            )

        assert str(exc.value) == "Insufficient stock for product: Milk"
        assert len(reads) == 2
        assert db.session.query(Sale).count() == 0
        assert db.session.get(Product, milk.id).stock == 1

    def test_retry_sells_against_fresh_stock(self, monkeypatch, other_engine, shop):
        sugar = _add_product(retailer_id=shop.id, name="Sugar", price_cents=100, stock=10)

        reads = _interleave_after_first_read(monkeypatch, sales_service, lambda: _commit_elsewhere(
            other_engine,
            "UPDATE products SET stock = 7, version_id = version_id + 1 WHERE id = :id",
            id=sugar.id,
        ))

        sale = sales_service.create_sale(
            retailer_id=shop.id,
            lines=[SaleLineRequest(product_id=sugar.id, quantity=2, price_cents=100)],
            payment_method="cash",
        )

        assert len(reads) == 2
        assert sale.total_amount_cents == 200
        assert db.session.query(Sale).count() == 1
        assert db.session.get(Product, sugar.id).stock == 5


class TestOrderWalletRace:

    def test_losing_order_revalidates_and_fails(self, monkeypatch, other_engine, shop):
        supplier = account_service.create_wholesaler(
            email="race-wholesale@test.rw",
            password=PASSWORD,
            company_name="Race Wholesale",
        )
        rice = _add_product(wholesaler_id=supplier.id, name="Rice 25kg", price_cents=3000, stock=100)

        reads = _interleave_after_first_read(monkeypatch, order_service, lambda: _commit_elsewhere(
            other_engine,
            "UPDATE retailer_profiles SET wallet_balance_cents = 10000, version_id = version_id + 1 "
            "WHERE id = :id",
            id=shop.id,
        ))

        with pytest.raises(OrderError) as exc:
            order_service.create_order(
                retailer_id=shop.id,
                lines=[OrderLineRequest(product_id=rice.id, quantity=5, price_cents=3000)],
                total_cents=15000,
            )

        assert str(exc.value) == "Insufficient wallet balance"
        assert len(reads) == 2
        assert db.session.query(Order).count() == 0
        assert db.session.get(RetailerProfile, shop.id).wallet_balance_cents == 10000
