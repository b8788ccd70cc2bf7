# Overview: Pytest coverage for POS sale creation and the daily summary.

"""
POS sale tests

Verifies:
- A sale is all-or-nothing: any short line aborts the whole sale
- Totals are subtotal + tax - discount
- Stock decrements match the sold quantities
- Products of another retailer cannot be sold
"""

import pytest

from backoffice.models import Sale, SaleItem
from backoffice.services.sales_service import (
    SaleError,
    SaleLineRequest,
    create_sale,
    daily_sales_summary,
)


class TestCreateSale:

    def test_successful_sale_totals_and_decrements(self, db_session, retailer, shop_products):
        p1, p2 = shop_products

        sale = create_sale(
            retailer_id=retailer.id,
            lines=[
                SaleLineRequest(product_id=p1.id, quantity=2, price_cents=100),
                SaleLineRequest(product_id=p2.id, quantity=1, price_cents=50),
            ],
            payment_method="cash",
            tax_cents=0,
            discount_cents=0,
        )

        assert sale.total_amount_cents == 250
        assert sale.subtotal_cents == 250
        assert sale.status == "completed"
        assert len(sale.items) == 2
        assert p1.stock == 8
        assert p2.stock == 4

    def test_tax_and_discount_applied(self, db_session, retailer, shop_products):
        p1, _ = shop_products

        sale = create_sale(
            retailer_id=retailer.id,
            lines=[SaleLineRequest(product_id=p1.id, quantity=3, price_cents=100)],
            payment_method="momo",
            subtotal_cents=300,
            tax_cents=54,
            discount_cents=20,
        )

        assert sale.total_amount_cents == 334
        assert sale.payment_method == "momo"

    def test_insufficient_stock_persists_nothing(self, db_session, retailer, shop_products):
        p1, p2 = shop_products

        with pytest.raises(SaleError) as exc_info:
            create_sale(
                retailer_id=retailer.id,
                lines=[
                    SaleLineRequest(product_id=p1.id, quantity=2, price_cents=100),
                    SaleLineRequest(product_id=p2.id, quantity=6, price_cents=50),
                ],
                payment_method="cash",
            )

        assert str(exc_info.value) == "Insufficient stock for product: Milk 500ml"
        assert db_session.query(Sale).count() == 0
        assert db_session.query(SaleItem).count() == 0
        assert p1.stock == 10
        assert p2.stock == 5

    def test_first_short_line_is_reported(self, db_session, retailer, shop_products):
        p1, p2 = shop_products

        with pytest.raises(SaleError) as exc_info:
            create_sale(
                retailer_id=retailer.id,
                lines=[
                    SaleLineRequest(product_id=p1.id, quantity=11, price_cents=100),
                    SaleLineRequest(product_id=p2.id, quantity=6, price_cents=50),
                ],
                payment_method="cash",
            )

        assert "Sugar 1kg" in str(exc_info.value)

    def test_repeated_product_checked_against_total_quantity(self, db_session, retailer, shop_products):
        _, p2 = shop_products

        with pytest.raises(SaleError):
            create_sale(
                retailer_id=retailer.id,
                lines=[
                    SaleLineRequest(product_id=p2.id, quantity=3, price_cents=50),
                    SaleLineRequest(product_id=p2.id, quantity=3, price_cents=50),
                ],
                payment_method="cash",
            )

        assert p2.stock == 5

    def test_unknown_product_reported_by_id(self, db_session, retailer, shop_products):
        with pytest.raises(SaleError) as exc_info:
            create_sale(
                retailer_id=retailer.id,
                lines=[SaleLineRequest(product_id=99999, quantity=1, price_cents=100)],
                payment_method="cash",
            )

        assert str(exc_info.value) == "Insufficient stock for product: 99999"

    def test_cannot_sell_another_retailers_product(self, db_session, retailer, other_retailer, make_product):
        foreign = make_product(retailer=other_retailer, name="Foreign", stock=10)

        with pytest.raises(SaleError):
            create_sale(
                retailer_id=retailer.id,
                lines=[SaleLineRequest(product_id=foreign.id, quantity=1, price_cents=100)],
                payment_method="cash",
            )

        assert foreign.stock == 10

    def test_selling_exact_stock_leaves_zero(self, db_session, retailer, shop_products):
        _, p2 = shop_products

        create_sale(
            retailer_id=retailer.id,
            lines=[SaleLineRequest(product_id=p2.id, quantity=5, price_cents=50)],
            payment_method="cash",
        )

        assert p2.stock == 0

    def test_empty_sale_rejected(self, db_session, retailer):
        with pytest.raises(SaleError, match="Sale must contain items"):
            create_sale(retailer_id=retailer.id, lines=[], payment_method="cash")

    def test_unknown_payment_method_rejected(self, db_session, retailer, shop_products):
        p1, _ = shop_products
        with pytest.raises(SaleError, match="Unsupported payment method"):
            create_sale(
                retailer_id=retailer.id,
                lines=[SaleLineRequest(product_id=p1.id, quantity=1, price_cents=100)],
                payment_method="barter",
            )

    def test_discount_larger_than_total_rejected(self, db_session, retailer, shop_products):
        p1, _ = shop_products
        with pytest.raises(SaleError):
            create_sale(
                retailer_id=retailer.id,
                lines=[SaleLineRequest(product_id=p1.id, quantity=1, price_cents=100)],
                payment_method="cash",
                discount_cents=500,
            )
        assert p1.stock == 10

    def test_customer_phone_links_consumer(self, db_session, retailer, shop_products, consumer):
        p1, _ = shop_products

        sale = create_sale(
            retailer_id=retailer.id,
            lines=[SaleLineRequest(product_id=p1.id, quantity=1, price_cents=100)],
            payment_method="cash",
            customer_phone="+250788444444",
        )

        assert sale.consumer_id == consumer.id


class TestDailySalesSummary:

    def test_counts_per_payment_method(self, db_session, retailer, shop_products):
        p1, _ = shop_products
        for method in ("cash", "cash", "momo", "dashboard_wallet", "credit_wallet"):
            create_sale(
                retailer_id=retailer.id,
                lines=[SaleLineRequest(product_id=p1.id, quantity=1, price_cents=100)],
                payment_method=method,
            )

        summary = daily_sales_summary(retailer.id)

        assert summary["total_sales_cents"] == 500
        assert summary["transaction_count"] == 5
        assert summary["cash_transactions"] == 2
        assert summary["mobile_payment_transactions"] == 1
        assert summary["dashboard_wallet_transactions"] == 1
        assert summary["credit_wallet_transactions"] == 1

    def test_other_retailers_sales_excluded(self, db_session, retailer, other_retailer, make_product):
        foreign = make_product(retailer=other_retailer, name="Foreign", stock=10)
        create_sale(
            retailer_id=other_retailer.id,
            lines=[SaleLineRequest(product_id=foreign.id, quantity=1, price_cents=100)],
            payment_method="cash",
        )

        assert daily_sales_summary(retailer.id)["transaction_count"] == 0
