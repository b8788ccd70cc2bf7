# Overview: Pytest coverage for dashboard aggregates.

from datetime import timedelta

from backoffice.models import CreditRequest
from backoffice.services import reporting_service
from backoffice.services.sales_service import SaleLineRequest, create_sale
from backoffice.time_utils import utcnow


class TestRetailerDashboard:

    def test_totals_and_wallets(self, db_session, retailer, shop_products):
        p1, p2 = shop_products
        create_sale(
            retailer_id=retailer.id,
            lines=[SaleLineRequest(product_id=p1.id, quantity=2, price_cents=100)],
            payment_method="cash",
        )
        create_sale(
            retailer_id=retailer.id,
            lines=[SaleLineRequest(product_id=p2.id, quantity=1, price_cents=50)],
            payment_method="momo",
        )

        stats = reporting_service.retailer_dashboard(retailer)

        assert stats["total_orders"] == 2
        assert stats["total_revenue_cents"] == 250
        assert stats["today_sales_cents"] == 250
        assert stats["inventory_items"] == 2
        # stock left: 8 x (80 / 100) and 4 x (40 / 50)
        assert stats["capital_wallet_cents"] == 8 * 80 + 4 * 40
        assert stats["profit_wallet_cents"] == (8 * 100 + 4 * 50) - (8 * 80 + 4 * 40)
        assert stats["cash_revenue_cents"] == 200
        assert stats["mobile_money_revenue_cents"] == 50
        assert stats["wallet_balance_cents"] == 100000
        assert stats["top_products"][0]["id"] == p1.id
        assert stats["top_products"][0]["sold"] == 2
        assert len(stats["recent_orders"]) == 2
        assert sum(m["value"] for m in stats["payment_methods"]) == 100

    def test_earlier_sales_excluded_from_today(self, db_session, retailer, shop_products):
        p1, p2 = shop_products
        old_sale = create_sale(
            retailer_id=retailer.id,
            lines=[SaleLineRequest(product_id=p1.id, quantity=1, price_cents=100)],
            payment_method="cash",
        )
        old_sale.created_at = utcnow() - timedelta(days=1)
        db_session.commit()
        create_sale(
            retailer_id=retailer.id,
            lines=[SaleLineRequest(product_id=p2.id, quantity=1, price_cents=50)],
            payment_method="momo",
        )

        stats = reporting_service.retailer_dashboard(retailer)

        assert stats["total_orders"] == 1
        assert stats["today_sales_cents"] == 50
        assert stats["cash_revenue_cents"] == 0
        assert stats["total_revenue_cents"] == 150
        assert [r["id"] for r in stats["recent_orders"]][-1] == old_sale.id

    def test_low_stock_list(self, db_session, retailer, make_product):
        make_product(retailer=retailer, name="Candles", stock=2, low_stock_threshold=5)
        make_product(retailer=retailer, name="Matches", stock=20, low_stock_threshold=5)

        stats = reporting_service.retailer_dashboard(retailer)

        assert stats["low_stock_items"] == 1
        assert stats["low_stock_list"] == [{"name": "Candles", "stock": 2, "threshold": 5}]


class TestWholesalerDashboard:

    def test_counts_orders_and_pending_credit(self, db_session, retailer, other_retailer, wholesaler,
                                              catalogue_product, make_order):
        make_order(retailer=retailer, wholesaler=wholesaler, product=catalogue_product, quantity=2)
        make_order(retailer=retailer, wholesaler=wholesaler, product=catalogue_product, status="completed")
        db_session.add(CreditRequest(retailer_id=retailer.id, amount_cents=1000, status="pending"))
        db_session.add(CreditRequest(retailer_id=other_retailer.id, amount_cents=1000, status="pending"))
        db_session.commit()

        stats = reporting_service.wholesaler_dashboard(wholesaler)

        assert stats["total_orders"] == 2
        assert stats["today_orders_count"] == 2
        assert stats["total_revenue_cents"] == 9000
        assert stats["pending_orders_count"] == 1
        assert stats["pending_credit_requests_count"] == 1
        assert stats["inventory_value_wallet_cents"] == 100 * 2500
        assert stats["stock_value_wholesaler_cents"] == 100 * 3000

    def test_earlier_orders_excluded_from_today(self, db_session, retailer, wholesaler, catalogue_product,
                                                make_order):
        old_order = make_order(retailer=retailer, wholesaler=wholesaler, product=catalogue_product)
        old_order.created_at = utcnow() - timedelta(days=1)
        db_session.commit()
        make_order(retailer=retailer, wholesaler=wholesaler, product=catalogue_product, quantity=2)

        stats = reporting_service.wholesaler_dashboard(wholesaler)

        assert stats["total_orders"] == 2
        assert stats["today_orders_count"] == 1
        assert stats["today_sales_amount_cents"] == 6000
        assert stats["total_revenue_cents"] == 9000

    def test_retailers_and_stats(self, db_session, retailer, other_retailer, wholesaler,
                                 catalogue_product, make_order):
        make_order(retailer=retailer, wholesaler=wholesaler, product=catalogue_product)
        make_order(retailer=retailer, wholesaler=wholesaler, product=catalogue_product)

        retailers = reporting_service.wholesaler_retailers(wholesaler.id)
        stats = reporting_service.wholesaler_retailer_stats(wholesaler.id)

        assert [r.id for r in retailers] == [retailer.id]
        assert stats["total_retailers"] == 1
        assert stats["credit_extended_cents"] == 100000
        assert stats["credit_utilization_percentage"] == 0


class TestAdminDashboard:

    def test_counts(self, db_session, admin_user, retailer, wholesaler, consumer):
        stats = reporting_service.admin_dashboard()

        assert stats["total_customers"] == 1
        assert stats["total_retailers"] == 1
        assert stats["total_wholesalers"] == 1
        assert stats["total_sales"] == 0
        assert stats["total_revenue_cents"] == 0
