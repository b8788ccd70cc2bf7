# Overview: Pytest coverage for shop inventory, invoice import and the wholesale catalogue.

import pytest

from backoffice.models import Product
from backoffice.services import inventory_service
from backoffice.services.inventory_service import InventoryError, ProductNotFoundError
from backoffice.validation import ForbiddenError, NotFoundError


class TestInvoiceImport:

    def test_import_copies_order_items(self, app, db_session, retailer, wholesaler, catalogue_product, make_order):
        order = make_order(retailer=retailer, wholesaler=wholesaler, product=catalogue_product,
                           quantity=4, price_cents=2800)

        created = inventory_service.import_invoice(retailer_id=retailer.id, order_id=order.id, markup=1.2)

        assert len(created) == 1
        product = created[0]
        assert product.retailer_id == retailer.id
        assert product.wholesaler_id is None
        assert product.name == "Rice 25kg"
        assert product.price_cents == 3600
        assert product.cost_price_cents == 2800
        assert product.stock == 4
        assert product.invoice_number == str(order.id)

    def test_default_markup_from_config(self, app, db_session, retailer, wholesaler, catalogue_product, make_order):
        order = make_order(retailer=retailer, wholesaler=wholesaler, product=catalogue_product)

        created = inventory_service.import_invoice(retailer_id=retailer.id, order_id=order.id)

        assert created[0].price_cents == round(3000 * app.config["INVOICE_IMPORT_MARKUP"])

    def test_duplicate_import_rejected(self, db_session, retailer, wholesaler, catalogue_product, make_order):
        order = make_order(retailer=retailer, wholesaler=wholesaler, product=catalogue_product)
        inventory_service.import_invoice(retailer_id=retailer.id, order_id=order.id)

        with pytest.raises(InventoryError, match="Invoice already imported"):
            inventory_service.import_invoice(retailer_id=retailer.id, order_id=order.id)

        assert db_session.query(Product).filter_by(retailer_id=retailer.id).count() == 1

    def test_foreign_order_forbidden(self, db_session, retailer, other_retailer, wholesaler,
                                     catalogue_product, make_order):
        order = make_order(retailer=other_retailer, wholesaler=wholesaler, product=catalogue_product)

        with pytest.raises(ForbiddenError):
            inventory_service.import_invoice(retailer_id=retailer.id, order_id=order.id)

    def test_unknown_order(self, db_session, retailer):
        with pytest.raises(NotFoundError):
            inventory_service.import_invoice(retailer_id=retailer.id, order_id=31337)


class TestRetailerProducts:

    def test_update_own_product(self, db_session, retailer, shop_products):
        p1, _ = shop_products

        updated = inventory_service.update_retailer_product(
            retailer_id=retailer.id, product_id=p1.id, patch={"price_cents": 120, "stock": 25}
        )

        assert updated.price_cents == 120
        assert updated.stock == 25

    def test_cannot_update_foreign_product(self, db_session, retailer, other_retailer, make_product):
        foreign = make_product(retailer=other_retailer, name="Foreign")

        with pytest.raises(ProductNotFoundError):
            inventory_service.update_retailer_product(
                retailer_id=retailer.id, product_id=foreign.id, patch={"stock": 1}
            )

    def test_negative_stock_rejected(self, db_session, retailer, shop_products):
        p1, _ = shop_products
        with pytest.raises(InventoryError):
            inventory_service.update_retailer_product(
                retailer_id=retailer.id, product_id=p1.id, patch={"stock": -1}
            )

    def test_owner_fields_not_editable(self, db_session, retailer, shop_products, other_retailer):
        p1, _ = shop_products
        with pytest.raises(InventoryError, match="Field not allowed"):
            inventory_service.update_retailer_product(
                retailer_id=retailer.id, product_id=p1.id, patch={"retailer_id": other_retailer.id}
            )

    def test_pos_search_matches_name_sku_and_barcode(self, db_session, retailer, shop_products):
        p1, p2 = shop_products

        assert [p.id for p in inventory_service.search_pos_products(
            retailer_id=retailer.id, search="sugar", limit=50, offset=0)] == [p1.id]
        assert [p.id for p in inventory_service.search_pos_products(
            retailer_id=retailer.id, search="MLK", limit=50, offset=0)] == [p2.id]
        assert len(inventory_service.search_pos_products(
            retailer_id=retailer.id, search=None, limit=50, offset=0)) == 2

    def test_barcode_lookup(self, db_session, retailer, shop_products):
        _, p2 = shop_products

        assert inventory_service.find_by_barcode(retailer_id=retailer.id, barcode="6001000000028").id == p2.id
        with pytest.raises(ProductNotFoundError):
            inventory_service.find_by_barcode(retailer_id=retailer.id, barcode="0000")


class TestWholesalerInventory:

    def test_filters_and_total(self, db_session, wholesaler, other_wholesaler, make_product):
        make_product(wholesaler=wholesaler, name="Beans", category="Food", stock=3, low_stock_threshold=5)
        make_product(wholesaler=wholesaler, name="Soap", category="Hygiene", stock=50, low_stock_threshold=5)
        make_product(wholesaler=wholesaler, name="Salt", category="Food", stock=0, low_stock_threshold=5)
        make_product(wholesaler=other_wholesaler, name="Beans", category="Food")

        products, total = inventory_service.list_wholesaler_inventory(wholesaler_id=wholesaler.id, category="Food")
        assert total == 2
        assert {p.name for p in products} == {"Beans", "Salt"}

        low, low_total = inventory_service.list_wholesaler_inventory(wholesaler_id=wholesaler.id, low_stock=True)
        assert low_total == 1
        assert low[0].name == "Beans"

        page, page_total = inventory_service.list_wholesaler_inventory(wholesaler_id=wholesaler.id, limit=1)
        assert len(page) == 1
        assert page_total == 3

    def test_stats(self, db_session, wholesaler, make_product):
        make_product(wholesaler=wholesaler, name="Beans", price_cents=200, cost_price_cents=150,
                     stock=4, low_stock_threshold=5)
        make_product(wholesaler=wholesaler, name="Salt", price_cents=100, cost_price_cents=60, stock=0)

        stats = inventory_service.inventory_stats(wholesaler.id)

        assert stats["total_products"] == 2
        assert stats["stock_value_supplier_cents"] == 600
        assert stats["stock_value_wholesaler_cents"] == 800
        assert stats["stock_profit_margin_cents"] == 200
        assert stats["low_stock_count"] == 1
        assert stats["out_of_stock_count"] == 1

    def test_create_requires_name_and_category(self, db_session, wholesaler):
        with pytest.raises(InventoryError, match="Missing required fields"):
            inventory_service.create_wholesaler_product(
                wholesaler_id=wholesaler.id, name="", category="Food", price_cents=100
            )

    def test_catalogue_lists_only_active_wholesale_products(self, db_session, retailer, wholesaler,
                                                            shop_products, make_product):
        active = make_product(wholesaler=wholesaler, name="Flour", category="Food")
        make_product(wholesaler=wholesaler, name="Old Flour", category="Food", status="inactive")

        catalogue = inventory_service.wholesale_catalog(search=None, category=None, limit=50, offset=0)

        assert [row["id"] for row in catalogue] == [active.id]
        assert catalogue[0]["wholesaler_name"] == "Kigali Wholesale"

    def test_categories(self, db_session, wholesaler, other_wholesaler, make_product):
        make_product(wholesaler=wholesaler, name="Beans", category="Food")
        make_product(wholesaler=wholesaler, name="Soap", category="Hygiene")
        make_product(wholesaler=other_wholesaler, name="Pens", category="Stationery")

        assert inventory_service.list_categories(wholesaler.id) == ["Food", "Hygiene"]
        assert inventory_service.list_categories() == ["Food", "Hygiene", "Stationery"]
