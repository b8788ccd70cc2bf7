# Overview: Service-layer operations for inventory; product catalogue and stock listings.

"""
Inventory invariants

- A product is owned by exactly one retailer or one wholesaler.
- stock is an on-hand counter, never negative. Only the sale flow
  decrements it; creation and manual edits set it directly.
- A product is "low stock" when it has a threshold and stock <= threshold.
  The wholesaler low-stock filter and stats additionally require stock > 0
  so out-of-stock items are counted separately.
- Invoice import copies the items of one of the retailer's own wholesale
  orders into its shop inventory, once per order.
"""

from __future__ import annotations

import logging

from flask import current_app

from ..extensions import db
from ..models import Product, Order
from ..validation import NotFoundError, ForbiddenError


logger = logging.getLogger(__name__)


class InventoryError(Exception):
    """Raised for inventory operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ProductNotFoundError(NotFoundError):
    pass


# Fields a retailer may change on an existing product
RETAILER_EDITABLE_FIELDS = {
    "name", "description", "category", "price_cents", "cost_price_cents",
    "stock", "low_stock_threshold", "barcode", "sku", "unit", "status",
}


def _search_filter(search: str, *columns):
    pattern = f"%{search.strip()}%"
    return db.or_(*[col.ilike(pattern) for col in columns])


# ---------------------------------------------------------------------------
# Retailer inventory
# ---------------------------------------------------------------------------

def list_retailer_inventory(retailer_id: int) -> list[Product]:
    return (
        db.session.query(Product)
        .filter_by(retailer_id=retailer_id)
        .order_by(Product.name.asc())
        .all()
    )


def create_retailer_product(
    *,
    retailer_id: int,
    name: str,
    price_cents: int,
    description: str | None = None,
    sku: str | None = None,
    barcode: str | None = None,
    category: str | None = None,
    cost_price_cents: int | None = None,
    stock: int = 0,
    low_stock_threshold: int | None = None,
    unit: str | None = None,
) -> Product:
    if not name:
        raise InventoryError("Name and Price are required for manual creation")

    product = Product(
        retailer_id=retailer_id,
        name=name,
        description=description,
        sku=sku,
        barcode=barcode,
        category=category or "General",
        price_cents=price_cents,
        cost_price_cents=cost_price_cents,
        stock=stock,
        low_stock_threshold=low_stock_threshold,
        unit=unit,
        status="active",
    )
    db.session.add(product)
    db.session.commit()
    return product


def import_invoice(*, retailer_id: int, order_id: int, markup: float | None = None) -> list[Product]:
    """
    Create shop products from the items of a wholesale order.

    price = source price * markup, cost = price paid on the order,
    stock = ordered quantity.

    Raises:
        NotFoundError: unknown order
        ForbiddenError: order belongs to another retailer
        InventoryError: order already imported
    """
    order = db.session.query(Order).filter_by(id=order_id).first()
    if not order:
        raise NotFoundError(f"Invoice/Order not found. Received ID: {order_id}")

    if order.retailer_id != retailer_id:
        raise ForbiddenError("Unauthorized: Invoice does not belong to you")

    invoice_number = str(order.id)
    existing = db.session.query(Product).filter_by(
        retailer_id=retailer_id, invoice_number=invoice_number
    ).first()
    if existing:
        raise InventoryError("Invoice already imported")

    if markup is None:
        markup = current_app.config["INVOICE_IMPORT_MARKUP"]

    created = []
    for item in order.items:
        source = item.product
        product = Product(
            retailer_id=retailer_id,
            name=source.name,
            description=source.description,
            sku=source.sku,
            barcode=source.barcode,
            category=source.category,
            unit=source.unit,
            price_cents=int(round(source.price_cents * markup)),
            cost_price_cents=item.price_cents,
            stock=item.quantity,
            invoice_number=invoice_number,
            status="active",
        )
        db.session.add(product)
        created.append(product)

    db.session.commit()
    logger.info("Imported %d products from order %s for retailer %s", len(created), order.id, retailer_id)
    return created


def update_retailer_product(*, retailer_id: int, product_id: int, patch: dict) -> Product:
    unknown = set(patch) - RETAILER_EDITABLE_FIELDS
    if unknown:
        raise InventoryError(f"Field not allowed: {', '.join(sorted(unknown))}")

    product = db.session.query(Product).filter_by(id=product_id, retailer_id=retailer_id).first()
    if not product:
        raise ProductNotFoundError("Product not found")

    if "name" in patch and not patch["name"]:
        raise InventoryError("name cannot be blank")
    if "price_cents" in patch and patch["price_cents"] is None:
        raise InventoryError("price cannot be null")
    if "stock" in patch and (patch["stock"] is None or patch["stock"] < 0):
        raise InventoryError("Stock must be a non-negative integer")
    if "status" in patch and patch["status"] not in ("active", "inactive"):
        raise InventoryError("status must be active or inactive")

    for key, value in patch.items():
        setattr(product, key, value)

    db.session.commit()
    return product


def search_pos_products(*, retailer_id: int, search: str | None, limit: int, offset: int) -> list[Product]:
    """Active shop products, out-of-stock included, ordered by name."""
    query = db.session.query(Product).filter(
        Product.retailer_id == retailer_id,
        Product.status == "active",
    )
    if search:
        query = query.filter(_search_filter(search, Product.name, Product.sku, Product.barcode))
    return query.order_by(Product.name.asc()).limit(limit).offset(offset).all()


def find_by_barcode(*, retailer_id: int, barcode: str) -> Product:
    product = db.session.query(Product).filter_by(
        retailer_id=retailer_id, barcode=barcode, status="active"
    ).first()
    if not product:
        raise ProductNotFoundError("Product not found")
    return product


def wholesale_catalog(*, search: str | None, category: str | None, limit: int, offset: int) -> list[dict]:
    """Active products of all wholesalers, shaped for the ordering screen."""
    query = db.session.query(Product).filter(
        Product.wholesaler_id.isnot(None),
        Product.status == "active",
    )
    if search:
        query = query.filter(_search_filter(search, Product.name, Product.sku))
    if category:
        query = query.filter(Product.category == category)

    products = query.order_by(Product.name.asc()).limit(limit).offset(offset).all()
    return [
        {
            "id": p.id,
            "name": p.name,
            "category": p.category,
            "wholesaler_id": p.wholesaler_id,
            "wholesaler_price_cents": p.price_cents,
            "stock_available": p.stock,
            "min_order": 1,
            "unit": p.unit or "unit",
            "wholesaler_name": p.wholesaler.company_name if p.wholesaler else None,
        }
        for p in products
    ]


# ---------------------------------------------------------------------------
# Wholesaler inventory
# ---------------------------------------------------------------------------

def list_wholesaler_inventory(
    *,
    wholesaler_id: int,
    category: str | None = None,
    search: str | None = None,
    low_stock: bool = False,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[Product], int]:
    """Returns (page, total matching count)."""
    query = db.session.query(Product).filter(Product.wholesaler_id == wholesaler_id)

    if category:
        query = query.filter(Product.category == category)
    if search:
        query = query.filter(_search_filter(search, Product.name, Product.sku, Product.description))
    if low_stock:
        query = query.filter(
            Product.stock > 0,
            Product.low_stock_threshold.isnot(None),
            Product.stock <= Product.low_stock_threshold,
        )

    total = query.count()
    products = (
        query.order_by(Product.created_at.desc(), Product.id.desc())
        .limit(limit)
        .offset(offset)
        .all()
    )
    return products, total


def inventory_stats(wholesaler_id: int) -> dict:
    products = db.session.query(Product).filter_by(wholesaler_id=wholesaler_id).all()

    stock_value_supplier = sum(p.stock * (p.cost_price_cents or 0) for p in products)
    stock_value_wholesaler = sum(p.stock * p.price_cents for p in products)

    return {
        "total_products": len(products),
        "stock_value_supplier_cents": stock_value_supplier,
        "stock_value_wholesaler_cents": stock_value_wholesaler,
        "stock_profit_margin_cents": stock_value_wholesaler - stock_value_supplier,
        "low_stock_count": sum(1 for p in products if p.stock > 0 and p.is_low_stock),
        "out_of_stock_count": sum(1 for p in products if p.stock == 0),
    }


def list_categories(wholesaler_id: int | None = None) -> list[str]:
    """Distinct product categories, optionally for one wholesaler."""
    query = db.session.query(Product.category).distinct()
    if wholesaler_id is not None:
        query = query.filter(Product.wholesaler_id == wholesaler_id)
    return sorted(category for (category,) in query.all() if category)


def create_wholesaler_product(
    *,
    wholesaler_id: int,
    name: str,
    category: str,
    price_cents: int,
    description: str | None = None,
    sku: str | None = None,
    cost_price_cents: int | None = None,
    stock: int = 0,
    unit: str | None = None,
    low_stock_threshold: int | None = None,
    invoice_number: str | None = None,
    barcode: str | None = None,
    supplier_id: int | None = None,
) -> Product:
    if not name or not category:
        raise InventoryError(
            "Missing required fields",
            details={"required": ["name", "category", "wholesale_price"]},
        )

    product = Product(
        wholesaler_id=wholesaler_id,
        supplier_id=supplier_id,
        name=name,
        description=description,
        sku=sku,
        category=category,
        price_cents=price_cents,
        cost_price_cents=cost_price_cents,
        stock=stock,
        unit=unit,
        low_stock_threshold=low_stock_threshold,
        invoice_number=invoice_number,
        barcode=barcode,
        status="active",
    )
    db.session.add(product)
    db.session.commit()
    logger.info("Wholesaler %s created product %s", wholesaler_id, product.id)
    return product
