"""
Point-of-sale Service

A sale is validated in full before anything is written: every requested
product must belong to the selling retailer and have enough stock for the
aggregate quantity requested. Only then are the Sale, its items and the
stock decrements written, in one transaction.

Products are re-read under lock_for_update inside the transaction, and their
version_id column turns a concurrent decrement into a StaleDataError that
run_with_retry answers by re-validating from fresh stock counts. A sale
therefore never oversells, even when two registers sell the last unit at
the same time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..extensions import db
from ..models import Sale, SaleItem, Product
from ..models.sales import PAYMENT_METHODS
from ..time_utils import day_bounds
from .account_service import find_consumer_by_phone
from .concurrency import lock_for_update, run_with_retry


logger = logging.getLogger(__name__)


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


@dataclass(frozen=True)
class SaleLineRequest:
    product_id: int
    quantity: int
    price_cents: int


def _load_products(retailer_id: int, product_ids: list[int]) -> dict[int, Product]:
    products = lock_for_update(
        db.session.query(Product).filter(Product.id.in_(product_ids))
    ).all()
    return {p.id: p for p in products if p.retailer_id == retailer_id}


def _validate_stock(lines: list[SaleLineRequest], products: dict[int, Product]) -> None:
    """
    Fail on the first line (in request order) whose product is unknown or
    short of stock. Repeated products are checked against their summed
    quantity.
    """
    requested: dict[int, int] = {}
    for line in lines:
        requested[line.product_id] = requested.get(line.product_id, 0) + line.quantity

    for line in lines:
        product = products.get(line.product_id)
        if product is None:
            raise SaleError(
                f"Insufficient stock for product: {line.product_id}",
                details={"product_id": line.product_id, "reason": "not_found"},
            )
        if product.stock < requested[line.product_id]:
            raise SaleError(
                f"Insufficient stock for product: {product.name}",
                details={
                    "product_id": product.id,
                    "requested_quantity": requested[line.product_id],
                    "stock": product.stock,
                },
            )


def create_sale(
    *,
    retailer_id: int,
    lines: list[SaleLineRequest],
    payment_method: str,
    subtotal_cents: int | None = None,
    tax_cents: int = 0,
    discount_cents: int = 0,
    customer_phone: str | None = None,
    user_id: int | None = None,
) -> Sale:
    """
    Record a completed sale and decrement stock, atomically.

    total = subtotal + tax - discount. When subtotal is omitted it is the
    sum of quantity * unit price over the lines.

    Raises:
        SaleError: empty cart, bad payment method, negative total, or any
            line short of stock. Nothing is persisted in that case.
    """
    if not lines:
        raise SaleError("Sale must contain items")

    if payment_method not in PAYMENT_METHODS:
        raise SaleError(
            f"Unsupported payment method: {payment_method}",
            details={"allowed": list(PAYMENT_METHODS)},
        )

    for line in lines:
        if line.quantity <= 0:
            raise SaleError("Quantity must be positive", details={"product_id": line.product_id})

    computed_subtotal = sum(line.quantity * line.price_cents for line in lines)
    if subtotal_cents is None:
        subtotal_cents = computed_subtotal
    elif subtotal_cents != computed_subtotal:
        logger.warning(
            "Sale subtotal %s differs from line total %s for retailer %s",
            subtotal_cents, computed_subtotal, retailer_id,
        )

    total_cents = subtotal_cents + tax_cents - discount_cents
    if total_cents < 0:
        raise SaleError("Discount cannot exceed subtotal plus tax")

    consumer = find_consumer_by_phone(customer_phone)

    def _op():
        products = _load_products(retailer_id, sorted({line.product_id for line in lines}))
        _validate_stock(lines, products)

        sale = Sale(
            retailer_id=retailer_id,
            consumer_id=consumer.id if consumer else None,
            subtotal_cents=subtotal_cents,
            tax_cents=tax_cents,
            discount_cents=discount_cents,
            total_amount_cents=total_cents,
            payment_method=payment_method,
            status="completed",
            created_by_user_id=user_id,
        )
        db.session.add(sale)
        db.session.flush()

        for line in lines:
            db.session.add(SaleItem(
                sale_id=sale.id,
                product_id=line.product_id,
                quantity=line.quantity,
                price_cents=line.price_cents,
            ))
            products[line.product_id].stock -= line.quantity

        db.session.commit()
        return sale

    sale = run_with_retry(_op)
    logger.info(
        "Recorded sale %s for retailer %s: %d items, total %s cents via %s",
        sale.id, retailer_id, len(lines), sale.total_amount_cents, payment_method,
    )
    return sale


def daily_sales_summary(retailer_id: int) -> dict:
    """Today's takings and transaction counts per payment method."""
    start, end = day_bounds()
    sales = db.session.query(Sale).filter(
        Sale.retailer_id == retailer_id,
        Sale.created_at >= start,
        Sale.created_at < end,
    ).all()

    method_counts: dict[str, int] = {}
    for sale in sales:
        method_counts[sale.payment_method] = method_counts.get(sale.payment_method, 0) + 1

    return {
        "total_sales_cents": sum(s.total_amount_cents for s in sales),
        "transaction_count": len(sales),
        "mobile_payment_transactions": method_counts.get("mobile_money", 0) + method_counts.get("momo", 0),
        "dashboard_wallet_transactions": method_counts.get("dashboard_wallet", 0) + method_counts.get("wallet", 0),
        "credit_wallet_transactions": method_counts.get("credit_wallet", 0) + method_counts.get("credit", 0),
        "cash_transactions": method_counts.get("cash", 0),
    }
