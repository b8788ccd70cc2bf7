"""
Wholesale Order Service

A retailer pays for a wholesale order from its wallet. The order, its items
and the wallet debit are written in one transaction with the retailer
profile row locked; an insufficient balance aborts the transaction and
leaves the wallet untouched.

The wholesaler of an order is the owner of its first product. Later lines
are not checked against it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..extensions import db
from ..models import Order, OrderItem, Product, RetailerProfile
from ..models.orders import ORDER_STATUSES
from ..validation import NotFoundError
from .concurrency import lock_for_update, run_with_retry


logger = logging.getLogger(__name__)


class OrderError(Exception):
    """Raised for order operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class OrderNotFoundError(NotFoundError):
    pass


@dataclass(frozen=True)
class OrderLineRequest:
    product_id: int
    quantity: int
    price_cents: int


def create_order(*, retailer_id: int, lines: list[OrderLineRequest], total_cents: int) -> Order:
    """
    Place a wholesale order and debit the retailer's wallet by total_cents.

    Raises:
        OrderError: no items, first product not a wholesaler product, a
            product that does not exist, or insufficient wallet balance.
    """
    if not lines:
        raise OrderError("Order must contain items")

    for line in lines:
        if line.quantity <= 0:
            raise OrderError("Quantity must be positive", details={"product_id": line.product_id})

    first_product = db.session.query(Product).filter_by(id=lines[0].product_id).first()
    if not first_product or not first_product.wholesaler_id:
        raise OrderError("Product does not belong to a wholesaler")
    wholesaler_id = first_product.wholesaler_id

    product_ids = {line.product_id for line in lines}
    found = {pid for (pid,) in db.session.query(Product.id).filter(Product.id.in_(product_ids)).all()}
    missing = sorted(product_ids - found)
    if missing:
        raise OrderError("Product not found", details={"product_ids": missing})

    def _op():
        retailer = lock_for_update(
            db.session.query(RetailerProfile).filter_by(id=retailer_id)
        ).first()
        if not retailer:
            raise OrderError("Retailer profile not found")

        if retailer.wallet_balance_cents < total_cents:
            raise OrderError(
                "Insufficient wallet balance",
                details={
                    "wallet_balance_cents": retailer.wallet_balance_cents,
                    "total_amount_cents": total_cents,
                },
            )

        order = Order(
            retailer_id=retailer.id,
            wholesaler_id=wholesaler_id,
            total_amount_cents=total_cents,
            status="pending",
        )
        db.session.add(order)
        db.session.flush()

        for line in lines:
            db.session.add(OrderItem(
                order_id=order.id,
                product_id=line.product_id,
                quantity=line.quantity,
                price_cents=line.price_cents,
            ))

        retailer.wallet_balance_cents -= total_cents

        db.session.commit()
        return order

    order = run_with_retry(_op)
    logger.info(
        "Retailer %s placed order %s with wholesaler %s for %s cents",
        retailer_id, order.id, wholesaler_id, total_cents,
    )
    return order


def update_order_status(*, order_id: int, wholesaler_id: int, status: str) -> Order:
    """Move one of the wholesaler's orders to a new status."""
    if status not in ORDER_STATUSES:
        raise OrderError(
            f"Invalid status: {status}",
            details={"allowed": list(ORDER_STATUSES)},
        )

    def _op():
        order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
        if not order or order.wholesaler_id != wholesaler_id:
            raise OrderNotFoundError("Order not found")

        previous = order.status
        order.status = status
        db.session.commit()
        logger.info("Order %s status %s -> %s", order.id, previous, status)
        return order

    return run_with_retry(_op)


def list_retailer_orders(retailer_id: int) -> list[Order]:
    return (
        db.session.query(Order)
        .filter_by(retailer_id=retailer_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )


def list_wholesaler_orders(wholesaler_id: int) -> list[Order]:
    return (
        db.session.query(Order)
        .filter_by(wholesaler_id=wholesaler_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )
