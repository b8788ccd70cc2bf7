from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from ..validation import cents_to_amount


ORDER_STATUSES = ("pending", "approved", "rejected", "completed")


class Order(db.Model):
    """
    Wholesale purchase order from a retailer to a wholesaler.

    Created in the same DB transaction as the retailer wallet debit.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'completed')",
            name="ck_orders_status",
        ),
        db.Index("ix_orders_wholesaler_status", "wholesaler_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    retailer_id = db.Column(db.Integer, db.ForeignKey("retailer_profiles.id"), nullable=False, index=True)
    wholesaler_id = db.Column(db.Integer, db.ForeignKey("wholesaler_profiles.id"), nullable=False, index=True)

    total_amount_cents = db.Column(db.BigInteger, nullable=False)
    status = db.Column(db.String(16), nullable=False, default="pending")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    retailer = db.relationship("RetailerProfile", backref=db.backref("orders", lazy=True))
    wholesaler = db.relationship("WholesalerProfile", backref=db.backref("orders", lazy=True))

    def to_dict(self, include_items: bool = False, include_parties: bool = False) -> dict:
        data = {
            "id": self.id,
            "retailer_id": self.retailer_id,
            "wholesaler_id": self.wholesaler_id,
            "total_amount_cents": self.total_amount_cents,
            "total_amount": cents_to_amount(self.total_amount_cents),
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict(include_product=True) for item in self.items]
        if include_parties:
            data["retailer"] = self.retailer.to_dict(include_user=True) if self.retailer else None
            data["wholesaler"] = self.wholesaler.to_dict() if self.wholesaler else None
        return data


class OrderItem(db.Model):
    __tablename__ = "order_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    price_cents = db.Column(db.BigInteger, nullable=False)

    order = db.relationship("Order", backref=db.backref("items", lazy=True, order_by="OrderItem.id"))
    product = db.relationship("Product")

    def to_dict(self, include_product: bool = False) -> dict:
        data = {
            "id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "price_cents": self.price_cents,
            "price": cents_to_amount(self.price_cents),
        }
        if include_product:
            data["product"] = self.product.to_dict() if self.product else None
        return data
