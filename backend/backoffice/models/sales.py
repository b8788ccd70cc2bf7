from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from ..validation import cents_to_amount


PAYMENT_METHODS = ("cash", "momo", "mobile_money", "card", "wallet", "dashboard_wallet", "credit", "credit_wallet")


class Sale(db.Model):
    """
    Point-of-sale transaction recorded by a retailer.

    Created in the same DB transaction as the stock decrements of its items.
    total_amount_cents = subtotal_cents + tax_cents - discount_cents.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_retailer_created", "retailer_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    retailer_id = db.Column(db.Integer, db.ForeignKey("retailer_profiles.id"), nullable=False, index=True)
    consumer_id = db.Column(db.Integer, db.ForeignKey("consumer_profiles.id"), nullable=True, index=True)

    subtotal_cents = db.Column(db.BigInteger, nullable=False, default=0)
    tax_cents = db.Column(db.BigInteger, nullable=False, default=0)
    discount_cents = db.Column(db.BigInteger, nullable=False, default=0)
    total_amount_cents = db.Column(db.BigInteger, nullable=False)

    payment_method = db.Column(db.String(32), nullable=False, default="cash", index=True)
    status = db.Column(db.String(16), nullable=False, default="completed")

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    retailer = db.relationship("RetailerProfile", backref=db.backref("sales", lazy=True))
    consumer = db.relationship("ConsumerProfile", backref=db.backref("purchases", lazy=True))

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "retailer_id": self.retailer_id,
            "consumer_id": self.consumer_id,
            "subtotal_cents": self.subtotal_cents,
            "tax_cents": self.tax_cents,
            "discount_cents": self.discount_cents,
            "total_amount_cents": self.total_amount_cents,
            "total_amount": cents_to_amount(self.total_amount_cents),
            "payment_method": self.payment_method,
            "status": self.status,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class SaleItem(db.Model):
    """Line item of a sale; price_cents is the unit price charged."""
    __tablename__ = "sale_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_sale_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    price_cents = db.Column(db.BigInteger, nullable=False)

    sale = db.relationship("Sale", backref=db.backref("items", lazy=True, order_by="SaleItem.id"))
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "price_cents": self.price_cents,
            "price": cents_to_amount(self.price_cents),
            "line_total_cents": self.price_cents * self.quantity,
        }
