from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from ..validation import cents_to_amount


class Product(db.Model):
    """
    Product master data with an on-hand stock counter.

    OWNERSHIP: a product belongs to exactly one retailer (shop inventory) or
    one wholesaler (wholesale catalogue), never both.

    Stock is a mutable counter. Sales decrement it inside the sale
    transaction while the row is locked; the CHECK constraint makes a
    negative count impossible to commit.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        db.CheckConstraint(
            "(retailer_id IS NOT NULL AND wholesaler_id IS NULL) OR "
            "(retailer_id IS NULL AND wholesaler_id IS NOT NULL)",
            name="ck_products_single_owner",
        ),
        db.Index("ix_products_retailer_name", "retailer_id", "name"),
        db.Index("ix_products_wholesaler_category", "wholesaler_id", "category"),
        db.Index("ix_products_barcode", "barcode"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    retailer_id = db.Column(db.Integer, db.ForeignKey("retailer_profiles.id"), nullable=True, index=True)
    wholesaler_id = db.Column(db.Integer, db.ForeignKey("wholesaler_profiles.id"), nullable=True, index=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=True, index=True)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    sku = db.Column(db.String(64), nullable=True)
    barcode = db.Column(db.String(64), nullable=True)
    category = db.Column(db.String(64), nullable=False, default="General")
    unit = db.Column(db.String(32), nullable=True)

    # Authoritative storage in cents (frontend may only format for display)
    price_cents = db.Column(db.BigInteger, nullable=False)
    cost_price_cents = db.Column(db.BigInteger, nullable=True)

    stock = db.Column(db.Integer, nullable=False, default=0)
    low_stock_threshold = db.Column(db.Integer, nullable=True)

    # Wholesale order this product was imported from (retailer inventory)
    invoice_number = db.Column(db.String(64), nullable=True, index=True)

    status = db.Column(db.String(16), nullable=False, default="active")

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    retailer = db.relationship("RetailerProfile", backref=db.backref("products", lazy=True))
    wholesaler = db.relationship("WholesalerProfile", backref=db.backref("products", lazy=True))
    supplier = db.relationship("Supplier", backref=db.backref("products", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def is_low_stock(self) -> bool:
        return bool(self.low_stock_threshold) and self.stock <= self.low_stock_threshold

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} stock={self.stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "retailer_id": self.retailer_id,
            "wholesaler_id": self.wholesaler_id,
            "supplier_id": self.supplier_id,
            "name": self.name,
            "description": self.description,
            "sku": self.sku,
            "barcode": self.barcode,
            "category": self.category,
            "unit": self.unit,
            "price_cents": self.price_cents,
            "price": cents_to_amount(self.price_cents),
            "cost_price_cents": self.cost_price_cents,
            "cost_price": cents_to_amount(self.cost_price_cents),
            "stock": self.stock,
            "low_stock_threshold": self.low_stock_threshold,
            "invoice_number": self.invoice_number,
            "status": self.status,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Supplier(db.Model):
    """Upstream supplier a wholesaler buys stock from."""
    __tablename__ = "suppliers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    contact_person = db.Column(db.String(255), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    address = db.Column(db.String(255), nullable=True)
    status = db.Column(db.String(16), nullable=False, default="active")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self, include_related: bool = False) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "contact_person": self.contact_person,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }
        if include_related:
            data["products"] = [p.to_dict() for p in self.products]
            data["payments"] = [p.to_dict() for p in self.payments]
        return data


class SupplierPayment(db.Model):
    """Payment made to a supplier (completed, pending or partial)."""
    __tablename__ = "supplier_payments"
    __table_args__ = (
        db.CheckConstraint(
            "status IN ('completed', 'pending', 'partial')",
            name="ck_supplier_payments_status",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=False, index=True)
    amount_cents = db.Column(db.BigInteger, nullable=False)
    payment_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    reference = db.Column(db.String(64), nullable=True)
    status = db.Column(db.String(16), nullable=False, default="pending")
    notes = db.Column(db.Text, nullable=True)

    supplier = db.relationship("Supplier", backref=db.backref("payments", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "supplier_id": self.supplier_id,
            "amount_cents": self.amount_cents,
            "amount": cents_to_amount(self.amount_cents),
            "payment_date": to_utc_z(self.payment_date),
            "reference": self.reference,
            "status": self.status,
            "notes": self.notes,
        }
