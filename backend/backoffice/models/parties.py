from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from ..validation import cents_to_amount


class RetailerProfile(db.Model):
    """
    Retailer shop attached to a retailer user.

    wallet_balance_cents funds wholesale orders and is debited atomically
    with order creation. credit_limit_cents grows when a wholesaler approves
    a credit request.
    """
    __tablename__ = "retailer_profiles"
    __table_args__ = (
        db.CheckConstraint("wallet_balance_cents >= 0", name="ck_retailer_wallet_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, unique=True)

    shop_name = db.Column(db.String(255), nullable=False)
    address = db.Column(db.String(255), nullable=True)

    wallet_balance_cents = db.Column(db.BigInteger, nullable=False, default=0)
    credit_limit_cents = db.Column(db.BigInteger, nullable=False, default=0)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    user = db.relationship("User", backref=db.backref("retailer_profile", uselist=False, lazy=True))
    credit = db.relationship("RetailerCredit", back_populates="retailer", uselist=False, lazy=True)
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self, include_user: bool = False) -> dict:
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "shop_name": self.shop_name,
            "address": self.address,
            "wallet_balance_cents": self.wallet_balance_cents,
            "wallet_balance": cents_to_amount(self.wallet_balance_cents),
            "credit_limit_cents": self.credit_limit_cents,
            "credit_limit": cents_to_amount(self.credit_limit_cents),
            "created_at": to_utc_z(self.created_at),
        }
        if include_user:
            data["user"] = self.user.to_dict() if self.user else None
            data["credit"] = self.credit.to_dict() if self.credit else None
        return data


class RetailerCredit(db.Model):
    """Credit account a retailer draws against (limit / used / available)."""
    __tablename__ = "retailer_credits"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    retailer_id = db.Column(db.Integer, db.ForeignKey("retailer_profiles.id"), nullable=False, unique=True)

    credit_limit_cents = db.Column(db.BigInteger, nullable=False, default=0)
    used_credit_cents = db.Column(db.BigInteger, nullable=False, default=0)
    available_credit_cents = db.Column(db.BigInteger, nullable=False, default=0)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    retailer = db.relationship("RetailerProfile", back_populates="credit")
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "retailer_id": self.retailer_id,
            "credit_limit_cents": self.credit_limit_cents,
            "used_credit_cents": self.used_credit_cents,
            "available_credit_cents": self.available_credit_cents,
            "credit_limit": cents_to_amount(self.credit_limit_cents),
            "used_credit": cents_to_amount(self.used_credit_cents),
            "available_credit": cents_to_amount(self.available_credit_cents),
        }


class WholesalerProfile(db.Model):
    __tablename__ = "wholesaler_profiles"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, unique=True)

    company_name = db.Column(db.String(255), nullable=False)
    address = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    user = db.relationship("User", backref=db.backref("wholesaler_profile", uselist=False, lazy=True))

    def to_dict(self, include_user: bool = False) -> dict:
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "company_name": self.company_name,
            "address": self.address,
            "created_at": to_utc_z(self.created_at),
        }
        if include_user:
            data["user"] = self.user.to_dict() if self.user else None
        return data


class ConsumerProfile(db.Model):
    __tablename__ = "consumer_profiles"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, unique=True)
    full_name = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    user = db.relationship("User", backref=db.backref("consumer_profile", uselist=False, lazy=True))

    def to_dict(self, include_user: bool = False) -> dict:
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "full_name": self.full_name,
            "created_at": to_utc_z(self.created_at),
        }
        if include_user:
            data["user"] = self.user.to_dict() if self.user else None
        return data


class Branch(db.Model):
    __tablename__ = "branches"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    retailer_id = db.Column(db.Integer, db.ForeignKey("retailer_profiles.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    location = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    retailer = db.relationship("RetailerProfile", backref=db.backref("branches", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "retailer_id": self.retailer_id,
            "name": self.name,
            "location": self.location,
            "created_at": to_utc_z(self.created_at),
        }


class Loan(db.Model):
    """Consumer loan record (listed in the admin portal)."""
    __tablename__ = "loans"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    consumer_id = db.Column(db.Integer, db.ForeignKey("consumer_profiles.id"), nullable=False, index=True)
    amount_cents = db.Column(db.BigInteger, nullable=False)
    status = db.Column(db.String(16), nullable=False, default="pending")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    consumer = db.relationship("ConsumerProfile", backref=db.backref("loans", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "consumer_id": self.consumer_id,
            "amount_cents": self.amount_cents,
            "amount": cents_to_amount(self.amount_cents),
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "consumer": self.consumer.to_dict(include_user=True) if self.consumer else None,
        }


class NfcCard(db.Model):
    """Consumer payment card (listed in the admin portal)."""
    __tablename__ = "nfc_cards"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    consumer_id = db.Column(db.Integer, db.ForeignKey("consumer_profiles.id"), nullable=False, index=True)
    uid = db.Column(db.String(64), nullable=False, unique=True)
    status = db.Column(db.String(16), nullable=False, default="active")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    consumer = db.relationship("ConsumerProfile", backref=db.backref("nfc_cards", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "consumer_id": self.consumer_id,
            "uid": self.uid,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "consumer": self.consumer.to_dict(include_user=True) if self.consumer else None,
        }
