from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from ..validation import cents_to_amount


class CreditRequest(db.Model):
    """
    Retailer request for additional credit.

    Lifecycle: pending -> approved | rejected. Both outcomes are terminal.
    """
    __tablename__ = "credit_requests"
    __table_args__ = (
        db.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="ck_credit_requests_status",
        ),
        db.CheckConstraint("amount_cents > 0", name="ck_credit_requests_amount_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    retailer_id = db.Column(db.Integer, db.ForeignKey("retailer_profiles.id"), nullable=False, index=True)

    amount_cents = db.Column(db.BigInteger, nullable=False)
    reason = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(16), nullable=False, default="pending", index=True)

    reviewed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    reviewed_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    review_notes = db.Column(db.Text, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    retailer = db.relationship("RetailerProfile", backref=db.backref("credit_requests", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "retailer_id": self.retailer_id,
            "amount_cents": self.amount_cents,
            "amount": cents_to_amount(self.amount_cents),
            "reason": self.reason,
            "status": self.status,
            "reviewed_at": to_utc_z(self.reviewed_at) if self.reviewed_at else None,
            "reviewed_by_user_id": self.reviewed_by_user_id,
            "review_notes": self.review_notes,
            "created_at": to_utc_z(self.created_at),
        }
