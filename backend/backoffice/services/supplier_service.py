# Overview: Service-layer operations for suppliers and supplier payments.

"""
Supplier Service

Suppliers are shared reference data; payments made to them are shown to
wholesalers as "supplier orders" on the wallet and credit page.
"""

from __future__ import annotations

from datetime import datetime

from ..extensions import db
from ..models import Supplier, SupplierPayment
from ..time_utils import to_utc_z


class SupplierValidationError(Exception):
    """Raised when supplier data fails validation."""
    pass


# Payment statuses as shown on the supplier order list
PAYMENT_STATUS_LABELS = {"completed": "paid", "pending": "pending", "partial": "partial"}


def list_suppliers() -> list[Supplier]:
    return db.session.query(Supplier).order_by(Supplier.name.asc()).all()


def create_supplier(
    *,
    name: str,
    contact_person: str | None = None,
    email: str | None = None,
    phone: str | None = None,
    address: str | None = None,
    status: str = "active",
) -> Supplier:
    if not name or not name.strip():
        raise SupplierValidationError("Supplier name is required")

    supplier = Supplier(
        name=name.strip(),
        contact_person=contact_person,
        email=email,
        phone=phone,
        address=address,
        status=status,
    )
    db.session.add(supplier)
    db.session.commit()
    return supplier


def record_payment(
    *,
    supplier_id: int,
    amount_cents: int,
    status: str = "pending",
    reference: str | None = None,
    payment_date: datetime | None = None,
    notes: str | None = None,
) -> SupplierPayment:
    if status not in PAYMENT_STATUS_LABELS:
        raise SupplierValidationError(f"Invalid payment status: {status}")
    if amount_cents <= 0:
        raise SupplierValidationError("Payment amount must be greater than zero")
    if not db.session.query(Supplier).filter_by(id=supplier_id).first():
        raise SupplierValidationError("Supplier not found")

    payment = SupplierPayment(
        supplier_id=supplier_id,
        amount_cents=amount_cents,
        status=status,
        reference=reference,
        notes=notes,
    )
    if payment_date is not None:
        payment.payment_date = payment_date

    db.session.add(payment)
    db.session.commit()
    return payment


def supplier_orders() -> dict:
    """Supplier payments, newest first, with total and outstanding amounts."""
    payments = (
        db.session.query(SupplierPayment)
        .order_by(SupplierPayment.payment_date.desc(), SupplierPayment.id.desc())
        .all()
    )

    orders = [
        {
            "id": payment.id,
            "supplier_name": payment.supplier.name,
            "invoice_number": payment.reference or f"PAY-{payment.id:06d}",
            "total_amount_cents": payment.amount_cents,
            "payment_status": PAYMENT_STATUS_LABELS[payment.status],
            "created_at": to_utc_z(payment.payment_date),
            "paid_at": to_utc_z(payment.payment_date) if payment.status == "completed" else None,
        }
        for payment in payments
    ]

    return {
        "orders": orders,
        "total": len(orders),
        "total_amount_cents": sum(p.amount_cents for p in payments),
        "pending_amount_cents": sum(p.amount_cents for p in payments if p.status == "pending"),
    }
