"""
Credit Request Service

Lifecycle: pending -> approved | rejected. Both outcomes are terminal; a
reviewed request cannot be reviewed again.

Approval raises the retailer's credit limit (profile) and the limit and
available credit of its credit account by the requested amount. A retailer
without a credit account gets one on its first approval.

A wholesaler sees, and may review, requests from retailers that have
placed at least one order with it.
"""

from __future__ import annotations

import logging

from sqlalchemy import select

from ..extensions import db
from ..models import CreditRequest, Order, RetailerCredit, RetailerProfile
from ..time_utils import utcnow, to_utc_z
from ..validation import NotFoundError
from .concurrency import lock_for_update, run_with_retry


logger = logging.getLogger(__name__)


class CreditRequestError(Exception):
    """Raised for credit request workflow errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class CreditRequestNotFoundError(NotFoundError):
    pass


def _customer_retailer_ids(wholesaler_id: int):
    return select(Order.retailer_id).where(Order.wholesaler_id == wholesaler_id).distinct()


def submit_credit_request(*, retailer_id: int, amount_cents: int, reason: str | None = None) -> CreditRequest:
    if amount_cents <= 0:
        raise CreditRequestError("Requested amount must be greater than zero")

    request = CreditRequest(
        retailer_id=retailer_id,
        amount_cents=amount_cents,
        reason=reason,
        status="pending",
    )
    db.session.add(request)
    db.session.commit()
    logger.info("Retailer %s requested %s cents of credit (request %s)", retailer_id, amount_cents, request.id)
    return request


def _load_pending(request_id: int, wholesaler_id: int) -> CreditRequest:
    request = lock_for_update(
        db.session.query(CreditRequest).filter(
            CreditRequest.id == request_id,
            CreditRequest.retailer_id.in_(_customer_retailer_ids(wholesaler_id)),
        )
    ).first()
    if not request:
        raise CreditRequestNotFoundError("Credit request not found")
    if request.status != "pending":
        raise CreditRequestError(
            f"Credit request already {request.status}",
            details={"status": request.status},
        )
    return request


def approve_credit_request(*, request_id: int, wholesaler_id: int, reviewer_user_id: int | None = None) -> CreditRequest:
    """
    Approve a pending request and extend the retailer's credit by its amount.

    An existing credit account has its limit and available credit raised by
    the amount. A retailer without an account gets one opened at the raised
    profile limit, all of it available, not just the approved amount.
    """
    def _op():
        request = _load_pending(request_id, wholesaler_id)

        retailer = lock_for_update(
            db.session.query(RetailerProfile).filter_by(id=request.retailer_id)
        ).first()
        retailer.credit_limit_cents += request.amount_cents

        credit = lock_for_update(
            db.session.query(RetailerCredit).filter_by(retailer_id=retailer.id)
        ).first()
        if credit is None:
            credit = RetailerCredit(
                retailer_id=retailer.id,
                credit_limit_cents=retailer.credit_limit_cents,
                used_credit_cents=0,
                available_credit_cents=retailer.credit_limit_cents,
            )
            db.session.add(credit)
        else:
            credit.credit_limit_cents += request.amount_cents
            credit.available_credit_cents += request.amount_cents

        request.status = "approved"
        request.reviewed_at = utcnow()
        request.reviewed_by_user_id = reviewer_user_id

        db.session.commit()
        return request

    request = run_with_retry(_op)
    logger.info(
        "Credit request %s approved: retailer %s limit +%s cents",
        request.id, request.retailer_id, request.amount_cents,
    )
    return request


def reject_credit_request(
    *,
    request_id: int,
    wholesaler_id: int,
    reason: str | None = None,
    reviewer_user_id: int | None = None,
) -> CreditRequest:
    def _op():
        request = _load_pending(request_id, wholesaler_id)
        request.status = "rejected"
        request.reviewed_at = utcnow()
        request.reviewed_by_user_id = reviewer_user_id
        request.review_notes = reason
        db.session.commit()
        return request

    request = run_with_retry(_op)
    logger.info("Credit request %s rejected", request.id)
    return request


def list_retailer_requests(retailer_id: int) -> list[CreditRequest]:
    return (
        db.session.query(CreditRequest)
        .filter_by(retailer_id=retailer_id)
        .order_by(CreditRequest.created_at.desc(), CreditRequest.id.desc())
        .all()
    )


def credit_overview(wholesaler_id: int) -> dict:
    """
    Requests from the wholesaler's retailers, shaped for the credit page,
    plus totals over those retailers' credit accounts.
    """
    retailer_ids = _customer_retailer_ids(wholesaler_id)

    requests = (
        db.session.query(CreditRequest)
        .filter(CreditRequest.retailer_id.in_(retailer_ids))
        .order_by(CreditRequest.created_at.desc(), CreditRequest.id.desc())
        .all()
    )
    credits = db.session.query(RetailerCredit).filter(RetailerCredit.retailer_id.in_(retailer_ids)).all()

    rows = []
    for req in requests:
        retailer = req.retailer
        credit = retailer.credit
        rows.append({
            "id": req.id,
            "retailer_id": req.retailer_id,
            "retailer_name": (retailer.user.name if retailer.user else None) or "Unknown",
            "retailer_shop": retailer.shop_name,
            "retailer_phone": (retailer.user.phone if retailer.user else None) or "",
            "current_credit_cents": credit.used_credit_cents if credit else 0,
            "credit_limit_cents": credit.credit_limit_cents if credit else 0,
            "requested_amount_cents": req.amount_cents,
            "reason": req.reason or "",
            "status": req.status,
            "created_at": to_utc_z(req.created_at),
            "processed_at": to_utc_z(req.reviewed_at),
            "rejection_reason": req.review_notes,
        })

    return {
        "requests": rows,
        "stats": {
            "total_credit_extended_cents": sum(c.credit_limit_cents for c in credits),
            "total_credit_used_cents": sum(c.used_credit_cents for c in credits),
            "credit_available_cents": sum(c.available_credit_cents for c in credits),
        },
    }
