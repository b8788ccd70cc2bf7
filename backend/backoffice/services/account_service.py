# Overview: Service-layer operations for accounts and role profiles.

"""
Account Service

Creates users together with their role profile (retailer shop, wholesaler
company, consumer) and resolves the profile behind an authenticated user.
Admins create retailer and wholesaler accounts; there is no
self-registration.
"""

import logging

from flask import current_app

from ..extensions import db
from ..models import User, RetailerProfile, RetailerCredit, WholesalerProfile, ConsumerProfile
from ..models.auth import ROLES
from ..validation import NotFoundError
from .auth_service import hash_password


logger = logging.getLogger(__name__)


class AccountError(Exception):
    """Raised when an account cannot be created."""
    pass


class ProfileNotFoundError(NotFoundError):
    """Raised when the authenticated user has no profile for the portal."""
    pass


def _create_user(
    *,
    email: str,
    password: str,
    role: str,
    phone: str | None = None,
    name: str | None = None,
) -> User:
    if role not in ROLES:
        raise AccountError(f"Unknown role: {role}")
    if not email:
        raise AccountError("email is required")

    email = email.strip().lower()
    phone = phone.strip() if phone else None

    clauses = [db.func.lower(User.email) == email]
    if phone:
        clauses.append(User.phone == phone)
    if db.session.query(User).filter(db.or_(*clauses)).first():
        raise AccountError("User already exists")

    # Hash password with bcrypt (validates strength automatically)
    password_hash = hash_password(password, rounds=current_app.config.get("BCRYPT_ROUNDS", 12))

    user = User(email=email, phone=phone, name=name, password_hash=password_hash, role=role)
    db.session.add(user)
    db.session.flush()
    return user


def create_retailer(
    *,
    email: str,
    password: str,
    business_name: str,
    phone: str | None = None,
    address: str | None = None,
    credit_limit_cents: int = 0,
) -> RetailerProfile:
    """
    Create a retailer user, its shop profile and its credit account.

    The initial credit limit is fully available.

    Raises:
        AccountError: duplicate email/phone or missing shop name
        PasswordValidationError: weak password
    """
    if not business_name:
        raise AccountError("business_name is required")

    try:
        user = _create_user(email=email, password=password, role="retailer", phone=phone, name=business_name)
        profile = RetailerProfile(
            user_id=user.id,
            shop_name=business_name,
            address=address,
            credit_limit_cents=credit_limit_cents,
        )
        db.session.add(profile)
        db.session.flush()

        db.session.add(RetailerCredit(
            retailer_id=profile.id,
            credit_limit_cents=credit_limit_cents,
            used_credit_cents=0,
            available_credit_cents=credit_limit_cents,
        ))
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Created retailer profile %s for user %s", profile.id, user.id)
    return profile


def create_wholesaler(
    *,
    email: str,
    password: str,
    company_name: str,
    phone: str | None = None,
    address: str | None = None,
) -> WholesalerProfile:
    """Create a wholesaler user and its company profile."""
    if not company_name:
        raise AccountError("company_name is required")

    try:
        user = _create_user(email=email, password=password, role="wholesaler", phone=phone, name=company_name)
        profile = WholesalerProfile(user_id=user.id, company_name=company_name, address=address)
        db.session.add(profile)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Created wholesaler profile %s for user %s", profile.id, user.id)
    return profile


def create_consumer(
    *,
    email: str,
    password: str,
    full_name: str | None = None,
    phone: str | None = None,
) -> ConsumerProfile:
    try:
        user = _create_user(email=email, password=password, role="consumer", phone=phone, name=full_name)
        profile = ConsumerProfile(user_id=user.id, full_name=full_name)
        db.session.add(profile)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return profile


def create_admin(*, email: str, password: str, name: str | None = None, phone: str | None = None) -> User:
    try:
        user = _create_user(email=email, password=password, role="admin", phone=phone, name=name)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return user


def get_retailer_profile(user_id: int) -> RetailerProfile:
    profile = db.session.query(RetailerProfile).filter_by(user_id=user_id).first()
    if not profile:
        raise ProfileNotFoundError("Retailer profile not found")
    return profile


def get_wholesaler_profile(user_id: int) -> WholesalerProfile:
    profile = db.session.query(WholesalerProfile).filter_by(user_id=user_id).first()
    if not profile:
        raise ProfileNotFoundError("Wholesaler profile not found")
    return profile


def find_consumer_by_phone(phone: str | None) -> ConsumerProfile | None:
    if not phone:
        return None
    return (
        db.session.query(ConsumerProfile)
        .join(User, User.id == ConsumerProfile.user_id)
        .filter(User.phone == phone.strip())
        .first()
    )
