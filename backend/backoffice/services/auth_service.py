# Overview: Service-layer operations for auth; password hashing and credential checks.

"""
Authentication Service

Uses bcrypt for password hashing and validates password strength when an
account is created. Users log in with their email address or phone number.
"""

import logging
import re

import bcrypt

from ..extensions import db
from ..models import User
from ..time_utils import utcnow


logger = logging.getLogger(__name__)


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)

    Raises PasswordValidationError if requirements not met.
    """
    if not password or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str, *, rounds: int = 12) -> str:
    """
    Hash password using bcrypt (cost factor 12 by default).

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt comparison. Malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def find_user(identifier: str) -> User | None:
    """Look up an account by email (case-insensitive) or phone."""
    identifier = (identifier or "").strip()
    if not identifier:
        return None
    return db.session.query(User).filter(
        db.or_(db.func.lower(User.email) == identifier.lower(), User.phone == identifier)
    ).first()


def authenticate(identifier: str, password: str) -> User | None:
    """
    Authenticate user with email/phone and password.

    Returns User if credentials valid and the account is active, None
    otherwise. Updates last_login_at on success.
    """
    user = find_user(identifier)

    if not user or not user.is_active:
        return None

    if not verify_password(password, user.password_hash):
        logger.info("Failed login for user_id=%s", user.id)
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user
