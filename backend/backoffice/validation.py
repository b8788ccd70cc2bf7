from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any


# Maximum amount: 9,999,999,999.99 (999,999,999,999 cents)
# This prevents database overflow issues and nonsensical amounts
MAX_AMOUNT_CENTS = 999_999_999_999


class ValidationError(ValueError):
    """400-level input problem."""


class NotFoundError(LookupError):
    """404-level missing resource."""


class ForbiddenError(PermissionError):
    """403-level access to another party's resource."""


def parse_money(value: Any, field: str, *, required: bool = True, default: int | None = None) -> int | None:
    """
    Convert a major-unit amount from a request body (e.g. 1500.5) to cents.

    Accepts ints, floats and numeric strings. Rounds half-up to the cent.
    Negative amounts are rejected.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationError(f"{field} is required")
        return default

    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")

    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number")

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a number")
    if amount < 0:
        raise ValidationError(f"{field} must be >= 0")

    if amount * 100 > MAX_AMOUNT_CENTS:
        raise ValidationError(f"{field} exceeds maximum allowed amount")
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def parse_int(
    value: Any,
    field: str,
    *,
    required: bool = True,
    default: int | None = None,
    minimum: int | None = None,
) -> int | None:
    """Strict integer parsing - rejects floats, decimals and scientific notation."""
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationError(f"{field} is required")
        return default

    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")

    if isinstance(value, int):
        result = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{field} must be an integer, not a decimal")
        result = int(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if 'e' in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            result = int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    else:
        raise ValidationError(f"{field} must be an integer")

    if minimum is not None and result < minimum:
        raise ValidationError(f"{field} must be >= {minimum}")
    return result


def parse_pagination(args, *, default_limit: int = 50, max_limit: int = 200) -> tuple[int, int]:
    limit = parse_int(args.get("limit"), "limit", required=False, default=default_limit, minimum=1)
    offset = parse_int(args.get("offset"), "offset", required=False, default=0, minimum=0)
    return min(limit, max_limit), offset


def clean_str(value: Any, field: str, *, required: bool = False, max_length: int = 255) -> str | None:
    if value is None:
        if required:
            raise ValidationError(f"{field} is required")
        return None
    text = str(value).strip()
    if not text:
        if required:
            raise ValidationError(f"{field} cannot be blank")
        return None
    if len(text) > max_length:
        raise ValidationError(f"{field} exceeds max length {max_length}")
    return text


def cents_to_amount(cents: int | None) -> float | None:
    """Major-unit representation for JSON responses."""
    if cents is None:
        return None
    return float(Decimal(cents) / 100)
