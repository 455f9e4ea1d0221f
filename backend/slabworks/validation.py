from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any


# Maximum price: $9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999

PHONE_RE = re.compile(r"^\d{3}-\d{3}-\d{4}$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class ValidationError(ValueError):
    """
    400-level input problem.

    errors maps a dotted field path (e.g. "rooms.0.slabs") to a message so
    the caller can report problems field by field.
    """
    def __init__(self, message: str, errors: dict[str, str] | None = None):
        super().__init__(message)
        self.errors = errors or {}


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., unit already reserved)."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class FieldErrors:
    """Collects field-level problems while a payload is parsed."""

    def __init__(self):
        self.errors: dict[str, str] = {}

    def add(self, field: str, message: str) -> None:
        # First problem per field wins
        self.errors.setdefault(field, message)

    def raise_if_any(self, message: str = "Invalid submission") -> None:
        if self.errors:
            raise ValidationError(message, errors=dict(self.errors))


def to_int(value: Any, field: str, errors: FieldErrors, *, minimum: int | None = None) -> int | None:
    """Strict integer coercion: rejects floats, decimals and scientific notation."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        errors.add(field, f"{field} must be an integer")
        return None
    if isinstance(value, int):
        result = value
    elif isinstance(value, str):
        stripped = value.strip()
        if "e" in stripped.lower() or "." in stripped:
            errors.add(field, f"{field} must be a plain integer")
            return None
        try:
            result = int(stripped)
        except ValueError:
            errors.add(field, f"{field} must be an integer")
            return None
    else:
        errors.add(field, f"{field} must be an integer")
        return None

    if minimum is not None and result < minimum:
        errors.add(field, f"{field} must be >= {minimum}")
        return None
    return result


def to_cents(value: Any, field: str, errors: FieldErrors) -> int | None:
    cents = to_int(value, field, errors, minimum=0)
    if cents is not None and cents > MAX_PRICE_CENTS:
        errors.add(field, f"{field} cannot exceed {MAX_PRICE_CENTS} (${MAX_PRICE_CENTS / 100:,.2f})")
        return None
    return cents


def to_decimal(value: Any, field: str, errors: FieldErrors) -> Decimal | None:
    """Non-negative decimal with two places (square footage)."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        errors.add(field, f"{field} must be a number")
        return None
    try:
        result = Decimal(str(value).strip())
    except InvalidOperation:
        errors.add(field, f"{field} must be a number")
        return None
    if not result.is_finite() or result < 0:
        errors.add(field, f"{field} must be a non-negative number")
        return None
    return result.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def to_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def to_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)
