from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from flask import request


# Maximum price: 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999

# Largest value a 64-bit INTEGER column holds; ids above it cannot exist
MAX_INT = 2**63 - 1

# Ceiling for stock levels and cart quantities, so price x quantity sums
# stay far inside MAX_INT
MAX_QUANTITY = 1_000_000

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class ServiceError(Exception):
    """Base for errors that map onto an HTTP status and a human-readable message."""
    status_code = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"error": self.message}
        body.update(self.details)
        return body


class ValidationError(ServiceError):
    """400-level input problem."""
    status_code = 400


class UnauthorizedError(ServiceError):
    """401-level bad credential."""
    status_code = 401


class ForbiddenError(ServiceError):
    """403-level insufficient role or inactive account."""
    status_code = 403


class NotFoundError(ServiceError):
    """404-level missing user, store, product or reset request."""
    status_code = 404


class ConflictError(ServiceError):
    """409-level business rule conflict (e.g., duplicate email, insufficient stock)."""
    status_code = 409


class StorageFailure(ServiceError):
    """500-level backend error; the message never carries internal detail."""
    status_code = 500


def request_payload() -> dict:
    """Form fields or a JSON body, whichever the client sent."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def require_text(payload: dict, key: str, *, label: str | None = None, min_length: int = 1) -> str:
    value = payload.get(key)
    label = label or key
    if value is None or not str(value).strip():
        raise ValidationError(f"{label} is required")
    value = str(value).strip()
    if len(value) < min_length:
        raise ValidationError(f"{label} must be at least {min_length} characters")
    return value


def validate_email(value: Any) -> str:
    if value is None or not str(value).strip():
        raise ValidationError("Email is required")
    email = str(value).strip().lower()
    if not EMAIL_RE.match(email):
        raise ValidationError("Invalid email")
    return email


def parse_int(value: Any, *, label: str, minimum: int | None = None, maximum: int = MAX_INT) -> int:
    """
    Strict integer coercion: rejects bools, fractional floats, decimals in
    strings and scientific notation, and anything above `maximum`.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be an integer")
    if isinstance(value, int):
        result = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{label} must be an integer, not a decimal")
        result = int(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{label} must be an integer")
        if "e" in stripped.lower() or "." in stripped:
            raise ValidationError(f"{label} must be a plain integer")
        try:
            result = int(stripped)
        except ValueError:
            raise ValidationError(f"{label} must be an integer")
    else:
        raise ValidationError(f"{label} must be an integer")

    if minimum is not None and result < minimum:
        raise ValidationError(f"{label} must be >= {minimum}")
    if result > maximum:
        raise ValidationError(f"{label} must be <= {maximum}")
    if result < -MAX_INT - 1:
        raise ValidationError(f"{label} is out of range")
    return result


def parse_price_cents(value: Any, *, label: str = "price") -> int:
    """Parse a decimal price ("10.5", 10.5, Decimal) into integer cents."""
    if value is None or isinstance(value, bool) or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{label} is required")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{label} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{label} must be a number")

    cents = int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if cents <= 0:
        raise ValidationError(f"{label} must be greater than 0")
    if cents > MAX_PRICE_CENTS:
        raise ValidationError(f"{label} cannot exceed {format_cents(MAX_PRICE_CENTS)}")
    return cents


def format_cents(cents: int | None) -> str | None:
    if cents is None:
        return None
    return str((Decimal(cents) / 100).quantize(Decimal("0.01")))
