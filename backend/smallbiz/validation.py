from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from smallbiz.time_utils import parse_iso_date


# Maximum price: $9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class ValidationError(ValueError):
    """422-level input problem, optionally with per-field messages."""

    def __init__(self, message: str, errors: dict[str, list[str]] | None = None):
        super().__init__(message)
        self.errors = errors or {}

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, {field: [message]})

    def to_dict(self) -> dict:
        payload: dict = {"error": str(self)}
        if self.errors:
            payload["errors"] = self.errors
        return payload


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate SKU)."""


class FieldErrors:
    """Collects per-field messages and raises them together."""

    def __init__(self) -> None:
        self.errors: dict[str, list[str]] = {}

    def add(self, field: str, message: str) -> None:
        self.errors.setdefault(field, []).append(message)

    def __bool__(self) -> bool:
        return bool(self.errors)

    def raise_if_any(self, message: str = "The given data was invalid.") -> None:
        if self.errors:
            raise ValidationError(message, dict(self.errors))


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Which columns a client may write, and which must be present on create.

    Anything outside writable_fields is rejected, which keeps tenant_id,
    deleted_at and similar server-owned columns out of reach of payloads.
    """
    writable_fields: set[str]
    required_on_create: set[str] = frozenset()


_TRUE_WORDS = {"true", "1", "yes"}
_FALSE_WORDS = {"false", "0", "no"}
_INT_RE = re.compile(r"^-?\d+$")


class _CoercionError(Exception):
    pass


def _to_int(key: str, value: Any) -> int:
    # bool is an int subclass; JSON true/false is never a quantity
    if isinstance(value, bool):
        raise _CoercionError(f"{key} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        raise _CoercionError(f"{key} must be an integer, not a decimal")
    if isinstance(value, str) and _INT_RE.match(value.strip()):
        return int(value.strip())
    raise _CoercionError(f"{key} must be an integer")


def _to_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    word = str(value).strip().lower() if isinstance(value, (str, int)) else None
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise _CoercionError(f"{key} must be a boolean")


def _to_text(key: str, value: Any, column) -> str:
    if isinstance(value, (dict, list, bool)):
        raise _CoercionError(f"{key} must be a string")
    text = str(value).strip()
    if text == "" and not column.nullable:
        raise _CoercionError(f"{key} cannot be blank")
    length = getattr(column.type, "length", None)
    if length and len(text) > length:
        raise _CoercionError(f"{key} exceeds max length {length}")
    return text


def _coerce(column, value: Any):
    if isinstance(column.type, Integer):
        return _to_int(column.key, value)
    if isinstance(column.type, Boolean):
        return _to_bool(column.key, value)
    if isinstance(column.type, (String, Text)):
        return _to_text(column.key, value, column)
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Clean a JSON body against a model's columns and a write policy.

    Column metadata drives typing, nullability and String(n) limits. With
    partial=False every required_on_create field must be present. Every
    problem found is reported at once in ValidationError.errors; the return
    value holds only writable, coerced fields.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    errors = FieldErrors()
    columns = {c.key: c for c in model.__mapper__.columns}

    if not partial:
        for name in sorted(set(policy.required_on_create) - set(payload)):
            errors.add(name, f"{name} is required")

    patch: dict = {}
    for key, raw in payload.items():
        column = columns.get(key)
        if column is None or key not in policy.writable_fields:
            errors.add(key, f"Field not allowed: {key}")
        elif raw is None:
            if column.nullable:
                patch[key] = None
            else:
                errors.add(key, f"{key} cannot be null")
        else:
            try:
                patch[key] = _coerce(column, raw)
            except _CoercionError as exc:
                errors.add(key, str(exc))

    errors.raise_if_any()
    return patch


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    errors = FieldErrors()

    if "price_cents" in patch and patch["price_cents"] is not None:
        price = patch["price_cents"]
        if price < 0:
            errors.add("price_cents", "price_cents must be >= 0")
        elif price > MAX_PRICE_CENTS:
            errors.add("price_cents", f"price_cents cannot exceed {MAX_PRICE_CENTS} (${MAX_PRICE_CENTS / 100:,.2f})")

    for field in ("stock_quantity", "low_stock_threshold"):
        if field in patch and patch[field] is not None and patch[field] < 0:
            errors.add(field, f"{field} must be >= 0")

    errors.raise_if_any()


def enforce_rules_customer(patch: dict) -> None:
    email = patch.get("email")
    if email and not EMAIL_RE.match(email):
        raise ValidationError.for_field("email", "email must be a valid email address")


def parse_date_param(field: str, value: str | None, default: date | None = None) -> date | None:
    """Parse a YYYY-MM-DD query/body parameter, reporting failures against `field`."""
    if value is None or str(value).strip() == "":
        return default
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError.for_field(field, f"{field} must be a date in YYYY-MM-DD format")


def parse_positive_int(value: Any) -> int | None:
    """Return value as an int >= 1, or None if it is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 1 else None
    if isinstance(value, str) and value.strip().isdigit():
        parsed = int(value.strip())
        return parsed if parsed >= 1 else None
    return None
