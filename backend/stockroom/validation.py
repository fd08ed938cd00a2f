# Overview: Payload validation helpers and the error taxonomy shared by services and routes.

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from sqlalchemy import Boolean, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .models import MOVEMENT_TYPES


# Maximum price: 9,999,999,999.99 fits Numeric(12, 2)
MAX_PRICE = Decimal("9999999999.99")
CENT = Decimal("0.01")

# Stock quantities are 32-bit INTEGER columns
MAX_QUANTITY = 2_147_483_647
# Widest integer any supported driver binds
MAX_INTEGER = 2**63 - 1


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level uniqueness conflict (duplicate SKU, category name, transaction number)."""


class NotFoundError(LookupError):
    """404-level: a referenced id does not exist."""


class InvalidStateError(ValueError):
    """400-level: valid input that the current state cannot accept (insufficient stock)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - required_not_null: fields that may not be null even where the column allows it
    """
    writable_fields: frozenset[str]
    required_on_create: frozenset[str] = frozenset()
    required_not_null: frozenset[str] = frozenset()


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _in_range(key: str, value: int) -> int:
    if abs(value) > MAX_INTEGER:
        raise ValidationError(f"{key} is out of range")
    return value


def coerce_integer(key: str, value: Any) -> int:
    """Strict integer coercion: ints and digit strings only; no floats, bools or exponents."""
    if isinstance(value, int) and not isinstance(value, bool):
        return _in_range(key, value)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            parsed = int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
        return _in_range(key, parsed)
    if isinstance(value, float):
        # 5.0 from a JS client is still a whole number
        if value.is_integer():
            return _in_range(key, int(value))
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def coerce_decimal(key: str, value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a number")
    if isinstance(value, (int, float, Decimal)):
        raw = str(value)
    elif isinstance(value, str) and value.strip():
        raw = value.strip()
    else:
        raise ValidationError(f"{key} must be a number")
    try:
        amount = Decimal(raw)
    except InvalidOperation:
        raise ValidationError(f"{key} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{key} must be a finite number")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return coerce_integer(col.key, value)

    if isinstance(coltype, Numeric):
        return coerce_decimal(col.key, value)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
            return value.strip().lower() == "true"
        raise ValidationError(f"{col.key} must be a boolean")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{col.key} must be a string")
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(
            f for f in policy.required_on_create
            if payload.get(f) is None or (isinstance(payload.get(f), str) and not payload[f].strip())
        )
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        # NULL handling; blank optional strings are treated as null
        if raw is None or (isinstance(raw, str) and raw.strip() == "" and col.nullable):
            if not col.nullable or k in policy.required_not_null:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    if "price" in patch and patch["price"] is not None:
        if patch["price"] < 0:
            raise ValidationError("price must be >= 0")
        if patch["price"] > MAX_PRICE:
            raise ValidationError(f"price cannot exceed {MAX_PRICE}")

    for field in ("quantity", "min_stock_level"):
        if field in patch and patch[field] is not None:
            if patch[field] < 0:
                raise ValidationError(f"{field} must be >= 0")
            if patch[field] > MAX_QUANTITY:
                raise ValidationError(f"{field} cannot exceed {MAX_QUANTITY}")

    # Ids start at 1; 0 means uncategorized
    if patch.get("category_id") == 0:
        patch["category_id"] = None


def enforce_rules_sale(patch: dict) -> None:
    # SALE requires quantity >= 1; price is snapshotted from the product, never accepted
    if patch.get("quantity") is None or patch["quantity"] < 1:
        raise ValidationError("quantity must be >= 1")
    if patch["quantity"] > MAX_QUANTITY:
        raise ValidationError(f"quantity cannot exceed {MAX_QUANTITY}")


def enforce_rules_movement(patch: dict) -> None:
    if patch.get("movement_type") not in MOVEMENT_TYPES:
        raise ValidationError("Invalid movement type")

    if patch.get("quantity") is None or not 0 <= patch["quantity"] <= MAX_QUANTITY:
        raise ValidationError("Invalid quantity")


def parse_limit(raw: Any, *, default: int, maximum: int) -> int:
    """Query-string limit: missing/garbage falls back to default, values are clamped to [1, maximum]."""
    if raw is None or raw == "":
        return default
    try:
        limit = int(raw)
    except (TypeError, ValueError):
        return default
    if limit < 1:
        return default
    return min(limit, maximum)
