# Overview: Payload validation against model column metadata plus per-entity business rules.

from __future__ import annotations
from datetime import datetime
from billing.time_utils import parse_iso_datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, Numeric, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError
from .money import MoneyError, to_money, to_rate


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - rate_fields: Numeric columns holding 0-100 percentages rather than amounts
    """
    writable_fields: set[str]
    required_on_create: set[str] = frozenset()
    rate_fields: set[str] = frozenset()


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any, policy: ModelValidationPolicy):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{col.key} must be an integer")
            if 'e' in stripped.lower():
                raise ValidationError(f"{col.key} must be a plain integer (scientific notation not allowed)")
            if '.' in stripped:
                raise ValidationError(f"{col.key} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        if isinstance(value, float):
            raise ValidationError(f"{col.key} must be an integer, not a decimal")
        raise ValidationError(f"{col.key} must be an integer")

    # Money and percentages - exact decimals only
    if isinstance(coltype, Numeric):
        try:
            if col.key in policy.rate_fields:
                return to_rate(value, col.key)
            return to_money(value, col.key)
        except MoneyError as exc:
            raise ValidationError(str(exc))

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in {"true", "false", "1", "0"}:
            return value.strip().lower() in {"true", "1"}
        raise ValidationError(f"{col.key} must be a boolean")

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # Default: leave as-is
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

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if payload.get(f) in (None, ""))
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

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw, policy)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
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
    if "selling_price" in patch and patch["selling_price"] is not None:
        if patch["selling_price"] <= 0:
            raise ValidationError("selling_price must be > 0")

    if "cost_price" in patch and patch["cost_price"] is not None:
        if patch["cost_price"] < 0:
            raise ValidationError("cost_price must be >= 0")

    if "low_stock_alert" in patch and patch["low_stock_alert"] is not None:
        if patch["low_stock_alert"] < 0:
            raise ValidationError("low_stock_alert must be >= 0")


def enforce_rules_shop(patch: dict) -> None:
    prefix = patch.get("invoice_prefix")
    if prefix is not None and not prefix:
        raise ValidationError("invoice_prefix cannot be blank")
    if prefix and any(ch.isspace() for ch in prefix):
        raise ValidationError("invoice_prefix cannot contain whitespace")

    currency = patch.get("currency")
    if currency is not None and (len(currency) != 3 or not currency.isalpha()):
        raise ValidationError("currency must be a 3-letter code")
    if currency:
        patch["currency"] = currency.upper()


def parse_page_args(page, size, *, default_size: int, max_size: int) -> tuple[int, int]:
    """Normalize 0-indexed page/size query args."""
    try:
        page = int(page) if page is not None else 0
        size = int(size) if size is not None else default_size
    except (TypeError, ValueError):
        raise ValidationError("page and size must be integers")
    if page < 0:
        raise ValidationError("page must be >= 0")
    if size < 1:
        raise ValidationError("size must be >= 1")
    return page, min(size, max_size)
