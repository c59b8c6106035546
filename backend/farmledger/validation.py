from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Boolean, Date, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .time_utils import parse_iso_date

# Keys clients commonly echo back from a previously fetched record. They are
# dropped rather than rejected; none of them is ever writable.
READ_ONLY_FIELDS = frozenset({"id", "farm_id", "total_amount", "created_at", "updated_at"})


class ValidationError(ValueError):
    """422-level input problem, reported as {field: [messages]}."""

    def __init__(self, errors: dict[str, list[str]]):
        super().__init__("Validation failed")
        self.errors = errors

    @classmethod
    def single(cls, field_name: str, message: str) -> "ValidationError":
        return cls({field_name: [message]})

    def __str__(self) -> str:
        parts = [f"{k}: {'; '.join(v)}" for k, v in self.errors.items()]
        return "Validation failed (" + ", ".join(parts) + ")"


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., delete blocked by dependents)."""


class NotFoundError(LookupError):
    """404-level missing record where no tenant check applies."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - choices: enumerated fields and their allowed values
    - non_negative: numeric fields that must be >= 0
    - ignored_fields: keys silently dropped from the payload
    """
    writable_fields: frozenset[str]
    required_on_create: frozenset[str] = frozenset()
    choices: dict[str, tuple[str, ...]] = field(default_factory=dict)
    non_negative: frozenset[str] = frozenset()
    ignored_fields: frozenset[str] = READ_ONLY_FIELDS


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    """Coerce a JSON value to the column's Python type. Raises ValueError with a message."""
    coltype = col.type

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if stripped.lstrip("-").isdigit():
                return int(stripped)
        raise ValueError("must be an integer")

    # Fixed-point decimals; floats go through str() so 0.1 stays 0.1
    if isinstance(coltype, Numeric):
        if isinstance(value, bool):
            raise ValueError("must be a number")
        if isinstance(value, (int, float, Decimal)):
            raw = str(value)
        elif isinstance(value, str) and value.strip():
            raw = value.strip()
        else:
            raise ValueError("must be a number")
        try:
            number = Decimal(raw)
        except InvalidOperation:
            raise ValueError("must be a number")
        if not number.is_finite():
            raise ValueError("must be a finite number")
        scale = coltype.scale
        if scale is not None and number.as_tuple().exponent < -scale:
            raise ValueError(f"must have at most {scale} decimal places")
        if coltype.precision is not None and scale is not None:
            max_int_digits = coltype.precision - scale
            if abs(number) >= Decimal(10) ** max_int_digits:
                raise ValueError("is too large")
        return number

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValueError("must be true or false")

    # Calendar dates (accept ISO-8601 dates or datetimes)
    if isinstance(coltype, Date) and not isinstance(coltype, DateTime):
        try:
            parsed = parse_iso_date(value)
        except (TypeError, ValueError):
            raise ValueError("must be a valid date (YYYY-MM-DD)")
        if parsed is None:
            raise ValueError("must be a valid date (YYYY-MM-DD)")
        return parsed

    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        raise ValueError("must be a datetime")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValueError("must be a string")
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
    - a policy allowlist (writable_fields) and its enum / range rules
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    Every problem is collected; a single ValidationError carries all of them.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError.single("payload", "Invalid JSON payload")

    errors: dict[str, list[str]] = {}
    cols = _columns_by_key(model)

    if not partial:
        for name in sorted(policy.required_on_create):
            value = payload.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                errors.setdefault(name, []).append("This field is required")

    patch: dict = {}

    for k, raw in payload.items():
        if k in policy.ignored_fields and k not in policy.writable_fields:
            continue
        if k not in policy.writable_fields or k not in cols:
            errors.setdefault(k, []).append("Unknown field")
            continue
        if k in errors:
            continue

        col = cols[k]

        # NULL handling
        if raw is None:
            if not col.nullable:
                errors.setdefault(k, []).append("This field cannot be null")
            else:
                patch[k] = None
            continue

        try:
            val = _coerce_value(col, raw)
        except ValueError as exc:
            errors.setdefault(k, []).append(f"{k} {exc}")
            continue

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable and val == "":
            errors.setdefault(k, []).append("This field cannot be blank")
            continue

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                errors.setdefault(k, []).append(f"{k} exceeds max length {col.type.length}")
                continue

        allowed = policy.choices.get(k)
        if allowed is not None and val not in allowed:
            errors.setdefault(k, []).append(f"{k} must be one of: {', '.join(allowed)}")
            continue

        if k in policy.non_negative and val < 0:
            errors.setdefault(k, []).append(f"{k} must be >= 0")
            continue

        patch[k] = val

    if errors:
        raise ValidationError(errors)

    return patch


def apply_aliases(payload, aliases: dict[str, str]):
    """
    Rename legacy payload keys (e.g. squid_type_id -> product_type_id).

    The canonical key wins when both are present.
    """
    if not isinstance(payload, dict):
        return payload
    renamed = dict(payload)
    for legacy, canonical in aliases.items():
        if legacy in renamed:
            value = renamed.pop(legacy)
            renamed.setdefault(canonical, value)
    return renamed


def merge_errors(*errors: ValidationError | None) -> ValidationError | None:
    """Combine several field maps into one error, or None if there is nothing to report."""
    merged: dict[str, list[str]] = {}
    for err in errors:
        if err is None:
            continue
        for key, messages in err.errors.items():
            merged.setdefault(key, []).extend(messages)
    return ValidationError(merged) if merged else None


def require_date_order(start: date, end: date, *, field_name: str = "end_date") -> None:
    if start > end:
        raise ValidationError.single(field_name, "end_date must be on or after start_date")
