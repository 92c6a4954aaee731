from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from assetverse.models.accounts import VALID_ROLES, ROLE_HR
from assetverse.time_utils import parse_iso_date


# Upper bound on stock for a single asset row; keeps typos like 1e6 out
MAX_ASSET_QUANTITY = 100_000


class ValidationError(ValueError):
    """400-level input problem."""
    status_code = 400


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped or 'e' in stripped.lower() or '.' in stripped:
                raise ValidationError(f"{col.key} must be a plain integer")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        if isinstance(value, float):
            raise ValidationError(f"{col.key} must be an integer, not a decimal")
        raise ValidationError(f"{col.key} must be an integer")

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
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

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
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

        val = _coerce_value(col, raw)

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


def enforce_rules_asset(patch: dict) -> None:
    if "quantity" in patch:
        quantity = patch["quantity"]
        if quantity < 0:
            raise ValidationError("quantity must be >= 0")
        if quantity > MAX_ASSET_QUANTITY:
            raise ValidationError(f"quantity cannot exceed {MAX_ASSET_QUANTITY}")


def enforce_rules_user(patch: dict, *, creating: bool) -> None:
    role = patch.get("role")
    if role is not None and role not in VALID_ROLES:
        raise ValidationError(f"role must be one of {', '.join(VALID_ROLES)}")

    if creating and role == ROLE_HR and not patch.get("company_name"):
        raise ValidationError("company_name is required for hr accounts")

    if patch.get("date_of_birth"):
        try:
            patch["date_of_birth"] = parse_iso_date(patch["date_of_birth"])
        except ValueError:
            raise ValidationError("date_of_birth must be an ISO-8601 date")


def require_positive_int(payload: dict, key: str) -> int:
    """Pull an id out of a free-form JSON body."""
    value = payload.get(key)
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer")
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{key} is required and must be a positive integer")
    return value


def normalize_email(value: Any, *, field: str = "email") -> str:
    if not isinstance(value, str) or "@" not in value:
        raise ValidationError(f"{field} must be a valid email address")
    email = value.strip().lower()
    if len(email) > 255:
        raise ValidationError(f"{field} exceeds max length 255")
    return email


def require_json_object(payload: Any) -> dict:
    """Request bodies are JSON objects; a missing body counts as empty."""
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return payload
