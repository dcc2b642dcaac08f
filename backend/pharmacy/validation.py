from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta


# Maximum price: 99,999,999.99 (fits Numeric(10, 2))
MAX_PRICE = Decimal("99999999.99")

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
DNI_RE = re.compile(r"^[0-9]{8}$")
MIN_PASSWORD_LENGTH = 6


class ValidationError(ValueError):
    """400-level input problem; ``errors`` carries per-field messages."""

    def __init__(self, message: str, errors: list[dict] | None = None):
        super().__init__(message)
        self.errors = errors or []

    def to_dict(self) -> dict:
        body = {"error": str(self)}
        if self.errors:
            body["errors"] = self.errors
        return body


class DuplicateError(ValueError):
    """400-level unique key violation (email, dni, username, role name)."""


class NotFoundError(LookupError):
    """404-level missing row."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - fields: wire name -> model column key (what clients are allowed to set)
    - required_on_create: wire names required for POST
    """
    fields: dict[str, str]
    required_on_create: set[str] = field(default_factory=set)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(name: str, col, value: Any):
    coltype = col.type

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        # Already an int (but not bool which is a subclass of int)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if stripped.lstrip("-").isdigit():
                return int(stripped)
        raise ValidationError(f"{name} must be an integer")

    if isinstance(coltype, Numeric):
        if isinstance(value, bool):
            raise ValidationError(f"{name} must be a number")
        try:
            number = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(f"{name} must be a number")
        if not number.is_finite():
            raise ValidationError(f"{name} must be a number")
        return number

    # Strings / Text
    if isinstance(coltype, (String, Text)):
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
    - the policy's field mapping (unknown keys are ignored)
    - required_on_create (if partial=False)
    Returns a patch dict keyed by column name.

    All field problems are collected and raised together.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    cols = _columns_by_key(model)
    errors: list[dict] = []
    patch: dict = {}

    if not partial:
        for name in sorted(policy.required_on_create):
            raw = payload.get(name)
            if raw is None or (isinstance(raw, str) and not raw.strip()):
                errors.append({"field": name, "message": f"{name} is required"})

    for name, key in policy.fields.items():
        if name not in payload or any(e["field"] == name for e in errors):
            continue
        col = cols[key]
        raw = payload[name]

        # NULL handling
        if raw is None:
            if not col.nullable:
                errors.append({"field": name, "message": f"{name} cannot be null"})
            else:
                patch[key] = None
            continue

        try:
            val = _coerce_value(name, col, raw)
        except ValidationError as e:
            errors.append({"field": name, "message": str(e)})
            continue

        if isinstance(col.type, (String, Text)) and isinstance(val, str):
            if val == "":
                if not col.nullable:
                    errors.append({"field": name, "message": f"{name} cannot be blank"})
                    continue
                val = None
            elif isinstance(col.type, String) and col.type.length and len(val) > col.type.length:
                errors.append({"field": name, "message": f"{name} exceeds max length {col.type.length}"})
                continue

        patch[key] = val

    if errors:
        raise ValidationError("Validation failed", errors)

    return patch


def _field_error(errors: list[dict], name: str, message: str) -> None:
    errors.append({"field": name, "message": message})


def enforce_rules_user(patch: dict, password: Any = None, password_required: bool = False) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    errors: list[dict] = []

    if "email" in patch and not EMAIL_RE.match(patch["email"] or ""):
        _field_error(errors, "email", "Invalid email")

    if "dni" in patch and not DNI_RE.match(patch["dni"] or ""):
        _field_error(errors, "dni", "DNI must be exactly 8 numeric digits")

    if "role_id" in patch and (patch["role_id"] is None or patch["role_id"] < 1):
        _field_error(errors, "roleId", "A valid role must be selected")

    if password_required or password not in (None, ""):
        try:
            validate_password(password)
        except ValidationError as e:
            _field_error(errors, "password", str(e))

    if errors:
        raise ValidationError("Validation failed", errors)


def validate_password(password: Any) -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")


def enforce_rules_client(patch: dict) -> None:
    if patch.get("email") and not EMAIL_RE.match(patch["email"]):
        raise ValidationError("Validation failed", [{"field": "email", "message": "Invalid email"}])


def enforce_rules_product(patch: dict) -> None:
    errors: list[dict] = []
    if "price" in patch and patch["price"] is not None:
        price = patch["price"]
        if price < 0:
            _field_error(errors, "price", "price must be >= 0")
        elif price > MAX_PRICE:
            _field_error(errors, "price", f"price cannot exceed {MAX_PRICE}")
    if errors:
        raise ValidationError("Validation failed", errors)
