from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from sqlalchemy import Boolean, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError
from .models import PAYMENT_METHODS
from .models.common import is_uuid


# Maximum price: 99,999,999.99 fits Numeric(10, 2)
MAX_PRICE = Decimal("99999999.99")
TWOPLACES = Decimal("0.01")

PUBLIC_ID_RE = re.compile(r"^[A-Z][A-Z0-9]*-\d{4}-\d{6}$")
URL_RE = re.compile(r"^https?://[^\s/$.?#].[^\s]*$", re.IGNORECASE)
PHONE_RE = re.compile(r"^\+?[0-9]{9,15}$")


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - min_lengths: per-field minimum length for string columns
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore
    min_lengths: dict[str, int] | None = None


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_integer(key: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    # Reject floats explicitly
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def _coerce_decimal(key: str, value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a number")
    if isinstance(value, (int, float, str)):
        try:
            # str() first so 19.99 does not carry binary float noise
            dec = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"{key} must be a number")
        if not dec.is_finite():
            raise ValidationError(f"{key} must be a finite number")
        if dec != dec.quantize(TWOPLACES, rounding=ROUND_HALF_UP):
            raise ValidationError(f"{key} cannot have more than 2 decimal places")
        return dec.quantize(TWOPLACES)
    raise ValidationError(f"{key} must be a number")


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return _coerce_integer(col.key, value)

    if isinstance(coltype, Numeric):
        return _coerce_decimal(col.key, value)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{col.key} must be a boolean")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        if not isinstance(value, str):
            raise ValidationError(f"{col.key} must be a string")
        return value.strip()

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
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    elif not payload:
        raise ValidationError("No fields to update")

    cols = _columns_by_key(model)
    min_lengths = policy.min_lengths or {}

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        # NULL handling
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
                raise ValidationError(f"{k} cannot exceed {col.type.length} characters")

        if k in min_lengths and isinstance(val, str) and len(val) < min_lengths[k]:
            raise ValidationError(f"{k} must be at least {min_lengths[k]} characters")

        patch[k] = val

    return patch


def capitalize_name(value: str) -> str:
    """'  fresh   MILK ' -> 'Fresh Milk'"""
    return " ".join(word.capitalize() for word in value.split())


def enforce_rules_category(patch: dict) -> None:
    if patch.get("name"):
        patch["name"] = capitalize_name(patch["name"])


def enforce_rules_profile(patch: dict) -> None:
    for key in ("firstname", "lastname", "othername"):
        if patch.get(key):
            patch[key] = capitalize_name(patch[key])

    for key in ("phone", "other_phone"):
        if patch.get(key) and not PHONE_RE.match(patch[key]):
            raise ValidationError(f"{key} must be a valid phone number")

    if patch.get("avatar_url") and not URL_RE.match(patch["avatar_url"]):
        raise ValidationError("avatar_url must be a valid URL")


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    if patch.get("name"):
        patch["name"] = capitalize_name(patch["name"])

    if "price" in patch and patch["price"] is not None:
        price = patch["price"]
        if price <= 0:
            raise ValidationError("price must be greater than zero")
        if price > MAX_PRICE:
            raise ValidationError(f"price cannot exceed {MAX_PRICE}")

    if "stock" in patch and patch["stock"] is not None:
        if patch["stock"] < 0:
            raise ValidationError("stock cannot be negative")

    if "category_id" in patch and not is_uuid(patch["category_id"]):
        raise ValidationError("Invalid category ID")

    if patch.get("image_url") and not URL_RE.match(patch["image_url"]):
        raise ValidationError("image_url must be a valid URL")


# =============================================================================
# Sale requests
# =============================================================================


@dataclass(frozen=True)
class SaleLineRequest:
    product_id: str
    quantity: int


@dataclass(frozen=True)
class SaleRequest:
    payment_method: str
    items: tuple[SaleLineRequest, ...]


def parse_sale_request(payload: Any) -> SaleRequest:
    """
    Validate a checkout body: {payment_method, items: [{product_id, quantity}]}.

    Collects every problem so the client can fix them in one round trip; raises
    ValidationError with details={"issues": [...]} if any are found.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid request data", details={"issues": [
            {"path": "", "message": "Request body must be a JSON object"},
        ]})

    issues: list[dict] = []

    payment_method = payload.get("payment_method")
    if payment_method not in PAYMENT_METHODS:
        issues.append({
            "path": "payment_method",
            "message": f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}",
        })

    raw_items = payload.get("items")
    lines: list[SaleLineRequest] = []
    if not isinstance(raw_items, list) or not raw_items:
        issues.append({"path": "items", "message": "At least one product is required"})
        raw_items = []

    for idx, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            issues.append({"path": f"items.{idx}", "message": "Item must be an object"})
            continue

        product_id = raw.get("product_id")
        quantity = raw.get("quantity")
        ok = True

        if not is_uuid(product_id):
            issues.append({"path": f"items.{idx}.product_id", "message": "Invalid product ID"})
            ok = False

        if isinstance(quantity, bool) or not isinstance(quantity, int):
            issues.append({"path": f"items.{idx}.quantity", "message": "Quantity must be an integer"})
            ok = False
        elif quantity < 1:
            issues.append({"path": f"items.{idx}.quantity", "message": "Quantity must be at least 1"})
            ok = False

        if ok:
            lines.append(SaleLineRequest(product_id=product_id, quantity=quantity))

    if issues:
        raise ValidationError("Invalid request data", details={"issues": issues})

    return SaleRequest(payment_method=payment_method, items=tuple(lines))


def require_uuid(value: str, label: str = "ID") -> str:
    if not is_uuid(value):
        raise ValidationError(f"Invalid {label}")
    return value


def require_public_id(value: str) -> str:
    if not isinstance(value, str) or not PUBLIC_ID_RE.match(value):
        raise ValidationError("Invalid sale ID")
    return value


def parse_pagination(args) -> tuple[int | None, int | None]:
    """
    Read ?page= and ?per_page= from request args.

    Both are optional; when present they must be integers >= 1.
    """
    parsed = []
    for key in ("page", "per_page"):
        raw = args.get(key)
        if raw is None or raw == "":
            parsed.append(None)
            continue
        value = _coerce_integer(key, raw)
        if value < 1:
            raise ValidationError(f"{key} must be at least 1")
        parsed.append(value)
    return parsed[0], parsed[1]
