from __future__ import annotations
from datetime import datetime
from decimal import Decimal, InvalidOperation
from supplydesk.time_utils import parse_iso_datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, JSON, Numeric, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta

from .money import MAX_AMOUNT, MAX_QUANTITY, ZERO, quantize
from .models import (
    COMMISSION_STATUSES,
    INVOICE_PAYMENT_STATUSES,
    PAYMENT_METHODS,
    PRODUCT_UNITS,
)


class ValidationError(ValueError):
    """400-level input problem."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - upper_fields: string fields stored upper-cased (codes, SKUs)
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore
    upper_fields: set[str] | None = None


ADDRESS_FIELDS = {"address_street", "address_city", "address_state", "address_pincode"}
CONTACT_FIELDS = {"contact_phone", "contact_email"}

SCHOOL_POLICY = ModelValidationPolicy(
    writable_fields={"name", "code", "principal_name", "commission_rate", "is_active"}
    | ADDRESS_FIELDS | CONTACT_FIELDS,
    required_on_create={"name", "code"},
    upper_fields={"code"},
)

STUDENT_POLICY = ModelValidationPolicy(
    writable_fields={
        "roll_number", "name", "school_id", "class_name", "section",
        "father_name", "mother_name", "date_of_birth", "admission_date", "is_active",
    } | ADDRESS_FIELDS | CONTACT_FIELDS,
    required_on_create={"roll_number", "name", "school_id", "class_name"},
)

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "is_active"},
    required_on_create={"name"},
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "sku", "category_id", "description", "base_price", "gst_rate",
        "selling_price", "min_stock_level", "unit", "is_active",
    },
    required_on_create={"name", "sku", "category_id", "base_price", "selling_price"},
    upper_fields={"sku"},
)

SUPPLIER_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "code", "contact_person", "gst_number",
        "bank_account_number", "bank_name", "bank_ifsc_code", "bank_account_holder_name",
        "is_active",
    } | ADDRESS_FIELDS | CONTACT_FIELDS,
    required_on_create={"name", "code"},
    upper_fields={"code", "gst_number", "bank_ifsc_code"},
)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def parse_int(key: str, value: Any) -> int:
    """Strict integer parsing: rejects floats, bools and scientific notation."""
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


def parse_amount(key: str, value: Any) -> Decimal:
    """Parse a money or rate value into a 2dp Decimal; rejects negatives."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
        raise ValidationError(f"{key} must be a number")
    try:
        amount = quantize(value.strip() if isinstance(value, str) else value)
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{key} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{key} must be a number")
    if amount < ZERO:
        raise ValidationError(f"{key} must be >= 0")
    if amount > MAX_AMOUNT:
        raise ValidationError(f"{key} cannot exceed {MAX_AMOUNT}")
    return amount


def parse_datetime(key: str, value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            dt = parse_iso_datetime(value)
        except ValueError:
            raise ValidationError(f"{key} must be an ISO-8601 datetime")
        if dt is None:
            raise ValidationError(f"{key} must be an ISO-8601 datetime")
        return dt
    raise ValidationError(f"{key} must be a datetime")


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return parse_int(col.key, value)

    if isinstance(coltype, Numeric):
        return parse_amount(col.key, value)

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("true", "false", "1", "0"):
            return value.strip().lower() in ("true", "1")
        raise ValidationError(f"{col.key} must be a boolean")

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        return parse_datetime(col.key, value)

    if isinstance(coltype, JSON):
        if not isinstance(value, dict):
            raise ValidationError(f"{col.key} must be an object")
        return value

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
    upper = policy.upper_fields or set()

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
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        if k in upper and isinstance(val, str):
            val = val.upper()

        patch[k] = val

    return patch


def _check_rate(patch: dict, key: str) -> None:
    if key in patch and patch[key] is not None and patch[key] > Decimal("100"):
        raise ValidationError(f"{key} must be between 0 and 100")


def enforce_rules_school(patch: dict) -> None:
    _check_rate(patch, "commission_rate")


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    _check_rate(patch, "gst_rate")
    if "unit" in patch and patch["unit"] not in PRODUCT_UNITS:
        raise ValidationError(f"unit must be one of: {', '.join(PRODUCT_UNITS)}")
    if patch.get("min_stock_level") is not None and patch["min_stock_level"] < 0:
        raise ValidationError("min_stock_level must be >= 0")


# =============================================================================
# Typed request structs for document workflows
# =============================================================================

@dataclass(frozen=True)
class LineItemRequest:
    product_id: int
    quantity: int
    # Purchases only; invoices always price from the product
    unit_price: Decimal | None = None


@dataclass(frozen=True)
class InvoiceRequest:
    student_id: int
    school_id: int | None
    items: tuple[LineItemRequest, ...]
    discount: Decimal = ZERO
    payment_status: str = "paid"
    payment_method: str = "cash"
    invoice_date: datetime | None = None
    gst_number: str | None = None
    business_info: dict | None = None
    notes: str | None = None


@dataclass(frozen=True)
class InvoiceUpdateRequest:
    """Fields left as None are unchanged."""
    items: tuple[LineItemRequest, ...] | None = None
    discount: Decimal | None = None
    payment_status: str | None = None
    payment_method: str | None = None
    gst_number: str | None = None
    business_info: dict | None = None
    notes: str | None = None


@dataclass(frozen=True)
class PurchaseRequest:
    supplier_id: int
    items: tuple[LineItemRequest, ...]
    purchase_date: datetime | None = None
    paid_amount: Decimal = ZERO
    notes: str | None = None


@dataclass(frozen=True)
class PurchaseUpdateRequest:
    supplier_id: int | None = None
    purchase_date: datetime | None = None
    notes: str | None = None


@dataclass(frozen=True)
class PaymentUpdateRequest:
    paid_amount: Decimal
    payment_date: datetime | None = None


@dataclass(frozen=True)
class SettlementRequest:
    payment_reference: str
    settlement_date: datetime | None = None
    notes: str | None = None


def _require_dict(payload: Any) -> dict:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return payload


def _optional_text(payload: dict, key: str, max_length: int | None = None) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    value = str(value).strip()
    if max_length and len(value) > max_length:
        raise ValidationError(f"{key} exceeds max length {max_length}")
    return value or None


def _choice(payload: dict, key: str, choices: tuple[str, ...], default: str | None) -> str | None:
    value = payload.get(key)
    if value is None:
        return default
    if value not in choices:
        raise ValidationError(f"{key} must be one of: {', '.join(choices)}")
    return value


def _parse_items(raw: Any, *, with_price: bool) -> tuple[LineItemRequest, ...]:
    if not isinstance(raw, list) or not raw:
        raise ValidationError("At least one item is required")

    items = []
    for index, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise ValidationError(f"items[{index}] must be an object")
        if entry.get("product_id") is None:
            raise ValidationError(f"items[{index}].product_id is required")
        if entry.get("quantity") is None:
            raise ValidationError(f"items[{index}].quantity is required")

        product_id = parse_int(f"items[{index}].product_id", entry["product_id"])
        quantity = parse_int(f"items[{index}].quantity", entry["quantity"])
        if quantity <= 0:
            raise ValidationError(f"items[{index}].quantity must be > 0")
        if quantity > MAX_QUANTITY:
            raise ValidationError(f"items[{index}].quantity cannot exceed {MAX_QUANTITY}")

        unit_price = None
        if with_price:
            if entry.get("unit_price") is None:
                raise ValidationError(f"items[{index}].unit_price is required")
            unit_price = parse_amount(f"items[{index}].unit_price", entry["unit_price"])

        items.append(LineItemRequest(product_id=product_id, quantity=quantity, unit_price=unit_price))
    return tuple(items)


def _gst_fields(payload: dict) -> tuple[str | None, dict | None]:
    gst_number = _optional_text(payload, "gst_number", 32)
    business_info = payload.get("business_info")
    if business_info is not None and not isinstance(business_info, dict):
        raise ValidationError("business_info must be an object")
    return (gst_number.upper() if gst_number else None), business_info


def parse_invoice_request(payload: Any) -> InvoiceRequest:
    payload = _require_dict(payload)
    if payload.get("student_id") is None:
        raise ValidationError("student_id is required")

    school_id = payload.get("school_id")
    gst_number, business_info = _gst_fields(payload)

    return InvoiceRequest(
        student_id=parse_int("student_id", payload["student_id"]),
        school_id=parse_int("school_id", school_id) if school_id not in (None, "") else None,
        items=_parse_items(payload.get("items"), with_price=False),
        discount=parse_amount("discount", payload["discount"]) if payload.get("discount") is not None else ZERO,
        payment_status=_choice(payload, "payment_status", INVOICE_PAYMENT_STATUSES, "paid"),
        payment_method=_choice(payload, "payment_method", PAYMENT_METHODS, "cash"),
        invoice_date=parse_datetime("invoice_date", payload["invoice_date"]) if payload.get("invoice_date") else None,
        gst_number=gst_number,
        business_info=business_info,
        notes=_optional_text(payload, "notes"),
    )


def parse_invoice_update(payload: Any) -> InvoiceUpdateRequest:
    payload = _require_dict(payload)
    immutable = {"school_id", "student_id", "invoice_number"} & set(payload)
    if immutable:
        raise ValidationError(f"Field not allowed: {sorted(immutable)[0]}")

    gst_number, business_info = _gst_fields(payload)
    return InvoiceUpdateRequest(
        items=_parse_items(payload["items"], with_price=False) if "items" in payload else None,
        discount=parse_amount("discount", payload["discount"]) if payload.get("discount") is not None else None,
        payment_status=_choice(payload, "payment_status", INVOICE_PAYMENT_STATUSES, None),
        payment_method=_choice(payload, "payment_method", PAYMENT_METHODS, None),
        gst_number=gst_number,
        business_info=business_info,
        notes=_optional_text(payload, "notes"),
    )


def parse_purchase_request(payload: Any) -> PurchaseRequest:
    payload = _require_dict(payload)
    if payload.get("supplier_id") is None:
        raise ValidationError("supplier_id is required")

    return PurchaseRequest(
        supplier_id=parse_int("supplier_id", payload["supplier_id"]),
        items=_parse_items(payload.get("items"), with_price=True),
        purchase_date=parse_datetime("purchase_date", payload["purchase_date"]) if payload.get("purchase_date") else None,
        paid_amount=parse_amount("paid_amount", payload["paid_amount"]) if payload.get("paid_amount") is not None else ZERO,
        notes=_optional_text(payload, "notes"),
    )


def parse_purchase_update(payload: Any) -> PurchaseUpdateRequest:
    payload = _require_dict(payload)
    allowed = {"supplier_id", "purchase_date", "notes"}
    for key in payload:
        if key not in allowed:
            raise ValidationError(f"Field not allowed: {key}")

    return PurchaseUpdateRequest(
        supplier_id=parse_int("supplier_id", payload["supplier_id"]) if payload.get("supplier_id") is not None else None,
        purchase_date=parse_datetime("purchase_date", payload["purchase_date"]) if payload.get("purchase_date") else None,
        notes=_optional_text(payload, "notes"),
    )


def parse_payment_update(payload: Any) -> PaymentUpdateRequest:
    payload = _require_dict(payload)
    if payload.get("paid_amount") is None:
        raise ValidationError("paid_amount is required")
    return PaymentUpdateRequest(
        paid_amount=parse_amount("paid_amount", payload["paid_amount"]),
        payment_date=parse_datetime("payment_date", payload["payment_date"]) if payload.get("payment_date") else None,
    )


def parse_settlement_request(payload: Any) -> SettlementRequest:
    payload = _require_dict(payload)
    reference = _optional_text(payload, "payment_reference", 128)
    if not reference:
        raise ValidationError("payment_reference is required")
    return SettlementRequest(
        payment_reference=reference,
        settlement_date=parse_datetime("settlement_date", payload["settlement_date"]) if payload.get("settlement_date") else None,
        notes=_optional_text(payload, "notes"),
    )


def parse_commission_status(value: str | None) -> str | None:
    if value in (None, ""):
        return None
    if value not in COMMISSION_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(COMMISSION_STATUSES)}")
    return value
