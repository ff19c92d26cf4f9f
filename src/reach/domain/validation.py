"""Validation of customer edits before they are sent to the backend."""

from __future__ import annotations

from typing import Any, Mapping

from jsonschema import Draft202012Validator

from reach.errors import ValidationError

from .models.customer import FIELD_NAMES, split_fields

CUSTOMER_EDIT_SCHEMA: dict[str, Any] = {
    "$id": "reach/customer-edit.schema.json",
    "type": "object",
    "properties": {
        "name": {
            "type": "string",
            "minLength": 1,
            "maxLength": 100,
            "pattern": r"\S",
        },
        "lat": {"type": ["number", "null"], "minimum": -90, "maximum": 90},
        "lng": {"type": ["number", "null"], "minimum": -180, "maximum": 180},
        "phone": {
            "anyOf": [
                {"type": "null"},
                {"type": "string", "maxLength": 0},
                {"type": "string", "pattern": r"^\+?[\d\s\-()]{8,20}$"},
            ]
        },
        "name_ar": {"type": ["string", "null"], "maxLength": 100},
    },
    "additionalProperties": True,
}

_FIELD_MESSAGES: dict[str, str] = {
    "name": "Customer name is required",
    "lat": "Invalid latitude (must be -90 to 90)",
    "lng": "Invalid longitude (must be -180 to 180)",
    "phone": "Invalid phone number",
    "name_ar": "Arabic name is too long",
}

_validator = Draft202012Validator(CUSTOMER_EDIT_SCHEMA)


def _coerce_numbers(payload: dict[str, Any]) -> dict[str, Any]:
    # Inline edit inputs deliver text; coordinates are checked as numbers.
    for key in ("lat", "lng"):
        value = payload.get(key)
        if isinstance(value, str):
            text = value.strip()
            if not text:
                payload[key] = None
                continue
            try:
                payload[key] = float(text)
            except ValueError:
                pass
    return payload


def normalise_customer_edit(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Return *payload* keyed by canonical field names with coerced values."""
    known, extra = split_fields(payload)
    return {**extra, **_coerce_numbers(known)}


def validate_customer_edit(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Validate *payload* and return its normalised form.

    Raises :class:`ValidationError` with one message per offending field.
    """
    normalised = normalise_customer_edit(payload)
    field_errors: dict[str, str] = {}
    for error in _validator.iter_errors(normalised):
        field_name = str(error.path[0]) if error.path else "payload"
        if field_name in FIELD_NAMES or field_name == "payload":
            field_errors.setdefault(field_name, _FIELD_MESSAGES.get(field_name, error.message))
    if field_errors:
        raise ValidationError("Customer data is invalid", field_errors)
    return normalised
