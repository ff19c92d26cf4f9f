"""Schema helpers for the Reach settings file."""

from __future__ import annotations

from copy import deepcopy
from typing import Any

from jsonschema import Draft202012Validator

from ..config import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_REPORTS_BASE_URL,
    DEFAULT_REPORTS_TIMEOUT_SEC,
    DEFAULT_SORT_KEY,
    PAGE_SIZE_OPTIONS,
    SEARCH_DEBOUNCE_MS,
)

SETTINGS_SCHEMA: dict[str, Any] = {
    "$id": "reach/settings.schema.json",
    "type": "object",
    "required": ["schema", "grid", "reports", "database"],
    "properties": {
        "schema": {"const": "reach/settings@1"},
        "grid": {
            "type": "object",
            "properties": {
                "page_size": {"type": "integer", "enum": list(PAGE_SIZE_OPTIONS)},
                "search_debounce_ms": {"type": "integer", "minimum": 0},
                "default_sort_key": {"type": "string", "minLength": 1},
            },
            "additionalProperties": True,
        },
        "reports": {
            "type": "object",
            "properties": {
                "base_url": {"type": "string", "pattern": "^https?://"},
                "timeout_seconds": {"type": "number", "exclusiveMinimum": 0},
            },
            "additionalProperties": True,
        },
        "database": {
            "type": "object",
            "properties": {
                "path": {"type": ["string", "null"]},
            },
            "additionalProperties": True,
        },
    },
    "additionalProperties": True,
}

DEFAULT_SETTINGS: dict[str, Any] = {
    "schema": "reach/settings@1",
    "grid": {
        "page_size": DEFAULT_PAGE_SIZE,
        "search_debounce_ms": SEARCH_DEBOUNCE_MS,
        "default_sort_key": DEFAULT_SORT_KEY,
    },
    "reports": {
        "base_url": DEFAULT_REPORTS_BASE_URL,
        "timeout_seconds": DEFAULT_REPORTS_TIMEOUT_SEC,
    },
    "database": {
        "path": None,
    },
}

_SECTIONS = ("grid", "reports", "database")

_validator = Draft202012Validator(SETTINGS_SCHEMA)


def merge_with_defaults(data: dict[str, Any] | None) -> dict[str, Any]:
    """Merge *data* with :data:`DEFAULT_SETTINGS` and validate the result."""

    merged = deepcopy(DEFAULT_SETTINGS)
    if data:
        for key, value in data.items():
            if key in _SECTIONS and isinstance(value, dict):
                merged.setdefault(key, {}).update(value)
                continue
            merged[key] = value
    _validator.validate(merged)
    return merged


def validate_settings(data: dict[str, Any]) -> None:
    """Validate *data* against the settings schema."""

    _validator.validate(data)


__all__ = ["DEFAULT_SETTINGS", "SETTINGS_SCHEMA", "merge_with_defaults", "validate_settings"]
