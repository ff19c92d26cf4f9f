"""Customer row schema shared by the grid and the data sources."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Mapping, Optional


def _snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


# Column keys used by the legacy screens that do not follow the snake_case
# conversion of their field name.
_ALIASES: Dict[str, str] = {
    "name_en": "name",
    "region_description": "region",
    "regiondescription": "region",
    "branch": "region",
    "dynamic_data": "extra",
    "data": "extra",
}


@dataclass(frozen=True)
class CustomerRow:
    """One customer as shown in the customer database grid.

    ``row_id`` is the database identity used for updates; screens that only
    know the business ``id`` fall back to it through :attr:`key`.  Attributes
    that have no dedicated field live in ``extra``.
    """

    id: str = ""
    row_id: Optional[str] = None
    name: str = ""
    name_ar: Optional[str] = None
    client_code: Optional[str] = None
    reach_customer_code: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    district: Optional[str] = None
    classification: Optional[str] = None
    store_type: Optional[str] = None
    vat: Optional[str] = None
    buyer_id: Optional[str] = None
    region: Optional[str] = None
    region_code: Optional[str] = None
    route_name: Optional[str] = None
    week: Optional[str] = None
    day: Optional[str] = None
    user_code: Optional[str] = None
    added_by: Optional[str] = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> str:
        return self.row_id or self.id

    @property
    def is_missing_gps(self) -> bool:
        if self.lat is None or self.lng is None:
            return True
        return self.lat == 0 and self.lng == 0

    def get(self, name: str, default: Any = None) -> Any:
        """Return a known field or an ``extra`` attribute by *name*."""
        field_name = canonical_field(name)
        if field_name in FIELD_NAMES and field_name != "extra":
            return getattr(self, field_name)
        return self.extra.get(name, default)

    def merged(self, draft: Mapping[str, Any]) -> "CustomerRow":
        """Return a copy with *draft* values applied on top of this row."""
        known, extra = split_fields(draft)
        if extra:
            known["extra"] = {**self.extra, **extra}
        return replace(self, **known)

    def to_mapping(self) -> Dict[str, Any]:
        payload = {f.name: getattr(self, f.name) for f in fields(self) if f.name != "extra"}
        payload["extra"] = dict(self.extra)
        return payload

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "CustomerRow":
        """Build a row from camelCase or snake_case keys.

        Unknown keys are preserved in ``extra``.
        """
        known, extra = split_fields(payload)
        nested = known.pop("extra", None)
        if isinstance(nested, Mapping):
            extra = {**nested, **extra}
        for coord in ("lat", "lng"):
            if known.get(coord) in ("", None):
                known[coord] = None
            elif coord in known:
                known[coord] = float(known[coord])
        if "id" in known and known["id"] is not None:
            known["id"] = str(known["id"])
        if known.get("row_id") is not None:
            known["row_id"] = str(known["row_id"])
        return cls(**known, extra=extra)


FIELD_NAMES: frozenset[str] = frozenset(f.name for f in fields(CustomerRow))
EDITABLE_FIELDS: frozenset[str] = FIELD_NAMES - {"id", "row_id", "extra"}


def canonical_field(name: str) -> str:
    snake = _snake(name)
    return _ALIASES.get(snake, snake)


def split_fields(payload: Mapping[str, Any]) -> tuple[Dict[str, Any], Dict[str, Any]]:
    """Split *payload* into known-field values and extra attributes."""
    known: Dict[str, Any] = {}
    extra: Dict[str, Any] = {}
    for key, value in payload.items():
        name = canonical_field(key)
        if name in FIELD_NAMES:
            known[name] = value
        else:
            extra[key] = value
    return known, extra


def field_key(name: str) -> str:
    """Return the canonical name of a known field, or *name* for extras."""
    canonical = canonical_field(name)
    return canonical if canonical in FIELD_NAMES else name
