"""State container for the inline row editing workflow."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional

from reach.domain.models import CustomerRow
from reach.domain.models.customer import field_key


@dataclass(frozen=True)
class EditSession:
    """One row being edited in place.

    ``draft`` only holds the fields the user touched; every other field reads
    through to ``original``, the row as it was last fetched.  Each mutation
    returns a new session so observers see a distinct value.
    """

    target_row_id: str
    original: CustomerRow
    draft: Dict[str, Any] = field(default_factory=dict)
    error: Optional[Exception] = None
    committing: bool = False

    def value(self, name: str) -> Any:
        key = field_key(name)
        if key in self.draft:
            return self.draft[key]
        return self.original.get(name)

    @property
    def dirty(self) -> bool:
        return bool(self.draft)

    def with_field(self, name: str, value: Any) -> "EditSession":
        draft = dict(self.draft)
        draft[field_key(name)] = value
        return replace(self, draft=draft)

    def merged(self) -> CustomerRow:
        return self.original.merged(self.draft)

    def field_error(self, name: str) -> Optional[str]:
        field_errors = getattr(self.error, "field_errors", None) or {}
        return field_errors.get(field_key(name))
