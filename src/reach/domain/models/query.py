from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from reach.config import ALL_FACET_VALUE, DEFAULT_PAGE_SIZE, DEFAULT_SORT_KEY

from .customer import CustomerRow


class SortDirection(Enum):
    ASC = "asc"
    DESC = "desc"

    @property
    def ascending(self) -> bool:
        return self is SortDirection.ASC


def is_all_value(value: Optional[str]) -> bool:
    """Return ``True`` when *value* means "no filter" for a facet."""
    if value is None:
        return True
    text = str(value).strip()
    return not text or text.casefold() == ALL_FACET_VALUE.casefold()


def _freeze(filters: Mapping[str, str]) -> Mapping[str, str]:
    return MappingProxyType({k: v for k, v in sorted(filters.items()) if not is_all_value(v)})


@dataclass(frozen=True)
class QueryState:
    """Immutable snapshot of everything that determines the visible page.

    Every interaction builds a new instance through one of the ``with_*``
    helpers; instances are never mutated.
    """

    search_text: str = ""
    filters: Mapping[str, str] = field(default_factory=dict)
    sort_key: str = DEFAULT_SORT_KEY
    sort_direction: SortDirection = SortDirection.ASC
    page_index: int = 0
    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self) -> None:
        if self.page_size <= 0:
            raise ValueError(f"page_size must be positive, got {self.page_size}")
        if self.page_index < 0:
            object.__setattr__(self, "page_index", 0)
        object.__setattr__(self, "filters", _freeze(self.filters))

    def __hash__(self) -> int:
        return hash((
            self.search_text,
            tuple(self.filters.items()),
            self.sort_key,
            self.sort_direction,
            self.page_index,
            self.page_size,
        ))

    # -- derived -----------------------------------------------------------

    @property
    def is_default(self) -> bool:
        """``True`` when no search text and no facet narrow the result set."""
        return not self.search_text.strip() and not self.filters

    @property
    def offset(self) -> int:
        return self.page_index * self.page_size

    # -- transitions -------------------------------------------------------

    def with_search(self, text: str) -> "QueryState":
        return replace(self, search_text=text, page_index=0)

    def with_filter(self, facet: str, value: Optional[str]) -> "QueryState":
        filters = dict(self.filters)
        if is_all_value(value):
            filters.pop(facet, None)
        else:
            filters[facet] = str(value)
        return replace(self, filters=filters, page_index=0)

    def without_filters(self) -> "QueryState":
        return replace(self, filters={}, page_index=0)

    def with_sort(self, key: str) -> "QueryState":
        """Toggle the sort: same ascending key flips, anything else ascends.

        The page index is kept so re-sorting does not lose the position.
        """
        if key == self.sort_key and self.sort_direction is SortDirection.ASC:
            direction = SortDirection.DESC
        else:
            direction = SortDirection.ASC
        return replace(self, sort_key=key, sort_direction=direction)

    def with_page(self, index: int) -> "QueryState":
        return replace(self, page_index=max(0, index))

    def with_page_size(self, size: int) -> "QueryState":
        return replace(self, page_size=size, page_index=0)

    def clamped(self, total_count: int) -> "QueryState":
        """Return a copy whose page index lies inside ``[0, last_page]``."""
        last = max(0, total_pages(total_count, self.page_size) - 1)
        if self.page_index <= last:
            return self
        return replace(self, page_index=last)


def total_pages(total_count: int, page_size: int) -> int:
    if page_size <= 0 or total_count <= 0:
        return 0
    return (total_count + page_size - 1) // page_size


@dataclass(frozen=True)
class Page:
    """Result of fetching a single page."""

    rows: Tuple[CustomerRow, ...] = ()
    total_count: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "rows", tuple(self.rows))

    def total_pages(self, page_size: int) -> int:
        return total_pages(self.total_count, page_size)

    def find(self, row_id: str) -> Optional[CustomerRow]:
        for row in self.rows:
            if row.key == row_id:
                return row
        return None
