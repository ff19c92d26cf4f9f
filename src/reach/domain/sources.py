from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional, Sequence

from .models import CustomerRow, LevelType, Page, TreeNode


class DataSource(ABC):
    """Server-side customer table consumed by the paged grid."""

    @abstractmethod
    async def fetch_page(
        self,
        owner_id: str,
        page_index: int,
        page_size: int,
        filters: Mapping[str, str],
        sort_key: str,
        sort_ascending: bool,
        search_text: str = "",
    ) -> Page:
        """Return one page of the filtered, sorted set.

        Raises ``TransientFetchError`` on backend failure; has no side effects
        so callers may retry freely.
        """

    @abstractmethod
    async def update_row(
        self,
        owner_id: str,
        row_id: str,
        partial_row: Mapping[str, Any],
    ) -> CustomerRow:
        """Apply *partial_row* to the stored row and return the stored result.

        Fields missing from *partial_row* stay unchanged.  Raises
        ``ValidationError``, ``NotFoundError`` or ``TransientFetchError``.
        """

    @abstractmethod
    async def list_facet_values(self, owner_id: str, facet_name: str) -> Sequence[str]:
        """Return the value domain of *facet_name*; empty on failure."""

    @abstractmethod
    async def count_all(self, owner_id: str) -> int:
        """Return the unfiltered number of rows for *owner_id*."""


class HierarchySource(ABC):
    """Pre-aggregated drill-down report consumed by the lazy tree."""

    @abstractmethod
    async def fetch_level(
        self,
        owner_id: str,
        level_type: LevelType,
        parent_id: Optional[str],
        branch_ids: Optional[Sequence[str]] = None,
    ) -> Sequence[TreeNode]:
        """Return the nodes of *level_type* under *parent_id*.

        ``parent_id`` may only be ``None`` for the BRANCH level.  Raises
        ``TransientFetchError`` on backend failure.
        """


def check_level_request(level_type: LevelType, parent_id: Optional[str]) -> None:
    """Reject requests that pair a level with an impossible parent."""
    if parent_id is None and level_type is not LevelType.BRANCH:
        raise ValueError(f"{level_type.value} level requires a parent_id")
    if parent_id is not None and level_type is LevelType.BRANCH:
        raise ValueError("BRANCH level is the root and takes no parent_id")
