"""Pure Python customer grid ViewModel (MVVM), no Qt dependency.

Owns server-side pagination, debounced search, facet filtering, column sort
and single-row inline editing.  Fetches run as asyncio tasks; every request
carries a version number and only the response of the latest request is
applied, whatever order the responses arrive in.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any, Iterable, Optional

from reach.config import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_SORT_KEY,
    DYNAMIC_FACETS,
    SEARCH_DEBOUNCE_MS,
    STATIC_FACET_VALUES,
)
from reach.domain.models import EDITABLE_FIELDS, CustomerRow, Page, QueryState
from reach.domain.models.customer import field_key
from reach.domain.sources import DataSource
from reach.domain.validation import validate_customer_edit
from reach.errors import describe_error
from reach.errors.handler import ErrorHandler
from reach.events.bus import EventBus
from reach.events.grid_events import (
    CustomersImportedEvent,
    CustomerUpdatedEvent,
    PageLoadedEvent,
)
from reach.gui.viewmodels.base import BaseViewModel
from reach.gui.viewmodels.debounce import Debouncer, Scheduler
from reach.gui.viewmodels.edit_session import EditSession
from reach.gui.viewmodels.signal import ObservableProperty, Signal

_logger = logging.getLogger(__name__)

EMPTY_STATE_LOADING = "loading"
EMPTY_STATE_ERROR = "error"
EMPTY_STATE_EMPTY = "empty"
EMPTY_STATE_NO_MATCHES = "no_matches"
EMPTY_STATE_ROWS = "rows"


class PagedFilterGridViewModel(BaseViewModel):
    """Customer grid ViewModel, pure Python, no Qt dependency.

    Call :meth:`start` from inside the running event loop to issue the first
    fetch together with the facet and database-count lookups.
    """

    def __init__(
        self,
        data_source: DataSource,
        owner_id: str,
        event_bus: EventBus,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        sort_key: str = DEFAULT_SORT_KEY,
        debounce_ms: int = SEARCH_DEBOUNCE_MS,
        scheduler: Optional[Scheduler] = None,
        error_handler: Optional[ErrorHandler] = None,
        dynamic_facets: Iterable[str] = DYNAMIC_FACETS,
    ) -> None:
        super().__init__(error_handler)
        self._source = data_source
        self._owner_id = owner_id
        self._event_bus = event_bus
        self._dynamic_facets = tuple(dynamic_facets)
        self._debouncer = Debouncer(debounce_ms, self._apply_search, scheduler)

        # Request bookkeeping
        self._version = 0
        self._loaded_query: Optional[QueryState] = None

        # Observable properties
        self.query = ObservableProperty(QueryState(sort_key=sort_key, page_size=page_size))
        self.pending_search_text = ObservableProperty("")
        self.rows: ObservableProperty[tuple[CustomerRow, ...]] = ObservableProperty(())
        self.total_count = ObservableProperty(0)
        self.page_count = ObservableProperty(0)
        self.database_count: ObservableProperty[Optional[int]] = ObservableProperty(None)
        self.loading = ObservableProperty(False)
        self.error: ObservableProperty[Optional[str]] = ObservableProperty(None)
        self.facet_values: ObservableProperty[dict[str, tuple[str, ...]]] = ObservableProperty(
            {name: tuple(values) for name, values in STATIC_FACET_VALUES.items()}
        )
        self.edit_session: ObservableProperty[Optional[EditSession]] = ObservableProperty(None)

        # Signals
        self.page_loaded = Signal()  # emits (page)
        self.error_occurred = Signal()  # emits (message)
        self.row_committed = Signal()  # emits (updated_row)
        self.edit_failed = Signal()  # emits (message)

        self.subscribe_event(event_bus, CustomersImportedEvent, self._on_customers_imported)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @property
    def owner_id(self) -> str:
        return self._owner_id

    def start(self) -> asyncio.Task:
        """Load facets and the unfiltered count, then fetch the first page."""
        self.spawn(self._load_database_count(), name="grid-count")
        self.load_facets()
        return self._request_page()

    def refresh(self) -> asyncio.Task:
        """Refetch the current page, discarding any open edit."""
        self.edit_session.value = None
        return self._request_page()

    def dispose(self) -> None:
        self._debouncer.cancel()
        super().dispose()

    # ------------------------------------------------------------------
    # Query state transitions
    # ------------------------------------------------------------------
    def set_search_text(self, text: str) -> None:
        """Show *text* immediately; apply it after the debounce quiet period."""
        self.pending_search_text.value = text
        self._debouncer.trigger(text)

    def flush_search(self) -> bool:
        """Apply a pending search right away (Enter key)."""
        return self._debouncer.flush()

    def set_filter(self, facet: str, value: Optional[str]) -> None:
        self._set_query(self.query.value.with_filter(facet, value))

    def clear_filters(self) -> None:
        self._set_query(self.query.value.without_filters())

    def set_sort(self, key: str) -> None:
        self._set_query(self.query.value.with_sort(key))

    def set_page(self, index: int) -> None:
        if self._loaded_query is not None:
            index = min(index, max(0, self.page_count.value - 1))
        self._set_query(self.query.value.with_page(index))

    def next_page(self) -> None:
        self.set_page(self.query.value.page_index + 1)

    def previous_page(self) -> None:
        self.set_page(self.query.value.page_index - 1)

    def set_page_size(self, size: int) -> None:
        if size <= 0:
            raise ValueError(f"page size must be positive, got {size}")
        self._set_query(self.query.value.with_page_size(size))

    def _apply_search(self, text: str) -> None:
        self._set_query(self.query.value.with_search(text))

    def _set_query(self, query: QueryState) -> None:
        if query == self.query.value:
            return
        self.query.value = query
        self.edit_session.value = None
        self._request_page()

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------
    def _request_page(self) -> asyncio.Task:
        self._version += 1
        version = self._version
        self.loading.value = True
        return self.spawn(self._fetch(version, self.query.value), name=f"grid-fetch-{version}")

    async def _fetch(self, version: int, query: QueryState) -> None:
        _logger.debug("Fetching page v%d: %s", version, query)
        try:
            page = await self._source.fetch_page(
                self._owner_id,
                query.page_index,
                query.page_size,
                dict(query.filters),
                query.sort_key,
                query.sort_direction.ascending,
                query.search_text,
            )
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            if version != self._version:
                _logger.debug("Dropping stale failure for v%d: %s", version, exc)
                return
            self.loading.value = False
            message = describe_error(exc)
            self.error.value = message
            _logger.error("Failed to load customers page %d: %s", query.page_index, exc)
            self.error_occurred.emit(message)
            self.report_error(exc, context={"owner_id": self._owner_id, "page": query.page_index})
            return

        if version != self._version:
            _logger.debug("Dropping stale page for v%d (latest v%d)", version, self._version)
            return

        clamped = query.clamped(page.total_count)
        if clamped is not query:
            # The result set shrank under the current page; jump to its last page.
            _logger.info("Page %d out of range, clamping to %d", query.page_index, clamped.page_index)
            self.query.value = clamped
            self._request_page()
            return

        self._apply_page(query, page)

    def _apply_page(self, query: QueryState, page: Page) -> None:
        self._loaded_query = query
        self.loading.value = False
        self.error.value = None
        self.rows.value = page.rows
        self.total_count.value = page.total_count
        self.page_count.value = page.total_pages(query.page_size)
        self.page_loaded.emit(page)
        self._event_bus.publish(PageLoadedEvent(
            owner_id=self._owner_id,
            page_index=query.page_index,
            row_count=len(page.rows),
            total_count=page.total_count,
        ))

    async def _load_database_count(self) -> None:
        try:
            count = await self._source.count_all(self._owner_id)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            _logger.warning("Failed to count customers for %s: %s", self._owner_id, exc)
            return
        self.database_count.value = count

    def load_facets(self) -> None:
        for facet in self._dynamic_facets:
            self.spawn(self._load_facet(facet), name=f"grid-facet-{facet}")

    async def _load_facet(self, facet: str) -> None:
        try:
            values = tuple(await self._source.list_facet_values(self._owner_id, facet))
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            # Filter dropdowns are optional; the grid stays usable without them.
            _logger.warning("Failed to load values for facet %s: %s", facet, exc)
            values = ()
        facets = dict(self.facet_values.value)
        facets[facet] = values
        self.facet_values.value = facets

    # ------------------------------------------------------------------
    # Derived view state
    # ------------------------------------------------------------------
    @property
    def loaded_query(self) -> Optional[QueryState]:
        """QueryState of the last successfully applied page."""
        return self._loaded_query

    @property
    def empty_state(self) -> str:
        if self._loaded_query is None:
            return EMPTY_STATE_ERROR if self.error.value else EMPTY_STATE_LOADING
        if self.loading.value and not self.rows.value:
            return EMPTY_STATE_LOADING
        if self.total_count.value == 0 and self._loaded_query.is_default:
            return EMPTY_STATE_EMPTY
        if not self.rows.value:
            return EMPTY_STATE_NO_MATCHES
        return EMPTY_STATE_ROWS

    @property
    def has_active_filters(self) -> bool:
        return bool(self.query.value.filters)

    @property
    def record_label(self) -> str:
        total = self.total_count.value
        database = self.database_count.value
        if database is None:
            return f"{total:,}"
        if total != database:
            return f"{total:,} / {database:,}"
        return f"{database:,}"

    def row(self, row_id: str) -> Optional[CustomerRow]:
        for candidate in self.rows.value:
            if candidate.key == row_id:
                return candidate
        return None

    # ------------------------------------------------------------------
    # Inline editing
    # ------------------------------------------------------------------
    def is_editing(self, row_id: str) -> bool:
        session = self.edit_session.value
        return session is not None and session.target_row_id == row_id

    def start_edit(self, row_id: str) -> bool:
        """Open an edit session; no-op while another session is open."""
        if self.edit_session.value is not None:
            _logger.debug("Ignoring edit of %s: another row is being edited", row_id)
            return False
        original = self.row(row_id)
        if original is None:
            _logger.debug("Ignoring edit of %s: not on the current page", row_id)
            return False
        self.edit_session.value = EditSession(target_row_id=row_id, original=original)
        return True

    def edit_field(self, name: str, value: Any) -> bool:
        session = self.edit_session.value
        if session is None or session.committing:
            return False
        if field_key(name) in ("id", "row_id", "extra"):
            _logger.warning("Field %s is not editable", name)
            return False
        self.edit_session.value = session.with_field(name, value)
        return True

    def cancel_edit(self) -> None:
        self.edit_session.value = None

    def commit_edit(self) -> asyncio.Task:
        """Send the draft to the source; resolves to ``True`` on success."""
        return self.spawn(self._commit(self.edit_session.value), name="grid-commit")

    async def _commit(self, session: Optional[EditSession]) -> bool:
        if session is None or session.committing:
            return False
        if not session.dirty:
            self.edit_session.value = None
            return True

        committing = replace(session, committing=True, error=None)
        self.edit_session.value = committing
        try:
            partial = validate_customer_edit(session.draft)
            updated = await self._source.update_row(self._owner_id, session.target_row_id, partial)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            if self.edit_session.value is committing:
                self.edit_session.value = replace(session, error=exc, committing=False)
            message = describe_error(exc)
            _logger.error("Failed to update customer %s: %s", session.target_row_id, exc)
            self.edit_failed.emit(message)
            self.report_error(exc, context={"owner_id": self._owner_id, "row_id": session.target_row_id})
            return False

        if self.edit_session.value is committing:
            self.edit_session.value = None
        self.row_committed.emit(updated)
        self._event_bus.publish(CustomerUpdatedEvent(
            owner_id=self._owner_id,
            row_id=session.target_row_id,
            changed_fields=tuple(sorted(k for k in partial if k in EDITABLE_FIELDS)),
        ))
        # Server-side derived values only show up after a refetch.
        self._request_page()
        return True

    # -- EventBus handlers --------------------------------------------------

    def _on_customers_imported(self, event: CustomersImportedEvent) -> None:
        if event.owner_id == self._owner_id:
            self.spawn(self._load_database_count(), name="grid-count")
            self.refresh()


