"""Service wiring for the Reach console."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from ..config import DATABASE_FILE_NAME
from ..domain.sources import DataSource, HierarchySource
from ..errors.handler import ErrorHandler
from ..events.bus import EventBus
from ..gui.viewmodels.debounce import Scheduler
from ..gui.viewmodels.lazy_tree import LazyTreeViewModel
from ..gui.viewmodels.paged_filter_grid import PagedFilterGridViewModel
from ..infrastructure.db.pool import ConnectionPool
from ..infrastructure.sources import HttpHierarchySource, SQLiteCustomerSource
from ..settings import SettingsManager
from ..utils.logging import get_logger
from .container import Container
from .lifetime import Lifetime


class ViewModelFactory:
    """Builds view-models with the services and settings held by the container."""

    def __init__(self, container: Container):
        self._container = container

    def customer_grid(
        self,
        owner_id: str,
        scheduler: Optional[Scheduler] = None,
    ) -> PagedFilterGridViewModel:
        settings = self._container.resolve(SettingsManager)
        return PagedFilterGridViewModel(
            self._container.resolve(DataSource),
            owner_id,
            self._container.resolve(EventBus),
            page_size=settings.get("grid.page_size"),
            sort_key=settings.get("grid.default_sort_key"),
            debounce_ms=settings.get("grid.search_debounce_ms"),
            scheduler=scheduler,
            error_handler=self._container.resolve(ErrorHandler),
        )

    def hierarchy_tree(
        self,
        owner_id: str,
        branch_ids: Optional[Sequence[str]] = None,
    ) -> LazyTreeViewModel:
        return LazyTreeViewModel(
            self._container.resolve(HierarchySource),
            owner_id,
            self._container.resolve(EventBus),
            branch_ids=branch_ids,
            error_handler=self._container.resolve(ErrorHandler),
        )


def database_path(settings: SettingsManager) -> Path:
    configured = settings.get("database.path")
    if configured:
        return Path(configured)
    return settings.path.parent / DATABASE_FILE_NAME


def bootstrap(container: Container, settings: SettingsManager) -> None:
    """Register all application services in the DI container."""
    container.register_instance(SettingsManager, settings)
    container.register_singleton(EventBus, EventBus)
    container.register_factory(
        ErrorHandler,
        lambda c: ErrorHandler(get_logger(), c.resolve(EventBus)),
        Lifetime.SINGLETON,
    )
    container.register_factory(
        ConnectionPool,
        lambda c: ConnectionPool(database_path(c.resolve(SettingsManager))),
        Lifetime.SINGLETON,
    )
    container.register_factory(
        DataSource,
        lambda c: SQLiteCustomerSource(c.resolve(ConnectionPool)),
        Lifetime.SINGLETON,
    )
    container.register_factory(
        HierarchySource,
        lambda c: HttpHierarchySource(
            base_url=c.resolve(SettingsManager).get("reports.base_url"),
            timeout=c.resolve(SettingsManager).get("reports.timeout_seconds"),
        ),
        Lifetime.SINGLETON,
    )
    container.register_factory(ViewModelFactory, ViewModelFactory, Lifetime.SINGLETON)
