from .signal import Signal, ObservableProperty
from .base import BaseViewModel
from .debounce import AsyncioScheduler, Debouncer, Scheduler
from .edit_session import EditSession
from .lazy_tree import LazyTreeViewModel
from .paged_filter_grid import PagedFilterGridViewModel

__all__ = [
    "AsyncioScheduler",
    "BaseViewModel",
    "Debouncer",
    "EditSession",
    "LazyTreeViewModel",
    "ObservableProperty",
    "PagedFilterGridViewModel",
    "Scheduler",
    "Signal",
]
