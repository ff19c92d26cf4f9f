"""Pure Python signal system, no Qt dependency.

Provides ``Signal`` for observer-pattern callbacks and ``ObservableProperty``
for data-binding in ViewModels.  Qt views subscribe to these from the
adapters in :mod:`reach.gui.qt`.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Generic, TypeVar

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class Signal:
    """Observer list with Qt-like ``connect``/``emit``.

    Exceptions raised by individual handlers are logged so that one failing
    view does not prevent the remaining handlers from running.
    """

    def __init__(self) -> None:
        self._handlers: list[Callable] = []

    def connect(self, handler: Callable) -> Callable:
        if handler not in self._handlers:
            self._handlers.append(handler)
        return handler

    def disconnect(self, handler: Callable) -> None:
        self._handlers.remove(handler)

    def disconnect_all(self) -> None:
        self._handlers.clear()

    def emit(self, *args: Any, **kwargs: Any) -> None:
        for handler in list(self._handlers):
            try:
                handler(*args, **kwargs)
            except Exception:
                _logger.exception("Signal handler %r failed", handler)

    @property
    def handler_count(self) -> int:
        return len(self._handlers)


class ObservableProperty(Generic[T]):
    """Value holder emitting ``changed(new_value, old_value)`` on change.

    Equal values (``==``) do not emit, so views only repaint for real state
    transitions.
    """

    def __init__(self, initial_value: T) -> None:
        self._value = initial_value
        self.changed = Signal()

    @property
    def value(self) -> T:
        return self._value

    @value.setter
    def value(self, new_value: T) -> None:
        if self._value != new_value:
            old_value = self._value
            self._value = new_value
            self.changed.emit(new_value, old_value)

    def __repr__(self) -> str:
        return f"ObservableProperty({self._value!r})"
