"""``Scheduler`` implementation backed by ``QTimer``."""

from __future__ import annotations

from typing import Callable, Set

from PySide6.QtCore import QObject, QTimer


class _QtTimerHandle:
    def __init__(self, timer: QTimer, owner: "QtScheduler") -> None:
        self._timer = timer
        self._owner = owner

    def cancel(self) -> None:
        self._timer.stop()
        self._owner._release(self._timer)


class QtScheduler:
    """Run debounce callbacks on the Qt event loop."""

    def __init__(self, parent: QObject | None = None) -> None:
        self._parent = parent
        self._timers: Set[QTimer] = set()

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> _QtTimerHandle:
        timer = QTimer(self._parent)
        timer.setSingleShot(True)

        def _fire() -> None:
            self._release(timer)
            callback()

        timer.timeout.connect(_fire)
        self._timers.add(timer)
        timer.start(max(0, int(delay_ms)))
        return _QtTimerHandle(timer, self)

    @property
    def pending(self) -> int:
        return len(self._timers)

    def _release(self, timer: QTimer) -> None:
        if timer in self._timers:
            self._timers.discard(timer)
            timer.deleteLater()


__all__ = ["QtScheduler"]
