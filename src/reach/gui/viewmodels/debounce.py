"""Timer scheduling and debouncing for view-models."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional, Protocol

_logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Runs a callback once after a delay expressed in milliseconds."""

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle: ...


class AsyncioScheduler:
    """``Scheduler`` backed by the running asyncio loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(max(0, delay_ms) / 1000.0, callback)


class Debouncer:
    """Delay *callback* until *delay_ms* elapsed without a new trigger.

    Each :meth:`trigger` cancels the pending timer and starts a new one; the
    callback receives the arguments of the most recent trigger.
    """

    def __init__(
        self,
        delay_ms: int,
        callback: Callable[..., None],
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        if delay_ms < 0:
            raise ValueError(f"delay_ms must not be negative, got {delay_ms}")
        self._delay_ms = delay_ms
        self._callback = callback
        self._scheduler = scheduler or AsyncioScheduler()
        self._handle: Optional[TimerHandle] = None
        self._args: tuple[Any, ...] = ()

    @property
    def delay_ms(self) -> int:
        return self._delay_ms

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self, *args: Any) -> None:
        self.cancel()
        self._args = args
        self._handle = self._scheduler.call_later(self._delay_ms, self._fire)

    def flush(self) -> bool:
        """Run the pending callback now; return ``False`` if none was pending."""
        if self._handle is None:
            return False
        self.cancel()
        self._run()
        return True

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self._run()

    def _run(self) -> None:
        args, self._args = self._args, ()
        try:
            self._callback(*args)
        except Exception:
            _logger.exception("Debounced callback %r failed", self._callback)
