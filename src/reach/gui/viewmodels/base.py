"""BaseViewModel, pure Python, no Qt dependency.

Provides subscription lifecycle management so that concrete ViewModels can
subscribe to ``EventBus`` events and have them cleaned up automatically via
``dispose()``, plus tracking of the asyncio tasks a ViewModel spawns for its
fetches.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Coroutine, Optional, Type

from reach.errors.handler import ErrorHandler
from reach.events.bus import EventBus, Subscription


class BaseViewModel:
    """ViewModel base class, pure Python, no Qt dependency."""

    def __init__(self, error_handler: Optional[ErrorHandler] = None) -> None:
        self._subscriptions: list[Subscription] = []
        self._tasks: set[asyncio.Task] = set()
        self._error_handler = error_handler
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def subscribe_event(
        self,
        event_bus: EventBus,
        event_type: Type,
        handler: Callable,
    ) -> Subscription:
        """Subscribe to an event type and track the subscription."""
        sub = event_bus.subscribe(event_type, handler)
        self._subscriptions.append(sub)
        return sub

    def spawn(self, coro: Coroutine[Any, Any, Any], name: Optional[str] = None) -> asyncio.Task:
        """Schedule *coro* on the running loop and keep a reference to it.

        Callers never block on the returned task; results are applied by the
        coroutine itself.
        """
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def busy(self) -> bool:
        return any(not task.done() for task in self._tasks)

    async def wait_idle(self) -> None:
        """Wait until every spawned task, including ones spawned meanwhile, finished."""
        while True:
            pending = [task for task in self._tasks if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def report_error(self, error: Exception, context: Optional[dict] = None) -> None:
        if self._error_handler is not None:
            self._error_handler.handle(error, context=context)

    def dispose(self) -> None:
        """Cancel all tracked event subscriptions and in-flight tasks."""
        self._disposed = True
        for sub in self._subscriptions:
            sub.cancel()
        self._subscriptions.clear()
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()


