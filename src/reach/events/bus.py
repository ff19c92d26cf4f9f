import logging
import threading
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Type


@dataclass(kw_only=True)
class Event:
    """Base event class."""
    timestamp: datetime = field(default_factory=datetime.now)
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))


@dataclass
class Subscription:
    """Handle returned by subscribe(); can be used to unsubscribe."""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    event_type: Type = Event
    handler: Callable = field(default=lambda e: None)
    active: bool = True

    def cancel(self):
        self.active = False


class EventBus:
    """Synchronous publish/subscribe hub shared by the view-models.

    Handlers run on the publishing thread, in subscription order.  Handlers
    registered for a base class also receive subclasses of that event.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger(__name__)
        self._handlers: Dict[Type, List[Subscription]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, event_type: Type, handler: Callable) -> Subscription:
        sub = Subscription(event_type=event_type, handler=handler)
        with self._lock:
            self._handlers[event_type].append(sub)
        return sub

    def unsubscribe(self, subscription: Subscription):
        subscription.active = False
        with self._lock:
            subs = self._handlers.get(subscription.event_type, [])
            if subscription in subs:
                subs.remove(subscription)

    def publish(self, event) -> int:
        """Deliver *event* to every active handler; return the delivery count."""
        with self._lock:
            subs = [
                sub
                for event_type, registered in self._handlers.items()
                if isinstance(event, event_type)
                for sub in registered
            ]

        delivered = 0
        for sub in subs:
            if not sub.active:
                continue
            try:
                sub.handler(event)
                delivered += 1
            except Exception:
                self._logger.exception("Handler failed for %s", type(event).__name__)
        return delivered

    def subscriber_count(self, event_type: Type) -> int:
        with self._lock:
            return sum(1 for sub in self._handlers.get(event_type, []) if sub.active)
