from .bus import Event, EventBus, Subscription
from .grid_events import (
    CustomersImportedEvent,
    CustomerUpdatedEvent,
    DomainEvent,
    HierarchyInvalidatedEvent,
    HierarchyLevelLoadedEvent,
    PageLoadedEvent,
)

__all__ = [
    "CustomerUpdatedEvent",
    "CustomersImportedEvent",
    "DomainEvent",
    "Event",
    "EventBus",
    "HierarchyInvalidatedEvent",
    "HierarchyLevelLoadedEvent",
    "PageLoadedEvent",
    "Subscription",
]
