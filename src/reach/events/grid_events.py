"""Events published by the customer grid and the hierarchy report."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import uuid4


@dataclass(frozen=True)
class DomainEvent:
    """Base for grid and report events; ``owner_id`` scopes them to one company."""

    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=datetime.now)
    owner_id: str = ""


@dataclass(frozen=True)
class CustomerUpdatedEvent(DomainEvent):
    row_id: str = ""
    changed_fields: tuple[str, ...] = ()


@dataclass(frozen=True)
class CustomersImportedEvent(DomainEvent):
    row_count: int = 0


@dataclass(frozen=True)
class PageLoadedEvent(DomainEvent):
    page_index: int = 0
    row_count: int = 0
    total_count: int = 0


@dataclass(frozen=True)
class HierarchyInvalidatedEvent(DomainEvent):
    branch_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class HierarchyLevelLoadedEvent(DomainEvent):
    parent_id: Optional[str] = None
    level: str = ""
    node_ids: tuple[str, ...] = ()
