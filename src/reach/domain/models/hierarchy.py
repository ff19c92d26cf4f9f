"""Hierarchy report nodes (branch, route, user, week, day)."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Mapping, Optional


class LevelType(Enum):
    BRANCH = "BRANCH"
    ROUTE = "ROUTE"
    USER = "USER"
    WEEK = "WEEK"
    DAY = "DAY"

    @property
    def depth(self) -> int:
        return _LEVEL_ORDER.index(self)

    @property
    def is_leaf(self) -> bool:
        return self is LevelType.DAY

    def child_level(self) -> Optional["LevelType"]:
        """Return the level immediately below this one, ``None`` for DAY."""
        index = self.depth + 1
        if index >= len(_LEVEL_ORDER):
            return None
        return _LEVEL_ORDER[index]

    @classmethod
    def parse(cls, value: Any) -> "LevelType":
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().upper())


_LEVEL_ORDER: tuple[LevelType, ...] = (
    LevelType.BRANCH,
    LevelType.ROUTE,
    LevelType.USER,
    LevelType.WEEK,
    LevelType.DAY,
)


@dataclass(frozen=True)
class NodeMetrics:
    """Pre-aggregated KPIs attached to every hierarchy node."""

    total_clients: int = 0
    class_a_count: int = 0
    class_b_count: int = 0
    class_c_count: int = 0
    supermarkets_count: int = 0
    retail_count: int = 0
    hypermarkets_count: int = 0
    minimarkets_count: int = 0
    districts_covered: int = 0
    total_visits: int = 0

    @property
    def stores_count(self) -> int:
        return (
            self.supermarkets_count
            + self.retail_count
            + self.hypermarkets_count
            + self.minimarkets_count
        )

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "NodeMetrics":
        values = {}
        for f in fields(cls):
            raw = payload.get(f.name)
            values[f.name] = int(raw) if raw not in (None, "") else 0
        return cls(**values)


@dataclass(frozen=True)
class TreeNode:
    id: str
    level_type: LevelType
    parent_id: Optional[str] = None
    name: str = ""
    metrics: NodeMetrics = field(default_factory=NodeMetrics)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "TreeNode":
        """Build a node from one row of the hierarchical report endpoint."""
        parent = payload.get("parent_id")
        return cls(
            id=str(payload["id"]),
            level_type=LevelType.parse(payload["level_type"]),
            parent_id=str(parent) if parent not in (None, "") else None,
            name=str(payload.get("name") or ""),
            metrics=NodeMetrics.from_mapping(payload),
        )


class Unloaded:
    """Marker for children that were never fetched."""

    _instance: Optional["Unloaded"] = None

    def __new__(cls) -> "Unloaded":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNLOADED"

    def __bool__(self) -> bool:
        return False


UNLOADED = Unloaded()
