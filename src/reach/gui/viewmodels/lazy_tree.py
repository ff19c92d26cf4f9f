"""Pure Python hierarchy report ViewModel, no Qt dependency.

Holds a partially materialised branch → route → user → week → day tree.
Children of a node are fetched the first time the node is expanded and then
kept, so collapsing and re-expanding never refetches.

Nodes live in a flat arena keyed by id with a separate parent → child-ids
index; ``UNLOADED`` in that index means "never fetched" while an empty tuple
means "fetched, no children".
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterator, Optional, Sequence, Union

from reach.domain.models import UNLOADED, LevelType, TreeNode
from reach.domain.models.hierarchy import Unloaded
from reach.domain.sources import HierarchySource
from reach.errors import describe_error
from reach.errors.handler import ErrorHandler
from reach.events.bus import EventBus
from reach.events.grid_events import HierarchyInvalidatedEvent, HierarchyLevelLoadedEvent
from reach.gui.viewmodels.base import BaseViewModel
from reach.gui.viewmodels.signal import ObservableProperty, Signal

_logger = logging.getLogger(__name__)

ChildIds = Union[tuple[str, ...], Unloaded]

CHILDREN_UNLOADED = "unloaded"
CHILDREN_LOADING = "loading"
CHILDREN_EMPTY = "empty"
CHILDREN_LOADED = "loaded"


class LazyTreeViewModel(BaseViewModel):
    """Drill-down report tree ViewModel, pure Python."""

    def __init__(
        self,
        hierarchy_source: HierarchySource,
        owner_id: str,
        event_bus: EventBus,
        *,
        branch_ids: Optional[Sequence[str]] = None,
        error_handler: Optional[ErrorHandler] = None,
    ) -> None:
        super().__init__(error_handler)
        self._source = hierarchy_source
        self._owner_id = owner_id
        self._event_bus = event_bus
        self._branch_ids: Optional[tuple[str, ...]] = tuple(branch_ids) if branch_ids else None

        # Arena
        self._nodes: Dict[str, TreeNode] = {}
        self._children: Dict[str, ChildIds] = {}
        self._roots: tuple[str, ...] = ()
        self._expanded: set[str] = set()
        self._inflight: Dict[str, asyncio.Task] = {}
        self._root_version = 0
        self._tree_version = 0
        self._roots_loaded = False

        # Observable properties
        self.loading = ObservableProperty(False)
        self.error: ObservableProperty[Optional[str]] = ObservableProperty(None)
        self.revision = ObservableProperty(0)

        # Signals
        self.tree_reset = Signal()
        self.node_children_loaded = Signal()  # emits (node_id)
        self.expansion_changed = Signal()  # emits (node_id, expanded)
        self.error_occurred = Signal()  # emits (message)

        self.subscribe_event(event_bus, HierarchyInvalidatedEvent, self._on_invalidated)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    @property
    def owner_id(self) -> str:
        return self._owner_id

    @property
    def branch_ids(self) -> Optional[tuple[str, ...]]:
        return self._branch_ids

    def start(self) -> asyncio.Task:
        return self.load_root()

    def set_branch_ids(self, branch_ids: Optional[Sequence[str]]) -> asyncio.Task:
        """Restrict the report to *branch_ids* and reload from the root."""
        self._branch_ids = tuple(branch_ids) if branch_ids else None
        return self.load_root()

    def load_root(self) -> asyncio.Task:
        """Fetch the BRANCH level and replace the whole tree with it."""
        self._root_version += 1
        version = self._root_version
        self.loading.value = True
        return self.spawn(self._load_root(version), name=f"tree-root-{version}")

    async def _load_root(self, version: int) -> None:
        try:
            nodes = await self._source.fetch_level(
                self._owner_id, LevelType.BRANCH, None, self._branch_ids
            )
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            if version != self._root_version:
                return
            self.loading.value = False
            self._fail(exc, "Failed to load hierarchy root")
            return

        if version != self._root_version:
            _logger.debug("Dropping stale root load v%d", version)
            return

        self._nodes.clear()
        self._children.clear()
        self._expanded.clear()
        self._inflight.clear()
        self._tree_version = version
        self._roots = self._store(nodes, LevelType.BRANCH)
        self._roots_loaded = True
        self.loading.value = False
        self.error.value = None
        self.tree_reset.emit()
        self._bump()
        self._publish_level(None, LevelType.BRANCH, self._roots)

    def toggle_expand(self, node_id: str) -> Optional[asyncio.Task]:
        """Collapse an expanded node or expand a collapsed one.

        Expanding a node whose children were never fetched starts the fetch
        and returns its task; a second call while that fetch is in flight
        returns the same task instead of starting another one.  Returns
        ``None`` when nothing has to be fetched.
        """
        pending = self._inflight.get(node_id)
        if pending is not None:
            return pending

        node = self._nodes.get(node_id)
        if node is None:
            _logger.warning("Cannot toggle unknown node %s", node_id)
            return None

        if node_id in self._expanded:
            self._expanded.discard(node_id)
            self.expansion_changed.emit(node_id, False)
            self._bump()
            return None

        if not self.can_expand(node_id):
            return None

        self._expanded.add(node_id)
        self.expansion_changed.emit(node_id, True)
        self._bump()

        if self._children.get(node_id, UNLOADED) is not UNLOADED:
            return None

        task = self.spawn(self._load_children(node, self._tree_version), name=f"tree-level-{node_id}")
        self._inflight[node_id] = task
        return task

    async def _load_children(self, node: TreeNode, tree_version: int) -> None:
        """Fetch one level under *node* for the tree built by *tree_version*.

        Only a root load that lands replaces the tree, so a reload that is
        still pending or has failed leaves this fetch to complete normally.
        """
        level = node.level_type.child_level()
        if level is None:
            return
        try:
            try:
                nodes = await self._source.fetch_level(self._owner_id, level, node.id, self._branch_ids)
            finally:
                self._release(node.id)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            if tree_version != self._tree_version:
                return
            # Children stay UNLOADED so the next expand retries.
            self._expanded.discard(node.id)
            self.expansion_changed.emit(node.id, False)
            self._bump()
            self._fail(exc, f"Failed to load {level.value} level under {node.id}")
            return

        if tree_version != self._tree_version or node.id not in self._nodes:
            _logger.debug("Dropping children of %s from a replaced tree", node.id)
            return

        self._children[node.id] = self._store(nodes, level, parent_id=node.id)
        self.error.value = None
        self.node_children_loaded.emit(node.id)
        self._bump()
        self._publish_level(node.id, level, self._children[node.id])

    def _release(self, node_id: str) -> None:
        # A replacement tree may already hold a newer fetch for the same id.
        if self._inflight.get(node_id) is asyncio.current_task():
            del self._inflight[node_id]

    def _store(
        self,
        nodes: Sequence[TreeNode],
        level: LevelType,
        parent_id: Optional[str] = None,
    ) -> tuple[str, ...]:
        ids: list[str] = []
        for node in nodes:
            if node.level_type is not level:
                _logger.warning(
                    "Skipping node %s: expected level %s, got %s",
                    node.id, level.value, node.level_type.value,
                )
                continue
            if parent_id is not None and node.parent_id not in (None, parent_id):
                _logger.warning("Node %s claims parent %s under %s", node.id, node.parent_id, parent_id)
            self._nodes[node.id] = node
            # DAY nodes are leaves; mark them as fetched-and-empty up front.
            self._children[node.id] = () if level.is_leaf else UNLOADED
            ids.append(node.id)
        return tuple(ids)

    def _fail(self, exc: Exception, summary: str) -> None:
        message = describe_error(exc)
        self.error.value = message
        _logger.error("%s: %s", summary, exc)
        self.error_occurred.emit(message)
        self.report_error(exc, context={"owner_id": self._owner_id})

    def _bump(self) -> None:
        self.revision.value = self.revision.value + 1

    def _publish_level(self, parent_id: Optional[str], level: LevelType, ids: tuple[str, ...]) -> None:
        self._event_bus.publish(HierarchyLevelLoadedEvent(
            owner_id=self._owner_id,
            parent_id=parent_id,
            level=level.value,
            node_ids=ids,
        ))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def roots_loaded(self) -> bool:
        return self._roots_loaded

    def roots(self) -> tuple[TreeNode, ...]:
        return tuple(self._nodes[node_id] for node_id in self._roots)

    def node(self, node_id: str) -> Optional[TreeNode]:
        return self._nodes.get(node_id)

    def children(self, node_id: str) -> Optional[tuple[TreeNode, ...]]:
        """Return the cached children, or ``None`` when never fetched."""
        ids = self._children.get(node_id, UNLOADED)
        if ids is UNLOADED:
            return None
        return tuple(self._nodes[child_id] for child_id in ids)

    def parent(self, node_id: str) -> Optional[TreeNode]:
        node = self._nodes.get(node_id)
        if node is None or node.parent_id is None:
            return None
        return self._nodes.get(node.parent_id)

    def is_expanded(self, node_id: str) -> bool:
        return node_id in self._expanded

    def is_loading(self, node_id: str) -> bool:
        return node_id in self._inflight

    def children_state(self, node_id: str) -> str:
        if node_id in self._inflight:
            return CHILDREN_LOADING
        ids = self._children.get(node_id, UNLOADED)
        if ids is UNLOADED:
            return CHILDREN_UNLOADED
        return CHILDREN_LOADED if ids else CHILDREN_EMPTY

    def can_expand(self, node_id: str) -> bool:
        """``False`` for DAY nodes and for nodes confirmed to be childless."""
        node = self._nodes.get(node_id)
        if node is None or node.level_type.is_leaf:
            return False
        return self.children_state(node_id) != CHILDREN_EMPTY

    def visible_rows(self) -> list[tuple[int, TreeNode]]:
        """Depth-first ``(depth, node)`` pairs for every node currently shown."""
        return list(self._walk(self._roots, 0))

    def _walk(self, ids: Sequence[str], depth: int) -> Iterator[tuple[int, TreeNode]]:
        for node_id in ids:
            yield depth, self._nodes[node_id]
            if node_id in self._expanded:
                child_ids = self._children.get(node_id, UNLOADED)
                if child_ids is not UNLOADED:
                    yield from self._walk(child_ids, depth + 1)

    def total_clients(self) -> int:
        return sum(node.metrics.total_clients for node in self.roots())

    # -- EventBus handlers --------------------------------------------------

    def _on_invalidated(self, event: HierarchyInvalidatedEvent) -> None:
        if event.owner_id == self._owner_id:
            self.load_root()
