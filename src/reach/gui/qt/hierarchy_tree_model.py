"""Qt item model exposing the lazily loaded hierarchy report."""

from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, Optional, Set

from PySide6.QtCore import QAbstractItemModel, QModelIndex, QObject, Qt

from ...domain.models import NodeMetrics, TreeNode
from ..viewmodels.lazy_tree import LazyTreeViewModel


class HierarchyTreeRole(int, Enum):
    """Custom roles exposed by :class:`HierarchyTreeModel`."""

    NODE_ID = Qt.ItemDataRole.UserRole + 1
    LEVEL = Qt.ItemDataRole.UserRole + 2
    CHILDREN_STATE = Qt.ItemDataRole.UserRole + 3


_COLUMNS: tuple[tuple[str, Callable[[NodeMetrics], int]], ...] = (
    ("Clients", lambda m: m.total_clients),
    ("Class A", lambda m: m.class_a_count),
    ("Class B", lambda m: m.class_b_count),
    ("Class C", lambda m: m.class_c_count),
    ("Stores", lambda m: m.stores_count),
    ("Districts", lambda m: m.districts_covered),
    ("Visits", lambda m: m.total_visits),
)


class HierarchyTreeModel(QAbstractItemModel):
    """Tree model over a :class:`LazyTreeViewModel`.

    Index internal pointers are node ids.  Qt asks for children through
    ``canFetchMore``/``fetchMore`` which start the fetch in the view-model;
    loaded children are inserted under their parent without resetting the
    rest of the tree.
    """

    def __init__(self, view_model: LazyTreeViewModel, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._vm = view_model
        # Holds a reference to every id handed out as an internal pointer.
        self._ids: Dict[str, str] = {}
        # Parents whose loaded children are not announced to Qt yet.
        self._inserting: Set[str] = set()
        self._vm.tree_reset.connect(self._on_tree_reset)
        self._vm.node_children_loaded.connect(self._on_children_loaded)
        self._vm.expansion_changed.connect(self._on_expansion_changed)

    def detach(self) -> None:
        self._vm.tree_reset.disconnect(self._on_tree_reset)
        self._vm.node_children_loaded.disconnect(self._on_children_loaded)
        self._vm.expansion_changed.disconnect(self._on_expansion_changed)

    # ------------------------------------------------------------------
    # QAbstractItemModel API
    # ------------------------------------------------------------------
    def columnCount(self, _parent: QModelIndex = QModelIndex()) -> int:  # noqa: N802
        return len(_COLUMNS) + 1

    def rowCount(self, parent: QModelIndex = QModelIndex()) -> int:  # noqa: N802
        if parent.isValid() and parent.column() != 0:
            return 0
        return len(self._child_nodes(parent))

    def index(self, row: int, column: int, parent: QModelIndex = QModelIndex()):  # noqa: N802
        if not self.hasIndex(row, column, parent):
            return QModelIndex()
        children = self._child_nodes(parent)
        if row >= len(children):
            return QModelIndex()
        return self.createIndex(row, column, self._pointer(children[row].id))

    def parent(self, index: QModelIndex) -> QModelIndex:  # type: ignore[override]  # noqa: N802
        node_id = self.node_id(index)
        if node_id is None:
            return QModelIndex()
        parent = self._vm.parent(node_id)
        if parent is None:
            return QModelIndex()
        return self._index_for(parent)

    def hasChildren(self, parent: QModelIndex = QModelIndex()) -> bool:  # noqa: N802
        node_id = self.node_id(parent)
        if node_id is None:
            return bool(self._vm.roots())
        return self._vm.can_expand(node_id)

    def canFetchMore(self, parent: QModelIndex) -> bool:  # noqa: N802
        node_id = self.node_id(parent)
        if node_id is None:
            return False
        return (
            self._vm.can_expand(node_id)
            and self._vm.children(node_id) is None
            and not self._vm.is_loading(node_id)
            and not self._vm.is_expanded(node_id)
        )

    def fetchMore(self, parent: QModelIndex) -> None:  # noqa: N802
        if self.canFetchMore(parent):
            self._vm.toggle_expand(self.node_id(parent))

    def data(self, index: QModelIndex, role: int = Qt.ItemDataRole.DisplayRole):  # noqa: N802
        node_id = self.node_id(index)
        node = self._vm.node(node_id) if node_id is not None else None
        if node is None:
            return None
        if role == Qt.ItemDataRole.DisplayRole:
            if index.column() == 0:
                return node.name or node.id
            return _COLUMNS[index.column() - 1][1](node.metrics)
        if role == HierarchyTreeRole.NODE_ID:
            return node.id
        if role == HierarchyTreeRole.LEVEL:
            return node.level_type.value
        if role == HierarchyTreeRole.CHILDREN_STATE:
            return self._vm.children_state(node.id)
        if role == Qt.ItemDataRole.TextAlignmentRole and index.column() > 0:
            return int(Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignVCenter)
        return None

    def headerData(  # noqa: N802
        self,
        section: int,
        orientation: Qt.Orientation,
        role: int = Qt.ItemDataRole.DisplayRole,
    ):
        if orientation != Qt.Orientation.Horizontal or role != Qt.ItemDataRole.DisplayRole:
            return None
        if section == 0:
            return "Name"
        return _COLUMNS[section - 1][0]

    # ------------------------------------------------------------------
    # Public helpers
    # ------------------------------------------------------------------
    def node_id(self, index: QModelIndex) -> Optional[str]:
        if not index.isValid():
            return None
        pointer = index.internalPointer()
        return pointer if isinstance(pointer, str) else None

    def index_for_node(self, node_id: str) -> QModelIndex:
        node = self._vm.node(node_id)
        if node is None:
            return QModelIndex()
        return self._index_for(node)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _pointer(self, node_id: str) -> str:
        return self._ids.setdefault(node_id, node_id)

    def _child_nodes(self, parent: QModelIndex) -> tuple[TreeNode, ...]:
        node_id = self.node_id(parent)
        if node_id is None:
            return self._vm.roots()
        if node_id in self._inserting:
            return ()
        return self._vm.children(node_id) or ()

    def _index_for(self, node: TreeNode) -> QModelIndex:
        if node.parent_id is None or self._vm.node(node.parent_id) is None:
            siblings = self._vm.roots()
        else:
            siblings = self._vm.children(node.parent_id) or ()
        for row, sibling in enumerate(siblings):
            if sibling.id == node.id:
                return self.createIndex(row, 0, self._pointer(node.id))
        return QModelIndex()

    # ------------------------------------------------------------------
    # View-model listeners
    # ------------------------------------------------------------------
    def _on_tree_reset(self) -> None:
        self.beginResetModel()
        self._ids.clear()
        self.endResetModel()

    def _on_children_loaded(self, node_id: str) -> None:
        parent = self.index_for_node(node_id)
        children = self._vm.children(node_id) or ()
        if not parent.isValid():
            return
        if children:
            self._inserting.add(node_id)
            self.beginInsertRows(parent, 0, len(children) - 1)
            self._inserting.discard(node_id)
            self.endInsertRows()
        else:
            # Childless after all; refresh the expander.
            self.dataChanged.emit(parent, parent)

    def _on_expansion_changed(self, node_id: str, expanded: bool) -> None:
        if expanded:
            return
        index = self.index_for_node(node_id)
        if index.isValid():
            self.dataChanged.emit(index, index)


__all__ = ["HierarchyTreeModel", "HierarchyTreeRole"]
