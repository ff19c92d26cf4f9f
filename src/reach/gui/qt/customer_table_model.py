"""Qt table model exposing the paged customer grid."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence

from PySide6.QtCore import QAbstractTableModel, QModelIndex, QObject, Qt

from ...domain.models import CustomerRow, SortDirection
from ..viewmodels.edit_session import EditSession
from ..viewmodels.paged_filter_grid import PagedFilterGridViewModel


class CustomerTableRole(int, Enum):
    """Custom roles exposed by :class:`CustomerTableModel`."""

    ROW_ID = Qt.ItemDataRole.UserRole + 1
    FIELD_ERROR = Qt.ItemDataRole.UserRole + 2
    MISSING_GPS = Qt.ItemDataRole.UserRole + 3


@dataclass(frozen=True)
class ColumnSpec:
    key: str
    title: str
    sortable: bool = True


DEFAULT_COLUMNS: tuple[ColumnSpec, ...] = (
    ColumnSpec("name", "Name"),
    ColumnSpec("name_ar", "Arabic Name"),
    ColumnSpec("client_code", "Client Code"),
    ColumnSpec("region", "Region"),
    ColumnSpec("district", "District"),
    ColumnSpec("classification", "Class"),
    ColumnSpec("store_type", "Store Type"),
    ColumnSpec("phone", "Phone"),
    ColumnSpec("lat", "Latitude"),
    ColumnSpec("lng", "Longitude"),
)


class CustomerTableModel(QAbstractTableModel):
    """Read rows from a :class:`PagedFilterGridViewModel`.

    Only the row in the open edit session is editable; its cells show the
    draft values.
    """

    def __init__(
        self,
        view_model: PagedFilterGridViewModel,
        columns: Sequence[ColumnSpec] = DEFAULT_COLUMNS,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._vm = view_model
        self._columns = tuple(columns)
        self._rows: tuple[CustomerRow, ...] = view_model.rows.value
        self._vm.rows.changed.connect(self._on_rows_changed)
        self._vm.edit_session.changed.connect(self._on_session_changed)
        self._vm.query.changed.connect(self._on_query_changed)

    def detach(self) -> None:
        self._vm.rows.changed.disconnect(self._on_rows_changed)
        self._vm.edit_session.changed.disconnect(self._on_session_changed)
        self._vm.query.changed.disconnect(self._on_query_changed)

    # ------------------------------------------------------------------
    # QAbstractTableModel API
    # ------------------------------------------------------------------
    def rowCount(self, parent: QModelIndex = QModelIndex()) -> int:  # noqa: N802
        if parent.isValid():
            return 0
        return len(self._rows)

    def columnCount(self, parent: QModelIndex = QModelIndex()) -> int:  # noqa: N802
        if parent.isValid():
            return 0
        return len(self._columns)

    def data(self, index: QModelIndex, role: int = Qt.ItemDataRole.DisplayRole):  # noqa: N802
        if not index.isValid() or index.row() >= len(self._rows):
            return None
        row = self._rows[index.row()]
        column = self._columns[index.column()]
        session = self._session_for(row)
        if role in (Qt.ItemDataRole.DisplayRole, Qt.ItemDataRole.EditRole):
            value = session.value(column.key) if session else row.get(column.key)
            if role == Qt.ItemDataRole.DisplayRole:
                return "" if value is None else str(value)
            return value
        if role == CustomerTableRole.ROW_ID:
            return row.key
        if role == CustomerTableRole.FIELD_ERROR:
            return session.field_error(column.key) if session else None
        if role == CustomerTableRole.MISSING_GPS:
            return row.is_missing_gps
        if role == Qt.ItemDataRole.ToolTipRole and session is not None:
            return session.field_error(column.key)
        return None

    def setData(self, index: QModelIndex, value: Any, role: int = Qt.ItemDataRole.EditRole) -> bool:  # noqa: N802
        if not index.isValid() or role != Qt.ItemDataRole.EditRole:
            return False
        row = self._rows[index.row()]
        if not self._vm.is_editing(row.key):
            return False
        return self._vm.edit_field(self._columns[index.column()].key, value)

    def flags(self, index: QModelIndex) -> Qt.ItemFlag:
        if not index.isValid():
            return Qt.ItemFlag.NoItemFlags
        base = Qt.ItemFlag.ItemIsEnabled | Qt.ItemFlag.ItemIsSelectable
        if self._vm.is_editing(self._rows[index.row()].key):
            return base | Qt.ItemFlag.ItemIsEditable
        return base

    def headerData(  # noqa: N802
        self,
        section: int,
        orientation: Qt.Orientation,
        role: int = Qt.ItemDataRole.DisplayRole,
    ):
        if role != Qt.ItemDataRole.DisplayRole:
            return None
        if orientation == Qt.Orientation.Vertical:
            return str(self._vm.query.value.offset + section + 1)
        column = self._columns[section]
        query = self._vm.query.value
        if column.key != query.sort_key:
            return column.title
        arrow = "▲" if query.sort_direction is SortDirection.ASC else "▼"
        return f"{column.title} {arrow}"

    def sort(self, column: int, order: Qt.SortOrder = Qt.SortOrder.AscendingOrder) -> None:
        spec = self._columns[column]
        if spec.sortable:
            self._vm.set_sort(spec.key)

    # ------------------------------------------------------------------
    # Public helpers
    # ------------------------------------------------------------------
    def column_key(self, column: int) -> str:
        return self._columns[column].key

    def row_for_index(self, index: QModelIndex) -> Optional[CustomerRow]:
        if not index.isValid() or index.row() >= len(self._rows):
            return None
        return self._rows[index.row()]

    # ------------------------------------------------------------------
    # View-model listeners
    # ------------------------------------------------------------------
    def _session_for(self, row: CustomerRow) -> Optional[EditSession]:
        session = self._vm.edit_session.value
        if session is not None and session.target_row_id == row.key:
            return session
        return None

    def _on_rows_changed(self, rows: tuple[CustomerRow, ...], _old) -> None:
        self.beginResetModel()
        self._rows = rows
        self.endResetModel()

    def _on_session_changed(self, new: Optional[EditSession], old: Optional[EditSession]) -> None:
        for session in (old, new):
            if session is None:
                continue
            for position, row in enumerate(self._rows):
                if row.key == session.target_row_id:
                    self.dataChanged.emit(
                        self.index(position, 0),
                        self.index(position, len(self._columns) - 1),
                    )
                    break

    def _on_query_changed(self, _new, _old) -> None:
        if self._columns:
            self.headerDataChanged.emit(Qt.Orientation.Horizontal, 0, len(self._columns) - 1)


__all__ = ["ColumnSpec", "CustomerTableModel", "CustomerTableRole", "DEFAULT_COLUMNS"]
