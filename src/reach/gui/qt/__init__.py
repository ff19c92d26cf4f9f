"""PySide6 adapters for the Reach view-models."""

from .customer_table_model import ColumnSpec, CustomerTableModel, CustomerTableRole, DEFAULT_COLUMNS
from .hierarchy_tree_model import HierarchyTreeModel, HierarchyTreeRole
from .qt_scheduler import QtScheduler

__all__ = [
    "ColumnSpec",
    "CustomerTableModel",
    "CustomerTableRole",
    "DEFAULT_COLUMNS",
    "HierarchyTreeModel",
    "HierarchyTreeRole",
    "QtScheduler",
]
