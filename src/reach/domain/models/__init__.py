from .customer import EDITABLE_FIELDS, FIELD_NAMES, CustomerRow
from .hierarchy import UNLOADED, LevelType, NodeMetrics, TreeNode, Unloaded
from .query import Page, QueryState, SortDirection, is_all_value, total_pages

__all__ = [
    "CustomerRow",
    "EDITABLE_FIELDS",
    "FIELD_NAMES",
    "LevelType",
    "NodeMetrics",
    "Page",
    "QueryState",
    "SortDirection",
    "TreeNode",
    "UNLOADED",
    "Unloaded",
    "is_all_value",
    "total_pages",
]
