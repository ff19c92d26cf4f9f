from .http_hierarchy_source import HttpHierarchySource
from .sqlite_customer_source import SQLiteCustomerSource

__all__ = ["HttpHierarchySource", "SQLiteCustomerSource"]
