"""Default configuration values for Reach."""

from __future__ import annotations

from typing import Final

# Quiet period after the last keystroke before a search is applied.
SEARCH_DEBOUNCE_MS: Final[int] = 500

DEFAULT_PAGE_SIZE: Final[int] = 50
PAGE_SIZE_OPTIONS: Final[tuple[int, ...]] = (50, 100, 200)

DEFAULT_SORT_KEY: Final[str] = "name"

# Facet value meaning "no filter" for that facet, compared case-insensitively.
ALL_FACET_VALUE: Final[str] = "All"

REGION_FACET: Final[str] = "region"
ALERT_FACET: Final[str] = "alert"
SOURCE_FACET: Final[str] = "source"

MISSING_GPS_ALERT: Final[str] = "Missing GPS"
SCANNER_SOURCE: Final[str] = "Scanner"

# Facets whose value domain is fixed client-side.  Every other facet is
# populated from ``DataSource.list_facet_values``.
STATIC_FACET_VALUES: Final[dict[str, tuple[str, ...]]] = {
    ALERT_FACET: (MISSING_GPS_ALERT,),
    SOURCE_FACET: (SCANNER_SOURCE,),
}
DYNAMIC_FACETS: Final[tuple[str, ...]] = (REGION_FACET,)

# Hierarchy report endpoint served next to the product database.
DEFAULT_REPORTS_BASE_URL: Final[str] = "http://localhost:5001"
REPORTS_HIERARCHY_PATH: Final[str] = "/api/reports/hierarchical"
DEFAULT_REPORTS_TIMEOUT_SEC: Final[float] = 30.0

DATABASE_FILE_NAME: Final[str] = "reach.db"
