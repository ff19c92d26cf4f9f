import asyncio
import json
import sqlite3
import uuid
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple, Union

from reach.config import (
    ALERT_FACET,
    MISSING_GPS_ALERT,
    SCANNER_SOURCE,
    SOURCE_FACET,
    STATIC_FACET_VALUES,
)
from reach.domain.models import CustomerRow, Page
from reach.domain.models.customer import canonical_field, split_fields
from reach.domain.sources import DataSource
from reach.domain.validation import validate_customer_edit
from reach.errors import RowNotFoundError, TransientFetchError
from reach.infrastructure.db.pool import ConnectionPool
from reach.utils.logging import get_logger

logger = get_logger()

# CustomerRow field -> column.  Fields not listed share the column name.
_COLUMN_FOR_FIELD: Dict[str, str] = {
    "name": "name_en",
    "region": "branch_name",
    "region_code": "branch_code",
}

_COLUMNS: Tuple[str, ...] = (
    "name_en",
    "name_ar",
    "client_code",
    "reach_customer_code",
    "lat",
    "lng",
    "address",
    "phone",
    "district",
    "classification",
    "store_type",
    "vat",
    "buyer_id",
    "branch_name",
    "branch_code",
    "route_name",
    "week",
    "day",
    "user_code",
    "added_by",
)

_SEARCH_COLUMNS: Tuple[str, ...] = ("name_en", "client_code", "name_ar", "phone", "reach_customer_code")


def column_for(name: str) -> str:
    """Resolve a grid sort key or field name to its column."""
    field_name = canonical_field(name)
    column = _COLUMN_FOR_FIELD.get(field_name, field_name)
    if column not in _COLUMNS:
        raise ValueError(f"Unknown customer column: {name}")
    return column


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SQLiteCustomerSource(DataSource):
    """``DataSource`` over the ``normalized_customers`` table.

    SQLite calls block, so every public coroutine runs its query on a worker
    thread through :func:`asyncio.to_thread`.
    """

    def __init__(self, pool: ConnectionPool):
        self._pool = pool
        logger.info("SQLiteCustomerSource created, db_path=%s", pool.db_path)
        self._init_table()
        self._ensure_indices()

    def _init_table(self):
        with self._pool.connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS normalized_customers (
                    id TEXT PRIMARY KEY,
                    company_id TEXT NOT NULL,
                    name_en TEXT,
                    name_ar TEXT,
                    client_code TEXT,
                    reach_customer_code TEXT,
                    lat REAL,
                    lng REAL,
                    address TEXT,
                    phone TEXT,
                    district TEXT,
                    classification TEXT,
                    store_type TEXT,
                    vat TEXT,
                    buyer_id TEXT,
                    branch_name TEXT,
                    branch_code TEXT,
                    route_name TEXT,
                    week TEXT,
                    day TEXT,
                    user_code TEXT,
                    added_by TEXT,
                    is_active INTEGER DEFAULT 1,
                    data TEXT
                )
            """)

    def _ensure_indices(self):
        with self._pool.connection() as conn:
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_customers_company ON normalized_customers(company_id, is_active)"
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_customers_branch ON normalized_customers(company_id, branch_name)"
            )

    # ------------------------------------------------------------------
    # DataSource
    # ------------------------------------------------------------------
    async def fetch_page(
        self,
        owner_id: str,
        page_index: int,
        page_size: int,
        filters: Mapping[str, str],
        sort_key: str,
        sort_ascending: bool,
        search_text: str = "",
    ) -> Page:
        where, params = self._build_where(owner_id, filters, search_text)
        column = column_for(sort_key)
        direction = "ASC" if sort_ascending else "DESC"
        sql = (
            f"SELECT * FROM normalized_customers WHERE {where} "
            f"ORDER BY ({column} IS NULL), {column} {direction}, id ASC "
            "LIMIT ? OFFSET ?"
        )
        count_sql = f"SELECT COUNT(*) FROM normalized_customers WHERE {where}"

        def _run() -> Page:
            with self._pool.connection() as conn:
                total = conn.execute(count_sql, params).fetchone()[0]
                rows = conn.execute(sql, [*params, page_size, page_index * page_size]).fetchall()
            return Page(rows=tuple(self._map_row(row) for row in rows), total_count=total)

        return await self._call(_run, "fetch customers page")

    async def update_row(
        self,
        owner_id: str,
        row_id: str,
        partial_row: Mapping[str, Any],
    ) -> CustomerRow:
        payload = validate_customer_edit(partial_row)
        known, extra = split_fields(payload)
        known.pop("id", None)
        known.pop("row_id", None)
        nested = known.pop("extra", None)
        if isinstance(nested, Mapping):
            extra = {**nested, **extra}
        assignments = {column_for(name): value for name, value in known.items()}

        def _run() -> CustomerRow:
            with self._pool.connection() as conn:
                current = conn.execute(
                    "SELECT data FROM normalized_customers WHERE id = ? AND company_id = ?",
                    (row_id, owner_id),
                ).fetchone()
                if current is None:
                    raise RowNotFoundError(f"Customer {row_id} not found")
                if extra:
                    data = json.loads(current["data"] or "{}")
                    data.update(extra)
                    assignments["data"] = json.dumps(data, ensure_ascii=False)
                if assignments:
                    clause = ", ".join(f"{column} = ?" for column in assignments)
                    conn.execute(
                        f"UPDATE normalized_customers SET {clause} WHERE id = ? AND company_id = ?",
                        [*assignments.values(), row_id, owner_id],
                    )
                row = conn.execute(
                    "SELECT * FROM normalized_customers WHERE id = ?", (row_id,)
                ).fetchone()
            return self._map_row(row)

        return await self._call(_run, "update customer")

    async def list_facet_values(self, owner_id: str, facet_name: str) -> Sequence[str]:
        if facet_name in STATIC_FACET_VALUES:
            return list(STATIC_FACET_VALUES[facet_name])
        try:
            column = column_for(facet_name)
        except ValueError:
            logger.warning("No facet named %s", facet_name)
            return []

        def _run() -> List[str]:
            with self._pool.connection() as conn:
                rows = conn.execute(
                    f"SELECT DISTINCT {column} AS value FROM normalized_customers "
                    f"WHERE company_id = ? AND is_active = 1 AND {column} IS NOT NULL AND {column} != '' "
                    f"ORDER BY {column}",
                    (owner_id,),
                ).fetchall()
            return [row["value"] for row in rows]

        try:
            return await self._call(_run, "list facet values")
        except TransientFetchError as exc:
            logger.warning("Facet %s unavailable: %s", facet_name, exc)
            return []

    async def count_all(self, owner_id: str) -> int:
        def _run() -> int:
            with self._pool.connection() as conn:
                return conn.execute(
                    "SELECT COUNT(*) FROM normalized_customers WHERE company_id = ? AND is_active = 1",
                    (owner_id,),
                ).fetchone()[0]

        return await self._call(_run, "count customers")

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------
    def insert_rows(self, owner_id: str, rows: Iterable[Union[CustomerRow, Mapping[str, Any]]]) -> int:
        """Insert customers for *owner_id*; rows without an id get a new UUID."""
        records = []
        for item in rows:
            row = item if isinstance(item, CustomerRow) else CustomerRow.from_mapping(item)
            row_id = row.row_id or row.id or str(uuid.uuid4())
            values = [self._field_value(row, column) for column in _COLUMNS]
            records.append((row_id, owner_id, *values, json.dumps(dict(row.extra), ensure_ascii=False)))
        if not records:
            return 0
        placeholders = ", ".join("?" for _ in range(len(_COLUMNS) + 3))
        with self._pool.connection() as conn:
            conn.executemany(
                f"INSERT OR REPLACE INTO normalized_customers (id, company_id, {', '.join(_COLUMNS)}, data) "
                f"VALUES ({placeholders})",
                records,
            )
        logger.info("Inserted %d customers for %s", len(records), owner_id)
        return len(records)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    async def _call(self, func, action: str):
        try:
            return await asyncio.to_thread(func)
        except sqlite3.Error as exc:
            logger.error("Failed to %s: %s", action, exc)
            raise TransientFetchError(f"Failed to {action}: {exc}") from exc

    @staticmethod
    def _build_where(
        owner_id: str,
        filters: Mapping[str, str],
        search_text: str,
    ) -> Tuple[str, List[Any]]:
        clauses = ["company_id = ?", "is_active = 1"]
        params: List[Any] = [owner_id]

        search = search_text.strip()
        if search:
            pattern = f"%{_escape_like(search)}%"
            clauses.append(
                "(" + " OR ".join(f"{col} LIKE ? ESCAPE '\\'" for col in _SEARCH_COLUMNS) + ")"
            )
            params.extend([pattern] * len(_SEARCH_COLUMNS))

        for facet, value in filters.items():
            if facet == ALERT_FACET:
                if value == MISSING_GPS_ALERT:
                    clauses.append("(lat IS NULL OR lat = 0)")
                continue
            if facet == SOURCE_FACET:
                if value == SCANNER_SOURCE:
                    clauses.append("added_by LIKE ?")
                    params.append(f"%{SCANNER_SOURCE}%")
                continue
            column = column_for(facet)
            clauses.append(f"{column} = ?")
            params.append(value)

        return " AND ".join(clauses), params

    @staticmethod
    def _field_value(row: CustomerRow, column: str) -> Any:
        for field_name, mapped in _COLUMN_FOR_FIELD.items():
            if mapped == column:
                return getattr(row, field_name)
        return getattr(row, column)

    @staticmethod
    def _map_row(row: sqlite3.Row) -> CustomerRow:
        data = json.loads(row["data"]) if row["data"] else {}
        return CustomerRow(
            id=row["id"],
            row_id=row["id"],
            name=row["name_en"] or "",
            name_ar=row["name_ar"],
            client_code=row["client_code"],
            reach_customer_code=row["reach_customer_code"],
            lat=row["lat"],
            lng=row["lng"],
            address=row["address"],
            phone=row["phone"],
            district=row["district"],
            classification=row["classification"],
            store_type=row["store_type"],
            vat=row["vat"],
            buyer_id=row["buyer_id"],
            region=row["branch_name"] or "Unassigned",
            region_code=row["branch_code"] or "",
            route_name=row["route_name"],
            week=row["week"],
            day=row["day"],
            user_code=row["user_code"],
            added_by=row["added_by"],
            extra=data,
        )
