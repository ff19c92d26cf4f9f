import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from reach.config import DEFAULT_REPORTS_BASE_URL, DEFAULT_REPORTS_TIMEOUT_SEC, REPORTS_HIERARCHY_PATH
from reach.domain.models import LevelType, TreeNode
from reach.domain.sources import HierarchySource, check_level_request
from reach.errors import NodeNotFoundError, TransientFetchError

_logger = logging.getLogger(__name__)


class HttpHierarchySource(HierarchySource):
    """Reads the hierarchical report from the reports HTTP service."""

    def __init__(
        self,
        base_url: str = DEFAULT_REPORTS_BASE_URL,
        timeout: float = DEFAULT_REPORTS_TIMEOUT_SEC,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def fetch_level(
        self,
        owner_id: str,
        level_type: LevelType,
        parent_id: Optional[str],
        branch_ids: Optional[Sequence[str]] = None,
    ) -> Sequence[TreeNode]:
        check_level_request(level_type, parent_id)
        params: Dict[str, Any] = {"company_id": owner_id, "target_level": level_type.value}
        if parent_id is not None:
            params["parent_id"] = parent_id
        if branch_ids:
            params["branch_ids"] = ",".join(branch_ids)

        _logger.debug("GET %s params=%s", REPORTS_HIERARCHY_PATH, params)
        try:
            resp = await self._client.get(REPORTS_HIERARCHY_PATH, params=params)
        except httpx.HTTPError as exc:
            _logger.error("GET %s failed: %s", REPORTS_HIERARCHY_PATH, exc)
            raise TransientFetchError(f"Hierarchy request failed: {exc}") from exc

        if resp.status_code == 404:
            raise NodeNotFoundError(
                f"No {level_type.value} level under {parent_id or owner_id}"
            )
        if resp.status_code >= 400:
            _logger.error("GET %s failed status=%s", REPORTS_HIERARCHY_PATH, resp.status_code)
            raise TransientFetchError(
                f"HTTP {resp.status_code}: {resp.text[:200]}", status_code=resp.status_code
            )

        try:
            payload = resp.json()
        except ValueError as exc:
            raise TransientFetchError("Invalid JSON in hierarchy response", resp.status_code) from exc

        rows = self._rows(payload)
        try:
            nodes = [TreeNode.from_mapping(row) for row in rows]
        except (KeyError, TypeError, ValueError) as exc:
            raise TransientFetchError(f"Malformed hierarchy row: {exc}", resp.status_code) from exc
        _logger.debug("GET %s -> %d %s nodes", REPORTS_HIERARCHY_PATH, len(nodes), level_type.value)
        return nodes

    @staticmethod
    def _rows(payload: Any) -> List[Any]:
        if payload is None:
            return []
        if isinstance(payload, dict) and isinstance(payload.get("data"), list):
            return payload["data"]
        if isinstance(payload, list):
            return payload
        raise TransientFetchError("Unexpected hierarchy response shape")
