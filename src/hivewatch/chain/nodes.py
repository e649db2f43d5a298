"""API node discovery via the beacon node scorer.

The beacon publishes every public Hive API node with a health score. The
directory sorts them (score, then version, then name) and picks the best
one for JSON-RPC calls. Both the list and the chosen node are cached in
injected ExpiringValue instances.
"""

import re
from functools import cmp_to_key

import httpx

from hivewatch.caching import ExpiringValue
from hivewatch.config import NodeSettings
from hivewatch.exceptions import UpstreamError
from hivewatch.logging import get_logger
from hivewatch.models import HiveNode
from hivewatch.units import to_decimal

logger = get_logger(__name__)

_VERSION_CHUNK = re.compile(r"(\d+)")


def _version_key(version: str) -> list:
    """Numeric-aware sort key: ``1.27.10`` sorts after ``1.27.9``."""
    return [
        (0, int(chunk), "") if chunk.isdigit() else (1, 0, chunk)
        for chunk in _VERSION_CHUNK.split(version)
        if chunk
    ]


def _compare_nodes(a: HiveNode, b: HiveNode) -> int:
    if a.score != b.score:
        return b.score - a.score
    if a.version != b.version and a.version != "-" and b.version != "-":
        return -1 if _version_key(a.version) > _version_key(b.version) else 1
    return (a.name > b.name) - (a.name < b.name)


def sort_nodes(nodes: list[HiveNode]) -> list[HiveNode]:
    """Sort by score desc, then version desc, then name asc."""
    return sorted(nodes, key=cmp_to_key(_compare_nodes))


def parse_beacon_node(raw: dict) -> HiveNode | None:
    """Map a beacon entry to a HiveNode; entries without an address are dropped."""
    url = raw.get("endpoint") or raw.get("url")
    if not url:
        return None
    success = raw.get("success")
    fail = raw.get("fail")
    return HiveNode(
        url=url,
        name=raw.get("name") or url,
        version=raw.get("version") or "-",
        last_update=raw.get("updated_at") or "unknown",
        score=int(to_decimal(raw.get("score"))),
        success=int(success) if success is not None and fail is not None else None,
        fail=int(fail) if success is not None and fail is not None else None,
    )


def normalize_url(url: str) -> str:
    return url if url.startswith("http") else f"https://{url}"


class NodeDirectory:
    """Lists beacon-scored API nodes and selects the best one.

    Args:
        http: Shared async HTTP client.
        settings: Node settings (default node, beacon URL).
        node_list_cache: Cache for the sorted node list.
        best_node_cache: Cache for the selected node URL.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        settings: NodeSettings,
        node_list_cache: ExpiringValue[list[HiveNode]],
        best_node_cache: ExpiringValue[str],
    ) -> None:
        self._http = http
        self._settings = settings
        self._node_list_cache = node_list_cache
        self._best_node_cache = best_node_cache

    @property
    def default_node(self) -> str:
        return self._settings.default_node

    async def fetch_raw(self) -> list[dict]:
        """Raw beacon payload.

        Raises:
            UpstreamError: On non-2xx responses.
        """
        response = await self._http.get(self._settings.beacon_url)
        if response.is_error:
            raise UpstreamError(self._settings.beacon_url, response.status_code)
        data = response.json()
        return data if isinstance(data, list) else []

    async def list_nodes(self) -> list[HiveNode]:
        """Sorted node list; empty on failure (the failure is not cached)."""
        cached = self._node_list_cache.get()
        if cached:
            return cached
        try:
            raw_nodes = await self.fetch_raw()
        except Exception as e:
            logger.warning("beacon_fetch_failed", error=str(e))
            return []

        nodes = sort_nodes([n for n in (parse_beacon_node(r) for r in raw_nodes) if n])
        if nodes:
            self._node_list_cache.set(nodes)
        logger.debug("beacon_nodes_loaded", count=len(nodes))
        return nodes

    async def best_node(self) -> str:
        """URL of the first node scoring 100, else the first node, else the default."""
        cached = self._best_node_cache.get()
        if cached:
            return cached

        nodes = await self.list_nodes()
        if not nodes:
            return self.default_node

        best = next((n for n in nodes if n.score == 100), nodes[0])
        url = normalize_url(best.url)
        self._best_node_cache.set(url)
        logger.info("hive_node_selected", node=url, score=best.score)
        return url

    def clear(self) -> None:
        """Forget the cached list and selection."""
        self._node_list_cache.invalidate()
        self._best_node_cache.invalidate()
