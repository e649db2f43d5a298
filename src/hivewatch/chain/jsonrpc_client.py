"""Hive JSON-RPC client over httpx with single-level node fallback.

Every call goes to the node chosen by NodeDirectory. If that node fails at
the transport or HTTP level, the call is repeated once against the default
node. There is no backoff and no further retry: a second failure raises
NodeUnavailableError and the service layer degrades.

A JSON-RPC ``error`` member means the node answered and rejected the call,
so it raises RpcError without falling back.
"""

import itertools
from typing import Any

import httpx

from hivewatch.chain.client import ChainClient
from hivewatch.chain.nodes import NodeDirectory
from hivewatch.exceptions import NodeUnavailableError, RpcError
from hivewatch.logging import get_logger

logger = get_logger(__name__)


class JsonRpcChainClient(ChainClient):
    """Concrete Hive client speaking JSON-RPC 2.0 over HTTPS POST."""

    def __init__(self, http: httpx.AsyncClient, nodes: NodeDirectory) -> None:
        self._http = http
        self._nodes = nodes
        self._ids = itertools.count(1)

    @property
    def nodes(self) -> NodeDirectory:
        return self._nodes

    async def close(self) -> None:
        await self._http.aclose()

    async def call(self, method: str, params: Any = None) -> Any:
        """Call ``method`` on the best node, falling back once to the default node."""
        params = [] if params is None else params
        node = await self._nodes.best_node()
        try:
            return await self._post(node, method, params)
        except (httpx.HTTPError, ValueError) as e:
            default = self._nodes.default_node
            if node == default:
                raise NodeUnavailableError(f"{method} failed on {node}: {e}") from e
            logger.warning("rpc_node_failed_using_default", method=method, node=node, error=str(e))

        try:
            return await self._post(default, method, params)
        except (httpx.HTTPError, ValueError) as e:
            raise NodeUnavailableError(f"{method} failed on {default}: {e}") from e

    async def _post(self, node: str, method: str, params: Any) -> Any:
        payload = {"jsonrpc": "2.0", "method": method, "params": params, "id": next(self._ids)}
        response = await self._http.post(node, json=payload)
        response.raise_for_status()
        body = response.json()
        if not isinstance(body, dict):
            raise ValueError(f"unexpected JSON-RPC body from {node}")
        if body.get("error"):
            error = body["error"]
            if not isinstance(error, dict):
                raise RpcError(method, str(error))
            raise RpcError(method, str(error.get("message", error)), error.get("code"))
        return body.get("result")

    # ──────────────────────────────────────────────
    # ChainClient
    # ──────────────────────────────────────────────

    async def get_dynamic_global_properties(self) -> dict:
        return await self.call("condenser_api.get_dynamic_global_properties") or {}

    async def get_current_median_history_price(self) -> dict:
        return await self.call("condenser_api.get_current_median_history_price") or {}

    async def get_witnesses_by_vote(self, start: str, limit: int) -> list[dict]:
        return await self.call("condenser_api.get_witnesses_by_vote", [start, limit]) or []

    async def get_witness_by_account(self, name: str) -> dict | None:
        return await self.call("condenser_api.get_witness_by_account", [name]) or None

    async def get_accounts(self, names: list[str]) -> list[dict]:
        if not names:
            return []
        return await self.call("condenser_api.get_accounts", [names]) or []

    async def get_witness_schedule(self) -> dict:
        return await self.call("condenser_api.get_witness_schedule") or {}

    async def list_witness_votes(
        self, start: list[str], limit: int, order: str = "by_witness_account"
    ) -> list[dict]:
        result = await self.call(
            "database_api.list_witness_votes",
            {"start": start, "limit": limit, "order": order},
        )
        return (result or {}).get("votes", [])

    async def get_account_history(
        self, account: str, start: int = -1, limit: int = 100
    ) -> list[list]:
        return await self.call("condenser_api.get_account_history", [account, start, limit]) or []
