"""Tests for JsonRpcChainClient: payloads, result mapping and node fallback."""

import json

import httpx
import pytest

from hivewatch.caching import ExpiringValue
from hivewatch.chain.jsonrpc_client import JsonRpcChainClient
from hivewatch.chain.nodes import NodeDirectory
from hivewatch.config import NodeSettings
from hivewatch.exceptions import NodeUnavailableError, RpcError

BEST = "https://best.node"
DEFAULT = "https://api.hive.blog"


def _client(handler, best: str = BEST) -> JsonRpcChainClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    best_cache: ExpiringValue[str] = ExpiringValue()
    best_cache.set(best)
    nodes = NodeDirectory(http, NodeSettings(default_node=DEFAULT), ExpiringValue(), best_cache)
    return JsonRpcChainClient(http, nodes)


def _result(request: httpx.Request, result) -> httpx.Response:
    body = json.loads(request.content)
    return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})


class TestCall:
    @pytest.mark.asyncio
    async def test_posts_jsonrpc_envelope(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return _result(request, [{"owner": "gtg"}])

        client = _client(handler)
        witnesses = await client.get_witnesses_by_vote("", 5)

        assert witnesses == [{"owner": "gtg"}]
        assert seen[0]["jsonrpc"] == "2.0"
        assert seen[0]["method"] == "condenser_api.get_witnesses_by_vote"
        assert seen[0]["params"] == ["", 5]

    @pytest.mark.asyncio
    async def test_request_ids_increase(self):
        ids = []

        def handler(request: httpx.Request) -> httpx.Response:
            ids.append(json.loads(request.content)["id"])
            return _result(request, {})

        client = _client(handler)
        await client.get_dynamic_global_properties()
        await client.get_witness_schedule()

        assert ids == [1, 2]

    @pytest.mark.asyncio
    async def test_list_witness_votes_uses_database_api(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return _result(request, {"votes": [{"witness": "gtg", "account": "alice"}]})

        client = _client(handler)
        votes = await client.list_witness_votes(["gtg"], 1000)

        assert votes == [{"witness": "gtg", "account": "alice"}]
        assert seen[0]["method"] == "database_api.list_witness_votes"
        assert seen[0]["params"] == {"start": ["gtg"], "limit": 1000, "order": "by_witness_account"}

    @pytest.mark.asyncio
    async def test_get_accounts_empty_skips_call(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        assert await _client(handler).get_accounts([]) == []

    @pytest.mark.asyncio
    async def test_null_witness_is_none(self):
        client = _client(lambda request: _result(request, None))

        assert await client.get_witness_by_account("nobody") is None


class TestFallback:
    @pytest.mark.asyncio
    async def test_http_error_retries_default_node(self):
        hosts = []

        def handler(request: httpx.Request) -> httpx.Response:
            hosts.append(request.url.host)
            if request.url.host == "best.node":
                return httpx.Response(502)
            return _result(request, {"head_block_number": 1})

        props = await _client(handler).get_dynamic_global_properties()

        assert props == {"head_block_number": 1}
        assert hosts == ["best.node", "api.hive.blog"]

    @pytest.mark.asyncio
    async def test_transport_error_retries_default_node(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "best.node":
                raise httpx.ConnectError("refused", request=request)
            return _result(request, {"ok": True})

        assert await _client(handler).get_witness_schedule() == {"ok": True}

    @pytest.mark.asyncio
    async def test_invalid_json_retries_default_node(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "best.node":
                return httpx.Response(200, content=b"<html>maintenance</html>")
            return _result(request, {"ok": True})

        assert await _client(handler).get_witness_schedule() == {"ok": True}

    @pytest.mark.asyncio
    async def test_both_nodes_fail(self):
        hosts = []

        def handler(request: httpx.Request) -> httpx.Response:
            hosts.append(request.url.host)
            return httpx.Response(500)

        with pytest.raises(NodeUnavailableError):
            await _client(handler).get_dynamic_global_properties()
        assert len(hosts) == 2

    @pytest.mark.asyncio
    async def test_default_node_not_retried_twice(self):
        hosts = []

        def handler(request: httpx.Request) -> httpx.Response:
            hosts.append(request.url.host)
            return httpx.Response(500)

        with pytest.raises(NodeUnavailableError):
            await _client(handler, best=DEFAULT).get_dynamic_global_properties()
        assert hosts == ["api.hive.blog"]

    @pytest.mark.asyncio
    async def test_rpc_error_does_not_fall_back(self):
        hosts = []

        def handler(request: httpx.Request) -> httpx.Response:
            hosts.append(request.url.host)
            body = json.loads(request.content)
            return httpx.Response(200, json={
                "jsonrpc": "2.0",
                "id": body["id"],
                "error": {"code": -32602, "message": "Invalid parameters"},
            })

        with pytest.raises(RpcError) as exc_info:
            await _client(handler).get_accounts(["alice"])
        assert exc_info.value.code == -32602
        assert hosts == ["best.node"]
