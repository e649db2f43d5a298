"""Hive chain access layer -- JSON-RPC client and API node selection."""

from hivewatch.chain.client import ChainClient
from hivewatch.chain.jsonrpc_client import JsonRpcChainClient
from hivewatch.chain.nodes import NodeDirectory, sort_nodes
from hivewatch.chain.types import parse_account, witness_description

__all__ = [
    "ChainClient",
    "JsonRpcChainClient",
    "NodeDirectory",
    "parse_account",
    "sort_nodes",
    "witness_description",
]
