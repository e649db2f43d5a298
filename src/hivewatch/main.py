"""Entry point for the Hive witness dashboard service.

Wires all components together and serves the JSON API with uvicorn. The
services are built before the server starts and handed to FastAPI's
lifespan, which stores them on app.state and closes the HTTP clients on
shutdown.

Component wiring order (in _build_components):
1. AppSettings (configuration)
2. Logging setup
3. HTTP clients (JSON-RPC/beacon, HAFBE, HAF-SQL)
4. Caches (node list, best node, VESTS/HP ratio)
5. NodeDirectory and JsonRpcChainClient
6. VestsRatioProvider
7. Witness, account, voter, activity and schedule services
8. WitnessAnalytics

With DASHBOARD_ENABLED=false the service logs a one-off network and
schedule snapshot instead of serving the API.
"""

import asyncio
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Any

import httpx
import uvicorn
from fastapi import FastAPI

from hivewatch.analytics.witness_analytics import WitnessAnalytics
from hivewatch.caching import ExpiringValue
from hivewatch.chain.jsonrpc_client import JsonRpcChainClient
from hivewatch.chain.nodes import NodeDirectory
from hivewatch.config import AppSettings
from hivewatch.formatting import format_price, format_time_to_block
from hivewatch.haf.hafbe import HafbeClient
from hivewatch.haf.hafsql import HafSqlClient
from hivewatch.logging import get_logger, setup_logging
from hivewatch.models import HiveNode
from hivewatch.services.accounts import AccountService
from hivewatch.services.activity import ActivityService
from hivewatch.services.schedule import ScheduleService
from hivewatch.services.voters import VoterService
from hivewatch.services.witnesses import WitnessService
from hivewatch.units import VestsRatioProvider


def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build all service components from settings.

    Creates the full dependency graph: HTTP clients, caches, node
    directory, chain client, ratio provider, services and analytics.
    Nothing is fetched here; every upstream call is made lazily.
    """
    timeout = httpx.Timeout(settings.node.request_timeout)
    rpc_http = httpx.AsyncClient(timeout=timeout)
    hafbe_http = httpx.AsyncClient(base_url=settings.haf.hafbe_url, timeout=timeout)
    hafsql_http = httpx.AsyncClient(base_url=settings.haf.hafsql_url, timeout=timeout)

    node_list_cache: ExpiringValue[list[HiveNode]] = ExpiringValue(settings.cache.node_ttl_seconds)
    best_node_cache: ExpiringValue[str] = ExpiringValue(settings.cache.node_ttl_seconds)
    ratio_cache: ExpiringValue[Decimal] = ExpiringValue(settings.cache.ratio_ttl_seconds)

    nodes = NodeDirectory(rpc_http, settings.node, node_list_cache, best_node_cache)
    chain = JsonRpcChainClient(rpc_http, nodes)
    hafbe = HafbeClient(hafbe_http)
    hafsql = HafSqlClient(hafsql_http)
    ratios = VestsRatioProvider(chain.get_dynamic_global_properties, ratio_cache)

    return {
        "nodes": nodes,
        "chain": chain,
        "hafbe": hafbe,
        "hafsql": hafsql,
        "ratios": ratios,
        "witnesses": WitnessService(chain, ratios, settings.fetch.witness_list_limit),
        "accounts": AccountService(chain, ratios, settings.fetch.proxy_chain_max_depth),
        "voters": VoterService(chain, hafbe, ratios, settings.haf, settings.fetch),
        "activity": ActivityService(hafsql, chain, ratios),
        "schedule": ScheduleService(chain, settings.schedule.upcoming_count),
        "analytics": WitnessAnalytics(chain, settings.fetch),
    }


async def _close_components(components: dict[str, Any]) -> None:
    await components["chain"].close()
    await components["hafbe"].close()
    await components["hafsql"].close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Expose the services on app.state and close HTTP clients on shutdown."""
    logger = get_logger("hivewatch.main")
    components = app.state.components

    app.state.nodes = components["nodes"]
    app.state.witnesses = components["witnesses"]
    app.state.accounts = components["accounts"]
    app.state.voters = components["voters"]
    app.state.activity = components["activity"]
    app.state.schedule = components["schedule"]
    app.state.analytics = components["analytics"]
    app.state.hafbe = components["hafbe"]

    logger.info("lifespan_started")

    yield

    await _close_components(components)
    logger.info("hivewatch_stopped")


async def _log_snapshot(components: dict[str, Any]) -> None:
    """Fetch and log network stats and the current schedule once."""
    logger = get_logger("hivewatch.main")
    stats = await components["witnesses"].get_network_stats()
    logger.info(
        "network_snapshot",
        node=await components["nodes"].best_node(),
        head_block=stats.head_block,
        tx_per_day=stats.tx_per_day,
        active_witnesses=stats.active_witnesses,
        hive_price=format_price(stats.hive_price),
    )
    schedule = await components["schedule"].get_schedule()
    if schedule is not None:
        logger.info(
            "schedule_snapshot",
            current_witness=schedule.current_witness,
            upcoming=schedule.upcoming[:5],
            backup_witnesses=schedule.backup_witnesses,
            next_shuffle=format_time_to_block(schedule.blocks_until_shuffle),
        )


async def run() -> None:
    """Run the Hive witness dashboard service.

    When the dashboard is enabled (DASHBOARD_ENABLED=true, the default) the
    JSON API is served by uvicorn with the lifespan managing shutdown.
    Otherwise a one-off snapshot is logged and the clients are closed.
    """
    # 1. Load settings
    settings = AppSettings()

    # 2. Setup logging
    setup_logging(settings.log_level)
    logger = get_logger("hivewatch.main")

    # 3-8. Build all components
    components = _build_components(settings)

    if settings.dashboard.enabled:
        from hivewatch.dashboard.app import create_dashboard_app

        app = create_dashboard_app(lifespan=lifespan)
        app.state.settings = settings
        app.state.components = components

        logger.info(
            "starting_dashboard",
            host=settings.dashboard.host,
            port=settings.dashboard.port,
            default_node=settings.node.default_node,
        )

        config = uvicorn.Config(
            app,
            host=settings.dashboard.host,
            port=settings.dashboard.port,
            log_level="warning",  # Suppress uvicorn access logs
        )
        server = uvicorn.Server(config)
        await server.serve()
    else:
        try:
            await _log_snapshot(components)
        finally:
            await _close_components(components)
            logger.info("hivewatch_stopped")


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
