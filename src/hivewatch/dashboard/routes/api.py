"""JSON API endpoints: network, witnesses, schedule, accounts and analytics."""

from __future__ import annotations

from dataclasses import asdict
from decimal import Decimal
from typing import Any

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from hivewatch.formatting import (
    format_hp,
    format_hp_compact,
    format_number,
    format_percent,
    format_price,
    format_time_to_block,
    time_ago,
)
from hivewatch.models import (
    AccountOperation,
    DailyVoteCount,
    HiveNode,
    NetworkStats,
    ProxyAccount,
    UserData,
    VoteOperation,
    Witness,
    WitnessSchedule,
    WitnessVoter,
)
from hivewatch.services.activity import count_votes
from hivewatch.services.schedule import witness_position
from hivewatch.services.voters import voter_statistics

log = structlog.get_logger(__name__)

router = APIRouter()

MAX_WITNESS_PAGE = 1000
MAX_HISTORY_LIMIT = 1000
MAX_ACTIVITY_HOURS = 24 * 30


def _decimal_to_str(obj: Any) -> Any:
    """Recursively convert Decimal values to strings for JSON serialization."""
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, dict):
        return {k: _decimal_to_str(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_decimal_to_str(item) for item in obj]
    return obj


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


def _not_found(what: str) -> JSONResponse:
    return JSONResponse(content={"error": f"{what} not found"}, status_code=404)


def _node_to_dict(node: HiveNode) -> dict:
    return {
        "url": node.url,
        "name": node.name,
        "version": node.version,
        "last_update": node.last_update,
        "score": node.score,
        "tests": node.tests,
    }


def _network_stats_to_dict(stats: NetworkStats) -> dict:
    return {
        "head_block": stats.head_block,
        "tx_per_day": stats.tx_per_day,
        "active_witnesses": stats.active_witnesses,
        "hive_price": str(stats.hive_price) if stats.hive_price is not None else None,
        "display": {
            "head_block": format_number(stats.head_block) if stats.head_block is not None else "N/A",
            "tx_per_day": format_number(stats.tx_per_day) if stats.tx_per_day is not None else "N/A",
            "hive_price": format_price(stats.hive_price),
        },
    }


def _witness_to_dict(witness: Witness) -> dict:
    data = asdict(witness)
    data["status"] = witness.status.value
    data["profile_image"] = witness.profile_image
    data["is_active"] = witness.is_active
    data["display"] = {
        "votes": format_hp_compact(witness.votes_hp),
        "price_feed": format_price(witness.price_feed),
        "created": time_ago(witness.created),
    }
    return _decimal_to_str(data)


def _voter_to_dict(voter: WitnessVoter) -> dict:
    data = asdict(voter)
    data["profile_image"] = voter.profile_image
    data["display"] = {
        "total_hive_power": format_hp(voter.total_hive_power),
        "percentage": format_percent(voter.percentage),
    }
    return _decimal_to_str(data)


def _proxy_to_dict(proxy: ProxyAccount) -> dict:
    return {
        "username": proxy.username,
        "hive_power": str(proxy.hive_power),
        "profile_image": proxy.profile_image,
    }


def _user_data_to_dict(user: UserData) -> dict:
    data = asdict(user)
    data["profile_image"] = user.profile_image
    if user.rewards is not None:
        data["rewards"]["total_hp"] = user.rewards.total_hp
    return _decimal_to_str(data)


def _schedule_to_dict(schedule: WitnessSchedule) -> dict:
    data = asdict(schedule)
    data["upcoming_backup"] = [
        {"witness": name, "position": position} for name, position in schedule.upcoming_backup
    ]
    data["blocks_until_shuffle"] = schedule.blocks_until_shuffle
    data["time_to_shuffle"] = format_time_to_block(schedule.blocks_until_shuffle)
    return data


def _vote_to_dict(vote: VoteOperation) -> dict:
    return _decimal_to_str(asdict(vote))


def _trend_to_dict(day: DailyVoteCount) -> dict:
    data = asdict(day)
    data["net"] = day.net
    data["hp_net_change"] = day.hp_net_change
    return _decimal_to_str(data)


def _operation_to_dict(op: AccountOperation) -> dict:
    return asdict(op)


# ---------------------------------------------------------------------------
# Network
# ---------------------------------------------------------------------------


@router.get("/health")
async def health() -> JSONResponse:
    return JSONResponse(content={"status": "ok"})


@router.get("/nodes")
async def get_nodes(request: Request, refresh: bool = False) -> JSONResponse:
    """Public API nodes ranked by beacon score, plus the selected node.

    Query params:
        refresh: Drop the cached list and selection before answering.
    """
    nodes = request.app.state.nodes
    if refresh:
        nodes.clear()
        log.info("node_cache_cleared")
    node_list = await nodes.list_nodes()
    best = await nodes.best_node()
    return JSONResponse(content={
        "best_node": best,
        "nodes": [_node_to_dict(n) for n in node_list],
    })


@router.get("/network-stats")
async def get_network_stats(request: Request) -> JSONResponse:
    stats = await request.app.state.witnesses.get_network_stats()
    return JSONResponse(content=_network_stats_to_dict(stats))


# ---------------------------------------------------------------------------
# Witnesses
# ---------------------------------------------------------------------------


@router.get("/witnesses")
async def get_witnesses(request: Request, offset: int = 0, limit: int = 100) -> JSONResponse:
    """Witnesses ranked by votes.

    Query params:
        offset: Number of ranked witnesses to skip, 0-1000 (default 0).
        limit: Page size, 1-1000 (default 100).
    """
    offset = _clamp(offset, 0, MAX_WITNESS_PAGE)
    limit = _clamp(limit, 1, MAX_WITNESS_PAGE)
    witnesses = await request.app.state.witnesses.list_witnesses(offset=offset, limit=limit)
    return JSONResponse(content=[_witness_to_dict(w) for w in witnesses])


@router.get("/witness/{name}")
async def get_witness(request: Request, name: str) -> JSONResponse:
    witness = await request.app.state.witnesses.get_witness(name)
    if witness is None:
        return _not_found(f"Witness {name}")
    return JSONResponse(content=_witness_to_dict(witness))


@router.get("/witness/{name}/voters")
async def get_witness_voters(request: Request, name: str) -> JSONResponse:
    """All voters of a witness with own/proxied HP and share of its votes."""
    voters = await request.app.state.voters.get_witness_voters(name)
    stats = voter_statistics(voters)
    return JSONResponse(content={
        "witness": name,
        "voters": [_voter_to_dict(v) for v in voters],
        "statistics": _decimal_to_str(asdict(stats)),
    })


@router.get("/witness/{name}/proxies")
async def get_witness_proxies(request: Request, name: str) -> JSONResponse:
    proxies = await request.app.state.voters.get_proxy_accounts(name)
    return JSONResponse(content=[_proxy_to_dict(p) for p in proxies])


@router.get("/witness/{name}/activity")
async def get_witness_activity(request: Request, name: str, hours: int = 24) -> JSONResponse:
    """Witness vote operations in the last ``hours`` (1-720), newest first."""
    hours = _clamp(hours, 1, MAX_ACTIVITY_HOURS)
    activity = request.app.state.activity
    votes = await activity.get_recent_witness_votes(name, hours)
    count = count_votes(votes)
    return JSONResponse(content={
        "witness": name,
        "hours": hours,
        "approvals": count.approvals,
        "removals": count.removals,
        "net": count.net,
        "votes": [_vote_to_dict(v) for v in votes],
    })


@router.get("/witness/{name}/trends")
async def get_witness_trends(request: Request, name: str, days: int = 7) -> JSONResponse:
    days = _clamp(days, 1, MAX_ACTIVITY_HOURS // 24)
    trends = await request.app.state.activity.get_vote_trends(name, days)
    return JSONResponse(content=[_trend_to_dict(d) for d in trends])


@router.get("/witness/{name}/missed-blocks")
async def get_witness_missed_blocks(request: Request, name: str) -> JSONResponse:
    analysis = await request.app.state.analytics.missed_blocks(name)
    if analysis is None:
        return _not_found(f"Witness {name}")
    return JSONResponse(content=analysis.to_dict())


@router.get("/witness/{name}/patterns")
async def get_witness_patterns(request: Request, name: str, sample: int = 100) -> JSONResponse:
    """Witnesses most often co-voted by this witness's voters."""
    sample = _clamp(sample, 1, MAX_HISTORY_LIMIT)
    pattern = await request.app.state.analytics.voting_patterns(name, sample)
    return JSONResponse(content=pattern.to_dict())


@router.get("/witness/{name}/rank")
async def get_witness_rank(request: Request, name: str) -> JSONResponse:
    rank = await request.app.state.analytics.rank_data(name)
    if rank is None:
        return _not_found(f"Witness {name}")
    return JSONResponse(content=rank.to_dict())


# ---------------------------------------------------------------------------
# Schedule
# ---------------------------------------------------------------------------


@router.get("/schedule")
async def get_schedule(request: Request, witness: str | None = None) -> JSONResponse:
    """Current producer and upcoming rotation.

    Query params:
        witness: Optional witness to locate in the schedule.
    """
    schedule = await request.app.state.schedule.get_schedule()
    if schedule is None:
        return JSONResponse(
            content={"error": "Witness schedule unavailable"}, status_code=503
        )

    content = _schedule_to_dict(schedule)
    if witness:
        position = witness_position(schedule, witness)
        content["position"] = asdict(position)
        content["position"]["is_scheduled"] = position.is_scheduled
    return JSONResponse(content=content)


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


@router.get("/account/{name}")
async def get_account(request: Request, name: str) -> JSONResponse:
    """Hive Power, witness votes, proxy and rewards of an account."""
    accounts = request.app.state.accounts
    if await accounts.get_account(name) is None:
        return _not_found(f"Account {name}")
    user = await accounts.get_user_data(name)
    return JSONResponse(content=_user_data_to_dict(user))


@router.get("/account/{name}/activity")
async def get_account_activity(
    request: Request, name: str, limit: int = 100, op_type: str | None = None
) -> JSONResponse:
    limit = _clamp(limit, 1, MAX_HISTORY_LIMIT)
    operations = await request.app.state.activity.get_account_operations(name, limit, op_type)
    return JSONResponse(content=[_operation_to_dict(op) for op in operations])


@router.get("/account/{name}/witness-votes")
async def get_account_witness_votes(request: Request, name: str, limit: int = 50) -> JSONResponse:
    """Recent approve/unapprove operations by an account."""
    limit = _clamp(limit, 1, MAX_HISTORY_LIMIT)
    changes = await request.app.state.activity.get_account_witness_vote_history(name, limit)
    return JSONResponse(content=[asdict(c) for c in changes])


@router.get("/account/{name}/proxy-chain")
async def get_proxy_chain(request: Request, name: str) -> JSONResponse:
    chain = await request.app.state.accounts.resolve_proxy_chain(name)
    content = asdict(chain)
    content["final_account"] = chain.final_account
    return JSONResponse(content=content)


@router.get("/account/{name}/delegators")
async def get_proxy_delegators(request: Request, name: str, limit: int = 100) -> JSONResponse:
    limit = _clamp(limit, 1, MAX_HISTORY_LIMIT)
    delegators = await request.app.state.analytics.proxy_delegators(name, limit)
    return JSONResponse(content=[d.to_dict() for d in delegators])


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------


@router.get("/analytics/distribution")
async def get_power_distribution(request: Request, top: int = 50) -> JSONResponse:
    """Vote share and concentration among the top ``top`` witnesses."""
    top = _clamp(top, 1, MAX_WITNESS_PAGE)
    distribution = await request.app.state.analytics.voting_power_distribution(top)
    if distribution is None:
        log.warning("power_distribution_unavailable", top=top)
        return JSONResponse(
            content={"error": "Voting power distribution unavailable"}, status_code=503
        )
    return JSONResponse(content=distribution.to_dict())
