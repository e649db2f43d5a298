"""Witness vote activity from HAF-SQL and account history from the node.

HAF-SQL indexes operations by block, not by time, so windows are expressed
in blocks (1200 per hour) counted back from the HAF head block.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from hivewatch.chain.client import ChainClient
from hivewatch.haf.hafsql import HafSqlClient
from hivewatch.logging import get_logger
from hivewatch.models import (
    AccountOperation,
    DailyVoteCount,
    VoteCount,
    VoteOperation,
    WitnessVoteChange,
)
from hivewatch.units import VestsRatioProvider, raw_vests_to_hp, to_decimal

logger = get_logger(__name__)

BLOCKS_PER_HOUR = 1200
GENESIS_TIME = datetime(2016, 3, 24, 16, 5, tzinfo=timezone.utc)
BLOCK_SECONDS = 3
WITNESS_VOTE_OP = "account_witness_vote"


def block_date(block_num: int) -> str:
    """UTC calendar day of ``block_num``, assuming a steady 3-second cadence.

    Missed slots make this drift a little behind wall-clock time; it is only
    used for day buckets.
    """
    estimated = GENESIS_TIME + timedelta(seconds=block_num * BLOCK_SECONDS)
    return estimated.date().isoformat()


def parse_vote_operation(raw: dict) -> VoteOperation:
    vests = raw.get("vests")
    return VoteOperation(
        block_num=int(to_decimal(raw.get("block_num"))),
        voter=raw.get("account", ""),
        witness=raw.get("witness", ""),
        approve=bool(raw.get("approve")),
        timestamp=raw.get("timestamp"),
        vests=to_decimal(vests) if vests is not None else None,
    )


def count_votes(votes: list[VoteOperation]) -> VoteCount:
    approvals = sum(1 for v in votes if v.approve)
    return VoteCount(approvals=approvals, removals=len(votes) - approvals)


def daily_vote_counts(votes: list[VoteOperation], ratio: Decimal) -> list[DailyVoteCount]:
    """Bucket votes per UTC day, sorted by date ascending."""
    by_day: dict[str, DailyVoteCount] = {}
    for vote in votes:
        day = block_date(vote.block_num)
        bucket = by_day.setdefault(day, DailyVoteCount(date=day))
        hp = raw_vests_to_hp(vote.vests, ratio) if vote.vests is not None else Decimal("0")
        if vote.approve:
            bucket.approvals += 1
            bucket.hp_gained += hp
        else:
            bucket.removals += 1
            bucket.hp_lost += hp
    return sorted(by_day.values(), key=lambda d: d.date)


def parse_history_entry(entry: list) -> AccountOperation:
    """Map a ``[index, {block, timestamp, op: [name, data]}]`` history entry."""
    body = entry[1]
    name, data = body["op"]
    return AccountOperation(
        block=int(body.get("block", 0)),
        timestamp=body.get("timestamp", ""),
        operation=name,
        data=data,
    )


class ActivityService:
    """Recent witness vote activity and account operation history."""

    def __init__(
        self,
        hafsql: HafSqlClient,
        chain: ChainClient,
        ratios: VestsRatioProvider,
    ) -> None:
        self._hafsql = hafsql
        self._chain = chain
        self._ratios = ratios

    async def get_recent_witness_votes(self, name: str, hours: int = 24) -> list[VoteOperation]:
        """Votes for or against ``name`` in the last ``hours``, newest first."""
        try:
            dgp = await self._hafsql.get_dynamic_global_properties()
            head = int(dgp["block_num"])
            start = head - BLOCKS_PER_HOUR * hours
            raw_ops = await self._hafsql.get_operations_by_range(WITNESS_VOTE_OP, start, head)
        except Exception as e:
            logger.warning("recent_witness_votes_failed", witness=name, hours=hours, error=str(e))
            return []

        votes = [parse_vote_operation(op) for op in raw_ops if op.get("witness") == name]
        votes.sort(key=lambda v: v.block_num, reverse=True)
        logger.debug("recent_witness_votes", witness=name, scanned=len(raw_ops), matched=len(votes))
        return votes

    async def get_vote_trends(self, name: str, days: int = 7) -> list[DailyVoteCount]:
        votes = await self.get_recent_witness_votes(name, days * 24)
        if not votes:
            return []
        ratio = await self._ratios.get_ratio()
        return daily_vote_counts(votes, ratio)

    async def get_recent_vote_count(self, name: str) -> VoteCount:
        return count_votes(await self.get_recent_witness_votes(name, 24))

    async def get_account_operations(
        self,
        account: str,
        limit: int = 100,
        op_type: str | None = None,
    ) -> list[AccountOperation]:
        """Latest ``limit`` history entries of ``account``, optionally of one type."""
        try:
            history = await self._chain.get_account_history(account, -1, limit)
        except Exception as e:
            logger.warning("account_history_failed", account=account, error=str(e))
            return []

        operations = []
        for entry in history:
            try:
                op = parse_history_entry(entry)
            except (IndexError, KeyError, TypeError, ValueError) as e:
                logger.warning("account_history_entry_skipped", account=account, error=str(e))
                continue
            if op_type is None or op.operation == op_type:
                operations.append(op)
        return operations

    async def get_account_witness_vote_history(
        self, account: str, limit: int = 50
    ) -> list[WitnessVoteChange]:
        operations = await self.get_account_operations(account, limit, WITNESS_VOTE_OP)
        return [
            WitnessVoteChange(
                timestamp=op.timestamp,
                witness=op.data.get("witness", ""),
                approve=bool(op.data.get("approve")),
                block=op.block,
            )
            for op in operations
        ]
