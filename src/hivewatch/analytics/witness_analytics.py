"""Witness analytics over the JSON-RPC API.

Voting patterns, rank snapshot, vote concentration, proxy delegators and
missed-block reliability. Every query degrades to an empty result or None.
"""

from datetime import datetime, timezone
from decimal import Decimal

from hivewatch.analytics.metrics import (
    co_voted_witnesses,
    missed_blocks_ratio,
    parse_chain_time,
    power_distribution,
)
from hivewatch.analytics.models import (
    MissedBlocksAnalysis,
    ProxyDelegator,
    VotingPowerDistribution,
    WitnessRankData,
    WitnessVotingPattern,
)
from hivewatch.chain.client import ChainClient
from hivewatch.chain.types import parse_account
from hivewatch.concurrency import chunked, run_bounded
from hivewatch.config import FetchSettings
from hivewatch.logging import get_logger
from hivewatch.units import to_decimal

logger = get_logger(__name__)

PATTERN_ACCOUNT_SAMPLE = 50
RANK_SCAN_LIMIT = 200
DELEGATOR_SCAN_LIMIT = 1000


class WitnessAnalytics:
    """Analytics queries for a witness or proxy account.

    Args:
        chain: Hive API client.
        fetch: Batch size and concurrency for account scans.
        clock: Returns the current UTC time; injectable for tests.
    """

    def __init__(self, chain: ChainClient, fetch: FetchSettings | None = None, clock=None) -> None:
        self._chain = chain
        self._fetch = fetch or FetchSettings()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def voting_patterns(self, name: str, sample_size: int = 100) -> WitnessVotingPattern:
        """Witnesses most often co-voted by a sample of ``name``'s voters."""
        try:
            votes = await self._chain.list_witness_votes([name], sample_size)
            voters = [v["account"] for v in votes if v.get("witness") == name]
            if not voters:
                return WitnessVotingPattern(witness=name)
            raw_accounts = await self._chain.get_accounts(voters[:PATTERN_ACCOUNT_SAMPLE])
        except Exception as e:
            logger.warning("voting_patterns_failed", witness=name, error=str(e))
            return WitnessVotingPattern(witness=name)

        accounts = [parse_account(raw) for raw in raw_accounts]
        return WitnessVotingPattern(
            witness=name,
            co_voted=co_voted_witnesses(name, accounts),
            total_voters=len(voters),
            sample_size=len(accounts),
        )

    async def rank_data(self, name: str) -> WitnessRankData | None:
        try:
            witness = await self._chain.get_witness_by_account(name)
            if not witness:
                return None
            ranked = await self._chain.get_witnesses_by_vote("", RANK_SCAN_LIMIT)
        except Exception as e:
            logger.warning("rank_data_failed", witness=name, error=str(e))
            return None

        rank = next((i + 1 for i, w in enumerate(ranked) if w.get("owner") == name), None)
        return WitnessRankData(
            witness=name,
            current_rank=rank,
            current_votes=to_decimal(witness.get("votes")),
            last_block=int(to_decimal(witness.get("last_confirmed_block_num"))),
            version=witness.get("running_version", ""),
            url=witness.get("url", ""),
        )

    async def voting_power_distribution(self, top_n: int = 50) -> VotingPowerDistribution | None:
        try:
            witnesses = await self._chain.get_witnesses_by_vote("", top_n)
        except Exception as e:
            logger.warning("power_distribution_failed", top=top_n, error=str(e))
            return None
        return power_distribution(witnesses)

    async def proxy_delegators(self, proxy: str, limit: int = 100) -> list[ProxyDelegator]:
        """Accounts proxying to ``proxy`` among the first ``limit`` witness voters.

        This is a sample, not an exhaustive search: the chain has no index
        from proxy to delegators.
        """
        try:
            votes = await self._chain.list_witness_votes([""], DELEGATOR_SCAN_LIMIT)
        except Exception as e:
            logger.warning("proxy_delegators_failed", proxy=proxy, error=str(e))
            return []

        candidates = list(dict.fromkeys(v["account"] for v in votes))[:limit]
        batches = chunked(candidates, self._fetch.batch_size)
        results = await run_bounded(
            batches,
            self._chain.get_accounts,
            limit=self._fetch.max_concurrency,
            delay=self._fetch.batch_delay,
        )

        delegators = []
        for result in results:
            if isinstance(result, BaseException):
                logger.warning("proxy_delegator_batch_failed", proxy=proxy, error=str(result))
                continue
            for raw in result:
                account = parse_account(raw)
                if account.proxy == proxy:
                    delegators.append(
                        ProxyDelegator(
                            account=account.name,
                            vesting_shares=account.vesting_shares,
                            created=account.created,
                        )
                    )
        return delegators

    async def missed_blocks(self, name: str) -> MissedBlocksAnalysis | None:
        try:
            witness = await self._chain.get_witness_by_account(name)
        except Exception as e:
            logger.warning("missed_blocks_failed", witness=name, error=str(e))
            return None
        if not witness:
            return None

        created = witness.get("created", "")
        try:
            missed_pct = missed_blocks_ratio(
                int(to_decimal(witness.get("total_missed"))),
                parse_chain_time(created),
                self._clock(),
            )
        except ValueError as e:
            logger.warning("witness_created_unparsable", witness=name, created=created, error=str(e))
            missed_pct = Decimal("0")

        return MissedBlocksAnalysis(
            witness=name,
            total_missed=int(to_decimal(witness.get("total_missed"))),
            last_block=int(to_decimal(witness.get("last_confirmed_block_num"))),
            missed_percentage=missed_pct,
            reliability=Decimal("100") - missed_pct,
            created=created,
        )
