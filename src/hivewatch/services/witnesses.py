"""Witness list, witness profile and network statistics.

Ranks come from position in ``get_witnesses_by_vote``. A witness is active
when its last confirmed block falls inside the last 72 hours of blocks,
disabled when it has published the null signing key, and stale otherwise.
"""

from decimal import ROUND_HALF_UP, Decimal

from hivewatch.chain.client import ChainClient
from hivewatch.chain.types import parse_account, witness_description
from hivewatch.logging import get_logger
from hivewatch.models import NULL_SIGNING_KEY, NetworkStats, Witness, WitnessStatus
from hivewatch.units import VestsRatioProvider, parse_asset, raw_vests_to_hp, to_decimal

logger = get_logger(__name__)

BLOCKS_PER_HOUR = 1200  # 3-second blocks
ACTIVE_WINDOW_BLOCKS = 72 * BLOCKS_PER_HOUR
NETWORK_ACTIVE_WINDOW_BLOCKS = 24 * BLOCKS_PER_HOUR
MAX_WITNESSES_PER_CALL = 1000  # condenser_api.get_witnesses_by_vote limit


def witness_status(signing_key: str, last_block: int, head_block: int) -> WitnessStatus:
    if signing_key == NULL_SIGNING_KEY:
        return WitnessStatus.DISABLED
    if last_block > head_block - ACTIVE_WINDOW_BLOCKS:
        return WitnessStatus.ACTIVE
    return WitnessStatus.STALE


def interest_rate_percent(witness: dict, props: dict) -> Decimal | None:
    """HBD APR proposed by the witness, falling back to the chain-wide rate.

    Both are stored in basis points (2000 = 20.00%).
    """
    witness_props = witness.get("props") or {}
    rate = witness_props.get("hbd_interest_rate")
    if rate is None:
        rate = props.get("hbd_interest_rate")
    if rate is None:
        return None
    return to_decimal(rate) / Decimal("100")


def parse_witness(raw: dict, rank: int, ratio: Decimal, head_block: int) -> Witness:
    """Build a Witness from a condenser_api witness object."""
    votes = to_decimal(raw.get("votes"))
    last_block = int(to_decimal(raw.get("last_confirmed_block_num")))
    signing_key = raw.get("signing_key", "")
    exchange_rate = raw.get("hbd_exchange_rate") or {}
    return Witness(
        id=int(to_decimal(raw.get("id"))),
        name=raw.get("owner", ""),
        rank=rank,
        url=raw.get("url", ""),
        votes=votes,
        votes_hp=raw_vests_to_hp(votes, ratio),
        last_confirmed_block=last_block,
        missed_blocks=int(to_decimal(raw.get("total_missed"))),
        running_version=raw.get("running_version", ""),
        signing_key=signing_key,
        price_feed=parse_asset(exchange_rate.get("base")),
        created=raw.get("created", ""),
        status=witness_status(signing_key, last_block, head_block),
    )


def hive_price(price: dict) -> Decimal | None:
    """USD price of HIVE from a median price feed, None when unusable."""
    try:
        base = parse_asset(price["base"])
        quote = parse_asset(price["quote"])
    except (KeyError, TypeError) as e:
        logger.warning("price_feed_parse_failed", error=str(e))
        return None
    if quote == 0:
        return None
    return base / quote


class WitnessService:
    """Witness-centric queries on top of a ChainClient."""

    def __init__(
        self,
        chain: ChainClient,
        ratios: VestsRatioProvider,
        witness_list_limit: int = 1000,
    ) -> None:
        self._chain = chain
        self._ratios = ratios
        self._witness_list_limit = witness_list_limit

    async def _head_props(self) -> dict:
        """Dynamic global properties, or a zero head block when unavailable."""
        try:
            props = await self._chain.get_dynamic_global_properties()
        except Exception as e:
            logger.warning("global_properties_unavailable", error=str(e))
            return {"head_block_number": 0}
        self._ratios.remember(props)
        return props

    async def _start_witness(self, offset: int) -> str:
        """Owner at rank ``offset``; the next page starts from (and includes) it.

        Raises:
            ValueError: If ``offset`` is beyond what one ranked lookup can reach
                or the ranked list is shorter than ``offset``.
        """
        if offset > MAX_WITNESSES_PER_CALL:
            raise ValueError(f"offset {offset} exceeds {MAX_WITNESSES_PER_CALL}")
        previous = await self._chain.get_witnesses_by_vote("", offset)
        if len(previous) < offset:
            raise ValueError(f"only {len(previous)} ranked witnesses before offset {offset}")
        return previous[-1]["owner"]

    async def list_witnesses(self, offset: int = 0, limit: int = 100) -> list[Witness]:
        """One page of witnesses ranked by votes; empty on failure.

        Paging works by anchoring on the last witness of the previous page,
        because condenser_api has no numeric offset. Both lookups are capped
        at 1000 rows per call, so offsets past 1000 yield an empty page.
        """
        limit = min(limit, MAX_WITNESSES_PER_CALL)
        try:
            if offset > 0:
                start = await self._start_witness(offset)
                # The anchor is returned again as the first row
                raw = await self._chain.get_witnesses_by_vote(
                    start, min(limit + 1, MAX_WITNESSES_PER_CALL)
                )
                raw = raw[1:]
            else:
                raw = await self._chain.get_witnesses_by_vote("", limit)
        except Exception as e:
            logger.warning("witness_list_failed", offset=offset, limit=limit, error=str(e))
            return []

        ratio = await self._ratios.get_ratio()
        props = await self._head_props()
        head_block = int(to_decimal(props.get("head_block_number")))
        return [
            parse_witness(w, offset + index + 1, ratio, head_block)
            for index, w in enumerate(raw[:limit])
        ]

    async def get_rank(self, name: str) -> int | None:
        """1-based vote rank, or None if the witness is outside the ranked list."""
        try:
            ranked = await self._chain.get_witnesses_by_vote("", self._witness_list_limit)
        except Exception as e:
            logger.warning("witness_rank_failed", witness=name, error=str(e))
            return None
        for index, witness in enumerate(ranked):
            if witness.get("owner") == name:
                return index + 1
        return None

    async def get_witness(self, name: str) -> Witness | None:
        """Witness profile with description, rank, status and HBD rate; None if unknown."""
        try:
            raw = await self._chain.get_witness_by_account(name)
        except Exception as e:
            logger.warning("witness_fetch_failed", witness=name, error=str(e))
            return None
        if not raw:
            return None

        description = None
        try:
            accounts = await self._chain.get_accounts([name])
            if accounts:
                description = witness_description(parse_account(accounts[0]))
        except Exception as e:
            logger.warning("witness_account_fetch_failed", witness=name, error=str(e))

        ratio = await self._ratios.get_ratio()
        props = await self._head_props()
        rank = await self.get_rank(name)
        witness = parse_witness(
            raw, rank or 0, ratio, int(to_decimal(props.get("head_block_number")))
        )
        witness.description = description
        witness.hbd_interest_rate = interest_rate_percent(raw, props)
        return witness

    async def get_network_stats(self) -> NetworkStats:
        """Head block, tx/day estimate, witnesses active in 24h and HIVE price."""
        try:
            props = await self._chain.get_dynamic_global_properties()
            self._ratios.remember(props)
            price = await self._chain.get_current_median_history_price()
            witnesses = await self._chain.get_witnesses_by_vote("", self._witness_list_limit)
        except Exception as e:
            logger.warning("network_stats_unavailable", error=str(e))
            return NetworkStats.unknown()

        head_block = int(to_decimal(props.get("head_block_number")))
        threshold = head_block - NETWORK_ACTIVE_WINDOW_BLOCKS
        active = sum(
            1 for w in witnesses if to_decimal(w.get("last_confirmed_block_num")) > threshold
        )
        # Rough throughput estimate from the absolute slot number
        aslot = to_decimal(props.get("current_aslot"))
        tx_per_day = int((aslot / 1440 * 20).to_integral_value(rounding=ROUND_HALF_UP))

        return NetworkStats(
            head_block=head_block,
            tx_per_day=tx_per_day,
            active_witnesses=active,
            hive_price=hive_price(price),
        )
