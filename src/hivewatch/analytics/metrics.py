"""Witness analytics calculations.

Pure Decimal functions over already-fetched chain data; WitnessAnalytics
does the fetching.
"""

from collections import Counter
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from hivewatch.analytics.models import CoVotedWitness, PowerShare, VotingPowerDistribution
from hivewatch.models import Account
from hivewatch.units import to_decimal

_HUNDRED = Decimal("100")
_ONE_DP = Decimal("0.1")
_TWO_DP = Decimal("0.01")
_FOUR_DP = Decimal("0.0001")
WITNESSES_PER_ROUND = 21
BLOCK_SECONDS = 3


def co_voted_witnesses(
    witness: str,
    accounts: list[Account],
    top: int = 20,
) -> list[CoVotedWitness]:
    """Witnesses most often approved alongside ``witness`` by ``accounts``.

    Args:
        witness: The analysed witness, excluded from the result.
        accounts: Sampled voters of ``witness``.
        top: Maximum number of entries returned.

    Returns:
        Entries sorted by count descending, first-seen order on ties.
    """
    if not accounts:
        return []

    counts: Counter[str] = Counter()
    for account in accounts:
        counts.update(w for w in account.witness_votes if w != witness)

    sample = Decimal(len(accounts))
    # Counter.most_common keeps insertion order for equal counts
    return [
        CoVotedWitness(
            witness=name,
            count=count,
            percentage=(Decimal(count) / sample * _HUNDRED).quantize(_ONE_DP, rounding=ROUND_HALF_UP),
        )
        for name, count in counts.most_common(top)
    ]


def power_distribution(witnesses: list[dict]) -> VotingPowerDistribution | None:
    """Vote share per witness and top-10/top-20 concentration.

    ``witnesses`` are condenser_api witness objects in vote order. Returns
    None when there are no votes to share out.
    """
    votes = [to_decimal(w.get("votes")) for w in witnesses]
    total = sum(votes, Decimal("0"))
    if total <= 0:
        return None

    shares = [
        PowerShare(
            rank=index + 1,
            witness=w.get("owner", ""),
            votes=vote,
            percentage=(vote / total * _HUNDRED).quantize(_TWO_DP, rounding=ROUND_HALF_UP),
            last_block=int(to_decimal(w.get("last_confirmed_block_num"))),
        )
        for index, (w, vote) in enumerate(zip(witnesses, votes))
    ]
    return VotingPowerDistribution(
        distribution=shares,
        total_votes=total,
        top10_concentration=sum((s.percentage for s in shares[:10]), Decimal("0")),
        top20_concentration=sum((s.percentage for s in shares[:20]), Decimal("0")),
        witnesses=len(shares),
    )


def parse_chain_time(value: str) -> datetime:
    """Parse a chain timestamp (``2016-03-30T00:00:00``, implicitly UTC)."""
    parsed = datetime.fromisoformat(value.rstrip("Z"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def expected_blocks(created: datetime, now: datetime) -> int:
    """Rough count of blocks a witness should have produced since ``created``."""
    seconds = max((now - created).total_seconds(), 0)
    return int(seconds // BLOCK_SECONDS) // WITNESSES_PER_ROUND


def missed_blocks_ratio(total_missed: int, created: datetime, now: datetime) -> Decimal:
    """Missed blocks as a percentage of expected blocks, 4 dp (0 when none expected)."""
    expected = expected_blocks(created, now)
    if expected <= 0:
        return Decimal("0")
    ratio = Decimal(total_missed) / Decimal(expected) * _HUNDRED
    return ratio.quantize(_FOUR_DP, rounding=ROUND_HALF_UP)
