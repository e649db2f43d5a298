"""Result types for witness analytics.

to_dict() methods serialise Decimal values as strings for JSON transport.
"""

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass
class CoVotedWitness:
    """A witness that voters of the analysed witness also approve."""

    witness: str
    count: int
    percentage: Decimal  # share of sampled accounts, 1 dp

    def to_dict(self) -> dict:
        return {"witness": self.witness, "count": self.count, "percentage": str(self.percentage)}


@dataclass
class WitnessVotingPattern:
    witness: str
    co_voted: list[CoVotedWitness] = field(default_factory=list)
    total_voters: int = 0
    sample_size: int = 0

    def to_dict(self) -> dict:
        return {
            "witness": self.witness,
            "co_voted": [c.to_dict() for c in self.co_voted],
            "total_voters": self.total_voters,
            "sample_size": self.sample_size,
        }


@dataclass
class WitnessRankData:
    """Current rank snapshot of a witness."""

    witness: str
    current_rank: int | None
    current_votes: Decimal
    last_block: int
    version: str
    url: str

    def to_dict(self) -> dict:
        return {
            "witness": self.witness,
            "current_rank": self.current_rank,
            "current_votes": str(self.current_votes),
            "last_block": self.last_block,
            "version": self.version,
            "url": self.url,
        }


@dataclass
class PowerShare:
    rank: int
    witness: str
    votes: Decimal
    percentage: Decimal  # 2 dp
    last_block: int

    def to_dict(self) -> dict:
        return {
            "rank": self.rank,
            "witness": self.witness,
            "votes": str(self.votes),
            "percentage": str(self.percentage),
            "last_block": self.last_block,
        }


@dataclass
class VotingPowerDistribution:
    """Vote share of the top witnesses and how concentrated it is."""

    distribution: list[PowerShare]
    total_votes: Decimal
    top10_concentration: Decimal
    top20_concentration: Decimal
    witnesses: int

    def to_dict(self) -> dict:
        return {
            "distribution": [s.to_dict() for s in self.distribution],
            "metrics": {
                "total_votes": str(self.total_votes),
                "top10_concentration": str(self.top10_concentration),
                "top20_concentration": str(self.top20_concentration),
                "witnesses": self.witnesses,
            },
        }


@dataclass
class ProxyDelegator:
    account: str
    vesting_shares: Decimal
    created: str

    def to_dict(self) -> dict:
        return {
            "account": self.account,
            "vesting_shares": str(self.vesting_shares),
            "created": self.created,
        }


@dataclass
class MissedBlocksAnalysis:
    """Lifetime missed-block rate, estimated from the witness's age.

    The expected block count assumes one block per 21-slot round since the
    witness was created, which overstates it for backup witnesses.
    """

    witness: str
    total_missed: int
    last_block: int
    missed_percentage: Decimal  # 4 dp
    reliability: Decimal  # 100 - missed_percentage
    created: str

    def to_dict(self) -> dict:
        return {
            "witness": self.witness,
            "total_missed": self.total_missed,
            "last_block": self.last_block,
            "missed_percentage": str(self.missed_percentage),
            "reliability": str(self.reliability),
            "created": self.created,
        }
