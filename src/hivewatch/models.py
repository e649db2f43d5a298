"""Shared data models for hivewatch.

All chain quantities (VESTS, HP, HIVE, prices) use Decimal. Display strings
are produced by hivewatch.formatting at the edge, never stored here.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

NULL_SIGNING_KEY = "STM1111111111111111111111111111111114T1Anm"
MAX_WITNESS_VOTES = 30


def profile_image_url(account: str) -> str:
    """Avatar URL served by the Hive image proxy."""
    return f"https://images.hive.blog/u/{account}/avatar"


class WitnessStatus(str, Enum):
    """Block production status of a witness."""

    ACTIVE = "active"
    STALE = "stale"
    DISABLED = "disabled"


@dataclass
class HiveNode:
    """A public API node as reported by the beacon scorer."""

    url: str
    name: str
    version: str = "-"
    last_update: str = "unknown"
    score: int = 0
    success: int | None = None
    fail: int | None = None

    @property
    def tests(self) -> str:
        if self.success is None or self.fail is None:
            return "-"
        return f"{self.success} / {self.success + self.fail}"


@dataclass
class NetworkStats:
    """Headline chain statistics."""

    head_block: int | None
    tx_per_day: int | None
    active_witnesses: int | None
    hive_price: Decimal | None

    @classmethod
    def unknown(cls) -> "NetworkStats":
        return cls(head_block=None, tx_per_day=None, active_witnesses=None, hive_price=None)


@dataclass
class Witness:
    """A witness row, ranked by approval votes."""

    id: int
    name: str
    rank: int
    url: str
    votes: Decimal  # raw VESTS * 10^6, as reported by condenser_api
    votes_hp: Decimal
    last_confirmed_block: int
    missed_blocks: int
    running_version: str
    signing_key: str
    price_feed: Decimal
    created: str
    status: WitnessStatus
    hbd_interest_rate: Decimal | None = None  # percent
    description: str | None = None

    @property
    def profile_image(self) -> str:
        return profile_image_url(self.name)

    @property
    def is_active(self) -> bool:
        return self.status is WitnessStatus.ACTIVE


@dataclass
class Account:
    """Snapshot of the account fields the dashboard reads."""

    name: str
    vesting_shares: Decimal = Decimal("0")
    delegated_vesting_shares: Decimal = Decimal("0")
    received_vesting_shares: Decimal = Decimal("0")
    proxy: str | None = None
    witness_votes: list[str] = field(default_factory=list)
    proxied_vsf_votes: list[Decimal] = field(default_factory=list)
    posting_rewards: Decimal = Decimal("0")  # HP * 1000
    curation_rewards: Decimal = Decimal("0")  # HP * 1000
    posting_json_metadata: str = ""
    created: str = ""

    @property
    def effective_vests(self) -> Decimal:
        return self.vesting_shares + self.received_vesting_shares - self.delegated_vesting_shares


@dataclass
class AccountRewards:
    """Lifetime author and curation rewards in HP."""

    author_hp: Decimal = Decimal("0")
    curation_hp: Decimal = Decimal("0")
    author_percentage: Decimal = Decimal("0")
    curation_percentage: Decimal = Decimal("0")

    @property
    def total_hp(self) -> Decimal:
        return self.author_hp + self.curation_hp


@dataclass
class UserData:
    """Everything the user stats page shows for one account."""

    username: str
    hive_power: Decimal | None = None
    effective_hive_power: Decimal | None = None
    proxied_hive_power: Decimal | None = None
    free_witness_votes: int | None = None
    witness_votes: list[str] = field(default_factory=list)
    proxy: str | None = None
    rewards: AccountRewards | None = None

    @property
    def profile_image(self) -> str:
        return profile_image_url(self.username)


@dataclass
class ProxyAccount:
    """An account that proxies its witness votes to another account."""

    username: str
    hive_power: Decimal

    @property
    def profile_image(self) -> str:
        return profile_image_url(self.username)


@dataclass
class ProxyChain:
    """Result of walking an account's proxy back-references."""

    account: str
    hops: list[str] = field(default_factory=list)
    cycle: bool = False
    truncated: bool = False

    @property
    def final_account(self) -> str:
        """Account whose witness votes are actually counted."""
        return self.hops[-1] if self.hops else self.account


@dataclass
class WitnessVoter:
    """One voter of a witness with own and proxied power."""

    username: str
    hive_power: Decimal
    proxied_hive_power: Decimal = Decimal("0")
    total_hive_power: Decimal = Decimal("0")
    percentage: Decimal | None = None

    @property
    def profile_image(self) -> str:
        return profile_image_url(self.username)


@dataclass
class VoterStatistics:
    """Summary of a witness's voter list."""

    voter_count: int = 0
    total_hive_power: Decimal = Decimal("0")
    average_hive_power: Decimal = Decimal("0")
    top_voter_percentage: Decimal | None = None
    proxy_voter_count: int = 0


@dataclass
class WitnessSchedule:
    """Derived block production schedule for one shuffle round."""

    current_witness: str
    current_block: int
    next_shuffle_block: int
    shuffle: list[str]
    upcoming: list[str]
    upcoming_top: list[str]
    upcoming_backup: list[tuple[str, int]]  # (witness, 1-based position in upcoming)
    backup_witnesses: list[str]
    top_witnesses: list[str]
    all_scheduled: list[str]

    @property
    def blocks_until_shuffle(self) -> int:
        return max(self.next_shuffle_block - self.current_block, 0)


@dataclass
class VoteOperation:
    """A historical account_witness_vote operation."""

    block_num: int
    voter: str
    witness: str
    approve: bool
    timestamp: str | None = None
    vests: Decimal | None = None  # raw VESTS * 10^6 when the source provides it


@dataclass
class VoteCount:
    """Approval/removal tally over a window."""

    approvals: int = 0
    removals: int = 0

    @property
    def net(self) -> int:
        return self.approvals - self.removals


@dataclass
class DailyVoteCount:
    """Votes and HP movement aggregated per UTC day."""

    date: str
    approvals: int = 0
    removals: int = 0
    hp_gained: Decimal = Decimal("0")
    hp_lost: Decimal = Decimal("0")

    @property
    def net(self) -> int:
        return self.approvals - self.removals

    @property
    def hp_net_change(self) -> Decimal:
        return self.hp_gained - self.hp_lost


@dataclass
class AccountOperation:
    """One entry of an account's operation history."""

    block: int
    timestamp: str
    operation: str
    data: dict = field(default_factory=dict)


@dataclass
class WitnessVoteChange:
    """An account approving or removing a witness vote."""

    timestamp: str
    witness: str
    approve: bool
    block: int
