"""Witness block production schedule.

The chain publishes the current round as ``current_shuffled_witnesses``.
Top-20 witnesses each hold a slot every round while backup witnesses rotate
through the remaining slot, so within the shuffle a top witness shows up
more than once and a backup exactly once. That occurrence rule is a display
heuristic observed on mainnet, not a consensus rule.

derive_schedule is pure; ScheduleService fetches its inputs and returns
None on any failure (no retry, no partial schedule).
"""

from collections import Counter
from dataclasses import dataclass

from hivewatch.chain.client import ChainClient
from hivewatch.logging import get_logger
from hivewatch.models import WitnessSchedule

logger = get_logger(__name__)

DEFAULT_UPCOMING_COUNT = 20


def locate_current_index(shuffle: list[str], current_witness: str, current_block: int) -> int:
    """Index of the current producer, or ``current_block mod len`` when not found."""
    try:
        return shuffle.index(current_witness)
    except ValueError:
        return current_block % len(shuffle)


def upcoming_after(shuffle: list[str], index: int, count: int) -> list[str]:
    """The ``count`` entries after ``index``, wrapping around the shuffle."""
    size = len(shuffle)
    return [shuffle[(index + offset) % size] for offset in range(1, count + 1)]


def classify_witnesses(shuffle: list[str]) -> tuple[list[str], list[str]]:
    """Split unique names into (top, backup) by occurrence count, first-seen order."""
    counts = Counter(shuffle)
    unique = list(dict.fromkeys(shuffle))
    top = [name for name in unique if counts[name] > 1]
    backup = [name for name in unique if counts[name] == 1]
    return top, backup


def derive_schedule(
    shuffle: list[str],
    current_witness: str,
    current_block: int,
    next_shuffle_block: int,
    upcoming_count: int = DEFAULT_UPCOMING_COUNT,
) -> WitnessSchedule | None:
    """Derive the current producer, upcoming producers and backup split.

    Args:
        shuffle: One full rotation as published by the chain.
        current_witness: Producer name reported by the chain.
        current_block: Head block number.
        next_shuffle_block: Block at which the chain reshuffles.
        upcoming_count: How many upcoming slots to expose.

    Returns:
        The derived schedule, or None for an empty shuffle.
    """
    if not shuffle:
        return None

    index = locate_current_index(shuffle, current_witness, current_block)
    upcoming = upcoming_after(shuffle, index, upcoming_count)
    top, backup = classify_witnesses(shuffle)
    backup_set = set(backup)

    return WitnessSchedule(
        current_witness=shuffle[index],
        current_block=current_block,
        next_shuffle_block=next_shuffle_block,
        shuffle=list(shuffle),
        upcoming=upcoming,
        upcoming_top=[name for name in upcoming if name not in backup_set],
        upcoming_backup=[
            (name, position)
            for position, name in enumerate(upcoming, 1)
            if name in backup_set
        ],
        backup_witnesses=backup,
        top_witnesses=top,
        all_scheduled=list(dict.fromkeys(shuffle)),
    )


@dataclass
class SchedulePosition:
    """Where a particular witness sits in the derived schedule."""

    witness: str
    is_current: bool = False
    upcoming_position: int | None = None  # 1-based, blocks away
    is_backup: bool = False

    @property
    def is_scheduled(self) -> bool:
        return self.is_current or self.upcoming_position is not None or self.is_backup


def witness_position(schedule: WitnessSchedule, witness: str) -> SchedulePosition:
    """Locate ``witness`` in ``schedule`` for highlighting on a profile page."""
    position = None
    if witness in schedule.upcoming:
        position = schedule.upcoming.index(witness) + 1
    return SchedulePosition(
        witness=witness,
        is_current=schedule.current_witness == witness,
        upcoming_position=position,
        is_backup=witness in schedule.backup_witnesses,
    )


class ScheduleService:
    """Fetches the shuffle and head block and derives the schedule."""

    def __init__(self, chain: ChainClient, upcoming_count: int = DEFAULT_UPCOMING_COUNT) -> None:
        self._chain = chain
        self._upcoming_count = upcoming_count

    async def get_schedule(self) -> WitnessSchedule | None:
        try:
            raw_schedule = await self._chain.get_witness_schedule()
            props = await self._chain.get_dynamic_global_properties()
            shuffle = list(raw_schedule["current_shuffled_witnesses"])
            next_shuffle_block = int(raw_schedule["next_shuffle_block_num"])
            current_block = int(props["head_block_number"])
            current_witness = str(props.get("current_witness", ""))
        except Exception as e:
            logger.warning("witness_schedule_unavailable", error=str(e))
            return None

        schedule = derive_schedule(
            shuffle,
            current_witness,
            current_block,
            next_shuffle_block,
            self._upcoming_count,
        )
        if schedule is None:
            logger.warning("witness_schedule_empty_shuffle", block=current_block)
        return schedule
