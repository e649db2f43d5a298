"""Service layer -- shapes chain, HAFBE and HAF-SQL data into dashboard views."""

from hivewatch.services.accounts import AccountService
from hivewatch.services.activity import ActivityService
from hivewatch.services.schedule import ScheduleService, derive_schedule, witness_position
from hivewatch.services.voters import VoterService, voter_statistics
from hivewatch.services.witnesses import WitnessService

__all__ = [
    "AccountService",
    "ActivityService",
    "ScheduleService",
    "VoterService",
    "WitnessService",
    "derive_schedule",
    "voter_statistics",
    "witness_position",
]
