"""Parsing of raw condenser_api objects into hivewatch models.

Each field is parsed on its own so one malformed value falls back to its
default instead of discarding the whole object.
"""

import json

from hivewatch.logging import get_logger
from hivewatch.models import Account
from hivewatch.units import parse_asset, to_decimal

logger = get_logger(__name__)


def parse_account(raw: dict) -> Account:
    """Build an Account from a condenser_api.get_accounts entry."""
    proxy = (raw.get("proxy") or "").strip()
    return Account(
        name=raw.get("name", ""),
        vesting_shares=parse_asset(raw.get("vesting_shares")),
        delegated_vesting_shares=parse_asset(raw.get("delegated_vesting_shares")),
        received_vesting_shares=parse_asset(raw.get("received_vesting_shares")),
        proxy=proxy or None,
        witness_votes=list(raw.get("witness_votes") or []),
        proxied_vsf_votes=[to_decimal(v) for v in raw.get("proxied_vsf_votes") or []],
        posting_rewards=to_decimal(raw.get("posting_rewards")),
        curation_rewards=to_decimal(raw.get("curation_rewards")),
        posting_json_metadata=raw.get("posting_json_metadata") or "",
        created=raw.get("created", ""),
    )


def witness_description(account: Account) -> str | None:
    """``profile.witness_description`` from posting metadata, if present and parsable."""
    if not account.posting_json_metadata:
        return None
    try:
        metadata = json.loads(account.posting_json_metadata)
    except ValueError as e:
        logger.warning("posting_metadata_parse_failed", account=account.name, error=str(e))
        return None
    profile = metadata.get("profile") if isinstance(metadata, dict) else None
    if isinstance(profile, dict) and profile.get("witness_description"):
        return str(profile["witness_description"])
    return None
