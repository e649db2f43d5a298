"""Display formatting for HP amounts, block counts and timestamps.

Pure functions used by the API layer; inputs are Decimal or int, outputs are
strings. Nothing here talks to the network.
"""

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

BLOCK_INTERVAL_SECONDS = 3

_THOUSAND = Decimal("1000")
_MILLION = Decimal("1000000")


def _quantize(value: Decimal, places: int) -> Decimal:
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def format_number(value: int | Decimal, places: int = 0) -> str:
    """Thousand-separated number, e.g. ``93,412,005``."""
    return f"{_quantize(Decimal(value), places):,.{places}f}"


def format_hp(hp: Decimal) -> str:
    """Full-precision HP, e.g. ``1,234.567 HP``."""
    return f"{format_number(hp, 3)} HP"


def format_hp_compact(hp: Decimal) -> str:
    """Compact HP for tables and charts: ``1.25M HP``, ``12.3K HP``, ``12 HP``, ``0.500 HP``.

    The unit is picked from the rounded value, so 999,990 shows as ``1.00M HP``.
    """
    if abs(_quantize(hp / _THOUSAND, 1)) >= _THOUSAND:
        return f"{_quantize(hp / _MILLION, 2)}M HP"
    if abs(_quantize(hp, 0)) >= _THOUSAND:
        return f"{_quantize(hp / _THOUSAND, 1)}K HP"
    if abs(_quantize(hp, 3)) >= 1:
        return f"{_quantize(hp, 0)} HP"
    return f"{_quantize(hp, 3)} HP"


def format_price(price: Decimal | None) -> str:
    if price is None or price <= 0:
        return "N/A"
    return f"${_quantize(price, 3)}"


def format_percent(value: Decimal | None, places: int = 2) -> str:
    if value is None:
        return "N/A"
    return f"{_quantize(value, places)}%"


def format_time_to_block(blocks_away: int) -> str:
    """Approximate wall time until a block ``blocks_away`` slots from now."""
    seconds = blocks_away * BLOCK_INTERVAL_SECONDS
    if seconds < 60:
        return f"~{seconds}s"
    if seconds < 3600:
        minutes, rest = divmod(seconds, 60)
        return f"~{minutes}m {rest}s" if rest else f"~{minutes}m"
    hours, rest = divmod(seconds, 3600)
    minutes = rest // 60
    return f"~{hours}h {minutes}m" if minutes else f"~{hours}h"


def time_ago(timestamp: str | None, now: datetime | None = None) -> str:
    """Relative time for an ISO-8601 chain timestamp (chain times are UTC)."""
    if not timestamp:
        return "N/A"
    try:
        then = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return "N/A"
    if then.tzinfo is None:
        then = then.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    diff_seconds = (now - then).total_seconds()
    if diff_seconds < 60:
        return "just now"
    if diff_seconds < 3600:
        return f"{int(diff_seconds / 60)}m ago"
    if diff_seconds < 86400:
        return f"{int(diff_seconds / 3600)}h ago"
    return f"{int(diff_seconds / 86400)}d ago"
