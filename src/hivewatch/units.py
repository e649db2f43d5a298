"""VESTS to Hive Power conversion.

HP = VESTS * (total_vesting_fund_hive / total_vesting_shares). The ratio
changes slowly, so it is fetched once and kept in an ExpiringValue; when it
cannot be fetched the approximate FALLBACK_VESTS_TO_HP_RATIO is used and
the caller never sees an error.

Several chain fields (witness ``votes``, ``proxied_vsf_votes``, HAFBE
``vests``) are expressed in VESTS * 10^6 and go through raw_vests_to_hp.
"""

from collections.abc import Awaitable, Callable
from decimal import Decimal, InvalidOperation
from typing import Any

from hivewatch.caching import ExpiringValue
from hivewatch.logging import get_logger

logger = get_logger(__name__)

FALLBACK_VESTS_TO_HP_RATIO = Decimal("0.0005")
RAW_VESTS_SCALE = Decimal("1000000")


def to_decimal(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    """Convert a JSON scalar to Decimal, returning ``default`` on malformed input."""
    if value is None or isinstance(value, bool):
        return default
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return default


def parse_asset(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    """Parse an asset string such as ``"3714.812943 VESTS"`` into its amount."""
    if value is None:
        return default
    if isinstance(value, dict):
        # database_api legacy NAI form: {"amount": "123", "precision": 3, ...}
        amount = to_decimal(value.get("amount"), default)
        precision = int(value.get("precision", 0) or 0)
        return amount.scaleb(-precision)
    text = str(value).strip()
    if not text:
        return default
    return to_decimal(text.split(" ")[0], default)


def ratio_from_properties(props: dict) -> Decimal:
    """Compute the VESTS to HP ratio from dynamic global properties.

    Raises:
        ValueError: If the properties do not carry usable totals.
    """
    total_hive = parse_asset(props.get("total_vesting_fund_hive"))
    total_vests = parse_asset(props.get("total_vesting_shares"))
    if total_hive <= 0 or total_vests <= 0:
        raise ValueError("dynamic global properties missing vesting totals")
    return total_hive / total_vests


def vests_to_hp(vests: Decimal, ratio: Decimal) -> Decimal:
    """Convert a VESTS amount to HP with the given ratio."""
    return vests * ratio


def raw_vests_to_hp(raw_vests: Decimal, ratio: Decimal) -> Decimal:
    """Convert a VESTS * 10^6 amount to HP with the given ratio."""
    return raw_vests / RAW_VESTS_SCALE * ratio


class VestsRatioProvider:
    """Acquires and caches the VESTS to HP ratio.

    Args:
        fetch_properties: Coroutine returning dynamic global properties.
        cache: Injected cache holding the last good ratio.
    """

    def __init__(
        self,
        fetch_properties: Callable[[], Awaitable[dict]],
        cache: ExpiringValue[Decimal],
    ) -> None:
        self._fetch_properties = fetch_properties
        self._cache = cache

    async def get_ratio(self) -> Decimal:
        """Return the cached ratio, fetching it if needed; never raises."""
        try:
            return await self._cache.get_or_load(self._load)
        except Exception as e:
            logger.warning("vests_ratio_unavailable", error=str(e))
            return FALLBACK_VESTS_TO_HP_RATIO

    def remember(self, props: dict) -> None:
        """Refresh the cached ratio from properties fetched for another purpose."""
        try:
            self._cache.set(ratio_from_properties(props))
        except ValueError:
            logger.debug("vests_ratio_not_refreshed")

    async def _load(self) -> Decimal:
        ratio = ratio_from_properties(await self._fetch_properties())
        logger.info("vests_ratio_updated", ratio=str(ratio))
        return ratio
