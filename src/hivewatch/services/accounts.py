"""Account lookups: Hive Power, witness votes, proxy and lifetime rewards.

Every public method degrades to a documented default (None, empty list or
zero) when the account does not exist or the chain cannot be reached.
"""

from decimal import Decimal

from hivewatch.chain.client import ChainClient
from hivewatch.chain.types import parse_account
from hivewatch.logging import get_logger
from hivewatch.models import MAX_WITNESS_VOTES, Account, AccountRewards, ProxyChain, UserData
from hivewatch.units import VestsRatioProvider, raw_vests_to_hp, vests_to_hp

logger = get_logger(__name__)

_REWARD_SCALE = Decimal("1000")
_HUNDRED = Decimal("100")


def compute_rewards(account: Account) -> AccountRewards:
    """Author/curation split from the account's lifetime reward counters."""
    author = account.posting_rewards / _REWARD_SCALE
    curation = account.curation_rewards / _REWARD_SCALE
    total = author + curation
    if total <= 0:
        return AccountRewards(author_hp=author, curation_hp=curation)
    return AccountRewards(
        author_hp=author,
        curation_hp=curation,
        author_percentage=author / total * _HUNDRED,
        curation_percentage=curation / total * _HUNDRED,
    )


def proxied_raw_vests(account: Account) -> Decimal:
    """Sum of positive ``proxied_vsf_votes`` levels (VESTS * 10^6)."""
    return sum((v for v in account.proxied_vsf_votes if v > 0), Decimal("0"))


class AccountService:
    """Account-centric queries on top of a ChainClient.

    Args:
        chain: Hive API client.
        ratios: Provider of the VESTS to HP ratio.
        proxy_chain_max_depth: Hop limit when walking proxy references.
    """

    def __init__(
        self,
        chain: ChainClient,
        ratios: VestsRatioProvider,
        proxy_chain_max_depth: int = 8,
    ) -> None:
        self._chain = chain
        self._ratios = ratios
        self._proxy_chain_max_depth = proxy_chain_max_depth

    async def get_account(self, username: str) -> Account | None:
        """Fetch one account; None when it does not exist or the fetch fails."""
        try:
            accounts = await self._chain.get_accounts([username])
        except Exception as e:
            logger.warning("account_fetch_failed", account=username, error=str(e))
            return None
        if not accounts:
            return None
        return parse_account(accounts[0])

    async def get_witness_votes(self, username: str) -> list[str]:
        account = await self.get_account(username)
        return list(account.witness_votes) if account else []

    async def get_account_voting(self, username: str) -> tuple[list[str], str | None]:
        """Witness votes and proxy of an account: ``([], None)`` when unknown."""
        account = await self.get_account(username)
        if account is None:
            return [], None
        return list(account.witness_votes), account.proxy

    async def own_hive_power(self, username: str) -> Decimal:
        """HP of the account's own vesting shares, ignoring delegations."""
        account = await self.get_account(username)
        if account is None:
            return Decimal("0")
        return vests_to_hp(account.vesting_shares, await self._ratios.get_ratio())

    async def effective_hive_power(self, username: str) -> Decimal:
        """HP of own + received - delegated vesting shares."""
        account = await self.get_account(username)
        if account is None:
            return Decimal("0")
        return vests_to_hp(account.effective_vests, await self._ratios.get_ratio())

    async def proxied_hive_power(self, username: str) -> Decimal:
        """HP other accounts have proxied to this one."""
        account = await self.get_account(username)
        if account is None:
            return Decimal("0")
        return raw_vests_to_hp(proxied_raw_vests(account), await self._ratios.get_ratio())

    async def free_witness_votes(self, username: str) -> int:
        account = await self.get_account(username)
        if account is None:
            return 0
        return max(MAX_WITNESS_VOTES - len(account.witness_votes), 0)

    async def get_rewards(self, username: str) -> AccountRewards:
        account = await self.get_account(username)
        if account is None:
            return AccountRewards()
        return compute_rewards(account)

    async def get_user_data(self, username: str) -> UserData:
        """Compose the user stats view from a single account fetch."""
        account = await self.get_account(username)
        if account is None:
            return UserData(username=username)

        ratio = await self._ratios.get_ratio()
        if account.proxy:
            logger.debug("account_has_proxy", account=username, proxy=account.proxy)
        return UserData(
            username=username,
            hive_power=vests_to_hp(account.vesting_shares, ratio),
            effective_hive_power=vests_to_hp(account.effective_vests, ratio),
            proxied_hive_power=raw_vests_to_hp(proxied_raw_vests(account), ratio),
            free_witness_votes=max(MAX_WITNESS_VOTES - len(account.witness_votes), 0),
            witness_votes=list(account.witness_votes),
            proxy=account.proxy,
            rewards=compute_rewards(account),
        )

    async def resolve_proxy_chain(self, username: str, max_depth: int | None = None) -> ProxyChain:
        """Follow proxy references from ``username`` with a hop limit and cycle guard.

        The chain itself does not prevent proxy cycles from being observed in
        snapshots, so the walk stops at the first repeated account.
        """
        limit = self._proxy_chain_max_depth if max_depth is None else max_depth
        result = ProxyChain(account=username)
        visited = {username}
        current = username

        while True:
            account = await self.get_account(current)
            if account is None or account.proxy is None:
                return result
            if account.proxy in visited:
                logger.warning("proxy_cycle_detected", account=username, at=current, proxy=account.proxy)
                result.cycle = True
                return result
            if len(result.hops) >= limit:
                result.truncated = True
                return result
            result.hops.append(account.proxy)
            visited.add(account.proxy)
            current = account.proxy
