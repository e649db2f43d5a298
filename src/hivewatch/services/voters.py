"""Who votes for a witness, and who proxies to an account.

Voter lists come from HAFBE, which reports each voter's own and proxied
VESTS. Proxy accounts have no index on chain, so they are discovered by
scanning the witness's voters in batches and keeping those whose proxy
points back at it.
"""

from decimal import ROUND_HALF_UP, Decimal

from hivewatch.chain.client import ChainClient
from hivewatch.chain.types import parse_account
from hivewatch.concurrency import chunked, run_bounded
from hivewatch.config import FetchSettings, HafSettings
from hivewatch.haf.hafbe import HafbeClient
from hivewatch.logging import get_logger
from hivewatch.models import ProxyAccount, VoterStatistics, WitnessVoter
from hivewatch.units import VestsRatioProvider, raw_vests_to_hp, to_decimal, vests_to_hp

logger = get_logger(__name__)

_HUNDRED = Decimal("100")
_CENT = Decimal("0.01")
WITNESS_VOTES_SCAN_LIMIT = 1000


def voter_percentage(voter: WitnessVoter, witness_total_hp: Decimal) -> Decimal | None:
    """Share of the witness's total approval held by ``voter``, 2 dp."""
    if witness_total_hp <= 0:
        return None
    share = (voter.hive_power + voter.proxied_hive_power) / witness_total_hp * _HUNDRED
    return share.quantize(_CENT, rounding=ROUND_HALF_UP)


def parse_hafbe_voter(raw: dict, ratio: Decimal) -> WitnessVoter:
    return WitnessVoter(
        username=raw.get("voter_name", ""),
        hive_power=raw_vests_to_hp(to_decimal(raw.get("account_vests")), ratio),
        proxied_hive_power=raw_vests_to_hp(to_decimal(raw.get("proxied_vests")), ratio),
        total_hive_power=raw_vests_to_hp(to_decimal(raw.get("vests")), ratio),
    )


def voter_statistics(voters: list[WitnessVoter]) -> VoterStatistics:
    if not voters:
        return VoterStatistics()
    total = sum((v.total_hive_power for v in voters), Decimal("0"))
    percentages = [v.percentage for v in voters if v.percentage is not None]
    return VoterStatistics(
        voter_count=len(voters),
        total_hive_power=total,
        average_hive_power=total / len(voters),
        top_voter_percentage=max(percentages) if percentages else None,
        proxy_voter_count=sum(1 for v in voters if v.proxied_hive_power > 0),
    )


class VoterService:
    """Voter and proxy lookups.

    Args:
        chain: Hive API client.
        hafbe: HAFBE REST client.
        ratios: Provider of the VESTS to HP ratio.
        haf: Voter paging settings.
        fetch: Batch size and concurrency for account scans.
    """

    def __init__(
        self,
        chain: ChainClient,
        hafbe: HafbeClient,
        ratios: VestsRatioProvider,
        haf: HafSettings | None = None,
        fetch: FetchSettings | None = None,
    ) -> None:
        self._chain = chain
        self._hafbe = hafbe
        self._ratios = ratios
        self._haf = haf or HafSettings()
        self._fetch = fetch or FetchSettings()

    async def _witness_total_hp(self, name: str, ratio: Decimal) -> Decimal:
        try:
            witness = await self._chain.get_witness_by_account(name)
        except Exception as e:
            logger.warning("witness_total_votes_failed", witness=name, error=str(e))
            return Decimal("0")
        if not witness:
            return Decimal("0")
        return raw_vests_to_hp(to_decimal(witness.get("votes")), ratio)

    async def get_witness_voters(self, name: str) -> list[WitnessVoter]:
        """All voters of ``name`` sorted by VESTS descending, with percentages.

        Pages are fetched until ``total_pages`` or the page cap. A failed
        page stops paging and the voters gathered so far are returned.
        """
        ratio = await self._ratios.get_ratio()
        voters: list[WitnessVoter] = []
        page = 1
        while page <= self._haf.voters_max_pages:
            try:
                data = await self._hafbe.get_witness_voters(
                    name, page=page, page_size=self._haf.voters_page_size
                )
            except Exception as e:
                logger.warning("voter_page_failed", witness=name, page=page, error=str(e))
                break

            if page == 1:
                logger.debug("witness_voter_total", witness=name, total=data.get("total_votes", 0))
            voters.extend(parse_hafbe_voter(raw, ratio) for raw in data.get("voters") or [])

            total_pages = int(to_decimal(data.get("total_pages"), Decimal("1")))
            if page >= total_pages:
                break
            page += 1
        else:
            logger.warning("voter_page_cap_reached", witness=name, pages=self._haf.voters_max_pages)

        witness_total = await self._witness_total_hp(name, ratio)
        for voter in voters:
            voter.percentage = voter_percentage(voter, witness_total)

        logger.info("witness_voters_fetched", witness=name, count=len(voters))
        return voters

    async def get_proxy_accounts(self, name: str) -> list[ProxyAccount]:
        """Voters of witness ``name`` whose proxy is set to ``name``, by HP desc."""
        try:
            votes = await self._chain.list_witness_votes([name], WITNESS_VOTES_SCAN_LIMIT)
        except Exception as e:
            logger.warning("witness_votes_list_failed", witness=name, error=str(e))
            return []

        voter_names = [v["account"] for v in votes if v.get("witness") == name]
        if not voter_names:
            return []

        ratio = await self._ratios.get_ratio()
        batches = chunked(voter_names, self._fetch.batch_size)
        results = await run_bounded(
            batches,
            self._chain.get_accounts,
            limit=self._fetch.max_concurrency,
            delay=self._fetch.batch_delay,
        )

        proxies: list[ProxyAccount] = []
        for batch, result in zip(batches, results):
            if isinstance(result, BaseException):
                logger.warning("proxy_batch_failed", witness=name, size=len(batch), error=str(result))
                continue
            for raw in result:
                account = parse_account(raw)
                if account.proxy == name:
                    proxies.append(
                        ProxyAccount(
                            username=account.name,
                            hive_power=vests_to_hp(account.vesting_shares, ratio),
                        )
                    )

        proxies.sort(key=lambda p: p.hive_power, reverse=True)
        logger.info("proxy_accounts_found", witness=name, count=len(proxies))
        return proxies
