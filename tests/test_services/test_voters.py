"""Tests for VoterService and voter statistics."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from hivewatch.config import FetchSettings, HafSettings
from hivewatch.models import WitnessVoter
from hivewatch.services.voters import VoterService, voter_percentage, voter_statistics


def _hafbe_voter(name: str, own: str, proxied: str = "0") -> dict:
    total = str(int(own) + int(proxied))
    return {"voter_name": name, "account_vests": own, "proxied_vests": proxied, "vests": total}


@pytest.fixture
def mock_hafbe() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def service(mock_chain, mock_hafbe, ratios) -> VoterService:
    return VoterService(
        mock_chain,
        mock_hafbe,
        ratios,
        HafSettings(voters_page_size=2, voters_max_pages=100),
        FetchSettings(batch_size=2, batch_delay=0.0, max_concurrency=2),
    )


class TestWitnessVoters:
    @pytest.mark.asyncio
    async def test_pages_and_percentages(self, service, mock_chain, mock_hafbe, make_witness):
        mock_hafbe.get_witness_voters.side_effect = [
            {"total_votes": 3, "total_pages": 2, "voters": [
                _hafbe_voter("alice", "2000000000000", "1000000000000"),
                _hafbe_voter("bob", "1000000000000"),
            ]},
            {"total_votes": 3, "total_pages": 2, "voters": [
                _hafbe_voter("carol", "200000000000"),
            ]},
        ]
        # 3e13 raw VESTS -> 15,000 HP
        mock_chain.get_witness_by_account.return_value = make_witness("gtg", votes="30000000000000")

        voters = await service.get_witness_voters("gtg")

        assert [v.username for v in voters] == ["alice", "bob", "carol"]
        assert voters[0].hive_power == Decimal("1000")
        assert voters[0].proxied_hive_power == Decimal("500")
        assert voters[0].total_hive_power == Decimal("1500")
        assert voters[0].percentage == Decimal("10.00")
        assert voters[2].percentage == Decimal("0.67")
        assert mock_hafbe.get_witness_voters.await_count == 2

    @pytest.mark.asyncio
    async def test_failed_page_keeps_gathered(self, service, mock_hafbe):
        mock_hafbe.get_witness_voters.side_effect = [
            {"total_pages": 3, "voters": [_hafbe_voter("alice", "1000000")]},
            RuntimeError("HAFBE down"),
        ]

        voters = await service.get_witness_voters("gtg")

        assert [v.username for v in voters] == ["alice"]
        # witness total unknown: no percentage
        assert voters[0].percentage is None

    @pytest.mark.asyncio
    async def test_page_cap(self, mock_chain, mock_hafbe, ratios):
        mock_hafbe.get_witness_voters.return_value = {
            "total_pages": 500,
            "voters": [_hafbe_voter("x", "1")],
        }
        service = VoterService(mock_chain, mock_hafbe, ratios, HafSettings(voters_max_pages=3))

        voters = await service.get_witness_voters("gtg")

        assert len(voters) == 3
        assert mock_hafbe.get_witness_voters.await_count == 3


class TestProxyAccounts:
    @pytest.mark.asyncio
    async def test_finds_accounts_proxying_to_witness(self, service, mock_chain, make_account):
        mock_chain.list_witness_votes.return_value = [
            {"witness": "gtg", "account": "alice"},
            {"witness": "gtg", "account": "bob"},
            {"witness": "gtg", "account": "carol"},
            {"witness": "other", "account": "dave"},
        ]
        accounts = {
            "alice": make_account("alice", proxy="gtg", vesting_shares="1000.000000 VESTS"),
            "bob": make_account("bob"),
            "carol": make_account("carol", proxy="gtg", vesting_shares="4000.000000 VESTS"),
        }

        async def get_accounts(names):
            return [accounts[n] for n in names]

        mock_chain.get_accounts.side_effect = get_accounts

        proxies = await service.get_proxy_accounts("gtg")

        assert [p.username for p in proxies] == ["carol", "alice"]
        assert proxies[0].hive_power == Decimal("2")
        # batch size 2 -> two get_accounts calls
        assert mock_chain.get_accounts.await_count == 2

    @pytest.mark.asyncio
    async def test_failed_batch_is_skipped(self, service, mock_chain, make_account):
        mock_chain.list_witness_votes.return_value = [
            {"witness": "gtg", "account": name} for name in ("a", "b", "c")
        ]

        async def get_accounts(names):
            if "a" in names:
                raise RuntimeError("rate limited")
            return [make_account(n, proxy="gtg") for n in names]

        mock_chain.get_accounts.side_effect = get_accounts

        proxies = await service.get_proxy_accounts("gtg")

        assert [p.username for p in proxies] == ["c"]

    @pytest.mark.asyncio
    async def test_vote_list_failure(self, service, mock_chain):
        mock_chain.list_witness_votes.side_effect = RuntimeError("node down")

        assert await service.get_proxy_accounts("gtg") == []


class TestStatistics:
    def test_percentage_rounding(self):
        voter = WitnessVoter("a", Decimal("1"), Decimal("0"))
        assert voter_percentage(voter, Decimal("3")) == Decimal("33.33")
        assert voter_percentage(voter, Decimal("0")) is None

    def test_statistics(self):
        voters = [
            WitnessVoter("a", Decimal("10"), Decimal("5"), Decimal("15"), Decimal("1.5")),
            WitnessVoter("b", Decimal("5"), Decimal("0"), Decimal("5"), Decimal("0.5")),
        ]

        stats = voter_statistics(voters)

        assert stats.voter_count == 2
        assert stats.total_hive_power == Decimal("20")
        assert stats.average_hive_power == Decimal("10")
        assert stats.top_voter_percentage == Decimal("1.5")
        assert stats.proxy_voter_count == 1

    def test_empty(self):
        assert voter_statistics([]).voter_count == 0
