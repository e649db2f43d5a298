"""Tests for witness analytics.

Covers the pure calculations (co-voting, vote concentration, missed-block
ratio) and the WitnessAnalytics queries against a mocked ChainClient.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from hivewatch.analytics.metrics import (
    co_voted_witnesses,
    expected_blocks,
    missed_blocks_ratio,
    parse_chain_time,
    power_distribution,
)
from hivewatch.analytics.witness_analytics import PATTERN_ACCOUNT_SAMPLE, WitnessAnalytics
from hivewatch.chain.types import parse_account
from hivewatch.config import FetchSettings

CREATED = datetime(2016, 6, 1, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Pure calculations
# ---------------------------------------------------------------------------


class TestCoVoted:
    def test_counts_and_percentages(self, make_account):
        accounts = [
            parse_account(make_account("x", witness_votes=["gtg", "a", "b"])),
            parse_account(make_account("y", witness_votes=["gtg", "b"])),
            parse_account(make_account("z", witness_votes=["c", "gtg"])),
        ]

        co_voted = co_voted_witnesses("gtg", accounts)

        assert [(c.witness, c.count) for c in co_voted] == [("b", 2), ("a", 1), ("c", 1)]
        assert co_voted[0].percentage == Decimal("66.7")
        assert co_voted[1].percentage == Decimal("33.3")

    def test_top_limit(self, make_account):
        accounts = [parse_account(make_account("x", witness_votes=[f"w{i}" for i in range(30)]))]

        assert len(co_voted_witnesses("gtg", accounts, top=20)) == 20

    def test_no_accounts(self):
        assert co_voted_witnesses("gtg", []) == []


class TestPowerDistribution:
    def test_shares_and_concentration(self, make_witness):
        witnesses = [
            make_witness("a", votes="1"),
            make_witness("b", votes="1"),
            make_witness("c", votes="1"),
        ]

        result = power_distribution(witnesses)

        assert [s.percentage for s in result.distribution] == [Decimal("33.33")] * 3
        # concentration sums the rounded shares
        assert result.top10_concentration == Decimal("99.99")
        assert result.total_votes == Decimal("3")
        assert result.distribution[2].rank == 3

    def test_zero_votes_is_none(self, make_witness):
        assert power_distribution([make_witness("a", votes="0")]) is None
        assert power_distribution([]) is None

    def test_to_dict_nests_metrics(self, make_witness):
        data = power_distribution([make_witness("a", votes="10")]).to_dict()

        assert data["distribution"][0]["percentage"] == "100.00"
        assert data["metrics"]["witnesses"] == 1


class TestMissedBlocks:
    def test_expected_blocks(self):
        # 63,000 s = 21,000 slots = 1,000 rounds
        assert expected_blocks(CREATED, CREATED + timedelta(seconds=63_000)) == 1000

    def test_ratio(self):
        ratio = missed_blocks_ratio(10, CREATED, CREATED + timedelta(seconds=63_000))

        assert ratio == Decimal("1.0000")

    def test_nothing_expected(self):
        assert missed_blocks_ratio(5, CREATED, CREATED) == Decimal("0")

    def test_parse_chain_time(self):
        assert parse_chain_time("2016-06-01T00:00:00") == CREATED
        assert parse_chain_time("2016-06-01T00:00:00Z") == CREATED


# ---------------------------------------------------------------------------
# WitnessAnalytics queries
# ---------------------------------------------------------------------------


@pytest.fixture
def analytics(mock_chain) -> WitnessAnalytics:
    return WitnessAnalytics(
        mock_chain,
        FetchSettings(batch_size=2, batch_delay=0.0),
        clock=lambda: CREATED + timedelta(seconds=63_000),
    )


class TestVotingPatterns:
    @pytest.mark.asyncio
    async def test_samples_voters(self, analytics, mock_chain, make_account):
        mock_chain.list_witness_votes.return_value = [
            {"witness": "gtg", "account": "x"},
            {"witness": "gtg", "account": "y"},
            {"witness": "other", "account": "z"},
        ]
        mock_chain.get_accounts.return_value = [
            make_account("x", witness_votes=["gtg", "a"]),
            make_account("y", witness_votes=["gtg", "a"]),
        ]

        pattern = await analytics.voting_patterns("gtg")

        assert pattern.total_voters == 2
        assert pattern.sample_size == 2
        assert [(c.witness, c.percentage) for c in pattern.co_voted] == [("a", Decimal("100.0"))]
        mock_chain.get_accounts.assert_awaited_once_with(["x", "y"])

    @pytest.mark.asyncio
    async def test_sample_is_capped(self, analytics, mock_chain):
        mock_chain.list_witness_votes.return_value = [
            {"witness": "gtg", "account": f"v{i}"} for i in range(80)
        ]

        await analytics.voting_patterns("gtg")

        sampled = mock_chain.get_accounts.await_args.args[0]
        assert len(sampled) == PATTERN_ACCOUNT_SAMPLE

    @pytest.mark.asyncio
    async def test_failure_is_empty(self, analytics, mock_chain):
        mock_chain.list_witness_votes.side_effect = RuntimeError("node down")

        pattern = await analytics.voting_patterns("gtg")

        assert pattern.co_voted == []
        assert pattern.total_voters == 0


class TestRankData:
    @pytest.mark.asyncio
    async def test_rank(self, analytics, mock_chain, make_witness):
        mock_chain.get_witness_by_account.return_value = make_witness("gtg")
        mock_chain.get_witnesses_by_vote.return_value = [make_witness("a"), make_witness("gtg")]

        data = await analytics.rank_data("gtg")

        assert data.current_rank == 2
        assert data.version == "1.27.5"
        assert data.current_votes == Decimal("2000000000000")

    @pytest.mark.asyncio
    async def test_outside_scan_has_no_rank(self, analytics, mock_chain, make_witness):
        mock_chain.get_witness_by_account.return_value = make_witness("gtg")

        data = await analytics.rank_data("gtg")

        assert data.current_rank is None

    @pytest.mark.asyncio
    async def test_unknown_witness(self, analytics):
        assert await analytics.rank_data("nobody") is None


class TestDistributionQuery:
    @pytest.mark.asyncio
    async def test_requests_top_n(self, analytics, mock_chain, make_witness):
        mock_chain.get_witnesses_by_vote.return_value = [make_witness("a")]

        result = await analytics.voting_power_distribution(top_n=10)

        assert result.witnesses == 1
        mock_chain.get_witnesses_by_vote.assert_awaited_once_with("", 10)

    @pytest.mark.asyncio
    async def test_failure_is_none(self, analytics, mock_chain):
        mock_chain.get_witnesses_by_vote.side_effect = RuntimeError("node down")

        assert await analytics.voting_power_distribution() is None


class TestProxyDelegators:
    @pytest.mark.asyncio
    async def test_finds_delegators_in_sample(self, analytics, mock_chain, make_account):
        mock_chain.list_witness_votes.return_value = [
            {"witness": "a", "account": "x"},
            {"witness": "b", "account": "x"},
            {"witness": "a", "account": "y"},
            {"witness": "a", "account": "z"},
        ]
        accounts = {
            "x": make_account("x", proxy="bob"),
            "y": make_account("y"),
            "z": make_account("z", proxy="bob", vesting_shares="10.000000 VESTS"),
        }

        async def get_accounts(names):
            return [accounts[n] for n in names]

        mock_chain.get_accounts.side_effect = get_accounts

        delegators = await analytics.proxy_delegators("bob")

        assert [d.account for d in delegators] == ["x", "z"]
        assert delegators[1].vesting_shares == Decimal("10")
        mock_chain.list_witness_votes.assert_awaited_once_with([""], 1000)

    @pytest.mark.asyncio
    async def test_limit_caps_unique_accounts(self, analytics, mock_chain):
        mock_chain.list_witness_votes.return_value = [
            {"witness": "a", "account": name} for name in ("x", "x", "y", "z")
        ]

        await analytics.proxy_delegators("bob", limit=2)

        requested = [call.args[0] for call in mock_chain.get_accounts.await_args_list]
        assert requested == [["x", "y"]]


class TestMissedBlocksQuery:
    @pytest.mark.asyncio
    async def test_reliability(self, analytics, mock_chain, make_witness):
        mock_chain.get_witness_by_account.return_value = make_witness(
            "gtg", created="2016-06-01T00:00:00", total_missed=10
        )

        analysis = await analytics.missed_blocks("gtg")

        assert analysis.missed_percentage == Decimal("1.0000")
        assert analysis.reliability == Decimal("99.0000")
        assert analysis.total_missed == 10

    @pytest.mark.asyncio
    async def test_unparsable_created(self, analytics, mock_chain, make_witness):
        mock_chain.get_witness_by_account.return_value = make_witness("gtg", created="never")

        analysis = await analytics.missed_blocks("gtg")

        assert analysis.missed_percentage == Decimal("0")
        assert analysis.reliability == Decimal("100")

    @pytest.mark.asyncio
    async def test_unknown_witness(self, analytics):
        assert await analytics.missed_blocks("nobody") is None
