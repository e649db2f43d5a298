"""Shared test fixtures for hivewatch."""

from unittest.mock import AsyncMock

import pytest

from hivewatch.caching import ExpiringValue
from hivewatch.config import AppSettings, FetchSettings, HafSettings, NodeSettings
from hivewatch.units import VestsRatioProvider

# 500000 HIVE backing 1e9 VESTS -> ratio 0.0005
GLOBAL_PROPS = {
    "head_block_number": 90_000_000,
    "current_witness": "gtg",
    "current_aslot": 90_500_000,
    "total_vesting_fund_hive": "500000.000 HIVE",
    "total_vesting_shares": "1000000000.000000 VESTS",
    "hbd_interest_rate": 2000,
}


def _make_account(name: str, **overrides) -> dict:
    """condenser_api.get_accounts entry with sensible defaults."""
    raw = {
        "name": name,
        "vesting_shares": "2000000.000000 VESTS",
        "delegated_vesting_shares": "0.000000 VESTS",
        "received_vesting_shares": "0.000000 VESTS",
        "proxy": "",
        "witness_votes": [],
        "proxied_vsf_votes": [0, 0, 0, 0],
        "posting_rewards": 0,
        "curation_rewards": 0,
        "posting_json_metadata": "",
        "created": "2018-01-01T00:00:00",
    }
    raw.update(overrides)
    return raw


def _make_witness(owner: str, **overrides) -> dict:
    """condenser_api witness object with sensible defaults."""
    raw = {
        "id": 1,
        "owner": owner,
        "url": f"https://peakd.com/@{owner}",
        "votes": "2000000000000",
        "last_confirmed_block_num": 89_999_990,
        "total_missed": 10,
        "running_version": "1.27.5",
        "signing_key": "STM5abc",
        "hbd_exchange_rate": {"base": "0.250 HBD", "quote": "1.000 HIVE"},
        "created": "2016-06-01T00:00:00",
        "props": {"hbd_interest_rate": 1500},
    }
    raw.update(overrides)
    return raw


@pytest.fixture
def global_props() -> dict:
    """Dynamic global properties at head block 90,000,000 (ratio 0.0005)."""
    return dict(GLOBAL_PROPS)


@pytest.fixture
def make_account():
    return _make_account


@pytest.fixture
def make_witness():
    return _make_witness


@pytest.fixture
def mock_settings() -> AppSettings:
    """Return AppSettings with test defaults (no politeness delay)."""
    return AppSettings(
        log_level="DEBUG",
        node=NodeSettings(
            default_node="https://api.hive.blog",
            beacon_url="https://beacon.test/api/nodes",
        ),
        haf=HafSettings(hafbe_url="https://hafbe.test", hafsql_url="https://hafsql.test"),
        fetch=FetchSettings(batch_delay=0.0),
    )


@pytest.fixture
def mock_chain() -> AsyncMock:
    """Mock ChainClient with empty/default responses."""
    chain = AsyncMock()
    chain.get_dynamic_global_properties = AsyncMock(return_value=dict(GLOBAL_PROPS))
    chain.get_current_median_history_price = AsyncMock(
        return_value={"base": "0.250 HBD", "quote": "1.000 HIVE"}
    )
    chain.get_witnesses_by_vote = AsyncMock(return_value=[])
    chain.get_witness_by_account = AsyncMock(return_value=None)
    chain.get_accounts = AsyncMock(return_value=[])
    chain.get_witness_schedule = AsyncMock(return_value={})
    chain.list_witness_votes = AsyncMock(return_value=[])
    chain.get_account_history = AsyncMock(return_value=[])
    return chain


@pytest.fixture
def ratios(mock_chain: AsyncMock) -> VestsRatioProvider:
    """Ratio provider reading the mock chain's properties (ratio 0.0005)."""
    return VestsRatioProvider(mock_chain.get_dynamic_global_properties, ExpiringValue())
