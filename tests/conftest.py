"""Shared fixtures for epoch_trigger tests."""

from __future__ import annotations

import pytest
from pytest_metadata.plugin import metadata_key

from epoch_trigger.daemon import TriggerDaemon
from epoch_trigger.models.config import (
    ChainConfig,
    ClaimConfig,
    ClockConfig,
    DaemonConfig,
    TriggerConfig,
    TriggerPolicy,
)

from tests.mocks import FakeClock, MockChainClient, MockRelays, MockSlotOracle

# Well-known development account (Hardhat / Anvil account #0), never funded on mainnet
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

REWARD_CONTRACT = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
ORACLE_CONTRACT = "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512"

# 10 blocks x 12s = 120s epochs keep the arithmetic in tests readable
BLOCKS_PER_EPOCH = 10
SECONDS_PER_BLOCK = 12
EPOCH_DURATION = BLOCKS_PER_EPOCH * SECONDS_PER_BLOCK

TOKEN = 10**18


# ── Report metadata ──────────────────────────────────────────────


def pytest_configure(config):
    """Add chain info to the HTML report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Reward Contract"] = REWARD_CONTRACT
    meta["Oracle Contract"] = ORACLE_CONTRACT
    meta["Trigger Account"] = TEST_ADDRESS


def make_test_config(**overrides) -> DaemonConfig:
    """Build a DaemonConfig suitable for testing."""
    defaults = dict(
        poll_interval_ms=1000,
        error_backoff_ms=1000,
        chain=ChainConfig(
            read_rpc_url="http://127.0.0.1:8545",
            reward_contract=REWARD_CONTRACT,
            private_key=TEST_PRIVATE_KEY,
            chain_id=31337,
            token_symbol="AZT",
        ),
        clock=ClockConfig(
            model="blocks",
            blocks_per_epoch=BLOCKS_PER_EPOCH,
            seconds_per_block=SECONDS_PER_BLOCK,
        ),
        trigger=TriggerConfig(policy=TriggerPolicy.REACTIVE_ONCHAIN, window_seconds=15),
        claims=ClaimConfig(enabled=True, ceiling="1000"),
    )
    defaults.update(overrides)
    return DaemonConfig(**defaults)


@pytest.fixture
def test_config():
    """Default DaemonConfig for tests."""
    return make_test_config()


@pytest.fixture
def fake_clock():
    return FakeClock(1_000.0)


@pytest.fixture
def mock_client():
    # Block 101 is 12s into epoch 10
    return MockChainClient(head_number=101, head_timestamp=1_700_000_000)


@pytest.fixture
def mock_slot_oracle():
    return MockSlotOracle(current_slot=64, slot_duration=36, slots_per_epoch=32)


@pytest.fixture
def mock_relays():
    return MockRelays(accept=["flashbots", "titan", "beaver"], reject=["rsync"])


@pytest.fixture
def daemon(test_config, mock_client, fake_clock):
    """TriggerDaemon wired to a mocked chain client and a fake clock."""
    return TriggerDaemon(test_config, client=mock_client, clock=fake_clock)
