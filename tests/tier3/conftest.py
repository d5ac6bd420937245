"""Tier 3 fixtures: read-only checks against a live EVM RPC endpoint.

Set EPOCH_TRIGGER_TEST_RPC_URL to enable. EPOCH_TRIGGER_TEST_REWARD_CONTRACT
additionally enables the reward contract reads. Nothing here sends a
transaction.
"""

from __future__ import annotations

import os
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import httpx
import pytest

from epoch_trigger.chain.client import Web3ChainClient
from epoch_trigger.chain.signer import LocalAccountSigner
from tests.conftest import TEST_PRIVATE_KEY

RPC_URL = os.environ.get("EPOCH_TRIGGER_TEST_RPC_URL", "")
REWARD_CONTRACT = os.environ.get("EPOCH_TRIGGER_TEST_REWARD_CONTRACT", "")
EXPLORER_BASE = os.environ.get("EPOCH_TRIGGER_TEST_EXPLORER", "https://sepolia.etherscan.io")

# Any well-formed address works for read-only client construction
PLACEHOLDER_CONTRACT = "0x0000000000000000000000000000000000000001"


def block_link(number: int) -> str:
    """Build an HTML anchor to the block explorer for the report."""
    return f'<a href="{EXPLORER_BASE}/block/{number}" target="_blank">{number}</a>'


# ── Timing infrastructure ────────────────────────────────────────


@dataclass
class TimingRecord:
    """Single timed RPC operation."""

    operation: str
    duration_s: float
    block: int | None = None
    result: str = ""


@dataclass
class TimingCollector:
    """Accumulates timing records for a single test."""

    records: list[TimingRecord] = field(default_factory=list)

    def add(self, operation: str, duration_s: float, block: int | None = None, result: str = "") -> None:
        self.records.append(TimingRecord(operation, duration_s, block, result))

    def to_html(self) -> str:
        """Render as an HTML table for pytest-html."""
        if not self.records:
            return ""
        rows = []
        for r in self.records:
            block_cell = block_link(r.block) if r.block is not None else "-"
            rows.append(
                f"<tr><td>{r.operation}</td><td>{r.duration_s * 1000:.0f}ms</td>"
                f"<td>{block_cell}</td><td>{r.result}</td></tr>"
            )
        return (
            '<table border="1" cellpadding="4" cellspacing="0" '
            'style="border-collapse:collapse;font-family:monospace;font-size:12px;margin:8px 0;">'
            "<tr><th>Operation</th><th>Duration</th><th>Block</th><th>Result</th></tr>"
            + "".join(rows)
            + "</table>"
        )

    def summary(self) -> str:
        """Plain-text summary for console output."""
        return "\n".join(
            f"  {r.operation:<32} {r.duration_s * 1000:>6.0f}ms  {r.result}" for r in self.records
        )


@asynccontextmanager
async def timed_op(timing: TimingCollector, label: str):
    """Record the duration of the wrapped block.

    Usage:
        async with timed_op(timing, "get_head") as rec:
            head = await client.get_head()
            rec["block"] = head.number
    """
    rec: dict = {"block": None, "result": ""}
    start = time.perf_counter()
    try:
        yield rec
    finally:
        timing.add(label, time.perf_counter() - start, rec.get("block"), rec.get("result", ""))


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    outcome = yield
    report = outcome.get_result()
    if report.when == "call":
        timing: TimingCollector | None = getattr(item, "_timing", None)
        if timing and timing.records:
            from pytest_html.extras import html as html_extra
            extra = getattr(report, "extras", [])
            extra.append(html_extra(timing.to_html()))
            report.extras = extra


# ── Fixtures ─────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def testnet_reachable():
    """Gate: skip all tier3 tests unless a responsive RPC endpoint is configured."""
    if not RPC_URL:
        pytest.skip("EPOCH_TRIGGER_TEST_RPC_URL not set")
    try:
        r = httpx.post(
            RPC_URL,
            json={"jsonrpc": "2.0", "id": 1, "method": "eth_blockNumber", "params": []},
            timeout=10,
        )
        if "result" in r.json():
            return True
        pytest.skip(f"RPC endpoint returned no result: {r.text[:200]}")
    except (httpx.HTTPError, ValueError) as exc:
        pytest.skip(f"RPC endpoint unreachable: {exc}")


@pytest.fixture
def timing(request):
    """Per-test TimingCollector. Attaches to the test item for the report hook."""
    tc = TimingCollector()
    request.node._timing = tc
    yield tc
    if tc.records:
        print(f"\n--- Timing: {request.node.name} ---")
        print(tc.summary())


@pytest.fixture
def live_client(testnet_reachable):
    """Read-side chain client. The test key only signs, it never broadcasts here."""
    return Web3ChainClient.from_urls(
        RPC_URL,
        RPC_URL,
        REWARD_CONTRACT or PLACEHOLDER_CONTRACT,
        LocalAccountSigner(TEST_PRIVATE_KEY),
    )
