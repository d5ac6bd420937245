"""Mock implementations of all external-facing components."""

from __future__ import annotations

from typing import Any

from epoch_trigger.errors import TransientRpcError
from epoch_trigger.models.records import (
    FeeBid,
    NetworkFeeData,
    RelayResult,
    SignedTransaction,
    TxResult,
)
from epoch_trigger.models.timing import ChainHead

MOCK_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


class FakeClock:
    """Callable monotonic clock the test advances by hand."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class MockChainClient:
    """Implements ChainClient protocol against in-memory chain state."""

    def __init__(
        self,
        head_number: int = 100,
        head_timestamp: int = 1_700_000_000,
        rewards: int = 0,
        pool: int = 1_000 * 10**18,
        reward_per_trigger: int = 5 * 10**18,
        fee_data: NetworkFeeData | None = None,
        native_balance: int = 10**18,
        address: str = MOCK_ADDRESS,
    ) -> None:
        self.address = address
        self.head = ChainHead(number=head_number, timestamp=head_timestamp)
        self.rewards = rewards
        self.pool = pool
        self.reward_per_trigger = reward_per_trigger
        self.fee_data = fee_data or NetworkFeeData(
            max_fee_per_gas=30 * 10**9, max_priority_fee_per_gas=2 * 10**9,
        )
        self.native_balance = native_balance

        # Failure injection
        self.head_error: Exception | None = None
        self.rewards_error: Exception | None = None
        self.simulate_error: Exception | None = None
        self.send_error: Exception | None = None
        self.claim_error: Exception | None = None
        self.trigger_status = 1
        self.claim_status = 1

        # Call tracking
        self.head_calls = 0
        self.simulate_calls = 0
        self.trigger_calls: list[tuple[FeeBid, int]] = []
        self.sign_calls: list[tuple[FeeBid, int]] = []
        self.claim_calls = 0
        self._nonce = 0

    def set_head(self, number: int, timestamp: int | None = None) -> None:
        """Test helper: move the chain head."""
        self.head = ChainHead(number=number, timestamp=timestamp or self.head.timestamp)

    async def get_head(self) -> ChainHead:
        self.head_calls += 1
        if self.head_error is not None:
            raise self.head_error
        return self.head

    async def get_fee_data(self) -> NetworkFeeData:
        return self.fee_data

    async def get_native_balance(self) -> int:
        return self.native_balance

    async def rewards_of(self, address: str) -> int:
        if self.rewards_error is not None:
            raise self.rewards_error
        return self.rewards

    async def rewards_available(self) -> int:
        if self.rewards_error is not None:
            raise self.rewards_error
        return self.pool

    async def simulate_trigger(self) -> None:
        self.simulate_calls += 1
        if self.simulate_error is not None:
            raise self.simulate_error

    async def sign_trigger(self, fee_bid: FeeBid, gas_limit: int) -> SignedTransaction:
        self.sign_calls.append((fee_bid, gas_limit))
        self._nonce += 1
        return SignedTransaction(
            raw="0x02f8" + "ab" * 32,
            tx_hash="0x" + f"{self._nonce:064x}",
            nonce=self._nonce,
        )

    async def send_trigger(self, fee_bid: FeeBid, gas_limit: int) -> TxResult:
        self.trigger_calls.append((fee_bid, gas_limit))
        if self.send_error is not None:
            raise self.send_error
        if self.trigger_status == 1:
            self.rewards += self.reward_per_trigger
        return TxResult(
            tx_hash="0x" + "aa" * 32,
            status=self.trigger_status,
            gas_used=100_000,
            effective_gas_price=20 * 10**9,
            block_number=self.head.number + 1,
        )

    async def send_claim(self) -> TxResult:
        self.claim_calls += 1
        if self.claim_error is not None:
            raise self.claim_error
        if self.claim_status == 1:
            self.rewards = 0
        return TxResult(
            tx_hash="0x" + "cc" * 32,
            status=self.claim_status,
            gas_used=60_000,
            effective_gas_price=20 * 10**9,
        )


class MockSlotOracle:
    """Implements SlotOracle protocol."""

    def __init__(
        self,
        current_slot: int = 0,
        slot_duration: int = 36,
        slots_per_epoch: int = 32,
        attesters: int = 48,
        claimable: bool = True,
    ) -> None:
        self.slot = current_slot
        self.duration = slot_duration
        self.per_epoch = slots_per_epoch
        self.attesters = attesters
        self.claimable = claimable
        self.error: Exception | None = None
        self.constant_reads = 0

    async def current_slot(self) -> int:
        if self.error is not None:
            raise self.error
        return self.slot

    async def slot_duration(self) -> int:
        self.constant_reads += 1
        return self.duration

    async def slots_per_epoch(self) -> int:
        self.constant_reads += 1
        return self.per_epoch

    async def active_attester_count(self) -> int:
        return self.attesters

    async def is_rewards_claimable(self) -> bool:
        if self.error is not None:
            raise self.error
        return self.claimable


class MockRelays:
    """Implements RelayDispatcher protocol with fixed per-relay verdicts."""

    def __init__(
        self,
        accept: list[str] | None = None,
        reject: list[str] | None = None,
    ) -> None:
        self.accept = accept or []
        self.reject = reject or []
        self.dispatch_calls: list[tuple[SignedTransaction, int]] = []

    async def dispatch(self, signed: SignedTransaction, target_block: int) -> list[RelayResult]:
        self.dispatch_calls.append((signed, target_block))
        results = [RelayResult(relay=name, accepted=True, detail="accepted") for name in self.accept]
        results += [RelayResult(relay=name, accepted=False, detail="HTTP 503") for name in self.reject]
        return results


class MockSigner:
    """Implements Signer protocol without any real key material."""

    def __init__(self, address: str = MOCK_ADDRESS) -> None:
        self.address = address
        self.signed_messages: list[str] = []

    def sign_transaction(self, tx: dict[str, Any]) -> bytes:
        return b"\x02" + tx["nonce"].to_bytes(8, "big")

    def sign_message(self, text: str) -> str:
        self.signed_messages.append(text)
        return "0x" + "5e" * 65


def rpc_down(message: str = "connection refused") -> TransientRpcError:
    return TransientRpcError(message)
