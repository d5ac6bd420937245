"""Operation result types: fee bids, submissions, claims."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


@dataclass(frozen=True)
class NetworkFeeData:
    """Fee data reported by the node. Any field may be unavailable."""

    max_fee_per_gas: int | None = None
    max_priority_fee_per_gas: int | None = None
    gas_price: int | None = None  # legacy single gas price


@dataclass(frozen=True)
class FeeBid:
    """EIP-1559 fee pair offered for inclusion (wei)."""

    max_fee_per_gas: int
    max_priority_fee_per_gas: int

    def __post_init__(self) -> None:
        if self.max_fee_per_gas < 0 or self.max_priority_fee_per_gas < 0:
            raise ValueError("fee bid fields must be non-negative")

    def as_tx_params(self) -> dict[str, int]:
        return {
            "maxFeePerGas": self.max_fee_per_gas,
            "maxPriorityFeePerGas": self.max_priority_fee_per_gas,
        }


@dataclass(frozen=True)
class TxResult:
    """Summary of a mined transaction receipt."""

    tx_hash: str
    status: int  # 1 = success, 0 = reverted
    gas_used: int
    effective_gas_price: int
    block_number: int | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == 1

    @property
    def cost(self) -> int:
        return self.gas_used * self.effective_gas_price


@dataclass(frozen=True)
class SignedTransaction:
    """A signed, ready-to-broadcast transaction."""

    raw: str  # 0x-prefixed hex
    tx_hash: str
    nonce: int


@dataclass
class DirectOutcome:
    """Result of a direct broadcast-and-confirm submission."""

    dispatched: bool
    confirmed: bool
    reward_delta: int = 0  # token base units
    cost_paid: int = 0  # wei
    tx_hash: str | None = None


@dataclass
class RelayResult:
    """One relay's response to a bundle submission."""

    relay: str
    accepted: bool
    detail: str = ""
    duration_ms: int = 0


@dataclass
class FanOutOutcome:
    """Result of racing one signed transaction across builder relays.

    Acceptance by a relay is not proof of inclusion.
    """

    target_block: int
    tx_hash: str | None = None
    relay_results: list[RelayResult] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.relay_results)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.relay_results if r.accepted)

    @property
    def dispatched(self) -> bool:
        return self.success_count > 0


SubmissionOutcome = Union[DirectOutcome, FanOutOutcome]


class ClaimStatus(str, Enum):
    CLAIMED = "claimed"
    SKIPPED_ZERO = "skipped_zero"
    ABOVE_CEILING = "above_ceiling"  # anomalous balance, left unclaimed
    NOT_CLAIMABLE = "not_claimable"  # contract reports claims closed
    FAILED = "failed"


@dataclass
class ClaimOutcome:
    """Result of one claim pass."""

    status: ClaimStatus
    balance: int
    tx_hash: str | None = None
    error: str | None = None

    @property
    def is_warning(self) -> bool:
        return self.status in (ClaimStatus.ABOVE_CEILING, ClaimStatus.FAILED)


@dataclass
class TickReport:
    """What happened during one poll-loop tick."""

    sample_fresh: bool = False
    skipped: bool = False
    fired: bool = False
    target_epoch: int | None = None
    submission: SubmissionOutcome | None = None
    claims: list[ClaimOutcome] = field(default_factory=list)
    error: str | None = None
