"""Configuration models for the daemon."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class TriggerPolicy(str, Enum):
    """Which clock decides the firing moment, and on which side of the boundary."""

    REACTIVE_ONCHAIN = "reactive_onchain"  # just after epoch start, chain clock
    REACTIVE_LOCAL = "reactive_local"  # just after epoch start, local clock
    PREEMPTIVE_ONCHAIN = "preemptive_onchain"  # just before next epoch, chain clock
    PREEMPTIVE_LOCAL = "preemptive_local"  # just before next epoch, local clock

    @property
    def uses_local_clock(self) -> bool:
        return self in (TriggerPolicy.REACTIVE_LOCAL, TriggerPolicy.PREEMPTIVE_LOCAL)

    @property
    def is_preemptive(self) -> bool:
        return self in (TriggerPolicy.PREEMPTIVE_ONCHAIN, TriggerPolicy.PREEMPTIVE_LOCAL)


class FeeStrategy(str, Enum):
    """Fee escalation strategy used for the triggering transaction."""

    FIXED = "fixed"
    ADDITIVE = "additive"
    PERCENTAGE = "percentage"
    NETWORK = "network"


# Names accepted in config files for backwards compatibility with older setups
FEE_STRATEGY_ALIASES = {
    "auto": FeeStrategy.NETWORK,
    "aggressive": FeeStrategy.ADDITIVE,
    "percent": FeeStrategy.PERCENTAGE,
}


@dataclass(frozen=True)
class GenesisClock:
    """Epoch derived from block timestamp relative to a genesis timestamp."""

    genesis_timestamp: int
    epoch_duration: int  # seconds


@dataclass(frozen=True)
class BlockCountClock:
    """Epoch derived from block number with a fixed number of blocks per epoch."""

    blocks_per_epoch: int = 192
    seconds_per_block: int = 12


@dataclass(frozen=True)
class SlotClock:
    """Epoch derived from the oracle contract's slot counter.

    ``slots_per_epoch`` / ``slot_duration`` override the on-chain values when set.
    """

    slots_per_epoch: int | None = None
    slot_duration: int | None = None


ClockModel = Union[GenesisClock, BlockCountClock, SlotClock]

CLOCK_MODEL_NAMES = ("genesis", "blocks", "slots")


@dataclass
class ClockConfig:
    """Raw clock-model settings as read from the config file."""

    model: str = "blocks"
    genesis_timestamp: int | None = None
    epoch_duration: int | None = None
    blocks_per_epoch: int = 192
    seconds_per_block: int = 12
    slots_per_epoch: int | None = None
    slot_duration: int | None = None

    def to_clock_model(self) -> ClockModel:
        if self.model == "genesis":
            return GenesisClock(
                genesis_timestamp=int(self.genesis_timestamp or 0),
                epoch_duration=int(self.epoch_duration or 0),
            )
        if self.model == "slots":
            return SlotClock(
                slots_per_epoch=self.slots_per_epoch,
                slot_duration=self.slot_duration,
            )
        return BlockCountClock(
            blocks_per_epoch=self.blocks_per_epoch,
            seconds_per_block=self.seconds_per_block,
        )


@dataclass
class TriggerConfig:
    """Trigger policy and its timing parameters."""

    policy: TriggerPolicy = TriggerPolicy.REACTIVE_ONCHAIN
    window_seconds: float = 15.0  # reactive: fire within this many seconds after start
    lead_seconds: float = 5.0  # preemptive: fire within this many seconds before next start


@dataclass
class FeeConfig:
    """Fee strategy and its parameters (gwei values are whole numbers)."""

    strategy: FeeStrategy = FeeStrategy.NETWORK
    manual_gwei: int | None = None
    add_gwei: int = 2
    percent: int = 20


@dataclass
class ClaimConfig:
    """Claim sequencing settings."""

    enabled: bool = True
    ceiling: str = "1000"  # token units, converted with chain.token_decimals


@dataclass
class RelayEndpoint:
    """A single block-builder relay."""

    name: str
    url: str
    sign: bool = False  # add X-Flashbots-Signature header


@dataclass
class RelayConfig:
    """Fan-out submission settings."""

    enabled: bool = False
    target_offset: int = 2  # blocks ahead of current head
    timeout: float = 3.0  # seconds per relay request
    endpoints: list[RelayEndpoint] = field(default_factory=list)


@dataclass
class ChainConfig:
    """Chain endpoints, contracts, and transaction parameters."""

    read_rpc_url: str = ""
    write_rpc_url: str = ""  # falls back to read_rpc_url
    chain_id: int | None = None  # queried from the node when unset
    reward_contract: str = ""
    oracle_contract: str = ""  # slot-model deployments only
    private_key: str = ""  # loaded from env var EPOCH_TRIGGER_PRIVATE_KEY
    gas_limit: int = 300_000
    receipt_timeout: int = 120  # seconds
    token_decimals: int = 18
    token_symbol: str = "TOKEN"

    @property
    def effective_write_url(self) -> str:
        return self.write_rpc_url or self.read_rpc_url


@dataclass
class DaemonConfig:
    """Complete daemon configuration."""

    # Daemon
    poll_interval_ms: int = 30_000
    resample_interval_ms: int = 0  # 0 = sample the chain every tick
    error_backoff_ms: int = 5_000
    log_level: str = "info"
    drift_warn_seconds: float = 6.0

    chain: ChainConfig = field(default_factory=ChainConfig)
    clock: ClockConfig = field(default_factory=ClockConfig)
    trigger: TriggerConfig = field(default_factory=TriggerConfig)
    fees: FeeConfig = field(default_factory=FeeConfig)
    claims: ClaimConfig = field(default_factory=ClaimConfig)
    relays: RelayConfig = field(default_factory=RelayConfig)

    @property
    def poll_interval(self) -> float:
        return self.poll_interval_ms / 1000

    @property
    def error_backoff(self) -> float:
        return self.error_backoff_ms / 1000

    @property
    def claim_ceiling_units(self) -> int:
        """Claim ceiling in token base units."""
        return to_base_units(self.claims.ceiling, self.chain.token_decimals)


def to_base_units(amount: str | int, decimals: int) -> int:
    """Convert a decimal token amount string to integer base units, exactly."""
    text = str(amount).strip()
    whole, _, frac = text.partition(".")
    if len(frac) > decimals:
        raise ValueError(f"{amount!r} has more than {decimals} decimal places")
    frac = frac.ljust(decimals, "0")
    return int(whole or "0") * 10**decimals + int(frac or "0")
