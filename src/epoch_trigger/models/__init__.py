"""Data models for the epoch_trigger daemon."""

from epoch_trigger.models.config import (
    BlockCountClock,
    ChainConfig,
    ClaimConfig,
    ClockConfig,
    ClockModel,
    DaemonConfig,
    FeeConfig,
    FeeStrategy,
    GenesisClock,
    RelayConfig,
    RelayEndpoint,
    SlotClock,
    TriggerConfig,
    TriggerPolicy,
)
from epoch_trigger.models.records import (
    ClaimOutcome,
    ClaimStatus,
    DirectOutcome,
    FanOutOutcome,
    FeeBid,
    NetworkFeeData,
    RelayResult,
    SignedTransaction,
    SubmissionOutcome,
    TickReport,
    TxResult,
)
from epoch_trigger.models.timing import (
    ChainHead,
    EpochSample,
    EpochView,
    LocalClockAnchor,
    TriggerDecision,
)

__all__ = [
    "BlockCountClock", "ChainConfig", "ClaimConfig", "ClockConfig", "ClockModel",
    "DaemonConfig", "FeeConfig", "FeeStrategy", "GenesisClock", "RelayConfig",
    "RelayEndpoint", "SlotClock", "TriggerConfig", "TriggerPolicy",
    "ClaimOutcome", "ClaimStatus", "DirectOutcome", "FanOutOutcome", "FeeBid",
    "NetworkFeeData", "RelayResult", "SignedTransaction", "SubmissionOutcome",
    "TickReport", "TxResult",
    "ChainHead", "EpochSample", "EpochView", "LocalClockAnchor", "TriggerDecision",
]
