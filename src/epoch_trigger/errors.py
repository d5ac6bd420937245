"""Exception taxonomy shared by all epoch_trigger components."""

from __future__ import annotations


class EpochTriggerError(Exception):
    """Base class for every error raised by epoch_trigger."""


class ChainUnavailable(EpochTriggerError):
    """The node could not be reached or returned inconsistent data.

    The poll loop serves the last cached sample and retries next tick.
    """


class TransientRpcError(ChainUnavailable):
    """A single RPC call failed in a way that is expected to clear up."""


class BeforeGenesis(EpochTriggerError):
    """Chain head timestamp precedes the configured genesis timestamp."""

    def __init__(self, block_timestamp: int, genesis_timestamp: int) -> None:
        super().__init__(
            f"block timestamp {block_timestamp} is before genesis {genesis_timestamp}"
        )
        self.block_timestamp = block_timestamp
        self.genesis_timestamp = genesis_timestamp


class ClockNotAnchored(EpochTriggerError):
    """Local extrapolation was requested before any chain sample arrived."""


class NoEligibleTarget(EpochTriggerError):
    """The reward contract reports there is nothing to trigger right now.

    Benign: another actor already triggered this epoch, or the queue is empty.
    """


class SubmissionRejected(EpochTriggerError):
    """The triggering transaction could not be dispatched or was reverted."""

    def __init__(self, message: str, tx_hash: str | None = None) -> None:
        super().__init__(message)
        self.tx_hash = tx_hash


class FatalConfigError(EpochTriggerError):
    """Configuration is missing or invalid; the daemon must not start."""

    def __init__(self, problems: list[str]) -> None:
        super().__init__("; ".join(problems))
        self.problems = problems
