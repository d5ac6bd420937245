"""Epoch timing models: chain samples, local anchor, and scheduler decisions."""

from __future__ import annotations

from dataclasses import dataclass

from epoch_trigger.models.config import TriggerPolicy


@dataclass(frozen=True)
class ChainHead:
    """The latest block as seen by the read endpoint."""

    number: int
    timestamp: int  # unix seconds


@dataclass(frozen=True)
class EpochSample:
    """Authoritative epoch position derived from one chain read.

    Invariant: 0 <= seconds_into_epoch < epoch_duration.
    """

    epoch_number: int
    seconds_into_epoch: float
    epoch_duration: float
    sampled_at: float  # monotonic clock reading when the sample was taken
    block_number: int | None = None
    block_timestamp: int | None = None

    def __post_init__(self) -> None:
        if self.epoch_duration <= 0:
            raise ValueError(f"epoch_duration must be positive, got {self.epoch_duration}")
        if not 0 <= self.seconds_into_epoch < self.epoch_duration:
            raise ValueError(
                f"seconds_into_epoch {self.seconds_into_epoch} outside "
                f"[0, {self.epoch_duration})"
            )

    @property
    def seconds_until_next_epoch(self) -> float:
        return self.epoch_duration - self.seconds_into_epoch

    def to_view(self) -> EpochView:
        return EpochView(
            epoch_number=self.epoch_number,
            seconds_into_epoch=self.seconds_into_epoch,
            seconds_until_next_epoch=self.seconds_until_next_epoch,
            epoch_duration=self.epoch_duration,
        )


@dataclass(frozen=True)
class EpochView:
    """Epoch position as seen by one clock (on-chain sample or local extrapolation)."""

    epoch_number: int
    seconds_into_epoch: float
    seconds_until_next_epoch: float
    epoch_duration: float


@dataclass
class LocalClockAnchor:
    """Mutable anchor tying the local monotonic clock to a chain sample."""

    anchor_wall_clock: float
    anchor_epoch_seconds: float
    epoch_duration: float
    epoch_number: int


@dataclass(frozen=True)
class TriggerDecision:
    """Outcome of one scheduler evaluation."""

    fire: bool
    target_epoch: int
    policy: TriggerPolicy
    reason: str  # "in_window", "outside_window", "already_fired"
