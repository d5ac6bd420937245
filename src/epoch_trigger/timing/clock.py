"""Local clock sync - extrapolates epoch position between chain samples."""

from __future__ import annotations

import logging
import math

from epoch_trigger.errors import ClockNotAnchored
from epoch_trigger.models.timing import EpochSample, EpochView, LocalClockAnchor

log = logging.getLogger(__name__)


class LocalClockSync:
    """Owns the local anchor and turns elapsed monotonic time into epoch position.

    Chain reads are slow and rate-limited; extrapolating from the last anchor
    gives sub-second scheduling between reads, and every new sample
    re-anchors to bound drift. The anchor is mutated only from the tick task.
    """

    def __init__(self, drift_warn_seconds: float = 6.0) -> None:
        self._anchor: LocalClockAnchor | None = None
        self._drift_warn_seconds = drift_warn_seconds

    @property
    def anchor(self) -> LocalClockAnchor | None:
        return self._anchor

    @property
    def is_anchored(self) -> bool:
        return self._anchor is not None

    def reanchor(self, sample: EpochSample) -> float | None:
        """Overwrite the anchor with ``sample``.

        Returns the drift in seconds between the sample and what the previous
        anchor extrapolated for the same instant, or None on first anchor.
        """
        drift: float | None = None
        if self._anchor is not None:
            predicted = self.extrapolate(sample.sampled_at)
            drift = self._position_delta(sample, predicted)
            if abs(drift) > self._drift_warn_seconds:
                log.warning(
                    "Local clock drifted %.1fs from chain (local epoch %d @ %.1fs, "
                    "chain epoch %d @ %.1fs)",
                    drift, predicted.epoch_number, predicted.seconds_into_epoch,
                    sample.epoch_number, sample.seconds_into_epoch,
                )
            else:
                log.debug("Re-anchored, drift %.2fs", drift)

        self._anchor = LocalClockAnchor(
            anchor_wall_clock=sample.sampled_at,
            anchor_epoch_seconds=sample.seconds_into_epoch,
            epoch_duration=sample.epoch_duration,
            epoch_number=sample.epoch_number,
        )
        return drift

    def extrapolate(self, now: float) -> EpochView:
        """Project the anchor forward to ``now`` (same clock as ``sampled_at``)."""
        anchor = self._anchor
        if anchor is None:
            raise ClockNotAnchored("no chain sample has been taken yet")

        elapsed = max(0.0, now - anchor.anchor_wall_clock)
        total = anchor.anchor_epoch_seconds + elapsed
        rolled = math.floor(total / anchor.epoch_duration)
        seconds = total - rolled * anchor.epoch_duration
        # Guard float residue right at the boundary
        if seconds >= anchor.epoch_duration:
            rolled += 1
            seconds = 0.0
        elif seconds < 0:
            seconds = 0.0

        return EpochView(
            epoch_number=anchor.epoch_number + rolled,
            seconds_into_epoch=seconds,
            seconds_until_next_epoch=anchor.epoch_duration - seconds,
            epoch_duration=anchor.epoch_duration,
        )

    @staticmethod
    def _position_delta(sample: EpochSample, predicted: EpochView) -> float:
        """Signed seconds between two epoch positions (sample minus prediction)."""
        epochs = sample.epoch_number - predicted.epoch_number
        return epochs * sample.epoch_duration + (
            sample.seconds_into_epoch - predicted.seconds_into_epoch
        )
