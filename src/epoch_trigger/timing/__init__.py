"""Epoch timing: local clock extrapolation and trigger scheduling."""

from epoch_trigger.timing.clock import LocalClockSync
from epoch_trigger.timing.scheduler import TriggerScheduler, evaluate_policy

__all__ = ["LocalClockSync", "TriggerScheduler", "evaluate_policy"]
