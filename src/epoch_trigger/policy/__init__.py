"""Fee policy."""

from epoch_trigger.policy.fees import FeeEstimator, base_fees

__all__ = ["FeeEstimator", "base_fees"]
