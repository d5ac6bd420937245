"""Fee estimator - turns network fee data into a bid under an escalation strategy."""

from __future__ import annotations

import logging

from epoch_trigger.models.config import FeeConfig, FeeStrategy
from epoch_trigger.models.records import FeeBid, NetworkFeeData

log = logging.getLogger(__name__)

GWEI = 1_000_000_000

# Used when the node reports nothing usable for a field
DEFAULT_MAX_PRIORITY_FEE = 1 * GWEI
DEFAULT_MAX_FEE = 2 * GWEI


def base_fees(fee_data: NetworkFeeData) -> tuple[int, int]:
    """(max_fee, max_priority_fee) from network data with fallbacks applied.

    Null or zero fields fall back to the defaults. If no usable max fee is
    reported but a legacy gas price is, the gas price becomes the max fee and
    half of it the priority fee.
    """
    max_fee = DEFAULT_MAX_FEE
    priority = DEFAULT_MAX_PRIORITY_FEE

    if fee_data.max_priority_fee_per_gas:
        priority = fee_data.max_priority_fee_per_gas
    if fee_data.max_fee_per_gas:
        max_fee = fee_data.max_fee_per_gas
    elif fee_data.gas_price:
        max_fee = fee_data.gas_price
        priority = fee_data.gas_price // 2

    return max_fee, priority


class FeeEstimator:
    """Computes a FeeBid per tick. All arithmetic is integer wei."""

    def __init__(self, config: FeeConfig) -> None:
        self._config = config

    @property
    def strategy(self) -> FeeStrategy:
        return self._config.strategy

    def estimate(self, fee_data: NetworkFeeData, config: FeeConfig | None = None) -> FeeBid:
        cfg = config or self._config
        strategy = cfg.strategy

        if strategy == FeeStrategy.FIXED:
            manual = int(cfg.manual_gwei or 0) * GWEI
            bid = FeeBid(max_fee_per_gas=manual, max_priority_fee_per_gas=manual)
        else:
            max_fee, priority = base_fees(fee_data)
            if strategy == FeeStrategy.ADDITIVE:
                add = int(cfg.add_gwei) * GWEI
                bid = FeeBid(max_fee_per_gas=max_fee + add, max_priority_fee_per_gas=priority + add)
            elif strategy == FeeStrategy.PERCENTAGE:
                factor = 100 + int(cfg.percent)
                bid = FeeBid(
                    max_fee_per_gas=max_fee * factor // 100,
                    max_priority_fee_per_gas=priority * factor // 100,
                )
            else:
                bid = FeeBid(max_fee_per_gas=max_fee, max_priority_fee_per_gas=priority)

        log.debug(
            "Fee bid (%s): max_fee=%d priority=%d",
            strategy.value, bid.max_fee_per_gas, bid.max_priority_fee_per_gas,
        )
        return bid
