"""Time oracle protocols - epoch position from the chain."""

from __future__ import annotations

from typing import Protocol

from epoch_trigger.models.timing import EpochSample


class TimeOracle(Protocol):
    """Derives the current epoch position from the chain head."""

    async def sample(self) -> EpochSample:
        """Take one sample. Raises ChainUnavailable or BeforeGenesis."""
        ...


class SlotOracle(Protocol):
    """Slot-model chain-time contract (rollup-style deployments)."""

    async def current_slot(self) -> int:
        ...

    async def slot_duration(self) -> int:
        ...

    async def slots_per_epoch(self) -> int:
        ...

    async def active_attester_count(self) -> int:
        ...

    async def is_rewards_claimable(self) -> bool:
        ...
