"""ClaimSequencer protocol - sweeps the wallet's earned rewards."""

from __future__ import annotations

from typing import Protocol

from epoch_trigger.models.records import ClaimOutcome


class RewardClaimer(Protocol):
    """Claims the wallet's reward balance when it is sane to do so."""

    @property
    def ceiling(self) -> int:
        """Largest balance, in token base units, that will be claimed."""
        ...

    async def maybe_claim(self) -> ClaimOutcome:
        ...
