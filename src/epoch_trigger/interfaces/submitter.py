"""ActionSubmitter protocol - dispatches the triggering transaction."""

from __future__ import annotations

from typing import Protocol

from epoch_trigger.models.records import FeeBid, SubmissionOutcome


class ActionSubmitter(Protocol):
    """Builds and dispatches the triggering transaction for a target epoch."""

    async def submit(self, target_epoch: int, fee_bid: FeeBid) -> SubmissionOutcome:
        """Dispatch the trigger. Raises NoEligibleTarget or SubmissionRejected."""
        ...
