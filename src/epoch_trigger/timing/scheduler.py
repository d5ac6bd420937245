"""Trigger scheduler - decides when to fire and guards against double firing."""

from __future__ import annotations

import logging

from epoch_trigger.models.config import TriggerConfig, TriggerPolicy
from epoch_trigger.models.timing import EpochView, TriggerDecision

log = logging.getLogger(__name__)


def evaluate_policy(
    on_chain: EpochView,
    local: EpochView | None,
    policy: TriggerPolicy,
    window_seconds: float,
    lead_seconds: float,
    fired_mark: int | None,
) -> TriggerDecision:
    """Apply the policy decision table to one pair of epoch views.

    Reactive policies target the current epoch when it started no more than
    ``window_seconds`` ago; preemptive policies target the next epoch when it
    starts within ``lead_seconds``. A target at or below ``fired_mark`` has
    already been dispatched and never fires again.
    """
    view = local if policy.uses_local_clock else on_chain
    if view is None:
        view = on_chain

    if policy.is_preemptive:
        target = view.epoch_number + 1
        in_window = view.seconds_until_next_epoch <= lead_seconds
    else:
        target = view.epoch_number
        in_window = view.seconds_into_epoch <= window_seconds

    if not in_window:
        return TriggerDecision(False, target, policy, "outside_window")
    if fired_mark is not None and target <= fired_mark:
        return TriggerDecision(False, target, policy, "already_fired")
    return TriggerDecision(True, target, policy, "in_window")


class TriggerScheduler:
    """Holds the active policy and the FiredEpochMark for this run."""

    def __init__(self, config: TriggerConfig) -> None:
        self._policy = config.policy
        self._window_seconds = config.window_seconds
        self._lead_seconds = config.lead_seconds
        self._fired_mark: int | None = None

    @property
    def policy(self) -> TriggerPolicy:
        return self._policy

    @property
    def fired_mark(self) -> int | None:
        return self._fired_mark

    def evaluate(self, on_chain: EpochView, local: EpochView | None = None) -> TriggerDecision:
        decision = evaluate_policy(
            on_chain,
            local,
            self._policy,
            self._window_seconds,
            self._lead_seconds,
            self._fired_mark,
        )
        if decision.fire:
            log.info(
                "Trigger window open (%s): target epoch %d",
                self._policy.value, decision.target_epoch,
            )
        return decision

    def record_fire(self, target_epoch: int) -> None:
        """Advance the mark to ``target_epoch``. Never moves it backwards."""
        if self._fired_mark is None or target_epoch > self._fired_mark:
            self._fired_mark = target_epoch
        else:
            log.debug(
                "Ignoring fire record for epoch %d (mark already %d)",
                target_epoch, self._fired_mark,
            )
