"""Claim sequencer - sweeps the wallet's reward balance under a sanity ceiling."""

from __future__ import annotations

import logging

from epoch_trigger.errors import EpochTriggerError, TransientRpcError
from epoch_trigger.interfaces.chain import ChainClient
from epoch_trigger.interfaces.oracle import SlotOracle
from epoch_trigger.models.records import ClaimOutcome, ClaimStatus

log = logging.getLogger(__name__)


class ClaimSequencer:
    """Claims rewards when 0 < balance <= ceiling.

    A balance above the ceiling looks like a measurement or contract error
    and is left alone with a warning. The balance is read fresh on every
    call. On slot-model deployments the oracle contract can close claiming.
    """

    def __init__(
        self,
        client: ChainClient,
        ceiling: int,
        slot_oracle: SlotOracle | None = None,
    ) -> None:
        self._client = client
        self._ceiling = ceiling
        self._slot_oracle = slot_oracle

    @property
    def ceiling(self) -> int:
        return self._ceiling

    async def maybe_claim(self) -> ClaimOutcome:
        try:
            balance = await self._client.rewards_of(self._client.address)
        except TransientRpcError as exc:
            log.error("Failed to read reward balance: %s", exc)
            return ClaimOutcome(status=ClaimStatus.FAILED, balance=0, error=str(exc))

        if balance <= 0:
            return ClaimOutcome(status=ClaimStatus.SKIPPED_ZERO, balance=0)

        if balance > self._ceiling:
            log.warning(
                "Reward balance %d exceeds claim ceiling %d; not claiming",
                balance, self._ceiling,
            )
            return ClaimOutcome(status=ClaimStatus.ABOVE_CEILING, balance=balance)

        if self._slot_oracle is not None:
            try:
                claimable = await self._slot_oracle.is_rewards_claimable()
            except TransientRpcError as exc:
                log.error("Failed to read claimability: %s", exc)
                return ClaimOutcome(status=ClaimStatus.FAILED, balance=balance, error=str(exc))
            if not claimable:
                log.info("Rewards not claimable yet (balance %d)", balance)
                return ClaimOutcome(status=ClaimStatus.NOT_CLAIMABLE, balance=balance)

        log.info("Claiming reward balance %d", balance)
        try:
            result = await self._client.send_claim()
        except EpochTriggerError as exc:
            log.error("Claim failed: %s", exc)
            return ClaimOutcome(status=ClaimStatus.FAILED, balance=balance, error=str(exc))

        if not result.succeeded:
            log.error("Claim reverted (tx %s)", result.tx_hash)
            return ClaimOutcome(
                status=ClaimStatus.FAILED,
                balance=balance,
                tx_hash=result.tx_hash,
                error="claim reverted",
            )

        log.info("Claim confirmed (tx %s)", result.tx_hash)
        return ClaimOutcome(status=ClaimStatus.CLAIMED, balance=balance, tx_hash=result.tx_hash)
