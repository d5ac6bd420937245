"""Action submitters - direct broadcast or builder-relay fan-out."""

from __future__ import annotations

import logging

from epoch_trigger.errors import SubmissionRejected, TransientRpcError
from epoch_trigger.interfaces.chain import ChainClient
from epoch_trigger.interfaces.relay import RelayDispatcher
from epoch_trigger.models.records import DirectOutcome, FanOutOutcome, FeeBid

log = logging.getLogger(__name__)

DEFAULT_GAS_LIMIT = 300_000


class DirectSubmitter:
    """Broadcasts the trigger through the write endpoint and waits for it.

    Reports the reward delta observed across the transaction and the gas
    cost paid. When ``preflight`` is set the call is simulated first so a
    benign "nothing to do" revert costs no gas.
    """

    def __init__(
        self,
        client: ChainClient,
        gas_limit: int = DEFAULT_GAS_LIMIT,
        preflight: bool = True,
    ) -> None:
        self._client = client
        self._gas_limit = gas_limit
        self._preflight = preflight

    async def submit(self, target_epoch: int, fee_bid: FeeBid) -> DirectOutcome:
        log.info(
            "Triggering for epoch %d (max_fee=%d, priority=%d)",
            target_epoch, fee_bid.max_fee_per_gas, fee_bid.max_priority_fee_per_gas,
        )
        if self._preflight:
            await self._client.simulate_trigger()

        before = await self._read_rewards()
        result = await self._client.send_trigger(fee_bid, self._gas_limit)
        if not result.succeeded:
            raise SubmissionRejected(
                f"trigger reverted in block {result.block_number}", tx_hash=result.tx_hash,
            )
        after = await self._read_rewards()

        delta = 0
        if before is not None and after is not None:
            delta = after - before

        log.info(
            "Trigger confirmed for epoch %d: reward delta %d, gas cost %d wei (tx %s)",
            target_epoch, delta, result.cost, result.tx_hash,
        )
        return DirectOutcome(
            dispatched=True,
            confirmed=True,
            reward_delta=delta,
            cost_paid=result.cost,
            tx_hash=result.tx_hash,
        )

    async def _read_rewards(self) -> int | None:
        try:
            return await self._client.rewards_of(self._client.address)
        except TransientRpcError as exc:
            log.warning("Reward read around trigger failed: %s", exc)
            return None


class FanOutSubmitter:
    """Signs the trigger once and races it across builder relays.

    Targets ``head + target_offset``. Succeeds when at least one relay
    accepted; partial relay failure is expected and only logged.
    """

    def __init__(
        self,
        client: ChainClient,
        relays: RelayDispatcher,
        gas_limit: int = DEFAULT_GAS_LIMIT,
        target_offset: int = 2,
        preflight: bool = True,
    ) -> None:
        self._client = client
        self._relays = relays
        self._gas_limit = gas_limit
        self._target_offset = target_offset
        self._preflight = preflight

    async def submit(self, target_epoch: int, fee_bid: FeeBid) -> FanOutOutcome:
        if self._preflight:
            await self._client.simulate_trigger()

        try:
            head = await self._client.get_head()
        except TransientRpcError as exc:
            raise SubmissionRejected(f"cannot read head for bundle target: {exc}") from exc

        target_block = head.number + self._target_offset
        signed = await self._client.sign_trigger(fee_bid, self._gas_limit)
        log.info(
            "Racing trigger for epoch %d to relays, target block %d (tx %s)",
            target_epoch, target_block, signed.tx_hash,
        )

        results = await self._relays.dispatch(signed, target_block)
        outcome = FanOutOutcome(
            target_block=target_block,
            tx_hash=signed.tx_hash,
            relay_results=results,
        )
        if not outcome.dispatched:
            raise SubmissionRejected(
                f"no relay accepted the bundle (0/{outcome.attempted})", tx_hash=signed.tx_hash,
            )
        return outcome
