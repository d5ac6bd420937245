"""Chain time oracle - derives epoch position from the chain head."""

from __future__ import annotations

import logging
import time
from typing import Callable

from epoch_trigger.errors import BeforeGenesis, ChainUnavailable
from epoch_trigger.interfaces.chain import ChainClient
from epoch_trigger.interfaces.oracle import SlotOracle
from epoch_trigger.models.config import BlockCountClock, ClockModel, GenesisClock, SlotClock
from epoch_trigger.models.timing import EpochSample

log = logging.getLogger(__name__)


def epoch_from_timestamp(block_timestamp: int, model: GenesisClock) -> tuple[int, int]:
    """(epoch, seconds into epoch) for the genesis/fixed-duration model."""
    if block_timestamp < model.genesis_timestamp:
        raise BeforeGenesis(block_timestamp, model.genesis_timestamp)
    elapsed = block_timestamp - model.genesis_timestamp
    return elapsed // model.epoch_duration, elapsed % model.epoch_duration


def epoch_from_block(block_number: int, model: BlockCountClock) -> tuple[int, int]:
    """(epoch, seconds into epoch) for the fixed-blocks-per-epoch model."""
    blocks_into_epoch = block_number % model.blocks_per_epoch
    return block_number // model.blocks_per_epoch, blocks_into_epoch * model.seconds_per_block


def epoch_from_slot(slot: int, slots_per_epoch: int, slot_duration: int) -> tuple[int, int]:
    """(epoch, seconds into epoch) for the slot-count model."""
    return slot // slots_per_epoch, (slot % slots_per_epoch) * slot_duration


class ChainTimeOracle:
    """Samples the chain and converts it into an EpochSample.

    Exactly one clock model is active. Slot-model constants read from the
    oracle contract are cached after the first successful read.
    """

    def __init__(
        self,
        client: ChainClient,
        model: ClockModel,
        slot_oracle: SlotOracle | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if isinstance(model, SlotClock) and slot_oracle is None:
            raise ValueError("slot clock model requires a slot oracle")
        self._client = client
        self._model = model
        self._slot_oracle = slot_oracle
        self._clock = clock
        self._slots_per_epoch: int | None = None
        self._slot_duration: int | None = None
        if isinstance(model, SlotClock):
            self._slots_per_epoch = model.slots_per_epoch
            self._slot_duration = model.slot_duration

    @property
    def model(self) -> ClockModel:
        return self._model

    async def sample(self) -> EpochSample:
        model = self._model
        try:
            if isinstance(model, GenesisClock):
                return await self._sample_genesis(model)
            if isinstance(model, BlockCountClock):
                return await self._sample_blocks(model)
            if isinstance(model, SlotClock):
                return await self._sample_slots(model)
        except (ChainUnavailable, BeforeGenesis):
            raise
        except Exception as exc:
            raise ChainUnavailable(f"epoch sample failed: {exc}") from exc
        raise TypeError(f"unknown clock model: {type(model).__name__}")

    async def _sample_genesis(self, model: GenesisClock) -> EpochSample:
        if model.epoch_duration <= 0:
            raise ChainUnavailable(f"epoch duration must be positive, got {model.epoch_duration}")
        head = await self._client.get_head()
        epoch, seconds = epoch_from_timestamp(head.timestamp, model)
        return EpochSample(
            epoch_number=epoch,
            seconds_into_epoch=seconds,
            epoch_duration=model.epoch_duration,
            sampled_at=self._clock(),
            block_number=head.number,
            block_timestamp=head.timestamp,
        )

    async def _sample_blocks(self, model: BlockCountClock) -> EpochSample:
        if model.blocks_per_epoch <= 0 or model.seconds_per_block <= 0:
            raise ChainUnavailable("blocks_per_epoch and seconds_per_block must be positive")
        head = await self._client.get_head()
        epoch, seconds = epoch_from_block(head.number, model)
        return EpochSample(
            epoch_number=epoch,
            seconds_into_epoch=seconds,
            epoch_duration=model.blocks_per_epoch * model.seconds_per_block,
            sampled_at=self._clock(),
            block_number=head.number,
            block_timestamp=head.timestamp,
        )

    async def _sample_slots(self, model: SlotClock) -> EpochSample:
        assert self._slot_oracle is not None
        if self._slots_per_epoch is None:
            self._slots_per_epoch = await self._slot_oracle.slots_per_epoch()
            log.info("Slots per epoch: %d", self._slots_per_epoch)
        if self._slot_duration is None:
            self._slot_duration = await self._slot_oracle.slot_duration()
            log.info("Slot duration: %ds", self._slot_duration)

        slots_per_epoch, slot_duration = self._slots_per_epoch, self._slot_duration
        if slots_per_epoch <= 0 or slot_duration <= 0:
            # Drop cached on-chain values so they are re-read next time
            self._slots_per_epoch = model.slots_per_epoch
            self._slot_duration = model.slot_duration
            raise ChainUnavailable(
                f"inconsistent slot clock: {slots_per_epoch} slots x {slot_duration}s"
            )

        slot = await self._slot_oracle.current_slot()
        epoch, seconds = epoch_from_slot(slot, slots_per_epoch, slot_duration)
        return EpochSample(
            epoch_number=epoch,
            seconds_into_epoch=seconds,
            epoch_duration=slots_per_epoch * slot_duration,
            sampled_at=self._clock(),
        )
