"""RelayDispatcher protocol - sends signed bundles to block-builder relays."""

from __future__ import annotations

from typing import Protocol

from epoch_trigger.models.records import RelayResult, SignedTransaction


class RelayDispatcher(Protocol):
    """Fans one signed transaction out to every configured relay."""

    async def dispatch(self, signed: SignedTransaction, target_block: int) -> list[RelayResult]:
        """Submit to all relays concurrently and return one result per relay."""
        ...
