"""Slot-model chain-time contract queries."""

from __future__ import annotations

import logging
from typing import Any

from web3 import AsyncWeb3, Web3

from epoch_trigger.errors import TransientRpcError

log = logging.getLogger(__name__)


def _view(name: str, output: str = "uint256") -> dict[str, Any]:
    return {
        "name": name,
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": output}],
    }


SLOT_ORACLE_ABI: list[dict[str, Any]] = [
    _view("getCurrentSlot"),
    _view("getSlotDuration"),
    _view("getEpochDuration"),  # slots per epoch
    _view("getActiveAttesterCount"),
    _view("isRewardsClaimable", "bool"),
]


class Web3SlotOracle:
    """Read-only access to the rollup contract that owns the slot clock."""

    def __init__(self, w3: AsyncWeb3, contract_address: str) -> None:
        self._contract = w3.eth.contract(
            address=Web3.to_checksum_address(contract_address), abi=SLOT_ORACLE_ABI,
        )

    async def _call(self, fn_name: str) -> Any:
        try:
            return await getattr(self._contract.functions, fn_name)().call()
        except Exception as exc:
            raise TransientRpcError(f"{fn_name}() failed: {exc}") from exc

    async def current_slot(self) -> int:
        return int(await self._call("getCurrentSlot"))

    async def slot_duration(self) -> int:
        return int(await self._call("getSlotDuration"))

    async def slots_per_epoch(self) -> int:
        return int(await self._call("getEpochDuration"))

    async def active_attester_count(self) -> int:
        return int(await self._call("getActiveAttesterCount"))

    async def is_rewards_claimable(self) -> bool:
        return bool(await self._call("isRewardsClaimable"))
