"""ChainClient protocol - reads and writes against the reward contract."""

from __future__ import annotations

from typing import Protocol

from epoch_trigger.models.records import FeeBid, NetworkFeeData, SignedTransaction, TxResult
from epoch_trigger.models.timing import ChainHead


class ChainClient(Protocol):
    """Chain node access on behalf of the triggering wallet.

    Reads go to the read endpoint, broadcasts to the write endpoint.
    Read failures raise TransientRpcError.
    """

    @property
    def address(self) -> str:
        """Checksummed address of the triggering wallet."""
        ...

    async def get_head(self) -> ChainHead:
        """Latest block number and timestamp."""
        ...

    async def get_fee_data(self) -> NetworkFeeData:
        """Current network fee data; unavailable fields are None."""
        ...

    async def get_native_balance(self) -> int:
        """Wallet balance in wei."""
        ...

    async def rewards_of(self, address: str) -> int:
        """Claimable reward balance for an address (token base units)."""
        ...

    async def rewards_available(self) -> int:
        """Reward pool remaining in the contract (token base units)."""
        ...

    async def simulate_trigger(self) -> None:
        """Dry-run the trigger call. Raises NoEligibleTarget or SubmissionRejected."""
        ...

    async def send_trigger(self, fee_bid: FeeBid, gas_limit: int) -> TxResult:
        """Sign, broadcast, and wait for the trigger transaction."""
        ...

    async def sign_trigger(self, fee_bid: FeeBid, gas_limit: int) -> SignedTransaction:
        """Sign the trigger transaction without broadcasting it."""
        ...

    async def send_claim(self) -> TxResult:
        """Sign, broadcast, and wait for a claimRewards() transaction."""
        ...
