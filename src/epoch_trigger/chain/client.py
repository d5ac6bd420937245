"""Web3 chain client - reward contract reads, trigger and claim transactions."""

from __future__ import annotations

import logging
from typing import Any

from web3 import AsyncWeb3, Web3
from web3.exceptions import ContractLogicError, TimeExhausted

from epoch_trigger.errors import NoEligibleTarget, SubmissionRejected, TransientRpcError
from epoch_trigger.interfaces.signer import Signer
from epoch_trigger.models.records import FeeBid, NetworkFeeData, SignedTransaction, TxResult
from epoch_trigger.models.timing import ChainHead

log = logging.getLogger(__name__)

REWARD_CONTRACT_ABI: list[dict[str, Any]] = [
    {
        "name": "flushEntryQueue",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [],
        "outputs": [],
    },
    {
        "name": "rewardsOf",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "claimRewards",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [],
        "outputs": [],
    },
    {
        "name": "rewardsAvailable",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
]

# Revert reasons meaning "nothing to trigger this epoch" rather than a failure
_BENIGN_REVERTS = ("no validators", "already flushed", "nothing to flush", "queue empty")

CLAIM_GAS_LIMIT = 200_000


def is_benign_revert(exc: Exception) -> bool:
    """True when a revert reason says the trigger has nothing to do."""
    msg = str(exc).lower()
    return any(reason in msg for reason in _BENIGN_REVERTS)


def make_web3(rpc_url: str, timeout: float = 10) -> AsyncWeb3:
    return AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))


class Web3ChainClient:
    """ChainClient over two web3 endpoints.

    ``read_w3`` serves views and block/fee queries; ``write_w3`` receives
    broadcasts and receipt polling. They may point at the same node.
    """

    def __init__(
        self,
        read_w3: AsyncWeb3,
        write_w3: AsyncWeb3,
        reward_contract: str,
        signer: Signer,
        chain_id: int | None = None,
        receipt_timeout: int = 120,
    ) -> None:
        self._read = read_w3
        self._write = write_w3
        self._signer = signer
        self._chain_id = chain_id
        self._receipt_timeout = receipt_timeout
        address = Web3.to_checksum_address(reward_contract)
        self._reader = read_w3.eth.contract(address=address, abi=REWARD_CONTRACT_ABI)
        self._writer = write_w3.eth.contract(address=address, abi=REWARD_CONTRACT_ABI)

    @classmethod
    def from_urls(
        cls,
        read_rpc_url: str,
        write_rpc_url: str,
        reward_contract: str,
        signer: Signer,
        chain_id: int | None = None,
        receipt_timeout: int = 120,
    ) -> Web3ChainClient:
        read_w3 = make_web3(read_rpc_url)
        write_w3 = read_w3 if write_rpc_url == read_rpc_url else make_web3(write_rpc_url)
        return cls(read_w3, write_w3, reward_contract, signer, chain_id, receipt_timeout)

    @property
    def address(self) -> str:
        return self._signer.address

    @property
    def read_w3(self) -> AsyncWeb3:
        return self._read

    # ── Reads ──────────────────────────────────────────────

    async def get_head(self) -> ChainHead:
        try:
            block = await self._read.eth.get_block("latest")
        except Exception as exc:
            raise TransientRpcError(f"get_block(latest) failed: {exc}") from exc
        return ChainHead(number=int(block["number"]), timestamp=int(block["timestamp"]))

    async def get_fee_data(self) -> NetworkFeeData:
        """Assemble EIP-1559 fee data the way wallets do.

        max_fee = 2 * base_fee + priority. Missing pieces come back as None
        so the fee estimator can apply its fallbacks.
        """
        base_fee: int | None = None
        priority: int | None = None
        gas_price: int | None = None

        try:
            block = await self._read.eth.get_block("latest")
            base_fee = block.get("baseFeePerGas")
        except Exception as exc:
            log.debug("Base fee unavailable: %s", exc)
        try:
            priority = int(await self._read.eth.max_priority_fee)
        except Exception as exc:
            log.debug("Priority fee unavailable: %s", exc)
        try:
            gas_price = int(await self._read.eth.gas_price)
        except Exception as exc:
            log.debug("Gas price unavailable: %s", exc)

        max_fee = None
        if base_fee is not None and priority is not None:
            max_fee = 2 * int(base_fee) + priority
        return NetworkFeeData(
            max_fee_per_gas=max_fee,
            max_priority_fee_per_gas=priority,
            gas_price=gas_price,
        )

    async def get_native_balance(self) -> int:
        try:
            return int(await self._read.eth.get_balance(self.address))
        except Exception as exc:
            raise TransientRpcError(f"get_balance failed: {exc}") from exc

    async def rewards_of(self, address: str) -> int:
        try:
            return int(await self._reader.functions.rewardsOf(address).call())
        except Exception as exc:
            raise TransientRpcError(f"rewardsOf failed: {exc}") from exc

    async def rewards_available(self) -> int:
        try:
            return int(await self._reader.functions.rewardsAvailable().call())
        except Exception as exc:
            raise TransientRpcError(f"rewardsAvailable failed: {exc}") from exc

    # ── Writes ─────────────────────────────────────────────

    async def simulate_trigger(self) -> None:
        try:
            await self._reader.functions.flushEntryQueue().call({"from": self.address})
        except ContractLogicError as exc:
            if is_benign_revert(exc):
                raise NoEligibleTarget(str(exc)) from exc
            raise SubmissionRejected(f"simulation reverted: {exc}") from exc
        except Exception as exc:
            raise SubmissionRejected(f"simulation failed: {exc}") from exc

    async def sign_trigger(self, fee_bid: FeeBid, gas_limit: int) -> SignedTransaction:
        tx = await self._build(self._writer.functions.flushEntryQueue(), gas_limit, fee_bid)
        raw = self._signer.sign_transaction(tx)
        return SignedTransaction(
            raw=Web3.to_hex(raw),
            tx_hash=Web3.to_hex(Web3.keccak(raw)),
            nonce=tx["nonce"],
        )

    async def send_trigger(self, fee_bid: FeeBid, gas_limit: int) -> TxResult:
        signed = await self.sign_trigger(fee_bid, gas_limit)
        return await self._broadcast_and_wait(signed, "flushEntryQueue")

    async def send_claim(self) -> TxResult:
        fee_data = await self.get_fee_data()
        fee_params: dict[str, int] = {}
        if fee_data.max_fee_per_gas and fee_data.max_priority_fee_per_gas:
            fee_params = {
                "maxFeePerGas": fee_data.max_fee_per_gas,
                "maxPriorityFeePerGas": fee_data.max_priority_fee_per_gas,
            }
        elif fee_data.gas_price:
            fee_params = {"gasPrice": fee_data.gas_price}
        tx = await self._build(
            self._writer.functions.claimRewards(), CLAIM_GAS_LIMIT, None, fee_params,
        )
        raw = self._signer.sign_transaction(tx)
        signed = SignedTransaction(
            raw=Web3.to_hex(raw), tx_hash=Web3.to_hex(Web3.keccak(raw)), nonce=tx["nonce"],
        )
        return await self._broadcast_and_wait(signed, "claimRewards")

    async def _build(
        self,
        fn: Any,
        gas_limit: int,
        fee_bid: FeeBid | None,
        fee_params: dict[str, int] | None = None,
    ) -> dict[str, Any]:
        try:
            if self._chain_id is None:
                self._chain_id = int(await self._read.eth.chain_id)
            nonce = await self._write.eth.get_transaction_count(self.address, "pending")
            params: dict[str, Any] = {
                "from": self.address,
                "nonce": nonce,
                "gas": gas_limit,
                "chainId": self._chain_id,
            }
            if fee_bid is not None:
                params.update(fee_bid.as_tx_params())
            elif fee_params:
                params.update(fee_params)
            return dict(await fn.build_transaction(params))
        except Exception as exc:
            raise SubmissionRejected(f"transaction build failed: {exc}") from exc

    async def _broadcast_and_wait(self, signed: SignedTransaction, label: str) -> TxResult:
        try:
            await self._write.eth.send_raw_transaction(signed.raw)
        except Exception as exc:
            if is_benign_revert(exc):
                raise NoEligibleTarget(str(exc)) from exc
            raise SubmissionRejected(f"{label} broadcast failed: {exc}") from exc

        log.info("%s sent: %s (nonce %d)", label, signed.tx_hash, signed.nonce)
        try:
            receipt = await self._write.eth.wait_for_transaction_receipt(
                signed.tx_hash, timeout=self._receipt_timeout,
            )
        except TimeExhausted as exc:
            raise SubmissionRejected(
                f"{label} not mined within {self._receipt_timeout}s", tx_hash=signed.tx_hash,
            ) from exc
        except Exception as exc:
            raise SubmissionRejected(
                f"{label} receipt lookup failed: {exc}", tx_hash=signed.tx_hash,
            ) from exc

        return TxResult(
            tx_hash=signed.tx_hash,
            status=int(receipt["status"]),
            gas_used=int(receipt["gasUsed"]),
            effective_gas_price=int(receipt.get("effectiveGasPrice", 0)),
            block_number=receipt.get("blockNumber"),
        )
