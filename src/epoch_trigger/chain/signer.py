"""Local-key signer backed by eth_account."""

from __future__ import annotations

import logging
from typing import Any

from eth_account import Account
from eth_account.messages import encode_defunct
from web3 import Web3

log = logging.getLogger(__name__)


class LocalAccountSigner:
    """Holds a private key in memory and signs on request.

    The key is never logged or exposed; only the derived address is.
    """

    def __init__(self, private_key: str) -> None:
        self._account = Account.from_key(private_key)

    @property
    def address(self) -> str:
        return self._account.address

    def sign_transaction(self, tx: dict[str, Any]) -> bytes:
        signed = self._account.sign_transaction(tx)
        return bytes(signed.raw_transaction)

    def sign_message(self, text: str) -> str:
        signed = self._account.sign_message(encode_defunct(text=text))
        return Web3.to_hex(signed.signature)

    def __repr__(self) -> str:
        return f"LocalAccountSigner({self.address})"
