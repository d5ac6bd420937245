"""Signer protocol - the only component that touches key material."""

from __future__ import annotations

from typing import Any, Protocol


class Signer(Protocol):
    """Signs transactions and messages for the triggering wallet."""

    @property
    def address(self) -> str:
        ...

    def sign_transaction(self, tx: dict[str, Any]) -> bytes:
        """Return the raw signed transaction bytes."""
        ...

    def sign_message(self, text: str) -> str:
        """Return a 0x-prefixed EIP-191 signature over ``text``."""
        ...
