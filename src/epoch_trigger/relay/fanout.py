"""Builder relay fan-out - races one signed transaction across relays via httpx."""

from __future__ import annotations

import asyncio
import json
import logging
import time

import httpx
from web3 import Web3

from epoch_trigger.interfaces.signer import Signer
from epoch_trigger.models.config import RelayEndpoint
from epoch_trigger.models.records import RelayResult, SignedTransaction

log = logging.getLogger(__name__)


def build_bundle_request(signed: SignedTransaction, target_block: int) -> dict:
    """JSON-RPC eth_sendBundle body for a single-transaction bundle."""
    return {
        "jsonrpc": "2.0",
        "id": 1,
        "method": "eth_sendBundle",
        "params": [
            {
                "txs": [signed.raw],
                "blockNumber": hex(target_block),
            }
        ],
    }


class HttpRelayFanOut:
    """Submits the same bundle to every relay concurrently.

    Each relay gets its own timeout; the call waits for all of them to settle
    (accepted, rejected, or timed out) and never cancels siblings early.
    A relay "accepts" on HTTP 2xx with no JSON-RPC error member; this is not
    proof of inclusion.
    """

    def __init__(
        self,
        endpoints: list[RelayEndpoint],
        timeout: float = 3.0,
        signer: Signer | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._endpoints = endpoints
        self._timeout = timeout
        self._signer = signer
        self._transport = transport

    @property
    def endpoints(self) -> list[RelayEndpoint]:
        return self._endpoints

    async def dispatch(self, signed: SignedTransaction, target_block: int) -> list[RelayResult]:
        body = json.dumps(build_bundle_request(signed, target_block), separators=(",", ":"))

        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self._timeout, connect=min(self._timeout, 2.0)),
            transport=self._transport,
        ) as client:
            tasks = [self._dispatch_one(client, endpoint, body) for endpoint in self._endpoints]
            settled = await asyncio.gather(*tasks, return_exceptions=True)

        results: list[RelayResult] = []
        for endpoint, outcome in zip(self._endpoints, settled):
            if isinstance(outcome, BaseException):
                results.append(RelayResult(relay=endpoint.name, accepted=False, detail=str(outcome)))
            else:
                results.append(outcome)

        accepted = sum(1 for r in results if r.accepted)
        log.info(
            "Bundle for block %d: %d/%d relays accepted", target_block, accepted, len(results),
        )
        for r in results:
            if not r.accepted:
                log.debug("Relay %s rejected: %s", r.relay, r.detail)
        return results

    async def _dispatch_one(
        self, client: httpx.AsyncClient, endpoint: RelayEndpoint, body: str,
    ) -> RelayResult:
        start = time.monotonic()
        headers = {"Content-Type": "application/json"}
        if endpoint.sign and self._signer is not None:
            headers["X-Flashbots-Signature"] = self._auth_header(body)

        try:
            resp = await asyncio.wait_for(
                client.post(endpoint.url, content=body, headers=headers),
                timeout=self._timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return RelayResult(
                relay=endpoint.name,
                accepted=False,
                detail=f"timeout after {self._timeout}s",
                duration_ms=_elapsed_ms(start),
            )
        except httpx.HTTPError as exc:
            return RelayResult(
                relay=endpoint.name,
                accepted=False,
                detail=f"transport: {exc}",
                duration_ms=_elapsed_ms(start),
            )

        duration = _elapsed_ms(start)
        if resp.status_code < 200 or resp.status_code >= 300:
            return RelayResult(
                relay=endpoint.name,
                accepted=False,
                detail=f"HTTP {resp.status_code}",
                duration_ms=duration,
            )

        try:
            payload = resp.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict) and payload.get("error"):
            error = payload["error"]
            message = error.get("message", error) if isinstance(error, dict) else error
            return RelayResult(
                relay=endpoint.name,
                accepted=False,
                detail=f"rpc error: {message}",
                duration_ms=duration,
            )

        return RelayResult(relay=endpoint.name, accepted=True, detail="accepted", duration_ms=duration)

    def _auth_header(self, body: str) -> str:
        assert self._signer is not None
        digest = Web3.to_hex(Web3.keccak(text=body))
        return f"{self._signer.address}:{self._signer.sign_message(digest)}"


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
