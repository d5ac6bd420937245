"""Tier 2 fixtures: local builder relays served by aiohttp."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field

import pytest
from aiohttp import web

from epoch_trigger.models.config import RelayEndpoint

BASE_PORT = 9301


@dataclass
class LocalRelay:
    """One relay server and everything it received."""

    name: str
    mode: str  # "accept", "reject", "error", "slow"
    port: int
    bundles: list[dict] = field(default_factory=list)
    headers: list = field(default_factory=list)

    @property
    def url(self) -> str:
        return f"http://127.0.0.1:{self.port}/"

    def endpoint(self, sign: bool = False) -> RelayEndpoint:
        return RelayEndpoint(name=self.name, url=self.url, sign=sign)


def _make_handler(relay: LocalRelay):
    async def handle_bundle(request):
        body = await request.text()
        relay.bundles.append(json.loads(body))
        relay.headers.append(request.headers.copy())
        if relay.mode == "reject":
            return web.Response(status=500, text="internal error")
        if relay.mode == "error":
            return web.json_response(
                {"jsonrpc": "2.0", "id": 1, "error": {"code": -32602, "message": "invalid bundle"}}
            )
        if relay.mode == "slow":
            await asyncio.sleep(5)
        return web.json_response({"jsonrpc": "2.0", "id": 1, "result": {"bundleHash": "0x" + "b" * 64}})

    return handle_bundle


@pytest.fixture
async def relay_servers():
    """Four local relays: two accept, one 500s, one answers with a JSON-RPC error.

    Returns a dict name -> LocalRelay.
    """
    specs = [("alpha", "accept"), ("beta", "reject"), ("gamma", "accept"), ("delta", "error")]
    relays: dict[str, LocalRelay] = {}
    runners: list[web.AppRunner] = []

    for offset, (name, mode) in enumerate(specs):
        relay = LocalRelay(name=name, mode=mode, port=BASE_PORT + offset)
        app = web.Application()
        app.router.add_post("/", _make_handler(relay))
        runner = web.AppRunner(app)
        await runner.setup()
        site = web.TCPSite(runner, "127.0.0.1", relay.port)
        await site.start()
        relays[name] = relay
        runners.append(runner)

    yield relays

    for runner in runners:
        await runner.cleanup()


@pytest.fixture
async def slow_relay():
    """A relay that holds every request for 5 seconds."""
    relay = LocalRelay(name="slow", mode="slow", port=BASE_PORT + 10)
    app = web.Application()
    app.router.add_post("/", _make_handler(relay))
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", relay.port)
    await site.start()
    yield relay
    await runner.cleanup()
