"""Main daemon loop - wires all components together."""

from __future__ import annotations

import asyncio
import logging
import signal
import time
from datetime import datetime
from decimal import Decimal
from typing import Callable

from web3 import Web3

from epoch_trigger.chain.claims import ClaimSequencer
from epoch_trigger.chain.client import Web3ChainClient, make_web3
from epoch_trigger.chain.oracle import ChainTimeOracle
from epoch_trigger.chain.signer import LocalAccountSigner
from epoch_trigger.chain.slots import Web3SlotOracle
from epoch_trigger.chain.submitter import DirectSubmitter, FanOutSubmitter
from epoch_trigger.errors import (
    BeforeGenesis,
    ChainUnavailable,
    NoEligibleTarget,
    SubmissionRejected,
    TransientRpcError,
)
from epoch_trigger.interfaces.chain import ChainClient
from epoch_trigger.interfaces.claimer import RewardClaimer
from epoch_trigger.interfaces.oracle import SlotOracle, TimeOracle
from epoch_trigger.interfaces.relay import RelayDispatcher
from epoch_trigger.interfaces.signer import Signer
from epoch_trigger.interfaces.submitter import ActionSubmitter
from epoch_trigger.models.config import DaemonConfig
from epoch_trigger.models.records import DirectOutcome, FanOutOutcome, SubmissionOutcome, TickReport
from epoch_trigger.models.timing import EpochSample, EpochView
from epoch_trigger.policy.fees import FeeEstimator
from epoch_trigger.relay.fanout import HttpRelayFanOut
from epoch_trigger.timing.clock import LocalClockSync
from epoch_trigger.timing.scheduler import TriggerScheduler

log = logging.getLogger(__name__)


def format_units(amount: int, decimals: int = 18) -> str:
    """Render integer base units as a decimal string (no float rounding)."""
    value = Decimal(amount).scaleb(-decimals).normalize()
    text = format(value, "f")
    return text if "." in text else f"{text}.0"


def format_countdown(seconds: float) -> str:
    """Human countdown to the next epoch."""
    if seconds <= 0:
        return "now"
    total = int(seconds)
    if total < 60:
        return f"{total} seconds"
    if total < 3600:
        return f"{total // 60} minutes {total % 60} seconds"
    return f"{total // 3600} hours"


class TriggerDaemon:
    """Epoch-boundary trigger daemon.

    Each tick samples the chain clock, reports status, claims any pending
    reward, evaluates the trigger policy, and submits when due. A failing
    tick is logged and the loop moves on.
    """

    def __init__(
        self,
        cfg: DaemonConfig,
        client: ChainClient | None = None,
        slot_oracle: SlotOracle | None = None,
        relays: RelayDispatcher | None = None,
        signer: Signer | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._cfg = cfg
        self._running = False
        self._stop_event = asyncio.Event()
        self._clock = clock
        self._last_sample: EpochSample | None = None

        if client is None:
            signer = signer or LocalAccountSigner(cfg.chain.private_key)
            client = Web3ChainClient.from_urls(
                cfg.chain.read_rpc_url,
                cfg.chain.effective_write_url,
                cfg.chain.reward_contract,
                signer,
                chain_id=cfg.chain.chain_id,
                receipt_timeout=cfg.chain.receipt_timeout,
            )
        if slot_oracle is None and cfg.clock.model == "slots":
            w3 = client.read_w3 if isinstance(client, Web3ChainClient) else make_web3(
                cfg.chain.read_rpc_url
            )
            slot_oracle = Web3SlotOracle(w3, cfg.chain.oracle_contract)

        # Core components
        self.client = client
        self.slot_oracle = slot_oracle
        self.oracle: TimeOracle = ChainTimeOracle(
            client, cfg.clock.to_clock_model(), slot_oracle, clock,
        )
        self.local_clock = LocalClockSync(cfg.drift_warn_seconds)
        self.scheduler = TriggerScheduler(cfg.trigger)
        self.fees = FeeEstimator(cfg.fees)

        # A preemptive trigger is sent before the target epoch opens, so a
        # simulation against the current head would revert.
        preflight = not cfg.trigger.policy.is_preemptive
        self.submitter: ActionSubmitter
        if cfg.relays.enabled:
            if relays is None:
                relays = HttpRelayFanOut(cfg.relays.endpoints, cfg.relays.timeout, signer)
            self.submitter = FanOutSubmitter(
                client,
                relays,
                gas_limit=cfg.chain.gas_limit,
                target_offset=cfg.relays.target_offset,
                preflight=preflight,
            )
        else:
            self.submitter = DirectSubmitter(client, cfg.chain.gas_limit, preflight=preflight)

        self.claimer: RewardClaimer | None = None
        if cfg.claims.enabled:
            self.claimer = ClaimSequencer(client, cfg.claim_ceiling_units, slot_oracle)

    @property
    def last_sample(self) -> EpochSample | None:
        return self._last_sample

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Log the startup banner, take the first sample, and run the loop.

        BeforeGenesis on the first sample is fatal and propagates.
        """
        cfg = self._cfg
        log.info("Starting epoch_trigger daemon")
        log.info("  Wallet:     %s", self.client.address)
        log.info("  Policy:     %s", cfg.trigger.policy.value)
        log.info("  Clock:      %s", cfg.clock.model)
        log.info("  Fees:       %s", cfg.fees.strategy.value)
        log.info("  Submission: %s", "relay fan-out" if cfg.relays.enabled else "direct")
        if self.claimer is not None:
            log.info(
                "  Max claim:  %s %s",
                format_units(self.claimer.ceiling, cfg.chain.token_decimals),
                cfg.chain.token_symbol,
            )
        try:
            balance = await self.client.get_native_balance()
            log.info("  Balance:    %s ETH", Web3.from_wei(balance, "ether"))
        except TransientRpcError as exc:
            log.warning("  Balance:    unavailable (%s)", exc)

        try:
            await self._take_sample()
        except ChainUnavailable as exc:
            log.warning("Initial epoch sample failed, will retry: %s", exc)

        # A stop requested during startup still applies.
        self._running = not self._stop_event.is_set()
        try:
            await self._main_loop()
        finally:
            self._running = False
            log.info("Daemon shut down cleanly")

    async def stop(self) -> None:
        """Signal the daemon to stop at the next tick boundary."""
        log.info("Stop requested")
        self._running = False
        self._stop_event.set()

    async def _main_loop(self) -> None:
        """The tick loop. One tick never overlaps the next."""
        while self._running:
            delay = self._cfg.poll_interval
            try:
                await self.tick()
            except asyncio.CancelledError:
                log.info("Main loop cancelled")
                break
            except Exception as exc:
                log.error("Tick failed: %s", exc, exc_info=True)
                delay = self._cfg.error_backoff
            await self._sleep(delay)

    async def _sleep(self, delay: float) -> None:
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    async def tick(self) -> TickReport:
        """Run one tick: sample, report, claim, evaluate, submit."""
        report = TickReport()

        # 1. Sample chain time (or fall back to the cached sample)
        sample = await self._refresh_sample(report)
        if sample is None:
            log.warning("No epoch sample available yet; skipping tick")
            report.skipped = True
            return report

        on_chain = sample.to_view()
        local = self.local_clock.extrapolate(self._clock())

        # 2. Status report (reward reads are best-effort)
        rewards = await self._report_status(on_chain, local)

        # 3. Opportunistic claim
        if self.claimer is not None and rewards:
            report.claims.append(await self.claimer.maybe_claim())

        # 4. Policy evaluation and submission. The claim may have waited
        # on a receipt, so the local view is projected again.
        local = self.local_clock.extrapolate(self._clock())
        decision = self.scheduler.evaluate(on_chain, local)
        if decision.fire:
            await self._fire(decision.target_epoch, report)

        return report

    async def _take_sample(self) -> EpochSample:
        sample = await self.oracle.sample()
        self.local_clock.reanchor(sample)
        self._last_sample = sample
        return sample

    async def _refresh_sample(self, report: TickReport) -> EpochSample | None:
        cached = self._last_sample
        resample_ms = self._cfg.resample_interval_ms
        if cached is not None and resample_ms > 0:
            age_ms = (self._clock() - cached.sampled_at) * 1000
            if age_ms < resample_ms:
                return cached

        try:
            sample = await self._take_sample()
        except BeforeGenesis as exc:
            log.warning("Chain reports pre-genesis time, using cached sample: %s", exc)
            return cached
        except ChainUnavailable as exc:
            log.warning("Epoch sample failed, using cached sample: %s", exc)
            return cached

        report.sample_fresh = True
        return sample

    async def _report_status(self, on_chain: EpochView, local: EpochView) -> int | None:
        chain = self._cfg.chain
        rewards: int | None = None
        pool: int | None = None
        try:
            rewards = await self.client.rewards_of(self.client.address)
            pool = await self.client.rewards_available()
        except TransientRpcError as exc:
            log.error("Failed to read reward/pool status: %s", exc)

        attesters = ""
        if self.slot_oracle is not None:
            try:
                attesters = f" | attesters: {await self.slot_oracle.active_attester_count()}"
            except TransientRpcError as exc:
                log.debug("Attester count unavailable: %s", exc)

        now = time.time()
        start = now - local.seconds_into_epoch
        end = start + local.epoch_duration
        log.info(
            "Epoch %d (chain %d @ %.0fs) | rewards: %s %s | pool: %s %s | "
            "start %s | end %s | next epoch in %s%s",
            local.epoch_number,
            on_chain.epoch_number,
            on_chain.seconds_into_epoch,
            format_units(rewards, chain.token_decimals) if rewards is not None else "?",
            chain.token_symbol,
            format_units(pool, chain.token_decimals) if pool is not None else "?",
            chain.token_symbol,
            datetime.fromtimestamp(start).strftime("%H:%M:%S"),
            datetime.fromtimestamp(end).strftime("%H:%M:%S"),
            format_countdown(local.seconds_until_next_epoch),
            attesters,
        )
        return rewards

    async def _fire(self, target_epoch: int, report: TickReport) -> None:
        """Estimate fees, submit, and advance the fired mark unless transient."""
        report.target_epoch = target_epoch
        try:
            fee_data = await self.client.get_fee_data()
            bid = self.fees.estimate(fee_data)
            outcome = await self.submitter.submit(target_epoch, bid)
        except NoEligibleTarget as exc:
            log.info("Nothing to trigger for epoch %d: %s", target_epoch, exc)
            self.scheduler.record_fire(target_epoch)
            return
        except (SubmissionRejected, ChainUnavailable) as exc:
            log.error("Trigger for epoch %d failed, will retry: %s", target_epoch, exc)
            report.error = str(exc)
            return

        self.scheduler.record_fire(target_epoch)
        report.fired = True
        report.submission = outcome
        self._log_outcome(target_epoch, outcome)

        if self.claimer is not None:
            report.claims.append(await self.claimer.maybe_claim())

    def _log_outcome(self, target_epoch: int, outcome: SubmissionOutcome) -> None:
        chain = self._cfg.chain
        if isinstance(outcome, DirectOutcome):
            if outcome.reward_delta > 0:
                log.info(
                    "Success! +%s %s | gas: %s ETH | tx: %s",
                    format_units(outcome.reward_delta, chain.token_decimals),
                    chain.token_symbol,
                    Web3.from_wei(outcome.cost_paid, "ether"),
                    outcome.tx_hash,
                )
            else:
                log.info("Trigger for epoch %d succeeded with no reward", target_epoch)
        elif isinstance(outcome, FanOutOutcome):
            log.info(
                "Trigger for epoch %d dispatched to %d/%d relays (block %d, tx %s)",
                target_epoch,
                outcome.success_count,
                outcome.attempted,
                outcome.target_block,
                outcome.tx_hash,
            )


async def run_daemon(cfg: DaemonConfig) -> None:
    """Entry point for running the daemon."""
    daemon = TriggerDaemon(cfg)

    loop = asyncio.get_running_loop()

    def _signal_handler():
        asyncio.ensure_future(daemon.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass

    await daemon.start()
