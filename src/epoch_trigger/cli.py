"""CLI entry point for the epoch_trigger daemon."""

from __future__ import annotations

import asyncio
import logging
import sys
import time

import click
from web3 import Web3

from epoch_trigger.config import load_config, validate_config
from epoch_trigger.daemon import TriggerDaemon, format_countdown, format_units, run_daemon
from epoch_trigger.errors import BeforeGenesis, ChainUnavailable, FatalConfigError, TransientRpcError
from epoch_trigger.models.config import DaemonConfig
from epoch_trigger.models.records import ClaimStatus
from epoch_trigger.policy.fees import GWEI

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def _gwei(wei: int) -> str:
    return f"{wei / GWEI:.3f} gwei"


def _opt(value: int | None) -> str:
    return "?" if value is None else f"{value} ({_gwei(value)})"


def _load_valid_config(ctx: click.Context) -> DaemonConfig:
    """Load and validate config; exit with error listing every problem."""
    try:
        cfg = load_config(ctx.obj["config_path"])
        validate_config(cfg)
    except FatalConfigError as exc:
        click.echo("Error: invalid configuration.", err=True)
        for problem in exc.problems:
            click.echo(f"  - {problem}", err=True)
        sys.exit(1)
    if not ctx.obj["verbose"]:
        logging.getLogger().setLevel(_LOG_LEVELS.get(cfg.log_level.lower(), logging.INFO))
    return cfg


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """epoch-trigger - fire an on-chain action at epoch boundaries and claim the reward."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Daemon ─────────────────────────────────────────────


@cli.command()
@click.pass_context
def run(ctx: click.Context) -> None:
    """Start the trigger daemon."""
    cfg = _load_valid_config(ctx)

    click.echo(f"Starting epoch_trigger daemon (policy: {cfg.trigger.policy.value})")
    try:
        asyncio.run(run_daemon(cfg))
    except BeforeGenesis as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        pass


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show effective configuration."""
    try:
        cfg = load_config(ctx.obj["config_path"])
    except FatalConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    chain = cfg.chain
    click.echo(f"Policy:       {cfg.trigger.policy.value}")
    click.echo(f"Window:       {cfg.trigger.window_seconds}s after start")
    click.echo(f"Lead:         {cfg.trigger.lead_seconds}s before next start")
    click.echo(f"Clock model:  {cfg.clock.model}")
    click.echo(f"Poll:         {cfg.poll_interval_ms}ms")
    click.echo(f"Read RPC:     {chain.read_rpc_url or '(not set)'}")
    click.echo(f"Write RPC:    {chain.effective_write_url or '(not set)'}")
    click.echo(f"Contract:     {chain.reward_contract or '(not set)'}")
    if cfg.clock.model == "slots":
        click.echo(f"Oracle:       {chain.oracle_contract or '(not set)'}")
    click.echo(f"Fees:         {cfg.fees.strategy.value}")
    click.echo(f"Claims:       {'on' if cfg.claims.enabled else 'off'} "
               f"(ceiling {cfg.claims.ceiling} {chain.token_symbol})")
    if cfg.relays.enabled:
        click.echo(f"Submission:   fan-out to {len(cfg.relays.endpoints)} relays")
        for ep in cfg.relays.endpoints:
            click.echo(f"  {ep.name:12s} {ep.url}{' (signed)' if ep.sign else ''}")
    else:
        click.echo("Submission:   direct")
    click.echo(f"Private key:  {'***configured***' if chain.private_key else '(not set)'}")


@cli.command()
@click.pass_context
def epoch(ctx: click.Context) -> None:
    """Sample the chain once and show what the scheduler would decide."""
    cfg = _load_valid_config(ctx)

    async def _epoch():
        daemon = TriggerDaemon(cfg)
        try:
            sample = await daemon.oracle.sample()
        except (ChainUnavailable, BeforeGenesis) as exc:
            click.echo(f"Epoch sample failed: {exc}", err=True)
            sys.exit(1)

        view = sample.to_view()
        decision = daemon.scheduler.evaluate(view, view)
        click.echo(f"Epoch:        {sample.epoch_number}")
        click.echo(f"Into epoch:   {sample.seconds_into_epoch:.0f}s / {sample.epoch_duration:.0f}s")
        click.echo(f"Next epoch:   {format_countdown(sample.seconds_until_next_epoch)}")
        if sample.block_number is not None:
            click.echo(f"Head block:   {sample.block_number} (ts {sample.block_timestamp}, "
                       f"{time.time() - (sample.block_timestamp or 0):.0f}s old)")
        verdict = "FIRE" if decision.fire else "wait"
        click.echo(f"Decision:     {verdict} (target epoch {decision.target_epoch}, "
                   f"{decision.reason})")

    asyncio.run(_epoch())


@cli.command()
@click.pass_context
def fees(ctx: click.Context) -> None:
    """Show the fee bid the configured strategy would use right now."""
    cfg = _load_valid_config(ctx)

    async def _fees():
        daemon = TriggerDaemon(cfg)
        data = await daemon.client.get_fee_data()
        bid = daemon.fees.estimate(data)
        click.echo(f"Network max fee:  {_opt(data.max_fee_per_gas)}")
        click.echo(f"Network priority: {_opt(data.max_priority_fee_per_gas)}")
        click.echo(f"Network gas:      {_opt(data.gas_price)}")
        click.echo(f"Strategy:         {cfg.fees.strategy.value}")
        click.echo(f"Bid max fee:      {bid.max_fee_per_gas} ({_gwei(bid.max_fee_per_gas)})")
        click.echo(f"Bid priority:     {bid.max_priority_fee_per_gas} "
                   f"({_gwei(bid.max_priority_fee_per_gas)})")
        max_cost = bid.max_fee_per_gas * cfg.chain.gas_limit
        click.echo(f"Max cost:         {Web3.from_wei(max_cost, 'ether')} ETH "
                   f"at gas limit {cfg.chain.gas_limit}")

    asyncio.run(_fees())


# ── Claims ─────────────────────────────────────────────


@cli.command()
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def claim(ctx: click.Context, yes: bool) -> None:
    """Claim the wallet's reward balance once (ceiling still applies)."""
    cfg = _load_valid_config(ctx)

    async def _claim():
        daemon = TriggerDaemon(cfg)
        chain = cfg.chain
        try:
            balance = await daemon.client.rewards_of(daemon.client.address)
        except TransientRpcError as exc:
            click.echo(f"Failed to read rewards: {exc}", err=True)
            sys.exit(1)

        click.echo(f"Wallet:   {daemon.client.address}")
        click.echo(f"Rewards:  {format_units(balance, chain.token_decimals)} {chain.token_symbol}")
        if balance == 0:
            click.echo("Nothing to claim.")
            return
        if daemon.claimer is None:
            click.echo("Claims are disabled in config.", err=True)
            sys.exit(1)

        if not yes:
            click.confirm("\nProceed with claim?", abort=True)

        outcome = await daemon.claimer.maybe_claim()
        if outcome.status == ClaimStatus.CLAIMED:
            click.echo(f"Claim successful! Tx: {outcome.tx_hash}")
        elif outcome.status == ClaimStatus.ABOVE_CEILING:
            click.echo(
                f"Balance exceeds claim ceiling "
                f"({format_units(daemon.claimer.ceiling, chain.token_decimals)} "
                f"{chain.token_symbol}); not claiming.",
                err=True,
            )
            sys.exit(1)
        else:
            click.echo(f"Claim not performed: {outcome.status.value} {outcome.error or ''}", err=True)
            sys.exit(1)

    asyncio.run(_claim())


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
