"""Configuration loading: TOML file + environment variables, then validation."""

from __future__ import annotations

import logging
import os
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from web3 import Web3

from epoch_trigger.errors import FatalConfigError
from epoch_trigger.models.config import (
    CLOCK_MODEL_NAMES,
    FEE_STRATEGY_ALIASES,
    ClaimConfig,
    ClockConfig,
    DaemonConfig,
    FeeConfig,
    FeeStrategy,
    RelayConfig,
    RelayEndpoint,
    TriggerConfig,
    TriggerPolicy,
    to_base_units,
)

log = logging.getLogger(__name__)

_TRUE = ("1", "true", "yes", "on")


def parse_fee_strategy(value: str) -> FeeStrategy:
    name = str(value).strip().lower()
    if name in FEE_STRATEGY_ALIASES:
        return FEE_STRATEGY_ALIASES[name]
    try:
        return FeeStrategy(name)
    except ValueError:
        raise FatalConfigError([
            f"unknown fee strategy {value!r} "
            f"(expected one of: {', '.join(s.value for s in FeeStrategy)})"
        ]) from None


def parse_policy(value: str) -> TriggerPolicy:
    name = str(value).strip().lower()
    try:
        return TriggerPolicy(name)
    except ValueError:
        raise FatalConfigError([
            f"unknown trigger policy {value!r} "
            f"(expected one of: {', '.join(p.value for p in TriggerPolicy)})"
        ]) from None


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "EPOCH_TRIGGER_",
) -> DaemonConfig:
    """Load daemon configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (EPOCH_TRIGGER_PRIVATE_KEY, etc.)
        2. TOML config file
        3. Defaults from DaemonConfig

    Does not validate; call validate_config() before starting the daemon.
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cfg = DaemonConfig()

    # ── Daemon section ─────────────────────────────────────
    daemon = raw.get("daemon", {})
    if (v := daemon.get("poll_interval_ms")) is not None:
        cfg.poll_interval_ms = int(v)
    if (v := daemon.get("resample_interval_ms")) is not None:
        cfg.resample_interval_ms = int(v)
    if (v := daemon.get("error_backoff_ms")) is not None:
        cfg.error_backoff_ms = int(v)
    if v := daemon.get("log_level"):
        cfg.log_level = str(v)
    if (v := daemon.get("drift_warn_seconds")) is not None:
        cfg.drift_warn_seconds = float(v)

    # ── Chain section ──────────────────────────────────────
    chain = raw.get("chain", {})
    if v := chain.get("read_rpc_url"):
        cfg.chain.read_rpc_url = str(v)
    if v := chain.get("write_rpc_url"):
        cfg.chain.write_rpc_url = str(v)
    if v := chain.get("chain_id"):
        cfg.chain.chain_id = int(v)
    if v := chain.get("reward_contract"):
        cfg.chain.reward_contract = str(v)
    if v := chain.get("oracle_contract"):
        cfg.chain.oracle_contract = str(v)
    if v := chain.get("private_key"):
        cfg.chain.private_key = str(v)
    if (v := chain.get("gas_limit")) is not None:
        cfg.chain.gas_limit = int(v)
    if v := chain.get("receipt_timeout"):
        cfg.chain.receipt_timeout = int(v)
    if (v := chain.get("token_decimals")) is not None:
        cfg.chain.token_decimals = int(v)
    if v := chain.get("token_symbol"):
        cfg.chain.token_symbol = str(v)

    # ── Clock section ──────────────────────────────────────
    clock = raw.get("clock", {})
    cfg.clock = ClockConfig(
        model=str(clock.get("model", "blocks")).lower(),
        genesis_timestamp=clock.get("genesis_timestamp"),
        epoch_duration=clock.get("epoch_duration"),
        blocks_per_epoch=int(clock.get("blocks_per_epoch", 192)),
        seconds_per_block=int(clock.get("seconds_per_block", 12)),
        slots_per_epoch=clock.get("slots_per_epoch"),
        slot_duration=clock.get("slot_duration"),
    )

    # ── Trigger section ────────────────────────────────────
    trigger = raw.get("trigger", {})
    cfg.trigger = TriggerConfig(
        policy=parse_policy(trigger.get("policy", TriggerPolicy.REACTIVE_ONCHAIN.value)),
        window_seconds=float(trigger.get("window_seconds", 15)),
        lead_seconds=float(trigger.get("lead_seconds", 5)),
    )

    # ── Fees section ───────────────────────────────────────
    fees = raw.get("fees", {})
    cfg.fees = FeeConfig(
        strategy=parse_fee_strategy(fees.get("strategy", FeeStrategy.NETWORK.value)),
        manual_gwei=fees.get("manual_gwei"),
        add_gwei=int(fees.get("add_gwei", 2)),
        percent=int(fees.get("percent", 20)),
    )

    # ── Claims section ─────────────────────────────────────
    claims = raw.get("claims", {})
    cfg.claims = ClaimConfig(
        enabled=bool(claims.get("enabled", True)),
        ceiling=str(claims.get("ceiling", "1000")),
    )

    # ── Relays section ─────────────────────────────────────
    relays = raw.get("relays", {})
    cfg.relays = RelayConfig(
        enabled=bool(relays.get("enabled", False)),
        target_offset=int(relays.get("target_offset", 2)),
        timeout=float(relays.get("timeout", 3.0)),
        endpoints=[
            RelayEndpoint(
                name=str(ep.get("name") or ep.get("url", "")),
                url=str(ep.get("url", "")),
                sign=bool(ep.get("sign", False)),
            )
            for ep in relays.get("endpoints", [])
        ],
    )

    # ── Environment variable overrides (highest priority) ──
    if key := os.environ.get(f"{env_prefix}PRIVATE_KEY"):
        cfg.chain.private_key = key
    if rpc := os.environ.get(f"{env_prefix}RPC_URL"):
        cfg.chain.read_rpc_url = rpc
        cfg.chain.write_rpc_url = rpc
    if rpc := os.environ.get(f"{env_prefix}READ_RPC_URL"):
        cfg.chain.read_rpc_url = rpc
    if rpc := os.environ.get(f"{env_prefix}WRITE_RPC_URL"):
        cfg.chain.write_rpc_url = rpc
    if addr := os.environ.get(f"{env_prefix}REWARD_CONTRACT"):
        cfg.chain.reward_contract = addr
    if policy := os.environ.get(f"{env_prefix}POLICY"):
        cfg.trigger.policy = parse_policy(policy)
    if strategy := os.environ.get(f"{env_prefix}FEE_STRATEGY"):
        cfg.fees.strategy = parse_fee_strategy(strategy)
    if fanout := os.environ.get(f"{env_prefix}USE_FANOUT"):
        cfg.relays.enabled = fanout.strip().lower() in _TRUE

    return cfg


def validate_config(cfg: DaemonConfig) -> None:
    """Raise FatalConfigError listing every missing or invalid setting."""
    problems: list[str] = []

    if not cfg.chain.private_key:
        problems.append("no private key configured (set EPOCH_TRIGGER_PRIVATE_KEY)")
    if not cfg.chain.read_rpc_url:
        problems.append("no read RPC URL configured (set EPOCH_TRIGGER_RPC_URL)")
    if not cfg.chain.reward_contract:
        problems.append("no reward contract address configured")
    elif not Web3.is_address(cfg.chain.reward_contract):
        problems.append(f"reward contract {cfg.chain.reward_contract!r} is not an address")

    if cfg.poll_interval_ms <= 0:
        problems.append("poll_interval_ms must be positive")
    if cfg.error_backoff_ms < 0 or cfg.drift_warn_seconds < 0:
        problems.append("error_backoff_ms and drift_warn_seconds must be non-negative")
    if cfg.chain.gas_limit <= 0:
        problems.append("gas_limit must be positive")

    clock = cfg.clock
    if clock.model not in CLOCK_MODEL_NAMES:
        problems.append(
            f"unknown clock model {clock.model!r} (expected one of: {', '.join(CLOCK_MODEL_NAMES)})"
        )
    elif clock.model == "genesis":
        if clock.genesis_timestamp is None:
            problems.append("genesis clock model requires genesis_timestamp")
        if not clock.epoch_duration or int(clock.epoch_duration) <= 0:
            problems.append("genesis clock model requires a positive epoch_duration")
    elif clock.model == "blocks":
        if clock.blocks_per_epoch <= 0 or clock.seconds_per_block <= 0:
            problems.append("blocks_per_epoch and seconds_per_block must be positive")
        elif (
            cfg.trigger.policy == TriggerPolicy.PREEMPTIVE_ONCHAIN
            and cfg.trigger.lead_seconds < clock.seconds_per_block
        ):
            # The block clock moves in whole blocks, so the countdown never
            # drops below seconds_per_block.
            log.warning(
                "preemptive_onchain with lead_seconds=%s can never fire on a %ss block clock; "
                "raise lead_seconds to at least seconds_per_block or use preemptive_local",
                cfg.trigger.lead_seconds,
                clock.seconds_per_block,
            )
    elif clock.model == "slots":
        overridden = clock.slots_per_epoch is not None and clock.slot_duration is not None
        if not cfg.chain.oracle_contract:
            problems.append("slot clock model requires oracle_contract")
        elif not Web3.is_address(cfg.chain.oracle_contract):
            problems.append(f"oracle contract {cfg.chain.oracle_contract!r} is not an address")
        if overridden and (int(clock.slots_per_epoch) <= 0 or int(clock.slot_duration) <= 0):
            problems.append("slots_per_epoch and slot_duration must be positive")

    if cfg.trigger.window_seconds < 0 or cfg.trigger.lead_seconds < 0:
        problems.append("window_seconds and lead_seconds must be non-negative")

    fees = cfg.fees
    if fees.strategy == FeeStrategy.FIXED and not fees.manual_gwei:
        problems.append("fixed fee strategy requires manual_gwei")
    if fees.add_gwei < 0 or fees.percent < 0:
        problems.append("add_gwei and percent must be non-negative")

    try:
        if to_base_units(cfg.claims.ceiling, cfg.chain.token_decimals) <= 0:
            problems.append("claim ceiling must be positive")
    except ValueError as exc:
        problems.append(f"invalid claim ceiling: {exc}")

    if cfg.relays.enabled:
        if not cfg.relays.endpoints:
            problems.append("fan-out submission enabled but no relay endpoints configured")
        for ep in cfg.relays.endpoints:
            if not ep.url.startswith(("http://", "https://")):
                problems.append(f"relay {ep.name!r} has invalid URL {ep.url!r}")
        if cfg.relays.timeout <= 0:
            problems.append("relay timeout must be positive")

    if problems:
        raise FatalConfigError(problems)
