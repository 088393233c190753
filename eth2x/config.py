"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .fixed_point import BPS, FEE_DENOMINATOR, WAD, parse_fixed

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AssetConfig:
    symbol: str = ""
    decimals: int = 18


@dataclass(frozen=True)
class AssetsConfig:
    reference: AssetConfig = field(default_factory=lambda: AssetConfig("WETH", 18))
    quote: AssetConfig = field(default_factory=lambda: AssetConfig("USDC", 6))


@dataclass(frozen=True)
class VaultConfig:
    """Engine constants. Ratios and tolerances are 1e18 fixed point."""

    address: str = "0xVAULT"
    target_ratio: int = 2 * WAD
    bootstrap_rate: int = 10_000
    redeem_haircut_bps: int = 100
    swap_slippage_bps: int = 50
    max_rebalance_iterations: int = 2
    rebalance_tolerance: int = WAD // 100
    redeem_withdrawal_legs: int = 3
    withdraw_health_buffer_bps: int = 100


@dataclass(frozen=True)
class LendingMarketConfig:
    base_currency_decimals: int = 8
    ltv_bps: int = 8000
    liquidation_threshold_bps: int = 8300
    pegged_assets: tuple[str, ...] = ("USDC",)


@dataclass(frozen=True)
class SwapVenueConfig:
    fee_tier: int = 500
    price_impact_bps: int = 0


@dataclass(frozen=True)
class StaticPriceConfig:
    decimals: int = 18
    prices: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class PythConfig:
    hermes_url: str = "https://hermes.pyth.network/v2/updates/price/latest"
    feeds: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PriceOracleConfig:
    provider: str = "static"
    static: StaticPriceConfig = field(default_factory=StaticPriceConfig)
    pyth: PythConfig = field(default_factory=PythConfig)


@dataclass(frozen=True)
class AccessConfig:
    mode: str = "open"
    allowlist: tuple[str, ...] = ()


@dataclass(frozen=True)
class KeeperConfig:
    check_interval_minutes: int = 15
    lower_bound: int = 19 * WAD // 10
    upper_bound: int = 21 * WAD // 10
    caller: str = "0xKEEPER"


@dataclass(frozen=True)
class SimulationConfig:
    depositor: str = "0xDEPOSITOR"
    initial_deposit: int = 10 * WAD
    market_liquidity: int = 0
    swap_quote_liquidity: int = 0
    swap_reference_liquidity: int = 0


@dataclass(frozen=True)
class TelegramConfig:
    enabled: bool = False
    alert_bot_token: str = ""
    log_bot_token: str = ""
    chat_id: str = ""


@dataclass(frozen=True)
class NotificationsConfig:
    telegram: TelegramConfig = field(default_factory=TelegramConfig)


@dataclass(frozen=True)
class AppConfig:
    vault: VaultConfig = field(default_factory=VaultConfig)
    assets: AssetsConfig = field(default_factory=AssetsConfig)
    lending_market: LendingMarketConfig = field(default_factory=LendingMarketConfig)
    swap_venue: SwapVenueConfig = field(default_factory=SwapVenueConfig)
    price_oracle: PriceOracleConfig = field(default_factory=PriceOracleConfig)
    access: AccessConfig = field(default_factory=AccessConfig)
    keeper: KeeperConfig = field(default_factory=KeeperConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_asset(raw: dict[str, Any], default: AssetConfig) -> AssetConfig:
    return AssetConfig(
        symbol=str(raw.get("symbol", default.symbol)),
        decimals=int(raw.get("decimals", default.decimals)),
    )


def _build_assets(raw: dict[str, Any]) -> AssetsConfig:
    defaults = AssetsConfig()
    return AssetsConfig(
        reference=_build_asset(raw.get("reference", {}), defaults.reference),
        quote=_build_asset(raw.get("quote", {}), defaults.quote),
    )


def _build_vault(raw: dict[str, Any]) -> VaultConfig:
    return VaultConfig(
        address=str(raw.get("address", VaultConfig.address)),
        target_ratio=parse_fixed(raw.get("target_ratio", "2.0")),
        bootstrap_rate=int(raw.get("bootstrap_rate", 10_000)),
        redeem_haircut_bps=int(raw.get("redeem_haircut_bps", 100)),
        swap_slippage_bps=int(raw.get("swap_slippage_bps", 50)),
        max_rebalance_iterations=int(raw.get("max_rebalance_iterations", 2)),
        rebalance_tolerance=parse_fixed(raw.get("rebalance_tolerance", "0.01")),
        redeem_withdrawal_legs=int(raw.get("redeem_withdrawal_legs", 3)),
        withdraw_health_buffer_bps=int(raw.get("withdraw_health_buffer_bps", 100)),
    )


def _build_lending_market(raw: dict[str, Any]) -> LendingMarketConfig:
    return LendingMarketConfig(
        base_currency_decimals=int(raw.get("base_currency_decimals", 8)),
        ltv_bps=int(raw.get("ltv_bps", 8000)),
        liquidation_threshold_bps=int(raw.get("liquidation_threshold_bps", 8300)),
        pegged_assets=tuple(raw.get("pegged_assets", ["USDC"])),
    )


def _build_swap_venue(raw: dict[str, Any]) -> SwapVenueConfig:
    return SwapVenueConfig(
        fee_tier=int(raw.get("fee_tier", 500)),
        price_impact_bps=int(raw.get("price_impact_bps", 0)),
    )


def _build_price_oracle(raw: dict[str, Any]) -> PriceOracleConfig:
    static_raw = raw.get("static", {})
    pyth_raw = raw.get("pyth", {})
    decimals = int(static_raw.get("decimals", 18))
    return PriceOracleConfig(
        provider=raw.get("provider", "static"),
        static=StaticPriceConfig(
            decimals=decimals,
            prices={
                symbol: parse_fixed(value, decimals)
                for symbol, value in static_raw.get("prices", {}).items()
            },
        ),
        pyth=PythConfig(
            hermes_url=pyth_raw.get("hermes_url", PythConfig.hermes_url),
            feeds=dict(pyth_raw.get("feeds", {})),
        ),
    )


def _build_access(raw: dict[str, Any]) -> AccessConfig:
    return AccessConfig(
        mode=raw.get("mode", "open"),
        allowlist=tuple(raw.get("allowlist", [])),
    )


def _build_keeper(raw: dict[str, Any]) -> KeeperConfig:
    return KeeperConfig(
        check_interval_minutes=int(raw.get("check_interval_minutes", 15)),
        lower_bound=parse_fixed(raw.get("lower_bound", "1.9")),
        upper_bound=parse_fixed(raw.get("upper_bound", "2.1")),
        caller=str(raw.get("caller", KeeperConfig.caller)),
    )


def _build_simulation(raw: dict[str, Any], assets: AssetsConfig) -> SimulationConfig:
    ref_decimals = assets.reference.decimals
    quote_decimals = assets.quote.decimals
    return SimulationConfig(
        depositor=str(raw.get("depositor", SimulationConfig.depositor)),
        initial_deposit=parse_fixed(raw.get("initial_deposit", "10"), ref_decimals),
        market_liquidity=parse_fixed(
            raw.get("market_liquidity", "100000000"), quote_decimals
        ),
        swap_quote_liquidity=parse_fixed(
            raw.get("swap_quote_liquidity", "100000000"), quote_decimals
        ),
        swap_reference_liquidity=parse_fixed(
            raw.get("swap_reference_liquidity", "100000"), ref_decimals
        ),
    )


def _build_notifications(raw: dict[str, Any]) -> NotificationsConfig:
    tg = raw.get("telegram", {})
    return NotificationsConfig(
        telegram=TelegramConfig(
            enabled=bool(tg.get("enabled", False)),
            alert_bot_token=tg.get("alert_bot_token", ""),
            log_bot_token=tg.get("log_bot_token", ""),
            chat_id=str(tg.get("chat_id", "")),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from the package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    assets = _build_assets(raw.get("assets", {}))
    cfg = AppConfig(
        vault=_build_vault(raw.get("vault", {})),
        assets=assets,
        lending_market=_build_lending_market(raw.get("lending_market", {})),
        swap_venue=_build_swap_venue(raw.get("swap_venue", {})),
        price_oracle=_build_price_oracle(raw.get("price_oracle", {})),
        access=_build_access(raw.get("access", {})),
        keeper=_build_keeper(raw.get("keeper", {})),
        simulation=_build_simulation(raw.get("simulation", {}), assets),
        notifications=_build_notifications(raw.get("notifications", {})),
    )

    validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    vault = cfg.vault
    if not vault.address:
        raise ValueError("Vault address must be set")
    if vault.target_ratio <= WAD:
        raise ValueError("Target ratio must be greater than 1.0")
    if vault.bootstrap_rate < 1:
        raise ValueError("Bootstrap rate must be positive")
    for name in ("redeem_haircut_bps", "swap_slippage_bps", "withdraw_health_buffer_bps"):
        value = getattr(vault, name)
        if not 0 <= value < BPS:
            raise ValueError(f"{name} must be in [0, {BPS})")
    if not 0 <= cfg.swap_venue.fee_tier < FEE_DENOMINATOR:
        raise ValueError(f"fee_tier must be in [0, {FEE_DENOMINATOR})")
    if vault.max_rebalance_iterations < 1:
        raise ValueError("max_rebalance_iterations must be at least 1")
    if vault.redeem_withdrawal_legs < 1:
        raise ValueError("redeem_withdrawal_legs must be at least 1")

    if cfg.assets.reference.symbol == cfg.assets.quote.symbol:
        raise ValueError("Reference and quote assets must differ")
    if cfg.lending_market.base_currency_decimals < cfg.assets.quote.decimals:
        raise ValueError("Base currency decimals must not be below quote decimals")
    if not 0 < cfg.lending_market.ltv_bps <= cfg.lending_market.liquidation_threshold_bps <= BPS:
        raise ValueError("Expected 0 < ltv_bps <= liquidation_threshold_bps <= 10000")

    oracle = cfg.price_oracle
    if oracle.provider not in ("static", "pyth"):
        raise ValueError(f"Unknown price oracle provider '{oracle.provider}'")
    reference = cfg.assets.reference.symbol
    if oracle.provider == "pyth" and reference not in oracle.pyth.feeds:
        raise ValueError(f"No Pyth feed configured for '{reference}'")
    if oracle.provider == "static" and reference not in oracle.static.prices:
        raise ValueError(f"No static price configured for '{reference}'")

    if cfg.access.mode not in ("open", "allowlist"):
        raise ValueError(f"Unknown access mode '{cfg.access.mode}'")
    if cfg.access.mode == "allowlist" and not cfg.access.allowlist:
        raise ValueError("Allowlist access mode requires at least one address")

    keeper = cfg.keeper
    if not keeper.lower_bound < vault.target_ratio < keeper.upper_bound:
        raise ValueError("Keeper band must bracket the target ratio")
