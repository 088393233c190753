"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from eth2x.config import (
    AppConfig,
    PriceOracleConfig,
    SimulationConfig,
    StaticPriceConfig,
)
from eth2x.fixed_point import WAD
from eth2x.models import AccountSnapshot
from eth2x.services import PaperVault, build_paper_vault

WETH = "WETH"
ALICE = "0xALICE"


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


def _make_config(**overrides) -> AppConfig:
    """AppConfig priced at 2000 USD/WETH on an 18-decimal static oracle."""
    defaults = dict(
        price_oracle=PriceOracleConfig(
            provider="static",
            static=StaticPriceConfig(decimals=18, prices={WETH: 2000 * WAD}),
        ),
        simulation=SimulationConfig(
            depositor=ALICE,
            initial_deposit=10 * WAD,
            market_liquidity=100_000_000 * 10**6,
            swap_quote_liquidity=100_000_000 * 10**6,
            swap_reference_liquidity=100_000 * WAD,
        ),
    )
    defaults.update(overrides)
    return AppConfig(**defaults)


@pytest.fixture()
def make_config():
    return _make_config


@pytest.fixture()
def app_config() -> AppConfig:
    return _make_config()


@pytest.fixture()
def paper(app_config: AppConfig) -> PaperVault:
    return build_paper_vault(app_config)


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def levered_snapshot() -> AccountSnapshot:
    """$40,000 collateral against $20,000 debt (8-decimal base currency)."""
    return AccountSnapshot(
        collateral_value=40_000 * 10**8,
        debt_value=20_000 * 10**8,
        available_borrow=12_000 * 10**8,
        liquidation_threshold=8300,
        loan_to_value=8000,
        health_factor=166 * WAD // 100,
    )


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    vault:
      address: "0xVAULT"
      target_ratio: "2.0"
      bootstrap_rate: 10000
      redeem_haircut_bps: 100
      swap_slippage_bps: 50
      max_rebalance_iterations: 2
      rebalance_tolerance: "0.01"
      redeem_withdrawal_legs: 3
      withdraw_health_buffer_bps: 100
    assets:
      reference: {symbol: WETH, decimals: 18}
      quote: {symbol: USDC, decimals: 6}
    lending_market:
      base_currency_decimals: 8
      ltv_bps: 8000
      liquidation_threshold_bps: 8300
    swap_venue:
      fee_tier: 3000
    price_oracle:
      provider: static
      static:
        decimals: 18
        prices: {WETH: "2500.5"}
      pyth:
        hermes_url: "https://hermes.example.com"
        feeds: {WETH: "aaa"}
    access:
      mode: allowlist
      allowlist: ["0xALICE"]
    keeper:
      check_interval_minutes: 5
      lower_bound: "1.9"
      upper_bound: "2.1"
    simulation:
      depositor: "0xALICE"
      initial_deposit: "2.5"
    notifications:
      telegram:
        enabled: true
        alert_bot_token: "tok1"
        log_bot_token: "tok2"
        chat_id: "999"
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
