"""Wire a vault to in-memory collaborators from configuration."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from ..access import build_policy
from ..config import AppConfig, PriceOracleConfig
from ..engine.vault import LeveragedVault
from ..host import AtomicHost
from ..interfaces.price_oracle import PriceOracle
from ..models import VaultState
from ..oracles import PythOracle
from ..sim import AssetBank, SimLendingMarket, SimShareLedger, SimSwapVenue, StaticPriceOracle

logger = logging.getLogger(__name__)


@dataclass
class PaperVault:
    """A vault and the simulated world it trades against."""

    vault: LeveragedVault
    bank: AssetBank
    market: SimLendingMarket
    swap_venue: SimSwapVenue
    shares: SimShareLedger
    oracle: PriceOracle
    host: AtomicHost


def build_oracle(config: PriceOracleConfig) -> PriceOracle:
    if config.provider == "pyth":
        return PythOracle(config.pyth)
    if config.provider == "static":
        return StaticPriceOracle(config.static.prices, config.static.decimals)
    raise ValueError(f"Unknown price oracle provider '{config.provider}'")


def build_paper_vault(config: AppConfig, oracle: PriceOracle | None = None) -> PaperVault:
    """Build a vault over a fresh simulated lending market and swap venue.

    Market and venue reserves are credited from the simulation settings so
    borrows and swaps have liquidity to draw on.
    """
    oracle = oracle or build_oracle(config.price_oracle)
    assets = config.assets
    address = config.vault.address
    decimals = {
        assets.reference.symbol: assets.reference.decimals,
        assets.quote.symbol: assets.quote.decimals,
    }

    bank = AssetBank()
    market = SimLendingMarket(bank, oracle, address, config.lending_market, decimals)
    swap_venue = SimSwapVenue(
        bank,
        oracle,
        address,
        config.swap_venue,
        decimals,
        pegged_assets=config.lending_market.pegged_assets,
    )
    shares = SimShareLedger()
    state = VaultState()
    host = AtomicHost([bank, market, shares, state])

    sim = config.simulation
    bank.credit(assets.quote.symbol, market.address, sim.market_liquidity)
    bank.credit(assets.quote.symbol, swap_venue.address, sim.swap_quote_liquidity)
    bank.credit(assets.reference.symbol, swap_venue.address, sim.swap_reference_liquidity)

    vault = LeveragedVault(
        address=address,
        config=config.vault,
        assets=assets,
        base_decimals=config.lending_market.base_currency_decimals,
        market=market,
        swap_venue=swap_venue,
        oracle=oracle,
        shares=shares,
        asset_ledger=bank,
        host=host,
        policy=build_policy(config.access.mode, config.access.allowlist),
        state=state,
    )
    return PaperVault(
        vault=vault,
        bank=bank,
        market=market,
        swap_venue=swap_venue,
        shares=shares,
        oracle=oracle,
        host=host,
    )


async def seed_paper_vault(paper: PaperVault, config: AppConfig) -> None:
    """Fund the configured depositor, mint their deposit and lever it up."""
    sim = config.simulation
    if sim.initial_deposit <= 0:
        return
    paper.bank.credit(config.assets.reference.symbol, sim.depositor, sim.initial_deposit)
    await paper.vault.mint(sim.depositor, sim.depositor, sim.initial_deposit)
    await paper.vault.rebalance(config.keeper.caller)
    logger.info("Paper vault seeded with deposit from %s", sim.depositor)
