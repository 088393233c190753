"""Walk a paper vault along a price path, running the keeper at each price."""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from ..config import AppConfig
from ..sim import StaticPriceOracle
from .factory import build_paper_vault, seed_paper_vault
from .keeper import Keeper

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimulationPoint:
    price: int
    ratio_before: int
    ratio_after: int
    net_value: int
    rebalanced: bool


async def simulate_price_path(config: AppConfig, prices: list[int]) -> list[SimulationPoint]:
    """Seed a paper vault at ``prices[0]`` and replay the remaining prices.

    Prices are integers at the static oracle's decimal scale.
    """
    if not prices:
        raise ValueError("Price path must not be empty")

    symbol = config.assets.reference.symbol
    static = config.price_oracle.static
    oracle = StaticPriceOracle({symbol: prices[0]}, static.decimals)
    config = replace(config, price_oracle=replace(config.price_oracle, provider="static"))

    paper = build_paper_vault(config, oracle=oracle)
    await seed_paper_vault(paper, config)
    keeper = Keeper(paper.vault, config.keeper)

    points: list[SimulationPoint] = []
    for price in prices:
        oracle.set_price(symbol, price)
        before = await paper.vault.leverage_ratio()
        result = await keeper.check_and_rebalance()
        view = await paper.vault.position()
        points.append(
            SimulationPoint(
                price=price,
                ratio_before=before,
                ratio_after=view.leverage_ratio,
                net_value=view.snapshot.net_value,
                rebalanced=result is not None,
            )
        )
        logger.debug("Simulated price %d: ratio %d -> %d", price, before, view.leverage_ratio)
    return points
