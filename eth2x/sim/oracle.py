"""Settable price oracle for simulations."""
from __future__ import annotations

from ..errors import ExternalReadFailure
from ..models import Price


class StaticPriceOracle:
    """Return configured prices, all at one decimal scale."""

    def __init__(self, prices: dict[str, int], decimals: int = 18) -> None:
        self._prices = dict(prices)
        self.decimals = decimals

    async def price(self, asset: str) -> Price:
        if asset not in self._prices:
            raise ExternalReadFailure(f"No price for {asset}")
        return Price(value=self._prices[asset], decimals=self.decimals)

    def set_price(self, asset: str, value: int) -> None:
        self._prices[asset] = value
