"""Over-collateralized lending market modelled on Aave v3 account data."""
from __future__ import annotations

import copy
import logging
from collections import defaultdict

from ..config import LendingMarketConfig
from ..errors import ExternalCallFailure
from ..fixed_point import BPS, UINT256_MAX, WAD, mul_div
from ..interfaces.price_oracle import PriceOracle
from ..engine.valuation import base_price
from ..models import AccountSnapshot
from .bank import AssetBank

logger = logging.getLogger(__name__)


class SimLendingMarket:
    """Single-account view of a lending pool.

    Mutating calls act for ``account`` (the vault). Collateral and debt are
    valued in the base currency; pegged assets are worth exactly one unit.
    Interest does not accrue.
    """

    def __init__(
        self,
        bank: AssetBank,
        oracle: PriceOracle,
        account: str,
        config: LendingMarketConfig,
        asset_decimals: dict[str, int],
        address: str = "0xLENDING_POOL",
    ) -> None:
        self._bank = bank
        self._oracle = oracle
        self._account = account
        self._config = config
        self._decimals = dict(asset_decimals)
        self.address = address
        self._collateral: dict[str, dict[str, int]] = defaultdict(dict)
        self._debt: dict[str, dict[str, int]] = defaultdict(dict)

    # ------------------------------------------------------------------
    # Valuation
    # ------------------------------------------------------------------

    async def _price(self, asset: str) -> int:
        base_decimals = self._config.base_currency_decimals
        if asset in self._config.pegged_assets:
            return 10**base_decimals
        return base_price(await self._oracle.price(asset), base_decimals)

    async def _value(self, balances: dict[str, int]) -> int:
        total = 0
        for asset, amount in balances.items():
            if amount:
                total += mul_div(amount, await self._price(asset), 10 ** self._decimals[asset])
        return total

    async def get_account_snapshot(self, account: str) -> AccountSnapshot:
        collateral = await self._value(self._collateral[account])
        debt = await self._value(self._debt[account])
        ltv = self._config.ltv_bps
        threshold = self._config.liquidation_threshold_bps
        available = max(collateral * ltv // BPS - debt, 0)
        health = UINT256_MAX if debt == 0 else mul_div(collateral * threshold // BPS, WAD, debt)
        return AccountSnapshot(
            collateral_value=collateral,
            debt_value=debt,
            available_borrow=available,
            liquidation_threshold=threshold,
            loan_to_value=ltv,
            health_factor=health,
        )

    def collateral_of(self, account: str, asset: str) -> int:
        return self._collateral[account].get(asset, 0)

    def debt_of(self, account: str, asset: str) -> int:
        return self._debt[account].get(asset, 0)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def supply(self, asset: str, amount: int) -> None:
        self._bank.move(asset, self._account, self.address, amount)
        self._collateral[self._account][asset] = self.collateral_of(self._account, asset) + amount
        logger.debug("supply %d %s for %s", amount, asset, self._account)

    async def borrow(self, asset: str, amount: int, on_behalf_of: str) -> None:
        snapshot = await self.get_account_snapshot(on_behalf_of)
        value = await self._value({asset: amount})
        if value > snapshot.available_borrow:
            raise ExternalCallFailure(
                f"Borrow of {value} exceeds available {snapshot.available_borrow}"
            )
        self._bank.move(asset, self.address, self._account, amount)
        self._debt[on_behalf_of][asset] = self.debt_of(on_behalf_of, asset) + amount
        logger.debug("borrow %d %s for %s", amount, asset, on_behalf_of)

    async def repay(self, asset: str, amount: int, on_behalf_of: str) -> int:
        paid = min(amount, self.debt_of(on_behalf_of, asset))
        self._bank.move(asset, self._account, self.address, paid)
        self._debt[on_behalf_of][asset] = self.debt_of(on_behalf_of, asset) - paid
        logger.debug("repay %d %s for %s", paid, asset, on_behalf_of)
        return paid

    async def withdraw(self, asset: str, amount: int, to: str) -> int:
        held = self.collateral_of(self._account, asset)
        if amount > held:
            raise ExternalCallFailure(f"Withdraw of {amount} exceeds supplied {held}")

        remaining = dict(self._collateral[self._account])
        remaining[asset] = held - amount
        debt = await self._value(self._debt[self._account])
        collateral_after = await self._value(remaining)
        threshold = self._config.liquidation_threshold_bps
        if debt and collateral_after * threshold // BPS < debt:
            raise ExternalCallFailure("Withdraw would drop health factor below 1")

        self._bank.move(asset, self.address, to, amount)
        self._collateral[self._account][asset] = held - amount
        logger.debug("withdraw %d %s to %s", amount, asset, to)
        return amount

    # ------------------------------------------------------------------
    # Journal
    # ------------------------------------------------------------------

    def checkpoint(self) -> tuple[dict[str, dict[str, int]], dict[str, dict[str, int]]]:
        return (copy.deepcopy(dict(self._collateral)), copy.deepcopy(dict(self._debt)))

    def restore(self, state: tuple[dict[str, dict[str, int]], dict[str, dict[str, int]]]) -> None:
        collateral, debt = state
        self._collateral = defaultdict(dict, copy.deepcopy(collateral))
        self._debt = defaultdict(dict, copy.deepcopy(debt))
