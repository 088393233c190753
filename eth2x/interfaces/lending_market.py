"""Lending market protocol — collateral and debt for the vault account."""
from typing import Protocol

from ..models import AccountSnapshot


class LendingMarket(Protocol):
    """Abstract interface for an over-collateralized lending market.

    Amounts are in each asset's smallest unit. Snapshot values are in the
    market's base currency (8 decimals for Aave v3), which need not match
    the price oracle's scale.
    """

    async def supply(self, asset: str, amount: int) -> None: ...

    async def borrow(self, asset: str, amount: int, on_behalf_of: str) -> None: ...

    async def repay(self, asset: str, amount: int, on_behalf_of: str) -> int: ...

    async def withdraw(self, asset: str, amount: int, to: str) -> int: ...

    async def get_account_snapshot(self, account: str) -> AccountSnapshot: ...
