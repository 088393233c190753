"""Asset balances per account — the simulated chain's native ledger."""
from __future__ import annotations

import copy
from collections import defaultdict

from ..errors import ExternalCallFailure


class AssetBank:
    """Balances keyed by asset symbol, then account."""

    def __init__(self) -> None:
        self._balances: dict[str, dict[str, int]] = defaultdict(dict)

    async def balance_of(self, asset: str, account: str) -> int:
        return self.balance(asset, account)

    async def transfer(self, asset: str, sender: str, recipient: str, amount: int) -> None:
        self.move(asset, sender, recipient, amount)

    def balance(self, asset: str, account: str) -> int:
        return self._balances[asset].get(account, 0)

    def credit(self, asset: str, account: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("credit amount must be non-negative")
        self._balances[asset][account] = self.balance(asset, account) + amount

    def move(self, asset: str, sender: str, recipient: str, amount: int) -> None:
        if amount < 0:
            raise ExternalCallFailure("transfer amount must be non-negative")
        held = self.balance(asset, sender)
        if held < amount:
            raise ExternalCallFailure(
                f"{sender} holds {held} {asset}, cannot transfer {amount}"
            )
        self._balances[asset][sender] = held - amount
        self._balances[asset][recipient] = self.balance(asset, recipient) + amount

    def checkpoint(self) -> dict[str, dict[str, int]]:
        return copy.deepcopy(dict(self._balances))

    def restore(self, state: dict[str, dict[str, int]]) -> None:
        self._balances = defaultdict(dict, copy.deepcopy(state))
