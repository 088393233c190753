"""Fungible share token with standard balance/allowance semantics."""
from __future__ import annotations

import copy

from ..errors import ExternalCallFailure


class SimShareLedger:
    """Vault share token. Only the vault should call mint and burn."""

    def __init__(self, symbol: str = "ETH2X") -> None:
        self.symbol = symbol
        self._total_supply = 0
        self._balances: dict[str, int] = {}
        self._allowances: dict[tuple[str, str], int] = {}

    async def total_supply(self) -> int:
        return self._total_supply

    async def balance_of(self, holder: str) -> int:
        return self._balances.get(holder, 0)

    async def mint(self, to: str, amount: int) -> None:
        if amount <= 0:
            raise ExternalCallFailure("mint amount must be positive")
        self._balances[to] = self._balances.get(to, 0) + amount
        self._total_supply += amount

    async def burn(self, holder: str, amount: int) -> None:
        held = self._balances.get(holder, 0)
        if amount > held:
            raise ExternalCallFailure("burn amount exceeds balance")
        self._balances[holder] = held - amount
        self._total_supply -= amount

    async def transfer(self, sender: str, recipient: str, amount: int) -> None:
        held = self._balances.get(sender, 0)
        if amount > held:
            raise ExternalCallFailure("transfer amount exceeds balance")
        self._balances[sender] = held - amount
        self._balances[recipient] = self._balances.get(recipient, 0) + amount

    async def approve(self, owner: str, spender: str, amount: int) -> None:
        self._allowances[(owner, spender)] = amount

    async def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    async def transfer_from(
        self, spender: str, owner: str, recipient: str, amount: int
    ) -> None:
        allowed = self._allowances.get((owner, spender), 0)
        if amount > allowed:
            raise ExternalCallFailure("insufficient allowance")
        await self.transfer(owner, recipient, amount)
        self._allowances[(owner, spender)] = allowed - amount

    def checkpoint(self) -> tuple[int, dict[str, int], dict[tuple[str, str], int]]:
        return (self._total_supply, dict(self._balances), dict(self._allowances))

    def restore(self, state: tuple[int, dict[str, int], dict[tuple[str, str], int]]) -> None:
        total, balances, allowances = state
        self._total_supply = total
        self._balances = dict(balances)
        self._allowances = copy.copy(allowances)
