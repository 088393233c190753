"""Asset ledger protocol — the platform's native value movement."""
from typing import Protocol


class AssetLedger(Protocol):
    """Abstract interface for moving underlying assets between accounts."""

    async def balance_of(self, asset: str, account: str) -> int: ...

    async def transfer(
        self, asset: str, sender: str, recipient: str, amount: int
    ) -> None: ...
