"""Share ledger protocol — fungible-token bookkeeping for vault shares."""
from typing import Protocol


class ShareLedger(Protocol):
    """Standard fungible-token capability set.

    The engine only depends on total supply, balances, mint and burn; the
    transfer/approve surface is exposed for holders.
    """

    async def total_supply(self) -> int: ...

    async def balance_of(self, holder: str) -> int: ...

    async def mint(self, to: str, amount: int) -> None: ...

    async def burn(self, holder: str, amount: int) -> None: ...

    async def transfer(self, sender: str, recipient: str, amount: int) -> None: ...

    async def approve(self, owner: str, spender: str, amount: int) -> None: ...

    async def allowance(self, owner: str, spender: str) -> int: ...

    async def transfer_from(
        self, spender: str, owner: str, recipient: str, amount: int
    ) -> None: ...
