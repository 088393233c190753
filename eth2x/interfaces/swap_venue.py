"""Swap venue protocol — exact-input swaps at a fixed fee tier."""
from typing import Protocol


class SwapVenue(Protocol):
    """Abstract interface for exchanging one asset for another."""

    @property
    def fee_tier(self) -> int: ...

    async def swap_exact_in(
        self, token_in: str, token_out: str, amount_in: int, min_amount_out: int
    ) -> int: ...
