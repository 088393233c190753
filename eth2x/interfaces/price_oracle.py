"""Price oracle protocol — spot price feed abstraction."""
from typing import Protocol

from ..models import Price


class PriceOracle(Protocol):
    """Abstract interface for fetching an asset's spot price."""

    async def price(self, asset: str) -> Price: ...
