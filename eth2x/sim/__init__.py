"""In-memory, journaled collaborators for paper trading and tests."""
from .bank import AssetBank
from .lending import SimLendingMarket
from .oracle import StaticPriceOracle
from .shares import SimShareLedger
from .swap import SimSwapVenue

__all__ = [
    "AssetBank",
    "SimLendingMarket",
    "SimShareLedger",
    "SimSwapVenue",
    "StaticPriceOracle",
]
