"""Protocol interfaces for the vault's external collaborators."""
from .asset_ledger import AssetLedger
from .host import Journaled, TransactionHost
from .lending_market import LendingMarket
from .notifier import Notifier
from .price_oracle import PriceOracle
from .share_ledger import ShareLedger
from .swap_venue import SwapVenue

__all__ = [
    "AssetLedger",
    "Journaled",
    "LendingMarket",
    "Notifier",
    "PriceOracle",
    "ShareLedger",
    "SwapVenue",
    "TransactionHost",
]
