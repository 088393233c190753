"""Position accounting and rebalancing engine."""
from .leverage import leverage_ratio, plan_adjustment, within_tolerance
from .snapshot import PriceReader, SnapshotReader
from .vault import LeveragedVault

__all__ = [
    "LeveragedVault",
    "PriceReader",
    "SnapshotReader",
    "leverage_ratio",
    "plan_adjustment",
    "within_tolerance",
]
