"""Service modules."""
from .factory import PaperVault, build_oracle, build_paper_vault, seed_paper_vault
from .keeper import Keeper
from .simulator import SimulationPoint, simulate_price_path

__all__ = [
    "Keeper",
    "PaperVault",
    "SimulationPoint",
    "build_oracle",
    "build_paper_vault",
    "seed_paper_vault",
    "simulate_price_path",
]
