"""Data models — all frozen (immutable) except the vault's owned store."""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .fixed_point import UINT256_MAX

# Most recent rebalance results kept on the vault for reports and tests.
HISTORY_LIMIT = 100


@dataclass(frozen=True)
class AccountSnapshot:
    """Lending-market view of one account, valued in the base currency.

    ``collateral_value``, ``debt_value`` and ``available_borrow`` use the
    market's base-currency scale. Thresholds are basis points and
    ``health_factor`` is 1e18 fixed point.
    """

    collateral_value: int
    debt_value: int
    available_borrow: int
    liquidation_threshold: int
    loan_to_value: int
    health_factor: int = UINT256_MAX

    @property
    def net_value(self) -> int:
        return self.collateral_value - self.debt_value


@dataclass(frozen=True)
class Price:
    """Spot price of one whole unit of an asset at the oracle's own scale."""

    value: int
    decimals: int


class Direction(str, Enum):
    LEVER_UP = "lever_up"
    LEVER_DOWN = "lever_down"
    NONE = "none"


@dataclass(frozen=True)
class Adjustment:
    """Planned rebalance step, sized in base-currency value."""

    direction: Direction
    value: int
    requested: int
    capped: bool = False

    @property
    def is_noop(self) -> bool:
        return self.direction is Direction.NONE or self.value == 0


@dataclass(frozen=True)
class RebalanceStep:
    """One executed borrow-swap-supply or withdraw-swap-repay cycle."""

    direction: Direction
    ratio_before: int
    ratio_after: int
    amount_in: int
    amount_out: int
    min_amount_out: int
    capped: bool


@dataclass(frozen=True)
class RebalanceResult:
    ratio_before: int
    ratio_after: int
    target_ratio: int
    converged: bool
    steps: tuple[RebalanceStep, ...] = ()

    @property
    def noop(self) -> bool:
        return not self.steps


@dataclass(frozen=True)
class MintResult:
    beneficiary: str
    deposit_amount: int
    shares: int
    total_supply: int


@dataclass(frozen=True)
class RedeemLeg:
    withdrawn: int
    swapped_out: int
    repaid: int


@dataclass(frozen=True)
class RedeemResult:
    holder: str
    shares: int
    amount: int
    total_supply: int
    legs: tuple[RedeemLeg, ...] = ()


@dataclass(frozen=True)
class PositionView:
    """Read-only summary used by the keeper and reports."""

    snapshot: AccountSnapshot
    price: Price
    leverage_ratio: int
    total_supply: int


@dataclass
class VaultState:
    """Vault-local mutable state, journaled by the host."""

    last_rebalance_at: datetime | None = None
    rebalance_count: int = 0
    history: deque[RebalanceResult] = field(
        default_factory=lambda: deque(maxlen=HISTORY_LIMIT)
    )

    def checkpoint(self) -> tuple[datetime | None, int, tuple[RebalanceResult, ...]]:
        return (self.last_rebalance_at, self.rebalance_count, tuple(self.history))

    def restore(self, state: tuple[datetime | None, int, tuple[RebalanceResult, ...]]) -> None:
        self.last_rebalance_at, self.rebalance_count, history = state
        self.history.clear()
        self.history.extend(history)
