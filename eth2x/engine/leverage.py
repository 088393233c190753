"""Leverage ratio and rebalance planning — pure functions over one snapshot."""
from __future__ import annotations

from ..fixed_point import BPS, FEE_DENOMINATOR, UINT256_MAX, WAD, mul_div
from ..models import AccountSnapshot, Adjustment, Direction


def leverage_ratio(snapshot: AccountSnapshot) -> int:
    """Collateral over debt as 1e18 fixed point; the sentinel when debt is zero."""
    if snapshot.debt_value == 0:
        return UINT256_MAX
    return mul_div(snapshot.collateral_value, WAD, snapshot.debt_value)


def within_tolerance(ratio: int, target: int, tolerance: int) -> bool:
    """True when ``ratio`` is within ``tolerance`` (1e18 = 100%) of ``target``."""
    if ratio == UINT256_MAX:
        return False
    return abs(ratio - target) * WAD <= target * tolerance


def max_withdrawable(snapshot: AccountSnapshot, health_buffer_bps: int = 0) -> int:
    """Largest collateral withdrawal the market allows before the debt is repaid.

    The remaining collateral, weighted by the liquidation threshold, must
    still cover the debt grown by ``health_buffer_bps``.
    """
    if snapshot.debt_value == 0:
        return snapshot.collateral_value
    if snapshot.liquidation_threshold == 0:
        return 0
    # ceil so the remaining collateral always covers the buffered debt
    required = -(
        -snapshot.debt_value * (BPS + health_buffer_bps) // snapshot.liquidation_threshold
    )
    return max(snapshot.collateral_value - required, 0)


def plan_adjustment(
    snapshot: AccountSnapshot, target_ratio: int, health_buffer_bps: int = 0
) -> Adjustment:
    """Size the next step toward ``target_ratio``.

    Under-levered positions borrow ``collateral / target - debt``, capped by
    the market's available borrow. Over-levered positions withdraw and repay
    ``debt * target - collateral``, capped so the health factor stays above
    ``1 + health_buffer_bps`` between the withdrawal and the repayment.
    Either cap means the call makes partial progress.
    """
    ratio = leverage_ratio(snapshot)

    if ratio > target_ratio:
        requested = mul_div(snapshot.collateral_value, WAD, target_ratio) - snapshot.debt_value
        requested = max(requested, 0)
        value = min(requested, snapshot.available_borrow)
        direction = Direction.LEVER_UP
    else:
        requested = max(
            mul_div(snapshot.debt_value, target_ratio, WAD) - snapshot.collateral_value, 0
        )
        value = min(requested, max_withdrawable(snapshot, health_buffer_bps))
        direction = Direction.LEVER_DOWN

    if value == 0:
        return Adjustment(Direction.NONE, 0, requested, capped=requested > 0)
    return Adjustment(direction, value, requested, capped=value < requested)


def min_amount_out(expected: int, slippage_bps: int, fee_tier: int = 0) -> int:
    """Minimum acceptable swap output for a pre-fee estimate.

    The venue's fee tier (hundredths of a basis point) is deducted before the
    slippage tolerance. Zero disables protection.
    """
    after_fee = mul_div(expected, FEE_DENOMINATOR - fee_tier, FEE_DENOMINATOR)
    return mul_div(after_fee, BPS - slippage_bps, BPS)
