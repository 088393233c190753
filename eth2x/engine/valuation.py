"""Share valuation — mint and redeem amounts that preserve proportional ownership.

All values are integers. Snapshot values and ``price_base`` share the lending
market's base-currency scale; asset amounts are in the asset's smallest unit.
"""
from __future__ import annotations

from ..errors import (
    AccountingInvariantViolated,
    ExternalReadFailure,
    InsufficientCollateral,
    NothingToRedeem,
)
from ..fixed_point import BPS, WAD, checked, checked_sub, mul_div, to_canonical_scale
from ..models import AccountSnapshot, Price


def base_price(price: Price, base_decimals: int) -> int:
    """Rescale an oracle price onto the lending market's base-currency scale."""
    rescaled = to_canonical_scale(price.value, price.decimals, base_decimals)
    if rescaled == 0:
        raise ExternalReadFailure(
            f"Price {price.value}e-{price.decimals} rounds to zero at {base_decimals} decimals"
        )
    return rescaled


def value_of(amount: int, price_base: int, asset_decimals: int) -> int:
    """Base-currency value of ``amount`` smallest units."""
    return mul_div(amount, price_base, 10**asset_decimals)


def amount_for(value: int, price_base: int, asset_decimals: int) -> int:
    """Smallest units of an asset worth ``value`` in base currency, floored."""
    return mul_div(value, 10**asset_decimals, price_base)


def net_value(snapshot: AccountSnapshot) -> int:
    return checked_sub(snapshot.collateral_value, snapshot.debt_value)


def calculate_tokens_to_mint(
    deposit_amount: int,
    snapshot: AccountSnapshot,
    price_base: int,
    total_supply: int,
    *,
    ref_decimals: int,
    bootstrap_rate: int,
) -> int:
    """Shares owed for depositing ``deposit_amount`` of the reference asset.

    The first mint uses the bootstrap rate. Later mints receive
    ``deposit_value / net_value_before`` of the current supply, so existing
    holders keep their claim on the pre-deposit net value.
    """
    checked(deposit_amount)
    if total_supply == 0:
        return checked(deposit_amount * bootstrap_rate)

    net = net_value(snapshot)
    if net == 0:
        raise AccountingInvariantViolated(
            "Shares outstanding but the position has no net value"
        )

    deposit_value = value_of(deposit_amount, price_base, ref_decimals)
    contribution = mul_div(deposit_value, WAD, net)
    return mul_div(contribution, total_supply, WAD)


def percentage_owned(share_amount: int, total_supply: int) -> int:
    if share_amount == 0 or total_supply == 0:
        raise NothingToRedeem("Nothing to redeem")
    percentage = mul_div(share_amount, WAD, total_supply)
    if percentage == 0:
        raise NothingToRedeem(f"{share_amount} shares round to zero ownership")
    return percentage


def calculate_eth_to_redeem(
    share_amount: int,
    snapshot: AccountSnapshot,
    price_base: int,
    total_supply: int,
    *,
    ref_decimals: int,
    haircut_bps: int,
) -> int:
    """Reference-asset amount paid for burning ``share_amount`` shares.

    The redeemer's fraction of net value is converted at the spot price and
    reduced by the haircut, rounding down at every step.
    """
    percentage = percentage_owned(share_amount, total_supply)
    redeemer_value = mul_div(net_value(snapshot), percentage, WAD)
    raw = amount_for(redeemer_value, price_base, ref_decimals)
    amount = mul_div(raw, BPS - haircut_bps, BPS)
    if amount == 0:
        raise NothingToRedeem(f"{share_amount} shares are worth nothing")
    return amount


def check_collateral_sufficiency(
    amount: int,
    snapshot: AccountSnapshot,
    price_base: int,
    *,
    ref_decimals: int,
) -> None:
    """Raise unless the position's net value covers ``amount``."""
    available = amount_for(net_value(snapshot), price_base, ref_decimals)
    if available < amount:
        raise InsufficientCollateral(
            f"Redeem of {amount} exceeds net collateral {available}"
        )


def debt_share(snapshot: AccountSnapshot, share_amount: int, total_supply: int) -> int:
    """Redeemer's proportional slice of the debt, in base currency."""
    return mul_div(snapshot.debt_value, percentage_owned(share_amount, total_supply), WAD)
