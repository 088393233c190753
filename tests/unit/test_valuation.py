"""Unit tests for share valuation: mint and redeem amounts."""
from __future__ import annotations

import pytest

from eth2x.engine.valuation import (
    amount_for,
    base_price,
    calculate_eth_to_redeem,
    calculate_tokens_to_mint,
    check_collateral_sufficiency,
    debt_share,
    percentage_owned,
    value_of,
)
from eth2x.errors import (
    AccountingInvariantViolated,
    ExternalReadFailure,
    InsufficientCollateral,
    NothingToRedeem,
)
from eth2x.fixed_point import WAD
from eth2x.models import AccountSnapshot, Price

USD = 10**8
PRICE = 2000 * USD


def _snapshot(collateral: int, debt: int) -> AccountSnapshot:
    return AccountSnapshot(
        collateral_value=collateral,
        debt_value=debt,
        available_borrow=0,
        liquidation_threshold=8300,
        loan_to_value=8000,
    )


def _mint(deposit: int, snapshot: AccountSnapshot, supply: int) -> int:
    return calculate_tokens_to_mint(
        deposit, snapshot, PRICE, supply, ref_decimals=18, bootstrap_rate=10_000
    )


def _redeem(shares: int, snapshot: AccountSnapshot, supply: int, haircut_bps: int = 100) -> int:
    return calculate_eth_to_redeem(
        shares, snapshot, PRICE, supply, ref_decimals=18, haircut_bps=haircut_bps
    )


class TestPricing:
    def test_base_price_rescales_oracle_price(self) -> None:
        assert base_price(Price(2000 * WAD, 18), 8) == PRICE
        assert base_price(Price(350012345678, 8), 8) == 350012345678

    def test_base_price_rounding_to_zero_is_a_read_failure(self) -> None:
        with pytest.raises(ExternalReadFailure):
            base_price(Price(1, 18), 8)

    def test_value_and_amount(self) -> None:
        assert value_of(WAD, PRICE, 18) == PRICE
        assert value_of(WAD // 2, PRICE, 18) == 1000 * USD
        assert amount_for(1000 * USD, PRICE, 18) == WAD // 2


class TestTokensToMint:
    def test_first_deposit_uses_bootstrap_rate(self) -> None:
        assert _mint(WAD, _snapshot(0, 0), 0) == 10_000 * WAD

    def test_proportional_to_net_value(self) -> None:
        # net value $20,000; a $2,000 deposit earns 10% of the supply
        shares = _mint(WAD, _snapshot(40_000 * USD, 20_000 * USD), 100_000 * WAD)
        assert shares == 10_000 * WAD

    def test_insolvent_position_with_supply_raises(self) -> None:
        with pytest.raises(AccountingInvariantViolated):
            _mint(WAD, _snapshot(20_000 * USD, 20_000 * USD), 100 * WAD)

    def test_debt_above_collateral_raises(self) -> None:
        with pytest.raises(AccountingInvariantViolated):
            _mint(WAD, _snapshot(10_000 * USD, 20_000 * USD), 100 * WAD)

    def test_dust_deposit_mints_zero(self) -> None:
        assert _mint(1, _snapshot(40_000 * USD, 20_000 * USD), 10**4) == 0


class TestEthToRedeem:
    def test_sole_holder_of_unlevered_position(self) -> None:
        amount = _redeem(10_000 * WAD, _snapshot(2_000 * USD, 0), 10_000 * WAD)
        assert amount == 99 * WAD // 100

    def test_sole_holder_receives_less_than_net_value(self) -> None:
        snapshot = _snapshot(40_000 * USD, 20_000 * USD)
        amount = _redeem(10 * WAD, snapshot, 10 * WAD)
        assert amount < amount_for(snapshot.collateral_value - snapshot.debt_value, PRICE, 18)
        assert amount == 99 * WAD // 10

    def test_half_of_supply(self) -> None:
        amount = _redeem(5 * WAD, _snapshot(40_000 * USD, 20_000 * USD), 10 * WAD, haircut_bps=0)
        assert amount == 5 * WAD

    def test_zero_shares(self) -> None:
        with pytest.raises(NothingToRedeem):
            _redeem(0, _snapshot(40_000 * USD, 20_000 * USD), 10 * WAD)

    def test_zero_supply(self) -> None:
        with pytest.raises(NothingToRedeem):
            _redeem(1, _snapshot(0, 0), 0)

    def test_worthless_shares(self) -> None:
        with pytest.raises(NothingToRedeem):
            _redeem(1, _snapshot(2, 0), 10 * WAD)

    def test_percentage_owned_rounding_to_zero(self) -> None:
        with pytest.raises(NothingToRedeem):
            percentage_owned(1, 10 * WAD * WAD)


class TestCollateralSufficiency:
    def test_covered_amount_passes(self) -> None:
        check_collateral_sufficiency(
            10 * WAD, _snapshot(40_000 * USD, 20_000 * USD), PRICE, ref_decimals=18
        )

    def test_excess_amount_raises(self) -> None:
        with pytest.raises(InsufficientCollateral):
            check_collateral_sufficiency(
                10 * WAD + 1, _snapshot(40_000 * USD, 20_000 * USD), PRICE, ref_decimals=18
            )


class TestDebtShare:
    def test_proportional_slice(self) -> None:
        assert debt_share(_snapshot(40_000 * USD, 20_000 * USD), 1 * WAD, 4 * WAD) == 5_000 * USD
