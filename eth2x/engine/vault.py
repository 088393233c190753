"""Leveraged vault — mint, redeem and rebalance against external collaborators."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Awaitable, TypeVar

from ..access import AccessPolicy, OpenToAll, require_allowed
from ..config import AssetsConfig, VaultConfig
from ..errors import (
    ExternalCallFailure,
    InsufficientShareBalance,
    NothingToMint,
    NothingToRedeem,
    VaultError,
)
from ..fixed_point import format_fixed, to_canonical_scale
from ..interfaces.asset_ledger import AssetLedger
from ..interfaces.host import TransactionHost
from ..interfaces.lending_market import LendingMarket
from ..interfaces.price_oracle import PriceOracle
from ..interfaces.share_ledger import ShareLedger
from ..interfaces.swap_venue import SwapVenue
from ..models import (
    Adjustment,
    Direction,
    MintResult,
    PositionView,
    RebalanceResult,
    RebalanceStep,
    RedeemLeg,
    RedeemResult,
    VaultState,
)
from . import valuation
from .leverage import leverage_ratio, min_amount_out, plan_adjustment, within_tolerance
from .snapshot import PriceReader, SnapshotReader

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LeveragedVault:
    """2x leveraged long on the reference asset, financed in the quote asset.

    Every public mutation runs inside one host transaction and reads its own
    snapshot; nothing is cached between calls. Views go through the host's
    serialization but never mutate.
    """

    def __init__(
        self,
        address: str,
        config: VaultConfig,
        assets: AssetsConfig,
        base_decimals: int,
        market: LendingMarket,
        swap_venue: SwapVenue,
        oracle: PriceOracle,
        shares: ShareLedger,
        asset_ledger: AssetLedger,
        host: TransactionHost,
        policy: AccessPolicy | None = None,
        state: VaultState | None = None,
    ) -> None:
        self.address = address
        self._config = config
        self._ref = assets.reference
        self._quote = assets.quote
        self._base_decimals = base_decimals
        self._market = market
        self._swap_venue = swap_venue
        self._shares = shares
        self._assets = asset_ledger
        self._host = host
        self._policy: AccessPolicy = policy or OpenToAll()
        self.state = state or VaultState()
        self._snapshots = SnapshotReader(market, address)
        self._prices = PriceReader(oracle, assets.reference.symbol)

    @property
    def target_ratio(self) -> int:
        return self._config.target_ratio

    @property
    def base_decimals(self) -> int:
        return self._base_decimals

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    async def leverage_ratio(self) -> int:
        async with self._host.view("leverage_ratio"):
            return leverage_ratio(await self._snapshots.read())

    async def calculate_tokens_to_mint(self, deposit_amount: int) -> int:
        async with self._host.view("calculate_tokens_to_mint"):
            return await self._preview_mint(deposit_amount)

    async def calculate_eth_to_redeem(self, share_amount: int) -> int:
        async with self._host.view("calculate_eth_to_redeem"):
            snapshot = await self._snapshots.read()
            price_base = await self._read_base_price()
            supply = await self._shares.total_supply()
            return valuation.calculate_eth_to_redeem(
                share_amount,
                snapshot,
                price_base,
                supply,
                ref_decimals=self._ref.decimals,
                haircut_bps=self._config.redeem_haircut_bps,
            )

    async def position(self) -> PositionView:
        async with self._host.view("position"):
            snapshot = await self._snapshots.read()
            price = await self._prices.read()
            return PositionView(
                snapshot=snapshot,
                price=price,
                leverage_ratio=leverage_ratio(snapshot),
                total_supply=await self._shares.total_supply(),
            )

    # ------------------------------------------------------------------
    # Mint / redeem
    # ------------------------------------------------------------------

    async def mint(self, caller: str, beneficiary: str, deposit_amount: int) -> MintResult:
        """Deposit ``deposit_amount`` of the reference asset and mint shares.

        The deposit is supplied as collateral unlevered; the next rebalance
        brings it to target.
        """
        require_allowed(self._policy, caller)
        if deposit_amount <= 0:
            raise NothingToMint("Deposit must be positive")

        async with self._host.transaction("mint"):
            shares = await self._preview_mint(deposit_amount)
            if shares == 0:
                raise NothingToMint(f"Deposit of {deposit_amount} prices to zero shares")

            ref = self._ref.symbol
            await self._call(
                "deposit transfer",
                self._assets.transfer(ref, caller, self.address, deposit_amount),
            )
            await self._call("supply", self._market.supply(ref, deposit_amount))
            await self._call("share mint", self._shares.mint(beneficiary, shares))
            total_supply = await self._shares.total_supply()

        logger.info(
            "Minted %d shares to %s for %s %s",
            shares,
            beneficiary,
            format_fixed(deposit_amount, self._ref.decimals),
            ref,
        )
        return MintResult(
            beneficiary=beneficiary,
            deposit_amount=deposit_amount,
            shares=shares,
            total_supply=total_supply,
        )

    async def redeem(self, holder: str, share_amount: int) -> RedeemResult:
        """Burn ``share_amount`` shares and pay out the reference asset.

        The redeemer's share of debt is repaid from collateral first, in equal
        legs, so the remaining position keeps its leverage.
        """
        if share_amount <= 0:
            raise NothingToRedeem("Nothing to redeem")

        async with self._host.transaction("redeem"):
            balance = await self._shares.balance_of(holder)
            if balance < share_amount:
                raise InsufficientShareBalance(
                    f"{holder} holds {balance} shares, cannot redeem {share_amount}"
                )

            snapshot = await self._snapshots.read()
            price_base = await self._read_base_price()
            supply = await self._shares.total_supply()

            amount = valuation.calculate_eth_to_redeem(
                share_amount,
                snapshot,
                price_base,
                supply,
                ref_decimals=self._ref.decimals,
                haircut_bps=self._config.redeem_haircut_bps,
            )
            valuation.check_collateral_sufficiency(
                amount, snapshot, price_base, ref_decimals=self._ref.decimals
            )

            debt_value = valuation.debt_share(snapshot, share_amount, supply)
            legs = await self._unwind_debt(debt_value, price_base)

            withdrawn = await self._call(
                "withdraw", self._market.withdraw(self._ref.symbol, amount, holder)
            )
            if withdrawn != amount:
                raise ExternalCallFailure(
                    f"Withdrew {withdrawn} instead of {amount} for {holder}"
                )
            await self._call("share burn", self._shares.burn(holder, share_amount))
            total_supply = await self._shares.total_supply()

        logger.info(
            "Redeemed %d shares from %s for %s %s in %d legs",
            share_amount,
            holder,
            format_fixed(amount, self._ref.decimals),
            self._ref.symbol,
            len(legs),
        )
        return RedeemResult(
            holder=holder,
            shares=share_amount,
            amount=amount,
            total_supply=total_supply,
            legs=legs,
        )

    async def _unwind_debt(self, debt_value: int, price_base: int) -> tuple[RedeemLeg, ...]:
        """Withdraw, swap and repay ``debt_value`` of debt in equal legs."""
        quote_decimals = self._quote.decimals
        debt_quote = to_canonical_scale(debt_value, self._base_decimals, quote_decimals)
        if debt_quote == 0:
            return ()

        leg_count = self._config.redeem_withdrawal_legs
        per_leg = debt_quote // leg_count
        remaining = debt_quote
        legs: list[RedeemLeg] = []

        for i in range(leg_count):
            leg_quote = remaining if i == leg_count - 1 else per_leg
            remaining -= leg_quote
            leg_value = to_canonical_scale(leg_quote, quote_decimals, self._base_decimals)
            ref_amount = valuation.amount_for(leg_value, price_base, self._ref.decimals)
            if ref_amount == 0:
                continue

            await self._call(
                "withdraw",
                self._market.withdraw(self._ref.symbol, ref_amount, self.address),
            )
            out, _ = await self._swap(
                self._ref.symbol, self._quote.symbol, ref_amount, leg_quote
            )
            repaid = await self._call(
                "repay", self._market.repay(self._quote.symbol, out, self.address)
            )
            legs.append(RedeemLeg(withdrawn=ref_amount, swapped_out=out, repaid=repaid))

        return tuple(legs)

    # ------------------------------------------------------------------
    # Rebalance
    # ------------------------------------------------------------------

    async def rebalance(self, caller: str = "") -> RebalanceResult:
        """Move the position toward the target ratio.

        At most ``max_rebalance_iterations`` steps run per call, each planned
        from a freshly read snapshot. Capacity limits can leave the ratio
        outside tolerance; callers repeat the call until it converges.
        """
        target = self._config.target_ratio
        tolerance = self._config.rebalance_tolerance

        async with self._host.transaction("rebalance"):
            snapshot = await self._snapshots.read()
            ratio_before = ratio = leverage_ratio(snapshot)
            steps: list[RebalanceStep] = []

            for _ in range(self._config.max_rebalance_iterations):
                adjustment = plan_adjustment(
                    snapshot, target, self._config.withdraw_health_buffer_bps
                )
                if adjustment.is_noop:
                    break

                executed = await self._execute(adjustment)
                if executed is None:
                    break
                amount_in, amount_out, minimum = executed

                snapshot = await self._snapshots.read()
                ratio_after = leverage_ratio(snapshot)
                steps.append(
                    RebalanceStep(
                        direction=adjustment.direction,
                        ratio_before=ratio,
                        ratio_after=ratio_after,
                        amount_in=amount_in,
                        amount_out=amount_out,
                        min_amount_out=minimum,
                        capped=adjustment.capped,
                    )
                )
                ratio = ratio_after
                if within_tolerance(ratio, target, tolerance):
                    break

            result = RebalanceResult(
                ratio_before=ratio_before,
                ratio_after=ratio,
                target_ratio=target,
                converged=within_tolerance(ratio, target, tolerance),
                steps=tuple(steps),
            )
            self.state.last_rebalance_at = datetime.now(timezone.utc)
            self.state.rebalance_count += 1
            self.state.history.append(result)

        logger.info(
            "Rebalance%s: ratio %s -> %s in %d step(s)%s",
            f" by {caller}" if caller else "",
            format_fixed(ratio_before),
            format_fixed(result.ratio_after),
            len(result.steps),
            "" if result.converged else " (not yet converged)",
        )
        return result

    async def _execute(self, adjustment: Adjustment) -> tuple[int, int, int] | None:
        """Run one step. Returns (amount_in, amount_out, min_amount_out)."""
        price_base = await self._read_base_price()
        ref, quote = self._ref, self._quote

        if adjustment.direction is Direction.LEVER_UP:
            # base-currency value → quote units is the price correction factor
            borrow = to_canonical_scale(adjustment.value, self._base_decimals, quote.decimals)
            if borrow == 0:
                return None
            await self._call(
                "borrow", self._market.borrow(quote.symbol, borrow, self.address)
            )
            expected = valuation.amount_for(
                to_canonical_scale(borrow, quote.decimals, self._base_decimals),
                price_base,
                ref.decimals,
            )
            out, minimum = await self._swap(quote.symbol, ref.symbol, borrow, expected)
            await self._call("supply", self._market.supply(ref.symbol, out))
            return borrow, out, minimum

        withdraw = valuation.amount_for(adjustment.value, price_base, ref.decimals)
        if withdraw == 0:
            return None
        await self._call(
            "withdraw", self._market.withdraw(ref.symbol, withdraw, self.address)
        )
        expected = to_canonical_scale(
            valuation.value_of(withdraw, price_base, ref.decimals),
            self._base_decimals,
            quote.decimals,
        )
        out, minimum = await self._swap(ref.symbol, quote.symbol, withdraw, expected)
        await self._call("repay", self._market.repay(quote.symbol, out, self.address))
        return withdraw, out, minimum

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _preview_mint(self, deposit_amount: int) -> int:
        snapshot = await self._snapshots.read()
        price_base = await self._read_base_price()
        supply = await self._shares.total_supply()
        return valuation.calculate_tokens_to_mint(
            deposit_amount,
            snapshot,
            price_base,
            supply,
            ref_decimals=self._ref.decimals,
            bootstrap_rate=self._config.bootstrap_rate,
        )

    async def _read_base_price(self) -> int:
        return valuation.base_price(await self._prices.read(), self._base_decimals)

    async def _swap(
        self, token_in: str, token_out: str, amount_in: int, expected: int
    ) -> tuple[int, int]:
        minimum = min_amount_out(
            expected, self._config.swap_slippage_bps, self._swap_venue.fee_tier
        )
        if minimum == 0:
            logger.warning(
                "Expected %s output for %d %s is zero; slippage protection disabled",
                token_out,
                amount_in,
                token_in,
            )
        out = await self._call(
            f"swap {token_in}->{token_out}",
            self._swap_venue.swap_exact_in(token_in, token_out, amount_in, minimum),
        )
        return out, minimum

    @staticmethod
    async def _call(what: str, awaitable: Awaitable[T]) -> T:
        """Await an external call, surfacing foreign failures as ExternalCallFailure."""
        try:
            result = await awaitable
        except VaultError:
            raise
        except Exception as e:
            raise ExternalCallFailure(f"{what} failed: {e}") from e
        logger.debug("%s -> %s", what, result)
        return result
