"""Oracle-priced swap venue with a Uniswap-style fee tier."""
from __future__ import annotations

import logging

from ..config import SwapVenueConfig
from ..errors import ExternalCallFailure, SlippageExceeded
from ..fixed_point import BPS, FEE_DENOMINATOR, WAD, mul_div, to_canonical_scale
from ..interfaces.price_oracle import PriceOracle
from .bank import AssetBank

logger = logging.getLogger(__name__)


class SimSwapVenue:
    """Swap at the oracle price, less the pool fee and a fixed price impact.

    Output is paid from the venue's own reserves on the bank, so a venue
    without liquidity reverts the same way an empty pool would.
    """

    def __init__(
        self,
        bank: AssetBank,
        oracle: PriceOracle,
        account: str,
        config: SwapVenueConfig,
        asset_decimals: dict[str, int],
        pegged_assets: tuple[str, ...] = (),
        address: str = "0xSWAP_ROUTER",
    ) -> None:
        self._bank = bank
        self._oracle = oracle
        self._account = account
        self._config = config
        self._decimals = dict(asset_decimals)
        self._pegged = set(pegged_assets)
        self.address = address

    @property
    def fee_tier(self) -> int:
        return self._config.fee_tier

    async def _usd_price(self, asset: str) -> int:
        if asset in self._pegged:
            return WAD
        price = await self._oracle.price(asset)
        return to_canonical_scale(price.value, price.decimals, 18)

    async def quote(self, token_in: str, token_out: str, amount_in: int) -> int:
        """Output for ``amount_in`` after fee and price impact."""
        if token_in == token_out:
            raise ExternalCallFailure("Cannot swap an asset for itself")
        value = mul_div(amount_in, await self._usd_price(token_in), 10 ** self._decimals[token_in])
        gross = mul_div(value, 10 ** self._decimals[token_out], await self._usd_price(token_out))
        after_fee = mul_div(gross, FEE_DENOMINATOR - self._config.fee_tier, FEE_DENOMINATOR)
        return mul_div(after_fee, BPS - self._config.price_impact_bps, BPS)

    async def swap_exact_in(
        self, token_in: str, token_out: str, amount_in: int, min_amount_out: int
    ) -> int:
        amount_out = await self.quote(token_in, token_out, amount_in)
        if amount_out < min_amount_out:
            raise SlippageExceeded(
                f"Swap output {amount_out} {token_out} below minimum {min_amount_out}"
            )
        self._bank.move(token_in, self._account, self.address, amount_in)
        self._bank.move(token_out, self.address, self._account, amount_out)
        logger.debug(
            "swap %d %s -> %d %s (fee tier %d)",
            amount_in, token_in, amount_out, token_out, self.fee_tier,
        )
        return amount_out
