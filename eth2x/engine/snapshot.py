"""Single-call readers for the lending-market snapshot and the spot price."""
from __future__ import annotations

import logging

from ..errors import ExternalReadFailure, VaultError
from ..interfaces.lending_market import LendingMarket
from ..interfaces.price_oracle import PriceOracle
from ..models import AccountSnapshot, Price

logger = logging.getLogger(__name__)


class SnapshotReader:
    """Read the vault account from the lending market. No retries."""

    def __init__(self, market: LendingMarket, account: str) -> None:
        self._market = market
        self._account = account

    async def read(self) -> AccountSnapshot:
        try:
            snapshot = await self._market.get_account_snapshot(self._account)
        except VaultError:
            raise
        except Exception as e:
            raise ExternalReadFailure(
                f"Account snapshot for {self._account} failed: {e}"
            ) from e

        if not isinstance(snapshot, AccountSnapshot):
            raise ExternalReadFailure(
                f"Lending market returned {type(snapshot).__name__}, not a snapshot"
            )

        logger.debug(
            "Snapshot %s — collateral %d debt %d available %d",
            self._account,
            snapshot.collateral_value,
            snapshot.debt_value,
            snapshot.available_borrow,
        )
        return snapshot


class PriceReader:
    """Read the reference asset's spot price from the oracle."""

    def __init__(self, oracle: PriceOracle, asset: str) -> None:
        self._oracle = oracle
        self._asset = asset

    async def read(self) -> Price:
        try:
            price = await self._oracle.price(self._asset)
        except VaultError:
            raise
        except Exception as e:
            raise ExternalReadFailure(f"Price for {self._asset} failed: {e}") from e

        if price.value <= 0:
            raise ExternalReadFailure(f"Oracle returned non-positive price for {self._asset}")
        return price
