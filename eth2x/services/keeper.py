"""Keeper — rebalance whenever the leverage ratio leaves its band."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from ..config import KeeperConfig
from ..engine.vault import LeveragedVault
from ..errors import VaultError
from ..fixed_point import format_fixed
from ..interfaces.notifier import Notifier
from ..models import RebalanceResult

logger = logging.getLogger(__name__)


class Keeper:
    """Poll the vault's leverage ratio and trigger rebalances."""

    def __init__(
        self,
        vault: LeveragedVault,
        config: KeeperConfig,
        notifiers: list[Notifier] | None = None,
    ) -> None:
        self._vault = vault
        self._config = config
        self._notifiers: list[Notifier] = list(notifiers or [])

    def in_band(self, ratio: int) -> bool:
        return self._config.lower_bound <= ratio <= self._config.upper_bound

    @staticmethod
    def _now_str() -> str:
        return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

    # ------------------------------------------------------------------
    # Notification dispatch
    # ------------------------------------------------------------------

    async def _send_log(self, message: str) -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_log(message, silent=True)
            except Exception as e:
                logger.error("Notifier send_log failed: %s", e)

    async def _send_alert(self, message: str, subject: str = "") -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_alert(message, subject=subject)
            except Exception as e:
                logger.error("Notifier send_alert failed: %s", e)

    def _build_rebalance_message(self, result: RebalanceResult) -> str:
        lines = [
            f"Rebalanced {self._vault.address}",
            f"Ratio: {format_fixed(result.ratio_before)} -> {format_fixed(result.ratio_after)}"
            f" (target {format_fixed(result.target_ratio)})",
        ]
        for i, step in enumerate(result.steps, 1):
            lines.append(
                f"  {i}. {step.direction.value}: in {step.amount_in} out {step.amount_out}"
                f"{' (capped)' if step.capped else ''}"
            )
        if not result.converged:
            lines.append("Not yet within tolerance; next run continues.")
        lines.append(f"{self._now_str()} UTC")
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Core workflows
    # ------------------------------------------------------------------

    async def check_and_rebalance(self) -> RebalanceResult | None:
        """Rebalance if the ratio is outside the band. Returns the result, if any."""
        ratio = await self._vault.leverage_ratio()
        if self.in_band(ratio):
            logger.info("Leverage ratio %s is within acceptable range", format_fixed(ratio))
            return None

        logger.info("Leverage ratio %s is outside band, rebalancing", format_fixed(ratio))
        try:
            result = await self._vault.rebalance(self._config.caller)
        except VaultError as e:
            logger.error("Rebalance failed: %s", e)
            await self._send_alert(
                f"Rebalance of {self._vault.address} failed at ratio "
                f"{format_fixed(ratio)}:\n{type(e).__name__}: {e}",
                subject="Rebalance failed",
            )
            raise

        await self._send_log(self._build_rebalance_message(result))
        return result

    async def generate_report(self) -> str:
        """Build and send a position report."""
        view = await self._vault.position()
        snapshot = view.snapshot
        base = self._vault.base_decimals
        report = (
            f"Vault {self._vault.address}\n"
            f"\n"
            f"Collateral: {format_fixed(snapshot.collateral_value, base, 2)}\n"
            f"Debt: {format_fixed(snapshot.debt_value, base, 2)}\n"
            f"Net value: {format_fixed(snapshot.net_value, base, 2)}\n"
            f"Leverage: {format_fixed(view.leverage_ratio)}"
            f" · HF: {format_fixed(snapshot.health_factor, 18, 2)}\n"
            f"Spot price: {format_fixed(view.price.value, view.price.decimals, 2)}\n"
            f"Share supply: {format_fixed(view.total_supply)}\n"
            f"\n"
            f"{self._now_str()} UTC"
        )
        await self._send_alert(report, subject="Vault report")
        logger.info("Report sent")
        return report

    async def run_continuous(self, check_interval_minutes: int | None = None) -> None:
        """Run the keeper loop forever."""
        interval = check_interval_minutes or self._config.check_interval_minutes
        logger.info("Starting keeper (checking every %d minutes)", interval)

        while True:
            try:
                await self.check_and_rebalance()
                await asyncio.sleep(interval * 60)
            except Exception as e:
                logger.error("Error in keeper loop: %s", e)
                await asyncio.sleep(60)
