"""Liquidation-risk monitoring: scans wallets and dispatches alerts."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from ..config import WalletConfig
from ..interfaces.notifier import Notifier
from ..liquidation import STATUS_LABELS, scan_portfolio
from ..models import HealthStatus, PositionHealth
from .ledger import PositionLedger

logger = logging.getLogger(__name__)

class LiquidationMonitor:
    """Classifies active positions and alerts on those needing attention.

    Only reports; margin calls and forced liquidation happen elsewhere.
    """

    def __init__(
        self,
        ledger: PositionLedger,
        notifiers: list[Notifier] | None = None,
        wallets: tuple[WalletConfig, ...] = (),
        check_interval_minutes: int = 15,
    ) -> None:
        self._ledger = ledger
        self._notifiers: list[Notifier] = list(notifiers or [])
        self._wallets = wallets
        self._check_interval_minutes = check_interval_minutes

    # ------------------------------------------------------------------
    # Formatting helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _format_wallet(address: str) -> str:
        if len(address) > 16:
            return f"{address[:10]}...{address[-6:]}"
        return address

    @staticmethod
    def _now_str() -> str:
        return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

    def _build_alert(self, health: PositionHealth, wallet: WalletConfig) -> str:
        position = health.position
        if health.status is HealthStatus.CRITICAL:
            action = "⚠️ Position is at or above its liquidation threshold!"
        else:
            action = "Consider repaying part of the loan or adding collateral."
        return (
            f"{STATUS_LABELS[health.status]} — LTV {health.current_ltv * 100:.2f}%\n"
            f"\n"
            f"{wallet.label or self._format_wallet(wallet.address)} · {position.pool_id}\n"
            f"\n"
            f"Position: {position.id}\n"
            f"Collateral: ${position.collateral_value_usd:,.2f}\n"
            f"Borrowed: ${position.borrowed_amount_usd:,.2f}\n"
            f"Liquidation Threshold: {position.liquidation_threshold * 100:.2f}%\n"
            f"Buffer Remaining: {health.buffer_remaining * 100:.2f}%\n"
            f"\n"
            f"{action}\n"
            f"\n"
            f"Wallet: {self._format_wallet(wallet.address)}\n"
            f"{self._now_str()} UTC"
        )

    # ------------------------------------------------------------------
    # Notification dispatch
    # ------------------------------------------------------------------

    async def _send_log(self, message: str, silent: bool = False) -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_log(message, silent=silent)
            except Exception as e:
                logger.error("Notifier send_log failed: %s", e)

    async def _send_alert(self, message: str, subject: str = "") -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_alert(message, subject=subject)
            except Exception as e:
                logger.error("Notifier send_alert failed: %s", e)

    # ------------------------------------------------------------------
    # Core workflows
    # ------------------------------------------------------------------

    async def check_and_alert(
        self, wallets: tuple[WalletConfig, ...] | None = None
    ) -> list[PositionHealth]:
        """Scan each wallet's positions and alert on warning or worse."""
        wallets = self._wallets if wallets is None else wallets
        flagged_all: list[PositionHealth] = []

        for wallet in wallets:
            result = await self._ledger.list_active(wallet.address)
            if result.degraded:
                await self._send_log(
                    f"📊 {wallet.label or wallet.address}\n"
                    f"\n"
                    f"Risk scan skipped: {result.warning}\n"
                    f"\n"
                    f"{self._now_str()} UTC"
                )
                continue

            flagged = scan_portfolio(result.items)
            logger.info(
                "Risk scan — %s: %d active, %d need attention",
                wallet.label or wallet.address, len(result.items), len(flagged),
            )

            for health in flagged:
                logger.warning(
                    "%s position %s — LTV %.2f%% vs threshold %.2f%%",
                    health.status.value.upper(),
                    health.position.id,
                    health.current_ltv * 100,
                    health.position.liquidation_threshold * 100,
                )
                message = self._build_alert(health, wallet)
                if health.status is HealthStatus.WARNING:
                    subject = "🟡 WARNING: High LTV"
                else:
                    subject = "🚨 CRITICAL: Liquidation Risk!"
                await self._send_alert(message, subject=subject)

            flagged_all.extend(flagged)

        return flagged_all

    async def run_continuous(self, check_interval_minutes: int | None = None) -> None:
        """Poll check_and_alert until cancelled."""
        interval = check_interval_minutes or self._check_interval_minutes
        logger.info(
            "Starting liquidation-risk monitoring (checking every %d minutes)", interval
        )

        while True:
            try:
                await self.check_and_alert()
                await asyncio.sleep(interval * 60)
            except Exception as e:
                logger.error("Error in monitoring loop: %s", e)
                await asyncio.sleep(60)
