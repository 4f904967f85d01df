"""Repayment flow: closes a position and releases its collateral."""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from ..errors import PositionNotFound, ValidationError
from ..interest import accrued_interest
from ..interfaces.collateral_store import CollateralStore
from ..models import PositionStatus, RepaymentReceipt
from .ledger import PositionLedger, call_with_timeout

logger = logging.getLogger(__name__)


class RepaymentService:
    """Repay principal plus accrued interest in full."""

    def __init__(
        self,
        ledger: PositionLedger,
        collateral_store: CollateralStore,
        timeout: float = 10.0,
    ) -> None:
        self._ledger = ledger
        self._collateral = collateral_store
        self._timeout = timeout

    async def repay(
        self,
        position_id: str,
        borrower_id: str,
        as_of: datetime | None = None,
    ) -> RepaymentReceipt:
        """Mark a position repaid and clear its asset's collateral flag.

        Repaying an already-repaid position changes nothing. The flag release
        is re-issued so an interrupted repayment can finish, but only while no
        active position of the borrower is backed by the same asset.
        """
        if not position_id:
            raise ValidationError("Position id is required")

        position = await self._ledger.get(position_id)
        if position is None or position.borrower_id != borrower_id:
            raise PositionNotFound(f"Position {position_id} not found for {borrower_id}")

        if position.status is PositionStatus.REPAID:
            logger.info("Position %s already repaid", position_id)
            if await self._asset_free(borrower_id, position.asset_id):
                await self._release(position.asset_id)
            total = position.repaid_amount_usd
            if total is None:
                total = position.borrowed_amount_usd + accrued_interest(position, as_of)
            return RepaymentReceipt(
                position=position,
                principal=position.borrowed_amount_usd,
                interest=total - position.borrowed_amount_usd,
                total=total,
                already_repaid=True,
            )

        if not position.is_active:
            raise ValidationError(
                f"Position {position_id} is {position.status.value} and cannot be repaid"
            )

        paid_at = as_of or datetime.now(timezone.utc)
        interest = accrued_interest(position, paid_at)
        total = position.borrowed_amount_usd + interest

        await self._ledger.update_status(
            position_id, PositionStatus.REPAID, final_amount=total, payment_date=paid_at
        )
        await self._release(position.asset_id)

        logger.info(
            "Position %s repaid: principal $%.2f + interest $%.2f = $%.2f",
            position_id, position.borrowed_amount_usd, interest, total,
        )
        repaid = await self._ledger.get(position_id)
        return RepaymentReceipt(
            position=repaid or position,
            principal=position.borrowed_amount_usd,
            interest=interest,
            total=total,
        )

    async def _asset_free(self, borrower_id: str, asset_id: str) -> bool:
        """True when no active position of the borrower uses the asset."""
        active = await self._ledger.list_active(borrower_id)
        if active.degraded:
            logger.warning(
                "Skipping collateral release for %s: %s", asset_id, active.warning
            )
            return False
        return all(p.asset_id != asset_id for p in active.items)

    async def _release(self, asset_id: str) -> None:
        if not asset_id:
            return
        await call_with_timeout(
            self._collateral.set_collateral_flag(asset_id, False),
            self._timeout,
            "Collateral release",
        )
