"""Loan originator: validates a borrow request and opens a position."""
from __future__ import annotations

import asyncio
import logging
import math
import uuid
from datetime import datetime, timedelta, timezone

from ..config import PoolConfig
from ..errors import (
    CollaboratorUnavailable,
    ConflictError,
    LimitExceeded,
    ValidationError,
)
from ..interfaces.collateral_store import CollateralStore
from ..models import (
    BorrowPosition,
    CollateralAsset,
    LoanQuote,
    PositionStatus,
    TokenizationStatus,
)
from ..risk import RiskParameters
from .ledger import PositionLedger, call_with_timeout

logger = logging.getLogger(__name__)


def _validate_amount(amount: float) -> None:
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise ValidationError("Borrow amount must be a number")
    if not math.isfinite(amount) or amount <= 0:
        raise ValidationError("Borrow amount must be a positive number")


class LoanOriginator:
    """Applies the risk table to a borrow request and records the position.

    The collateral flag is claimed before the position is written. If the
    write fails the position is deleted by its pre-assigned id and only then
    is the claim released; when the delete fails too the flag stays set.
    """

    def __init__(
        self,
        risk: RiskParameters,
        collateral_store: CollateralStore,
        ledger: PositionLedger,
        pools: tuple[PoolConfig, ...] = (),
        timeout: float = 10.0,
    ) -> None:
        self._risk = risk
        self._collateral = collateral_store
        self._ledger = ledger
        self._pool_ids = {p.pool_id for p in pools}
        self._timeout = timeout
        self._asset_locks: dict[str, asyncio.Lock] = {}

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def quote(self, asset: CollateralAsset, requested_amount: float) -> LoanQuote:
        """Loan analysis for ``requested_amount`` against ``asset``.

        Raises:
            ValidationError: non-positive amount or asset value.
            LimitExceeded: requested LTV above the asset class maximum.
        """
        _validate_amount(requested_amount)
        if not asset.value_usd or asset.value_usd <= 0:
            raise ValidationError(f"Asset {asset.id} has no positive value")

        max_ltv = self._risk.max_ltv(asset.asset_class)
        max_borrowable = asset.value_usd * max_ltv
        requested_ltv = requested_amount / asset.value_usd

        if requested_ltv > max_ltv:
            raise LimitExceeded(max_borrowable, max_ltv, requested_ltv)

        tier = self._risk.risk_tier(requested_ltv)
        return LoanQuote(
            asset=asset,
            requested_amount=float(requested_amount),
            max_ltv=max_ltv,
            max_borrowable=max_borrowable,
            requested_ltv=requested_ltv,
            risk_tier=tier,
            interest_rate=self._risk.interest_rate(tier),
            liquidation_threshold=self._risk.liquidation_threshold(max_ltv),
        )

    # ------------------------------------------------------------------
    # Origination
    # ------------------------------------------------------------------

    def _validate_request(
        self,
        asset: CollateralAsset,
        pool_id: str,
        term_days: int,
        borrower_id: str,
    ) -> None:
        if not asset.id:
            raise ValidationError("Asset id is required")
        if not borrower_id:
            raise ValidationError("Borrower id is required")
        if borrower_id != asset.owner_id:
            raise ValidationError(f"Asset {asset.id} is not owned by {borrower_id}")
        if not pool_id:
            raise ValidationError("Pool id is required")
        if self._pool_ids and pool_id not in self._pool_ids:
            raise ValidationError(f"Unknown pool '{pool_id}'")
        if isinstance(term_days, bool) or not isinstance(term_days, int) or term_days <= 0:
            raise ValidationError("Loan term must be a positive number of days")
        if asset.tokenization_status is not TokenizationStatus.TOKENIZED:
            raise ValidationError(
                f"Asset {asset.id} is not tokenized "
                f"(status: {asset.tokenization_status.value})"
            )

    async def originate(
        self,
        asset: CollateralAsset,
        requested_amount: float,
        pool_id: str,
        term_days: int,
        borrower_id: str | None = None,
        transaction_ref: str = "",
        now: datetime | None = None,
    ) -> BorrowPosition:
        """Open an active position against ``asset``.

        Raises:
            ValidationError: malformed request; nothing written.
            LimitExceeded: requested LTV above the class maximum.
            ConflictError: asset already backs an active position.
            CollaboratorUnavailable: a store write failed; the claim is
                released once the position is known to be gone.
        """
        _validate_amount(requested_amount)
        borrower_id = asset.owner_id if borrower_id is None else borrower_id
        self._validate_request(asset, pool_id, term_days, borrower_id)
        if asset.is_collateralized:
            raise ConflictError(f"Asset {asset.id} is already collateralized")

        quote = self.quote(asset, requested_amount)
        logger.info(
            "Loan analysis for %s: LTV %.2f%% (max %.2f%%), tier %s, rate %.2f%%",
            asset.id,
            quote.requested_ltv * 100,
            quote.max_ltv * 100,
            quote.risk_tier.value,
            quote.interest_rate * 100,
        )

        lock = self._asset_locks.setdefault(asset.id, asyncio.Lock())
        if lock.locked():
            raise ConflictError(f"Asset {asset.id} is already collateralized")

        try:
            async with lock:
                return await self._claim_and_create(
                    asset, quote, pool_id, term_days, borrower_id, transaction_ref, now
                )
        finally:
            if not lock.locked() and self._asset_locks.get(asset.id) is lock:
                del self._asset_locks[asset.id]

    async def _claim_and_create(
        self,
        asset: CollateralAsset,
        quote: LoanQuote,
        pool_id: str,
        term_days: int,
        borrower_id: str,
        transaction_ref: str,
        now: datetime | None,
    ) -> BorrowPosition:
        claimed = await call_with_timeout(
            self._collateral.claim(asset.id), self._timeout, "Collateral claim"
        )
        if not claimed:
            raise ConflictError(f"Asset {asset.id} is already collateralized")

        start = now or datetime.now(timezone.utc)
        position = BorrowPosition(
            id=str(uuid.uuid4()),
            borrower_id=borrower_id,
            asset_id=asset.id,
            pool_id=pool_id,
            collateral_value_usd=asset.value_usd,
            borrowed_amount_usd=quote.requested_amount,
            interest_rate=quote.interest_rate,
            loan_to_value_ratio=quote.requested_ltv,
            liquidation_threshold=quote.liquidation_threshold,
            status=PositionStatus.ACTIVE,
            start_date=start,
            maturity_date=start + timedelta(days=term_days),
            total_interest_accrued=0.0,
            transaction_ref=transaction_ref,
            asset_class=asset.asset_class,
        )

        try:
            return await self._ledger.create(position)
        except Exception as e:
            logger.error("Position create failed for asset %s: %s", asset.id, e)
            # A timed-out write may still have landed
            if await self._discard(position.id):
                await self._release_claim(asset.id)
            if isinstance(e, CollaboratorUnavailable):
                raise
            raise CollaboratorUnavailable(f"Position create failed: {e}") from e

    async def _discard(self, position_id: str) -> bool:
        try:
            await self._ledger.delete(position_id)
        except Exception as e:
            logger.error(
                "Could not discard position %s, keeping collateral flag: %s",
                position_id, e,
            )
            return False
        return True

    async def _release_claim(self, asset_id: str) -> None:
        try:
            await call_with_timeout(
                self._collateral.set_collateral_flag(asset_id, False),
                self._timeout,
                "Collateral release",
            )
        except CollaboratorUnavailable as e:
            logger.error(
                "Could not release collateral flag on %s after failed create: %s",
                asset_id, e,
            )
