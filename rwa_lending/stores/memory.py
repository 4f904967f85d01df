"""In-memory position and collateral store."""
from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import replace
from datetime import datetime

from ..errors import CollaboratorUnavailable
from ..models import BorrowPosition, CollateralAsset, PositionStatus

logger = logging.getLogger(__name__)


class InMemoryStore:
    """Implements both PositionStore and CollateralStore over dicts.

    All mutations go through one asyncio lock so ``claim`` behaves as a
    conditional write.
    """

    def __init__(
        self,
        assets: list[CollateralAsset] | None = None,
        positions: list[BorrowPosition] | None = None,
    ) -> None:
        self._assets: dict[str, CollateralAsset] = {a.id: a for a in assets or []}
        self._positions: dict[str, BorrowPosition] = {
            p.id: p for p in positions or []
        }
        self._lock = asyncio.Lock()

    async def open(self) -> None:
        """No-op; present for parity with persistent stores."""

    async def close(self) -> None:
        """No-op; present for parity with persistent stores."""

    async def _persist(self) -> None:
        """Hook for subclasses that write through to disk."""

    # ------------------------------------------------------------------
    # CollateralStore
    # ------------------------------------------------------------------

    async def add(self, asset: CollateralAsset) -> CollateralAsset:
        async with self._lock:
            if not asset.id:
                asset = replace(asset, id=str(uuid.uuid4()))
            self._assets[asset.id] = asset
            await self._persist()
        return asset

    async def get_asset(self, asset_id: str) -> CollateralAsset | None:
        return self._assets.get(asset_id)

    async def list_by_owner(self, owner_id: str) -> list[CollateralAsset]:
        return [a for a in self._assets.values() if a.owner_id == owner_id]

    async def claim(self, asset_id: str) -> bool:
        async with self._lock:
            asset = self._assets.get(asset_id)
            if asset is None:
                raise CollaboratorUnavailable(f"Unknown asset {asset_id}")
            if asset.is_collateralized:
                return False
            self._assets[asset_id] = replace(asset, is_collateralized=True)
            await self._persist()
            return True

    async def set_collateral_flag(self, asset_id: str, flag: bool) -> None:
        async with self._lock:
            asset = self._assets.get(asset_id)
            if asset is None:
                logger.warning("Collateral flag update for unknown asset %s", asset_id)
                return
            self._assets[asset_id] = replace(asset, is_collateralized=flag)
            await self._persist()

    # ------------------------------------------------------------------
    # PositionStore
    # ------------------------------------------------------------------

    async def create(self, position: BorrowPosition) -> BorrowPosition:
        async with self._lock:
            if not position.id:
                position = replace(position, id=str(uuid.uuid4()))
            self._positions[position.id] = position
            await self._persist()
        return position

    async def get(self, position_id: str) -> BorrowPosition | None:
        return self._positions.get(position_id)

    async def list_by_borrower(
        self, borrower_id: str, status: PositionStatus | None = None
    ) -> list[BorrowPosition]:
        positions = [
            p
            for p in self._positions.values()
            if p.borrower_id == borrower_id and (status is None or p.status is status)
        ]
        return sorted(positions, key=lambda p: p.start_date, reverse=True)

    async def update_status(
        self,
        position_id: str,
        status: PositionStatus,
        final_amount: float | None = None,
        payment_date: datetime | None = None,
    ) -> None:
        async with self._lock:
            position = self._positions.get(position_id)
            if position is None:
                raise CollaboratorUnavailable(f"Unknown position {position_id}")
            changes: dict = {"status": status}
            if final_amount is not None:
                changes["repaid_amount_usd"] = final_amount
            if payment_date is not None:
                changes["last_payment_date"] = payment_date
            self._positions[position_id] = replace(position, **changes)
            await self._persist()

    async def delete(self, position_id: str) -> None:
        async with self._lock:
            self._positions.pop(position_id, None)
            await self._persist()
