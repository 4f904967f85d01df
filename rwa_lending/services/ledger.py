"""Position ledger: timeouts and degraded reads over a PositionStore."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from datetime import datetime
from typing import TypeVar

from ..errors import CollaboratorUnavailable
from ..interfaces.position_store import PositionStore
from ..models import BorrowPosition, PositionStatus, ReadResult

logger = logging.getLogger(__name__)

R = TypeVar("R")


async def call_with_timeout(call: Awaitable[R], timeout: float, what: str) -> R:
    """Await a collaborator call, mapping timeouts and I/O errors to
    CollaboratorUnavailable."""
    try:
        return await asyncio.wait_for(call, timeout)
    except asyncio.TimeoutError as e:
        raise CollaboratorUnavailable(f"{what} timed out after {timeout:g}s") from e
    except OSError as e:
        raise CollaboratorUnavailable(f"{what} failed: {e}") from e


class PositionLedger:
    """Reads degrade to an empty, flagged result; writes raise."""

    def __init__(self, store: PositionStore, timeout: float = 10.0) -> None:
        self._store = store
        self._timeout = timeout

    async def list_by_borrower(
        self, borrower_id: str, status: PositionStatus | None = None
    ) -> ReadResult[BorrowPosition]:
        try:
            positions = await call_with_timeout(
                self._store.list_by_borrower(borrower_id, status),
                self._timeout,
                "Position store",
            )
        except CollaboratorUnavailable as e:
            logger.warning("Position store unavailable for %s: %s", borrower_id, e)
            return ReadResult.unavailable(f"Position store unavailable: {e}")
        return ReadResult(items=tuple(positions))

    async def list_active(self, borrower_id: str) -> ReadResult[BorrowPosition]:
        return await self.list_by_borrower(borrower_id, PositionStatus.ACTIVE)

    async def get(self, position_id: str) -> BorrowPosition | None:
        return await call_with_timeout(
            self._store.get(position_id), self._timeout, "Position lookup"
        )

    async def create(self, position: BorrowPosition) -> BorrowPosition:
        created = await call_with_timeout(
            self._store.create(position), self._timeout, "Position create"
        )
        logger.info(
            "Position %s created for %s: $%.2f against asset %s",
            created.id, created.borrower_id, created.borrowed_amount_usd, created.asset_id,
        )
        return created

    async def update_status(
        self,
        position_id: str,
        status: PositionStatus,
        final_amount: float | None = None,
        payment_date: datetime | None = None,
    ) -> None:
        await call_with_timeout(
            self._store.update_status(position_id, status, final_amount, payment_date),
            self._timeout,
            "Position status update",
        )
        logger.info("Position %s marked %s", position_id, status.value)

    async def delete(self, position_id: str) -> None:
        await call_with_timeout(
            self._store.delete(position_id), self._timeout, "Position delete"
        )
