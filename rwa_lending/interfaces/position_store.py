"""Position store protocol: persistence of borrowing positions."""
from __future__ import annotations

from datetime import datetime
from typing import Protocol

from ..models import BorrowPosition, PositionStatus


class PositionStore(Protocol):
    """Create, read and update BorrowPosition records.

    Implementations raise ``CollaboratorUnavailable`` when the backing
    store cannot be reached.
    """

    async def create(self, position: BorrowPosition) -> BorrowPosition: ...

    async def get(self, position_id: str) -> BorrowPosition | None: ...

    async def list_by_borrower(
        self, borrower_id: str, status: PositionStatus | None = None
    ) -> list[BorrowPosition]: ...

    async def update_status(
        self,
        position_id: str,
        status: PositionStatus,
        final_amount: float | None = None,
        payment_date: datetime | None = None,
    ) -> None: ...

    async def delete(self, position_id: str) -> None: ...
