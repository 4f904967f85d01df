"""Interest accrual: pure functions, no I/O.

Simple (non-compounding) daily interest on a 365-day year. Accrued interest
is derived on every query and never stored as a running balance.
"""
from __future__ import annotations

import math
from datetime import datetime, timezone

from .models import BorrowPosition, PositionStatus

SECONDS_PER_DAY = 86_400
DAYS_PER_YEAR = 365


def _aware(ts: datetime) -> datetime:
    """Treat naive timestamps as UTC."""
    return ts if ts.tzinfo is not None else ts.replace(tzinfo=timezone.utc)


def days_elapsed(start: datetime, as_of: datetime) -> int:
    """Whole days between ``start`` and ``as_of``, never negative."""
    seconds = (_aware(as_of) - _aware(start)).total_seconds()
    return max(math.floor(seconds / SECONDS_PER_DAY), 0)


def accrual_end(position: BorrowPosition, as_of: datetime) -> datetime:
    """Accrual stops at the payment date once a position is repaid."""
    if position.status is PositionStatus.REPAID and position.last_payment_date:
        return min(_aware(as_of), _aware(position.last_payment_date))
    return as_of


def accrued_interest(position: BorrowPosition, as_of: datetime | None = None) -> float:
    """Interest owed on ``position`` as of ``as_of`` (default: now)."""
    if as_of is None:
        as_of = datetime.now(timezone.utc)
    days = days_elapsed(position.start_date, accrual_end(position, as_of))
    return position.borrowed_amount_usd * position.interest_rate * days / DAYS_PER_YEAR


def total_owed(position: BorrowPosition, as_of: datetime | None = None) -> float:
    return position.borrowed_amount_usd + accrued_interest(position, as_of)
