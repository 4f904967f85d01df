"""Portfolio aggregation over a wallet's borrowing positions."""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime, timezone

from .interest import accrued_interest
from .liquidation import classify_position
from .models import (
    AssetClass,
    BorrowPosition,
    HealthStatus,
    PortfolioSummary,
    PositionStatus,
    ReadResult,
)


def calc_blended_ltv(total_borrowed: float, total_collateral: float) -> float:
    """Borrowed over collateral as a fraction; 0.0 with no collateral."""
    if total_collateral <= 0:
        return 0.0
    return total_borrowed / total_collateral


def summarize(
    positions: Iterable[BorrowPosition],
    as_of: datetime | None = None,
) -> PortfolioSummary:
    """Roll positions up into totals and risk-bucket counts.

    Money totals, blended LTV and buckets only count active positions, so a
    repaid position never moves them again.
    """
    if as_of is None:
        as_of = datetime.now(timezone.utc)

    positions = list(positions)
    active = [p for p in positions if p.is_active]
    repaid = [p for p in positions if p.status is PositionStatus.REPAID]

    total_borrowed = sum(p.borrowed_amount_usd for p in active)
    total_collateral = sum(p.collateral_value_usd for p in active)
    total_interest = sum(accrued_interest(p, as_of) for p in active)

    weighted_rate = 0.0
    if total_borrowed > 0:
        weighted_rate = (
            sum(p.interest_rate * p.borrowed_amount_usd for p in active)
            / total_borrowed
        )

    buckets = {status: 0 for status in HealthStatus}
    by_class: dict[AssetClass, tuple[int, float]] = {}
    for p in active:
        buckets[classify_position(p)] += 1
        count, value = by_class.get(p.asset_class, (0, 0.0))
        by_class[p.asset_class] = (count + 1, value + p.collateral_value_usd)

    return PortfolioSummary(
        total_borrowed=total_borrowed,
        total_collateral=total_collateral,
        blended_ltv=calc_blended_ltv(total_borrowed, total_collateral),
        by_risk_bucket=buckets,
        total_positions=len(positions),
        active_positions=len(active),
        repaid_positions=len(repaid),
        weighted_interest_rate=weighted_rate,
        total_interest_accrued=total_interest,
        collateral_by_class=by_class,
    )


def summarize_result(
    result: ReadResult[BorrowPosition], as_of: datetime | None = None
) -> PortfolioSummary:
    """Like :func:`summarize`, carrying the degraded flag of the read."""
    summary = summarize(result.items, as_of)
    if not result.degraded:
        return summary
    return replace(summary, degraded=True, warning=result.warning)
