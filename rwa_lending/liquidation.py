"""Liquidation-risk classification: pure functions, no I/O.

The ongoing LTV of a position is its origination LTV; collateral is not
re-valued against a live market price here.
"""
from __future__ import annotations

from collections.abc import Iterable

from .models import BorrowPosition, HealthStatus, PositionHealth

WARNING_RATIO = 0.80
AT_RISK_RATIO = 0.95

ATTENTION_STATUSES = frozenset(
    {HealthStatus.WARNING, HealthStatus.AT_RISK, HealthStatus.CRITICAL}
)

STATUS_LABELS: dict[HealthStatus, str] = {
    HealthStatus.HEALTHY: "🟢 Healthy",
    HealthStatus.WARNING: "🟡 WARNING",
    HealthStatus.AT_RISK: "🟠 AT RISK",
    HealthStatus.CRITICAL: "🔴 CRITICAL",
}


def classify(current_ltv: float, liquidation_threshold: float) -> HealthStatus:
    """Bucket an LTV against its liquidation threshold."""
    if current_ltv >= liquidation_threshold:
        return HealthStatus.CRITICAL
    if current_ltv >= liquidation_threshold * AT_RISK_RATIO:
        return HealthStatus.AT_RISK
    if current_ltv >= liquidation_threshold * WARNING_RATIO:
        return HealthStatus.WARNING
    return HealthStatus.HEALTHY


def classify_position(position: BorrowPosition) -> HealthStatus:
    return classify(position.loan_to_value_ratio, position.liquidation_threshold)


def assess(position: BorrowPosition) -> PositionHealth:
    return PositionHealth(
        position=position,
        status=classify_position(position),
        current_ltv=position.loan_to_value_ratio,
        buffer_remaining=position.liquidation_threshold - position.loan_to_value_ratio,
    )


def scan_portfolio(positions: Iterable[BorrowPosition]) -> list[PositionHealth]:
    """Active positions needing attention (warning, at risk or critical)."""
    flagged: list[PositionHealth] = []
    for position in positions:
        if not position.is_active:
            continue
        health = assess(position)
        if health.status in ATTENTION_STATUSES:
            flagged.append(health)
    return flagged
