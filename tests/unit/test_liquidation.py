"""Unit tests for liquidation-risk classification."""
from __future__ import annotations

import pytest

from rwa_lending.liquidation import STATUS_LABELS, assess, classify, scan_portfolio
from rwa_lending.models import HealthStatus, PositionStatus


class TestClassify:
    @pytest.mark.parametrize(
        "ltv, expected",
        [
            (0.30, HealthStatus.HEALTHY),
            (0.59, HealthStatus.HEALTHY),
            (0.61, HealthStatus.WARNING),
            (0.70, HealthStatus.WARNING),
            (0.72, HealthStatus.AT_RISK),
            (0.749, HealthStatus.AT_RISK),
            (0.75, HealthStatus.CRITICAL),
            (0.90, HealthStatus.CRITICAL),
        ],
    )
    def test_buckets_against_threshold(self, ltv: float, expected: HealthStatus) -> None:
        assert classify(ltv, 0.75) is expected

    def test_pure(self) -> None:
        assert classify(0.72, 0.75) is classify(0.72, 0.75)

    def test_every_status_has_a_label(self) -> None:
        assert set(STATUS_LABELS) == set(HealthStatus)
        assert STATUS_LABELS[HealthStatus.AT_RISK] == "🟠 AT RISK"


class TestAssess:
    def test_buffer_remaining(self, position_factory) -> None:
        health = assess(position_factory(loan_to_value_ratio=0.72))
        assert health.status is HealthStatus.AT_RISK
        assert health.current_ltv == 0.72
        assert health.buffer_remaining == pytest.approx(0.03)


class TestScanPortfolio:
    def test_only_active_non_healthy(self, position_factory) -> None:
        positions = [
            position_factory(id="healthy", loan_to_value_ratio=0.40),
            position_factory(id="warning", loan_to_value_ratio=0.65),
            position_factory(id="critical", loan_to_value_ratio=0.80),
            position_factory(
                id="repaid", loan_to_value_ratio=0.80, status=PositionStatus.REPAID
            ),
        ]
        flagged = scan_portfolio(positions)
        assert [h.position.id for h in flagged] == ["warning", "critical"]

    def test_empty(self) -> None:
        assert scan_portfolio([]) == []
