"""Unit tests for the risk parameter table."""
from __future__ import annotations

import pytest

from rwa_lending.models import AssetClass, RiskTier
from rwa_lending.risk import DEFAULT_MAX_LTV, RiskParameters


class TestMaxLtv:
    @pytest.mark.parametrize("asset_class, expected", list(DEFAULT_MAX_LTV.items()))
    def test_default_table(
        self, risk_params: RiskParameters, asset_class: AssetClass, expected: float
    ) -> None:
        assert risk_params.max_ltv(asset_class) == expected

    def test_label_lookup(self, risk_params: RiskParameters) -> None:
        assert risk_params.max_ltv("Invoice Financing") == 0.85

    def test_unknown_label_uses_default(self) -> None:
        params = RiskParameters(default_max_ltv=0.40)
        assert params.max_ltv("Vintage Cars") == 0.40
        assert params.max_ltv(None) == 0.40

    def test_other_label_uses_other_entry(self) -> None:
        params = RiskParameters(
            max_ltv_by_class={AssetClass.OTHER: 0.45}, default_max_ltv=0.30
        )
        assert params.max_ltv("Other") == 0.45

    def test_class_missing_from_table_uses_default(self) -> None:
        params = RiskParameters(max_ltv_by_class={}, default_max_ltv=0.50)
        assert params.max_ltv(AssetClass.TRADE_FINANCE) == 0.50


class TestRiskTier:
    @pytest.mark.parametrize(
        "ltv, tier",
        [
            (0.10, RiskTier.LOW),
            (0.60, RiskTier.LOW),
            (0.61, RiskTier.MEDIUM),
            (0.70, RiskTier.MEDIUM),
            (0.75, RiskTier.MEDIUM),
            (0.76, RiskTier.HIGH),
            (0.85, RiskTier.HIGH),
        ],
    )
    def test_boundaries_are_inclusive(
        self, risk_params: RiskParameters, ltv: float, tier: RiskTier
    ) -> None:
        assert risk_params.risk_tier(ltv) is tier

    def test_interest_rates(self, risk_params: RiskParameters) -> None:
        assert risk_params.interest_rate(RiskTier.LOW) == 0.055
        assert risk_params.interest_rate(RiskTier.MEDIUM) == 0.085
        assert risk_params.interest_rate(RiskTier.HIGH) == 0.125

    def test_missing_rate_uses_high(self) -> None:
        params = RiskParameters(interest_rates={RiskTier.HIGH: 0.2})
        assert params.interest_rate(RiskTier.LOW) == 0.2


class TestLiquidationThreshold:
    def test_adds_buffer(self, risk_params: RiskParameters) -> None:
        assert risk_params.liquidation_threshold(0.70) == pytest.approx(0.75)

    def test_custom_buffer(self) -> None:
        assert RiskParameters(liquidation_buffer=0.10).liquidation_threshold(
            0.60
        ) == pytest.approx(0.70)
