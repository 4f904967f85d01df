"""Risk parameter table: LTV ceilings, tier pricing, liquidation buffer."""
from __future__ import annotations

from dataclasses import dataclass, field

from .models import AssetClass, RiskTier

# Maximum LTV ratios by asset class (conservative for production)
DEFAULT_MAX_LTV: dict[AssetClass, float] = {
    AssetClass.COMMERCIAL_REAL_ESTATE: 0.70,
    AssetClass.RESIDENTIAL_REAL_ESTATE: 0.75,
    AssetClass.TRADE_FINANCE: 0.80,
    AssetClass.INVOICE_FINANCING: 0.85,
    AssetClass.EQUIPMENT_FINANCING: 0.60,
    AssetClass.SUPPLY_CHAIN_FINANCE: 0.75,
    AssetClass.RECEIVABLES: 0.80,
    AssetClass.OTHER: 0.50,
}

# Annualized rates by risk tier
DEFAULT_INTEREST_RATES: dict[RiskTier, float] = {
    RiskTier.LOW: 0.055,
    RiskTier.MEDIUM: 0.085,
    RiskTier.HIGH: 0.125,
}

# Upper (inclusive) requested-LTV bound for each tier; above MEDIUM is HIGH.
DEFAULT_TIER_LIMITS: dict[RiskTier, float] = {
    RiskTier.LOW: 0.60,
    RiskTier.MEDIUM: 0.75,
}


@dataclass(frozen=True)
class RiskParameters:
    """Immutable lookup table. Unknown inputs fall back to conservative values."""

    max_ltv_by_class: dict[AssetClass, float] = field(
        default_factory=lambda: dict(DEFAULT_MAX_LTV)
    )
    interest_rates: dict[RiskTier, float] = field(
        default_factory=lambda: dict(DEFAULT_INTEREST_RATES)
    )
    tier_limits: dict[RiskTier, float] = field(
        default_factory=lambda: dict(DEFAULT_TIER_LIMITS)
    )
    liquidation_buffer: float = 0.05
    default_max_ltv: float = 0.50

    def max_ltv(self, asset_class: AssetClass | str | None) -> float:
        """Maximum LTV for an asset class (or class label)."""
        if not isinstance(asset_class, AssetClass):
            parsed = AssetClass.parse(asset_class)
            # Unrecognised labels get the default, not the OTHER entry
            if parsed is AssetClass.OTHER and str(asset_class or "").strip().lower() != "other":
                return self.default_max_ltv
            asset_class = parsed
        return self.max_ltv_by_class.get(asset_class, self.default_max_ltv)

    def interest_rate(self, tier: RiskTier) -> float:
        return self.interest_rates.get(tier, self.interest_rates[RiskTier.HIGH])

    def liquidation_threshold(self, max_ltv: float) -> float:
        return max_ltv + self.liquidation_buffer

    def risk_tier(self, requested_ltv: float) -> RiskTier:
        """Tier from requested LTV alone, independent of asset class."""
        if requested_ltv <= self.tier_limits[RiskTier.LOW]:
            return RiskTier.LOW
        if requested_ltv <= self.tier_limits[RiskTier.MEDIUM]:
            return RiskTier.MEDIUM
        return RiskTier.HIGH
