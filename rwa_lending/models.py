"""Data models: enums and frozen (immutable) records."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class AssetClass(Enum):
    COMMERCIAL_REAL_ESTATE = "Commercial Real Estate"
    RESIDENTIAL_REAL_ESTATE = "Residential Real Estate"
    TRADE_FINANCE = "Trade Finance"
    INVOICE_FINANCING = "Invoice Financing"
    EQUIPMENT_FINANCING = "Equipment Financing"
    SUPPLY_CHAIN_FINANCE = "Supply Chain Finance"
    RECEIVABLES = "Receivables"
    OTHER = "Other"

    @classmethod
    def parse(cls, label: str | AssetClass | None) -> AssetClass:
        """Map a free-form label to an asset class, falling back to OTHER.

        Accepts the display value ("Trade Finance") or the member name
        ("TRADE_FINANCE"), case and whitespace insensitive.
        """
        if isinstance(label, AssetClass):
            return label
        if not label:
            return cls.OTHER
        key = " ".join(str(label).replace("_", " ").split()).lower()
        for member in cls:
            if key in (member.value.lower(), member.name.replace("_", " ").lower()):
                return member
        return cls.OTHER


class TokenizationStatus(Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    TOKENIZED = "tokenized"
    FAILED = "failed"


class PositionStatus(Enum):
    ACTIVE = "active"
    REPAID = "repaid"
    LIQUIDATED = "liquidated"
    DEFAULTED = "defaulted"


class RiskTier(Enum):
    LOW = "low_risk"
    MEDIUM = "medium_risk"
    HIGH = "high_risk"


class HealthStatus(Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    AT_RISK = "at_risk"
    CRITICAL = "critical"


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CollateralAsset:
    """Tokenized real-world asset that can back a borrowing position."""

    id: str
    owner_id: str
    name: str
    asset_class: AssetClass
    value_usd: float
    tokenization_status: TokenizationStatus
    is_collateralized: bool = False
    token_address: str = ""


@dataclass(frozen=True)
class BorrowPosition:
    """One loan drawn against a single collateral asset."""

    id: str
    borrower_id: str
    asset_id: str
    pool_id: str
    collateral_value_usd: float
    borrowed_amount_usd: float
    interest_rate: float
    loan_to_value_ratio: float
    liquidation_threshold: float
    status: PositionStatus
    start_date: datetime
    maturity_date: datetime
    last_payment_date: datetime | None = None
    total_interest_accrued: float = 0.0
    transaction_ref: str = ""
    asset_class: AssetClass = AssetClass.OTHER
    repaid_amount_usd: float | None = None

    @property
    def is_active(self) -> bool:
        return self.status is PositionStatus.ACTIVE


@dataclass(frozen=True)
class ReadResult(Generic[T]):
    """Result of a read against an external store.

    ``degraded`` is set when the store could not be reached and ``items``
    is empty or partial; ``warning`` says why.
    """

    items: tuple[T, ...] = ()
    degraded: bool = False
    warning: str = ""

    @classmethod
    def unavailable(cls, warning: str) -> ReadResult[T]:
        return cls(items=(), degraded=True, warning=warning)


@dataclass(frozen=True)
class LoanQuote:
    """Loan analysis for a requested amount against one asset."""

    asset: CollateralAsset
    requested_amount: float
    max_ltv: float
    max_borrowable: float
    requested_ltv: float
    risk_tier: RiskTier
    interest_rate: float
    liquidation_threshold: float


@dataclass(frozen=True)
class RepaymentReceipt:
    position: BorrowPosition
    principal: float
    interest: float
    total: float
    already_repaid: bool = False


@dataclass(frozen=True)
class PositionHealth:
    position: BorrowPosition
    status: HealthStatus
    current_ltv: float
    buffer_remaining: float


@dataclass(frozen=True)
class PortfolioSummary:
    """Roll-up of a wallet's borrowing positions."""

    total_borrowed: float
    total_collateral: float
    blended_ltv: float
    by_risk_bucket: dict[HealthStatus, int]
    total_positions: int = 0
    active_positions: int = 0
    repaid_positions: int = 0
    weighted_interest_rate: float = 0.0
    total_interest_accrued: float = 0.0
    collateral_by_class: dict[AssetClass, tuple[int, float]] = field(
        default_factory=dict
    )
    degraded: bool = False
    warning: str = ""

    @property
    def needs_attention(self) -> bool:
        return bool(
            self.by_risk_bucket.get(HealthStatus.AT_RISK, 0)
            or self.by_risk_bucket.get(HealthStatus.CRITICAL, 0)
        )
