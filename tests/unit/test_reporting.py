"""Unit tests for CLI text rendering."""
from __future__ import annotations

from rwa_lending import reporting
from rwa_lending.liquidation import assess
from rwa_lending.models import PositionStatus, RepaymentReceipt
from rwa_lending.portfolio import summarize
from rwa_lending.risk import RiskParameters
from rwa_lending.services.ledger import PositionLedger
from rwa_lending.services.originator import LoanOriginator
from rwa_lending.stores import InMemoryStore


class TestFormatting:
    def test_usd_and_pct(self) -> None:
        assert reporting.usd(1234567.891) == "$1,234,567.89"
        assert reporting.pct(0.6552) == "65.52%"

    def test_quote(self, cre_asset) -> None:
        store = InMemoryStore()
        originator = LoanOriginator(RiskParameters(), store, PositionLedger(store))
        text = reporting.format_quote(originator.quote(cre_asset, 350_000))
        assert "Loan-to-Value: 70.00%" in text
        assert "MEDIUM_RISK" in text
        assert "Interest Rate: 8.50% APR" in text

    def test_position_shows_accrual(self, sample_position, now) -> None:
        text = reporting.format_position(sample_position, now)
        assert "Accrued Interest: $15,719.18" in text
        assert "🟡 WARNING" in text

    def test_repaid_position(self, position_factory, now) -> None:
        paid = position_factory(
            status=PositionStatus.REPAID, repaid_amount_usd=765_719.18, last_payment_date=now
        )
        text = reporting.format_position(paid, now)
        assert "Repaid: $765,719.18 on 2025-06-01" in text
        assert "Health" not in text

    def test_receipt(self, sample_position) -> None:
        text = reporting.format_receipt(
            RepaymentReceipt(sample_position, 750_000, 15_719.18, 765_719.18, already_repaid=True)
        )
        assert "already repaid" in text
        assert "$765,719.18" in text

    def test_flagged(self, position_factory) -> None:
        assert "All positions are healthy" in reporting.format_flagged([])
        text = reporting.format_flagged([assess(position_factory(loan_to_value_ratio=0.72))])
        assert "🟠 AT RISK" in text
        assert "Buffer Remaining: 3.00%" in text

    def test_summary(self, sample_position, now) -> None:
        text = reporting.format_summary(summarize([sample_position], now))
        assert "Total Borrowed: $750,000.00" in text
        assert "Commercial Real Estate: 1 positions" in text

    def test_empty_summary(self) -> None:
        assert reporting.format_summary(summarize([])) == "No borrowing positions found."

    def test_degraded_banner(self) -> None:
        assert "db down" in reporting.degraded_banner("db down")
