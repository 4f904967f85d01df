"""Plain-text rendering of engine results for the CLI."""
from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone

from .config import PoolConfig
from .interest import accrued_interest
from .liquidation import STATUS_LABELS, classify_position
from .models import (
    BorrowPosition,
    CollateralAsset,
    HealthStatus,
    LoanQuote,
    PortfolioSummary,
    PositionHealth,
    PositionStatus,
    RepaymentReceipt,
)

RULE = "━" * 52

POSITION_ICONS: dict[PositionStatus, str] = {
    PositionStatus.ACTIVE: "🟢",
    PositionStatus.REPAID: "✅",
    PositionStatus.LIQUIDATED: "🔴",
    PositionStatus.DEFAULTED: "❌",
}


def usd(value: float) -> str:
    return f"${value:,.2f}"


def pct(value: float) -> str:
    return f"{value * 100:.2f}%"


def _date(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d") if value else "—"


def degraded_banner(warning: str) -> str:
    return f"⚠️ Degraded result: {warning}"


def format_collateral(assets: Iterable[CollateralAsset]) -> str:
    assets = list(assets)
    if not assets:
        return "No tokenized assets available for collateral."
    lines = ["📋 Available Collateral Assets:", RULE]
    for index, asset in enumerate(assets, start=1):
        lines.append(f"{index}. {asset.name} [{asset.id}]")
        lines.append(f"   Class: {asset.asset_class.value}")
        lines.append(f"   Value: {usd(asset.value_usd)}")
        lines.append(f"   Token: {asset.token_address or 'n/a'}")
    return "\n".join(lines)


def format_quote(quote: LoanQuote) -> str:
    return "\n".join(
        [
            "📊 Loan Analysis:",
            RULE,
            f"Collateral: {quote.asset.name} ({quote.asset.asset_class.value})",
            f"Collateral Value: {usd(quote.asset.value_usd)}",
            f"Requested Borrow: {usd(quote.requested_amount)}",
            f"Loan-to-Value: {pct(quote.requested_ltv)}",
            f"Maximum LTV: {pct(quote.max_ltv)}",
            f"Maximum Borrow: {usd(quote.max_borrowable)}",
            f"Risk Profile: {quote.risk_tier.value.upper()}",
            f"Interest Rate: {pct(quote.interest_rate)} APR",
            f"Liquidation Threshold: {pct(quote.liquidation_threshold)}",
        ]
    )


def format_position(position: BorrowPosition, as_of: datetime | None = None) -> str:
    as_of = as_of or datetime.now(timezone.utc)
    interest = accrued_interest(position, as_of)
    icon = POSITION_ICONS.get(position.status, "❓")
    lines = [
        f"{icon} Position ID: {position.id}",
        f"   Status: {position.status.value.upper()}",
        f"   Asset: {position.asset_id} ({position.asset_class.value})",
        f"   Pool: {position.pool_id}",
        f"   Collateral Value: {usd(position.collateral_value_usd)}",
        f"   Borrowed: {usd(position.borrowed_amount_usd)}",
        f"   Interest Rate: {pct(position.interest_rate)} APR",
        f"   Accrued Interest: {usd(interest)}",
        f"   Total Owed: {usd(position.borrowed_amount_usd + interest)}",
        f"   LTV: {pct(position.loan_to_value_ratio)} "
        f"(liquidation at {pct(position.liquidation_threshold)})",
        f"   Start: {_date(position.start_date)} · Maturity: {_date(position.maturity_date)}",
    ]
    if position.is_active:
        lines.append(f"   Health: {STATUS_LABELS[classify_position(position)]}")
    if position.repaid_amount_usd is not None:
        lines.append(
            f"   Repaid: {usd(position.repaid_amount_usd)} on {_date(position.last_payment_date)}"
        )
    if position.transaction_ref:
        lines.append(f"   Transaction: {position.transaction_ref}")
    return "\n".join(lines)


def format_positions(positions: Iterable[BorrowPosition], as_of: datetime | None = None) -> str:
    positions = list(positions)
    if not positions:
        return "No borrowing positions found."
    return f"\n{RULE}\n".join(format_position(p, as_of) for p in positions)


def format_receipt(receipt: RepaymentReceipt) -> str:
    header = (
        "ℹ️ Position was already repaid."
        if receipt.already_repaid
        else "✅ Loan repayment completed successfully!"
    )
    return "\n".join(
        [
            header,
            RULE,
            f"Position ID: {receipt.position.id}",
            f"Principal: {usd(receipt.principal)}",
            f"Accrued Interest: {usd(receipt.interest)}",
            f"Total Repayment: {usd(receipt.total)}",
            "🔓 Collateral released and available for use.",
        ]
    )


def format_flagged(flagged: Iterable[PositionHealth]) -> str:
    flagged = list(flagged)
    if not flagged:
        return "✅ All positions are healthy - no liquidation risk detected."
    lines = ["🚨 Positions needing attention:"]
    for health in flagged:
        position = health.position
        lines.append(f"{STATUS_LABELS[health.status]} Position ID: {position.id}")
        lines.append(f"   Current LTV: {pct(health.current_ltv)}")
        lines.append(f"   Liquidation Threshold: {pct(position.liquidation_threshold)}")
        lines.append(f"   Buffer Remaining: {pct(health.buffer_remaining)}")
    return "\n".join(lines)


def format_summary(summary: PortfolioSummary) -> str:
    lines = []
    if summary.degraded:
        lines.append(degraded_banner(summary.warning))
    if summary.total_positions == 0:
        lines.append("No borrowing positions found.")
        return "\n".join(lines)

    buckets = summary.by_risk_bucket
    lines += [
        "🏦 Portfolio Overview:",
        RULE,
        f"Total Positions: {summary.total_positions} "
        f"({summary.active_positions} active, {summary.repaid_positions} repaid)",
        f"Total Borrowed: {usd(summary.total_borrowed)}",
        f"Total Collateral: {usd(summary.total_collateral)}",
        f"Overall LTV Ratio: {pct(summary.blended_ltv)}",
        f"Weighted Avg Interest: {pct(summary.weighted_interest_rate)} APR",
        f"Total Interest Accrued: {usd(summary.total_interest_accrued)}",
        "",
        "🎯 Risk Analysis:",
    ]
    for status in HealthStatus:
        lines.append(f"{STATUS_LABELS[status]}: {buckets.get(status, 0)}")

    if summary.collateral_by_class:
        lines += ["", "🏛️ Collateral Breakdown by Asset Class:"]
        for asset_class, (count, value) in sorted(
            summary.collateral_by_class.items(), key=lambda item: -item[1][1]
        ):
            share = value / summary.total_collateral if summary.total_collateral else 0.0
            lines.append(
                f"   {asset_class.value}: {count} positions, {usd(value)} ({share * 100:.1f}%)"
            )

    if summary.needs_attention:
        lines += ["", "🚨 Immediate attention required for at-risk positions!"]
    return "\n".join(lines)


def format_pools(pools: Iterable[PoolConfig]) -> str:
    pools = list(pools)
    if not pools:
        return "No pools configured."
    lines = ["💧 Liquidity Pools:", RULE]
    for pool in pools:
        lines.append(f"{pool.pool_id} — {pool.name} ({pool.apy:.1f}% APY)")
        if pool.description:
            lines.append(f"   {pool.description}")
    return "\n".join(lines)
