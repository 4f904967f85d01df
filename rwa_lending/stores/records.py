"""Pure record <-> model mapping for store adapters (no I/O).

Timestamps are ISO-8601 strings, enums are stored by value. Every field of
BorrowPosition and CollateralAsset round-trips.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from ..models import (
    AssetClass,
    BorrowPosition,
    CollateralAsset,
    PositionStatus,
    TokenizationStatus,
)


def format_ts(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def parse_ts(value: Any) -> datetime | None:
    """Parse an ISO string (or pass through a datetime), assuming UTC if naive."""
    if value is None or value == "":
        return None
    if not isinstance(value, datetime):
        value = datetime.fromisoformat(str(value))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _optional_float(value: Any) -> float | None:
    return None if value is None else float(value)


def position_to_record(position: BorrowPosition) -> dict[str, Any]:
    return {
        "id": position.id,
        "borrower_id": position.borrower_id,
        "asset_id": position.asset_id,
        "pool_id": position.pool_id,
        "collateral_value_usd": position.collateral_value_usd,
        "borrowed_amount_usd": position.borrowed_amount_usd,
        "interest_rate": position.interest_rate,
        "loan_to_value_ratio": position.loan_to_value_ratio,
        "liquidation_threshold": position.liquidation_threshold,
        "status": position.status.value,
        "start_date": format_ts(position.start_date),
        "maturity_date": format_ts(position.maturity_date),
        "last_payment_date": format_ts(position.last_payment_date),
        "total_interest_accrued": position.total_interest_accrued,
        "transaction_ref": position.transaction_ref,
        "asset_class": position.asset_class.value,
        "repaid_amount_usd": position.repaid_amount_usd,
    }


def position_from_record(raw: dict[str, Any]) -> BorrowPosition:
    return BorrowPosition(
        id=str(raw["id"]),
        borrower_id=str(raw["borrower_id"]),
        asset_id=str(raw.get("asset_id") or ""),
        pool_id=str(raw["pool_id"]),
        collateral_value_usd=float(raw["collateral_value_usd"]),
        borrowed_amount_usd=float(raw["borrowed_amount_usd"]),
        interest_rate=float(raw["interest_rate"]),
        loan_to_value_ratio=float(raw["loan_to_value_ratio"]),
        liquidation_threshold=float(raw["liquidation_threshold"]),
        status=PositionStatus(raw["status"]),
        start_date=parse_ts(raw["start_date"]),
        maturity_date=parse_ts(raw["maturity_date"]),
        last_payment_date=parse_ts(raw.get("last_payment_date")),
        total_interest_accrued=float(raw.get("total_interest_accrued") or 0.0),
        transaction_ref=raw.get("transaction_ref") or "",
        asset_class=AssetClass.parse(raw.get("asset_class")),
        repaid_amount_usd=_optional_float(raw.get("repaid_amount_usd")),
    )


def asset_to_record(asset: CollateralAsset) -> dict[str, Any]:
    return {
        "id": asset.id,
        "owner_id": asset.owner_id,
        "name": asset.name,
        "asset_class": asset.asset_class.value,
        "value_usd": asset.value_usd,
        "tokenization_status": asset.tokenization_status.value,
        "is_collateralized": asset.is_collateralized,
        "token_address": asset.token_address,
    }


def asset_from_record(raw: dict[str, Any]) -> CollateralAsset:
    return CollateralAsset(
        id=str(raw["id"]),
        owner_id=str(raw["owner_id"]),
        name=raw.get("name", ""),
        asset_class=AssetClass.parse(raw.get("asset_class")),
        value_usd=float(raw["value_usd"]),
        tokenization_status=TokenizationStatus(
            raw.get("tokenization_status", TokenizationStatus.PENDING.value)
        ),
        is_collateralized=bool(raw.get("is_collateralized", False)),
        token_address=raw.get("token_address") or "",
    )
