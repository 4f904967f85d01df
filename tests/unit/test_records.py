"""Unit tests for store record mapping."""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from rwa_lending.models import (
    AssetClass,
    PositionStatus,
    TokenizationStatus,
)
from rwa_lending.stores.records import (
    asset_from_record,
    asset_to_record,
    format_ts,
    parse_ts,
    position_from_record,
    position_to_record,
)


class TestTimestamps:
    def test_naive_assumed_utc(self) -> None:
        assert parse_ts("2025-01-01T00:00:00") == datetime(2025, 1, 1, tzinfo=timezone.utc)

    def test_empty_is_none(self) -> None:
        assert parse_ts(None) is None
        assert parse_ts("") is None
        assert format_ts(None) is None

    def test_format_marks_utc(self) -> None:
        assert format_ts(datetime(2025, 1, 1)) == "2025-01-01T00:00:00+00:00"


class TestPositionRecords:
    def test_enums_stored_by_value(self, sample_position) -> None:
        record = position_to_record(sample_position)
        assert record["status"] == "active"
        assert record["asset_class"] == "Commercial Real Estate"
        assert record["repaid_amount_usd"] is None

    def test_from_record_preserves_fields(self, sample_position) -> None:
        restored = position_from_record(position_to_record(sample_position))
        assert restored == sample_position

    def test_repaid_record(self, position_factory, now) -> None:
        paid = position_factory(
            status=PositionStatus.REPAID, repaid_amount_usd=765_719.18, last_payment_date=now
        )
        restored = position_from_record(position_to_record(paid))
        assert restored.status is PositionStatus.REPAID
        assert restored.repaid_amount_usd == 765_719.18
        assert restored.last_payment_date == now

    def test_missing_asset_id_becomes_empty(self, sample_position) -> None:
        record = position_to_record(sample_position)
        record["asset_id"] = None
        assert position_from_record(record).asset_id == ""

    def test_decimal_columns_coerced(self, sample_position) -> None:
        record = position_to_record(sample_position)
        record["borrowed_amount_usd"] = Decimal("750000.00")
        assert position_from_record(record).borrowed_amount_usd == 750_000.0


class TestAssetRecords:
    def test_from_record(self, cre_asset) -> None:
        assert asset_from_record(asset_to_record(cre_asset)) == cre_asset

    def test_defaults(self) -> None:
        asset = asset_from_record(
            {"id": "a1", "owner_id": "0xW", "value_usd": "1000", "asset_class": "Art"}
        )
        assert asset.asset_class is AssetClass.OTHER
        assert asset.tokenization_status is TokenizationStatus.PENDING
        assert asset.is_collateralized is False
        assert asset.token_address == ""
