"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import pytest

from rwa_lending.config import (
    AppConfig,
    EmailConfig,
    MonitorConfig,
    NotificationsConfig,
    StoreConfig,
    TelegramConfig,
    WalletConfig,
)
from rwa_lending.models import (
    AssetClass,
    BorrowPosition,
    CollateralAsset,
    PositionStatus,
    TokenizationStatus,
)
from rwa_lending.risk import RiskParameters
from rwa_lending.stores import InMemoryStore

WALLET = "0xWALLET123"
OTHER_WALLET = "0xOTHER456"
NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def risk_params() -> RiskParameters:
    return RiskParameters()


@pytest.fixture()
def sample_app_config() -> AppConfig:
    return AppConfig(
        store=StoreConfig(backend="memory", timeout_seconds=1.0),
        monitor=MonitorConfig(check_interval_minutes=5),
        wallets=(WalletConfig(label="test-wallet", address=WALLET),),
        notifications=NotificationsConfig(
            telegram=TelegramConfig(
                enabled=True,
                alert_bot_token="fake-alert-token",
                log_bot_token="fake-log-token",
                chat_id="12345",
            ),
            email=EmailConfig(enabled=False),
        ),
    )


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def cre_asset() -> CollateralAsset:
    return CollateralAsset(
        id="asset-cre",
        owner_id=WALLET,
        name="Downtown Office Tower",
        asset_class=AssetClass.COMMERCIAL_REAL_ESTATE,
        value_usd=500_000.0,
        tokenization_status=TokenizationStatus.TOKENIZED,
        token_address="0xTOKEN1",
    )


@pytest.fixture()
def trade_asset() -> CollateralAsset:
    return CollateralAsset(
        id="asset-trade",
        owner_id=WALLET,
        name="Coffee Export Receivable",
        asset_class=AssetClass.TRADE_FINANCE,
        value_usd=250_000.0,
        tokenization_status=TokenizationStatus.TOKENIZED,
    )


@pytest.fixture()
def pending_asset() -> CollateralAsset:
    return CollateralAsset(
        id="asset-pending",
        owner_id=WALLET,
        name="Warehouse Equipment",
        asset_class=AssetClass.EQUIPMENT_FINANCING,
        value_usd=900_000.0,
        tokenization_status=TokenizationStatus.PENDING,
    )


@pytest.fixture()
def position_factory() -> Callable[..., BorrowPosition]:
    """Build a BorrowPosition with sensible defaults; override any field."""

    def _make(**overrides: Any) -> BorrowPosition:
        fields: dict[str, Any] = {
            "id": "pos-1",
            "borrower_id": WALLET,
            "asset_id": "asset-cre",
            "pool_id": "CFGE-STABLE-001",
            "collateral_value_usd": 1_200_000.0,
            "borrowed_amount_usd": 750_000.0,
            "interest_rate": 0.085,
            "loan_to_value_ratio": 0.625,
            "liquidation_threshold": 0.75,
            "status": PositionStatus.ACTIVE,
            "start_date": NOW - timedelta(days=90),
            "maturity_date": NOW + timedelta(days=90),
            "asset_class": AssetClass.COMMERCIAL_REAL_ESTATE,
        }
        fields.update(overrides)
        return BorrowPosition(**fields)

    return _make


@pytest.fixture()
def sample_position(position_factory: Callable[..., BorrowPosition]) -> BorrowPosition:
    return position_factory()


@pytest.fixture()
def memory_store(
    cre_asset: CollateralAsset,
    trade_asset: CollateralAsset,
    pending_asset: CollateralAsset,
) -> InMemoryStore:
    return InMemoryStore(assets=[cre_asset, trade_asset, pending_asset])


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    store:
      backend: memory
      timeout_seconds: 5
    risk:
      max_ltv:
        Trade Finance: 0.65
      liquidation_buffer: 0.05
    monitor:
      check_interval_minutes: 5
    wallets:
      - label: test-wallet
        address: "0xTEST"
    pools:
      POOL-A:
        name: Pool A
        apy: 6.0
      POOL-B:
        name: Pool B
        description: Second pool
        apy: 9.0
    notifications:
      telegram:
        enabled: true
        alert_bot_token: "tok1"
        log_bot_token: "tok2"
        chat_id: "999"
      email:
        enabled: false
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


@pytest.fixture()
def wallet() -> str:
    return WALLET


@pytest.fixture()
def now() -> datetime:
    return NOW
