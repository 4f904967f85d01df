"""Borrowing engine: wires stores, services and notifiers from config."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from ..config import AppConfig, PoolConfig, StoreConfig, WalletConfig
from ..errors import (
    CollaboratorUnavailable,
    ConflictError,
    NoEligibleCollateral,
    ValidationError,
)
from ..interfaces.notifier import Notifier
from ..liquidation import scan_portfolio
from ..models import (
    BorrowPosition,
    CollateralAsset,
    LoanQuote,
    PortfolioSummary,
    PositionHealth,
    ReadResult,
    RepaymentReceipt,
    TokenizationStatus,
)
from ..notifications import EmailNotifier, TelegramNotifier
from ..portfolio import summarize_result
from ..stores import InMemoryStore, JsonFileStore
from ..stores.postgres import PostgresStore
from .collateral import CollateralSelector
from .ledger import PositionLedger, call_with_timeout
from .monitor import LiquidationMonitor
from .originator import LoanOriginator
from .repayment import RepaymentService

logger = logging.getLogger(__name__)

# Store factories keyed by backend name.
_STORE_FACTORIES: dict[str, Any] = {
    "memory": lambda cfg: InMemoryStore(),
    "file": lambda cfg: JsonFileStore(cfg.path),
    "postgres": lambda cfg: PostgresStore(
        cfg.dsn, min_size=cfg.pool_min_size, max_size=cfg.pool_max_size
    ),
}


def build_store(config: StoreConfig) -> Any:
    factory = _STORE_FACTORIES.get(config.backend)
    if factory is None:
        raise ValueError(f"Unknown store backend '{config.backend}'")
    return factory(config)


class BorrowingEngine:
    """Entry point for borrow, repay, risk and portfolio requests.

    Use as an async context manager: the store is opened on entry and
    always closed on exit.
    """

    def __init__(self, config: AppConfig, store: Any | None = None) -> None:
        self._config = config
        self._store = store if store is not None else build_store(config.store)
        timeout = config.store.timeout_seconds

        self.ledger = PositionLedger(self._store, timeout)
        self.selector = CollateralSelector(self._store, self.ledger, timeout)
        self.originator = LoanOriginator(
            config.risk, self._store, self.ledger, config.pools, timeout
        )
        self.repayments = RepaymentService(self.ledger, self._store, timeout)

        # Build notifiers
        notifiers: list[Notifier] = []
        if config.notifications.telegram.enabled:
            notifiers.append(TelegramNotifier(config.notifications.telegram))
        if config.notifications.email.enabled:
            notifiers.append(EmailNotifier(config.notifications.email))

        self.monitor = LiquidationMonitor(
            self.ledger,
            notifiers,
            config.wallets,
            config.monitor.check_interval_minutes,
        )

    async def __aenter__(self) -> BorrowingEngine:
        await self._store.open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self._store.close()

    @property
    def store(self) -> Any:
        return self._store

    # ------------------------------------------------------------------
    # Collateral
    # ------------------------------------------------------------------

    async def register_asset(self, asset: CollateralAsset) -> CollateralAsset:
        """Record an asset produced by the external pledge/tokenize flow."""
        return await call_with_timeout(
            self._store.add(asset), self._config.store.timeout_seconds, "Asset create"
        )

    async def eligible_collateral(self, wallet_id: str) -> ReadResult[CollateralAsset]:
        return await self.selector.eligible_collateral(wallet_id)

    async def _resolve_asset(self, wallet_id: str, asset_id: str) -> CollateralAsset:
        if not wallet_id:
            raise ValidationError("Wallet id is required")
        if not asset_id:
            raise ValidationError("Asset id is required")
        asset = await self.selector.get_asset(asset_id)
        if asset is None or asset.owner_id != wallet_id:
            raise ValidationError(f"Asset {asset_id} not found for {wallet_id}")
        return asset

    # ------------------------------------------------------------------
    # Borrowing
    # ------------------------------------------------------------------

    async def quote(self, wallet_id: str, asset_id: str, amount: float) -> LoanQuote:
        asset = await self._resolve_asset(wallet_id, asset_id)
        return self.originator.quote(asset, amount)

    async def borrow(
        self,
        wallet_id: str,
        asset_id: str,
        amount: float,
        pool_id: str,
        term_days: int,
        transaction_ref: str = "",
        now: datetime | None = None,
    ) -> BorrowPosition:
        """Select collateral and originate a position against it."""
        eligible = await self.selector.eligible_collateral(wallet_id)
        if eligible.degraded:
            raise CollaboratorUnavailable(eligible.warning)
        if not eligible.items:
            raise NoEligibleCollateral(
                f"No tokenized assets available for collateral in {wallet_id}. "
                "Pledge and tokenize assets first."
            )

        asset = next((a for a in eligible.items if a.id == asset_id), None)
        if asset is None:
            asset = await self._resolve_asset(wallet_id, asset_id)
            if asset.tokenization_status is not TokenizationStatus.TOKENIZED:
                raise ValidationError(f"Asset {asset_id} is not tokenized")
            raise ConflictError(f"Asset {asset_id} is already collateralized")

        return await self.originator.originate(
            asset,
            amount,
            pool_id,
            term_days,
            borrower_id=wallet_id,
            transaction_ref=transaction_ref,
            now=now,
        )

    async def repay(
        self, wallet_id: str, position_id: str, as_of: datetime | None = None
    ) -> RepaymentReceipt:
        return await self.repayments.repay(position_id, wallet_id, as_of)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    async def positions(self, wallet_id: str) -> ReadResult[BorrowPosition]:
        return await self.ledger.list_by_borrower(wallet_id)

    async def at_risk(self, wallet_id: str) -> ReadResult[PositionHealth]:
        result = await self.ledger.list_active(wallet_id)
        return ReadResult(
            items=tuple(scan_portfolio(result.items)),
            degraded=result.degraded,
            warning=result.warning,
        )

    async def portfolio(
        self, wallet_id: str, as_of: datetime | None = None
    ) -> PortfolioSummary:
        return summarize_result(await self.ledger.list_by_borrower(wallet_id), as_of)

    def pools(self) -> tuple[PoolConfig, ...]:
        return self._config.pools

    async def check_and_alert(
        self, wallets: tuple[WalletConfig, ...] | None = None
    ) -> list[PositionHealth]:
        return await self.monitor.check_and_alert(wallets)
