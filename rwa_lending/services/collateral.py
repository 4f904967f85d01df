"""Collateral selector: tokenized, uncommitted assets for a wallet."""
from __future__ import annotations

import logging

from ..errors import CollaboratorUnavailable
from ..interfaces.collateral_store import CollateralStore
from ..models import CollateralAsset, ReadResult, TokenizationStatus
from .ledger import PositionLedger, call_with_timeout

logger = logging.getLogger(__name__)


def is_eligible(asset: CollateralAsset, committed_ids: set[str]) -> bool:
    return (
        asset.tokenization_status is TokenizationStatus.TOKENIZED
        and not asset.is_collateralized
        and asset.id not in committed_ids
    )


class CollateralSelector:
    """Read-only view of the assets a wallet can pledge right now."""

    def __init__(
        self,
        store: CollateralStore,
        ledger: PositionLedger,
        timeout: float = 10.0,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._timeout = timeout

    async def get_asset(self, asset_id: str) -> CollateralAsset | None:
        return await call_with_timeout(
            self._store.get_asset(asset_id), self._timeout, "Asset lookup"
        )

    async def eligible_collateral(self, wallet_id: str) -> ReadResult[CollateralAsset]:
        """Eligible assets ordered by descending value.

        If the collateral store is down the result is empty and degraded. If
        only the position store is down, the collateral flag alone filters
        and the result is still marked degraded.
        """
        try:
            assets = await call_with_timeout(
                self._store.list_by_owner(wallet_id), self._timeout, "Collateral store"
            )
        except CollaboratorUnavailable as e:
            logger.warning("Collateral store unavailable for %s: %s", wallet_id, e)
            return ReadResult.unavailable(f"Collateral store unavailable: {e}")

        active = await self._ledger.list_active(wallet_id)
        committed = {p.asset_id for p in active.items}

        eligible = sorted(
            (a for a in assets if is_eligible(a, committed)),
            key=lambda a: a.value_usd,
            reverse=True,
        )
        logger.debug("%d of %d assets eligible for %s", len(eligible), len(assets), wallet_id)

        if active.degraded:
            return ReadResult(
                items=tuple(eligible),
                degraded=True,
                warning=f"{active.warning}; filtered by collateral flag only",
            )
        return ReadResult(items=tuple(eligible))
