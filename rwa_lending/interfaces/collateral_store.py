"""Collateral store protocol: tokenized asset records and collateral flag."""
from __future__ import annotations

from typing import Protocol

from ..models import CollateralAsset


class CollateralStore(Protocol):
    """Read asset records and write their collateral flag."""

    async def add(self, asset: CollateralAsset) -> CollateralAsset: ...

    async def get_asset(self, asset_id: str) -> CollateralAsset | None: ...

    async def list_by_owner(self, owner_id: str) -> list[CollateralAsset]: ...

    async def claim(self, asset_id: str) -> bool:
        """Set the collateral flag only if it is clear; False if already set."""
        ...

    async def set_collateral_flag(self, asset_id: str, flag: bool) -> None: ...
