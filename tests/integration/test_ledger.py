"""Integration tests for the position ledger's degraded-read handling."""
from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from rwa_lending.errors import CollaboratorUnavailable
from rwa_lending.models import PositionStatus
from rwa_lending.services.ledger import PositionLedger, call_with_timeout
from rwa_lending.stores import InMemoryStore


class TestCallWithTimeout:
    @pytest.mark.asyncio
    async def test_returns_value(self) -> None:
        async def fast() -> int:
            return 7

        assert await call_with_timeout(fast(), 1.0, "fast") == 7

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        with pytest.raises(CollaboratorUnavailable, match="timed out"):
            await call_with_timeout(asyncio.sleep(1), 0.01, "Slow call")

    @pytest.mark.asyncio
    async def test_os_error(self) -> None:
        async def broken() -> None:
            raise ConnectionRefusedError("refused")

        with pytest.raises(CollaboratorUnavailable, match="refused"):
            await call_with_timeout(broken(), 1.0, "Broken call")


class TestPositionLedger:
    @pytest.mark.asyncio
    async def test_list_by_borrower(self, sample_position, wallet) -> None:
        ledger = PositionLedger(InMemoryStore(positions=[sample_position]))
        result = await ledger.list_by_borrower(wallet)
        assert result.items == (sample_position,)
        assert result.degraded is False

    @pytest.mark.asyncio
    async def test_list_active_filters(self, position_factory, wallet) -> None:
        store = InMemoryStore(
            positions=[
                position_factory(id="a"),
                position_factory(id="b", status=PositionStatus.REPAID),
            ]
        )
        result = await PositionLedger(store).list_active(wallet)
        assert [p.id for p in result.items] == ["a"]

    @pytest.mark.asyncio
    async def test_store_error_degrades_read(self, wallet) -> None:
        store = AsyncMock()
        store.list_by_borrower.side_effect = CollaboratorUnavailable("db down")
        result = await PositionLedger(store).list_by_borrower(wallet)
        assert result.degraded is True
        assert result.items == ()
        assert "db down" in result.warning

    @pytest.mark.asyncio
    async def test_slow_store_degrades_read(self, wallet) -> None:
        store = AsyncMock()

        async def slow(*args):
            await asyncio.sleep(1)
            return []

        store.list_by_borrower = slow
        result = await PositionLedger(store, timeout=0.01).list_by_borrower(wallet)
        assert result.degraded is True
        assert "timed out" in result.warning

    @pytest.mark.asyncio
    async def test_write_errors_raise(self, sample_position) -> None:
        store = AsyncMock()
        store.create.side_effect = OSError("disk full")
        with pytest.raises(CollaboratorUnavailable):
            await PositionLedger(store).create(sample_position)

    @pytest.mark.asyncio
    async def test_lookup_errors_raise(self) -> None:
        store = AsyncMock()
        store.get.side_effect = CollaboratorUnavailable("db down")
        with pytest.raises(CollaboratorUnavailable):
            await PositionLedger(store).get("pos-1")
