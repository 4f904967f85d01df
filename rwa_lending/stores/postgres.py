"""PostgreSQL store via asyncpg: positions and collateral assets."""
from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

import asyncpg

from ..errors import CollaboratorUnavailable
from ..models import BorrowPosition, CollateralAsset, PositionStatus
from .records import asset_from_record, position_from_record

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE EXTENSION IF NOT EXISTS "uuid-ossp";

CREATE TABLE IF NOT EXISTS assets (
    id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
    owner_id VARCHAR(66) NOT NULL,
    name VARCHAR(255) NOT NULL,
    asset_class VARCHAR(50) NOT NULL DEFAULT 'Other',
    value_usd DOUBLE PRECISION NOT NULL,
    tokenization_status VARCHAR(20) NOT NULL DEFAULT 'pending' CHECK (
        tokenization_status IN ('pending', 'in_progress', 'tokenized', 'failed')
    ),
    is_collateralized BOOLEAN NOT NULL DEFAULT false,
    token_address VARCHAR(42),
    created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS borrow_positions (
    id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
    borrower_id VARCHAR(66) NOT NULL,
    asset_id UUID REFERENCES assets(id) ON DELETE SET NULL,
    pool_id VARCHAR(100) NOT NULL,
    collateral_value_usd DOUBLE PRECISION NOT NULL,
    borrowed_amount_usd DOUBLE PRECISION NOT NULL,
    interest_rate DOUBLE PRECISION NOT NULL,
    loan_to_value_ratio DOUBLE PRECISION NOT NULL,
    liquidation_threshold DOUBLE PRECISION NOT NULL,
    status VARCHAR(20) NOT NULL DEFAULT 'active' CHECK (
        status IN ('active', 'repaid', 'liquidated', 'defaulted')
    ),
    start_date TIMESTAMPTZ NOT NULL,
    maturity_date TIMESTAMPTZ NOT NULL,
    last_payment_date TIMESTAMPTZ,
    total_interest_accrued DOUBLE PRECISION NOT NULL DEFAULT 0,
    transaction_ref VARCHAR(66),
    asset_class VARCHAR(50) NOT NULL DEFAULT 'Other',
    repaid_amount_usd DOUBLE PRECISION,
    created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_assets_owner_id ON assets(owner_id);
CREATE INDEX IF NOT EXISTS idx_borrow_positions_borrower ON borrow_positions(borrower_id);
CREATE INDEX IF NOT EXISTS idx_borrow_positions_status ON borrow_positions(status);
"""

_POSITION_COLUMNS = (
    "id::text AS id, borrower_id, asset_id::text AS asset_id, pool_id, "
    "collateral_value_usd, borrowed_amount_usd, interest_rate, "
    "loan_to_value_ratio, liquidation_threshold, status, start_date, "
    "maturity_date, last_payment_date, total_interest_accrued, "
    "transaction_ref, asset_class, repaid_amount_usd"
)

_ASSET_COLUMNS = (
    "id::text AS id, owner_id, name, asset_class, value_usd, "
    "tokenization_status, is_collateralized, token_address"
)

# Connection-level failures; constraint and syntax errors still propagate.
_UNAVAILABLE_ERRORS: tuple[type[BaseException], ...] = (
    OSError,
    asyncpg.InterfaceError,
    asyncpg.PostgresConnectionError,
    asyncpg.CannotConnectNowError,
    asyncpg.TooManyConnectionsError,
)


class PostgresStore:
    """Implements PositionStore and CollateralStore on a PostgreSQL pool.

    The pool is either injected or created by :meth:`open` from a DSN; a
    connection is acquired per call and always released.
    """

    def __init__(
        self,
        dsn: str = "",
        pool: asyncpg.Pool | None = None,
        min_size: int = 1,
        max_size: int = 5,
    ) -> None:
        self._dsn = dsn
        self._pool = pool
        self._owns_pool = pool is None
        self._min_size = min_size
        self._max_size = max_size

    async def open(self) -> None:
        if self._pool is not None:
            return
        try:
            self._pool = await asyncpg.create_pool(
                dsn=self._dsn, min_size=self._min_size, max_size=self._max_size
            )
        except _UNAVAILABLE_ERRORS as e:
            raise CollaboratorUnavailable(f"Cannot connect to database: {e}") from e
        logger.info("Connected to PostgreSQL position store")

    async def close(self) -> None:
        if self._pool is not None and self._owns_pool:
            await self._pool.close()
            self._pool = None

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[asyncpg.Connection]:
        if self._pool is None:
            raise CollaboratorUnavailable("Position store is not open")
        try:
            async with self._pool.acquire() as conn:
                yield conn
        except _UNAVAILABLE_ERRORS as e:
            raise CollaboratorUnavailable(f"Database unavailable: {e}") from e

    async def init_schema(self) -> None:
        async with self._connection() as conn:
            await conn.execute(SCHEMA_SQL)
        logger.info("Database schema ready")

    @staticmethod
    def _row(row: asyncpg.Record | None) -> dict[str, Any] | None:
        return dict(row) if row is not None else None

    # ------------------------------------------------------------------
    # CollateralStore
    # ------------------------------------------------------------------

    async def add(self, asset: CollateralAsset) -> CollateralAsset:
        async with self._connection() as conn:
            row = await conn.fetchrow(
                f"""
                INSERT INTO assets (owner_id, name, asset_class, value_usd,
                    tokenization_status, is_collateralized, token_address)
                VALUES ($1, $2, $3, $4, $5, $6, $7)
                RETURNING {_ASSET_COLUMNS}
                """,
                asset.owner_id,
                asset.name,
                asset.asset_class.value,
                asset.value_usd,
                asset.tokenization_status.value,
                asset.is_collateralized,
                asset.token_address or None,
            )
        return asset_from_record(self._row(row))

    async def get_asset(self, asset_id: str) -> CollateralAsset | None:
        async with self._connection() as conn:
            row = await conn.fetchrow(
                f"SELECT {_ASSET_COLUMNS} FROM assets WHERE id = $1::uuid", asset_id
            )
        return asset_from_record(self._row(row)) if row else None

    async def list_by_owner(self, owner_id: str) -> list[CollateralAsset]:
        async with self._connection() as conn:
            rows = await conn.fetch(
                f"SELECT {_ASSET_COLUMNS} FROM assets WHERE owner_id = $1 "
                "ORDER BY value_usd DESC",
                owner_id,
            )
        return [asset_from_record(dict(r)) for r in rows]

    async def claim(self, asset_id: str) -> bool:
        async with self._connection() as conn:
            status = await conn.execute(
                """
                UPDATE assets
                SET is_collateralized = true, updated_at = CURRENT_TIMESTAMP
                WHERE id = $1::uuid AND is_collateralized = false
                """,
                asset_id,
            )
        # asyncpg returns the command tag, e.g. "UPDATE 1"
        return status.endswith(" 1")

    async def set_collateral_flag(self, asset_id: str, flag: bool) -> None:
        async with self._connection() as conn:
            await conn.execute(
                """
                UPDATE assets
                SET is_collateralized = $1, updated_at = CURRENT_TIMESTAMP
                WHERE id = $2::uuid
                """,
                flag,
                asset_id,
            )

    # ------------------------------------------------------------------
    # PositionStore
    # ------------------------------------------------------------------

    async def create(self, position: BorrowPosition) -> BorrowPosition:
        async with self._connection() as conn:
            row = await conn.fetchrow(
                f"""
                INSERT INTO borrow_positions (
                    id, borrower_id, asset_id, pool_id, collateral_value_usd,
                    borrowed_amount_usd, interest_rate, loan_to_value_ratio,
                    liquidation_threshold, status, start_date, maturity_date,
                    last_payment_date, total_interest_accrued, transaction_ref,
                    asset_class, repaid_amount_usd
                )
                VALUES (COALESCE($1::uuid, uuid_generate_v4()), $2, $3::uuid, $4,
                        $5, $6, $7, $8, $9, $10, $11, $12, $13, $14, $15,
                        $16, $17)
                RETURNING {_POSITION_COLUMNS}
                """,
                position.id or None,
                position.borrower_id,
                position.asset_id,
                position.pool_id,
                position.collateral_value_usd,
                position.borrowed_amount_usd,
                position.interest_rate,
                position.loan_to_value_ratio,
                position.liquidation_threshold,
                position.status.value,
                position.start_date,
                position.maturity_date,
                position.last_payment_date,
                position.total_interest_accrued,
                position.transaction_ref or None,
                position.asset_class.value,
                position.repaid_amount_usd,
            )
        return position_from_record(self._row(row))

    async def get(self, position_id: str) -> BorrowPosition | None:
        async with self._connection() as conn:
            row = await conn.fetchrow(
                f"SELECT {_POSITION_COLUMNS} FROM borrow_positions WHERE id = $1::uuid",
                position_id,
            )
        return position_from_record(self._row(row)) if row else None

    async def list_by_borrower(
        self, borrower_id: str, status: PositionStatus | None = None
    ) -> list[BorrowPosition]:
        query = f"SELECT {_POSITION_COLUMNS} FROM borrow_positions WHERE borrower_id = $1"
        args: list[Any] = [borrower_id]
        if status is not None:
            query += " AND status = $2"
            args.append(status.value)
        query += " ORDER BY start_date DESC"

        async with self._connection() as conn:
            rows = await conn.fetch(query, *args)
        return [position_from_record(dict(r)) for r in rows]

    async def update_status(
        self,
        position_id: str,
        status: PositionStatus,
        final_amount: float | None = None,
        payment_date: datetime | None = None,
    ) -> None:
        async with self._connection() as conn:
            await conn.execute(
                """
                UPDATE borrow_positions
                SET status = $1,
                    repaid_amount_usd = COALESCE($2, repaid_amount_usd),
                    last_payment_date = COALESCE($3, last_payment_date),
                    updated_at = CURRENT_TIMESTAMP
                WHERE id = $4::uuid
                """,
                status.value,
                final_amount,
                payment_date,
                position_id,
            )

    async def delete(self, position_id: str) -> None:
        async with self._connection() as conn:
            await conn.execute(
                "DELETE FROM borrow_positions WHERE id = $1::uuid", position_id
            )
