"""
PostgresStorage adapter for the board kernel.

Implements the BoardStorage protocol using Postgres as the backend.
Boards live in the `boards` table with the IR as JSONB in `ir_data`.
"""

from __future__ import annotations

import copy
import json

import asyncpg

from board_engine.config import settings
from board_engine.kernel.errors import BoardNotFound
from board_engine.kernel.storage import BoardStorage, record_to_board
from board_engine.kernel.types import Board, new_id
from board_engine.models.board import BoardRecord, BoardSummary


async def create_pool(dsn: str | None = None) -> asyncpg.Pool:
    """Connection pool for PostgresStorage. Falls back to settings.DATABASE_URL."""
    dsn = dsn or settings.DATABASE_URL
    if not dsn:
        raise RuntimeError("DATABASE_URL environment variable is required")
    return await asyncpg.create_pool(dsn=dsn, min_size=1, max_size=10, command_timeout=60)


def _row_to_record(row: asyncpg.Record) -> BoardRecord:
    ir_data = row["ir_data"]
    if isinstance(ir_data, str):
        ir_data = json.loads(ir_data)
    return BoardRecord(
        id=row["id"],
        owner_id=row["owner_id"],
        name=row["name"],
        ir_data=ir_data,
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class PostgresStorage(BoardStorage):
    """Postgres-based storage for boards."""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def load_board(self, board_id: str) -> Board:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow("SELECT * FROM boards WHERE id = $1", board_id)
        if row is None:
            raise BoardNotFound(board_id)
        return record_to_board(_row_to_record(row))

    async def save_board(self, board: Board, owner_id: str | None = None) -> Board:
        """Insert or update a board. The owner is only set on insert or when given."""
        saved = copy.deepcopy(board)
        if not saved.id:
            saved.id = new_id("board")
        async with self.pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO boards (id, owner_id, name, ir_data, created_at, updated_at)
                VALUES ($1, $2, $3, $4::jsonb, now(), now())
                ON CONFLICT (id)
                DO UPDATE SET name = EXCLUDED.name,
                              ir_data = EXCLUDED.ir_data,
                              owner_id = COALESCE(EXCLUDED.owner_id, boards.owner_id),
                              updated_at = now()
                """,
                saved.id,
                owner_id,
                saved.name,
                json.dumps(saved.to_dict()),
            )
        return saved

    async def list_boards(self, owner_id: str | None) -> list[BoardSummary]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT * FROM boards
                WHERE owner_id IS NOT DISTINCT FROM $1
                ORDER BY updated_at DESC
                """,
                owner_id,
            )
        return [_row_to_record(row).summary() for row in rows]

    async def delete_board(self, board_id: str) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute("DELETE FROM boards WHERE id = $1", board_id)

    async def close(self) -> None:
        """Close the connection pool."""
        await self.pool.close()
