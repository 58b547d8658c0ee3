"""
Board Kernel: Storage

Persistence collaborator used by the editor session.
Implement with Postgres for production (see postgres_storage), or in-memory for tests.
"""

from __future__ import annotations

import copy
from datetime import UTC, datetime

from board_engine.kernel.errors import BoardNotFound
from board_engine.kernel.types import Board, new_id
from board_engine.models.board import BoardRecord, BoardSummary


def record_to_board(record: BoardRecord) -> Board:
    """Rebuild the Board from a stored row. The row id wins over any id inside ir_data."""
    board = Board.from_dict(record.ir_data)
    board.id = record.id
    return board


class BoardStorage:
    """
    Abstract storage interface.

    save_board assigns an id to boards that do not have one yet and returns
    the board as stored.
    """

    async def load_board(self, board_id: str) -> Board:
        """Fetch a board. Raises BoardNotFound."""
        raise NotImplementedError

    async def save_board(self, board: Board, owner_id: str | None = None) -> Board:
        raise NotImplementedError

    async def list_boards(self, owner_id: str | None) -> list[BoardSummary]:
        raise NotImplementedError

    async def delete_board(self, board_id: str) -> None:
        """Delete a board. Deleting an unknown id is a no-op."""
        raise NotImplementedError


class MemoryStorage(BoardStorage):
    """In-memory storage for testing."""

    def __init__(self) -> None:
        self.records: dict[str, BoardRecord] = {}

    async def load_board(self, board_id: str) -> Board:
        record = self.records.get(board_id)
        if record is None:
            raise BoardNotFound(board_id)
        return record_to_board(record)

    async def save_board(self, board: Board, owner_id: str | None = None) -> Board:
        saved = copy.deepcopy(board)
        if not saved.id:
            saved.id = new_id("board")
        now = datetime.now(UTC)
        existing = self.records.get(saved.id)
        self.records[saved.id] = BoardRecord(
            id=saved.id,
            owner_id=owner_id if owner_id is not None else (existing.owner_id if existing else None),
            name=saved.name,
            ir_data=saved.to_dict(),
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )
        return saved

    async def list_boards(self, owner_id: str | None) -> list[BoardSummary]:
        records = [r for r in self.records.values() if r.owner_id == owner_id]
        records.sort(key=lambda r: r.updated_at, reverse=True)
        return [r.summary() for r in records]

    async def delete_board(self, board_id: str) -> None:
        self.records.pop(board_id, None)
