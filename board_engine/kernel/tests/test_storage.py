"""
Tests for MemoryStorage, the in-process BoardStorage used by the session tests.
"""

from datetime import UTC, datetime

import pytest

from board_engine.kernel.errors import BoardNotFound
from board_engine.kernel.storage import MemoryStorage
from board_engine.kernel.tests.builders import make_board


@pytest.fixture
def storage():
    return MemoryStorage()


class TestMemoryStorage:
    async def test_save_assigns_id(self, storage):
        board = make_board()
        board.id = None
        saved = await storage.save_board(board, "user_1")
        assert saved.id.startswith("board_")
        assert board.id is None

    async def test_save_keeps_existing_id(self, storage):
        saved = await storage.save_board(make_board())
        assert saved.id == "board_test"

    async def test_load_returns_copy(self, storage):
        await storage.save_board(make_board())
        loaded = await storage.load_board("board_test")
        loaded.name = "Changed"
        again = await storage.load_board("board_test")
        assert again.name == "Test Board"

    async def test_load_round_trips(self, storage, nav_board):
        await storage.save_board(nav_board)
        loaded = await storage.load_board(nav_board.id)
        assert loaded.to_dict() == nav_board.to_dict()

    async def test_load_unknown(self, storage):
        with pytest.raises(BoardNotFound) as exc:
            await storage.load_board("board_missing")
        assert exc.value.board_id == "board_missing"

    async def test_owner_kept_on_update(self, storage):
        board = make_board()
        await storage.save_board(board, "user_1")
        board.name = "Renamed"
        await storage.save_board(board)
        record = storage.records["board_test"]
        assert record.owner_id == "user_1"
        assert record.name == "Renamed"
        assert record.updated_at >= record.created_at

    async def test_list_boards_by_owner(self, storage):
        first = make_board()
        first.id = "board_1"
        second = make_board(page_ids=("page_a", "page_b"))
        second.id = "board_2"
        other = make_board()
        other.id = "board_3"
        await storage.save_board(first, "user_1")
        await storage.save_board(second, "user_1")
        await storage.save_board(other, "user_2")

        storage.records["board_1"] = storage.records["board_1"].model_copy(
            update={"updated_at": datetime(2026, 1, 2, tzinfo=UTC)}
        )
        storage.records["board_2"] = storage.records["board_2"].model_copy(
            update={"updated_at": datetime(2026, 1, 1, tzinfo=UTC)}
        )

        summaries = await storage.list_boards("user_1")

        assert [s.id for s in summaries] == ["board_1", "board_2"]
        assert [s.page_count for s in summaries] == [1, 2]

    async def test_delete(self, storage):
        await storage.save_board(make_board())
        await storage.delete_board("board_test")
        await storage.delete_board("board_test")
        with pytest.raises(BoardNotFound):
            await storage.load_board("board_test")
