"""
Board Kernel: Editor Session

Owns the board being edited plus the editor state around it: current page,
selection, edit/preview mode, dirty tracking and navigation history.

States:
  no_board    nothing loaded
  editing     board loaded, is_edit_mode = True
  previewing  board loaded, is_edit_mode = False

All board mutations funnel through `_commit`: the pure model function builds a
new board, ensure_valid re-checks every invariant, and only then is the new
board swapped in. A raised error leaves the session exactly as it was.

Navigation history is a bounded stack whose top is always the current page
while previewing: entering preview resets it to [current], every navigation
pushes the new page, Back pops. Leaving preview clears it.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from collections import deque
from typing import Any, Callable

from board_engine.config import settings
from board_engine.kernel import board as board_model
from board_engine.kernel import page as page_model
from board_engine.kernel.actions import make_button, retarget
from board_engine.kernel.errors import (
    BoardError,
    InvalidBoardError,
    NoBoardLoadedError,
    NoSpaceError,
    SaveFailedError,
    SaveInProgressError,
    UnknownButtonError,
    UnknownPageReferenceError,
    UnsavedChangesError,
)
from board_engine.kernel.generation import apply_board_update, merge_generated_pages
from board_engine.kernel.grid import cell_occupant, find_free_cell
from board_engine.kernel.interpreter import (
    BackCommand,
    Command,
    NavigateCommand,
    OpenVideoCommand,
    SpeakCommand,
    SpeechService,
    VideoOverlay,
    interpret,
    interpret_video_region,
)
from board_engine.kernel.storage import BoardStorage
from board_engine.kernel.types import (
    Board,
    Button,
    CoverImage,
    Grid,
    Page,
    VideoPlayer,
    default_cover_image,
    new_id,
)
from board_engine.kernel.validation import ValidationReport, ensure_valid, validate_board
from board_engine.models.generation import BoardUpdate

logger = logging.getLogger(__name__)

NO_BOARD = "no_board"
EDITING = "editing"
PREVIEWING = "previewing"


class EditorSession:
    """One board edit session, owned by the hosting application."""

    def __init__(
        self,
        storage: BoardStorage | None = None,
        *,
        speech: SpeechService | None = None,
        video: VideoOverlay | None = None,
        history_limit: int | None = None,
        max_grid: int | None = None,
    ) -> None:
        self.storage = storage
        self.speech = speech
        self.video = video
        self.history_limit = history_limit or settings.BOARD_HISTORY_LIMIT
        self.max_grid = max_grid or settings.BOARD_MAX_GRID

        self._board: Board | None = None
        self._current_page_id: str | None = None
        self._selected_button_id: str | None = None
        self._is_edit_mode = True
        self._is_dirty = False
        self._history: deque[str] = deque(maxlen=self.history_limit)

        # Bumped on every committed mutation; used to coalesce saves.
        self._revision = 0
        # Bumped on every load/unload; a save only touches the board it started from.
        self._generation = 0
        self._save_task: asyncio.Future[Board] | None = None
        self._save_revision: int | None = None

    # -----------------------------------------------------------------------
    # Read-only state
    # -----------------------------------------------------------------------

    @property
    def state(self) -> str:
        if self._board is None:
            return NO_BOARD
        return EDITING if self._is_edit_mode else PREVIEWING

    @property
    def board(self) -> Board | None:
        return self._board

    @property
    def current_page_id(self) -> str | None:
        return self._current_page_id

    @property
    def current_page(self) -> Page | None:
        if self._board is None:
            return None
        return self._board.find_page(self._current_page_id)

    @property
    def selected_button_id(self) -> str | None:
        return self._selected_button_id

    @property
    def is_edit_mode(self) -> bool:
        return self._is_edit_mode

    @property
    def is_dirty(self) -> bool:
        return self._is_dirty

    @property
    def navigation_history(self) -> list[str]:
        return list(self._history)

    @property
    def is_saving(self) -> bool:
        return self._save_task is not None and not self._save_task.done()

    def validation(self) -> ValidationReport:
        return validate_board(self._require_board(), self.max_grid)

    # -----------------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------------

    def load_board(self, board: Board, *, discard: bool = False) -> None:
        """
        Start editing `board`.

        Refuses to replace a board with unsaved edits unless discard=True.
        A board with no pages (or one that fails validation) is malformed input.
        """
        if self._is_dirty and not discard:
            raise UnsavedChangesError("Current board has unsaved changes; save or discard first")
        if not board.pages:
            raise InvalidBoardError("Board must have at least one page")
        loaded = copy.deepcopy(board)
        if loaded.cover_image is None:
            loaded.cover_image = default_cover_image()
        ensure_valid(loaded, self.max_grid)

        self._board = loaded
        self._current_page_id = loaded.home_page.id
        self._selected_button_id = None
        self._is_edit_mode = True
        self._is_dirty = False
        self._history.clear()
        self._revision += 1
        self._generation += 1
        logger.info("session: loaded board %s (%d pages)", loaded.id, len(loaded.pages))

    async def open_board(self, board_id: str, *, discard: bool = False) -> Board:
        """Fetch a board from storage and load it."""
        if self._is_dirty and not discard:
            raise UnsavedChangesError("Current board has unsaved changes; save or discard first")
        board = await self._require_storage().load_board(board_id)
        self.load_board(board, discard=discard)
        return self._require_board()

    def create_board(
        self,
        name: str | None = None,
        rows: int | None = None,
        cols: int | None = None,
        *,
        discard: bool = False,
    ) -> Board:
        """Create an empty board and load it. The new board is unsaved, so it starts dirty."""
        grid = Grid(rows or settings.BOARD_DEFAULT_ROWS, cols or settings.BOARD_DEFAULT_COLS)
        self.load_board(board_model.create_empty_board(name, grid, self.max_grid), discard=discard)
        self._is_dirty = True
        return self._require_board()

    def unload_board(self, *, discard: bool = False) -> None:
        if self._is_dirty and not discard:
            raise UnsavedChangesError("Current board has unsaved changes; save or discard first")
        board_id = self._board.id if self._board else None
        self._board = None
        self._current_page_id = None
        self._selected_button_id = None
        self._is_edit_mode = True
        self._is_dirty = False
        self._history.clear()
        self._revision += 1
        self._generation += 1
        logger.info("session: unloaded board %s", board_id)

    def discard(self) -> None:
        """Drop the board and any unsaved edits."""
        if self._is_dirty:
            logger.info("session: discarding unsaved edits")
        self.unload_board(discard=True)

    # -----------------------------------------------------------------------
    # Mode, selection, navigation
    # -----------------------------------------------------------------------

    def set_edit_mode(self, edit: bool) -> None:
        self._require_board()
        if edit == self._is_edit_mode:
            return
        self._is_edit_mode = edit
        self._history.clear()
        if not edit:
            self._selected_button_id = None
            self._history.append(self._current_page_id)  # type: ignore[arg-type]

    def set_current_page(self, page_id: str) -> None:
        """
        Switch pages. In preview the page is pushed onto the history; in edit
        mode navigation is direct and history is left alone.
        """
        board = self._require_board()
        if board.find_page(page_id) is None:
            raise UnknownPageReferenceError(page_id)
        if page_id == self._current_page_id:
            return
        self._current_page_id = page_id
        self._selected_button_id = None
        if not self._is_edit_mode:
            self._history.append(page_id)

    def go_back(self) -> bool:
        """Pop the history. Returns False (no-op) in edit mode or when there is nowhere to go."""
        board = self._require_board()
        if self._is_edit_mode:
            return False
        while len(self._history) >= 2:
            self._history.pop()
            target = self._history[-1]
            if board.find_page(target) is not None:
                self._current_page_id = target
                self._selected_button_id = None
                return True
        return False

    def go_home(self) -> None:
        self.set_current_page(self._require_board().home_page.id)

    def select_button(self, button_id: str | None) -> None:
        """Select a button for editing. Ignored while previewing."""
        board = self._require_board()
        if not self._is_edit_mode:
            return
        if button_id is not None and board.find_button(button_id) is None:
            raise UnknownButtonError(button_id)
        self._selected_button_id = button_id

    # -----------------------------------------------------------------------
    # Activation
    # -----------------------------------------------------------------------

    def activate(self, button_id: str) -> list[Command]:
        """
        A user tapped a button. In edit mode this selects it; in preview its
        action runs. Returns the commands that were executed.
        """
        board = self._require_board()
        if self._is_edit_mode:
            self.select_button(button_id)
            return []
        found = board.find_button(button_id)
        if found is None:
            raise UnknownButtonError(button_id)
        return self._execute(interpret(found[1], board))

    def activate_cell(self, row: int, col: int) -> list[Command]:
        """A user tapped a cell of the current page."""
        page = self.current_page
        if page is None:
            raise NoBoardLoadedError("No board loaded")
        occupant = cell_occupant(page, row, col)
        if isinstance(occupant, Button):
            return self.activate(occupant.id)
        if self._is_edit_mode:
            self._selected_button_id = None
            return []
        if isinstance(occupant, VideoPlayer):
            return self._execute(interpret_video_region(occupant))
        return []

    def close_video(self) -> None:
        if self.video is not None:
            self.video.close_video()

    def _execute(self, commands: list[Command]) -> list[Command]:
        for command in commands:
            if isinstance(command, SpeakCommand):
                if self.speech is not None:
                    self.speech.speak(command.text)
            elif isinstance(command, OpenVideoCommand):
                if self.video is not None:
                    self.video.open_video(command.video_id, command.title)
            elif isinstance(command, NavigateCommand):
                try:
                    self.set_current_page(command.page_id)
                except UnknownPageReferenceError:
                    logger.debug("session: ignoring navigation to unknown page %s", command.page_id)
            elif isinstance(command, BackCommand):
                self.go_back()
        return commands

    # -----------------------------------------------------------------------
    # Mutations
    # -----------------------------------------------------------------------

    def _commit(self, operation: str, build: Callable[[Board], Board]) -> Board:
        """Build a new board from the current one, validate it, then swap it in."""
        board = self._require_board()
        try:
            updated = build(board)
            ensure_valid(updated, self.max_grid)
        except BoardError as e:
            logger.warning("session: %s rejected (%s: %s)", operation, type(e).__name__, e)
            raise
        self._board = updated
        self._is_dirty = True
        self._revision += 1
        logger.debug("session: %s on board %s (%d pages)", operation, updated.id, len(updated.pages))
        return updated

    def _page_update(self, page_id: str, fn: Callable[[Page, Grid], Page]) -> Callable[[Board], Board]:
        def build(board: Board) -> Board:
            page = board_model.require_page(board, page_id)
            return board_model.replace_page(board, fn(page, board.grid))
        return build

    def _owning_page_id(self, item_id: str) -> str:
        board = self._require_board()
        for page in board.pages:
            if page.find_button(item_id) is not None or page.find_video_player(item_id) is not None:
                return page.id
        raise UnknownButtonError(item_id)

    def add_button(
        self,
        row: int,
        col: int,
        label: str,
        *,
        page_id: str | None = None,
        **fields: Any,
    ) -> Button:
        """Add a button to the current page (or `page_id`) and select it."""
        target = page_id or self._require_current_page_id()
        draft = make_button(row, col, label, **fields)
        self._commit("add_button", self._page_update(target, lambda p, g: page_model.add_button(p, g, draft)))
        if self._is_edit_mode:
            self._selected_button_id = draft.id
        return draft

    def update_button(self, button_id: str, **patch: Any) -> Button:
        page_id = self._owning_page_id(button_id)
        board = self._commit(
            "update_button",
            self._page_update(page_id, lambda p, g: page_model.update_button(p, g, button_id, **patch)),
        )
        return board.find_button(button_id)[1]  # type: ignore[index]

    def update_button_action(self, button_id: str, field: str, value: Any) -> Button:
        """Change one field of a button's action; field "type" switches the variant."""
        found = self._require_board().find_button(button_id)
        if found is None:
            raise UnknownButtonError(button_id)
        button = found[1]
        action = retarget(button.action, field, value, label=button.label)
        return self.update_button(button_id, action=action)

    def delete_button(self, button_id: str) -> None:
        page_id = self._owning_page_id(button_id)
        self._commit(
            "delete_button",
            self._page_update(page_id, lambda p, g: page_model.remove_button(p, button_id)),
        )
        if self._selected_button_id == button_id:
            self._selected_button_id = None

    def duplicate_button(self, button_id: str) -> Button:
        """
        Copy a button to the nearest free cell, scanning row-major from the
        original (wrapping). Raises NoSpaceError on a full page.
        """
        page_id = self._owning_page_id(button_id)
        board = self._require_board()
        page = board_model.require_page(board, page_id)
        original = page.find_button(button_id)
        if original is None:
            raise UnknownButtonError(button_id)

        cell = find_free_cell(board.grid, page, (original.row, original.col))
        if cell is None:
            logger.warning("session: duplicate_button rejected (page %s is full)", page_id)
            raise NoSpaceError(page_id)
        copy_ = copy.deepcopy(original)
        copy_.id = new_id("btn")
        copy_.row, copy_.col = cell
        copy_.label = f"{original.label} Copy"

        self._commit(
            "duplicate_button",
            self._page_update(page_id, lambda p, g: page_model.add_button(p, g, copy_)),
        )
        if self._is_edit_mode:
            self._selected_button_id = copy_.id
        return copy_

    def add_video_player(
        self,
        row: int,
        col: int,
        video_id: str,
        *,
        title: str = "",
        row_span: int = 1,
        col_span: int = 1,
        page_id: str | None = None,
    ) -> VideoPlayer:
        target = page_id or self._require_current_page_id()
        draft = page_model.make_video_player(
            row, col, video_id, title=title, row_span=row_span, col_span=col_span
        )
        self._commit(
            "add_video_player",
            self._page_update(target, lambda p, g: page_model.add_video_player(p, g, draft)),
        )
        return draft

    def update_video_player(self, player_id: str, **patch: Any) -> VideoPlayer:
        page_id = self._owning_page_id(player_id)
        board = self._commit(
            "update_video_player",
            self._page_update(page_id, lambda p, g: page_model.update_video_player(p, g, player_id, **patch)),
        )
        return board_model.require_page(board, page_id).find_video_player(player_id)  # type: ignore[return-value]

    def delete_video_player(self, player_id: str) -> None:
        page_id = self._owning_page_id(player_id)
        self._commit(
            "delete_video_player",
            self._page_update(page_id, lambda p, g: page_model.remove_video_player(p, player_id)),
        )

    def add_page(self, name: str | None = None) -> Page:
        """Append a page and make it current."""
        board = self._commit("add_page", lambda b: board_model.add_page(b, name))
        page = board.pages[-1]
        self._current_page_id = page.id
        self._selected_button_id = None
        return page

    def rename_page(self, page_id: str, name: str) -> None:
        self._commit("rename_page", lambda b: board_model.rename_page(b, page_id, name))

    def delete_page(self, page_id: str) -> None:
        """Delete a page. If it was current, the page now at its index (clamped) becomes current."""
        index = self._require_board().page_index(page_id)
        board = self._commit("delete_page", lambda b: board_model.delete_page(b, page_id))
        if self._current_page_id == page_id:
            self._current_page_id = board.pages[min(index, len(board.pages) - 1)].id
            self._selected_button_id = None
        self._forget_missing(board)

    def _forget_missing(self, board: Board) -> None:
        """Drop pages and a selection that no longer exist from the editor state."""
        if board.find_page(self._current_page_id) is None:
            self._current_page_id = board.home_page.id
            self._selected_button_id = None
        if self._selected_button_id and board.find_button(self._selected_button_id) is None:
            self._selected_button_id = None
        if any(board.find_page(p) is None for p in self._history):
            kept = (p for p in self._history if board.find_page(p) is not None)
            self._history = deque(kept, maxlen=self.history_limit)
            if not self._is_edit_mode and (not self._history or self._history[-1] != self._current_page_id):
                self._history.append(self._current_page_id)  # type: ignore[arg-type]

    def reorder_pages(self, from_index: int, to_index: int) -> None:
        board = self._require_board()
        count = len(board.pages)
        if from_index == to_index or not (0 <= from_index < count) or not (0 <= to_index < count):
            return
        self._commit("reorder_pages", lambda b: board_model.reorder_pages(b, from_index, to_index))

    def resize_grid(self, rows: int, cols: int) -> None:
        """Resize every page. Occupants that no longer fit are dropped."""
        self._commit("resize_grid", lambda b: board_model.resize_grid(b, Grid(rows, cols), self.max_grid))
        if self._selected_button_id and self._require_board().find_button(self._selected_button_id) is None:
            self._selected_button_id = None

    def update_board(
        self,
        *,
        name: str | None = None,
        cover_image: CoverImage | None = None,
        rows: int | None = None,
        cols: int | None = None,
    ) -> None:
        """Board-level metadata and, when rows/cols are given, the grid. Applied as one edit."""
        current = self._require_board().grid

        def build(board: Board) -> Board:
            updated = board_model.update_metadata(board, name=name, cover_image=cover_image)
            if rows is not None or cols is not None:
                grid = Grid(rows if rows is not None else current.rows, cols if cols is not None else current.cols)
                updated = board_model.resize_grid(updated, grid, self.max_grid)
            return updated

        self._commit("update_board", build)
        if self._selected_button_id and self._require_board().find_button(self._selected_button_id) is None:
            self._selected_button_id = None

    def merge_generated_pages(self, pages: list[Page | dict[str, Any]]) -> list[Page]:
        """Append generated pages and open the first of them."""
        if not pages:
            return []
        before = len(self._require_board().pages)
        board = self._commit("merge_generated_pages", lambda b: merge_generated_pages(b, pages, self.max_grid))
        added = board.pages[before:]
        self._current_page_id = added[0].id
        self._selected_button_id = None
        return added

    def apply_board_update(self, update: BoardUpdate | dict[str, Any]) -> Board:
        """
        Apply a generated page/button delta as one edit. If the current page
        was deleted the home page becomes current.
        """
        board = self._commit("apply_board_update", lambda b: apply_board_update(b, update, self.max_grid))
        self._forget_missing(board)
        return board

    # -----------------------------------------------------------------------
    # Persistence
    # -----------------------------------------------------------------------

    async def save(self, owner_id: str | None = None) -> Board:
        """
        Persist the board.

        Only one save runs at a time. A second call while one is pending
        returns the same result if the board has not changed since that save
        started, and raises SaveInProgressError otherwise.
        """
        board = self._require_board()
        storage = self._require_storage()

        if self.is_saving:
            if self._save_revision == self._revision:
                return await asyncio.shield(self._save_task)  # type: ignore[arg-type]
            raise SaveInProgressError("A save is already in progress")

        revision = self._revision
        self._save_revision = revision
        self._save_task = asyncio.ensure_future(
            self._save(storage, copy.deepcopy(board), revision, self._generation, owner_id)
        )
        return await asyncio.shield(self._save_task)

    async def _save(
        self,
        storage: BoardStorage,
        board: Board,
        revision: int,
        generation: int,
        owner_id: str | None,
    ) -> Board:
        try:
            saved = await storage.save_board(board, owner_id)
        except Exception as e:
            logger.warning("session: save failed for board %s: %s", board.id, e)
            raise SaveFailedError(f"Failed to save board: {e}") from e

        if self._board is not None and self._revision == revision:
            self._board = copy.deepcopy(saved)
            self._is_dirty = False
        elif self._board is not None and self._generation == generation and not self._board.id:
            # Edited while saving: keep the edits (still dirty) but adopt the new id.
            self._board.id = saved.id
        logger.info("session: saved board %s", saved.id)
        return saved

    # -----------------------------------------------------------------------
    # Guards
    # -----------------------------------------------------------------------

    def _require_board(self) -> Board:
        if self._board is None:
            raise NoBoardLoadedError("No board loaded")
        return self._board

    def _require_current_page_id(self) -> str:
        self._require_board()
        return self._current_page_id  # type: ignore[return-value]

    def _require_storage(self) -> BoardStorage:
        if self.storage is None:
            raise SaveFailedError("No storage configured")
        return self.storage
