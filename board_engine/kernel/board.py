"""
Board Kernel: Board Model

Pure functions: (board, ...) -> new board. Same contract as the page model:
deep copy on mutation, and a raised error means nothing changed.

Home page invariant: pages[0] is the home page. Deleting is refused for the
last page, and reordering only ever permutes, so index 0 always exists.
"""

from __future__ import annotations

import copy

from board_engine.kernel import page as page_model
from board_engine.kernel.errors import (
    LastPageError,
    OutOfBoundsError,
    UnknownPageReferenceError,
)
from board_engine.kernel.types import (
    DEFAULT_BOARD_NAME,
    DEFAULT_GRID_COLS,
    DEFAULT_GRID_ROWS,
    MAX_GRID_DIMENSION,
    Board,
    CoverImage,
    Grid,
    Page,
    default_cover_image,
)


def check_grid(grid: Grid, max_dimension: int = MAX_GRID_DIMENSION) -> None:
    """Raise OutOfBoundsError unless 1 <= rows, cols <= max_dimension."""
    if grid.rows < 1 or grid.cols < 1:
        raise OutOfBoundsError(f"Grid must be at least 1x1, got {grid.rows}x{grid.cols}")
    if grid.rows > max_dimension or grid.cols > max_dimension:
        raise OutOfBoundsError(
            f"Grid cannot exceed {max_dimension}x{max_dimension}, got {grid.rows}x{grid.cols}"
        )


def create_empty_board(
    name: str | None = None,
    grid: Grid | None = None,
    max_dimension: int = MAX_GRID_DIMENSION,
) -> Board:
    """A board with a single empty page and the default cover image."""
    grid = grid or Grid(DEFAULT_GRID_ROWS, DEFAULT_GRID_COLS)
    check_grid(grid, max_dimension)
    return Board(
        name=(name or "").strip() or DEFAULT_BOARD_NAME,
        grid=grid,
        pages=[page_model.new_page("Page 1")],
        cover_image=default_cover_image(),
    )


def default_page_name(board: Board) -> str:
    """First unused "Page N" name, starting at N = page count + 1."""
    names = {p.name for p in board.pages}
    n = len(board.pages) + 1
    while f"Page {n}" in names:
        n += 1
    return f"Page {n}"


def require_page(board: Board, page_id: str) -> Page:
    page = board.find_page(page_id)
    if page is None:
        raise UnknownPageReferenceError(page_id)
    return page


def replace_page(board: Board, updated: Page) -> Board:
    """Swap in a new version of an existing page, keeping its position."""
    index = board.page_index(updated.id)
    if index < 0:
        raise UnknownPageReferenceError(updated.id)
    new_board = copy.deepcopy(board)
    new_board.pages[index] = copy.deepcopy(updated)
    return new_board


def add_page(board: Board, name: str | None = None) -> Board:
    """Append an empty page. New pages share the board grid."""
    new_board = copy.deepcopy(board)
    new_board.pages.append(page_model.new_page((name or "").strip() or default_page_name(board)))
    return new_board


def rename_page(board: Board, page_id: str, name: str) -> Board:
    index = board.page_index(page_id)
    if index < 0:
        raise UnknownPageReferenceError(page_id)
    new_board = copy.deepcopy(board)
    new_board.pages[index].name = name.strip()
    return new_board


def reorder_pages(board: Board, from_index: int, to_index: int) -> Board:
    """Move one page. Equal or out-of-range indices return the board unchanged."""
    count = len(board.pages)
    if from_index == to_index or not (0 <= from_index < count) or not (0 <= to_index < count):
        return board
    new_board = copy.deepcopy(board)
    moved = new_board.pages.pop(from_index)
    new_board.pages.insert(to_index, moved)
    return new_board


def delete_page(board: Board, page_id: str) -> Board:
    """
    Remove a page. The caller reselects if it was the current page.

    Raises LastPageError when it is the only page, since pages[0] must exist.
    """
    index = board.page_index(page_id)
    if index < 0:
        raise UnknownPageReferenceError(page_id)
    if len(board.pages) <= 1:
        raise LastPageError(page_id)
    new_board = copy.deepcopy(board)
    del new_board.pages[index]
    return new_board


def resize_grid(board: Board, grid: Grid, max_dimension: int = MAX_GRID_DIMENSION) -> Board:
    """
    Apply a new grid to every page at once.

    An invalid grid raises before any page is touched. Otherwise occupants that
    no longer fit are dropped from every page.
    """
    check_grid(grid, max_dimension)
    new_board = copy.deepcopy(board)
    new_board.grid = grid
    new_board.pages = [page_model.resize_grid(p, grid) for p in board.pages]
    return new_board


def update_metadata(
    board: Board,
    *,
    name: str | None = None,
    cover_image: CoverImage | None = None,
) -> Board:
    new_board = copy.deepcopy(board)
    if name is not None:
        new_board.name = name.strip()
    if cover_image is not None:
        new_board.cover_image = cover_image
    return new_board
