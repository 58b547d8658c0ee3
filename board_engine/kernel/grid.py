"""
Board Kernel: Grid Geometry

Pure predicates over (rows, cols) and (row, col). No state, no errors:
negative or oversized indices are simply "out of bounds" / "not occupied".
"""

from __future__ import annotations

from collections.abc import Iterator

from board_engine.kernel.types import Grid, Occupant, Page


def in_bounds(grid: Grid, row: int, col: int) -> bool:
    return 0 <= row < grid.rows and 0 <= col < grid.cols


def region_in_bounds(grid: Grid, row: int, col: int, row_span: int, col_span: int) -> bool:
    """True if the whole rectangle [row, row+row_span) x [col, col+col_span) fits the grid."""
    if row_span < 1 or col_span < 1:
        return False
    return in_bounds(grid, row, col) and in_bounds(grid, row + row_span - 1, col + col_span - 1)


def cell_occupant(page: Page, row: int, col: int) -> Occupant | None:
    """Return the button at (row, col), or the video region covering it, or None."""
    for button in page.buttons:
        if button.row == row and button.col == col:
            return button
    for player in page.video_players:
        if player.contains(row, col):
            return player
    return None


def occupied_cells(page: Page, *, ignore_id: str | None = None) -> dict[tuple[int, int], str]:
    """Map every covered cell to the id of its occupant, skipping `ignore_id`."""
    cells: dict[tuple[int, int], str] = {}
    for button in page.buttons:
        if button.id != ignore_id:
            cells[(button.row, button.col)] = button.id
    for player in page.video_players:
        if player.id != ignore_id:
            for cell in player.cells():
                cells[cell] = player.id
    return cells


def iter_cells(grid: Grid, start: tuple[int, int] = (0, 0)) -> Iterator[tuple[int, int]]:
    """
    Every cell of the grid in row-major order, beginning at `start` and
    wrapping around to the cells before it.
    """
    total = grid.cell_count
    if total == 0:
        return
    row, col = start
    offset = row * grid.cols + col if in_bounds(grid, row, col) else 0
    for i in range(total):
        index = (offset + i) % total
        yield divmod(index, grid.cols)


def find_free_cell(
    grid: Grid,
    page: Page,
    start: tuple[int, int] = (0, 0),
    *,
    taken: set[tuple[int, int]] | None = None,
) -> tuple[int, int] | None:
    """
    Nearest unoccupied cell scanning row-major from `start` (inclusive).
    `taken` adds cells to treat as occupied on top of the page's own occupants.
    """
    occupied = set(occupied_cells(page))
    if taken:
        occupied |= taken
    for cell in iter_cells(grid, start):
        if cell not in occupied:
            return cell
    return None
