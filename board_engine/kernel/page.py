"""
Board Kernel: Page Model

Pure functions: (page, ...) -> new page. The input page is never modified
(deep copy on mutation); a raised error leaves it exactly as it was.

A cell holds at most one occupant: one button, or one video region covering it.
"""

from __future__ import annotations

import copy
import dataclasses
from typing import Any

from board_engine.kernel.errors import (
    CellOccupiedError,
    OutOfBoundsError,
    UnknownButtonError,
)
from board_engine.kernel.grid import in_bounds, occupied_cells, region_in_bounds
from board_engine.kernel.types import Button, Grid, Page, VideoPlayer, new_id

# Attributes that can never be patched
_IMMUTABLE_FIELDS = {"id"}

_BUTTON_FIELDS = {f.name for f in dataclasses.fields(Button)}
_VIDEO_FIELDS = {f.name for f in dataclasses.fields(VideoPlayer)}


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _check_cell(page: Page, grid: Grid, row: int, col: int, *, ignore_id: str | None = None) -> None:
    if not in_bounds(grid, row, col):
        raise OutOfBoundsError(
            f"Cell ({row}, {col}) is outside the {grid.rows}x{grid.cols} grid"
        )
    occupant = occupied_cells(page, ignore_id=ignore_id).get((row, col))
    if occupant is not None:
        raise CellOccupiedError(row, col, occupant)


def _check_region(page: Page, grid: Grid, player: VideoPlayer, *, ignore_id: str | None = None) -> None:
    if not region_in_bounds(grid, player.row, player.col, player.row_span, player.col_span):
        raise OutOfBoundsError(
            f"Video region at ({player.row}, {player.col}) spanning "
            f"{player.row_span}x{player.col_span} does not fit the {grid.rows}x{grid.cols} grid"
        )
    occupied = occupied_cells(page, ignore_id=ignore_id)
    for cell in player.cells():
        if cell in occupied:
            raise CellOccupiedError(cell[0], cell[1], occupied[cell])


def _check_patch(patch: dict[str, Any], allowed: set[str]) -> None:
    for key in patch:
        if key in _IMMUTABLE_FIELDS:
            raise ValueError(f"'{key}' cannot be changed")
        if key not in allowed:
            raise ValueError(f"Unknown field: {key}")


# ---------------------------------------------------------------------------
# Buttons
# ---------------------------------------------------------------------------


def add_button(page: Page, grid: Grid, draft: Button) -> Page:
    """
    Append `draft` to the page.

    Raises OutOfBoundsError if the cell is outside the grid and
    CellOccupiedError if a button or video region already covers it.
    """
    if page.find_button(draft.id) is not None:
        raise ValueError(f"Button id already on page: {draft.id}")
    _check_cell(page, grid, draft.row, draft.col)
    new_page = copy.deepcopy(page)
    new_page.buttons.append(copy.deepcopy(draft))
    return new_page


def remove_button(page: Page, button_id: str) -> Page:
    if page.find_button(button_id) is None:
        raise UnknownButtonError(button_id)
    new_page = copy.deepcopy(page)
    new_page.buttons = [b for b in new_page.buttons if b.id != button_id]
    return new_page


def update_button(page: Page, grid: Grid, button_id: str, **patch: Any) -> Page:
    """
    Apply `patch` (Button attribute names) to one button.

    A changed row/col is checked against bounds and occupancy before anything
    is applied.
    """
    button = page.find_button(button_id)
    if button is None:
        raise UnknownButtonError(button_id)
    _check_patch(patch, _BUTTON_FIELDS)

    row = patch.get("row", button.row)
    col = patch.get("col", button.col)
    if (row, col) != (button.row, button.col):
        _check_cell(page, grid, row, col, ignore_id=button_id)

    new_page = copy.deepcopy(page)
    new_page.buttons = [
        dataclasses.replace(b, **patch) if b.id == button_id else b
        for b in new_page.buttons
    ]
    return new_page


# ---------------------------------------------------------------------------
# Video regions
# ---------------------------------------------------------------------------


def make_video_player(
    row: int,
    col: int,
    video_id: str,
    *,
    title: str = "",
    row_span: int = 1,
    col_span: int = 1,
    player_id: str | None = None,
) -> VideoPlayer:
    return VideoPlayer(
        id=player_id or new_id("video"),
        row=row,
        col=col,
        row_span=row_span,
        col_span=col_span,
        video_id=video_id,
        title=title,
    )


def add_video_player(page: Page, grid: Grid, draft: VideoPlayer) -> Page:
    if page.find_video_player(draft.id) is not None:
        raise ValueError(f"Video region id already on page: {draft.id}")
    _check_region(page, grid, draft)
    new_page = copy.deepcopy(page)
    new_page.video_players.append(copy.deepcopy(draft))
    return new_page


def update_video_player(page: Page, grid: Grid, player_id: str, **patch: Any) -> Page:
    player = page.find_video_player(player_id)
    if player is None:
        raise UnknownButtonError(player_id)
    _check_patch(patch, _VIDEO_FIELDS)

    updated = dataclasses.replace(player, **patch)
    _check_region(page, grid, updated, ignore_id=player_id)

    new_page = copy.deepcopy(page)
    new_page.video_players = [
        copy.deepcopy(updated) if p.id == player_id else p
        for p in new_page.video_players
    ]
    return new_page


def remove_video_player(page: Page, player_id: str) -> Page:
    if page.find_video_player(player_id) is None:
        raise UnknownButtonError(player_id)
    new_page = copy.deepcopy(page)
    new_page.video_players = [p for p in new_page.video_players if p.id != player_id]
    return new_page


# ---------------------------------------------------------------------------
# Grid changes
# ---------------------------------------------------------------------------


def resize_grid(page: Page, grid: Grid) -> Page:
    """
    Fit the page to a new grid.

    Lossy by policy: buttons whose cell falls outside the new bounds and video
    regions that no longer fit entirely are dropped, not reported.
    """
    new_page = copy.deepcopy(page)
    new_page.buttons = [b for b in new_page.buttons if in_bounds(grid, b.row, b.col)]
    new_page.video_players = [
        p for p in new_page.video_players
        if region_in_bounds(grid, p.row, p.col, p.row_span, p.col_span)
    ]
    return new_page


def new_page(name: str, *, page_id: str | None = None) -> Page:
    return Page(id=page_id or new_id("page"), name=name)
