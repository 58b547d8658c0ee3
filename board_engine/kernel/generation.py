"""
Board Kernel: Generated Page Merging

Generated pages (from the board generation service) enter the board through
the same invariants as manual edits. Before validation they are normalised:

- blank or colliding page ids are regenerated
- blank or colliding button / video ids are regenerated
- labels are cut to GENERATED_LABEL_MAX, spoken text to GENERATED_SPOKEN_TEXT_MAX
- buttons outside the grid or on an occupied cell move to the next free cell
  (row-major from the top left); a full page raises NoSpaceError
- video regions that do not fit, or overlap, are dropped

A board update is a delta against the current board (deleted pages and
buttons, edited or moved buttons, new pages, new buttons). It is applied to a
copy in that order and validated the same way.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from pydantic import ValidationError

from board_engine.kernel.actions import make_button
from board_engine.kernel.board import default_page_name
from board_engine.kernel.errors import InvalidBoardError, LastPageError, NoSpaceError
from board_engine.kernel.grid import (
    cell_occupant,
    find_free_cell,
    in_bounds,
    iter_cells,
    occupied_cells,
    region_in_bounds,
)
from board_engine.kernel.types import (
    GENERATED_BUTTON_COLOR,
    GENERATED_LABEL_MAX,
    GENERATED_SPOKEN_TEXT_MAX,
    MAX_GRID_DIMENSION,
    Board,
    Button,
    Grid,
    Link,
    Page,
    Speak,
    new_id,
)
from board_engine.kernel.validation import ensure_valid
from board_engine.models.generation import BoardUpdate, ButtonEdit

logger = logging.getLogger(__name__)


def sanitize_button(button: Button) -> Button:
    """Truncate generated label / spoken text in place and return the button."""
    if len(button.label) > GENERATED_LABEL_MAX:
        logger.warning("generation: truncating label of button %s", button.id)
        button.label = button.label[:GENERATED_LABEL_MAX]
    if button.spoken_text and len(button.spoken_text) > GENERATED_SPOKEN_TEXT_MAX:
        logger.warning("generation: truncating spoken text of button %s", button.id)
        button.spoken_text = button.spoken_text[:GENERATED_SPOKEN_TEXT_MAX]
    return button


def _place_buttons(page: Page, grid: Grid) -> None:
    """Keep each button where it asked to be when that cell is free; otherwise reposition."""
    placed = Page(id=page.id, name=page.name, video_players=[])
    for player in page.video_players:
        if not region_in_bounds(grid, player.row, player.col, player.row_span, player.col_span):
            logger.warning("generation: dropping video %s on page %s (does not fit)", player.id, page.id)
            continue
        if any(cell_occupant(placed, r, c) is not None for r, c in player.cells()):
            logger.warning("generation: dropping video %s on page %s (overlaps)", player.id, page.id)
            continue
        placed.video_players.append(player)

    for button in page.buttons:
        cell = (button.row, button.col)
        if not in_bounds(grid, *cell) or cell_occupant(placed, *cell) is not None:
            free = find_free_cell(grid, placed)
            if free is None:
                raise NoSpaceError(page.id)
            logger.warning(
                "generation: moved button %s on page %s from %s to %s",
                button.id, page.id, cell, free,
            )
            button.row, button.col = free
        placed.buttons.append(button)

    page.buttons = placed.buttons
    page.video_players = placed.video_players


def normalize_generated_page(
    raw: Page | dict[str, Any],
    grid: Grid,
    taken_page_ids: set[str],
    taken_item_ids: set[str],
) -> Page:
    """Normalise one generated page against the ids already in use. Updates both id sets."""
    page = copy.deepcopy(raw) if isinstance(raw, Page) else Page.from_dict(raw)

    if not page.id or page.id in taken_page_ids:
        page.id = new_id("page")
    taken_page_ids.add(page.id)
    if not page.name.strip():
        page.name = f"Page {len(taken_page_ids)}"

    for item in [*page.buttons, *page.video_players]:
        if not item.id or item.id in taken_item_ids:
            item.id = new_id("btn" if isinstance(item, Button) else "video")
        taken_item_ids.add(item.id)

    for button in page.buttons:
        sanitize_button(button)

    _place_buttons(page, grid)
    return page


def merge_generated_pages(
    board: Board,
    new_pages: list[Page | dict[str, Any]],
    max_grid: int = MAX_GRID_DIMENSION,
) -> Board:
    """
    Append generated pages to the board.

    Accepts Page objects or their persisted dict form. The merged board must
    pass ensure_valid; otherwise the error propagates and `board` is untouched.
    """
    taken_pages = {p.id for p in board.pages}
    taken_items = {item.id for p in board.pages for item in [*p.buttons, *p.video_players]}

    merged = copy.deepcopy(board)
    for raw in new_pages:
        merged.pages.append(normalize_generated_page(raw, board.grid, taken_pages, taken_items))

    ensure_valid(merged, max_grid)
    return merged


# ---------------------------------------------------------------------------
# Board updates
# ---------------------------------------------------------------------------


def _truncate(text: str | None, limit: int) -> str | None:
    if text and len(text) > limit:
        return text[:limit]
    return text


def _next_position(
    grid: Grid,
    page: Page,
    row: int | None,
    col: int | None,
    *,
    ignore_id: str | None = None,
) -> tuple[int, int]:
    """
    The requested cell, clamped into the grid, when it is free; otherwise the
    first free cell row-major from the top left.
    """
    occupied = occupied_cells(page, ignore_id=ignore_id)
    if row is not None and col is not None:
        cell = (min(max(row, 0), grid.rows - 1), min(max(col, 0), grid.cols - 1))
        if cell not in occupied:
            return cell
    for cell in iter_cells(grid):
        if cell not in occupied:
            return cell
    raise NoSpaceError(page.id)


def _apply_edit(board: Board, edit: ButtonEdit) -> None:
    found = board.find_button(edit.id)
    if found is None:
        logger.warning("generation: skipping edit for unknown button %s", edit.id)
        return
    page, button = found
    given = edit.model_fields_set

    if "label" in given and edit.label is not None:
        button.label = _truncate(edit.label, GENERATED_LABEL_MAX)  # type: ignore[assignment]
    if "spoken_text" in given:
        button.spoken_text = _truncate(edit.spoken_text, GENERATED_SPOKEN_TEXT_MAX)
    if "color" in given:
        button.color = edit.color
    if "icon_ref" in given:
        button.icon_ref = edit.icon_ref
    if "self_closing" in given:
        button.self_closing = edit.self_closing

    if "link_page_id" in given:
        button.action = Link(to_page_id=edit.link_page_id)
    elif button.spoken_text and "spoken_text" in given:
        button.action = Speak(text=button.spoken_text)

    target = page
    if edit.page_id and edit.page_id != page.id:
        target = board.find_page(edit.page_id) or page
        if target is page:
            logger.warning("generation: button %s not moved, unknown page %s", edit.id, edit.page_id)

    if target is not page:
        page.buttons = [b for b in page.buttons if b.id != button.id]
        button.row, button.col = _next_position(board.grid, target, edit.row, edit.col)
        target.buttons.append(button)
    elif "row" in given or "col" in given:
        row = edit.row if edit.row is not None else button.row
        col = edit.col if edit.col is not None else button.col
        button.row, button.col = _next_position(board.grid, page, row, col, ignore_id=button.id)


def apply_board_update(
    board: Board,
    update: BoardUpdate | dict[str, Any],
    max_grid: int = MAX_GRID_DIMENSION,
) -> Board:
    """
    Apply a generated delta to a copy of `board`.

    Steps run in order: delete pages, delete buttons, edit (and move) buttons,
    add pages, add buttons. Buttons that need a cell take the requested one if
    it is free, otherwise the next free cell. Edits for unknown buttons and new
    buttons for unknown pages are skipped with a warning.

    Raises InvalidBoardError for a malformed update, LastPageError if every
    page would be deleted, NoSpaceError when a page is full, and whatever
    ensure_valid raises for the result. `board` is never modified.
    """
    if not isinstance(update, BoardUpdate):
        try:
            update = BoardUpdate.model_validate(update)
        except ValidationError as e:
            messages = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
            raise InvalidBoardError(f"Malformed board update: {messages[0]}", messages) from e

    updated = copy.deepcopy(board)

    if update.deleted_page_ids:
        deleted = set(update.deleted_page_ids)
        remaining = [p for p in updated.pages if p.id not in deleted]
        if not remaining:
            raise LastPageError(updated.pages[0].id)
        updated.pages = remaining

    if update.deleted_button_ids:
        deleted = set(update.deleted_button_ids)
        for page in updated.pages:
            page.buttons = [b for b in page.buttons if b.id not in deleted]

    for edit in update.edited_buttons:
        _apply_edit(updated, edit)

    for spec in update.new_pages:
        if spec.id and updated.find_page(spec.id) is not None:
            continue
        name = spec.name.strip() or default_page_name(updated)
        updated.pages.append(Page(id=spec.id or new_id("page"), name=name))

    for spec in update.new_buttons:
        page = updated.find_page(spec.page_id)
        if page is None:
            logger.warning("generation: skipping button %r, unknown page %s", spec.label, spec.page_id)
            continue
        label = _truncate(spec.label, GENERATED_LABEL_MAX) or ""
        spoken = _truncate(spec.spoken_text, GENERATED_SPOKEN_TEXT_MAX) or label
        action = Link(to_page_id=spec.link_page_id) if spec.link_page_id else Speak(text=spoken)
        row, col = _next_position(updated.grid, page, spec.row, spec.col)
        page.buttons.append(
            make_button(
                row,
                col,
                label,
                action=action,
                spoken_text=spoken,
                color=spec.color or GENERATED_BUTTON_COLOR,
                icon_ref=spec.icon_ref,
                symbol_path=spec.symbol_path,
                self_closing=spec.self_closing,
            )
        )

    ensure_valid(updated, max_grid)
    logger.info(
        "generation: applied board update (%d new pages, %d new buttons, %d edits)",
        len(update.new_pages), len(update.new_buttons), len(update.edited_buttons),
    )
    return updated
