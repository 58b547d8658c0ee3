"""
Board Kernel: Board Validation

Whole-board checks run after every session mutation.

Errors are invariant violations: a board with errors is never committed.
Warnings are advisory (long labels, odd colours, dangling links) and never
block an edit. An unconfigured or dangling Link is a warning, not an error,
because leaving a link unset is a normal editing state.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from board_engine.kernel.errors import InvalidBoardError
from board_engine.kernel.grid import in_bounds, region_in_bounds
from board_engine.kernel.types import (
    BASIC_COLOR_NAMES,
    LABEL_WARN_LENGTH,
    MAX_GRID_DIMENSION,
    SPOKEN_TEXT_WARN_LENGTH,
    Board,
    Grid,
    Link,
    Page,
    Speak,
)

_HEX_COLOR = re.compile(r"^#([0-9a-f]{3}|[0-9a-f]{6}|[0-9a-f]{8})$", re.IGNORECASE)


@dataclass
class ValidationReport:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def is_valid_color(color: str) -> bool:
    return bool(_HEX_COLOR.match(color)) or color.lower() in BASIC_COLOR_NAMES


def validate_board(board: Board, max_grid: int = MAX_GRID_DIMENSION) -> ValidationReport:
    report = ValidationReport()

    if not board.name.strip():
        report.errors.append("Board must have a name")

    grid = board.grid
    if grid.rows < 1 or grid.cols < 1:
        report.errors.append("Board must have valid grid dimensions")
    elif grid.rows > max_grid or grid.cols > max_grid:
        report.errors.append(f"Grid dimensions cannot exceed {max_grid}x{max_grid}")

    if not board.pages:
        report.errors.append("Board must have at least one page")

    page_ids = {p.id for p in board.pages}
    if len(page_ids) != len(board.pages):
        report.errors.append("Page ids must be unique")

    seen_ids: set[str] = set()
    for index, page in enumerate(board.pages):
        _validate_page(page, index, grid, page_ids, seen_ids, report)

    return report


def _validate_page(
    page: Page,
    index: int,
    grid: Grid,
    page_ids: set[str],
    seen_ids: set[str],
    report: ValidationReport,
) -> None:
    where = f"Page {index + 1}"

    if not page.id:
        report.errors.append(f"{where} must have an id")
    if not page.name.strip():
        report.errors.append(f"{where} must have a name")
    if not page.buttons and not page.video_players:
        report.warnings.append(f"{where} has no buttons")

    cells: dict[tuple[int, int], str] = {}

    def claim(cell: tuple[int, int], owner: str) -> None:
        other = cells.get(cell)
        if other is not None:
            report.errors.append(f"{where}: {owner} overlaps {other} at {cell}")
        else:
            cells[cell] = owner

    for button in page.buttons:
        label = f"Button {button.label!r}"
        if not button.id:
            report.errors.append(f"{where}, {label}: button must have an id")
        elif button.id in seen_ids:
            report.errors.append(f"{where}, {label}: duplicate id {button.id}")
        seen_ids.add(button.id)

        if not button.label.strip():
            report.errors.append(f"{where}: button {button.id} must have a label")
        elif len(button.label) > LABEL_WARN_LENGTH:
            report.warnings.append(f"{where}, {label}: label is very long and may not display properly")

        if not in_bounds(grid, button.row, button.col):
            report.errors.append(
                f"{where}, {label}: ({button.row}, {button.col}) is outside the {grid.rows}x{grid.cols} grid"
            )
        else:
            claim((button.row, button.col), button.id)

        if button.color and not is_valid_color(button.color):
            report.warnings.append(f"{where}, {label}: colour {button.color!r} may not be valid")
        if button.spoken_text and len(button.spoken_text) > SPOKEN_TEXT_WARN_LENGTH:
            report.warnings.append(f"{where}, {label}: spoken text is very long")

        action = button.action
        if isinstance(action, Speak) and not action.text.strip():
            report.warnings.append(f"{where}, {label}: speak action has no text")
        elif isinstance(action, Link):
            if not action.is_configured:
                report.warnings.append(f"{where}, {label}: link has no target page")
            elif action.to_page_id not in page_ids:
                report.warnings.append(f"{where}, {label}: link targets unknown page {action.to_page_id!r}")

    for player in page.video_players:
        name = f"Video {player.id}"
        if not player.id:
            report.errors.append(f"{where}: video region must have an id")
        elif player.id in seen_ids:
            report.errors.append(f"{where}, {name}: duplicate id")
        seen_ids.add(player.id)

        if player.row_span < 1 or player.col_span < 1:
            report.errors.append(f"{where}, {name}: spans must be at least 1")
            continue
        if not region_in_bounds(grid, player.row, player.col, player.row_span, player.col_span):
            report.errors.append(f"{where}, {name}: region does not fit the {grid.rows}x{grid.cols} grid")
            continue
        for cell in player.cells():
            claim(cell, player.id)


def ensure_valid(board: Board, max_grid: int = MAX_GRID_DIMENSION) -> ValidationReport:
    """Raise InvalidBoardError if the board breaks an invariant; otherwise return the report."""
    report = validate_board(board, max_grid)
    if report.errors:
        raise InvalidBoardError(report.errors[0], report.errors)
    return report
