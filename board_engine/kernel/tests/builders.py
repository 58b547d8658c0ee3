"""Builders for small boards used across the kernel tests."""

from board_engine.kernel.types import Board, Button, Grid, Page, Speak


def make_board(rows: int = 3, cols: int = 3, page_ids: tuple[str, ...] = ("page_a",)) -> Board:
    return Board(
        id="board_test",
        name="Test Board",
        grid=Grid(rows, cols),
        pages=[Page(id=pid, name=pid.replace("_", " ").title()) for pid in page_ids],
    )


def fill_page(page: Page, grid: Grid, *, skip: set[tuple[int, int]] | None = None) -> None:
    """Put a speak button on every cell of `page` except `skip`."""
    skip = skip or set()
    for row in range(grid.rows):
        for col in range(grid.cols):
            if (row, col) in skip:
                continue
            page.buttons.append(
                Button(
                    id=f"btn_{page.id}_{row}_{col}",
                    row=row,
                    col=col,
                    label=f"B{row}{col}",
                    action=Speak(text=f"B{row}{col}"),
                )
            )
