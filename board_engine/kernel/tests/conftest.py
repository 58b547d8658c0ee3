"""
Board kernel test configuration.

Postgres storage tests are skipped automatically when DATABASE_URL is not set.
"""

import pytest

from board_engine.kernel.tests.builders import make_board
from board_engine.kernel.types import Button, Link, Speak


@pytest.fixture
def board():
    """3x3 board with one page and one button at (0, 0)."""
    b = make_board()
    b.pages[0].buttons.append(Button(id="btn_hello", row=0, col=0, label="Hello", action=Speak(text="Hello")))
    return b


@pytest.fixture
def nav_board():
    """3x3 board with pages A, B, C; A links to B, B links to C."""
    b = make_board(page_ids=("page_a", "page_b", "page_c"))
    b.pages[0].buttons.append(Button(id="btn_to_b", row=0, col=0, label="To B", action=Link(to_page_id="page_b")))
    b.pages[1].buttons.append(Button(id="btn_to_c", row=0, col=0, label="To C", action=Link(to_page_id="page_c")))
    b.pages[2].buttons.append(Button(id="btn_c_hi", row=0, col=0, label="Hi", action=Speak(text="Hi")))
    return b
