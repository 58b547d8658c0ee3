"""
Board Kernel: Errors

Every kernel error is local and recoverable. A function that raises one of
these has not changed anything the caller holds.
"""

from __future__ import annotations


class BoardError(Exception):
    """Base class for all board kernel errors."""
    pass


class CellOccupiedError(BoardError):
    """Target cell is already covered by a button or a video region."""

    def __init__(self, row: int, col: int, occupant_id: str | None = None) -> None:
        self.row = row
        self.col = col
        self.occupant_id = occupant_id
        detail = f" by {occupant_id}" if occupant_id else ""
        super().__init__(f"Cell ({row}, {col}) is already occupied{detail}")


class OutOfBoundsError(BoardError):
    """Position or grid size violates the grid bounds."""
    pass


class LastPageError(BoardError):
    """Attempted to delete the only page of a board."""

    def __init__(self, page_id: str) -> None:
        self.page_id = page_id
        super().__init__("A board must keep at least one page")


class NoSpaceError(BoardError):
    """No free cell left on the page."""

    def __init__(self, page_id: str) -> None:
        self.page_id = page_id
        super().__init__(f"Page {page_id} has no free cell")


class UnknownPageReferenceError(BoardError):
    """Page id does not belong to the board."""

    def __init__(self, page_id: str | None) -> None:
        self.page_id = page_id
        super().__init__(f"Unknown page: {page_id!r}")


class UnknownButtonError(BoardError):
    """Button (or video region) id does not belong to the page or board."""

    def __init__(self, button_id: str | None) -> None:
        self.button_id = button_id
        super().__init__(f"Unknown button: {button_id!r}")


class InvalidActionError(BoardError):
    """Action field does not belong to the action's variant."""
    pass


class InvalidBoardError(BoardError):
    """Board fails structural validation or is malformed input."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        self.errors = errors or [message]
        super().__init__(message)


class NoBoardLoadedError(BoardError):
    """Session operation requires a loaded board."""
    pass


class UnsavedChangesError(BoardError):
    """Replacing or unloading a board with unsaved edits requires an explicit discard."""
    pass


class SaveInProgressError(BoardError):
    """A save is already in flight for a different revision of the board."""
    pass


class SaveFailedError(BoardError):
    """The persistence collaborator failed; the session state is unchanged."""
    pass


class BoardNotFound(BoardError):
    """Board does not exist in storage."""

    def __init__(self, board_id: str) -> None:
        self.board_id = board_id
        super().__init__(f"Board not found: {board_id}")
