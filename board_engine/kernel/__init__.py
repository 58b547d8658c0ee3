"""
Board Kernel: the board IR and its editing/navigation engine.

Components:
  types        board / page / button / action data model
  grid         pure cell geometry
  actions      button construction and action retyping
  page, board  pure model operations (deep copy on mutation)
  validation   whole-board invariants
  interpreter  (button, board) -> commands
  generation   generated pages and board updates
  session      EditorSession: edit/preview state machine over one board
  storage      persistence collaborator (MemoryStorage, PostgresStorage)
"""

from board_engine.kernel.errors import (
    BoardError,
    BoardNotFound,
    CellOccupiedError,
    InvalidActionError,
    InvalidBoardError,
    LastPageError,
    NoBoardLoadedError,
    NoSpaceError,
    OutOfBoundsError,
    SaveFailedError,
    SaveInProgressError,
    UnknownButtonError,
    UnknownPageReferenceError,
    UnsavedChangesError,
)
from board_engine.kernel.session import EditorSession
from board_engine.kernel.storage import BoardStorage, MemoryStorage
from board_engine.kernel.types import (
    Back,
    Board,
    Bookmark,
    Button,
    CoverImage,
    Grid,
    Home,
    Link,
    Page,
    Speak,
    VideoPlayer,
    Youtube,
)
from board_engine.kernel.validation import validate_board

__all__ = [
    "EditorSession",
    "BoardStorage",
    "MemoryStorage",
    "validate_board",
    "Board",
    "Page",
    "Button",
    "VideoPlayer",
    "Grid",
    "CoverImage",
    "Speak",
    "Back",
    "Home",
    "Link",
    "Youtube",
    "Bookmark",
    "BoardError",
    "BoardNotFound",
    "CellOccupiedError",
    "InvalidActionError",
    "InvalidBoardError",
    "LastPageError",
    "NoBoardLoadedError",
    "NoSpaceError",
    "OutOfBoundsError",
    "SaveFailedError",
    "SaveInProgressError",
    "UnknownButtonError",
    "UnknownPageReferenceError",
    "UnsavedChangesError",
]
