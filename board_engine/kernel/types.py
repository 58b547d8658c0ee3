"""
Board Kernel: Shared Types

Data classes for the board intermediate representation (IR).
These are the contracts that bind the kernel together.

Structure:
- `Board` owns an ordered, non-empty list of `Page`s sharing one `Grid`
- `Page` owns `Button`s (one cell each) and `VideoPlayer` regions (a rectangle of cells)
- `Button.action` is one of the closed set of action variants below
- pages[0] is the home page; there is no separate flag

Every entity has `to_dict()` / `from_dict()` using the persisted camelCase
field names, so `to_dict(from_dict(x)) == x` for any accepted input. Optional
keys that were absent on the way in stay absent on the way out.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, ClassVar, Union

from board_engine.kernel.errors import InvalidBoardError

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_GRID_ROWS = 4
DEFAULT_GRID_COLS = 4
MAX_GRID_DIMENSION = 25

DEFAULT_BOARD_NAME = "Untitled Board"
DEFAULT_COVER_SYMBOL = "syntaacx_logo"
DEFAULT_COVER_BACKGROUND = "#FFFFFFFF"

# Generated content limits
GENERATED_LABEL_MAX = 30
GENERATED_SPOKEN_TEXT_MAX = 100
GENERATED_BUTTON_COLOR = "#6B7280"

# Advisory limits (warnings only)
LABEL_WARN_LENGTH = 50
SPOKEN_TEXT_WARN_LENGTH = 200

BASIC_COLOR_NAMES: set[str] = {
    "red",
    "green",
    "blue",
    "yellow",
    "orange",
    "purple",
    "pink",
    "cyan",
    "black",
    "white",
    "gray",
    "grey",
}


# ---------------------------------------------------------------------------
# Grid / cover
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Grid:
    rows: int
    cols: int

    @property
    def cell_count(self) -> int:
        return max(self.rows, 0) * max(self.cols, 0)

    def to_dict(self) -> dict[str, Any]:
        return {"rows": self.rows, "cols": self.cols}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Grid:
        try:
            return cls(rows=int(d["rows"]), cols=int(d["cols"]))
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidBoardError(f"Malformed grid: {d!r}") from e


@dataclass(frozen=True)
class CoverImage:
    symbol_path: str
    background_color: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"symbolPath": self.symbol_path}
        if self.background_color is not None:
            d["backgroundColor"] = self.background_color
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> CoverImage:
        return cls(symbol_path=d.get("symbolPath", ""), background_color=d.get("backgroundColor"))


def default_cover_image() -> CoverImage:
    return CoverImage(symbol_path=DEFAULT_COVER_SYMBOL, background_color=DEFAULT_COVER_BACKGROUND)


# ---------------------------------------------------------------------------
# Actions (closed sum type)
# ---------------------------------------------------------------------------
#
# Variants with a payload carry `present`: the persisted keys that were in the
# source dict. None means "built in code" and every key is written.


def _action_dict(action: Any, values: dict[str, Any]) -> dict[str, Any]:
    d: dict[str, Any] = {"type": action.type}
    for key, value in values.items():
        if action.present is None or key in action.present:
            d[key] = value
    return d


@dataclass(frozen=True)
class Speak:
    type: ClassVar[str] = "speak"
    text: str = ""
    present: frozenset[str] | None = field(default=None, compare=False, repr=False)

    def to_dict(self) -> dict[str, Any]:
        return _action_dict(self, {"text": self.text})


@dataclass(frozen=True)
class Back:
    type: ClassVar[str] = "back"

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type}


@dataclass(frozen=True)
class Home:
    type: ClassVar[str] = "home"

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type}


@dataclass(frozen=True)
class Link:
    """Jump to another page. An empty or missing target means "not configured"."""

    type: ClassVar[str] = "link"
    to_page_id: str | None = None
    present: frozenset[str] | None = field(default=None, compare=False, repr=False)

    @property
    def is_configured(self) -> bool:
        return bool(self.to_page_id)

    def to_dict(self) -> dict[str, Any]:
        return _action_dict(self, {"toPageId": self.to_page_id})


@dataclass(frozen=True)
class Youtube:
    type: ClassVar[str] = "youtube"
    video_id: str = ""
    title: str = ""
    present: frozenset[str] | None = field(default=None, compare=False, repr=False)

    def to_dict(self) -> dict[str, Any]:
        return _action_dict(self, {"videoId": self.video_id, "title": self.title})


@dataclass(frozen=True)
class Bookmark:
    # Declared in the persisted format, no runtime behavior.
    type: ClassVar[str] = "bookmark"

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type}


Action = Union[Speak, Back, Home, Link, Youtube, Bookmark]

ACTION_CLASSES: dict[str, type] = {
    cls.type: cls for cls in (Speak, Back, Home, Link, Youtube, Bookmark)
}

# Persisted key -> dataclass field, per variant
ACTION_FIELDS: dict[str, dict[str, str]] = {
    "speak": {"text": "text"},
    "back": {},
    "home": {},
    "link": {"toPageId": "to_page_id"},
    "youtube": {"videoId": "video_id", "title": "title"},
    "bookmark": {},
}

# Payload keys that may hold null; every other payload value must be a string
NULLABLE_ACTION_KEYS = {"toPageId"}


def action_from_dict(d: dict[str, Any]) -> Action:
    """Build an action variant from its persisted form. Unknown keys are dropped."""
    if not isinstance(d, dict):
        raise InvalidBoardError(f"Action must be an object, got {type(d).__name__}")
    action_type = d.get("type")
    cls = ACTION_CLASSES.get(action_type)  # type: ignore[arg-type]
    if cls is None:
        raise InvalidBoardError(f"Unknown action type: {action_type!r}")
    fields = ACTION_FIELDS[action_type]
    if not fields:
        return cls()

    kwargs: dict[str, Any] = {}
    for key, attr in fields.items():
        if key not in d:
            continue
        value = d[key]
        if not isinstance(value, str) and not (value is None and key in NULLABLE_ACTION_KEYS):
            raise InvalidBoardError(f"{action_type} action '{key}' must be a string, got {value!r}")
        kwargs[attr] = value
    return cls(**kwargs, present=frozenset(key for key in fields if key in d))


# ---------------------------------------------------------------------------
# Page contents
# ---------------------------------------------------------------------------


@dataclass
class Button:
    id: str
    row: int
    col: int
    label: str
    spoken_text: str | None = None
    color: str | None = None
    icon_ref: str | None = None
    symbol_path: str | None = None
    action: Action | None = None
    self_closing: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "row": self.row,
            "col": self.col,
            "label": self.label,
        }
        for key, value in (
            ("spokenText", self.spoken_text),
            ("color", self.color),
            ("iconRef", self.icon_ref),
            ("symbolPath", self.symbol_path),
        ):
            if value is not None:
                d[key] = value
        if self.action is not None:
            d["action"] = self.action.to_dict()
        if self.self_closing is not None:
            d["selfClosing"] = self.self_closing
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Button:
        try:
            return cls(
                id=str(d.get("id") or ""),
                row=int(d["row"]),
                col=int(d["col"]),
                label=str(d.get("label") or ""),
                spoken_text=d.get("spokenText"),
                color=d.get("color"),
                icon_ref=d.get("iconRef"),
                symbol_path=d.get("symbolPath"),
                action=action_from_dict(d["action"]) if d.get("action") is not None else None,
                self_closing=d.get("selfClosing"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidBoardError(f"Malformed button: {d!r}") from e


@dataclass
class VideoPlayer:
    """A rectangular block of cells showing an embedded video."""

    id: str
    row: int
    col: int
    row_span: int
    col_span: int
    video_id: str
    title: str = ""

    def cells(self) -> list[tuple[int, int]]:
        return [
            (r, c)
            for r in range(self.row, self.row + self.row_span)
            for c in range(self.col, self.col + self.col_span)
        ]

    def contains(self, row: int, col: int) -> bool:
        return self.row <= row < self.row + self.row_span and self.col <= col < self.col + self.col_span

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "row": self.row,
            "col": self.col,
            "rowSpan": self.row_span,
            "colSpan": self.col_span,
            "videoId": self.video_id,
            "title": self.title,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> VideoPlayer:
        try:
            return cls(
                id=str(d.get("id") or ""),
                row=int(d["row"]),
                col=int(d["col"]),
                row_span=int(d.get("rowSpan", 1)),
                col_span=int(d.get("colSpan", 1)),
                video_id=str(d.get("videoId", "")),
                title=str(d.get("title", "")),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidBoardError(f"Malformed video player: {d!r}") from e


Occupant = Union[Button, VideoPlayer]


@dataclass
class Page:
    id: str
    name: str
    buttons: list[Button] = field(default_factory=list)
    video_players: list[VideoPlayer] = field(default_factory=list)
    description: str | None = None
    # False only for pages read without a videoPlayers key
    has_video_players_key: bool = field(default=True, compare=False, repr=False)

    def find_button(self, button_id: str) -> Button | None:
        for button in self.buttons:
            if button.id == button_id:
                return button
        return None

    def find_video_player(self, player_id: str) -> VideoPlayer | None:
        for player in self.video_players:
            if player.id == player_id:
                return player
        return None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"id": self.id, "name": self.name}
        if self.description is not None:
            d["description"] = self.description
        d["buttons"] = [b.to_dict() for b in self.buttons]
        if self.video_players or self.has_video_players_key:
            d["videoPlayers"] = [v.to_dict() for v in self.video_players]
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Page:
        if not isinstance(d, dict):
            raise InvalidBoardError(f"Page must be an object, got {type(d).__name__}")
        return cls(
            id=str(d.get("id") or ""),
            name=str(d.get("name", "")),
            buttons=[Button.from_dict(b) for b in d.get("buttons") or []],
            video_players=[VideoPlayer.from_dict(v) for v in d.get("videoPlayers") or []],
            description=d.get("description"),
            has_video_players_key="videoPlayers" in d,
        )


@dataclass
class Board:
    """
    The top-level editable unit.

    pages[0] is the home page. Every page-list operation must keep a page at
    index 0, which is why a board can never lose its last page.
    """

    name: str
    grid: Grid
    pages: list[Page]
    id: str | None = None  # assigned by the persistence collaborator
    cover_image: CoverImage | None = None

    @property
    def home_page(self) -> Page:
        return self.pages[0]

    def find_page(self, page_id: str | None) -> Page | None:
        if not page_id:
            return None
        for page in self.pages:
            if page.id == page_id:
                return page
        return None

    def page_index(self, page_id: str) -> int:
        for i, page in enumerate(self.pages):
            if page.id == page_id:
                return i
        return -1

    def find_button(self, button_id: str) -> tuple[Page, Button] | None:
        """Return (owning page, button) for a button id anywhere on the board."""
        for page in self.pages:
            button = page.find_button(button_id)
            if button is not None:
                return page, button
        return None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        if self.id is not None:
            d["id"] = self.id
        d["name"] = self.name
        d["grid"] = self.grid.to_dict()
        d["pages"] = [p.to_dict() for p in self.pages]
        if self.cover_image is not None:
            d["coverImage"] = self.cover_image.to_dict()
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Board:
        if not isinstance(d, dict):
            raise InvalidBoardError(f"Board must be an object, got {type(d).__name__}")
        if "grid" not in d:
            raise InvalidBoardError("Board is missing 'grid'")
        cover = d.get("coverImage")
        return cls(
            id=d.get("id"),
            name=str(d.get("name", "")),
            grid=Grid.from_dict(d["grid"]),
            pages=[Page.from_dict(p) for p in d.get("pages") or []],
            cover_image=CoverImage.from_dict(cover) if cover else None,
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def new_id(prefix: str) -> str:
    """Fresh entity id, e.g. btn_3f2a9c01d4e5."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"
