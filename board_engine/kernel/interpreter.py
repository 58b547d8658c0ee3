"""
Board Kernel: Action Interpreter

Pure dispatch on a button's action: (button, board) -> list of commands.
The session executes the commands (navigation) and forwards side effects to
the speech and video collaborators.

| Action    | Commands                                              |
|-----------|-------------------------------------------------------|
| Speak     | SpeakCommand(action text, else spokenText, else label)|
| Back      | BackCommand                                           |
| Home      | NavigateCommand(pages[0])                             |
| Link      | NavigateCommand(target) if the page exists, else none |
| Youtube   | OpenVideoCommand(videoId, title or label)             |
| Bookmark  | none                                                  |
| (missing) | SpeakCommand(spokenText, else label)                  |

A self-closing button appends a BackCommand, unless its action already is Back.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Union

from board_engine.kernel.actions import effective_action, spoken_text_for
from board_engine.kernel.types import (
    Action,
    Back,
    Board,
    Bookmark,
    Button,
    Home,
    Link,
    Speak,
    VideoPlayer,
    Youtube,
)

# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SpeakCommand:
    text: str


@dataclass(frozen=True)
class NavigateCommand:
    page_id: str


@dataclass(frozen=True)
class BackCommand:
    pass


@dataclass(frozen=True)
class OpenVideoCommand:
    video_id: str
    title: str


Command = Union[SpeakCommand, NavigateCommand, BackCommand, OpenVideoCommand]


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


class SpeechService:
    """Text-to-speech collaborator. Fire and forget."""

    def speak(self, text: str) -> None:
        raise NotImplementedError


class VideoOverlay:
    """Video overlay collaborator."""

    def open_video(self, video_id: str, title: str) -> None:
        raise NotImplementedError

    def close_video(self) -> None:
        raise NotImplementedError


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


def _speak(action: Speak, button: Button, board: Board) -> list[Command]:
    return [SpeakCommand(action.text or spoken_text_for(button))]


def _back(action: Back, button: Button, board: Board) -> list[Command]:
    return [BackCommand()]


def _home(action: Home, button: Button, board: Board) -> list[Command]:
    return [NavigateCommand(board.home_page.id)]


def _link(action: Link, button: Button, board: Board) -> list[Command]:
    # An unconfigured or dangling link is inert.
    if board.find_page(action.to_page_id) is None:
        return []
    return [NavigateCommand(action.to_page_id)]  # type: ignore[arg-type]


def _youtube(action: Youtube, button: Button, board: Board) -> list[Command]:
    return [OpenVideoCommand(video_id=action.video_id, title=action.title or button.label)]


def _bookmark(action: Bookmark, button: Button, board: Board) -> list[Command]:
    return []


_HANDLERS: dict[str, Callable[..., list[Command]]] = {
    "speak": _speak,
    "back": _back,
    "home": _home,
    "link": _link,
    "youtube": _youtube,
    "bookmark": _bookmark,
}


def interpret(button: Button, board: Board) -> list[Command]:
    """Commands produced by activating `button` in preview mode."""
    action: Action = effective_action(button)
    commands = _HANDLERS[action.type](action, button, board)
    if button.self_closing and not isinstance(action, Back):
        commands.append(BackCommand())
    return commands


def interpret_video_region(player: VideoPlayer) -> list[Command]:
    return [OpenVideoCommand(video_id=player.video_id, title=player.title)]
