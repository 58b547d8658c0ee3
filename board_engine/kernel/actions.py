"""
Board Kernel: Button / Action Model

Button construction and action retyping.

Switching an action's type always rebuilds the variant from scratch. Fields
never carry over between variants, so a Speak can never keep a stale videoId.
"""

from __future__ import annotations

import dataclasses
from typing import Any

from board_engine.kernel.errors import InvalidActionError
from board_engine.kernel.types import (
    ACTION_FIELDS,
    Action,
    Back,
    Bookmark,
    Button,
    Home,
    Link,
    Speak,
    Youtube,
    new_id,
)


def make_button(
    row: int,
    col: int,
    label: str,
    *,
    action: Action | None = None,
    button_id: str | None = None,
    spoken_text: str | None = None,
    color: str | None = None,
    icon_ref: str | None = None,
    symbol_path: str | None = None,
    self_closing: bool | None = None,
) -> Button:
    """New button. Without an explicit action it speaks its own label."""
    return Button(
        id=button_id or new_id("btn"),
        row=row,
        col=col,
        label=label,
        spoken_text=spoken_text,
        color=color,
        icon_ref=icon_ref,
        symbol_path=symbol_path,
        action=action if action is not None else Speak(text=label),
        self_closing=self_closing,
    )


def fresh_action(action_type: str, *, label: str = "") -> Action:
    """A newly configured action of the given type with empty payload."""
    if action_type == "speak":
        return Speak(text=label)
    if action_type == "link":
        return Link(to_page_id="")
    if action_type == "youtube":
        return Youtube(video_id="", title="")
    if action_type == "back":
        return Back()
    if action_type == "home":
        return Home()
    if action_type == "bookmark":
        return Bookmark()
    raise InvalidActionError(f"Unknown action type: {action_type!r}")


def retarget(action: Action | None, field: str, value: Any, *, label: str = "") -> Action:
    """
    Return the action that results from setting `field` to `value`.

    field == "type" rebuilds the variant (same type keeps the action as is).
    Any other field must belong to the current variant; it is accepted under
    its persisted name (toPageId) or its attribute name (to_page_id).
    A missing action is treated as Speak(label).
    """
    current = action if action is not None else Speak(text=label)

    if field == "type":
        if value == current.type:
            return current
        return fresh_action(value, label=label)

    fields = ACTION_FIELDS[current.type]
    attr = fields.get(field)
    if attr is None and field in fields.values():
        attr = field
    if attr is None:
        raise InvalidActionError(f"'{field}' is not a field of a {current.type} action")
    # An edited action is written back in full
    return dataclasses.replace(current, **{attr: value}, present=None)


def effective_action(button: Button) -> Action:
    """The action a button performs; buttons without one speak."""
    if button.action is not None:
        return button.action
    return Speak(text=spoken_text_for(button))


def spoken_text_for(button: Button) -> str:
    return button.spoken_text or button.label
