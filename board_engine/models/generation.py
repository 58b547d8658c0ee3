"""Board update models: what the board generation service sends to change an existing board."""

from __future__ import annotations

from pydantic import BaseModel, Field


class GeneratedPageSpec(BaseModel):
    """A page the update creates. Buttons arrive separately in `new_buttons`."""

    id: str = ""
    name: str = ""


class GeneratedButtonSpec(BaseModel):
    """A button the update creates on `page_id`. Without a position it takes the next free cell."""

    model_config = {"populate_by_name": True}

    label: str = Field(min_length=1)
    spoken_text: str | None = Field(default=None, alias="spokenText")
    color: str | None = None
    icon_ref: str | None = Field(default=None, alias="iconRef")
    symbol_path: str | None = Field(default=None, alias="symbolPath")
    row: int | None = None
    col: int | None = None
    page_id: str | None = Field(default=None, alias="pageId")
    self_closing: bool | None = Field(default=None, alias="selfClosing")
    link_page_id: str | None = Field(default=None, alias="linkPageId")


class ButtonEdit(BaseModel):
    """
    Changes to an existing button. Only fields present in the payload are applied
    (see `model_fields_set`); `page_id` moves the button to another page.
    """

    model_config = {"populate_by_name": True}

    id: str
    label: str | None = None
    spoken_text: str | None = Field(default=None, alias="spokenText")
    color: str | None = None
    icon_ref: str | None = Field(default=None, alias="iconRef")
    row: int | None = None
    col: int | None = None
    page_id: str | None = Field(default=None, alias="pageId")
    self_closing: bool | None = Field(default=None, alias="selfClosing")
    link_page_id: str | None = Field(default=None, alias="linkPageId")


class BoardUpdate(BaseModel):
    """A page/button delta. Applied in order: deletions, edits, new pages, new buttons."""

    model_config = {"populate_by_name": True}

    summary: str = ""
    new_pages: list[GeneratedPageSpec] = Field(default_factory=list, alias="newPages")
    new_buttons: list[GeneratedButtonSpec] = Field(default_factory=list, alias="newButtons")
    deleted_page_ids: list[str] = Field(default_factory=list, alias="deletedPageIds")
    deleted_button_ids: list[str] = Field(default_factory=list, alias="deletedButtonIds")
    edited_buttons: list[ButtonEdit] = Field(default_factory=list, alias="editedButtons")
