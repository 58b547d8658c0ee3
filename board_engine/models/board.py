"""Board models for persisted rows and listings."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class BoardRecord(BaseModel):
    """A row in the boards table. `ir_data` is the persisted Board dict."""

    id: str
    owner_id: str | None = None
    name: str = Field(default="Untitled Board", max_length=200)
    ir_data: dict[str, Any]
    created_at: datetime
    updated_at: datetime

    def summary(self) -> BoardSummary:
        return BoardSummary(
            id=self.id,
            name=self.name,
            owner_id=self.owner_id,
            page_count=len(self.ir_data.get("pages") or []),
            updated_at=self.updated_at,
        )


class BoardSummary(BaseModel):
    """What board listings return (no IR)."""

    id: str
    name: str
    owner_id: str | None = None
    page_count: int = 0
    updated_at: datetime
