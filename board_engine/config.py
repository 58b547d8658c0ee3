"""
Board engine configuration: all environment variables in one place.

Read from environment at import time. Never hardcode secrets.
"""

from __future__ import annotations

import os


class Settings:
    """Application settings from environment variables."""

    # Database (persistence collaborator)
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "")

    # Editor session
    BOARD_HISTORY_LIMIT: int = int(os.environ.get("BOARD_HISTORY_LIMIT", "50"))
    BOARD_DEFAULT_ROWS: int = int(os.environ.get("BOARD_DEFAULT_ROWS", "4"))
    BOARD_DEFAULT_COLS: int = int(os.environ.get("BOARD_DEFAULT_COLS", "4"))
    BOARD_MAX_GRID: int = int(os.environ.get("BOARD_MAX_GRID", "25"))

    # Application
    ENVIRONMENT: str = os.environ.get("ENVIRONMENT", "development")


# Singleton instance
settings = Settings()

if settings.BOARD_HISTORY_LIMIT < 2:
    raise RuntimeError("BOARD_HISTORY_LIMIT must be at least 2")
if settings.BOARD_MAX_GRID < 1:
    raise RuntimeError("BOARD_MAX_GRID must be at least 1")
