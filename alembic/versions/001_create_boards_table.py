"""create boards table

Revision ID: 001
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""
from typing import Sequence, Union

from alembic import op


revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # One row per board; the full board IR lives in ir_data.
    # Ids are kernel-generated strings (board_<hex>), not UUIDs.
    op.execute("""
        CREATE TABLE boards (
            id TEXT PRIMARY KEY,
            owner_id TEXT,
            name TEXT NOT NULL DEFAULT 'Untitled Board',
            ir_data JSONB NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)

    # Listing boards for an owner, most recently updated first
    op.execute("""
        CREATE INDEX idx_boards_owner_updated ON boards(owner_id, updated_at DESC);
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS boards CASCADE;")
