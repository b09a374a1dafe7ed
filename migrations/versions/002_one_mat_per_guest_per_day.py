"""Partial unique index: one assigned mat per guest per facility and date.

The allocation engine checks this before assigning, but two concurrent
assign calls for the same guest can both pass that check. This index makes
the second commit fail, so a guest can never end up on two mats.

Revision ID: 002_one_mat_per_guest_per_day
Revises: 001_initial_schema
Create Date: 2026-10-01
"""
from __future__ import annotations

from pathlib import Path

from alembic import op

revision = "002_one_mat_per_guest_per_day"
down_revision = "001_initial_schema"
branch_labels = None
depends_on = None

_SQL_FILE = Path(__file__).resolve().parent.parent / "sql" / "002_one_mat_per_guest_per_day.sql"


def upgrade() -> None:
    conn = op.get_bind()
    conn.exec_driver_sql(_SQL_FILE.read_text(encoding="utf-8"))


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS registrations_guest_per_day_uq")
