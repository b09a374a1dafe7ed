"""Check constraint: registration payment_amount is never negative.

Revision ID: 003_payment_amount_non_negative
Revises: 002_one_mat_per_guest_per_day
Create Date: 2026-10-17
"""
from __future__ import annotations

from pathlib import Path

from alembic import op

revision = "003_payment_amount_non_negative"
down_revision = "002_one_mat_per_guest_per_day"
branch_labels = None
depends_on = None

_SQL_FILE = Path(__file__).resolve().parent.parent / "sql" / "003_payment_amount_non_negative.sql"


def upgrade() -> None:
    conn = op.get_bind()
    conn.exec_driver_sql(_SQL_FILE.read_text(encoding="utf-8"))


def downgrade() -> None:
    op.execute("ALTER TABLE registrations DROP CONSTRAINT IF EXISTS registrations_payment_amount_ck")
