"""Initial schema: facilities, guests, templates, registrations, bans.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-01
"""

from __future__ import annotations

from pathlib import Path

from alembic import op


revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _read_sql() -> str:
    sql_path = Path(__file__).resolve().parents[1] / "sql" / "001_initial.sql"
    return sql_path.read_text(encoding="utf-8")


def upgrade() -> None:
    conn = op.get_bind()
    conn.exec_driver_sql(_read_sql())


def downgrade() -> None:
    conn = op.get_bind()
    for table in ("bans", "registrations", "templates", "guests", "facilities"):
        conn.exec_driver_sql(f"DROP TABLE IF EXISTS {table} CASCADE;")
