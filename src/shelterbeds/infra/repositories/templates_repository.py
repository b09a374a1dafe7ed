"""Templates repository - persistence for per-facility mat blueprints.

Uses raw SQL with psycopg2 (no ORM).
"""

from __future__ import annotations

from typing import Sequence

from psycopg2.extensions import cursor as PgCursor

from shelterbeds.domain.models import Template
from shelterbeds.infra.db import fetchall, fetchone

_COLUMNS = """
    id, facility_id, name, all_mats, handicap_mats, socket_mats, work_mats,
    comments, active
"""

_ORDER = "ORDER BY facility_id, name"


def _to_template(row: Sequence) -> Template:
    return Template(
        id=row[0],
        facility_id=row[1],
        name=row[2],
        all_mats=row[3],
        handicap_mats=row[4],
        socket_mats=row[5],
        work_mats=row[6],
        comments=row[7],
        active=row[8],
    )


def get_template(cur: PgCursor, template_id: int) -> Template | None:
    row = fetchone(cur, f"SELECT {_COLUMNS} FROM templates WHERE id = %s", (template_id,))
    return _to_template(row) if row is not None else None


def list_templates(cur: PgCursor, facility_id: int | None = None) -> list[Template]:
    """All templates, or only those of one facility."""
    if facility_id is None:
        rows = fetchall(cur, f"SELECT {_COLUMNS} FROM templates {_ORDER}")
    else:
        rows = fetchall(
            cur,
            f"SELECT {_COLUMNS} FROM templates WHERE facility_id = %s {_ORDER}",
            (facility_id,),
        )
    return [_to_template(row) for row in rows]


def get_template_by_name(cur: PgCursor, facility_id: int, name: str) -> Template | None:
    row = fetchone(
        cur,
        f"SELECT {_COLUMNS} FROM templates WHERE facility_id = %s AND name = %s",
        (facility_id, name),
    )
    return _to_template(row) if row is not None else None


def search_templates(cur: PgCursor, facility_id: int, fragment: str) -> list[Template]:
    """Case-insensitive "name contains" search within a facility."""
    escaped = fragment.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    rows = fetchall(
        cur,
        f"""
        SELECT {_COLUMNS} FROM templates
        WHERE facility_id = %s AND name ILIKE %s
        {_ORDER}
        """,
        (facility_id, f"%{escaped}%"),
    )
    return [_to_template(row) for row in rows]


def name_in_use(
    cur: PgCursor,
    *,
    facility_id: int,
    name: str,
    exclude_id: int | None = None,
) -> bool:
    query = "SELECT 1 FROM templates WHERE facility_id = %s AND name = %s"
    params: list = [facility_id, name]
    if exclude_id is not None:
        query += " AND id != %s"
        params.append(exclude_id)
    return fetchone(cur, query, params) is not None


def insert_template(cur: PgCursor, template: Template) -> Template:
    row = fetchone(
        cur,
        f"""
        INSERT INTO templates (
            facility_id, name, all_mats, handicap_mats, socket_mats,
            work_mats, comments, active
        )
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
        RETURNING {_COLUMNS}
        """,
        (
            template.facility_id,
            template.name,
            template.all_mats,
            template.handicap_mats,
            template.socket_mats,
            template.work_mats,
            template.comments,
            template.active,
        ),
    )
    return _to_template(row)


def update_template(cur: PgCursor, template: Template) -> Template | None:
    row = fetchone(
        cur,
        f"""
        UPDATE templates
        SET facility_id = %s,
            name = %s,
            all_mats = %s,
            handicap_mats = %s,
            socket_mats = %s,
            work_mats = %s,
            comments = %s,
            active = %s,
            updated_at = now()
        WHERE id = %s
        RETURNING {_COLUMNS}
        """,
        (
            template.facility_id,
            template.name,
            template.all_mats,
            template.handicap_mats,
            template.socket_mats,
            template.work_mats,
            template.comments,
            template.active,
            template.id,
        ),
    )
    return _to_template(row) if row is not None else None


def delete_template(cur: PgCursor, template_id: int) -> Template | None:
    row = fetchone(
        cur,
        f"DELETE FROM templates WHERE id = %s RETURNING {_COLUMNS}",
        (template_id,),
    )
    return _to_template(row) if row is not None else None
