"""Guests and facilities lookups used by the allocation engine.

Only existence and ownership checks are needed. Uses raw SQL with psycopg2 (no ORM).
"""

from psycopg2.extensions import cursor as PgCursor

from shelterbeds.domain.models import Guest
from shelterbeds.infra.db import fetchone


def get_guest(cur: PgCursor, guest_id: int) -> Guest | None:
    """Fetch a guest by id, or None when it does not exist."""
    row = fetchone(
        cur,
        """
        SELECT id, facility_id, first_name, last_name, comments, active, favorite
        FROM guests
        WHERE id = %s
        """,
        (guest_id,),
    )
    if row is None:
        return None
    return Guest(
        id=row[0],
        facility_id=row[1],
        first_name=row[2],
        last_name=row[3],
        comments=row[4],
        active=row[5],
        favorite=row[6],
    )


def facility_exists(cur: PgCursor, facility_id: int) -> bool:
    row = fetchone(cur, "SELECT 1 FROM facilities WHERE id = %s", (facility_id,))
    return row is not None
