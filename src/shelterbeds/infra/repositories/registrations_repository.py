"""Registrations repository - persistence for mat registrations.

Uses raw SQL with psycopg2 (no ORM). Every function takes the caller's
cursor so several calls can share one transaction (with txn() as cur:).
Listings are ordered by facility, date and mat number.
"""

from __future__ import annotations

from datetime import date
from typing import Sequence

from psycopg2.extensions import cursor as PgCursor
from psycopg2.extras import execute_values

from shelterbeds.domain.models import ASSIGNMENT_FIELDS, Assignment, Registration
from shelterbeds.infra.db import fetchall, fetchone, for_update

_COLUMNS = """
    id, facility_id, registration_date, mat_number, guest_id, features,
    payment_type, payment_amount, shower_time, wakeup_time, comments
"""

_ORDER = "ORDER BY facility_id, registration_date, mat_number"


def _to_registration(row: Sequence) -> Registration:
    return Registration(
        id=row[0],
        facility_id=row[1],
        registration_date=row[2],
        mat_number=row[3],
        guest_id=row[4],
        features=row[5],
        payment_type=row[6],
        payment_amount=row[7],
        shower_time=row[8],
        wakeup_time=row[9],
        comments=row[10],
    )


def get_registration(
    cur: PgCursor,
    registration_id: int,
    *,
    lock: bool = False,
) -> Registration | None:
    """Fetch one registration by id.

    Args:
        cur: Database cursor.
        registration_id: Registration id.
        lock: If True, lock the row FOR UPDATE until the transaction ends.

    Returns:
        Registration, or None when the id does not exist.
    """
    query = f"SELECT {_COLUMNS} FROM registrations WHERE id = %s"
    if lock:
        row = for_update(cur, query, (registration_id,))
    else:
        row = fetchone(cur, query, (registration_id,))
    return _to_registration(row) if row is not None else None


def list_registrations(cur: PgCursor) -> list[Registration]:
    rows = fetchall(cur, f"SELECT {_COLUMNS} FROM registrations {_ORDER}")
    return [_to_registration(row) for row in rows]


def list_by_facility_and_date(
    cur: PgCursor,
    facility_id: int,
    registration_date: date,
) -> list[Registration]:
    rows = fetchall(
        cur,
        f"""
        SELECT {_COLUMNS} FROM registrations
        WHERE facility_id = %s AND registration_date = %s
        {_ORDER}
        """,
        (facility_id, registration_date),
    )
    return [_to_registration(row) for row in rows]


def list_by_guest(cur: PgCursor, guest_id: int) -> list[Registration]:
    rows = fetchall(
        cur,
        f"SELECT {_COLUMNS} FROM registrations WHERE guest_id = %s {_ORDER}",
        (guest_id,),
    )
    return [_to_registration(row) for row in rows]


def count_by_facility_and_date(
    cur: PgCursor,
    facility_id: int,
    registration_date: date,
) -> int:
    row = fetchone(
        cur,
        """
        SELECT count(*) FROM registrations
        WHERE facility_id = %s AND registration_date = %s
        """,
        (facility_id, registration_date),
    )
    return int(row[0]) if row else 0


def find_by_guest_on_date(
    cur: PgCursor,
    *,
    facility_id: int,
    guest_id: int,
    registration_date: date,
    exclude_id: int | None = None,
) -> Registration | None:
    """Find the registration a guest already holds on a facility and date.

    Args:
        exclude_id: Registration id to ignore (the row being written).

    Returns:
        The first such registration by mat number, or None.
    """
    conditions = ["facility_id = %s", "guest_id = %s", "registration_date = %s"]
    params: list = [facility_id, guest_id, registration_date]

    if exclude_id is not None:
        conditions.append("id != %s")
        params.append(exclude_id)

    where = " AND ".join(conditions)
    row = fetchone(
        cur,
        f"SELECT {_COLUMNS} FROM registrations WHERE {where} ORDER BY mat_number LIMIT 1",
        params,
    )
    return _to_registration(row) if row is not None else None


def slot_in_use(
    cur: PgCursor,
    *,
    facility_id: int,
    mat_number: int,
    registration_date: date,
    exclude_id: int | None = None,
) -> bool:
    """True if another row already holds this facility/mat/date slot."""
    query = """
        SELECT 1 FROM registrations
        WHERE facility_id = %s AND mat_number = %s AND registration_date = %s
    """
    params: list = [facility_id, mat_number, registration_date]
    if exclude_id is not None:
        query += " AND id != %s"
        params.append(exclude_id)
    return fetchone(cur, query, params) is not None


def _values(registration: Registration) -> tuple:
    return (
        registration.facility_id,
        registration.registration_date,
        registration.mat_number,
        registration.guest_id,
        registration.features,
        registration.payment_type,
        registration.payment_amount,
        registration.shower_time,
        registration.wakeup_time,
        registration.comments,
    )


_INSERT = """
    INSERT INTO registrations (
        facility_id, registration_date, mat_number, guest_id, features,
        payment_type, payment_amount, shower_time, wakeup_time, comments
    )
"""


def insert_registration(cur: PgCursor, registration: Registration) -> Registration:
    """Insert one registration; the id of the draft is ignored."""
    row = fetchone(
        cur,
        _INSERT + f"VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s) RETURNING {_COLUMNS}",
        _values(registration),
    )
    return _to_registration(row)


def insert_registrations(
    cur: PgCursor,
    drafts: Sequence[Registration],
) -> list[Registration]:
    """Insert many registrations in one statement.

    A single constraint violation fails the whole statement; inside a
    transaction that means no row of the batch survives.

    Returns:
        Created registrations ordered by mat number.
    """
    if not drafts:
        return []
    rows = execute_values(
        cur,
        _INSERT + f"VALUES %s RETURNING {_COLUMNS}",
        [_values(draft) for draft in drafts],
        page_size=max(len(drafts), 100),
        fetch=True,
    )
    return sorted((_to_registration(row) for row in rows), key=lambda r: r.mat_number)


def update_registration(cur: PgCursor, registration: Registration) -> Registration | None:
    """Full replace of every column except id.

    Returns:
        Updated registration, or None when the id does not exist.
    """
    row = fetchone(
        cur,
        f"""
        UPDATE registrations
        SET facility_id = %s,
            registration_date = %s,
            mat_number = %s,
            guest_id = %s,
            features = %s,
            payment_type = %s,
            payment_amount = %s,
            shower_time = %s,
            wakeup_time = %s,
            comments = %s,
            updated_at = now()
        WHERE id = %s
        RETURNING {_COLUMNS}
        """,
        (*_values(registration), registration.id),
    )
    return _to_registration(row) if row is not None else None


def update_assignment(
    cur: PgCursor,
    registration_id: int,
    assignment: Assignment | None,
) -> Registration | None:
    """Replace the assignment fields of one row; None clears them all.

    facility_id, mat_number and registration_date are never touched here.
    """
    values = [
        getattr(assignment, name) if assignment is not None else None
        for name in ASSIGNMENT_FIELDS
    ]
    sets = ", ".join(f"{name} = %s" for name in ASSIGNMENT_FIELDS)
    row = fetchone(
        cur,
        f"""
        UPDATE registrations
        SET {sets}, updated_at = now()
        WHERE id = %s
        RETURNING {_COLUMNS}
        """,
        (*values, registration_id),
    )
    return _to_registration(row) if row is not None else None


def delete_registration(cur: PgCursor, registration_id: int) -> Registration | None:
    row = fetchone(
        cur,
        f"DELETE FROM registrations WHERE id = %s RETURNING {_COLUMNS}",
        (registration_id,),
    )
    return _to_registration(row) if row is not None else None
