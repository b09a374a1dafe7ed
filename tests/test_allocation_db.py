"""Allocation engine against a migrated Postgres (requires DATABASE_URL)."""

import os
import threading
import uuid
from datetime import date

import pytest

from shelterbeds.domain.allocation import assign, deassign, generate, reassign
from shelterbeds.domain.errors import BadRequestError
from shelterbeds.domain.models import Assignment
from shelterbeds.infra.db import get_conn, txn
from shelterbeds.infra.repositories.registrations_repository import (
    count_by_facility_and_date,
    list_by_facility_and_date,
)

# Skip all tests if DATABASE_URL is not set
pytestmark = pytest.mark.skipif(
    not os.environ.get("DATABASE_URL"),
    reason="DATABASE_URL not set - skipping allocation DB tests",
)

DAY = date(2026, 3, 14)


@pytest.fixture
def shelter():
    """A facility with two guests and a five-mat template; removed afterwards."""
    conn = get_conn()
    try:
        with conn.cursor() as cur:
            cur.execute(
                "INSERT INTO facilities (name) VALUES (%s) RETURNING id",
                (f"Test Shelter {uuid.uuid4()}",),
            )
            facility_id = cur.fetchone()[0]
            guest_ids = []
            for first, last in (("Ada", "Lovelace"), ("Alan", "Turing")):
                cur.execute(
                    """
                    INSERT INTO guests (facility_id, first_name, last_name)
                    VALUES (%s, %s, %s) RETURNING id
                    """,
                    (facility_id, first, last),
                )
                guest_ids.append(cur.fetchone()[0])
            cur.execute(
                """
                INSERT INTO templates (facility_id, name, all_mats, handicap_mats, socket_mats)
                VALUES (%s, 'Weeknight', '1-5', '1', '1,4') RETURNING id
                """,
                (facility_id,),
            )
            template_id = cur.fetchone()[0]
        conn.commit()
    finally:
        conn.close()

    yield {"facility_id": facility_id, "guest_ids": guest_ids, "template_id": template_id}

    conn = get_conn()
    try:
        with conn.cursor() as cur:
            # guests, templates and registrations cascade
            cur.execute("DELETE FROM facilities WHERE id = %s", (facility_id,))
        conn.commit()
    finally:
        conn.close()


def _day(facility_id):
    with txn() as cur:
        return list_by_facility_and_date(cur, facility_id, DAY)


def test_generate_then_refuse_second_run(shelter):
    created = generate(shelter["template_id"], DAY)

    assert [r.mat_number for r in created] == [1, 2, 3, 4, 5]
    assert [r.features for r in created] == ["HS", None, None, "S", None]

    with pytest.raises(BadRequestError):
        generate(shelter["template_id"], DAY)
    assert len(_day(shelter["facility_id"])) == 5


def test_one_rejected_row_leaves_no_rows(shelter):
    with txn() as cur:
        cur.execute(
            """
            INSERT INTO templates (facility_id, name, all_mats)
            VALUES (%s, 'Overflow', '1-3,2147483648') RETURNING id
            """,
            (shelter["facility_id"],),
        )
        template_id = cur.fetchone()[0]

    # Mat 2147483648 does not fit the integer column; mats 1-3 would
    with pytest.raises(BadRequestError):
        generate(template_id, DAY)

    with txn() as cur:
        assert count_by_facility_and_date(cur, shelter["facility_id"], DAY) == 0


def test_assign_reassign_deassign(shelter):
    mats = generate(shelter["template_id"], DAY)
    guest_id = shelter["guest_ids"][0]

    assign(mats[0].id, Assignment(guest_id=guest_id, payment_type="$$", comments="top bunk"))
    moved = reassign(mats[0].id, mats[2].id)

    assert moved.guest_id == guest_id
    assert moved.payment_type == "$$"
    day = {r.mat_number: r for r in _day(shelter["facility_id"])}
    assert day[1].guest_id is None
    assert day[1].comments is None
    assert day[3].guest_id == guest_id

    cleared = deassign(mats[2].id)
    assert cleared.guest_id is None
    assert cleared.features is None


def test_guest_cannot_hold_two_mats(shelter):
    mats = generate(shelter["template_id"], DAY)
    guest_id = shelter["guest_ids"][0]

    assign(mats[0].id, Assignment(guest_id=guest_id))
    with pytest.raises(BadRequestError):
        assign(mats[1].id, Assignment(guest_id=guest_id))


def test_concurrent_assign_of_same_guest_keeps_one_mat(shelter):
    mats = generate(shelter["template_id"], DAY)
    guest_id = shelter["guest_ids"][1]
    errors = []

    def _assign(registration_id):
        try:
            assign(registration_id, Assignment(guest_id=guest_id))
        except BadRequestError as exc:
            errors.append(exc)

    threads = [threading.Thread(target=_assign, args=(m.id,)) for m in mats[:4]]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    held = [r for r in _day(shelter["facility_id"]) if r.guest_id == guest_id]
    assert len(held) == 1
    assert len(errors) == 3
