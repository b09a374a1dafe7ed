"""Shared test helper functions for shelterbeds tests.

Plain builders (not fixtures) so both conftest.py and test modules can
import them.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import replace
from datetime import date

from shelterbeds.domain.models import ASSIGNMENT_FIELDS, Assignment, Guest, Registration, Template

FACILITY_ID = 1
OTHER_FACILITY_ID = 2
DAY = date(2026, 3, 14)


def make_registration(
    registration_id: int | None = 10,
    *,
    mat_number: int = 1,
    guest_id: int | None = None,
    facility_id: int = FACILITY_ID,
    registration_date: date = DAY,
    **fields,
) -> Registration:
    return Registration(
        id=registration_id,
        facility_id=facility_id,
        registration_date=registration_date,
        mat_number=mat_number,
        guest_id=guest_id,
        **fields,
    )


def make_guest(guest_id: int = 7, *, facility_id: int = FACILITY_ID) -> Guest:
    return Guest(id=guest_id, facility_id=facility_id, first_name="Ada", last_name="Lovelace")


def make_template(
    template_id: int | None = 3,
    *,
    all_mats: str = "1-5",
    handicap_mats: str | None = None,
    socket_mats: str | None = None,
    work_mats: str | None = None,
    name: str = "Weeknight",
    facility_id: int = FACILITY_ID,
) -> Template:
    return Template(
        id=template_id,
        facility_id=facility_id,
        name=name,
        all_mats=all_mats,
        handicap_mats=handicap_mats,
        socket_mats=socket_mats,
        work_mats=work_mats,
    )


def txn_yielding(cur):
    """Drop-in for infra.db.txn that hands out an existing cursor."""

    @contextmanager
    def _txn(conn=None):
        yield cur

    return _txn


def apply_assignment(registration: Registration, assignment: Assignment | None) -> Registration:
    """Row as update_assignment would return it; None clears the fields."""
    values = {
        name: getattr(assignment, name) if assignment is not None else None
        for name in ASSIGNMENT_FIELDS
    }
    return replace(registration, **values)
