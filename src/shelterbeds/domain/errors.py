"""Error kinds raised by the allocation engine and its CRUD helpers.

Messages are prefixed with the field they concern ("registration_id: ...",
"guest_id: ...") so a caller can point at the offending input.
Mapping to transport status codes belongs to the caller.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import psycopg2


class NotFoundError(Exception):
    """A referenced Registration, Guest, Template or Facility does not exist."""

    pass


class BadRequestError(Exception):
    """A business rule or state precondition failed."""

    pass


class MatsListFormatError(BadRequestError, ValueError):
    """A mats list string is not syntactically valid."""

    def __init__(self, token: str, reason: str) -> None:
        self.token = token
        self.reason = reason
        super().__init__(f"'{token}' {reason}")


# Store constraint name -> message shown to the caller
CONSTRAINT_MESSAGES = {
    "registrations_mat_date_within_facility_uq": (
        "mat_number: Mat number already in use on this registration date within this facility"
    ),
    "registrations_guest_per_day_uq": (
        "guest_id: Guest is already assigned a mat on this registration date within this facility"
    ),
    "registrations_guest_facility_fk": "guest_id: Guest does not belong to this facility",
    "registrations_facility_id_fkey": "facility_id: Missing Facility",
    "registrations_mat_number_ck": "mat_number: Mat number must be positive",
    "registrations_features_ck": "features: Features must combine H, S, W in that order",
    "registrations_payment_type_ck": "payment_type: Not a valid payment type",
    "registrations_payment_amount_ck": "payment_amount: Payment amount must not be negative",
    "templates_name_within_facility_uq": "name: Name is already in use within this facility",
    "templates_facility_id_fkey": "facility_id: Missing Facility",
}


@contextmanager
def store_errors_as_bad_request() -> Iterator[None]:
    """Translate store constraint failures into BadRequestError.

    Covers unique, foreign key, not-null and check violations plus malformed
    values (psycopg2.IntegrityError and psycopg2.DataError). The enclosing
    txn() still sees an exception and rolls back.
    """
    try:
        yield
    except (psycopg2.IntegrityError, psycopg2.DataError) as exc:
        constraint = getattr(getattr(exc, "diag", None), "constraint_name", None)
        message = CONSTRAINT_MESSAGES.get(constraint or "")
        if message is None:
            detail = (exc.pgerror or str(exc)).strip().splitlines()
            message = detail[0] if detail else type(exc).__name__
        raise BadRequestError(message) from exc
