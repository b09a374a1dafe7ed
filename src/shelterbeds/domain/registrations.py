"""Registration CRUD used outside the allocation workflow.

Direct inserts and full-replace updates (admin corrections, imports).
Field rules are checked first by validate_registration, then references
and slot uniqueness are checked inside the write transaction. The store's
unique indexes remain the final word.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date

from psycopg2.extensions import cursor as PgCursor

from shelterbeds.domain.allocation import check_guest_free, check_payment, check_same_facility
from shelterbeds.domain.errors import (
    BadRequestError,
    NotFoundError,
    store_errors_as_bad_request,
)
from shelterbeds.domain.models import FEATURE_VALUES, Registration
from shelterbeds.infra.db import txn
from shelterbeds.infra.repositories import registrations_repository as repo
from shelterbeds.infra.repositories.guests_repository import facility_exists, get_guest
from shelterbeds.observability.logging import get_logger
from shelterbeds.observability.redaction import safe_log_context

logger = get_logger(__name__)


def validate_registration(registration: Registration) -> list[str]:
    """Field-level rules that need no lookup.

    Returns:
        Error messages, empty when the record is acceptable.
    """
    errors: list[str] = []

    if registration.mat_number < 1:
        errors.append(f"mat_number: Mat number {registration.mat_number} must be positive")
    if registration.features is not None and registration.features not in FEATURE_VALUES:
        errors.append(
            f"features: '{registration.features}' must combine H, S, W in that order"
        )
    errors.extend(check_payment(registration.payment_type, registration.payment_amount))

    return errors


def _check_references(c: PgCursor, registration: Registration, exclude_id: int | None) -> None:
    if not facility_exists(c, registration.facility_id):
        raise NotFoundError(f"facility_id: Missing Facility {registration.facility_id}")

    if repo.slot_in_use(
        c,
        facility_id=registration.facility_id,
        mat_number=registration.mat_number,
        registration_date=registration.registration_date,
        exclude_id=exclude_id,
    ):
        raise BadRequestError(
            f"mat_number: Mat number {registration.mat_number} already in use on "
            f"registration date {registration.registration_date.isoformat()} "
            "within this facility"
        )

    if registration.guest_id is None:
        return

    guest = get_guest(c, registration.guest_id)
    if guest is None:
        raise NotFoundError(f"guest_id: Missing Guest {registration.guest_id}")

    problem = check_same_facility(registration, guest)
    if problem is None:
        holding = repo.find_by_guest_on_date(
            c,
            facility_id=registration.facility_id,
            guest_id=guest.id,
            registration_date=registration.registration_date,
            exclude_id=exclude_id,
        )
        problem = check_guest_free(registration, guest.id, holding)
    if problem is not None:
        raise BadRequestError(problem)


def list_registrations() -> list[Registration]:
    with txn() as cur:
        return repo.list_registrations(cur)


def find_registration(registration_id: int) -> Registration:
    with txn() as cur:
        registration = repo.get_registration(cur, registration_id)
    if registration is None:
        raise NotFoundError(f"registration_id: Missing Registration {registration_id}")
    return registration


def list_for_facility_on_date(facility_id: int, registration_date: date) -> list[Registration]:
    with txn() as cur:
        return repo.list_by_facility_and_date(cur, facility_id, registration_date)


def list_for_guest(guest_id: int) -> list[Registration]:
    with txn() as cur:
        return repo.list_by_guest(cur, guest_id)


def insert_registration(
    registration: Registration,
    *,
    cur: PgCursor | None = None,
) -> Registration:
    """Insert one registration directly (assigned or not)."""
    errors = validate_registration(registration)
    if errors:
        raise BadRequestError("; ".join(errors))

    def _do(c: PgCursor) -> Registration:
        _check_references(c, registration, exclude_id=None)
        with store_errors_as_bad_request():
            created = repo.insert_registration(c, registration)
        logger.info(
            "registration inserted",
            extra={
                "extra_fields": safe_log_context(
                    registration_id=created.id,
                    facility_id=created.facility_id,
                    registration_date=created.registration_date,
                    mat_number=created.mat_number,
                )
            },
        )
        return created

    if cur is not None:
        return _do(cur)
    with txn() as c:
        return _do(c)


def update_registration(registration_id: int, registration: Registration) -> Registration:
    """Full replace of every field of an existing registration."""
    errors = validate_registration(registration)
    if errors:
        raise BadRequestError("; ".join(errors))

    with txn() as c:
        if repo.get_registration(c, registration_id, lock=True) is None:
            raise NotFoundError(f"registration_id: Missing Registration {registration_id}")

        _check_references(c, registration, exclude_id=registration_id)
        with store_errors_as_bad_request():
            updated = repo.update_registration(c, replace(registration, id=registration_id))

    logger.info(
        "registration updated",
        extra={"extra_fields": safe_log_context(registration_id=registration_id)},
    )
    return updated


def remove_registration(registration_id: int) -> Registration:
    with txn() as c:
        removed = repo.delete_registration(c, registration_id)
    if removed is None:
        raise NotFoundError(f"registration_id: Missing Registration {registration_id}")

    logger.info(
        "registration removed",
        extra={"extra_fields": safe_log_context(registration_id=registration_id)},
    )
    return removed
