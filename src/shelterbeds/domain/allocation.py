"""Mat allocation engine: generate, assign, deassign, reassign.

Each operation runs in exactly one transaction:
lock/read → check preconditions → write → commit. Any failure, whether a
precondition, a store constraint or an unexpected fault, rolls back every
write of the call.

The guestId dimension of a registration is a two-state machine:

    Unassigned --assign--> Assigned --deassign--> Unassigned
    Assigned(from) + Unassigned(to) --reassign--> Unassigned(from) + Assigned(to)

Assigning the guest already on the row is a payload refresh, not a transition.

Precondition checks are plain functions returning an error message or None;
the unique indexes on registrations stay the authoritative guard when two
calls race past the checks.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from psycopg2.extensions import cursor as PgCursor

from shelterbeds.domain.errors import (
    BadRequestError,
    NotFoundError,
    store_errors_as_bad_request,
)
from shelterbeds.domain.mats_list import MatsList, parse_optional
from shelterbeds.domain.models import PAYMENT_TYPES, Assignment, Guest, Registration, Template
from shelterbeds.infra.db import txn
from shelterbeds.infra.repositories.guests_repository import get_guest
from shelterbeds.infra.repositories.registrations_repository import (
    count_by_facility_and_date,
    find_by_guest_on_date,
    get_registration,
    insert_registrations,
    update_assignment,
)
from shelterbeds.infra.repositories.templates_repository import get_template
from shelterbeds.observability.logging import get_logger
from shelterbeds.observability.redaction import safe_log_context

logger = get_logger(__name__)

HANDICAP = "H"
SOCKET = "S"
WORK = "W"

MAX_PAYMENT = Decimal("999.99")


# ── Pure helpers ──────────────────────────────────────────────────────────────


def features_for(
    mat_number: int,
    *,
    handicap: MatsList | None,
    socket: MatsList | None,
    work: MatsList | None,
) -> str | None:
    """Feature flags of one mat, always in H, S, W order.

    Returns:
        "H", "HS", "SW", ... or None when the mat has no feature.
    """
    flags = ""
    if handicap is not None and handicap.is_member_of(mat_number):
        flags += HANDICAP
    if socket is not None and socket.is_member_of(mat_number):
        flags += SOCKET
    if work is not None and work.is_member_of(mat_number):
        flags += WORK
    return flags or None


def build_drafts(template: Template, registration_date: date) -> list[Registration]:
    """One unassigned registration draft per mat of the template."""
    all_mats = MatsList(template.all_mats)
    handicap = parse_optional(template.handicap_mats)
    socket = parse_optional(template.socket_mats)
    work = parse_optional(template.work_mats)

    return [
        Registration(
            id=None,
            facility_id=template.facility_id,
            registration_date=registration_date,
            mat_number=mat_number,
            features=features_for(mat_number, handicap=handicap, socket=socket, work=work),
        )
        for mat_number in all_mats
    ]


def check_payment(payment_type: str | None, payment_amount: Decimal | None) -> list[str]:
    """Payment fields shared by assignments and direct writes."""
    errors: list[str] = []
    if payment_type is not None and payment_type not in PAYMENT_TYPES:
        errors.append(f"payment_type: '{payment_type}' is not a valid payment type")
    if payment_amount is not None and not (Decimal("0") <= payment_amount <= MAX_PAYMENT):
        errors.append(f"payment_amount: {payment_amount} is out of range")
    return errors


def check_not_assigned_elsewhere(registration: Registration, guest_id: int) -> str | None:
    """A row held by another guest cannot be taken over."""
    if registration.guest_id is not None and registration.guest_id != guest_id:
        return (
            f"registration_id: Registration {registration.id} "
            "is already assigned to someone else"
        )
    return None


def check_same_facility(registration: Registration, guest: Guest) -> str | None:
    if guest.facility_id != registration.facility_id:
        return (
            f"guest_id: Guest {guest.id} does not belong to "
            f"facility {registration.facility_id}"
        )
    return None


def check_guest_free(
    registration: Registration,
    guest_id: int,
    holding: Registration | None,
) -> str | None:
    """A guest holds at most one mat per facility and date."""
    if holding is not None and holding.id != registration.id:
        return (
            f"guest_id: Guest {guest_id} is already assigned to mat "
            f"{holding.mat_number} on {registration.registration_date.isoformat()}"
        )
    return None


def _raise_if(problem: str | None) -> None:
    if problem is not None:
        logger.info(
            "allocation precondition failed",
            extra={"extra_fields": {"problem": problem}},
        )
        raise BadRequestError(problem)


def _require_registration(
    cur: PgCursor,
    registration_id: int,
) -> Registration:
    registration = get_registration(cur, registration_id, lock=True)
    if registration is None:
        raise NotFoundError(f"registration_id: Missing Registration {registration_id}")
    return registration


def _run(cur: PgCursor | None, work):
    if cur is not None:
        return work(cur)
    with txn() as c:
        return work(c)


# ── Operations ────────────────────────────────────────────────────────────────


def generate(
    template_id: int,
    registration_date: date,
    *,
    correlation_id: str | None = None,
    cur: PgCursor | None = None,
) -> list[Registration]:
    """Create the day's unassigned registrations from a template.

    This function:
    1. Loads the template (NotFoundError when missing)
    2. Refuses to run when the facility already has any registration on
       registration_date, so existing assignments are never overwritten
    3. Builds one draft per mat of all_mats with its H/S/W features
    4. Inserts every draft in one statement; one bad row fails the batch

    Args:
        template_id: Template to expand.
        registration_date: Day to initialize.
        correlation_id: Optional correlation ID for tracing.
        cur: Optional cursor of an enclosing transaction.

    Returns:
        Created registrations ordered by mat number.

    Raises:
        NotFoundError: Template does not exist.
        BadRequestError: Registrations already exist, a mats list is
            malformed, or the store rejected a row.
    """

    def _do(c: PgCursor) -> list[Registration]:
        template = get_template(c, template_id)
        if template is None:
            raise NotFoundError(f"template_id: Missing Template {template_id}")

        existing = count_by_facility_and_date(c, template.facility_id, registration_date)
        if existing:
            _raise_if(
                f"registration_date: Cannot generate registrations for "
                f"{registration_date.isoformat()}: {existing} already exist"
            )

        drafts = build_drafts(template, registration_date)
        with store_errors_as_bad_request():
            created = insert_registrations(c, drafts)

        logger.info(
            "registrations generated",
            extra={
                "extra_fields": safe_log_context(
                    correlationId=correlation_id,
                    template_id=template_id,
                    facility_id=template.facility_id,
                    registration_date=registration_date,
                    count=len(created),
                )
            },
        )
        return created

    return _run(cur, _do)


def assign(
    registration_id: int,
    assignment: Assignment,
    *,
    correlation_id: str | None = None,
    cur: PgCursor | None = None,
) -> Registration:
    """Bind a guest and its service details to a registration.

    The payload's payment fields are checked first, before any lookup.
    Then, in order, each one short-circuiting:
    1. Registration exists (NotFoundError)
    2. Not already held by a different guest (BadRequestError); the same
       guest again is an information update
    3. Guest exists (NotFoundError)
    4. Guest belongs to the registration's facility, for a free row
    5. Guest holds no other mat that facility and date, for a free row

    The assignment fields are replaced as a whole: omitted ones are cleared.

    Returns:
        The updated registration.
    """
    errors = check_payment(assignment.payment_type, assignment.payment_amount)
    if errors:
        _raise_if("; ".join(errors))

    def _do(c: PgCursor) -> Registration:
        registration = _require_registration(c, registration_id)
        _raise_if(check_not_assigned_elsewhere(registration, assignment.guest_id))

        guest = get_guest(c, assignment.guest_id)
        if guest is None:
            raise NotFoundError(f"guest_id: Missing Guest {assignment.guest_id}")

        if not registration.assigned:
            _raise_if(check_same_facility(registration, guest))
            holding = find_by_guest_on_date(
                c,
                facility_id=registration.facility_id,
                guest_id=guest.id,
                registration_date=registration.registration_date,
                exclude_id=registration.id,
            )
            _raise_if(check_guest_free(registration, guest.id, holding))

        with store_errors_as_bad_request():
            updated = update_assignment(c, registration.id, assignment)

        logger.info(
            "registration assigned",
            extra={
                "extra_fields": safe_log_context(
                    correlationId=correlation_id,
                    registration_id=registration.id,
                    facility_id=registration.facility_id,
                    registration_date=registration.registration_date,
                    mat_number=registration.mat_number,
                    guest_id=guest.id,
                    refresh=registration.assigned,
                )
            },
        )
        return updated

    return _run(cur, _do)


def deassign(
    registration_id: int,
    *,
    correlation_id: str | None = None,
    cur: PgCursor | None = None,
) -> Registration:
    """Clear the guest and every assignment field of a registration.

    facility_id, mat_number and registration_date stay as they are.

    Raises:
        NotFoundError: Registration does not exist.
        BadRequestError: Registration is not currently assigned.
    """

    def _do(c: PgCursor) -> Registration:
        registration = _require_registration(c, registration_id)
        if not registration.assigned:
            _raise_if(
                f"registration_id: Registration {registration_id} is not currently assigned"
            )

        with store_errors_as_bad_request():
            updated = update_assignment(c, registration.id, None)

        logger.info(
            "registration deassigned",
            extra={
                "extra_fields": safe_log_context(
                    correlationId=correlation_id,
                    registration_id=registration.id,
                    facility_id=registration.facility_id,
                    registration_date=registration.registration_date,
                    mat_number=registration.mat_number,
                )
            },
        )
        return updated

    return _run(cur, _do)


def reassign(
    from_registration_id: int,
    to_registration_id: int,
    *,
    correlation_id: str | None = None,
    cur: PgCursor | None = None,
) -> Registration:
    """Move a guest and its assignment fields from one mat to another.

    Both rows are locked in id order, then "from" is cleared before "to" is
    filled so the one-mat-per-guest-per-day index never sees the guest
    twice. Both updates commit together or not at all.

    Returns:
        The updated "to" registration.

    Raises:
        BadRequestError: Same id twice, "from" not assigned, "to" already
            assigned, or the store rejected the move (e.g. "to" belongs to
            another facility than the guest).
        NotFoundError: Either registration does not exist.
    """
    if from_registration_id == to_registration_id:
        _raise_if(
            f"to_registration_id: Cannot reassign registration "
            f"{from_registration_id} to itself"
        )

    def _do(c: PgCursor) -> Registration:
        locked = {
            registration_id: get_registration(c, registration_id, lock=True)
            for registration_id in sorted((from_registration_id, to_registration_id))
        }

        source = locked[from_registration_id]
        if source is None:
            raise NotFoundError(
                f"from_registration_id: Missing Registration {from_registration_id}"
            )
        if not source.assigned:
            _raise_if(
                f"from_registration_id: Registration {from_registration_id} "
                "is not currently assigned"
            )

        target = locked[to_registration_id]
        if target is None:
            raise NotFoundError(
                f"to_registration_id: Missing Registration {to_registration_id}"
            )
        if target.assigned:
            _raise_if(
                f"to_registration_id: Registration {to_registration_id} "
                "is already assigned"
            )

        moved = source.assignment()
        with store_errors_as_bad_request():
            update_assignment(c, source.id, None)
            updated = update_assignment(c, target.id, moved)

        logger.info(
            "registration reassigned",
            extra={
                "extra_fields": safe_log_context(
                    correlationId=correlation_id,
                    from_registration_id=source.id,
                    to_registration_id=target.id,
                    facility_id=target.facility_id,
                    registration_date=target.registration_date,
                    from_mat_number=source.mat_number,
                    to_mat_number=target.mat_number,
                    guest_id=source.guest_id,
                )
            },
        )
        return updated

    return _run(cur, _do)
