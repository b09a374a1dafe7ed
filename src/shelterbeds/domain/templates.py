"""Template validation and persistence.

Every mats list column is parsed at write time, and the feature lists must
sit inside all_mats. Validation runs before the write; the unique index on
(facility_id, name) still guards concurrent writers.
"""

from __future__ import annotations

from dataclasses import replace

from psycopg2.extensions import cursor as PgCursor

from shelterbeds.domain.errors import (
    BadRequestError,
    MatsListFormatError,
    NotFoundError,
    store_errors_as_bad_request,
)
from shelterbeds.domain.mats_list import MatsList, parse_optional
from shelterbeds.domain.models import Template
from shelterbeds.infra.db import txn
from shelterbeds.infra.repositories import templates_repository as repo
from shelterbeds.infra.repositories.guests_repository import facility_exists
from shelterbeds.observability.logging import get_logger

logger = get_logger(__name__)

# Feature columns that must be subsets of all_mats, with their label
_FEATURE_COLUMNS = (
    ("handicap_mats", "handicap mats"),
    ("socket_mats", "socket mats"),
    ("work_mats", "work mats"),
)


def validate_template(template: Template) -> list[str]:
    """Check the record on its own: required fields, syntax, subsets.

    Returns:
        Error messages, empty when the template is valid.
    """
    errors: list[str] = []

    if not template.name or not template.name.strip():
        errors.append("name: Is required")

    all_mats: MatsList | None = None
    if template.all_mats is None or not template.all_mats.strip():
        errors.append("all_mats: Is required")
    else:
        try:
            all_mats = MatsList(template.all_mats)
        except MatsListFormatError as exc:
            errors.append(f"all_mats: {exc}")

    for column, label in _FEATURE_COLUMNS:
        try:
            subset = parse_optional(getattr(template, column))
        except MatsListFormatError as exc:
            errors.append(f"{column}: {exc}")
            continue
        if subset is not None and all_mats is not None and not subset.is_subset_of(all_mats):
            errors.append(f"{column}: Not all {label} are in all mats")

    return errors


def check_template_name_unique(
    cur: PgCursor,
    *,
    facility_id: int,
    name: str,
    exclude_id: int | None = None,
) -> str | None:
    """Return an error message when the name is taken in the facility."""
    if repo.name_in_use(cur, facility_id=facility_id, name=name, exclude_id=exclude_id):
        return f"name: Name '{name}' is already in use within this facility"
    return None


def _validated(c: PgCursor, template: Template, exclude_id: int | None) -> None:
    errors = validate_template(template)
    if errors:
        raise BadRequestError("; ".join(errors))
    if not facility_exists(c, template.facility_id):
        raise NotFoundError(f"facility_id: Missing Facility {template.facility_id}")
    problem = check_template_name_unique(
        c, facility_id=template.facility_id, name=template.name, exclude_id=exclude_id
    )
    if problem is not None:
        raise BadRequestError(problem)


def find_template(template_id: int) -> Template:
    with txn() as cur:
        template = repo.get_template(cur, template_id)
    if template is None:
        raise NotFoundError(f"template_id: Missing Template {template_id}")
    return template


def list_templates(facility_id: int | None = None) -> list[Template]:
    with txn() as cur:
        return repo.list_templates(cur, facility_id)


def find_template_by_name(facility_id: int, name: str) -> Template:
    """Exact name lookup within a facility."""
    with txn() as cur:
        template = repo.get_template_by_name(cur, facility_id, name)
    if template is None:
        raise NotFoundError(f"name: Missing name '{name}'")
    return template


def search_templates(facility_id: int, fragment: str) -> list[Template]:
    with txn() as cur:
        return repo.search_templates(cur, facility_id, fragment)


def insert_template(template: Template) -> Template:
    with txn() as c:
        _validated(c, template, exclude_id=None)
        with store_errors_as_bad_request():
            created = repo.insert_template(c, template)

    logger.info(
        "template inserted",
        extra={"extra_fields": {"template_id": created.id, "facility_id": created.facility_id}},
    )
    return created


def update_template(template_id: int, template: Template) -> Template:
    with txn() as c:
        if repo.get_template(c, template_id) is None:
            raise NotFoundError(f"template_id: Missing Template {template_id}")
        _validated(c, template, exclude_id=template_id)
        with store_errors_as_bad_request():
            updated = repo.update_template(c, replace(template, id=template_id))

    logger.info(
        "template updated",
        extra={"extra_fields": {"template_id": template_id, "facility_id": updated.facility_id}},
    )
    return updated


def remove_template(template_id: int) -> Template:
    """Delete a template. Registrations already generated from it stay."""
    with txn() as c:
        removed = repo.delete_template(c, template_id)
    if removed is None:
        raise NotFoundError(f"template_id: Missing Template {template_id}")

    logger.info(
        "template removed",
        extra={"extra_fields": {"template_id": template_id, "facility_id": removed.facility_id}},
    )
    return removed
