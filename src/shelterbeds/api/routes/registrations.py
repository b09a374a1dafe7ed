"""Registration endpoints.

GET    /registrations                               → list all
POST   /registrations                               → direct insert (201)
GET    /registrations/{id}                          → one
PUT    /registrations/{id}                          → full replace
DELETE /registrations/{id}                          → remove
GET    /facilities/{facility_id}/registrations/{d}  → one facility's day
GET    /guests/{guest_id}/registrations             → one guest's history
POST   /registrations/actions/generate              → initialize a day (201)
POST   /registrations/{id}/actions/assign           → bind a guest
POST   /registrations/{id}/actions/deassign         → release the mat
POST   /registrations/{id}/actions/reassign         → move the guest
"""

from __future__ import annotations

from datetime import date, time
from decimal import Decimal

from fastapi import APIRouter, Path
from pydantic import BaseModel, ConfigDict

from shelterbeds.domain import allocation
from shelterbeds.domain import registrations as registration_service
from shelterbeds.domain.models import Assignment, Registration
from shelterbeds.observability.correlation import get_correlation_id

router = APIRouter(tags=["registrations"])


# ── Schemas ───────────────────────────────────────────────────────────────────


class RegistrationBody(BaseModel):
    model_config = ConfigDict(extra="forbid")

    facility_id: int
    registration_date: date
    mat_number: int
    guest_id: int | None = None
    features: str | None = None
    payment_type: str | None = None
    payment_amount: Decimal | None = None
    shower_time: time | None = None
    wakeup_time: time | None = None
    comments: str | None = None

    def to_registration(self) -> Registration:
        return Registration(id=None, **self.model_dump())


class AssignRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    guest_id: int
    comments: str | None = None
    payment_amount: Decimal | None = None
    payment_type: str | None = None
    shower_time: time | None = None
    wakeup_time: time | None = None


class ReassignRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    to_registration_id: int


class GenerateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    template_id: int
    registration_date: date


# ── CRUD ──────────────────────────────────────────────────────────────────────


@router.get("/registrations")
def list_registrations() -> list[dict]:
    return [r.to_dict() for r in registration_service.list_registrations()]


@router.post("/registrations", status_code=201)
def create_registration(body: RegistrationBody) -> dict:
    return registration_service.insert_registration(body.to_registration()).to_dict()


@router.get("/registrations/{registration_id}")
def get_registration(registration_id: int = Path(...)) -> dict:
    return registration_service.find_registration(registration_id).to_dict()


@router.put("/registrations/{registration_id}")
def replace_registration(body: RegistrationBody, registration_id: int = Path(...)) -> dict:
    """Full replace: omitted optional fields are stored as null."""
    return registration_service.update_registration(
        registration_id, body.to_registration()
    ).to_dict()


@router.delete("/registrations/{registration_id}")
def delete_registration(registration_id: int = Path(...)) -> dict:
    return registration_service.remove_registration(registration_id).to_dict()


@router.get("/facilities/{facility_id}/registrations/{registration_date}")
def list_for_facility_on_date(
    facility_id: int = Path(...),
    registration_date: date = Path(...),
) -> list[dict]:
    return [
        r.to_dict()
        for r in registration_service.list_for_facility_on_date(facility_id, registration_date)
    ]


@router.get("/guests/{guest_id}/registrations")
def list_for_guest(guest_id: int = Path(...)) -> list[dict]:
    return [r.to_dict() for r in registration_service.list_for_guest(guest_id)]


# ── Allocation actions ────────────────────────────────────────────────────────


@router.post("/registrations/actions/generate", status_code=201)
def generate(body: GenerateRequest) -> list[dict]:
    """Create the day's unassigned mats from a template.

    Fails with 400 when the facility already has registrations that day.
    """
    created = allocation.generate(
        body.template_id,
        body.registration_date,
        correlation_id=get_correlation_id(),
    )
    return [r.to_dict() for r in created]


@router.post("/registrations/{registration_id}/actions/assign")
def assign(body: AssignRequest, registration_id: int = Path(...)) -> dict:
    updated = allocation.assign(
        registration_id,
        Assignment(**body.model_dump()),
        correlation_id=get_correlation_id(),
    )
    return updated.to_dict()


@router.post("/registrations/{registration_id}/actions/deassign")
def deassign(registration_id: int = Path(...)) -> dict:
    return allocation.deassign(registration_id, correlation_id=get_correlation_id()).to_dict()


@router.post("/registrations/{registration_id}/actions/reassign")
def reassign(body: ReassignRequest, registration_id: int = Path(...)) -> dict:
    """Move the guest on this registration to body.to_registration_id.

    Returns the destination registration.
    """
    updated = allocation.reassign(
        registration_id,
        body.to_registration_id,
        correlation_id=get_correlation_id(),
    )
    return updated.to_dict()
