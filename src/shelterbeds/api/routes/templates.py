"""Template endpoints.

GET    /templates?facility_id=&name=&q=   → list, exact name, or name search
POST   /templates                          → create (201)
GET    /templates/{id}                     → one
PUT    /templates/{id}                     → full replace
DELETE /templates/{id}                     → remove
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Path, Query
from pydantic import BaseModel, ConfigDict

from shelterbeds.domain import templates as template_service
from shelterbeds.domain.models import Template

router = APIRouter(prefix="/templates", tags=["templates"])


class TemplateBody(BaseModel):
    model_config = ConfigDict(extra="forbid")

    facility_id: int
    name: str
    all_mats: str
    handicap_mats: str | None = None
    socket_mats: str | None = None
    work_mats: str | None = None
    comments: str | None = None
    active: bool = True

    def to_template(self) -> Template:
        return Template(id=None, **self.model_dump())


@router.get("")
def list_templates(
    facility_id: int | None = Query(None),
    name: str | None = Query(None),
    q: str | None = Query(None),
) -> list[dict]:
    """List templates, optionally narrowed to one facility.

    name is an exact match, q a case-insensitive "contains"; both need
    facility_id.
    """
    if name is not None or q is not None:
        if facility_id is None:
            raise HTTPException(status_code=400, detail="facility_id: Is required")
        if name is not None:
            return [template_service.find_template_by_name(facility_id, name).to_dict()]
        return [t.to_dict() for t in template_service.search_templates(facility_id, q)]
    return [t.to_dict() for t in template_service.list_templates(facility_id)]


@router.post("", status_code=201)
def create_template(body: TemplateBody) -> dict:
    return template_service.insert_template(body.to_template()).to_dict()


@router.get("/{template_id}")
def get_template(template_id: int = Path(...)) -> dict:
    return template_service.find_template(template_id).to_dict()


@router.put("/{template_id}")
def replace_template(body: TemplateBody, template_id: int = Path(...)) -> dict:
    return template_service.update_template(template_id, body.to_template()).to_dict()


@router.delete("/{template_id}")
def delete_template(template_id: int = Path(...)) -> dict:
    return template_service.remove_template(template_id).to_dict()
