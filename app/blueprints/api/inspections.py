"""
Inspections API
===============

Routes:
- GET    /api/v1/inspections?page=&pageSize=   - paginated, newest inspection date first
- GET    /api/v1/inspections/upcoming          - scheduled inspections from today on
- GET    /api/v1/inspections/hive/<hive_id>
- GET    /api/v1/inspections/apiary/<id>
- GET    /api/v1/inspections/<id>              - includes findings
- POST   /api/v1/inspections
- PUT    /api/v1/inspections/<id>
- DELETE /api/v1/inspections/<id>

Findings travel in the ``findings`` object of the request body.
"""

from __future__ import annotations

import logging

from flask import Blueprint, Response
from pydantic import ValidationError

from app.blueprints.api._common import (
    get_inspection_service as _service,
    get_json,
    get_user_id,
    invalid,
    invalidate_dashboard,
    query_int,
    success,
)
from app.schemas.inspections import CreateInspectionRequest, UpdateInspectionRequest
from app.security.auth import api_login_required
from app.utils.http import safe_route

logger = logging.getLogger("inspections_api")

inspections_api = Blueprint("inspections_api", __name__)


@inspections_api.get("")
@api_login_required
@safe_route("Failed to list inspections")
def list_inspections() -> Response:
    page = _service().list_inspections(
        get_user_id(),
        page=query_int("page", 1),
        page_size=query_int("pageSize", 10),
    )
    return success(page)


@inspections_api.get("/upcoming")
@api_login_required
@safe_route("Failed to list upcoming inspections")
def upcoming_inspections() -> Response:
    return success(_service().list_upcoming(get_user_id()))


@inspections_api.get("/hive/<string:hive_id>")
@api_login_required
@safe_route("Failed to list hive inspections")
def hive_inspections(hive_id: str) -> Response:
    return success(_service().list_for_hive(get_user_id(), hive_id))


@inspections_api.get("/apiary/<int:apiary_id>")
@api_login_required
@safe_route("Failed to list apiary inspections")
def apiary_inspections(apiary_id: int) -> Response:
    return success(_service().list_for_apiary(get_user_id(), apiary_id))


@inspections_api.get("/<int:inspection_id>")
@api_login_required
@safe_route("Failed to get inspection")
def get_inspection(inspection_id: int) -> Response:
    return success(_service().get_inspection(get_user_id(), inspection_id))


@inspections_api.post("")
@api_login_required
@safe_route("Failed to create inspection")
def create_inspection() -> Response:
    try:
        body = CreateInspectionRequest(**get_json())
    except ValidationError as ve:
        return invalid(ve, "Invalid inspection payload")

    payload = body.model_dump(mode="json", exclude_none=True, exclude={"findings"})
    findings = body.findings.model_dump(exclude_none=True) if body.findings else None
    user_id = get_user_id()
    inspection = _service().create_inspection(user_id, payload, findings)
    invalidate_dashboard(user_id)
    return success(inspection, status=201)


@inspections_api.put("/<int:inspection_id>")
@api_login_required
@safe_route("Failed to update inspection")
def update_inspection(inspection_id: int) -> Response:
    try:
        body = UpdateInspectionRequest(**get_json())
    except ValidationError as ve:
        return invalid(ve, "Invalid inspection payload")

    payload = body.model_dump(mode="json", exclude_unset=True, exclude={"findings"})
    findings = body.findings.model_dump(exclude_unset=True) if body.findings else None
    user_id = get_user_id()
    inspection = _service().update_inspection(user_id, inspection_id, payload, findings)
    invalidate_dashboard(user_id)
    return success(inspection)


@inspections_api.delete("/<int:inspection_id>")
@api_login_required
@safe_route("Failed to delete inspection")
def delete_inspection(inspection_id: int) -> Response:
    user_id = get_user_id()
    _service().delete_inspection(user_id, inspection_id)
    invalidate_dashboard(user_id)
    return success({"id": inspection_id, "deleted": True})
