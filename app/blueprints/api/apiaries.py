"""
Apiaries API
============

CRUD over the session user's apiaries.

Routes:
- GET    /api/v1/apiaries?page=&pageSize=  - paginated list with hive count and metric averages
- GET    /api/v1/apiaries/all              - unpaginated list for pickers
- GET    /api/v1/apiaries/<id>
- POST   /api/v1/apiaries
- PUT    /api/v1/apiaries/<id>
- DELETE /api/v1/apiaries/<id>             - hives are detached, not deleted
"""

from __future__ import annotations

import logging

from flask import Blueprint, Response
from pydantic import ValidationError

from app.blueprints.api._common import (
    get_apiary_service as _service,
    get_json,
    get_user_id,
    invalid,
    invalidate_dashboard,
    query_int,
    success,
)
from app.schemas.apiaries import CreateApiaryRequest, UpdateApiaryRequest
from app.security.auth import api_login_required
from app.utils.http import safe_route

logger = logging.getLogger("apiaries_api")

apiaries_api = Blueprint("apiaries_api", __name__)


@apiaries_api.get("")
@api_login_required
@safe_route("Failed to list apiaries")
def list_apiaries() -> Response:
    page = _service().list_apiaries(
        get_user_id(),
        page=query_int("page", 1),
        page_size=query_int("pageSize", 10),
    )
    return success(page)


@apiaries_api.get("/all")
@api_login_required
@safe_route("Failed to list apiaries")
def list_all_apiaries() -> Response:
    return success(_service().list_all(get_user_id()))


@apiaries_api.get("/<int:apiary_id>")
@api_login_required
@safe_route("Failed to get apiary")
def get_apiary(apiary_id: int) -> Response:
    return success(_service().get_apiary(get_user_id(), apiary_id))


@apiaries_api.post("")
@api_login_required
@safe_route("Failed to create apiary")
def create_apiary() -> Response:
    try:
        body = CreateApiaryRequest(**get_json())
    except ValidationError as ve:
        return invalid(ve, "Invalid apiary payload")

    user_id = get_user_id()
    apiary = _service().create_apiary(user_id, body.model_dump(mode="json"))
    invalidate_dashboard(user_id)
    return success(apiary, status=201)


@apiaries_api.put("/<int:apiary_id>")
@api_login_required
@safe_route("Failed to update apiary")
def update_apiary(apiary_id: int) -> Response:
    try:
        body = UpdateApiaryRequest(**get_json())
    except ValidationError as ve:
        return invalid(ve, "Invalid apiary payload")

    user_id = get_user_id()
    apiary = _service().update_apiary(user_id, apiary_id, body.model_dump(mode="json", exclude_unset=True))
    invalidate_dashboard(user_id)
    return success(apiary)


@apiaries_api.delete("/<int:apiary_id>")
@api_login_required
@safe_route("Failed to delete apiary")
def delete_apiary(apiary_id: int) -> Response:
    user_id = get_user_id()
    _service().delete_apiary(user_id, apiary_id)
    invalidate_dashboard(user_id)
    return success({"id": apiary_id, "deleted": True})
