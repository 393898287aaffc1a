"""
Apiary Sharing API
==================

Routes:
- GET    /api/v1/settings/shared-apiaries
- POST   /api/v1/settings/shared-apiaries        - share an apiary with another user by username
- PUT    /api/v1/settings/shared-apiaries/<id>   - change the permission (view | edit | admin)
- DELETE /api/v1/settings/shared-apiaries/<id>
"""

from __future__ import annotations

from flask import Response
from pydantic import ValidationError

from app.blueprints.api._common import (
    get_json,
    get_settings_service as _service,
    get_user_id,
    invalid,
    success,
)
from app.schemas.settings import ShareApiaryRequest, UpdateShareRequest
from app.security.auth import api_login_required
from app.utils.http import safe_route

from . import settings_api


@settings_api.get("/shared-apiaries")
@api_login_required
@safe_route("Failed to list shared apiaries")
def list_shared_apiaries() -> Response:
    return success(_service().list_shared_apiaries(get_user_id()))


@settings_api.post("/shared-apiaries")
@api_login_required
@safe_route("Failed to share apiary")
def share_apiary() -> Response:
    try:
        body = ShareApiaryRequest(**get_json())
    except ValidationError as ve:
        return invalid(ve, "Invalid share request")

    share = _service().share_apiary(get_user_id(), body.apiary_id, body.username, body.permission.value)
    return success(share, status=201)


@settings_api.put("/shared-apiaries/<int:share_id>")
@api_login_required
@safe_route("Failed to update share")
def update_share(share_id: int) -> Response:
    try:
        body = UpdateShareRequest(**get_json())
    except ValidationError as ve:
        return invalid(ve, "Invalid share permission")

    _service().update_share_permission(get_user_id(), share_id, body.permission.value)
    return success({"id": share_id, "permission": body.permission.value})


@settings_api.delete("/shared-apiaries/<int:share_id>")
@api_login_required
@safe_route("Failed to remove share")
def remove_share(share_id: int) -> Response:
    _service().remove_share(get_user_id(), share_id)
    return success({"id": share_id, "deleted": True})
