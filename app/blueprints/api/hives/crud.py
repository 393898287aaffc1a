"""
Hive CRUD Operations
====================

Routes:
- GET    /api/v1/hives?apiary_id=   - hives with chart series and open alerts
- GET    /api/v1/hives/<hive_id>
- POST   /api/v1/hives              - register a device hive to the session user
- PUT    /api/v1/hives/<hive_id>
- DELETE /api/v1/hives/<hive_id>    - unregister; device readings are kept
"""

from __future__ import annotations

import logging

from flask import Response
from pydantic import ValidationError

from app.blueprints.api._common import (
    get_hive_service as _service,
    get_json,
    get_user_id,
    invalid,
    invalidate_dashboard,
    query_int,
    success,
)
from app.schemas.hives import RegisterHiveRequest, UpdateHiveRequest
from app.security.auth import api_login_required
from app.utils.http import safe_route

from . import hives_api

logger = logging.getLogger("hives_api.crud")


@hives_api.get("")
@api_login_required
@safe_route("Failed to list hives")
def list_hives() -> Response:
    return success(_service().list_hives(get_user_id(), apiary_id=query_int("apiary_id")))


@hives_api.get("/<string:hive_id>")
@api_login_required
@safe_route("Failed to get hive")
def get_hive(hive_id: str) -> Response:
    return success(_service().get_hive(get_user_id(), hive_id))


@hives_api.post("")
@api_login_required
@safe_route("Failed to register hive")
def register_hive() -> Response:
    try:
        body = RegisterHiveRequest(**get_json())
    except ValidationError as ve:
        return invalid(ve, "Invalid hive payload")

    user_id = get_user_id()
    hive = _service().register_hive(user_id, body.model_dump(mode="json"))
    invalidate_dashboard(user_id)
    return success(hive, status=201)


@hives_api.put("/<string:hive_id>")
@api_login_required
@safe_route("Failed to update hive")
def update_hive(hive_id: str) -> Response:
    try:
        body = UpdateHiveRequest(**get_json())
    except ValidationError as ve:
        return invalid(ve, "Invalid hive payload")

    user_id = get_user_id()
    hive = _service().update_hive(user_id, hive_id, body.model_dump(mode="json", exclude_unset=True))
    invalidate_dashboard(user_id)
    return success(hive)


@hives_api.delete("/<string:hive_id>")
@api_login_required
@safe_route("Failed to delete hive")
def delete_hive(hive_id: str) -> Response:
    user_id = get_user_id()
    _service().delete_hive(user_id, hive_id)
    invalidate_dashboard(user_id)
    return success({"hive_id": hive_id, "deleted": True})
