"""
Data Management API
===================

Export, import, backups and storage statistics for the session user.

Routes:
- GET  /api/v1/settings/export    - full export document (version "1.0")
- POST /api/v1/settings/import    - restore profile and preference sections from an export
- GET  /api/v1/settings/backups   - last 10 completed backups
- POST /api/v1/settings/backups   - write a backup file now
- GET  /api/v1/settings/stats     - row counts and storage estimate
"""

from __future__ import annotations

import logging

from flask import Response
from pydantic import ValidationError

from app.blueprints.api._common import (
    get_json,
    get_settings_service as _service,
    get_user_id,
    invalid,
    success,
)
from app.schemas.settings import ImportDataRequest
from app.security.auth import api_login_required
from app.utils.http import safe_route

from . import settings_api

logger = logging.getLogger(__name__)


@settings_api.get("/export")
@api_login_required
@safe_route("Failed to export data")
def export_data() -> Response:
    return success(_service().export_user_data(get_user_id()))


@settings_api.post("/import")
@api_login_required
@safe_route("Failed to import data")
def import_data() -> Response:
    raw = get_json()
    try:
        ImportDataRequest(**raw)
    except ValidationError as ve:
        return invalid(ve, "Invalid import file: version and profile are required")

    result = _service().import_user_data(get_user_id(), raw)
    return success(result, message="Data imported successfully")


@settings_api.get("/backups")
@api_login_required
@safe_route("Failed to load backup history")
def backup_history() -> Response:
    return success(_service().get_backup_history(get_user_id()))


@settings_api.post("/backups")
@api_login_required
@safe_route("Failed to create backup")
def create_backup() -> Response:
    return success(_service().create_backup(get_user_id()), status=201)


@settings_api.get("/stats")
@api_login_required
@safe_route("Failed to load database statistics")
def database_stats() -> Response:
    return success(_service().get_database_stats(get_user_id()))
