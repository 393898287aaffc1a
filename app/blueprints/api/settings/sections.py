"""
Settings Sections API
=====================

Profile and preference sections of the session user. Each section is
created with its defaults the first time it is read.

Routes:
- GET /api/v1/settings              - every section keyed as in the export document
- GET /api/v1/settings/<section>    - profile | preferences | notifications | alert-thresholds | sharing
- PUT /api/v1/settings/<section>    - partial update
"""

from __future__ import annotations

import logging

from flask import Response
from pydantic import ValidationError

from app.blueprints.api._common import (
    fail,
    get_json,
    get_settings_service as _service,
    get_user_id,
    invalid,
    success,
)
from app.schemas.settings import SECTION_SCHEMAS
from app.security.auth import api_login_required
from app.utils.http import safe_route

from . import settings_api

logger = logging.getLogger(__name__)


def _section_name(raw: str) -> str:
    return raw.replace("-", "_")


@settings_api.get("")
@api_login_required
@safe_route("Failed to load settings")
def get_all_settings() -> Response:
    return success(_service().get_all(get_user_id()))


@settings_api.get("/<string:section>")
@api_login_required
@safe_route("Failed to load settings")
def get_settings_section(section: str) -> Response:
    return success(_service().get_section(get_user_id(), _section_name(section)))


@settings_api.put("/<string:section>")
@api_login_required
@safe_route("Failed to update settings")
def update_settings_section(section: str) -> Response:
    name = _section_name(section)
    schema = SECTION_SCHEMAS.get(name)
    if schema is None:
        return fail(f"Unknown settings section: {section}", 404, code="NOT_FOUND")
    try:
        body = schema(**get_json())
    except ValidationError as ve:
        return invalid(ve, f"Invalid {name} settings")

    values = body.model_dump(mode="json", exclude_unset=True)
    return success(_service().update_section(get_user_id(), name, values))
