"""
Hive Metrics API
================

Routes:
- POST /api/v1/metrics/<hive_id>         - device ingestion, authorised by the ingest token
- GET  /api/v1/metrics/<hive_id>?limit=  - newest readings of a hive the session user owns

Devices send ``X-Ingest-Token``; when ``SMART_NYUKI_INGEST_TOKEN`` is empty
the check is skipped.
"""

from __future__ import annotations

import hmac
import logging

from flask import Blueprint, Response, request
from pydantic import ValidationError

from app.blueprints.api._common import (
    fail,
    get_container,
    get_json,
    get_metrics_service as _service,
    get_user_id,
    invalid,
    query_int,
    success,
)
from app.schemas.hives import MetricReadingRequest
from app.security.auth import api_login_required
from app.utils.http import safe_route

logger = logging.getLogger("metrics_api")

metrics_api = Blueprint("metrics_api", __name__)

INGEST_TOKEN_HEADER = "X-Ingest-Token"


def _ingest_authorised() -> bool:
    expected = get_container().config.ingest_token
    if not expected:
        return True
    provided = request.headers.get(INGEST_TOKEN_HEADER, "")
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


@metrics_api.post("/<string:hive_id>")
@safe_route("Failed to store reading")
def ingest_reading(hive_id: str) -> Response:
    if not _ingest_authorised():
        logger.warning("Rejected reading for hive %s from %s: bad ingest token", hive_id, request.remote_addr)
        return fail("Invalid ingest token", 401, code="UNAUTHORIZED")
    try:
        body = MetricReadingRequest(**get_json())
    except ValidationError as ve:
        return invalid(ve, "Invalid reading payload")

    reading = _service().ingest_reading(hive_id, body.model_dump(mode="json", exclude_none=True))
    return success(reading, status=201)


@metrics_api.get("/<string:hive_id>")
@api_login_required
@safe_route("Failed to load readings")
def recent_readings(hive_id: str) -> Response:
    limit = query_int("limit", 24)
    return success(_service().get_recent_readings(get_user_id(), hive_id, limit=limit))
