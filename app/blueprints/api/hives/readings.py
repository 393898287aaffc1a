"""
Hive Details and Readings
=========================

Routes:
- GET /api/v1/hives/availability/<hive_id>  - can the session user register this device? (no login required)
- GET /api/v1/hives/<hive_id>/details       - 200 readings as series plus the last 10 alerts
- GET /api/v1/hives/<hive_id>/weight?days=  - daily weight with change from the previous reading
"""

from __future__ import annotations

from flask import Response

from app.blueprints.api._common import (
    get_hive_service,
    get_metrics_service,
    get_user_id,
    query_int,
    success,
)
from app.security.auth import api_login_required
from app.utils.http import safe_route

from . import hives_api


@hives_api.get("/availability/<string:hive_id>")
@safe_route("Error checking hive ID")
def check_availability(hive_id: str) -> Response:
    return success(get_hive_service().check_hive_availability(get_user_id(), hive_id))


@hives_api.get("/<string:hive_id>/details")
@api_login_required
@safe_route("Failed to load hive details")
def hive_details(hive_id: str) -> Response:
    return success(get_hive_service().get_hive_details(get_user_id(), hive_id))


@hives_api.get("/<string:hive_id>/weight")
@api_login_required
@safe_route("Failed to load weight history")
def daily_weight(hive_id: str) -> Response:
    days = query_int("days", 30)
    return success(get_metrics_service().get_daily_weight(get_user_id(), hive_id, days=days))
