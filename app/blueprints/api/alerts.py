"""
Alerts API
==========

Routes:
- GET  /api/v1/alerts            - unresolved alerts with filters (hive_id, apiary_id, unread_only,
                                   type, severity, search, sort, include_resolved)
- GET  /api/v1/alerts/count      - unresolved alert count
- GET  /api/v1/alerts/summary    - counts by severity and type plus unread count
- GET  /api/v1/alerts/<id>
- POST /api/v1/alerts            - create an alert by hand
- POST /api/v1/alerts/<id>/resolve
- POST /api/v1/alerts/<id>/read
- POST /api/v1/alerts/resolve-all
- POST /api/v1/alerts/check      - run the threshold check now
"""

from __future__ import annotations

import logging

from flask import Blueprint, Response, request
from pydantic import ValidationError

from app.blueprints.api._common import (
    get_alert_service as _service,
    get_json,
    get_metrics_checker,
    get_user_id,
    invalid,
    invalidate_dashboard,
    success,
)
from app.schemas.alerts import AlertListQuery, CreateAlertRequest, ResolveAllRequest
from app.security.auth import api_login_required
from app.utils.http import safe_route

logger = logging.getLogger("alerts_api")

alerts_api = Blueprint("alerts_api", __name__)


@alerts_api.get("")
@api_login_required
@safe_route("Failed to list alerts")
def list_alerts() -> Response:
    try:
        query = AlertListQuery(**request.args.to_dict())
    except ValidationError as ve:
        return invalid(ve, "Invalid alert filters")

    alerts = _service().list_alerts(
        get_user_id(),
        hive_id=query.hive_id,
        apiary_id=query.apiary_id,
        unread_only=query.unread_only,
        alert_type=query.type.value if query.type else None,
        severity=query.severity.value if query.severity else None,
        search=query.search,
        sort=query.sort.value,
        include_resolved=query.include_resolved,
    )
    return success(alerts)


@alerts_api.get("/count")
@api_login_required
@safe_route("Failed to count alerts")
def count_alerts() -> Response:
    return success({"count": _service().get_active_alert_count(get_user_id())})


@alerts_api.get("/summary")
@api_login_required
@safe_route("Failed to summarise alerts")
def alert_summary() -> Response:
    return success(_service().get_alert_summary(get_user_id()))


@alerts_api.get("/<int:alert_id>")
@api_login_required
@safe_route("Failed to get alert")
def get_alert(alert_id: int) -> Response:
    return success(_service().get_alert(get_user_id(), alert_id))


@alerts_api.post("")
@api_login_required
@safe_route("Failed to create alert")
def create_alert() -> Response:
    try:
        body = CreateAlertRequest(**get_json())
    except ValidationError as ve:
        return invalid(ve, "Invalid alert payload")

    user_id = get_user_id()
    alert = _service().create_alert(
        body.hive_id,
        body.type.value,
        body.message,
        body.severity.value,
        user_id=user_id,
    )
    invalidate_dashboard(user_id)
    return success(alert, status=201)


@alerts_api.post("/<int:alert_id>/resolve")
@api_login_required
@safe_route("Failed to resolve alert")
def resolve_alert(alert_id: int) -> Response:
    user_id = get_user_id()
    alert = _service().resolve_alert(user_id, alert_id)
    invalidate_dashboard(user_id)
    return success(alert)


@alerts_api.post("/<int:alert_id>/read")
@api_login_required
@safe_route("Failed to mark alert as read")
def mark_alert_read(alert_id: int) -> Response:
    return success(_service().mark_as_read(get_user_id(), alert_id))


@alerts_api.post("/resolve-all")
@api_login_required
@safe_route("Failed to resolve alerts")
def resolve_all_alerts() -> Response:
    try:
        body = ResolveAllRequest(**get_json())
    except ValidationError as ve:
        return invalid(ve)

    user_id = get_user_id()
    resolved = _service().resolve_all(user_id, hive_id=body.hive_id)
    invalidate_dashboard(user_id)
    return success({"resolved": resolved})


@alerts_api.post("/check")
@api_login_required
@safe_route("Failed to check hive metrics")
def check_metrics() -> Response:
    created = get_metrics_checker().force_check()
    invalidate_dashboard(get_user_id())
    return success({"created": created})
