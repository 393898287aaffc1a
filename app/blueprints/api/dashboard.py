"""Dashboard API
===================

Routes:
- GET /api/v1/dashboard/summary?refresh=1  - apiaries with hive status, active alerts,
                                             upcoming inspections and production summary

The summary is cached per user for 30 seconds; writes through the API drop
the cached copy, ``refresh=1`` bypasses it.
"""

import logging

from flask import Blueprint, Response

from app.blueprints.api._common import (
    get_dashboard_service,
    get_user_id,
    query_flag,
    success as _success,
)
from app.security.auth import api_login_required
from app.utils.http import safe_route

logger = logging.getLogger(__name__)

# Create blueprint for dashboard API
dashboard_api = Blueprint("dashboard_api", __name__)


@dashboard_api.get("/summary")
@api_login_required
@safe_route("Failed to load dashboard summary")
def get_dashboard_summary() -> Response:
    summary = get_dashboard_service().get_summary(get_user_id(), use_cache=not query_flag("refresh"))
    return _success(summary)
