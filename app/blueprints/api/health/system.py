"""
System Health Endpoints
=======================

Core system health monitoring endpoints.
"""

from __future__ import annotations

import logging

from flask import Blueprint, Response, current_app

from app.blueprints.api._common import (
    get_container as _container,
    query_int,
    success as _success,
)
from app.utils.http import safe_route
from app.utils.time import iso_now
from app.constants import APP_VERSION

logger = logging.getLogger("health_api")


def register_system_routes(health_api: Blueprint):
    """Register system health routes on the blueprint."""

    @health_api.get("")
    @safe_route("Failed to get system health")
    def get_health() -> Response:
        """
        Overall health: the database answers and the scheduler thread state.

        Returns:
            {"status": "healthy|degraded", "database": true, "scheduler_running": true, ...}
        """
        container = _container()
        database_ok = container.database.ping()
        scheduler_running = container.scheduler.is_running()
        return _success(
            {
                "status": "healthy" if database_ok else "degraded",
                "database": database_ok,
                "scheduler_running": scheduler_running,
                "app_name": current_app.config.get("APP_NAME", "Smart Nyuki"),
                "version": APP_VERSION,
                "timestamp": iso_now(),
            }
        )

    @health_api.get("/ping")
    @safe_route("Failed to handle ping request")
    def ping() -> Response:
        """
        Basic liveness check for monitoring tools.

        Returns:
            {"status": "ok", "timestamp": "..."}
        """
        return _success({"status": "ok", "timestamp": iso_now()})

    @health_api.get("/scheduler")
    @safe_route("Failed to get scheduler health")
    def get_scheduler_health() -> Response:
        """
        Scheduler verdict and jobs, the metrics checker state and the latest runs.

        Query Parameters:
            limit: number of history entries (default 20)
        """
        container = _container()
        scheduler = container.scheduler
        history = scheduler.get_history(limit=query_int("limit", 20) or 20)
        return _success(
            {
                **scheduler.health_check(),
                "metrics_checker": container.metrics_checker.status(),
                "history": [result.to_dict() for result in history],
            }
        )
