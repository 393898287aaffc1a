"""
Cache Health Endpoints
======================

Health monitoring endpoints for cache metrics.
"""

from __future__ import annotations

import logging

from flask import Blueprint, Response

from app.blueprints.api._common import (
    get_container as _container,
    success as _success,
)
from app.utils.http import safe_route
from app.utils.time import iso_now

logger = logging.getLogger("health_api")


def register_cache_routes(health_api: Blueprint):
    """Register cache health routes on the blueprint."""

    @health_api.get("/cache")
    @safe_route("Failed to get cache metrics")
    def get_cache_metrics() -> Response:
        """
        Hit/miss statistics for the alert dedupe, weather and dashboard caches.

        Returns:
            {
                "caches": {"alert_dedupe": {...}, "weather": {...}, "dashboard": {...}},
                "total_entries": 3,
                "timestamp": "2026-05-01T..."
            }
        """
        all_stats = _container().caches.get_all_stats()
        return _success(
            {
                "caches": all_stats,
                "total_entries": sum(int(stats.get("size", 0)) for stats in all_stats.values()),
                "timestamp": iso_now(),
            }
        )
