"""
Health API Blueprint
====================

Liveness and background-work monitoring.

Routes:
- GET /api/v1/health            - database ping, scheduler flag, app name and version
- GET /api/v1/health/ping       - basic liveness check
- GET /api/v1/health/scheduler  - scheduler health, jobs, metrics checker and recent runs
- GET /api/v1/health/cache      - TTLCache statistics
"""

from __future__ import annotations

import logging

from flask import Blueprint

logger = logging.getLogger("health_api")

# Create the blueprint
health_api = Blueprint("health_api", __name__)

# Import and register routes from submodules
from app.blueprints.api.health.cache import register_cache_routes
from app.blueprints.api.health.system import register_system_routes

# Register all routes on the blueprint
register_system_routes(health_api)
register_cache_routes(health_api)

__all__ = ["health_api"]
