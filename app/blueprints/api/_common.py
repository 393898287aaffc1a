"""
Blueprint Common Utilities
==========================

Shared helper functions for all API blueprints.
Import these instead of duplicating helper code in each blueprint.

Usage:
    from app.blueprints.api._common import (
        get_container, get_json, success, fail,
        get_apiary_service, get_alert_service, ...
    )

This module centralizes:
- Service container access
- Request JSON parsing and pydantic error rendering
- Standardized response helpers
- Common service accessors
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from flask import current_app, request, session
from pydantic import ValidationError

from app.utils.http import error_response, success_response, validation_error_response

logger = logging.getLogger("api._common")

# ============================================================================
# User Session Utilities
# ============================================================================


def get_user_id() -> Optional[int]:
    """Get current user ID from session (routes are guarded by api_login_required)."""
    user_id = session.get("user_id")
    return int(user_id) if user_id is not None else None


# ============================================================================
# CONTAINER ACCESS
# ============================================================================

def get_container():
    """
    Get the service container from Flask app config.

    Returns:
        ServiceContainer: The application service container

    Raises:
        RuntimeError: If container is not configured
    """
    container = current_app.config.get("CONTAINER")
    if not container:
        raise RuntimeError("ServiceContainer not found in app config")
    return container


# ============================================================================
# REQUEST HELPERS
# ============================================================================

def get_json() -> dict:
    """
    Get JSON request body with silent failure.

    Returns:
        dict: Parsed JSON body or empty dict if not available
    """
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def query_int(name: str, default: Optional[int] = None) -> Optional[int]:
    """Integer query parameter; ``default`` when absent or not a number."""
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def query_flag(name: str, default: bool = False) -> bool:
    raw = request.args.get(name)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "on"}


# ============================================================================
# RESPONSE HELPERS
# ============================================================================

def success(data: dict | list | None = None, status: int = 200, *, message: str | None = None):
    """
    Standard success response wrapper.

    Args:
        data: Response data (dict or list)
        status: HTTP status code (default 200)
        message: Optional success message

    Returns:
        Flask Response with format: {"ok": true, "data": ..., "error": null}
    """
    return success_response(data, status, message=message)


def fail(message: str, status: int = 400, *, code: str | None = None, details: dict | None = None):
    """
    Standard error response wrapper.

    Args:
        message: Error message
        status: HTTP status code (default 400)
        code: Optional machine-readable error code (``error.code``)
        details: Optional error details dict

    Returns:
        Flask Response with format: {"ok": false, "data": null, "error": {...}}
    """
    return error_response(message, status, code=code, details=details)


def invalid(ve: ValidationError, message: str = "Invalid request payload"):
    """400 response listing pydantic validation errors."""
    return validation_error_response(ve, message)


# ============================================================================
# SERVICE ACCESSORS
# ============================================================================

def _service(attr: str, label: str) -> Any:
    container = get_container()
    service = getattr(container, attr, None)
    if not service:
        raise RuntimeError(f"{label} not available")
    return service


def get_auth_manager():
    return _service("auth_manager", "Auth manager")


def get_apiary_service():
    return _service("apiary_service", "Apiary service")


def get_hive_service():
    return _service("hive_service", "Hive service")


def get_metrics_service():
    return _service("metrics_service", "Metrics service")


def get_alert_service():
    return _service("alert_service", "Alert service")


def get_metrics_checker():
    return _service("metrics_checker", "Metrics checker")


def get_inspection_service():
    return _service("inspection_service", "Inspection service")


def get_production_service():
    return _service("production_service", "Production service")


def get_settings_service():
    return _service("settings_service", "Settings service")


def get_dashboard_service():
    return _service("dashboard_service", "Dashboard service")


def get_weather_service():
    return _service("weather_service", "Weather service")


def get_scheduler():
    """
    Get the UnifiedScheduler from the container.

    Raises:
        RuntimeError: If the scheduler is not available
    """
    return _service("scheduler", "Scheduler")


def get_database():
    return _service("database", "Database")


def invalidate_dashboard(user_id: Optional[int]) -> None:
    """Drop the cached dashboard summary after a write by ``user_id``."""
    if user_id is None:
        return
    dashboard = getattr(get_container(), "dashboard_service", None)
    if dashboard is not None:
        dashboard.invalidate(user_id)
