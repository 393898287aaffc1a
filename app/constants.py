"""
Application Constants
=====================

Centralized constants shared by the app factory, health endpoints and packaging.

Usage:
    from app.constants import APP_VERSION, API_PREFIX
"""

APP_VERSION = "1.0.0"

# All JSON APIs are served under this prefix; legacy /api/* paths are rewritten to it
API_PREFIX = "/api/v1"
AUTH_PREFIX = "/auth"
