"""
Hives API Module
================

Hive registration and hive views split by concern:
- crud: list, register, update, delete
- readings: availability check, details and weight history
"""

from __future__ import annotations

from flask import Blueprint

hives_api = Blueprint("hives_api", __name__)

# Import all route modules to register their endpoints (must be after blueprint creation)
from . import crud, readings

_ = (crud, readings)

__all__ = ["hives_api"]
