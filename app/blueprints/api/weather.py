"""
Weather API
===========

Routes:
- GET /api/v1/weather/current?lat=&lon=
- GET /api/v1/weather/forecast?lat=&lon=&days=
- GET /api/v1/weather/apiary/<id>?days=   - uses the apiary's stored coordinates

Responses carry ``source``: ``live`` from WorldWeatherOnline, ``sample``
when no API key is configured or the provider call failed.
"""

from __future__ import annotations

from flask import Blueprint, Response, request

from app.blueprints.api._common import (
    get_user_id,
    get_weather_service as _service,
    query_int,
    success,
)
from app.security.auth import api_login_required
from app.utils.http import safe_route

weather_api = Blueprint("weather_api", __name__)


@weather_api.get("/current")
@api_login_required
@safe_route("Failed to load current weather")
def current_weather() -> Response:
    return success(_service().get_current(request.args.get("lat"), request.args.get("lon")))


@weather_api.get("/forecast")
@api_login_required
@safe_route("Failed to load weather forecast")
def weather_forecast() -> Response:
    forecast = _service().get_forecast(
        request.args.get("lat"),
        request.args.get("lon"),
        days=request.args.get("days", 5),
    )
    return success(forecast)


@weather_api.get("/apiary/<int:apiary_id>")
@api_login_required
@safe_route("Failed to load apiary weather")
def apiary_weather(apiary_id: int) -> Response:
    return success(_service().get_for_apiary(get_user_id(), apiary_id, days=query_int("days", 5)))
