"""
Production API
==============

Harvest records and the aggregates derived from them.

Routes:
- GET    /api/v1/production?apiary_id=&hive_id=&year=
- GET    /api/v1/production/<id>
- POST   /api/v1/production
- PUT    /api/v1/production/<id>
- DELETE /api/v1/production/<id>
- GET    /api/v1/production/yearly?apiary_id=
- GET    /api/v1/production/monthly?year=&apiary_id=  - 12 entries, missing months are zero
- GET    /api/v1/production/overview?year=            - per apiary totals and per hive harvest data
- GET    /api/v1/production/time-series?months=
- GET    /api/v1/production/forecast?apiary_id=       - current and 2 past months plus 3 projected
- GET    /api/v1/production/summary
"""

from __future__ import annotations

import logging

from flask import Blueprint, Response, request
from pydantic import ValidationError

from app.blueprints.api._common import (
    get_json,
    get_production_service as _service,
    get_user_id,
    invalid,
    invalidate_dashboard,
    query_int,
    success,
)
from app.schemas.production import CreateProductionRequest, UpdateProductionRequest
from app.security.auth import api_login_required
from app.utils.http import safe_route

logger = logging.getLogger("production_api")

production_api = Blueprint("production_api", __name__)


# --- Records ----------------------------------------------------------------


@production_api.get("")
@api_login_required
@safe_route("Failed to list production records")
def list_records() -> Response:
    records = _service().list_records(
        get_user_id(),
        apiary_id=query_int("apiary_id"),
        hive_id=request.args.get("hive_id") or None,
        year=query_int("year"),
    )
    return success(records)


@production_api.get("/<int:record_id>")
@api_login_required
@safe_route("Failed to get production record")
def get_record(record_id: int) -> Response:
    return success(_service().get_record(get_user_id(), record_id))


@production_api.post("")
@api_login_required
@safe_route("Failed to add production record")
def add_record() -> Response:
    try:
        body = CreateProductionRequest(**get_json())
    except ValidationError as ve:
        return invalid(ve, "Invalid production record")

    user_id = get_user_id()
    record = _service().add_record(user_id, body.model_dump(mode="json", exclude_none=True))
    invalidate_dashboard(user_id)
    return success(record, status=201)


@production_api.put("/<int:record_id>")
@api_login_required
@safe_route("Failed to update production record")
def update_record(record_id: int) -> Response:
    try:
        body = UpdateProductionRequest(**get_json())
    except ValidationError as ve:
        return invalid(ve, "Invalid production record")

    user_id = get_user_id()
    record = _service().update_record(user_id, record_id, body.model_dump(mode="json", exclude_unset=True))
    invalidate_dashboard(user_id)
    return success(record)


@production_api.delete("/<int:record_id>")
@api_login_required
@safe_route("Failed to delete production record")
def delete_record(record_id: int) -> Response:
    user_id = get_user_id()
    _service().delete_record(user_id, record_id)
    invalidate_dashboard(user_id)
    return success({"id": record_id, "deleted": True})


# --- Aggregates -------------------------------------------------------------


@production_api.get("/yearly")
@api_login_required
@safe_route("Failed to load yearly production")
def yearly() -> Response:
    return success(_service().get_yearly(get_user_id(), apiary_id=query_int("apiary_id")))


@production_api.get("/monthly")
@api_login_required
@safe_route("Failed to load monthly production")
def monthly() -> Response:
    return success(_service().get_monthly(get_user_id(), year=query_int("year"), apiary_id=query_int("apiary_id")))


@production_api.get("/overview")
@api_login_required
@safe_route("Failed to load production data")
def overview() -> Response:
    return success(_service().get_all_production_data(get_user_id(), year=query_int("year")))


@production_api.get("/time-series")
@api_login_required
@safe_route("Failed to load production time series")
def time_series() -> Response:
    months = max(1, min(query_int("months", 12) or 12, 36))
    return success(_service().get_time_series(get_user_id(), months=months))


@production_api.get("/forecast")
@api_login_required
@safe_route("Failed to build production forecast")
def forecast() -> Response:
    return success(_service().get_forecast(get_user_id(), apiary_id=query_int("apiary_id")))


@production_api.get("/summary")
@api_login_required
@safe_route("Failed to summarise production")
def summary() -> Response:
    return success(_service().get_summary(get_user_id()))
