from __future__ import annotations

import pytest

from app.domain.exceptions import NotFoundError, ValidationError
from app.services.application.metrics_service import split_series


def test_ingest_accepts_unregistered_hives(metrics_service, metrics_repo):
    stored = metrics_service.ingest_reading("NEW-DEVICE", {"temp_value": 34.2, "timestamp": "2026-05-01T12:00:00Z"})

    assert stored["hive_id"] == "NEW-DEVICE"
    assert stored["timestamp"] == "2026-05-01T12:00:00+00:00"
    assert stored["hum_value"] is None
    assert metrics_repo.exists_for_hive("NEW-DEVICE")


def test_ingest_defaults_timestamp_to_now(metrics_service):
    stored = metrics_service.ingest_reading("HIVE-1", {"weight_value": 21.5})
    assert stored["timestamp"].endswith("+00:00")


def test_ingest_validation(metrics_service):
    with pytest.raises(ValidationError):
        metrics_service.ingest_reading("HIVE-1", {})
    with pytest.raises(ValidationError):
        metrics_service.ingest_reading(" ", {"temp_value": 30})
    with pytest.raises(ValidationError):
        metrics_service.ingest_reading("HIVE-1", {"temp_value": 30, "timestamp": "not a time"})


def test_recent_readings_require_ownership(metrics_service, seed):
    owner = seed.create_user("owner")
    other = seed.create_user("other")
    seed.create_hive("HIVE-1", owner)
    for minutes in (30, 20, 10):
        seed.insert_reading("HIVE-1", temp_value=30.0 + minutes / 10, minutes_ago=minutes)

    readings = metrics_service.get_recent_readings(owner, "HIVE-1", limit=2)
    assert [r["temp_value"] for r in readings] == [31.0, 32.0]
    with pytest.raises(NotFoundError):
        metrics_service.get_recent_readings(other, "HIVE-1")


def test_daily_weight_reports_change_from_previous(metrics_service, seed):
    user_id = seed.create_user()
    seed.create_hive("HIVE-1", user_id)
    seed.insert_reading("HIVE-1", weight_value=20.0, minutes_ago=60 * 48)
    seed.insert_reading("HIVE-1", temp_value=34.0, minutes_ago=60 * 30)
    seed.insert_reading("HIVE-1", weight_value=21.25, minutes_ago=60 * 24)
    seed.insert_reading("HIVE-1", weight_value=20.75, minutes_ago=60)
    seed.insert_reading("HIVE-1", weight_value=99.0, minutes_ago=60 * 24 * 40)

    points = metrics_service.get_daily_weight(user_id, "HIVE-1", days=30)
    assert [p["weight"] for p in points] == [20.0, 21.25, 20.75]
    assert [p["change"] for p in points] == [0.0, 1.2, -0.5]
    assert all(len(p["date"]) == 6 for p in points)


def test_split_series_skips_nulls():
    readings = [
        {"timestamp": "t1", "temp_value": 33.0, "hum_value": None, "sound_value": 40.0, "weight_value": None},
        {"timestamp": "t2", "temp_value": None, "hum_value": 55.0, "sound_value": None, "weight_value": 19.0},
    ]
    series = split_series(readings, time_key="time")
    assert series["temperature"] == [{"time": "t1", "value": 33.0}]
    assert series["humidity"] == [{"time": "t2", "value": 55.0}]
    assert series["weight"] == [{"time": "t2", "value": 19.0}]


def test_purge_old_readings(metrics_service, seed, metrics_repo):
    seed.insert_reading("HIVE-1", temp_value=30.0, minutes_ago=60 * 24 * 10)
    seed.insert_reading("HIVE-1", temp_value=31.0)

    assert metrics_service.purge_old_readings(retention_days=5) == 1
    assert [r["temp_value"] for r in metrics_repo.recent("HIVE-1")] == [31.0]
    with pytest.raises(ValidationError):
        metrics_service.purge_old_readings(retention_days=0)
