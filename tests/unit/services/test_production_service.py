from __future__ import annotations

from datetime import date

import pytest

from app.domain.exceptions import NotFoundError, ValidationError
from app.services.application.production_service import NO_HARVESTS, change_percent


@pytest.fixture()
def apiary(seed):
    user_id = seed.create_user()
    apiary_id = seed.create_apiary(user_id, "Hillside")
    seed.create_hive("HIVE-1", user_id, name="Queenie", apiary_id=apiary_id)
    seed.create_hive("HIVE-2", user_id, name="Drone Hall", apiary_id=apiary_id)
    return user_id, apiary_id


def _harvest(service, user_id, hive_id, day, amount, **extra):
    return service.add_record(user_id, {"hive_id": hive_id, "date": day, "amount": amount, **extra})


def test_change_percent():
    assert change_percent(150, 100) == 50.0
    assert change_percent(50, 0) is None
    assert change_percent(0, 80) == -100.0


def test_add_record_takes_the_hive_apiary(production_service, apiary):
    user_id, apiary_id = apiary
    record = _harvest(production_service, user_id, "HIVE-1", "2026-05-10T08:00:00Z", "12.5")

    assert record["apiary_id"] == apiary_id
    assert record["date"] == "2026-05-10"
    assert record["amount"] == 12.5
    assert record["type"] == "honey"
    assert record["hive_name"] == "Queenie"
    assert record["apiary_name"] == "Hillside"


def test_add_record_validation(production_service, apiary, seed):
    user_id, _ = apiary
    with pytest.raises(ValidationError, match="hive_id"):
        production_service.add_record(user_id, {"date": "2026-05-10", "amount": 3})
    with pytest.raises(ValidationError, match="amount"):
        _harvest(production_service, user_id, "HIVE-1", "2026-05-10", -1)
    with pytest.raises(ValidationError, match="amount"):
        _harvest(production_service, user_id, "HIVE-1", "2026-05-10", "lots")
    with pytest.raises(ValidationError):
        _harvest(production_service, user_id, "HIVE-1", "2026-05-10", 3, type="nectar")

    stranger = seed.create_user("stranger")
    with pytest.raises(NotFoundError):
        _harvest(production_service, stranger, "HIVE-1", "2026-05-10", 3)


def test_summaries_follow_record_writes(production_service, apiary):
    user_id, apiary_id = apiary
    _harvest(production_service, user_id, "HIVE-1", "2025-05-01", 10)
    first = _harvest(production_service, user_id, "HIVE-1", "2026-05-01", 12)
    _harvest(production_service, user_id, "HIVE-2", "2026-05-20", 3)

    assert production_service.get_yearly(user_id) == [
        {"year": 2025, "total_production": 10.0},
        {"year": 2026, "total_production": 15.0},
    ]
    monthly = production_service.get_monthly(user_id, year=2026)
    assert len(monthly) == 12
    assert monthly[4] == {"month": "May", "total_production": 15.0}
    assert monthly[0]["total_production"] == 0.0

    # Moving a record to another month refreshes both months
    production_service.update_record(user_id, first["id"], {"date": "2026-06-02"})
    monthly = production_service.get_monthly(user_id, year=2026, apiary_id=apiary_id)
    assert monthly[4]["total_production"] == 3.0
    assert monthly[5]["total_production"] == 12.0

    production_service.delete_record(user_id, first["id"])
    assert production_service.get_yearly(user_id)[-1] == {"year": 2026, "total_production": 3.0}


def test_update_rejects_clearing_required_fields(production_service, apiary):
    user_id, _ = apiary
    record = _harvest(production_service, user_id, "HIVE-1", "2026-05-01", 4)
    with pytest.raises(ValidationError):
        production_service.update_record(user_id, record["id"], {"date": ""})
    with pytest.raises(ValidationError):
        production_service.update_record(user_id, record["id"], {"hive_id": ""})


def test_forecast_averages_recent_non_empty_months(production_service, apiary):
    user_id, _ = apiary
    _harvest(production_service, user_id, "HIVE-1", "2025-12-05", 100)
    _harvest(production_service, user_id, "HIVE-1", "2026-03-05", 10)
    _harvest(production_service, user_id, "HIVE-1", "2026-04-05", 20)
    _harvest(production_service, user_id, "HIVE-2", "2026-05-05", 30)

    forecast = production_service.get_forecast(user_id, today=date(2026, 6, 15))
    assert [f["month"] for f in forecast] == ["Apr", "May", "Jun", "Jul", "Aug", "Sep"]
    assert [f["actual"] for f in forecast] == [20.0, 30.0, 0.0, 0.0, 0.0, 0.0]
    assert {f["projected"] for f in forecast} == {20.0}


def test_forecast_counts_the_current_month(production_service, apiary):
    user_id, _ = apiary
    _harvest(production_service, user_id, "HIVE-1", "2026-06-05", 40)

    forecast = production_service.get_forecast(user_id, today=date(2026, 6, 15))
    assert forecast[2] == {"month": "Jun", "projected": 40.0, "actual": 40.0}
    assert [f["projected"] for f in forecast[3:]] == [40.0, 40.0, 40.0]


def test_forecast_for_one_apiary(production_service, apiary, seed):
    user_id, apiary_id = apiary
    other_apiary = seed.create_apiary(user_id, "Valley")
    seed.create_hive("HIVE-3", user_id, name="Lowlands", apiary_id=other_apiary)
    _harvest(production_service, user_id, "HIVE-1", "2026-05-05", 12)
    _harvest(production_service, user_id, "HIVE-3", "2026-05-05", 30)

    forecast = production_service.get_forecast(user_id, apiary_id=apiary_id, today=date(2026, 6, 15))
    assert forecast[1] == {"month": "May", "projected": 12.0, "actual": 12.0}

    combined = production_service.get_forecast(user_id, today=date(2026, 6, 15))
    assert combined[1]["actual"] == 42.0

    with pytest.raises(NotFoundError):
        production_service.get_forecast(user_id, apiary_id=9999, today=date(2026, 6, 15))


def test_forecast_without_history_is_zero(production_service, apiary):
    user_id, _ = apiary
    forecast = production_service.get_forecast(user_id, today=date(2026, 6, 15))
    assert len(forecast) == 6
    assert all(f["projected"] == 0.0 for f in forecast)


def test_time_series_covers_trailing_months(production_service, apiary):
    user_id, _ = apiary
    _harvest(production_service, user_id, "HIVE-1", "2026-01-20", 5)

    series = production_service.get_time_series(user_id, months=3, today=date(2026, 2, 10))
    assert [s["date"] for s in series] == ["2025-12-01", "2026-01-01", "2026-02-01"]
    assert [s["value"] for s in series] == [0.0, 5.0, 0.0]


def test_summary_and_per_apiary_breakdown(production_service, apiary, seed):
    user_id, _ = apiary
    today = date(2026, 6, 17)
    _harvest(production_service, user_id, "HIVE-1", "2026-06-16", 4)
    _harvest(production_service, user_id, "HIVE-2", "2026-06-02", 6)
    _harvest(production_service, user_id, "HIVE-2", "2026-02-01", 10)
    seed.insert_reading("HIVE-1", weight_value=20.0, minutes_ago=10)
    seed.insert_reading("HIVE-1", weight_value=21.5, minutes_ago=5)

    summary = production_service.get_summary(user_id, today=today)
    assert summary["weekProduction"] == 4.0
    assert summary["monthProduction"] == 10.0
    assert summary["totalProduction"] == 20.0
    assert summary["changePercent"] is None
    assert summary["avgProduction"] == 10.0
    assert summary["recordCount"] == 3
    assert summary["topHive"] == {"name": "Drone Hall", "production": 16.0}
    assert summary["topApiary"] == {"name": "Hillside", "production": 20.0}

    [breakdown] = production_service.get_all_production_data(user_id, year=2026)
    hives = {h["id"]: h for h in breakdown["hives"]}
    assert breakdown["totalProduction"] == 20.0
    assert hives["HIVE-1"]["lastHarvest"] == "16 Jun 2026"
    assert hives["HIVE-1"]["totalWeight"] == 21.5
    assert hives["HIVE-1"]["weightChange"] == 1.5
    assert hives["HIVE-2"]["totalWeight"] is None


def test_hive_without_harvests(production_service, apiary):
    user_id, _ = apiary
    [breakdown] = production_service.get_all_production_data(user_id, year=2026)
    assert {h["lastHarvest"] for h in breakdown["hives"]} == {NO_HARVESTS}
    assert breakdown["changePercent"] is None
