from __future__ import annotations

import pytest


@pytest.fixture()
def apiary_id(auth_client, report_reading):
    apiary = auth_client.post("/api/v1/apiaries", json={"name": "Hillside", "location": "North Meadow"})
    apiary_id = apiary.get_json()["data"]["id"]
    report_reading(auth_client, "HIVE-1", weight_value=20.0)
    auth_client.post("/api/v1/hives", json={"hive_id": "HIVE-1", "name": "Queenie", "apiary_id": apiary_id})
    return apiary_id


def _harvest(client, day, amount, **extra):
    return client.post("/api/v1/production", json={"hive_id": "HIVE-1", "date": day, "amount": amount, **extra})


def test_harvest_follows_hive_apiary(auth_client, apiary_id):
    response = _harvest(auth_client, "2025-03-14", 12.5, quality="A")
    assert response.status_code == 201
    record = response.get_json()["data"]
    assert record["apiary_id"] == apiary_id
    assert record["type"] == "honey"
    assert record["date"] == "2025-03-14"

    assert auth_client.get(f"/api/v1/production/{record['id']}").get_json()["data"]["amount"] == 12.5
    listed = auth_client.get("/api/v1/production?year=2025").get_json()["data"]
    assert [r["id"] for r in listed] == [record["id"]]


def test_record_validation(auth_client, apiary_id, report_reading):
    missing_hive = auth_client.post("/api/v1/production", json={"date": "2025-03-14", "amount": 1})
    assert missing_hive.status_code == 400
    assert _harvest(auth_client, "2025-03-14", -1).status_code == 400
    assert _harvest(auth_client, "2025-03-14", 1, type="nectar").status_code == 400
    assert _harvest(auth_client, "2025-03-14", 1, hive_id="HIVE-404").status_code == 404

    # A hive outside any apiary has nowhere to book the harvest
    report_reading(auth_client, "HIVE-2", weight_value=18.0)
    auth_client.post("/api/v1/hives", json={"hive_id": "HIVE-2", "name": "Loner"})
    assert _harvest(auth_client, "2025-03-14", 1, hive_id="HIVE-2").status_code == 400


def test_summaries_follow_writes(auth_client, apiary_id):
    first = _harvest(auth_client, "2025-03-14", 10).get_json()["data"]
    _harvest(auth_client, "2025-07-02", 5)

    yearly = auth_client.get("/api/v1/production/yearly").get_json()["data"]
    assert yearly == [{"year": 2025, "total_production": 15.0}]

    monthly = auth_client.get("/api/v1/production/monthly?year=2025").get_json()["data"]
    assert len(monthly) == 12
    assert monthly[2] == {"month": "Mar", "total_production": 10.0}
    assert monthly[6]["total_production"] == 5.0

    auth_client.put(f"/api/v1/production/{first['id']}", json={"date": "2025-04-01"})
    monthly = auth_client.get("/api/v1/production/monthly?year=2025").get_json()["data"]
    assert monthly[2]["total_production"] == 0.0
    assert monthly[3]["total_production"] == 10.0

    deleted = auth_client.delete(f"/api/v1/production/{first['id']}")
    assert deleted.get_json()["data"] == {"id": first["id"], "deleted": True}
    yearly = auth_client.get("/api/v1/production/yearly").get_json()["data"]
    assert yearly == [{"year": 2025, "total_production": 5.0}]


def test_analytics_endpoints(auth_client, apiary_id):
    _harvest(auth_client, "2025-03-14", 10)

    overview = auth_client.get("/api/v1/production/overview?year=2025").get_json()["data"]
    assert overview[0]["id"] == apiary_id
    assert overview[0]["totalProduction"] == 10.0
    assert overview[0]["hives"][0]["id"] == "HIVE-1"

    series = auth_client.get("/api/v1/production/time-series?months=6").get_json()["data"]
    assert len(series) == 6

    forecast = auth_client.get("/api/v1/production/forecast").get_json()["data"]
    assert len(forecast) == 6
    per_apiary = auth_client.get(f"/api/v1/production/forecast?apiary_id={apiary_id}")
    assert len(per_apiary.get_json()["data"]) == 6
    assert auth_client.get("/api/v1/production/forecast?apiary_id=9999").status_code == 404

    summary = auth_client.get("/api/v1/production/summary").get_json()["data"]
    assert summary["recordCount"] == 1
