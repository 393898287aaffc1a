from __future__ import annotations


def test_empty_dashboard(auth_client):
    data = auth_client.get("/api/v1/dashboard/summary").get_json()["data"]
    assert data["apiaries"] == []
    assert data["unassignedHives"] == []
    assert data["activeAlerts"] == {"count": 0, "items": []}
    assert data["hiveStatus"] == {"healthy": 0, "warning": 0, "critical": 0}


def test_dashboard_follows_writes(auth_client, report_reading):
    apiary_id = auth_client.post("/api/v1/apiaries", json={"name": "Hillside", "location": "North Meadow"}).get_json()[
        "data"
    ]["id"]
    report_reading(auth_client, "HIVE-1", temp_value=34.0)
    auth_client.post("/api/v1/hives", json={"hive_id": "HIVE-1", "name": "Queenie", "apiary_id": apiary_id})

    data = auth_client.get("/api/v1/dashboard/summary").get_json()["data"]
    hives = data["apiaries"][0]["hives"]
    assert [h["hive_id"] for h in hives] == ["HIVE-1"]
    assert hives[0]["status"] == "healthy"
    assert hives[0]["latestReading"]["temp_value"] == 34.0

    alert = {"hive_id": "HIVE-1", "type": "other", "message": "Robbing", "severity": "high"}
    auth_client.post("/api/v1/alerts", json=alert)
    data = auth_client.get("/api/v1/dashboard/summary").get_json()["data"]
    assert data["activeAlerts"]["count"] == 1
    assert data["hiveStatus"]["critical"] == 1


def test_refresh_bypasses_cached_summary(auth_client, container):
    auth_client.get("/api/v1/dashboard/summary")
    # Written behind the API, so the cached copy is not dropped
    container.apiary_repo.create(auth_client.user_id, {"name": "Backdoor", "location": "Shed"})

    assert auth_client.get("/api/v1/dashboard/summary").get_json()["data"]["apiaries"] == []
    refreshed = auth_client.get("/api/v1/dashboard/summary?refresh=1").get_json()["data"]
    assert [a["name"] for a in refreshed["apiaries"]] == ["Backdoor"]
