from __future__ import annotations


def test_health_reports_database_and_scheduler(client):
    response = client.get("/api/v1/health")
    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["status"] == "healthy"
    assert data["database"] is True
    assert data["scheduler_running"] is False
    assert data["app_name"]
    assert data["version"]


def test_ping(client):
    assert client.get("/api/v1/health/ping").get_json()["data"]["status"] == "ok"


def test_scheduler_health(client):
    data = client.get("/api/v1/health/scheduler").get_json()["data"]
    assert data["health"] == "unhealthy"
    assert data["metrics_checker"]["running"] is False
    assert data["metrics_checker"]["interval_seconds"] >= 600
    assert data["history"] == []


def test_cache_stats(auth_client):
    auth_client.get("/api/v1/weather/current?lat=-1.28&lon=36.82")
    data = auth_client.get("/api/v1/health/cache").get_json()["data"]
    assert set(data["caches"]) == {"alert_dedupe", "weather", "dashboard"}
    assert data["caches"]["weather"]["size"] == 0
    assert data["total_entries"] >= 0
