from __future__ import annotations


def test_current_weather_uses_sample_data_without_key(auth_client):
    response = auth_client.get("/api/v1/weather/current?lat=-1.28&lon=36.82")
    assert response.status_code == 200
    current = response.get_json()["data"]
    assert current["source"] == "sample"
    assert "temperature" in current


def test_forecast_is_capped(auth_client):
    forecast = auth_client.get("/api/v1/weather/forecast?lat=-1.28&lon=36.82&days=9").get_json()["data"]
    assert len(forecast) == 5
    assert {day["source"] for day in forecast} == {"sample"}


def test_invalid_coordinates(auth_client):
    assert auth_client.get("/api/v1/weather/current?lat=123&lon=36.82").status_code == 400
    assert auth_client.get("/api/v1/weather/current?lat=north&lon=36.82").status_code == 400
    assert auth_client.get("/api/v1/weather/forecast?lat=1&lon=1&days=soon").status_code == 400


def test_apiary_weather(auth_client):
    located = auth_client.post(
        "/api/v1/apiaries", json={"name": "Hillside", "location": "Nairobi", "latitude": -1.28, "longitude": 36.82}
    ).get_json()["data"]
    unlocated = auth_client.post("/api/v1/apiaries", json={"name": "Valley", "location": "Somewhere"}).get_json()[
        "data"
    ]

    weather = auth_client.get(f"/api/v1/weather/apiary/{located['id']}?days=2").get_json()["data"]
    assert weather["apiary_id"] == located["id"]
    assert len(weather["forecast"]) == 2

    assert auth_client.get(f"/api/v1/weather/apiary/{unlocated['id']}").status_code == 400
    assert auth_client.get("/api/v1/weather/apiary/9999").status_code == 404
