from __future__ import annotations


def test_sections_are_created_with_defaults(auth_client):
    everything = auth_client.get("/api/v1/settings").get_json()["data"]
    assert set(everything) == {"profile", "preferences", "notifications", "alertThresholds", "sharingPreferences"}

    preferences = auth_client.get("/api/v1/settings/preferences").get_json()["data"]
    assert preferences["theme"] == "system"
    assert preferences["high_contrast"] is False

    thresholds = auth_client.get("/api/v1/settings/alert-thresholds").get_json()["data"]
    assert thresholds["temperature_max"] == 36

    assert auth_client.get("/api/v1/settings/garden").status_code == 404


def test_section_updates(auth_client):
    updated = auth_client.put("/api/v1/settings/preferences", json={"theme": "dark", "high_contrast": True})
    assert updated.status_code == 200
    assert updated.get_json()["data"]["theme"] == "dark"
    assert updated.get_json()["data"]["language"] == "en"

    thresholds = auth_client.put("/api/v1/settings/alert-thresholds", json={"temperature_max": 38})
    assert thresholds.get_json()["data"]["temperature_max"] == 38

    assert auth_client.put("/api/v1/settings/alert-thresholds", json={"humidity_min": 90}).status_code == 400
    assert auth_client.put("/api/v1/settings/notifications", json={"quiet_hours_start": "late"}).status_code == 400
    assert auth_client.put("/api/v1/settings/garden", json={}).status_code == 404


def test_export_and_import(auth_client):
    auth_client.post("/api/v1/apiaries", json={"name": "Hillside", "location": "North Meadow"})
    auth_client.put("/api/v1/settings/profile", json={"first_name": "Wanjiru"})

    export = auth_client.get("/api/v1/settings/export").get_json()["data"]
    assert export["version"] == "1.0"
    assert export["profile"]["first_name"] == "Wanjiru"
    assert [a["name"] for a in export["apiaries"]] == ["Hillside"]

    export["preferences"]["theme"] = "dark"
    imported = auth_client.post("/api/v1/settings/import", json=export)
    assert imported.status_code == 200
    assert "preferences" in imported.get_json()["data"]["imported"]
    assert auth_client.get("/api/v1/settings/preferences").get_json()["data"]["theme"] == "dark"

    response = auth_client.post("/api/v1/settings/import", json={"profile": {}})
    assert response.status_code == 400


def test_backups_and_stats(auth_client):
    auth_client.post("/api/v1/apiaries", json={"name": "Hillside", "location": "North Meadow"})

    created = auth_client.post("/api/v1/settings/backups")
    assert created.status_code == 201
    backup = created.get_json()["data"]
    assert backup["size_bytes"] > 0

    history = auth_client.get("/api/v1/settings/backups").get_json()["data"]
    assert [b["id"] for b in history] == [backup["id"]]

    stats = auth_client.get("/api/v1/settings/stats").get_json()["data"]
    assert stats["apiariesCount"] == 1
    assert stats["hivesCount"] == 0
    assert stats["storageBytes"] > 0


def test_apiary_sharing(client, login):
    login(client, "neighbour")
    client.post("/auth/logout")
    login(client, "owner")
    apiary_id = client.post("/api/v1/apiaries", json={"name": "Hillside", "location": "North Meadow"}).get_json()[
        "data"
    ]["id"]

    shared = client.post("/api/v1/settings/shared-apiaries", json={"apiary_id": apiary_id, "username": "neighbour"})
    assert shared.status_code == 201
    share = shared.get_json()["data"]
    assert share["permission"] == "view"
    assert share["shared_with_username"] == "neighbour"

    again = client.post("/api/v1/settings/shared-apiaries", json={"apiary_id": apiary_id, "username": "neighbour"})
    assert again.status_code == 409
    missing = client.post("/api/v1/settings/shared-apiaries", json={"apiary_id": apiary_id, "username": "nobody"})
    assert missing.status_code == 404

    updated = client.put(f"/api/v1/settings/shared-apiaries/{share['id']}", json={"permission": "edit"})
    assert updated.get_json()["data"] == {"id": share["id"], "permission": "edit"}
    assert client.put(f"/api/v1/settings/shared-apiaries/{share['id']}", json={"permission": "own"}).status_code == 400

    listed = client.get("/api/v1/settings/shared-apiaries").get_json()["data"]
    assert [s["permission"] for s in listed] == ["edit"]

    assert client.delete(f"/api/v1/settings/shared-apiaries/{share['id']}").status_code == 200
    assert client.get("/api/v1/settings/shared-apiaries").get_json()["data"] == []
    assert client.delete(f"/api/v1/settings/shared-apiaries/{share['id']}").status_code == 404
