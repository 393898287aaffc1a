from __future__ import annotations


def _create(client, name="Hillside", location="North Meadow", **extra):
    return client.post("/api/v1/apiaries", json={"name": name, "location": location, **extra})


def test_create_get_update_delete(auth_client):
    created = _create(auth_client, latitude=-1.28, longitude=36.82)
    assert created.status_code == 201
    apiary = created.get_json()["data"]
    assert apiary["hiveCount"] == 0

    fetched = auth_client.get(f"/api/v1/apiaries/{apiary['id']}").get_json()["data"]
    assert fetched["name"] == "Hillside"
    assert fetched["latitude"] == -1.28

    updated = auth_client.put(f"/api/v1/apiaries/{apiary['id']}", json={"notes": "By the acacias"})
    assert updated.status_code == 200
    assert updated.get_json()["data"]["notes"] == "By the acacias"
    assert updated.get_json()["data"]["location"] == "North Meadow"

    deleted = auth_client.delete(f"/api/v1/apiaries/{apiary['id']}")
    assert deleted.get_json()["data"] == {"id": apiary["id"], "deleted": True}
    assert auth_client.get(f"/api/v1/apiaries/{apiary['id']}").status_code == 404


def test_payload_validation(auth_client):
    response = _create(auth_client, location="")
    assert response.status_code == 400
    assert response.get_json()["message"] == "Invalid apiary payload"

    response = _create(auth_client, latitude=123)
    assert response.status_code == 400


def test_paginated_listing(auth_client):
    for index in range(12):
        _create(auth_client, f"Apiary {index:02d}")

    body = auth_client.get("/api/v1/apiaries?page=2&pageSize=5").get_json()["data"]
    assert body["count"] == 12
    assert body["page"] == 2
    assert body["pageSize"] == 5
    assert body["totalPages"] == 3
    assert len(body["data"]) == 5

    clamped = auth_client.get("/api/v1/apiaries?page=-1&pageSize=1000").get_json()["data"]
    assert clamped["page"] == 1
    assert clamped["pageSize"] == 50

    everything = auth_client.get("/api/v1/apiaries/all").get_json()["data"]
    assert len(everything) == 12


def test_apiaries_are_private(client, login):
    login(client, "owner")
    apiary_id = _create(client).get_json()["data"]["id"]
    client.post("/auth/logout")

    login(client, "neighbour")
    response = client.get(f"/api/v1/apiaries/{apiary_id}")
    assert response.status_code == 404
    assert response.get_json()["error"]["code"] == "NOT_FOUND"
    assert client.delete(f"/api/v1/apiaries/{apiary_id}").status_code == 404
    assert client.get("/api/v1/apiaries").get_json()["data"]["count"] == 0


def test_legacy_prefix_is_rewritten(auth_client):
    _create(auth_client)
    response = auth_client.get("/api/apiaries/all")
    assert response.status_code == 200
    assert len(response.get_json()["data"]) == 1
