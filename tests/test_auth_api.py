"""Session auth endpoints and the JSON error envelope."""

from __future__ import annotations

TEST_PASSWORD = "hunter2-bees"


def test_register_login_me_logout(client, login):
    user_id = login(client)

    me = client.get("/auth/me")
    assert me.status_code == 200
    body = me.get_json()
    assert body["ok"] is True
    assert body["error"] is None
    assert body["data"]["id"] == user_id
    assert body["data"]["username"] == "beekeeper"

    assert client.post("/auth/logout").get_json()["data"] == {"logged_out": True}
    assert client.get("/auth/me").status_code == 401


def test_wrong_password_is_rejected(client, login):
    login(client)
    client.post("/auth/logout")

    response = client.post("/auth/login", json={"username": "beekeeper", "password": "not-the-password"})
    assert response.status_code == 401
    body = response.get_json()
    assert body["ok"] is False
    assert body["data"] is None
    assert body["error"]["code"] == "INVALID_CREDENTIALS"


def test_duplicate_registration_conflicts(client):
    payload = {"username": "beekeeper", "password": TEST_PASSWORD}
    assert client.post("/auth/register", json=payload).status_code == 201

    response = client.post("/auth/register", json=payload)
    assert response.status_code == 409
    assert response.get_json()["message"] == "Username is already taken"


def test_registration_policy(client):
    response = client.post("/auth/register", json={"username": "bee", "password": "short"})
    assert response.status_code == 400
    assert "Password" in response.get_json()["message"]

    response = client.post("/auth/register", json={})
    assert response.status_code == 400
    assert response.get_json()["details"]["errors"]
    assert response.get_json()["error"]["code"] == "VALIDATION_ERROR"


def test_protected_routes_require_a_session(client):
    for path in ("/api/v1/apiaries", "/api/v1/hives", "/api/v1/alerts", "/api/v1/dashboard/summary"):
        response = client.get(path)
        assert response.status_code == 401, path
        assert response.get_json()["error"]["code"] == "UNAUTHORIZED"


def test_unknown_api_route_is_json(client):
    response = client.get("/api/v1/nothing-here")
    assert response.status_code == 404
    assert response.get_json()["ok"] is False
    assert response.get_json()["error"]["code"] == "NOT_FOUND"
