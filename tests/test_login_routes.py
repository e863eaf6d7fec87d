"""Integration tests for login, logout and login rate limiting."""

from fastapi.testclient import TestClient

from app.core.config import settings

LOGIN_URL = "/api/authentication/login"
GOOD = {"email": "tester@example.com", "password": "secret123"}
BAD = {"email": "tester@example.com", "password": "wrong-password"}


def test_login_returns_token_and_profile(client: TestClient) -> None:
    response = client.post(LOGIN_URL, json={"email": " Tester@Example.com ", "password": "secret123"})

    assert response.status_code == 200
    body = response.json()
    assert body["email"] == "tester@example.com"
    assert body["name"] == "Test User"
    assert body["user_id"]
    assert body["token"]
    assert "password" not in body


def test_wrong_credentials_are_forbidden(client: TestClient) -> None:
    for payload in (BAD, {"email": "ghost@example.com", "password": "secret123"}):
        response = client.post(LOGIN_URL, json=payload)

        assert response.status_code == 403
        assert response.json()["error"] == "INVALID_CREDENTIALS"
        assert response.json()["message"] == "Wrong email or password"


def test_sixth_failed_attempt_is_rate_limited(client: TestClient) -> None:
    limit = settings.app.login_rate_limit_attempts

    for _ in range(limit):
        assert client.post(LOGIN_URL, json=BAD).json()["error"] == "INVALID_CREDENTIALS"

    response = client.post(LOGIN_URL, json=BAD)

    assert response.status_code == 403
    body = response.json()
    assert body["error"] == "RATE_LIMITED"
    assert body["message"] == "Too many failed login attempts."
    assert 0 < int(response.headers["Retry-After"]) <= settings.app.login_rate_limit_window_seconds
    assert response.headers["X-RateLimit-Remaining"] == "0"


def test_correct_password_is_also_blocked_once_limited(client: TestClient) -> None:
    for _ in range(settings.app.login_rate_limit_attempts):
        client.post(LOGIN_URL, json=BAD)

    response = client.post(LOGIN_URL, json=GOOD)

    assert response.json()["error"] == "RATE_LIMITED"


def test_successful_login_resets_failed_attempts(client: TestClient) -> None:
    limit = settings.app.login_rate_limit_attempts
    for _ in range(limit - 1):
        client.post(LOGIN_URL, json=BAD)

    assert client.post(LOGIN_URL, json=GOOD).status_code == 200

    for _ in range(limit):
        assert client.post(LOGIN_URL, json=BAD).json()["error"] == "INVALID_CREDENTIALS"


def test_clients_are_limited_independently(client: TestClient, monkeypatch) -> None:
    monkeypatch.setattr(settings.app, "trust_proxy_headers", True)
    for _ in range(settings.app.login_rate_limit_attempts + 1):
        client.post(LOGIN_URL, json=BAD, headers={"X-Forwarded-For": "10.0.0.1"})

    blocked = client.post(LOGIN_URL, json=BAD, headers={"X-Forwarded-For": "10.0.0.1"})
    other = client.post(LOGIN_URL, json=BAD, headers={"X-Forwarded-For": "10.0.0.2"})

    assert blocked.json()["error"] == "RATE_LIMITED"
    assert other.json()["error"] == "INVALID_CREDENTIALS"


def test_limit_disabled(client: TestClient, monkeypatch) -> None:
    monkeypatch.setattr(settings.app, "login_rate_limit_enabled", False)

    for _ in range(settings.app.login_rate_limit_attempts + 3):
        assert client.post(LOGIN_URL, json=BAD).json()["error"] == "INVALID_CREDENTIALS"


def test_logout_revokes_token(client: TestClient, auth_headers) -> None:
    assert client.get("/api/users", headers=auth_headers).status_code == 200

    response = client.post("/api/authentication/logout", headers=auth_headers)

    assert response.status_code == 204
    assert client.get("/api/users", headers=auth_headers).status_code == 401


def test_change_own_password_revokes_sessions(client: TestClient, auth_headers) -> None:
    user_id = client.post(LOGIN_URL, json=GOOD).json()["user_id"]

    response = client.post(
        f"/api/users/{user_id}/change-password",
        json={"password_old": "secret123", "password_new": "newpass1", "password_confirm": "newpass1"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert client.get("/api/users", headers=auth_headers).status_code == 401
    assert client.post(LOGIN_URL, json={**GOOD, "password": "newpass1"}).status_code == 200
