"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any ``app`` import so settings are
built for tests: in-memory record stores, cheap bcrypt, quiet logs.
"""

import os

os.environ["APP_ENV"] = "testing"
os.environ["DB_BACKEND"] = "memory"
os.environ.setdefault("APP_BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.pop("APP_SEED_USER_EMAIL", None)
os.environ.pop("APP_SEED_USER_PASSWORD", None)

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core import auth, rate_limit
from app.core.app_factory import create_app

TEST_USER = {
    "name": "Test User",
    "email": "tester@example.com",
    "password": "secret123",
}


@pytest.fixture(autouse=True)
def reset_process_state(monkeypatch: pytest.MonkeyPatch) -> None:
    """Give every test a fresh login limiter and session store."""
    monkeypatch.setattr(rate_limit, "_limiter", None)
    monkeypatch.setattr(rate_limit, "_limiter_config", None)
    monkeypatch.setattr(auth, "_session_store", None)
    monkeypatch.setattr(auth, "_session_config", None)


@pytest.fixture
def api_app() -> FastAPI:
    """App wired to fresh in-memory stores, with one known user."""
    application = create_app()
    application.state.account_services["users"].ensure_account(
        TEST_USER["name"], TEST_USER["email"], TEST_USER["password"]
    )
    return application


@pytest.fixture
def client(api_app: FastAPI) -> TestClient:
    return TestClient(api_app)


@pytest.fixture
def auth_headers(client: TestClient) -> dict[str, str]:
    """Bearer headers for TEST_USER obtained through the login route."""
    response = client.post(
        "/api/authentication/login",
        json={"email": TEST_USER["email"], "password": TEST_USER["password"]},
    )
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}
