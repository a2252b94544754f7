"""
Pytest fixtures for Passport gate tests. Environment is pinned per test and
all outbound HTTP goes through httpx.MockTransport.
"""

from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest

GATE_ENV_VARS = (
    "PASSPORT_API_KEY",
    "PASSPORT_SCORER_ID",
    "PASSPORT_SERVER_API_KEY",
    "PASSPORT_API_BASE_URL",
    "VERIFY_URL",
    "PASSPORT_TIMEOUT_SEC",
    "VERIFY_TIMEOUT_SEC",
    "API_HOST",
    "API_PORT",
)

PASSPORT_BASE_URL = "https://passport.test"
VERIFY_URL = "http://gate.test/verify-score"


def _passport_body(address: str, score: str, passing: bool | None = None, **extra: Any) -> dict[str, Any]:
    """Passport v2 score response body."""
    body: dict[str, Any] = {
        "address": address,
        "score": score,
        "passing_score": float(score) >= 20.0 if passing is None else passing,
        "last_score_timestamp": "2026-10-01T12:00:00.000000+00:00",
        "expiration_timestamp": None,
        "threshold": "20.00000",
        "error": None,
        "stamps": {},
    }
    body.update(extra)
    return body


@pytest.fixture
def no_gate_env(monkeypatch):
    """Remove every gate setting from the environment and reset the settings cache."""
    from backend_passport_gate.config import get_settings

    for name in GATE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def gate_env(no_gate_env, monkeypatch):
    """Client and server credentials set to distinct test values."""
    from backend_passport_gate.config import get_settings

    monkeypatch.setenv("PASSPORT_API_KEY", "client-key")
    monkeypatch.setenv("PASSPORT_SCORER_ID", "1234")
    monkeypatch.setenv("PASSPORT_SERVER_API_KEY", "server-key")
    monkeypatch.setenv("PASSPORT_API_BASE_URL", PASSPORT_BASE_URL)
    monkeypatch.setenv("VERIFY_URL", VERIFY_URL)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def passport_body() -> Callable[..., dict[str, Any]]:
    """Factory for Passport v2 score response bodies."""
    return _passport_body


@pytest.fixture
def passport_transport() -> Callable[..., httpx.MockTransport]:
    """
    Factory: passport_transport({address: (status, body)}) -> MockTransport.
    Unknown addresses answer 404. Requests are appended to transport.requests.
    """

    def make(responses: dict[str, tuple[int, Any]]) -> httpx.MockTransport:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            address = request.url.path.rsplit("/", 1)[-1]
            if address not in responses:
                return httpx.Response(404, json={"detail": "Unable to get score for provided scorer."})
            status, body = responses[address]
            return httpx.Response(status, json=body)

        transport = httpx.MockTransport(handler)
        transport.requests = seen  # type: ignore[attr-defined]
        return transport

    return make


@pytest.fixture
def api_client(gate_env):
    """FastAPI TestClient. Dependency overrides are cleared afterwards."""
    from fastapi.testclient import TestClient

    from backend_passport_gate.api_server.server import app

    yield TestClient(app)
    app.dependency_overrides.clear()
