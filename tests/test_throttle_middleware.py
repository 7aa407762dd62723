"""Integration tests for the throttle middleware through the FastAPI app."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from throttle.adapters.store.base import AbstractCounterStore
from throttle.adapters.store.in_memory import InMemoryCounterStore
from throttle.core.app_factory import create_app
from throttle.core.config import Settings, ThrottleSettings
from throttle.core.errors import ConfigurationAppError, StoreAppError
from throttle.services.throttle import RejectionResponse, ThrottleConfig

RATE_LIMIT_HEADERS = ("X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset")


class UnavailableStore(AbstractCounterStore):
    """Store whose every operation fails like an unreachable backend."""

    def _fail(self, operation: str):
        raise StoreAppError(
            code="store_unavailable",
            message=f"Counter store {operation} failed",
            details={"backend": "test", "operation": operation},
        )

    def read(self, key):
        self._fail("read")

    def write(self, key, value, ttl_seconds):
        self._fail("write")

    def increment(self, key, delta=1):
        self._fail("increment")

    def delete(self, key):
        self._fail("delete")


def _client(config: ThrottleConfig | None = None, *, store=None, fail_open: bool = False) -> TestClient:
    settings = Settings(throttle=ThrottleSettings(fail_open=fail_open))
    app = create_app(
        settings,
        store=store or InMemoryCounterStore(),
        config=config or ThrottleConfig(),
    )
    return TestClient(app)


def test_tenth_request_allowed_eleventh_rejected() -> None:
    client = _client(ThrottleConfig(limit=10))

    responses = [client.get("/v1/ping") for _ in range(11)]

    assert [r.status_code for r in responses[:10]] == [200] * 10
    assert [r.headers["X-RateLimit-Remaining"] for r in responses[:10]] == [
        str(n) for n in range(9, -1, -1)
    ]

    rejected = responses[10]
    assert rejected.status_code == 429
    assert rejected.text == "Rate limit exceeded"
    assert rejected.headers["content-type"].startswith("text/html")


def test_rate_limit_headers_on_allowed_and_rejected_responses() -> None:
    client = _client(ThrottleConfig(limit=1))

    allowed = client.get("/v1/ping")
    rejected = client.get("/v1/ping")

    for response in (allowed, rejected):
        assert response.headers["X-RateLimit-Limit"] == "1"
        assert response.headers["X-RateLimit-Reset"].isdigit()
    assert allowed.headers["X-RateLimit-Remaining"] == "0"
    assert rejected.headers["X-RateLimit-Remaining"] == "0"
    assert allowed.headers["X-RateLimit-Reset"] == rejected.headers["X-RateLimit-Reset"]


def test_custom_rejection_response() -> None:
    config = ThrottleConfig(
        limit=0,
        rejection=RejectionResponse(
            body='{"error": "slow down"}',
            content_type="application/json",
            headers={"Retry-After": "60"},
        ),
    )
    client = _client(config)

    response = client.get("/v1/ping")

    assert response.status_code == 429
    assert response.json() == {"error": "slow down"}
    assert response.headers["Retry-After"] == "60"
    assert response.headers["X-RateLimit-Limit"] == "0"


def test_health_is_not_throttled() -> None:
    client = _client(ThrottleConfig(limit=0))

    response = client.get("/health")

    assert response.status_code == 200
    for name in RATE_LIMIT_HEADERS:
        assert name not in response.headers


def test_custom_identifier_scopes_windows() -> None:
    config = ThrottleConfig(limit=1, identifier=lambda request: request.headers.get("X-Tenant", "anon"))
    client = _client(config)

    assert client.get("/v1/ping", headers={"X-Tenant": "a"}).status_code == 200
    assert client.get("/v1/ping", headers={"X-Tenant": "a"}).status_code == 429
    assert client.get("/v1/ping", headers={"X-Tenant": "b"}).status_code == 200


def test_malformed_header_names_disable_headers() -> None:
    client = _client(ThrottleConfig(limit=1, header_names="disabled"))

    allowed = client.get("/v1/ping")
    rejected = client.get("/v1/ping")

    assert allowed.status_code == 200
    assert rejected.status_code == 429
    for response in (allowed, rejected):
        for name in RATE_LIMIT_HEADERS:
            assert name not in response.headers


def test_store_failure_fails_closed_by_default() -> None:
    client = _client(store=UnavailableStore())

    response = client.get("/v1/ping")

    assert response.status_code == 503
    assert response.json()["error"]["code"] == "store_unavailable"


def test_store_failure_fails_open_when_configured() -> None:
    client = _client(store=UnavailableStore(), fail_open=True)

    response = client.get("/v1/ping")

    assert response.status_code == 200
    assert response.json() == {"message": "pong"}
    assert "X-RateLimit-Limit" not in response.headers


def test_disabled_throttle_installs_no_middleware() -> None:
    settings = Settings(throttle=ThrottleSettings(enabled=False, limit=0))
    client = TestClient(create_app(settings, store=InMemoryCounterStore()))

    response = client.get("/v1/ping")

    assert response.status_code == 200
    assert "X-RateLimit-Limit" not in response.headers


def test_settings_are_applied_when_no_config_given() -> None:
    settings = Settings(
        throttle=ThrottleSettings(
            limit=2,
            headers={"limit": "RateLimit-Limit", "remaining": "RateLimit-Remaining", "reset": "RateLimit-Reset"},
            response_body="Too many",
            response_type="text/plain",
        )
    )
    client = TestClient(create_app(settings, store=InMemoryCounterStore()))

    responses = [client.get("/v1/ping") for _ in range(3)]

    assert [r.status_code for r in responses] == [200, 200, 429]
    assert responses[0].headers["RateLimit-Remaining"] == "1"
    assert responses[2].text == "Too many"
    assert responses[2].headers["content-type"].startswith("text/plain")


@pytest.mark.parametrize("identifier", ["os:sep", "not-a-path"])
def test_invalid_identifier_fails_at_app_creation(identifier: str) -> None:
    settings = Settings(throttle=ThrottleSettings(identifier=identifier))

    with pytest.raises(ConfigurationAppError):
        create_app(settings, store=InMemoryCounterStore())


def test_invalid_interval_fails_at_app_creation() -> None:
    settings = Settings(throttle=ThrottleSettings(interval="whenever"))

    with pytest.raises(ConfigurationAppError):
        create_app(settings, store=InMemoryCounterStore())


@pytest.mark.parametrize("raw_headers", ["false", "off", "null", '["X-RateLimit-Limit"]', '{"limit": "X-RateLimit-Limit"}'])
def test_malformed_headers_env_disables_headers(monkeypatch: pytest.MonkeyPatch, raw_headers: str) -> None:
    monkeypatch.setenv("THROTTLE_HEADERS", raw_headers)
    monkeypatch.setenv("THROTTLE_LIMIT", "1")
    settings = Settings(throttle=ThrottleSettings())
    client = TestClient(create_app(settings, store=InMemoryCounterStore()))

    allowed = client.get("/v1/ping")
    rejected = client.get("/v1/ping")

    assert allowed.status_code == 200
    assert rejected.status_code == 429
    for response in (allowed, rejected):
        for name in RATE_LIMIT_HEADERS:
            assert name not in response.headers


def test_headers_env_mapping_is_decoded(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(
        "THROTTLE_HEADERS",
        '{"limit": "RateLimit-Limit", "remaining": "RateLimit-Remaining", "reset": "RateLimit-Reset"}',
    )
    settings = Settings(throttle=ThrottleSettings())
    client = TestClient(create_app(settings, store=InMemoryCounterStore()))

    response = client.get("/v1/ping")

    assert response.headers["RateLimit-Limit"] == "10"
    assert "X-RateLimit-Limit" not in response.headers


def test_non_latin1_header_name_does_not_break_requests() -> None:
    names = {"limit": "X-RateLimit-Limit", "remaining": "X-Restante-ñ€", "reset": "X-RateLimit-Reset"}
    client = _client(ThrottleConfig(limit=1, header_names=names))

    allowed = client.get("/v1/ping")
    rejected = client.get("/v1/ping")

    assert allowed.status_code == 200
    assert rejected.status_code == 429
    assert "X-RateLimit-Limit" not in allowed.headers
