"""Integration tests for per-route rate limiting through the HTTP layer."""

from __future__ import annotations

from unittest.mock import AsyncMock, Mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.requests import Request

from slp_gateway.api.deps import get_control_service, get_validation_orchestrator
from slp_gateway.core.config import settings
from slp_gateway.core.errors import RateLimitedAppError
from slp_gateway.core.rate_limit import (
    UNKNOWN_CLIENT,
    client_identity,
    enforce_rate_limit,
    resolve_limit,
)

NODE_INFO = {
    "version": 190000,
    "protocolversion": 70015,
    "blocks": 1265000,
    "timeoffset": 0,
    "connections": 8,
    "proxy": "",
    "difficulty": 1.0,
    "testnet": True,
    "relayfee": 0.00001,
    "errors": "",
}


@pytest.fixture
def control_service(app: FastAPI) -> Mock:
    service = Mock()
    service.get_info = AsyncMock(return_value=NODE_INFO)
    app.dependency_overrides[get_control_service] = lambda: service
    return service


@pytest.fixture
def orchestrator(app: FastAPI) -> Mock:
    fake = Mock()
    fake.validate_bulk = AsyncMock(return_value=[])
    app.dependency_overrides[get_validation_orchestrator] = lambda: fake
    return fake


def _bare_request(client: tuple[str, int] | None) -> Request:
    return Request(
        {
            "type": "http",
            "method": "GET",
            "path": "/v2/control/getInfo",
            "headers": [],
            "query_string": b"",
            "client": client,
        }
    )


def test_sixty_requests_per_minute_then_rejected(client: TestClient, control_service: Mock):
    statuses = [client.get("/v2/control/getInfo").status_code for _ in range(65)]

    assert statuses[:60] == [200] * 60
    assert statuses[60:] == [429] * 5
    assert control_service.get_info.await_count == 60


def test_rejection_body_and_headers(client: TestClient, control_service: Mock):
    for _ in range(60):
        client.get("/v2/control/getInfo")

    response = client.get("/v2/control/getInfo")

    assert response.status_code == 429
    assert response.json() == {
        "error": "Too many requests. Your limits are currently 60 requests per minute."
    }
    assert int(response.headers["Retry-After"]) >= 1
    assert response.headers["X-RateLimit-Limit"] == "60"
    assert response.headers["X-RateLimit-Remaining"] == "0"
    assert "X-RateLimit-Reset" in response.headers


def test_rejected_before_body_is_looked_at(
    client: TestClient, orchestrator: Mock, monkeypatch: pytest.MonkeyPatch
):
    monkeypatch.setattr(settings.rate_limit, "requests", 2)

    client.post("/v2/slp/validateTxid", json={"txids": []})
    client.post("/v2/slp/validateTxid", json="garbage")
    response = client.post("/v2/slp/validateTxid", json={"txids": ["a" * 64]})

    assert response.status_code == 429
    assert orchestrator.validate_bulk.await_count == 2


def test_budgets_are_per_route(
    client: TestClient, control_service: Mock, monkeypatch: pytest.MonkeyPatch
):
    monkeypatch.setattr(settings.rate_limit, "requests", 2)

    for _ in range(2):
        assert client.get("/v2/control/getInfo").status_code == 200
    assert client.get("/v2/control/getInfo").status_code == 429

    assert client.get("/v2/slp/").status_code == 200


def test_path_parameters_share_one_window(client: TestClient, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings.rate_limit, "requests", 2)

    assert client.get("/v2/slp/validateTxid/aaa").status_code == 400
    assert client.get("/v2/slp/validateTxid/bbb").status_code == 400
    assert client.get("/v2/slp/validateTxid/ccc").status_code == 429


def test_route_override_applies(
    client: TestClient, control_service: Mock, monkeypatch: pytest.MonkeyPatch
):
    monkeypatch.setattr(settings.rate_limit, "route_overrides", {"GET /v2/slp/": 1})

    assert client.get("/v2/slp/").status_code == 200
    response = client.get("/v2/slp/")
    assert response.status_code == 429
    assert "1 requests per minute" in response.json()["error"]

    assert client.get("/v2/control/getInfo").status_code == 200


def test_trusted_key_gets_relaxed_ceiling(
    client: TestClient, control_service: Mock, monkeypatch: pytest.MonkeyPatch
):
    monkeypatch.setattr(settings.rate_limit, "requests", 2)
    monkeypatch.setattr(settings.rate_limit, "trusted_requests", 5)
    headers = {"X-API-Key": "trusted-key-123"}

    statuses = [client.get("/v2/control/getInfo", headers=headers).status_code for _ in range(6)]

    assert statuses == [200] * 5 + [429]


def test_untrusted_key_is_limited_by_ip(
    client: TestClient, control_service: Mock, monkeypatch: pytest.MonkeyPatch
):
    monkeypatch.setattr(settings.rate_limit, "requests", 2)

    client.get("/v2/control/getInfo", headers={"X-API-Key": "made-up-1"})
    client.get("/v2/control/getInfo", headers={"X-API-Key": "made-up-2"})
    response = client.get("/v2/control/getInfo", headers={"X-API-Key": "made-up-3"})

    assert response.status_code == 429


def test_disabled_limiter_admits_everything(
    client: TestClient, control_service: Mock, monkeypatch: pytest.MonkeyPatch
):
    monkeypatch.setattr(settings.rate_limit, "enabled", False)

    statuses = {client.get("/v2/control/getInfo").status_code for _ in range(65)}

    assert statuses == {200}


def test_headers_can_be_omitted(
    client: TestClient, control_service: Mock, monkeypatch: pytest.MonkeyPatch
):
    monkeypatch.setattr(settings.rate_limit, "requests", 1)
    monkeypatch.setattr(settings.rate_limit, "include_headers", False)

    client.get("/v2/control/getInfo")
    response = client.get("/v2/control/getInfo")

    assert response.status_code == 429
    assert "Retry-After" not in response.headers


def test_health_is_not_rate_limited(client: TestClient, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings.rate_limit, "requests", 1)

    statuses = {client.get("/health").status_code for _ in range(5)}

    assert statuses == {200}


def test_client_identity_prefers_trusted_key():
    request = _bare_request(("10.1.2.3", 5000))

    assert client_identity(request, None) == "ip:10.1.2.3"
    assert client_identity(request, "not-configured") == "ip:10.1.2.3"
    assert client_identity(request, "trusted-key-123").startswith("api_key:")
    assert client_identity(_bare_request(None), None) == UNKNOWN_CLIENT


def test_resolve_limit(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings.rate_limit, "route_overrides", {"POST /v2/slp/validateTxid": 20})

    assert resolve_limit("POST /v2/slp/validateTxid", trusted=False) == 20
    assert resolve_limit("GET /v2/slp/list", trusted=False) == settings.rate_limit.requests
    assert resolve_limit("POST /v2/slp/validateTxid", trusted=True) == settings.rate_limit.trusted_requests


@pytest.mark.asyncio
async def test_unknown_client_fails_closed():
    with pytest.raises(RateLimitedAppError) as exc_info:
        await enforce_rate_limit(_bare_request(None), x_api_key=None)

    assert exc_info.value.status_code == 429
    assert exc_info.value.code == "rate_limit_unknown_client"
    assert "upstream" not in exc_info.value.details


@pytest.mark.asyncio
async def test_unknown_client_admitted_when_fail_open(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings.rate_limit, "fail_open", True)

    for _ in range(100):
        await enforce_rate_limit(_bare_request(None), x_api_key=None)


@pytest.mark.asyncio
async def test_trusted_caller_without_socket_address_is_admitted():
    # A trusted key identifies the caller even without a socket address
    await enforce_rate_limit(_bare_request(None), x_api_key="trusted-key-123")


def test_malformed_bodies_are_counted(
    client: TestClient, orchestrator: Mock, monkeypatch: pytest.MonkeyPatch
):
    monkeypatch.setattr(settings.rate_limit, "requests", 2)
    headers = {"Content-Type": "application/json"}

    statuses = [
        client.post("/v2/slp/validateTxid", content=b"{not json", headers=headers).status_code
        for _ in range(5)
    ]

    assert statuses == [200, 200, 429, 429, 429]
    orchestrator.validate_bulk.assert_awaited_with(None)


def test_undecodable_api_key_gets_a_decision(
    client: TestClient, control_service: Mock, monkeypatch: pytest.MonkeyPatch
):
    monkeypatch.setattr(settings.rate_limit, "requests", 1)
    headers = {"X-API-Key": "clé".encode("latin-1")}

    assert client.get("/v2/control/getInfo", headers=headers).status_code == 200
    assert client.get("/v2/control/getInfo", headers=headers).status_code == 429


def test_route_keys_carry_the_full_path_template(
    client: TestClient, control_service: Mock, monkeypatch: pytest.MonkeyPatch
):
    monkeypatch.setattr(
        settings.rate_limit,
        "route_overrides",
        {"GET /v2/control/getInfo": 1, "GET /v2/slp/validateTxid/{txid}": 1},
    )

    assert client.get("/v2/control/getInfo").status_code == 200
    assert client.get("/v2/control/getInfo").status_code == 429
    assert client.get("/v2/slp/validateTxid/aaa").status_code == 400
    assert client.get("/v2/slp/validateTxid/bbb").status_code == 429
