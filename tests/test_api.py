import asyncio

import httpx
import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

import main
from remote import RemoteDerivativeService


@pytest.fixture
def client():
    return TestClient(main.app)


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_derive_returns_steps_and_summary(client):
    response = client.post("/derive", json={"expression": "x^2", "verify": False})
    assert response.status_code == 200
    data = response.json()
    assert data["solution_summary"] == "2 x"
    assert data["steps"][0]["rule_name"] == "Power rule"
    assert data["steps"][-1]["rule_name"] == "Final simplification"
    assert data["verified"] is None


def test_derive_with_verification_and_eval_point(client):
    response = client.post("/derive", json={"expression": "x^3", "eval_point": 2, "verify": True})
    assert response.status_code == 200
    data = response.json()
    assert data["solution_summary"] == "3 x^{2}"
    assert data["value"] == 12.0
    assert data["verified"] is True


@pytest.mark.parametrize("expression, error_type", [
    ("sec(x)", "unsupported_function"),
    ("(x+1", "parse_error"),
    ("x # 1", "lex_error"),
    ("(" * 150 + "x" + ")" * 150, "too_deep"),
])
def test_engine_errors_are_bad_requests(client, expression, error_type):
    response = client.post("/derive", json={"expression": expression, "verify": False})
    assert response.status_code == 400
    assert response.json()["detail"]["error_type"] == error_type


def test_parse_error_body_names_expected_and_found(client):
    response = client.post("/derive", json={"expression": "(x+1", "verify": False})
    detail = response.json()["detail"]
    assert detail["expected"] == ")"
    assert detail["found"] == "EOF"


@pytest.mark.parametrize("payload", [
    {"expression": "   "},
    {"expression": ""},
    {"expression": "x", "variable": "x1"},
    {},
])
def test_invalid_requests(client, payload):
    assert client.post("/derive", json=payload).status_code == 422


def test_proxy_forwards_the_body(client, monkeypatch):
    seen = {}

    async def fake_forward(payload):
        seen.update(payload)
        return {"result": "2 x"}

    monkeypatch.setattr(main.remote_service, "forward", fake_forward)
    response = client.post("/proxy", json={"expr": "x^2", "params": {"mode": "derivative"}})
    assert response.status_code == 200
    assert response.json() == {"result": "2 x"}
    assert seen == {"expr": "x^2", "params": {"mode": "derivative"}}


def test_remote_service_returns_upstream_json():
    def handler(request):
        assert request.method == "POST"
        return httpx.Response(200, json={"latex": "2x"})

    service = RemoteDerivativeService("https://remote.test/smart", transport=httpx.MockTransport(handler))
    assert asyncio.run(service.forward({"expr": "x^2"})) == {"latex": "2x"}


def test_remote_service_maps_upstream_errors():
    service = RemoteDerivativeService(
        "https://remote.test/smart",
        transport=httpx.MockTransport(lambda request: httpx.Response(503, text="busy")),
    )
    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(service.forward({}))
    assert exc_info.value.status_code == 503
    assert exc_info.value.detail["details"] == "busy"


def test_remote_service_unreachable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    service = RemoteDerivativeService("https://remote.test/smart", transport=httpx.MockTransport(handler))
    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(service.forward({}))
    assert exc_info.value.status_code == 502


def test_run_serves_the_app_with_uvicorn(monkeypatch):
    calls = {}

    def fake_run(app, **kwargs):
        calls["app"] = app
        calls.update(kwargs)

    monkeypatch.setattr(main.uvicorn, "run", fake_run)
    main.run()
    assert calls["app"] is main.app
    assert calls["host"] == main.config.HOST
    assert calls["port"] == main.config.PORT
