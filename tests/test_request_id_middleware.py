from __future__ import annotations

from fastapi.testclient import TestClient


def test_preserves_incoming_request_id_header(client: TestClient):
    incoming_id = "test-request-id-123"
    resp = client.get("/health", headers={"X-Request-ID": incoming_id})

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID") == incoming_id


def test_generates_request_id_when_missing(client: TestClient):
    resp = client.get("/health")

    assert resp.status_code == 200
    generated = resp.headers.get("X-Request-ID")
    assert generated
    assert resp.headers.get("X-Request-Duration-ms") is not None


def test_error_responses_carry_request_id_header_only(client: TestClient):
    resp = client.post(
        "/api/v1/login",
        json={"email": "nobody@x.com", "password": "secret1"},
        headers={"X-Request-ID": "req-login-1"},
    )

    assert resp.status_code == 401
    assert resp.headers.get("X-Request-ID") == "req-login-1"
    assert "req-login-1" not in resp.text
