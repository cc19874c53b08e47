from __future__ import annotations

from fastapi.testclient import TestClient

from credchain.main import app


client = TestClient(app)


def test_app_title() -> None:
    assert app.title == "credchain-service"


def test_health_returns_ok() -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_ledger_routes_are_mounted() -> None:
    paths = app.openapi()["paths"]
    for expected in (
        "/v1/proofs",
        "/v1/credentials",
        "/v1/courses",
        "/v1/enrollments",
        "/v1/chain/height",
        "/v1/chain/advance",
    ):
        assert expected in paths


def test_metrics_route_is_mounted() -> None:
    resp = client.get("/metrics")
    assert resp.status_code == 200


def test_protected_routes_reject_missing_token() -> None:
    for path in ("/v1/proofs?owner=alice", "/v1/courses/0", "/v1/enrollments/0"):
        assert client.get(path).status_code == 401


def test_protected_routes_reject_garbage_token() -> None:
    resp = client.get(
        "/v1/chain/height", headers={"Authorization": "Bearer not-a-jwt"}
    )
    assert resp.status_code == 401
    assert resp.json() == {"detail": "Invalid token"}
