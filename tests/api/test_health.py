from __future__ import annotations

from fastapi.testclient import TestClient


def test_health_reports_height_and_records(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {
        "status": "ok",
        "block_height": 1000,
        "records": {"proofs": 0, "credentials": 0, "courses": 0, "enrollments": 0},
    }


def test_ready(client: TestClient) -> None:
    resp = client.get("/ready")
    assert resp.status_code == 200
