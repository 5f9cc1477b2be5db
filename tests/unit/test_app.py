"""Smoke tests for the application entrypoint."""

from __future__ import annotations

from fastapi.testclient import TestClient

from app.core.identity import get_server_id


def test_health_reports_instance(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "instance": get_server_id()}


def test_unknown_route_uses_error_envelope_and_counts_metric(client: TestClient) -> None:
    response = client.get("/definitely-not-here")

    assert response.status_code == 404
    assert response.json()["instance"] == get_server_id()

    metrics = client.get("/metrics/")
    assert metrics.status_code == 200
    assert 'api_errors_total{status="404"}' in metrics.text
