"""Tests for the app factory and correlation ID middleware."""

from fastapi.testclient import TestClient

from shelterbeds.api.app import app
from shelterbeds.api.factory import create_app


def test_health_available():
    client = TestClient(create_app())
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_module_level_app_serves_health():
    response = TestClient(app).get("/health")
    assert response.status_code == 200


def test_docs_not_exposed():
    client = TestClient(create_app())
    assert client.get("/docs").status_code == 404


class TestCorrelationId:
    def test_generates_correlation_id(self):
        client = TestClient(create_app())
        response = client.get("/health")
        cid = response.headers["X-Correlation-ID"]
        assert len(cid) == 36  # UUID length

    def test_preserves_incoming_correlation_id(self):
        client = TestClient(create_app())
        response = client.get("/health", headers={"X-Correlation-ID": "shift-42"})
        assert response.headers["X-Correlation-ID"] == "shift-42"
