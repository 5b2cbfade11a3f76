"""
Tests for health, readiness and metrics endpoints.
"""

from unittest.mock import AsyncMock

from record_service.domain.exceptions import StoreUnavailableException


class TestHealth:
    """Test operational endpoints."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "record-service"

    def test_ready(self, client):
        response = client.get("/ready")

        assert response.status_code == 200
        assert response.json()["checks"]["redis"] == "healthy"

    def test_not_ready_when_ping_false(self, client, memory_store):
        memory_store.available = False

        response = client.get("/ready")

        assert response.status_code == 503
        assert response.json()["ready"] is False

    def test_not_ready_when_store_unavailable(self, client, memory_store):
        memory_store.ping = AsyncMock(side_effect=StoreUnavailableException("ping"))

        response = client.get("/ready")

        assert response.status_code == 503
        assert response.json()["checks"]["redis"] == "unavailable"

    def test_metrics(self, client):
        client.get("/health")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "record_http_requests_total" in response.text

    def test_request_id_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["service"] == "Record Service"
