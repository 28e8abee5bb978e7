"""
Tests for the health check endpoint.
"""

from django.urls import reverse


class TestHealthCheck:
    """Tests for /health/."""

    def test_healthy(self, client, db, mocker):
        mocker.patch("core.views.get_redis_connection")

        response = client.get(reverse("health_check"))

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "database": "connected", "redis": "connected"}

    def test_redis_down_is_degraded(self, client, db, mocker):
        mocker.patch("core.views.get_redis_connection", side_effect=ConnectionError("refused"))

        response = client.get(reverse("health_check"))

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"
        assert response.json()["redis"] == "disconnected"
