"""Tests for application-level routes."""

from fastapi.testclient import TestClient


def test_health(client: TestClient):
    """Test the health check answers without authentication."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}
