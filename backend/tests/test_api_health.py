"""Tests for health check endpoint."""


def test_health_check(client):
    """Health endpoint should return ok status."""
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert "app_name" in data


def test_unknown_api_route(auth_client):
    response = auth_client.get("/api/does-not-exist")
    assert response.status_code == 404
    assert response.json()["success"] is False
