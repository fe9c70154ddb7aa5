"""Functional tests for the FastAPI application.

These tests verify that the API starts, responds and keeps protected
endpoints behind their credentials.
"""

from unittest.mock import patch

from pymongo.errors import ServerSelectionTimeoutError


def test_root_endpoint(test_client):
    """Test the root endpoint returns service information."""
    response = test_client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "running"
    assert data["endpoints"]["summarize"] == "POST /summarize"


def test_health_check(test_client):
    """Test the basic health check endpoint."""
    response = test_client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "timestamp" in data


def test_readiness_check(test_client):
    """Test readiness when the database answers and a model key is set."""
    with patch("app.services.database.ping"):
        response = test_client.get("/health/ready")

    assert response.status_code == 200
    assert response.json() == {
        "status": "ready",
        "checks": {"database": "ok", "llm": "ok"},
    }


def test_readiness_failure_uses_error_envelope(test_client, summarizer):
    """Test that a failed readiness check is reported like any other error."""
    summarizer.enabled = False

    with patch(
        "app.services.database.ping",
        side_effect=ServerSelectionTimeoutError("no servers"),
    ):
        response = test_client.get("/health/ready")

    assert response.status_code == 503
    data = response.json()
    assert data["success"] is False
    assert data["error"] == "Service not ready"
    assert data["status"] == "not ready"
    assert data["checks"]["database"].startswith("error:")
    assert data["checks"]["llm"] == "error: missing API key"


def test_api_keys_endpoint_requires_token(test_client):
    """Ensure dashboard endpoints reject a missing session token."""
    response = test_client.get("/api-keys")

    assert response.status_code == 401
    assert response.json() == {
        "success": False,
        "error": "Authorization token required",
    }


def test_summarize_requires_api_key(test_client, github, summarizer):
    """Ensure the summarizer rejects a missing API key before doing any work."""
    response = test_client.post(
        "/summarize", json={"githubUrl": "https://github.com/facebook/react"}
    )

    assert response.status_code == 400
    assert response.json()["error"] == "API key is required"
    github.fetch_readme.assert_not_called()
    summarizer.summarize.assert_not_called()


def test_invalid_json_returns_400(test_client):
    """Test that a body that is not valid JSON is reported as a client error."""
    response = test_client.post(
        "/auth/login",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["success"] is False
