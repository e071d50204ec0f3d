"""
Unit Tests for Health Endpoints
===============================
Basic and dependency health checks on a router-only app.
"""

import pytest
from unittest.mock import AsyncMock, patch
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.health_endpoints import router


# ============================================================================
# TEST SETUP
# ============================================================================


@pytest.fixture
def app():
    """Create FastAPI app with health endpoints router."""
    app = FastAPI()
    app.include_router(router)
    return app


@pytest.fixture
def client(app):
    """Create test client for the FastAPI app."""
    return TestClient(app)


# ============================================================================
# HEALTH CHECK TESTS
# ============================================================================


class TestBasicHealthCheck:
    """Test cases for basic health check endpoint."""

    @patch("app.api.health_endpoints.settings")
    def test_health_check_success(self, mock_settings, client):
        """Test successful health check returns status and version."""
        # Arrange
        mock_settings.app_version = "2.3.4"

        # Act
        response = client.get("/health")

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "2.3.4"
        assert "timestamp" in data


class TestDependencyHealthCheck:
    """Test cases for the database health check endpoint."""

    @patch("app.api.health_endpoints._check_database", new_callable=AsyncMock)
    def test_database_reachable(self, mock_check, client):
        """Test a reachable database reports healthy."""
        # Arrange
        mock_check.return_value = True

        # Act
        response = client.get("/health/dependencies")

        # Assert
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["database"] == "connected"

    @patch("app.api.health_endpoints._check_database", new_callable=AsyncMock)
    def test_database_unreachable_still_200(self, mock_check, client):
        """Test an unreachable database is reported in the body, not the status code."""
        # Arrange
        mock_check.return_value = False

        # Act
        response = client.get("/health/dependencies")

        # Assert
        assert response.status_code == 200
        assert response.json()["status"] == "unhealthy"
        assert response.json()["database"] == "unavailable"

    def test_uninitialized_database_is_unhealthy(self, client):
        """Test the real check catches an uninitialized database."""
        response = client.get("/health/dependencies")

        assert response.json()["status"] == "unhealthy"
