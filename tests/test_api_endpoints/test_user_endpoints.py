"""
Unit Tests for User Self-Service Endpoints
==========================================
Router-level tests with the account service mocked and the caller injected
through dependency overrides.
"""

import pytest
from unittest.mock import AsyncMock
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.user_endpoints import get_account_service, router
from app.auth.account_service import AccountUpdate
from app.auth.dependencies import get_current_principal
from app.auth.principal import Principal
from app.auth.roles import RoleName
from app.core.exceptions import InvalidCredentials, ValidationError, register_exception_handlers
from app.models.users_models import Role, User


# ============================================================================
# TEST SETUP
# ============================================================================


@pytest.fixture
def principal():
    return Principal(
        user_id=3,
        username="alice",
        email="alice@mailbox.org",
        roles=frozenset({RoleName.USER}),
        authorities=("ROLE_USER", "READ_BOOK"),
    )


@pytest.fixture
def sample_user():
    return User(
        id=3,
        username="alice",
        email="alice@mailbox.org",
        password_hash="$2b$04$secret-hash",
        first_name="Alice",
        roles=[Role(name=RoleName.USER)],
    )


@pytest.fixture
def account_service():
    return AsyncMock()


@pytest.fixture
def client(principal, account_service):
    """Router-only app with the caller and service overridden."""
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(router)
    app.dependency_overrides[get_current_principal] = lambda: principal
    app.dependency_overrides[get_account_service] = lambda: account_service
    return TestClient(app)


# ============================================================================
# PROFILE TESTS
# ============================================================================


class TestGetProfile:
    """Test GET /user."""

    def test_profile_in_camel_case_without_hash(self, client, account_service, sample_user):
        """Test the profile is camelCase and never exposes the password hash."""
        # Arrange
        account_service.get_profile.return_value = sample_user

        # Act
        response = client.get("/user")

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["username"] == "alice"
        assert data["firstName"] == "Alice"
        assert data["roles"] == ["USER"]
        assert "passwordHash" not in data
        assert "secret-hash" not in response.text


class TestUpdateProfile:
    """Test PUT /user/update."""

    def test_update_returns_new_token(self, client, account_service, sample_user, principal):
        """Test a successful update answers with a fresh token."""
        # Arrange
        account_service.update_profile.return_value = AccountUpdate(
            user=sample_user, token="new.jwt.token"
        )

        # Act
        response = client.put("/user/update", json={"firstName": "Al"})

        # Assert
        assert response.status_code == 200
        assert response.json() == {
            "username": "alice",
            "message": "User updated successfully.",
            "token": "new.jwt.token",
            "status": True,
        }
        called_principal, called_request = account_service.update_profile.call_args[0]
        assert called_principal is principal
        assert called_request.first_name == "Al"

    def test_update_conflict(self, client, account_service):
        """Test a taken email surfaces as 400."""
        # Arrange
        account_service.update_profile.side_effect = ValidationError("Email is already in use")

        # Act
        response = client.put("/user/update", json={"email": "bob@mailbox.org"})

        # Assert
        assert response.status_code == 400
        assert response.json() == {
            "message": "Email is already in use",
            "errorCode": "validation_error",
        }


class TestChangePassword:
    """Test PUT /user/change-password."""

    def test_wrong_current_password(self, client, account_service):
        """Test a wrong current password answers 401."""
        # Arrange
        account_service.change_password.side_effect = InvalidCredentials(
            "Current password is incorrect"
        )

        # Act
        response = client.put(
            "/user/change-password",
            json={
                "currentPassword": "Wrong1234",
                "newPassword": "Better123",
                "confirmPassword": "Better123",
            },
        )

        # Assert
        assert response.status_code == 401
        assert response.json()["message"] == "Current password is incorrect"

    def test_missing_fields(self, client):
        """Test request validation errors use the uniform 400 body."""
        response = client.put("/user/change-password", json={"currentPassword": "x"})

        assert response.status_code == 400
        assert response.json()["errorCode"] == "validation_error"
