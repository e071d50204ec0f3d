"""
Unit Tests for Config Manager
=============================
Unit tests for the ApplicationSettings configuration management system.

Test Coverage:
- Default configuration values
- Field validators
- Computed properties
- Environment variable loading
"""

import pytest
from pydantic import ValidationError

from app.core.config_manager import ApplicationSettings

TEST_ENV_VARS = [
    "DATABASE_DSN",
    "JWT_SECRET_KEY",
    "BCRYPT_ROUNDS",
    "DEBUG",
    "LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch):
    """Drop the variables the test session sets so defaults are visible."""
    for name in TEST_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestApplicationSettingsDefaults:
    """Test default configuration values."""

    def test_default_settings(self, clean_env):
        """Test that all default values are set correctly."""
        # Act
        settings = ApplicationSettings(_env_file=None)

        # Assert - Application metadata
        assert settings.app_name == "TomeVault API"
        assert settings.app_version == "1.0.0"
        assert settings.debug is False
        assert settings.log_level == "INFO"

        # Assert - Database configuration
        assert settings.database_host == "localhost"
        assert settings.database_port == 5432
        assert settings.database_pool_size == 20
        assert settings.database_dsn is None

        # Assert - Token configuration
        assert settings.jwt_secret_key is None
        assert settings.jwt_issuer == "TOMEVAULT-BACKEND"
        assert settings.jwt_algorithm == "HS256"
        assert settings.jwt_access_token_expire_minutes == 30

        # Assert - Hashing and catalog
        assert settings.bcrypt_rounds == 12
        assert settings.google_books_api_key is None
        assert settings.google_books_max_results == 20
        assert settings.demo_user_email is None


class TestApplicationSettingsValidators:
    """Test field validators."""

    def test_log_level_is_uppercased(self, clean_env):
        """Test lowercase log levels are normalized."""
        settings = ApplicationSettings(_env_file=None, log_level="debug")

        assert settings.log_level == "DEBUG"

    def test_invalid_log_level_rejected(self, clean_env):
        """Test unknown log levels are rejected."""
        with pytest.raises(ValidationError, match="Log level must be one of"):
            ApplicationSettings(_env_file=None, log_level="VERBOSE")

    @pytest.mark.parametrize("rounds", [3, 32])
    def test_bcrypt_rounds_out_of_range_rejected(self, clean_env, rounds):
        """Test bcrypt cost outside 4..31 is rejected."""
        with pytest.raises(ValidationError, match="bcrypt_rounds"):
            ApplicationSettings(_env_file=None, bcrypt_rounds=rounds)

    def test_non_positive_token_lifetime_rejected(self, clean_env):
        """Test a zero token lifetime is rejected."""
        with pytest.raises(ValidationError, match="must be positive"):
            ApplicationSettings(_env_file=None, jwt_access_token_expire_minutes=0)


class TestApplicationSettingsProperties:
    """Test computed properties."""

    def test_database_url_from_parts(self, clean_env):
        """Test the PostgreSQL URL is built from its parts."""
        settings = ApplicationSettings(
            _env_file=None,
            database_user="reader",
            database_password="pw",
            database_host="db.internal",
            database_port=6543,
            database_name="library",
        )

        assert settings.database_url == "postgresql+asyncpg://reader:pw@db.internal:6543/library"

    def test_database_dsn_overrides_parts(self, clean_env):
        """Test an explicit DSN wins over the individual parts."""
        settings = ApplicationSettings(
            _env_file=None, database_dsn="sqlite+aiosqlite:///./local.db"
        )

        assert settings.database_url == "sqlite+aiosqlite:///./local.db"

    def test_token_ttl_seconds(self, clean_env):
        """Test token lifetime is exposed in seconds."""
        settings = ApplicationSettings(_env_file=None, jwt_access_token_expire_minutes=15)

        assert settings.jwt_access_token_ttl_seconds == 900


class TestApplicationSettingsEnvironment:
    """Test environment variable loading."""

    def test_secret_key_loaded_from_env(self, clean_env):
        """Test the signing key is read from JWT_SECRET_KEY and masked in repr."""
        clean_env.setenv("JWT_SECRET_KEY", "from-the-environment")

        settings = ApplicationSettings(_env_file=None)

        assert settings.jwt_secret_key.get_secret_value() == "from-the-environment"
        assert "from-the-environment" not in repr(settings)

    def test_env_names_are_case_insensitive(self, clean_env):
        """Test lowercase environment variable names are honoured."""
        clean_env.setenv("demo_user_email", "demo@tomevault.io")

        settings = ApplicationSettings(_env_file=None)

        assert settings.demo_user_email == "demo@tomevault.io"
