"""
Configuration Manager
--------------------
Centralized configuration management using Pydantic Settings.
All application settings are loaded from environment variables with validation.
"""

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class ApplicationSettings(BaseSettings):
    """Main application configuration settings."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Application metadata
    app_name: str = Field(default="TomeVault API", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # FastAPI server configuration
    fastapi_host: str = Field(default="0.0.0.0", description="FastAPI host")
    fastapi_port: int = Field(default=8000, description="FastAPI port")
    cors_allowed_origins: List[str] = Field(
        default=["*"], description="Origins allowed by the CORS middleware"
    )

    # PostgreSQL database configuration
    database_host: str = Field(default="localhost", description="PostgreSQL host")
    database_port: int = Field(default=5432, description="PostgreSQL port")
    database_user: str = Field(default="tomevault", description="PostgreSQL user")
    database_password: str = Field(
        default="tomevault", description="PostgreSQL password"
    )
    database_name: str = Field(
        default="tomevault", description="PostgreSQL database name"
    )
    database_pool_size: int = Field(default=20, description="Connection pool size")
    database_max_overflow: int = Field(
        default=10, description="Max overflow connections"
    )
    database_dsn: Optional[str] = Field(
        default=None,
        description="Full SQLAlchemy async URL, overrides the PostgreSQL parts above",
    )

    # JWT configuration
    jwt_secret_key: Optional[SecretStr] = Field(
        default=None, description="HMAC signing key for access tokens"
    )
    jwt_issuer: str = Field(
        default="TOMEVAULT-BACKEND", description="Issuer claim written and verified"
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    jwt_access_token_expire_minutes: int = Field(
        default=30, description="Access token lifetime in minutes"
    )

    # Password hashing
    bcrypt_rounds: int = Field(default=12, description="bcrypt cost factor")

    # Google Books catalog
    google_books_base_url: str = Field(
        default="https://www.googleapis.com/books/v1/volumes",
        description="Google Books volumes endpoint",
    )
    google_books_api_key: Optional[SecretStr] = Field(
        default=None, description="Google Books API key"
    )
    google_books_timeout_seconds: float = Field(
        default=10.0, description="HTTP timeout for catalog calls"
    )
    google_books_max_results: int = Field(
        default=20, description="Max results returned by catalog search"
    )

    # Demo account whose library is reset on every login
    demo_user_email: Optional[str] = Field(
        default=None, description="Email of the shared demo account"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is acceptable."""
        valid_levels = ["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v_upper

    @field_validator("bcrypt_rounds")
    @classmethod
    def validate_bcrypt_rounds(cls, v: int) -> int:
        """bcrypt accepts cost factors between 4 and 31."""
        if not 4 <= v <= 31:
            raise ValueError("bcrypt_rounds must be between 4 and 31")
        return v

    @field_validator("jwt_access_token_expire_minutes")
    @classmethod
    def validate_token_lifetime(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("jwt_access_token_expire_minutes must be positive")
        return v

    @property
    def database_url(self) -> str:
        """Construct async database URL."""
        if self.database_dsn:
            return self.database_dsn
        return (
            f"postgresql+asyncpg://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @property
    def jwt_access_token_ttl_seconds(self) -> int:
        return self.jwt_access_token_expire_minutes * 60


# Global settings instance
settings = ApplicationSettings()
