"""
Authentication Models
---------------------
Pydantic models for the login and sign-up endpoints and the token response
they share. JSON field names are camelCase.
"""

import re
from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.models.base_models import CamelModel


USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


def normalize_username(value: str) -> str:
    value = value.strip()
    if not USERNAME_PATTERN.match(value):
        raise ValueError(
            "Username can only contain letters, numbers, dot, underscore, and hyphen"
        )
    return value


class LoginRequest(CamelModel):
    """Credentials for POST /auth/login. The identifier may be a username or an email."""

    username_or_email: str = Field(..., min_length=1, max_length=120)
    password: str = Field(..., min_length=1)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"usernameOrEmail": "alice", "password": "Secret123"}
        }
    )


class SignUpRequest(CamelModel):
    """Registration fields for POST /auth/sign-up."""

    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=1)
    confirm_password: str = Field(..., min_length=1)
    first_name: Optional[str] = Field(default=None, max_length=50)
    last_name: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = Field(default=None, max_length=255)
    birth_date: Optional[date] = None

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        return normalize_username(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: EmailStr) -> EmailStr:
        return v.lower().strip()

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "username": "alice",
                "email": "alice@example.com",
                "password": "Secret123",
                "confirmPassword": "Secret123",
                "firstName": "Alice",
                "lastName": "Liddell",
            }
        }
    )


class AuthResponse(BaseModel):
    """Returned by login, sign-up and every operation that reissues a token."""

    username: str
    message: str
    token: str
    status: bool = True
