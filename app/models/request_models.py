"""
User & Administration Request Models
====================================

Pydantic request models for self-service profile management, user
administration and role management. JSON field names are camelCase.
"""

from datetime import date
from typing import List, Optional

from pydantic import ConfigDict, EmailStr, Field, field_validator

from app.auth.models import normalize_username
from app.auth.roles import PermissionName, RoleName
from app.models.base_models import CamelModel


class UserUpdateRequest(CamelModel):
    """Profile changes; omitted fields are left unchanged."""

    username: Optional[str] = Field(
        None, description="New username", min_length=3, max_length=50
    )
    email: Optional[EmailStr] = Field(None, description="New email address")
    first_name: Optional[str] = Field(None, max_length=50)
    last_name: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, max_length=255)
    birth_date: Optional[date] = None

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else normalize_username(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[EmailStr]) -> Optional[EmailStr]:
        return None if v is None else v.lower().strip()

    def changed_fields(self) -> dict:
        """Fields the client sent; username and email cannot be cleared."""
        fields = self.model_dump(exclude_unset=True)
        for identifier in ("username", "email"):
            if identifier in fields and fields[identifier] is None:
                del fields[identifier]
        return fields

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "alice.new@example.com",
                "firstName": "Alice",
                "lastName": "Liddell",
            }
        }
    )


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)
    confirm_password: str = Field(..., min_length=1)


class AdminUserCreateRequest(CamelModel):
    """Account created by an administrator. Defaults to the USER role."""

    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=1)
    first_name: Optional[str] = Field(None, max_length=50)
    last_name: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, max_length=255)
    birth_date: Optional[date] = None
    roles: Optional[List[RoleName]] = Field(
        None, description="Roles to assign; USER when omitted"
    )

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        return normalize_username(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: EmailStr) -> EmailStr:
        return v.lower().strip()


class UpdateRolesRequest(CamelModel):
    roles: List[RoleName] = Field(..., min_length=1)


class ResetPasswordRequest(CamelModel):
    new_password: str = Field(..., min_length=1)


class ToggleStatusRequest(CamelModel):
    enabled: bool


class RolePermissionsRequest(CamelModel):
    permissions: List[PermissionName] = Field(default_factory=list)
