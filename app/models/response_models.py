"""
Response Models
--------------
Pydantic models for API response validation.
Simple, focused schemas for returning data to clients.
"""

from datetime import date, datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.auth.roles import PermissionName, RoleName
from app.models.base_models import CamelModel
from app.models.users_models import Role, User


# ============================================================================
# USER RESPONSE MODELS
# ============================================================================
class UserProfileResponse(CamelModel):
    """User data without the password hash."""

    id: int
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    address: Optional[str] = None
    birth_date: Optional[date] = None
    roles: List[RoleName] = Field(default_factory=list)
    enabled: bool
    account_non_expired: bool
    account_non_locked: bool
    credentials_non_expired: bool
    deleted: bool = False
    deleted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_user(cls, user: User) -> "UserProfileResponse":
        data = user.model_dump(exclude={"password_hash", "roles", "updated_at"})
        return cls(**data, roles=user.role_names)


class UserPageResponse(CamelModel):
    items: List[UserProfileResponse]
    total: int
    limit: int
    offset: int


# ============================================================================
# ROLE RESPONSE MODELS
# ============================================================================
class RoleResponse(CamelModel):
    name: RoleName
    permissions: List[PermissionName]

    @classmethod
    def from_role(cls, role: Role) -> "RoleResponse":
        return cls(name=role.name, permissions=role.permissions)


class MessageResponse(BaseModel):
    message: str


# ============================================================================
# HEALTH CHECK RESPONSE MODEL
# ============================================================================
class HealthStatus(BaseModel):
    """
    Health check response schema.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "healthy",
                "timestamp": "2026-10-19T10:30:00Z",
                "version": "1.0.0",
                "database": "connected",
            }
        }
    )

    status: str = Field(..., description="Service health status")
    version: Optional[str] = Field(default=None, description="Application version")
    database: Optional[str] = Field(default=None, description="Database status")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Health check timestamp",
    )
