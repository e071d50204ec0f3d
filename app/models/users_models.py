from datetime import date, datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from app.auth.roles import PermissionName, RoleName


class Role(BaseModel):
    """A role together with the permissions it grants."""

    name: RoleName
    permissions: List[PermissionName] = Field(default_factory=list)


class User(BaseModel):
    """
    Pydantic model for the 'users' table joined with its role graph.

    Carries the password hash; never return it from an endpoint.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Unique numeric identifier")
    username: str = Field(..., description="Unique username for login", max_length=50)
    email: str = Field(..., description="Unique email address")
    password_hash: str = Field(..., repr=False)
    first_name: Optional[str] = Field(default=None, max_length=50)
    last_name: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = None
    birth_date: Optional[date] = None
    enabled: bool = True
    account_non_expired: bool = True
    account_non_locked: bool = True
    credentials_non_expired: bool = True
    deleted: bool = False
    deleted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    roles: List[Role] = Field(default_factory=list)

    @property
    def role_names(self) -> List[RoleName]:
        return [role.name for role in self.roles]

    def has_role(self, role: RoleName) -> bool:
        return RoleName(role) in self.role_names
