"""
Authentication & Authorization Module
-------------------------------------
Stateless bearer-token authentication with role/permission based access
control.

Core Components:
- roles: closed role and permission names and the seeded grant table
- principal: the per-request caller and the account-status precondition
- jwt_utils: TokenCodec, issuing and verifying access tokens
- auth_service: login and registration
- middleware: request identity resolution and route authorization
- authorization_policy: the route table and administrative target checks
- dependencies: FastAPI dependencies exposing the principal to handlers
- endpoints: /auth/login and /auth/sign-up
"""

from app.auth.roles import PermissionName, RoleName
from app.auth.jwt_utils import TokenCodec, get_token_codec

__all__ = [
    "PermissionName",
    "RoleName",
    "TokenCodec",
    "get_token_codec",
]
