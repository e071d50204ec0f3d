"""
FastAPI Authentication Dependencies
-----------------------------------
Hand the principal installed by RequestIdentityMiddleware to route handlers,
which pass it on explicitly to the services they call.

Usage:
    @router.get("/user")
    async def profile(principal: Principal = Depends(get_current_principal)):
        ...

    @router.get("/admin/users", dependencies=[Depends(require_admin)])
"""

from typing import Iterable

from fastapi import Depends, Request
from loguru import logger

from app.auth.middleware import get_request_principal
from app.auth.principal import Principal
from app.auth.roles import RoleName
from app.core.exceptions import AccessDenied, Unauthenticated


async def get_current_principal(request: Request) -> Principal:
    """
    Principal of the current request.

    Raises:
        Unauthenticated: If the request carries no valid bearer token
    """
    principal = get_request_principal(request)
    if principal is None:
        raise Unauthenticated()
    return principal


class RoleChecker:
    """
    Dependency class requiring any one of the given roles.

    The route table already enforces roles before the handler runs; routers
    also declare them so the requirement is visible next to the handler.

    Usage:
        require_admin = RoleChecker([RoleName.ADMIN, RoleName.SUPER_ADMIN])
        @router.get("/admin-only", dependencies=[Depends(require_admin)])
    """

    def __init__(self, allowed_roles: Iterable[RoleName]):
        self.allowed_roles = [RoleName(role) for role in allowed_roles]
        if not self.allowed_roles:
            raise ValueError("RoleChecker needs at least one role")

    def __call__(
        self, principal: Principal = Depends(get_current_principal)
    ) -> Principal:
        if not principal.has_any_role(self.allowed_roles):
            logger.warning(
                f"User {principal.username} lacks roles "
                f"{[role.value for role in self.allowed_roles]}"
            )
            raise AccessDenied()
        return principal


require_admin = RoleChecker([RoleName.ADMIN, RoleName.SUPER_ADMIN])
require_super_admin = RoleChecker([RoleName.SUPER_ADMIN])
