"""
Role Management Endpoints
-------------------------
SUPER_ADMIN-only view and maintenance of the role/permission grants.
"""

from typing import List

from fastapi import APIRouter, Depends
from loguru import logger

from app.auth.dependencies import get_current_principal, require_super_admin
from app.auth.principal import Principal
from app.auth.roles import RoleName
from app.models.request_models import RolePermissionsRequest
from app.models.response_models import RoleResponse
from app.psql_db_services.roles_service import RolesService


router = APIRouter(
    prefix="/admin/roles",
    tags=["Role Management"],
    dependencies=[Depends(require_super_admin)],
)


def get_roles_service() -> RolesService:
    return RolesService()


@router.get("", response_model=List[RoleResponse], summary="List roles and permissions")
async def list_roles(roles_service: RolesService = Depends(get_roles_service)):
    return [RoleResponse.from_role(role) for role in await roles_service.list_roles()]


@router.put(
    "/{role_name}/permissions",
    response_model=RoleResponse,
    summary="Replace the permissions granted by a role",
    description="Takes effect on the next request of every user holding the role.",
)
async def replace_role_permissions(
    role_name: RoleName,
    request: RolePermissionsRequest,
    principal: Principal = Depends(get_current_principal),
    roles_service: RolesService = Depends(get_roles_service),
):
    logger.warning(
        f"{principal.username} replacing permissions of {role_name.value}: "
        f"{[permission.value for permission in request.permissions]}"
    )
    role = await roles_service.replace_role_permissions(role_name, request.permissions)
    return RoleResponse.from_role(role)
