"""
User Administration Endpoints
-----------------------------
Account management for ADMIN and SUPER_ADMIN users. Permanent deletion is
reserved for SUPER_ADMIN. ADMIN users can only act on accounts that are not
themselves ADMIN or SUPER_ADMIN.
"""

from typing import List

from fastapi import APIRouter, Depends, Query, status
from loguru import logger

from app.auth.admin_user_service import AdminUserService
from app.auth.dependencies import get_current_principal, require_admin, require_super_admin
from app.auth.principal import Principal
from app.models.request_models import (
    AdminUserCreateRequest,
    ResetPasswordRequest,
    ToggleStatusRequest,
    UpdateRolesRequest,
    UserUpdateRequest,
)
from app.models.response_models import (
    MessageResponse,
    UserPageResponse,
    UserProfileResponse,
)


# ============================================================================
# ROUTER INITIALIZATION
# ============================================================================

router = APIRouter(
    prefix="/admin/users",
    tags=["User Administration"],
    dependencies=[Depends(require_admin)],
)


def get_admin_user_service() -> AdminUserService:
    return AdminUserService()


# ============================================================================
# READ ENDPOINTS
# ============================================================================


@router.get("", response_model=UserPageResponse, summary="List users")
async def list_users(
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    admin_service: AdminUserService = Depends(get_admin_user_service),
):
    users, total = await admin_service.list_users(limit=limit, offset=offset)
    return UserPageResponse(
        items=[UserProfileResponse.from_user(user) for user in users],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get(
    "/search",
    response_model=List[UserProfileResponse],
    summary="Search users by username or email",
)
async def search_users(
    query: str = Query(..., min_length=1),
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    admin_service: AdminUserService = Depends(get_admin_user_service),
):
    users = await admin_service.search_users(query, limit=limit, offset=offset)
    return [UserProfileResponse.from_user(user) for user in users]


@router.get("/{user_id}", response_model=UserProfileResponse, summary="Get user by ID")
async def get_user(
    user_id: int, admin_service: AdminUserService = Depends(get_admin_user_service)
):
    return UserProfileResponse.from_user(await admin_service.get_user(user_id))


# ============================================================================
# WRITE ENDPOINTS
# ============================================================================


@router.post(
    "",
    response_model=UserProfileResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user",
)
async def create_user(
    request: AdminUserCreateRequest,
    principal: Principal = Depends(get_current_principal),
    admin_service: AdminUserService = Depends(get_admin_user_service),
):
    logger.info(f"Admin {principal.username} creating user {request.username}")
    user = await admin_service.create_user(principal, request)
    return UserProfileResponse.from_user(user)


@router.put("/{user_id}", response_model=UserProfileResponse, summary="Update a user")
async def update_user(
    user_id: int,
    request: UserUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    admin_service: AdminUserService = Depends(get_admin_user_service),
):
    user = await admin_service.update_user(principal, user_id, request)
    return UserProfileResponse.from_user(user)


@router.delete(
    "/{user_id}",
    response_model=UserProfileResponse,
    summary="Soft delete a user",
    description="Marks the account deleted and disables it. The record is kept.",
)
async def soft_delete_user(
    user_id: int,
    principal: Principal = Depends(get_current_principal),
    admin_service: AdminUserService = Depends(get_admin_user_service),
):
    user = await admin_service.soft_delete_user(principal, user_id)
    return UserProfileResponse.from_user(user)


@router.delete(
    "/{user_id}/permanent",
    response_model=MessageResponse,
    summary="Permanently delete a user",
    dependencies=[Depends(require_super_admin)],
)
async def hard_delete_user(
    user_id: int,
    principal: Principal = Depends(get_current_principal),
    admin_service: AdminUserService = Depends(get_admin_user_service),
):
    await admin_service.hard_delete_user(principal, user_id)
    return MessageResponse(message="User permanently deleted.")


@router.put("/{user_id}/roles", response_model=UserProfileResponse, summary="Replace roles")
async def update_user_roles(
    user_id: int,
    request: UpdateRolesRequest,
    principal: Principal = Depends(get_current_principal),
    admin_service: AdminUserService = Depends(get_admin_user_service),
):
    user = await admin_service.update_user_roles(principal, user_id, request.roles)
    return UserProfileResponse.from_user(user)


@router.put(
    "/{user_id}/reset-password",
    response_model=MessageResponse,
    summary="Reset a user's password",
)
async def reset_user_password(
    user_id: int,
    request: ResetPasswordRequest,
    principal: Principal = Depends(get_current_principal),
    admin_service: AdminUserService = Depends(get_admin_user_service),
):
    await admin_service.reset_user_password(principal, user_id, request.new_password)
    return MessageResponse(message="Password reset successfully.")


@router.put(
    "/toggle-status/{user_id}",
    response_model=UserProfileResponse,
    summary="Enable or disable a user",
)
async def toggle_user_status(
    user_id: int,
    request: ToggleStatusRequest,
    principal: Principal = Depends(get_current_principal),
    admin_service: AdminUserService = Depends(get_admin_user_service),
):
    user = await admin_service.toggle_user_status(principal, user_id, request.enabled)
    return UserProfileResponse.from_user(user)
