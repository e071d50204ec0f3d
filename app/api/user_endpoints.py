"""
User Self-Service Endpoints
---------------------------
Profile and password management for the signed-in user.
"""

from fastapi import APIRouter, Depends
from loguru import logger

from app.auth.account_service import AccountService
from app.auth.dependencies import get_current_principal
from app.auth.models import AuthResponse
from app.auth.principal import Principal
from app.models.request_models import ChangePasswordRequest, UserUpdateRequest
from app.models.response_models import UserProfileResponse


# ============================================================================
# ROUTER INITIALIZATION
# ============================================================================

router = APIRouter(prefix="/user", tags=["User"])


def get_account_service() -> AccountService:
    return AccountService()


# ============================================================================
# PROFILE ENDPOINTS
# ============================================================================


@router.get(
    "",
    response_model=UserProfileResponse,
    summary="Get my profile",
)
async def get_profile(
    principal: Principal = Depends(get_current_principal),
    account_service: AccountService = Depends(get_account_service),
):
    """Profile of the signed-in user."""
    logger.debug(f"Profile requested by {principal.username}")
    user = await account_service.get_profile(principal)
    return UserProfileResponse.from_user(user)


@router.put(
    "/update",
    response_model=AuthResponse,
    summary="Update my profile",
    description="Update profile fields. Returns a new token since the username may change.",
)
async def update_profile(
    request: UserUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    account_service: AccountService = Depends(get_account_service),
):
    result = await account_service.update_profile(principal, request)
    return AuthResponse(
        username=result.user.username,
        message="User updated successfully.",
        token=result.token,
        status=True,
    )


@router.put(
    "/change-password",
    response_model=AuthResponse,
    summary="Change my password",
)
async def change_password(
    request: ChangePasswordRequest,
    principal: Principal = Depends(get_current_principal),
    account_service: AccountService = Depends(get_account_service),
):
    """
    Change the signed-in user's password.

    Raises:
        InvalidCredentials: 401 if the current password is wrong
        ValidationError: 400 on mismatch, reuse of the current password, or a weak password
    """
    result = await account_service.change_password(principal, request)
    return AuthResponse(
        username=result.user.username,
        message="Password changed successfully.",
        token=result.token,
        status=True,
    )
