"""
Authentication Endpoints
------------------------
Public endpoints for logging in and signing up. Both return a freshly issued
access token; every other route expects it as ``Authorization: Bearer <token>``.
"""

from fastapi import APIRouter, Depends, status
from loguru import logger

from app.auth.auth_service import AuthService
from app.auth.models import AuthResponse, LoginRequest, SignUpRequest

# ============================================================================
# ROUTER INITIALIZATION
# ============================================================================

router = APIRouter(prefix="/auth", tags=["Authentication"])


def get_auth_service() -> AuthService:
    return AuthService()


# ============================================================================
# AUTHENTICATION ENDPOINTS
# ============================================================================


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Log in with username or email",
    description="""
    Authenticate with a username or email address and a password.

    Failures return 401 with the same message whatever the cause; the
    `errorCode` field is one of `invalid_credentials`, `account_disabled`
    or `account_deleted`.
    """,
)
async def login(
    request: LoginRequest, auth_service: AuthService = Depends(get_auth_service)
):
    """
    Authenticate a user and return an access token.

    Raises:
        InvalidCredentials / AccountDisabled / AccountDeleted: 401
    """
    logger.info("Login attempt")
    result = await auth_service.authenticate(request.username_or_email, request.password)
    return AuthResponse(
        username=result.user.username,
        message="User logged in successfully.",
        token=result.token,
        status=True,
    )


@router.post(
    "/sign-up",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
    description="Create an account with the USER role and return an access token.",
)
async def sign_up(
    request: SignUpRequest, auth_service: AuthService = Depends(get_auth_service)
):
    """
    Register a user and return an access token.

    Raises:
        ValidationError: 400 on password mismatch, taken username or email,
            or a password that does not meet the strength policy
    """
    logger.info(f"Sign-up attempt: username={request.username}")
    result = await auth_service.register(request)
    return AuthResponse(
        username=result.user.username,
        message="User registered successfully.",
        token=result.token,
        status=True,
    )
