"""
Authentication Middleware
-------------------------
Request pipeline for bearer-token authentication and route authorization.

RequestIdentityMiddleware
    Resolves ``Authorization: Bearer <token>`` into a Principal on
    ``request.state.principal``. The user is reloaded from the database on
    every request, so disabling an account or changing its roles takes
    effect on the next request even while older tokens are unexpired.
    Requests without a bearer header pass through anonymously.

AuthorizationPolicyMiddleware
    Applies the static route table to whatever principal (or none) the
    identity middleware installed.

Register the policy middleware first so the identity middleware wraps it:

    app.add_middleware(AuthorizationPolicyMiddleware)
    app.add_middleware(RequestIdentityMiddleware)
"""

from typing import Optional

from fastapi import Request
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from app.auth.authorization_policy import authorize_request
from app.auth.jwt_utils import get_token_codec
from app.auth.principal import Principal, derive_principal, evaluate_account_status
from app.core.exceptions import InvalidCredentials, InvalidToken, TomeVaultError, error_response
from app.psql_db_services.users_service import UsersService

BEARER_PREFIX = "Bearer "


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Token from an Authorization header value, or None if it is not a bearer header."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    return authorization[len(BEARER_PREFIX):].strip()


def get_request_principal(request: Request) -> Optional[Principal]:
    return getattr(request.state, "principal", None)


async def resolve_principal(token: str) -> Principal:
    """
    Verify a bearer token and rebuild the caller from the current user record.

    Raises:
        InvalidToken: Bad token, or its subject no longer exists
        AccountDeleted / AccountDisabled: Account may not authenticate
    """
    token_codec = get_token_codec()
    claims = token_codec.verify(token)
    username = token_codec.extract_subject(claims)

    user = await UsersService().get_user_by_username(username)
    if user is None:
        logger.info("Token subject no longer exists")
        raise InvalidToken()

    evaluate_account_status(user)
    return derive_principal(user)


class RequestIdentityMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request.state.principal = None

        token = extract_bearer_token(request.headers.get("Authorization"))
        if token is None:
            return await call_next(request)

        try:
            principal = await resolve_principal(token)
        except (InvalidToken, InvalidCredentials) as error:
            logger.info(
                f"{request.method} {request.url.path} rejected: {error.error_code}"
            )
            return error_response(error)

        request.state.principal = principal
        logger.debug(f"{request.method} {request.url.path} as {principal.username}")
        return await call_next(request)


class AuthorizationPolicyMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        principal = get_request_principal(request)
        try:
            authorize_request(request.method, request.url.path, principal)
        except TomeVaultError as error:
            caller = principal.username if principal else "anonymous"
            logger.info(
                f"{request.method} {request.url.path} denied for {caller}: {error.error_code}"
            )
            return error_response(error)
        return await call_next(request)
