"""
Authentication Service
----------------------
Login and registration. Both end with a principal derived from the user's
current roles and a freshly issued access token.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from fastapi.concurrency import run_in_threadpool
from loguru import logger

from app.auth.jwt_utils import TokenCodec, get_token_codec
from app.auth.models import SignUpRequest
from app.auth.principal import Principal, derive_principal, evaluate_account_status
from app.auth.roles import DEFAULT_ROLE, RoleName
from app.core.config_manager import settings
from app.core.exceptions import InvalidCredentials, ValidationError
from app.models.users_models import User
from app.psql_db_services.books_service import BooksService
from app.psql_db_services.users_service import UsersService
from app.utils.password_policy import validate_password_strength
from app.utils.passwrd_hashing import DUMMY_PASSWORD_HASH, PasswordHasher


@dataclass(frozen=True)
class AuthenticatedUser:
    user: User
    principal: Principal
    token: str


def issue_token_for(principal: Principal, token_codec: TokenCodec) -> str:
    """Issue an access token bound to ``principal.username``."""
    return token_codec.issue(
        principal.username, {"authorities": principal.authorities_claim}
    )


async def hash_password(password: str) -> str:
    return await run_in_threadpool(PasswordHasher.hash_password, password)


async def verify_password(password: str, password_hash: str) -> bool:
    return await run_in_threadpool(PasswordHasher.verify_password, password, password_hash)


class AuthService:
    """
    Authenticates users and registers new ones.

    Usage:
        auth_service = AuthService()
        result = await auth_service.authenticate("alice", "Secret123")
        result.token  # signed access token
    """

    def __init__(
        self,
        users_service: Optional[UsersService] = None,
        token_codec: Optional[TokenCodec] = None,
        books_service: Optional[BooksService] = None,
    ):
        self.users_service = users_service or UsersService()
        self.token_codec = token_codec or get_token_codec()
        self.books_service = books_service or BooksService()

    async def authenticate(self, identifier: str, password: str) -> AuthenticatedUser:
        """
        Authenticate by username or email and password.

        The identifier is tried as a username first, then as an email.

        Raises:
            InvalidCredentials: Unknown identifier or wrong password
            AccountDeleted: The account is soft-deleted
            AccountDisabled: The account is disabled, locked or expired
        """
        identifier = (identifier or "").strip()
        user = await self.users_service.get_user_by_username(identifier)
        if user is None:
            user = await self.users_service.get_user_by_email(identifier)

        if user is None:
            # Same bcrypt cost as a real check
            await verify_password(password, DUMMY_PASSWORD_HASH)
            logger.info("Login rejected: unknown identifier")
            raise InvalidCredentials()

        if not await verify_password(password, user.password_hash):
            logger.info(f"Login rejected: wrong password for user {user.id}")
            raise InvalidCredentials()

        try:
            evaluate_account_status(user)
        except InvalidCredentials as error:
            logger.info(f"Login rejected for user {user.id}: {error.error_code}")
            raise

        if self._is_demo_account(user):
            await self.books_service.reset_demo_library(user.id)

        principal = derive_principal(user)
        token = issue_token_for(principal, self.token_codec)
        logger.info(f"User {user.username} authenticated successfully")
        return AuthenticatedUser(user=user, principal=principal, token=token)

    async def register(
        self,
        candidate: SignUpRequest,
        roles: Optional[Iterable[RoleName]] = None,
    ) -> AuthenticatedUser:
        """
        Register a new account in good standing and log it in.

        Checks run in order: password confirmation, username availability,
        email availability, password strength. The user row and its role links
        are created in one transaction.

        Args:
            candidate: Sign-up fields
            roles: Roles to assign, defaults to USER only

        Raises:
            ValidationError: If any check fails
        """
        if candidate.password != candidate.confirm_password:
            raise ValidationError("Passwords do not match")
        if await self.users_service.check_username_exists(candidate.username):
            raise ValidationError("Username is already taken")
        if await self.users_service.check_email_exists(candidate.email):
            raise ValidationError("Email is already in use")
        validate_password_strength(candidate.password)

        assigned_roles = list(roles) if roles else [DEFAULT_ROLE]
        password_hash = await hash_password(candidate.password)

        user = await self.users_service.create_user(
            username=candidate.username,
            email=candidate.email,
            password_hash=password_hash,
            roles=assigned_roles,
            first_name=candidate.first_name,
            last_name=candidate.last_name,
            address=candidate.address,
            birth_date=candidate.birth_date,
        )

        principal = derive_principal(user)
        token = issue_token_for(principal, self.token_codec)
        logger.info(f"User {user.username} registered with roles {user.role_names}")
        return AuthenticatedUser(user=user, principal=principal, token=token)

    def _is_demo_account(self, user: User) -> bool:
        return bool(
            settings.demo_user_email
            and user.email.lower() == settings.demo_user_email.lower()
        )
