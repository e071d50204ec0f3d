"""
Account Self-Service
--------------------
Operations a signed-in user performs on their own account. Changing the
username or the password reissues the access token.
"""

from dataclasses import dataclass
from typing import Optional

from loguru import logger

from app.auth.auth_service import hash_password, issue_token_for, verify_password
from app.auth.jwt_utils import TokenCodec, get_token_codec
from app.auth.principal import Principal, derive_principal
from app.core.exceptions import InvalidCredentials, ResourceNotFound, ValidationError
from app.models.request_models import ChangePasswordRequest, UserUpdateRequest
from app.models.users_models import User
from app.psql_db_services.users_service import UsersService
from app.utils.password_policy import validate_password_strength


@dataclass(frozen=True)
class AccountUpdate:
    user: User
    token: str


class AccountService:
    def __init__(
        self,
        users_service: Optional[UsersService] = None,
        token_codec: Optional[TokenCodec] = None,
    ):
        self.users_service = users_service or UsersService()
        self.token_codec = token_codec or get_token_codec()

    async def get_profile(self, principal: Principal) -> User:
        user = await self.users_service.get_user_by_id(principal.user_id)
        if user is None:
            raise ResourceNotFound("User not found")
        return user

    async def update_profile(
        self, principal: Principal, request: UserUpdateRequest
    ) -> AccountUpdate:
        """
        Update the caller's profile and reissue their token.

        Raises:
            ValidationError: If the new username or email belongs to someone else
        """
        fields = request.changed_fields()

        if "username" in fields and await self.users_service.check_username_exists(
            fields["username"], exclude_user_id=principal.user_id
        ):
            raise ValidationError("Username is already taken")
        if "email" in fields and await self.users_service.check_email_exists(
            fields["email"], exclude_user_id=principal.user_id
        ):
            raise ValidationError("Email is already in use")

        user = await self.users_service.update_user(principal.user_id, fields)
        token = issue_token_for(derive_principal(user), self.token_codec)
        logger.info(f"User {user.id} updated profile fields {sorted(fields)}")
        return AccountUpdate(user=user, token=token)

    async def change_password(
        self, principal: Principal, request: ChangePasswordRequest
    ) -> AccountUpdate:
        """
        Change the caller's password.

        Raises:
            InvalidCredentials: The current password is wrong
            ValidationError: Confirmation mismatch, unchanged password, or weak password
        """
        user = await self.get_profile(principal)

        if not await verify_password(request.current_password, user.password_hash):
            logger.info(f"Password change rejected for user {user.id}: wrong current password")
            raise InvalidCredentials("Current password is incorrect")
        if request.new_password != request.confirm_password:
            raise ValidationError("New passwords do not match")
        if request.new_password == request.current_password:
            raise ValidationError("New password must be different from current password")
        validate_password_strength(request.new_password)

        user = await self.users_service.update_password(
            user.id, await hash_password(request.new_password)
        )
        token = issue_token_for(derive_principal(user), self.token_codec)
        logger.info(f"User {user.id} changed their password")
        return AccountUpdate(user=user, token=token)
