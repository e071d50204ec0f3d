"""
User Administration Service
---------------------------
Operations ADMIN and SUPER_ADMIN users perform on other accounts.

The route table decides who may reach these operations at all. Every
operation that touches an existing account additionally checks the acting
principal against the target record with ``ensure_can_manage``.
"""

from typing import List, Optional, Tuple

from loguru import logger

from app.auth.auth_service import hash_password
from app.auth.authorization_policy import ensure_can_assign_roles, ensure_can_manage
from app.auth.principal import Principal
from app.auth.roles import DEFAULT_ROLE, RoleName
from app.core.exceptions import ResourceNotFound, ValidationError
from app.models.request_models import AdminUserCreateRequest, UserUpdateRequest
from app.models.users_models import User
from app.psql_db_services.users_service import UsersService
from app.utils.password_policy import validate_password_strength


class AdminUserService:
    def __init__(self, users_service: Optional[UsersService] = None):
        self.users_service = users_service or UsersService()

    # ========================================================================
    # READ OPERATIONS
    # ========================================================================

    async def get_user(self, user_id: int) -> User:
        user = await self.users_service.get_user_by_id(user_id)
        if user is None:
            raise ResourceNotFound(f"User not found with id: {user_id}")
        return user

    async def list_users(self, limit: int, offset: int) -> Tuple[List[User], int]:
        users = await self.users_service.get_all_users(limit=limit, offset=offset)
        return users, await self.users_service.count_users()

    async def search_users(self, query: str, limit: int, offset: int) -> List[User]:
        if not query or not query.strip():
            raise ValidationError("Search query cannot be empty")
        return await self.users_service.search_users(query, limit=limit, offset=offset)

    # ========================================================================
    # WRITE OPERATIONS
    # ========================================================================

    async def create_user(
        self, actor: Principal, request: AdminUserCreateRequest
    ) -> User:
        roles = request.roles or [DEFAULT_ROLE]
        ensure_can_assign_roles(actor, roles)

        if await self.users_service.check_username_exists(request.username):
            raise ValidationError("Username is already taken")
        if await self.users_service.check_email_exists(request.email):
            raise ValidationError("Email is already in use")
        validate_password_strength(request.password)

        user = await self.users_service.create_user(
            username=request.username,
            email=request.email,
            password_hash=await hash_password(request.password),
            roles=roles,
            first_name=request.first_name,
            last_name=request.last_name,
            address=request.address,
            birth_date=request.birth_date,
        )
        logger.info(f"{actor.username} created user {user.id} with roles {user.role_names}")
        return user

    async def update_user(
        self, actor: Principal, user_id: int, request: UserUpdateRequest
    ) -> User:
        target = await self.get_user(user_id)
        ensure_can_manage(actor, target)

        fields = request.changed_fields()
        if "username" in fields and await self.users_service.check_username_exists(
            fields["username"], exclude_user_id=user_id
        ):
            raise ValidationError("Username is already taken")
        if "email" in fields and await self.users_service.check_email_exists(
            fields["email"], exclude_user_id=user_id
        ):
            raise ValidationError("Email is already in use")

        user = await self.users_service.update_user(user_id, fields)
        logger.info(f"{actor.username} updated user {user_id}: {sorted(fields)}")
        return user

    async def soft_delete_user(self, actor: Principal, user_id: int) -> User:
        target = await self.get_user(user_id)
        ensure_can_manage(actor, target)
        if target.deleted:
            raise ValidationError("User is already deleted")

        user = await self.users_service.soft_delete_user(user_id)
        logger.info(f"{actor.username} soft-deleted user {user_id}")
        return user

    async def hard_delete_user(self, actor: Principal, user_id: int) -> None:
        target = await self.get_user(user_id)
        ensure_can_manage(actor, target)

        await self.users_service.hard_delete_user(user_id)
        logger.warning(f"{actor.username} permanently deleted user {user_id}")

    async def update_user_roles(
        self, actor: Principal, user_id: int, roles: List[RoleName]
    ) -> User:
        target = await self.get_user(user_id)
        ensure_can_manage(actor, target)
        ensure_can_assign_roles(actor, roles)

        user = await self.users_service.replace_roles(user_id, roles)
        logger.info(f"{actor.username} set roles of user {user_id} to {user.role_names}")
        return user

    async def reset_user_password(
        self, actor: Principal, user_id: int, new_password: str
    ) -> User:
        target = await self.get_user(user_id)
        ensure_can_manage(actor, target)
        validate_password_strength(new_password)

        user = await self.users_service.update_password(
            user_id, await hash_password(new_password)
        )
        logger.info(f"{actor.username} reset the password of user {user_id}")
        return user

    async def toggle_user_status(
        self, actor: Principal, user_id: int, enabled: bool
    ) -> User:
        """Enable or disable an account; deleted accounts cannot be toggled."""
        target = await self.get_user(user_id)
        ensure_can_manage(actor, target)
        if target.deleted:
            raise ValidationError("Cannot change the status of a deleted user")

        user = await self.users_service.set_account_status(user_id, enabled)
        logger.info(
            f"{actor.username} {'enabled' if enabled else 'disabled'} user {user_id}"
        )
        return user
