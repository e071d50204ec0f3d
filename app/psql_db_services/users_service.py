"""
CRUD Operations for Users Management
------------------------------------
Database service for user identity records and their role assignments:
- User creation together with role links, in one transaction
- Lookup by id, username or email, returning the full role/permission graph
- Profile, password, role and account-status updates
- Soft and hard deletion
- Listing and case-insensitive search
"""

from collections import OrderedDict
from typing import Optional, List, Dict, Any, Iterable

from sqlalchemy import bindparam, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from app.auth.roles import PermissionName, RoleName
from app.core.database_connection import DatabaseManager
from app.core.exceptions import ResourceNotFound, ValidationError
from app.models.users_models import Role, User
from app.psql_db_services.base_service import BaseDatabaseService


USER_COLUMNS = """
    id, username, email, password_hash, first_name, last_name, address,
    birth_date, enabled, account_non_expired, account_non_locked,
    credentials_non_expired, deleted, deleted_at, created_at, updated_at
"""

ROLE_GRAPH_QUERY = text(
    """
    SELECT ur.user_id AS user_id, r.name AS role_name, p.name AS permission_name
    FROM user_roles ur
    JOIN roles r ON r.id = ur.role_id
    LEFT JOIN role_permissions rp ON rp.role_id = r.id
    LEFT JOIN permissions p ON p.id = rp.permission_id
    WHERE ur.user_id IN :user_ids
    ORDER BY ur.user_id, r.id, p.id
    """
).bindparams(bindparam("user_ids", expanding=True))

UPDATABLE_PROFILE_FIELDS = (
    "username",
    "email",
    "first_name",
    "last_name",
    "address",
    "birth_date",
)


class UsersService(BaseDatabaseService):
    """
    Service for user database operations.

    Every read returns a ``User`` carrying its roles and their permissions, as
    currently stored. Nothing is cached between calls.
    """

    def __init__(self, database_manager: Optional[DatabaseManager] = None):
        super().__init__(database_manager)

    # ========================================================================
    # VALIDATION HELPERS
    # ========================================================================

    async def check_email_exists(
        self, email: str, exclude_user_id: Optional[int] = None
    ) -> bool:
        """Check if email already exists in database (case-insensitive)"""
        return await self._value_taken("email", email, exclude_user_id)

    async def check_username_exists(
        self, username: str, exclude_user_id: Optional[int] = None
    ) -> bool:
        """Check if username already exists in database"""
        return await self._value_taken("username", username, exclude_user_id)

    async def _value_taken(
        self, column: str, value: str, exclude_user_id: Optional[int]
    ) -> bool:
        sql_query = f"SELECT 1 FROM users WHERE LOWER({column}) = LOWER(:value)"
        params: Dict[str, Any] = {"value": value}
        if exclude_user_id is not None:
            sql_query += " AND id <> :exclude_user_id"
            params["exclude_user_id"] = exclude_user_id

        try:
            async with self.get_session() as session:
                result = await session.execute(text(sql_query + " LIMIT 1"), params)
                return result.first() is not None
        except Exception as e:
            logger.error(f"Error checking {column} existence: {e}")
            raise

    # ========================================================================
    # CREATE OPERATIONS
    # ========================================================================

    async def create_user(
        self,
        username: str,
        email: str,
        password_hash: str,
        roles: Iterable[RoleName],
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        address: Optional[str] = None,
        birth_date=None,
    ) -> User:
        """
        Create a user in good standing and link its roles.

        The user row and its role links are written in a single transaction;
        if any role is missing from the catalog nothing is written.

        Args:
            username: Unique username
            email: Unique email address
            password_hash: bcrypt hash of the password
            roles: Roles to assign
            first_name, last_name, address, birth_date: Optional profile fields

        Returns:
            The created user with its role graph

        Raises:
            ValidationError: If username or email is already in use
            ResourceNotFound: If a role is not present in the catalog
        """
        params = {
            "username": username,
            "email": email,
            "password_hash": password_hash,
            "first_name": first_name,
            "last_name": last_name,
            "address": address,
            "birth_date": birth_date,
            "enabled": True,
            "account_non_expired": True,
            "account_non_locked": True,
            "credentials_non_expired": True,
            "deleted": False,
        }
        sql_query = """
            INSERT INTO users (
                username, email, password_hash, first_name, last_name, address,
                birth_date, enabled, account_non_expired, account_non_locked,
                credentials_non_expired, deleted
            )
            VALUES (
                :username, :email, :password_hash, :first_name, :last_name, :address,
                :birth_date, :enabled, :account_non_expired, :account_non_locked,
                :credentials_non_expired, :deleted
            )
            RETURNING id
        """

        try:
            async with self.get_session() as session:
                result = await session.execute(
                    self.prepare_statement(sql_query, params), params
                )
                user_id = result.scalar_one()
                await self._link_roles(session, user_id, roles)
                user = await self._fetch_user(session, "id = :id", {"id": user_id})
        except IntegrityError:
            logger.warning(f"User creation conflicted on unique fields: {username}")
            raise ValidationError("Username or email is already in use")

        self.log_operation("CREATE", user.id, additional_context=f"username={username}")
        return user

    # ========================================================================
    # READ OPERATIONS
    # ========================================================================

    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        """Retrieve a user by id, or None if not found."""
        async with self.get_session() as session:
            return await self._fetch_user(session, "id = :id", {"id": user_id})

    async def get_user_by_username(self, username: str) -> Optional[User]:
        """Retrieve a user by username (case-insensitive), or None if not found."""
        async with self.get_session() as session:
            return await self._fetch_user(
                session, "LOWER(username) = LOWER(:username)", {"username": username}
            )

    async def get_user_by_email(self, email_address: str) -> Optional[User]:
        """Retrieve a user by email address (case-insensitive), or None."""
        async with self.get_session() as session:
            return await self._fetch_user(
                session, "LOWER(email) = LOWER(:email)", {"email": email_address}
            )

    async def get_all_users(self, limit: int = 50, offset: int = 0) -> List[User]:
        """
        List users ordered by id.

        Args:
            limit: Maximum number of users to return
            offset: Number of users to skip
        """
        self.validate_pagination_parameters(limit, offset)
        return await self._fetch_users(
            "1 = 1", {}, limit=limit, offset=offset
        )

    async def count_users(self) -> int:
        async with self.get_session() as session:
            result = await session.execute(text("SELECT COUNT(*) FROM users"))
            return int(result.scalar_one())

    async def search_users(
        self, query: str, limit: int = 50, offset: int = 0
    ) -> List[User]:
        """Users whose username or email contains ``query``, ignoring case."""
        self.validate_string_not_empty(query, "query")
        self.validate_pagination_parameters(limit, offset)
        pattern = f"%{query.strip().lower()}%"
        return await self._fetch_users(
            "LOWER(username) LIKE :pattern OR LOWER(email) LIKE :pattern",
            {"pattern": pattern},
            limit=limit,
            offset=offset,
        )

    # ========================================================================
    # UPDATE OPERATIONS
    # ========================================================================

    async def update_user(self, user_id: int, update_fields: Dict[str, Any]) -> User:
        """
        Update profile fields of a user.

        Args:
            user_id: Id of the user to update
            update_fields: Column values to change; only profile columns are accepted

        Returns:
            The updated user

        Raises:
            ValidationError: On unknown fields or a uniqueness conflict
            ResourceNotFound: If the user does not exist
        """
        unknown = set(update_fields) - set(UPDATABLE_PROFILE_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        if not update_fields:
            return await self._require_user(user_id)

        try:
            return await self._apply_update(user_id, update_fields)
        except IntegrityError:
            raise ValidationError("Username or email is already in use")

    async def update_password(self, user_id: int, password_hash: str) -> User:
        """Store a new password hash and mark the credentials as current."""
        return await self._apply_update(
            user_id,
            {"password_hash": password_hash, "credentials_non_expired": True},
        )

    async def set_account_status(self, user_id: int, enabled: bool) -> User:
        """Enable or disable a user; locking follows the enabled flag."""
        return await self._apply_update(
            user_id, {"enabled": enabled, "account_non_locked": enabled}
        )

    async def replace_roles(self, user_id: int, roles: Iterable[RoleName]) -> User:
        """
        Replace every role of a user in one transaction.

        Raises:
            ResourceNotFound: If the user or any role does not exist
        """
        async with self.get_session() as session:
            await session.execute(
                text("DELETE FROM user_roles WHERE user_id = :user_id"),
                {"user_id": user_id},
            )
            await self._link_roles(session, user_id, roles)
            await session.execute(
                text("UPDATE users SET updated_at = CURRENT_TIMESTAMP WHERE id = :id"),
                {"id": user_id},
            )
            user = await self._fetch_user(session, "id = :id", {"id": user_id})
            if user is None:
                raise ResourceNotFound(f"User not found with id: {user_id}")

        self.log_operation("UPDATE_ROLES", user_id, additional_context=str(user.role_names))
        return user

    # ========================================================================
    # DELETE OPERATIONS
    # ========================================================================

    async def soft_delete_user(self, user_id: int) -> User:
        """Mark a user deleted and shut the account."""
        async with self.get_session() as session:
            result = await session.execute(
                text(
                    """
                    UPDATE users
                    SET deleted = :deleted, deleted_at = CURRENT_TIMESTAMP,
                        enabled = :enabled, account_non_locked = :non_locked,
                        updated_at = CURRENT_TIMESTAMP
                    WHERE id = :id
                    """
                ),
                {"deleted": True, "enabled": False, "non_locked": False, "id": user_id},
            )
            if result.rowcount == 0:
                raise ResourceNotFound(f"User not found with id: {user_id}")
            user = await self._fetch_user(session, "id = :id", {"id": user_id})

        self.log_operation("SOFT_DELETE", user_id)
        return user

    async def hard_delete_user(self, user_id: int) -> None:
        """Permanently remove a user and everything it owns."""
        params = {"user_id": user_id}
        async with self.get_session() as session:
            # Dependent rows are removed explicitly; SQLite does not enforce
            # ON DELETE CASCADE unless foreign keys are switched on
            await session.execute(
                text(
                    "DELETE FROM book_tags WHERE book_id IN "
                    "(SELECT id FROM books WHERE user_id = :user_id)"
                ),
                params,
            )
            await session.execute(text("DELETE FROM books WHERE user_id = :user_id"), params)
            await session.execute(
                text(
                    "DELETE FROM wishlist_book_tags WHERE wishlist_book_id IN "
                    "(SELECT id FROM wishlist_books WHERE user_id = :user_id)"
                ),
                params,
            )
            await session.execute(
                text("DELETE FROM wishlist_books WHERE user_id = :user_id"), params
            )
            await session.execute(
                text("DELETE FROM user_roles WHERE user_id = :user_id"), params
            )
            result = await session.execute(
                text("DELETE FROM users WHERE id = :user_id"), params
            )
            if result.rowcount == 0:
                raise ResourceNotFound(f"User not found with id: {user_id}")

        self.log_operation("HARD_DELETE", user_id)

    # ========================================================================
    # INTERNAL HELPERS
    # ========================================================================

    async def _require_user(self, user_id: int) -> User:
        user = await self.get_user_by_id(user_id)
        if user is None:
            raise ResourceNotFound(f"User not found with id: {user_id}")
        return user

    async def _apply_update(self, user_id: int, update_fields: Dict[str, Any]) -> User:
        sql_query, params = self.build_dynamic_update_query(
            "users", update_fields, "id = :id", {"id": user_id}
        )
        async with self.get_session() as session:
            result = await session.execute(
                self.prepare_statement(sql_query, params), params
            )
            if result.mappings().one_or_none() is None:
                raise ResourceNotFound(f"User not found with id: {user_id}")
            user = await self._fetch_user(session, "id = :id", {"id": user_id})

        self.log_operation(
            "UPDATE", user_id, additional_context=f"fields={sorted(update_fields)}"
        )
        return user

    async def _link_roles(
        self, session: AsyncSession, user_id: int, roles: Iterable[RoleName]
    ) -> None:
        role_names = sorted({RoleName(role).value for role in roles})
        if not role_names:
            raise ValidationError("At least one role is required")

        result = await session.execute(
            text("SELECT id, name FROM roles WHERE name IN :names").bindparams(
                bindparam("names", expanding=True)
            ),
            {"names": role_names},
        )
        role_ids = {row["name"]: row["id"] for row in result.mappings().all()}
        missing = [name for name in role_names if name not in role_ids]
        if missing:
            raise ResourceNotFound(f"Role not found: {', '.join(missing)}")

        for name in role_names:
            await session.execute(
                text(
                    "INSERT INTO user_roles (user_id, role_id) VALUES (:user_id, :role_id)"
                ),
                {"user_id": user_id, "role_id": role_ids[name]},
            )

    async def _fetch_user(
        self, session: AsyncSession, where_clause: str, params: Dict[str, Any]
    ) -> Optional[User]:
        result = await session.execute(
            text(f"SELECT {USER_COLUMNS} FROM users WHERE {where_clause}"), params
        )
        row = result.mappings().one_or_none()
        if row is None:
            return None
        role_graph = await self._load_role_graph(session, [row["id"]])
        return User(**dict(row), roles=role_graph.get(row["id"], []))

    async def _fetch_users(
        self,
        where_clause: str,
        params: Dict[str, Any],
        limit: int,
        offset: int,
    ) -> List[User]:
        async with self.get_session() as session:
            result = await session.execute(
                text(
                    f"SELECT {USER_COLUMNS} FROM users WHERE {where_clause} "
                    "ORDER BY id LIMIT :limit OFFSET :offset"
                ),
                {**params, "limit": limit, "offset": offset},
            )
            rows = [dict(row) for row in result.mappings().all()]
            role_graph = await self._load_role_graph(
                session, [row["id"] for row in rows]
            )
        return [User(**row, roles=role_graph.get(row["id"], [])) for row in rows]

    async def _load_role_graph(
        self, session: AsyncSession, user_ids: List[int]
    ) -> Dict[int, List[Role]]:
        if not user_ids:
            return {}

        result = await session.execute(ROLE_GRAPH_QUERY, {"user_ids": user_ids})

        graph: Dict[int, "OrderedDict[str, List[PermissionName]]"] = {}
        for row in result.mappings().all():
            roles = graph.setdefault(row["user_id"], OrderedDict())
            permissions = roles.setdefault(row["role_name"], [])
            if row["permission_name"] is not None:
                permissions.append(PermissionName(row["permission_name"]))

        return {
            user_id: [
                Role(name=RoleName(name), permissions=permissions)
                for name, permissions in roles.items()
            ]
            for user_id, roles in graph.items()
        }
