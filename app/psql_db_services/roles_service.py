"""
Role Catalog Service
--------------------
Seeds the fixed role/permission catalog and serves the role-management
operations available to SUPER_ADMIN users.
"""

from typing import Dict, Iterable, List, Optional

from sqlalchemy import bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from app.auth.roles import CATALOG_VERSION, ROLE_CATALOG, PermissionName, RoleName
from app.core.database_connection import DatabaseManager
from app.core.exceptions import ResourceNotFound
from app.models.users_models import Role
from app.psql_db_services.base_service import BaseDatabaseService


class RolesService(BaseDatabaseService):
    """Database operations for roles, permissions and their grants."""

    def __init__(self, database_manager: Optional[DatabaseManager] = None):
        super().__init__(database_manager)

    async def seed_catalog(self) -> int:
        """
        Insert any catalog entry that is missing.

        Roles and permissions are created when absent. Grants are applied in
        full only when the store has not yet recorded the current
        CATALOG_VERSION; after that, only roles created by this run receive
        their catalog grants. Grants revoked through the role-management
        route therefore survive restarts until the catalog version is raised.

        Returns:
            Number of rows inserted
        """
        inserted = 0
        async with self.get_session() as session:
            permission_ids = {}
            for permission in PermissionName:
                permission_id, created = await self._get_or_create(
                    session, "permissions", permission.value
                )
                permission_ids[permission] = permission_id
                inserted += created

            result = await session.execute(
                text("SELECT MAX(version) FROM catalog_versions")
            )
            stored_version = result.scalar_one_or_none()
            apply_all = stored_version is None or stored_version < CATALOG_VERSION

            for role, permissions in ROLE_CATALOG.items():
                role_id, created = await self._get_or_create(session, "roles", role.value)
                inserted += created
                if not (created or apply_all):
                    continue

                result = await session.execute(
                    text("SELECT permission_id FROM role_permissions WHERE role_id = :role_id"),
                    {"role_id": role_id},
                )
                granted = {row[0] for row in result.all()}
                for permission in sorted(permissions, key=lambda p: p.value):
                    if permission_ids[permission] in granted:
                        continue
                    await session.execute(
                        text(
                            "INSERT INTO role_permissions (role_id, permission_id) "
                            "VALUES (:role_id, :permission_id)"
                        ),
                        {"role_id": role_id, "permission_id": permission_ids[permission]},
                    )
                    inserted += 1

            if apply_all:
                await session.execute(
                    text("INSERT INTO catalog_versions (version) VALUES (:version)"),
                    {"version": CATALOG_VERSION},
                )
                logger.info(
                    f"Role catalog grants applied (v{stored_version} -> v{CATALOG_VERSION})"
                )

        logger.info(
            f"Role catalog v{CATALOG_VERSION} seeded: {inserted} new row(s)"
        )
        return inserted

    async def list_roles(self) -> List[Role]:
        """All roles with their current permissions, in catalog order."""
        async with self.get_session() as session:
            result = await session.execute(
                text(
                    """
                    SELECT r.name AS role_name, p.name AS permission_name
                    FROM roles r
                    LEFT JOIN role_permissions rp ON rp.role_id = r.id
                    LEFT JOIN permissions p ON p.id = rp.permission_id
                    ORDER BY r.id, p.id
                    """
                )
            )
            rows = result.mappings().all()

        roles: Dict[str, List[PermissionName]] = {}
        for row in rows:
            permissions = roles.setdefault(row["role_name"], [])
            if row["permission_name"] is not None:
                permissions.append(PermissionName(row["permission_name"]))

        return [
            Role(name=RoleName(name), permissions=permissions)
            for name, permissions in roles.items()
        ]

    async def replace_role_permissions(
        self, role: RoleName, permissions: Iterable[PermissionName]
    ) -> Role:
        """
        Replace the permission set granted by ``role``.

        Raises:
            ResourceNotFound: If the role or a permission is not in the store
        """
        role = RoleName(role)
        permission_names = sorted({PermissionName(p).value for p in permissions})

        async with self.get_session() as session:
            result = await session.execute(
                text("SELECT id FROM roles WHERE name = :name"), {"name": role.value}
            )
            role_id = result.scalar_one_or_none()
            if role_id is None:
                raise ResourceNotFound(f"Role not found: {role.value}")

            permission_ids = {}
            if permission_names:
                result = await session.execute(
                    text("SELECT id, name FROM permissions WHERE name IN :names").bindparams(
                        bindparam("names", expanding=True)
                    ),
                    {"names": permission_names},
                )
                permission_ids = {row["name"]: row["id"] for row in result.mappings().all()}
                missing = [name for name in permission_names if name not in permission_ids]
                if missing:
                    raise ResourceNotFound(f"Permission not found: {', '.join(missing)}")

            await session.execute(
                text("DELETE FROM role_permissions WHERE role_id = :role_id"),
                {"role_id": role_id},
            )
            for name in permission_names:
                await session.execute(
                    text(
                        "INSERT INTO role_permissions (role_id, permission_id) "
                        "VALUES (:role_id, :permission_id)"
                    ),
                    {"role_id": role_id, "permission_id": permission_ids[name]},
                )

        self.log_operation("UPDATE_PERMISSIONS", role.value, additional_context=str(permission_names))
        return Role(
            name=role, permissions=[PermissionName(name) for name in permission_names]
        )

    async def _get_or_create(
        self, session: AsyncSession, table_name: str, name: str
    ):
        result = await session.execute(
            text(f"SELECT id FROM {table_name} WHERE name = :name"), {"name": name}
        )
        existing_id = result.scalar_one_or_none()
        if existing_id is not None:
            return existing_id, 0

        result = await session.execute(
            text(f"INSERT INTO {table_name} (name) VALUES (:name) RETURNING id"),
            {"name": name},
        )
        return result.scalar_one(), 1
