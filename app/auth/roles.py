"""
Role & Permission Catalog
-------------------------
Closed sets of role and permission names and the fixed grant table seeded at
startup. Bump CATALOG_VERSION whenever ROLE_CATALOG changes.
"""

from enum import Enum
from typing import Dict, FrozenSet


class RoleName(str, Enum):
    """Roles a user can hold."""

    USER = "USER"
    ADMIN = "ADMIN"
    DEVELOPER = "DEVELOPER"
    SUPER_ADMIN = "SUPER_ADMIN"


class PermissionName(str, Enum):
    """Fine-grained capabilities granted through roles."""

    READ_BOOK = "READ_BOOK"
    ADD_BOOK = "ADD_BOOK"
    EDIT_BOOK = "EDIT_BOOK"
    DELETE_BOOK = "DELETE_BOOK"
    MANAGE_USERS = "MANAGE_USERS"


ROLE_AUTHORITY_PREFIX = "ROLE_"

# Bump when ROLE_CATALOG changes so existing stores receive the new grants
CATALOG_VERSION = 1

_BOOK_PERMISSIONS = frozenset(
    {
        PermissionName.READ_BOOK,
        PermissionName.ADD_BOOK,
        PermissionName.EDIT_BOOK,
        PermissionName.DELETE_BOOK,
    }
)

ROLE_CATALOG: Dict[RoleName, FrozenSet[PermissionName]] = {
    RoleName.USER: _BOOK_PERMISSIONS,
    RoleName.DEVELOPER: _BOOK_PERMISSIONS,
    RoleName.ADMIN: _BOOK_PERMISSIONS | {PermissionName.MANAGE_USERS},
    RoleName.SUPER_ADMIN: _BOOK_PERMISSIONS | {PermissionName.MANAGE_USERS},
}

DEFAULT_ROLE = RoleName.USER

# Roles an ADMIN may not act on
PRIVILEGED_ROLES = frozenset({RoleName.ADMIN, RoleName.SUPER_ADMIN})


def role_authority(role: RoleName) -> str:
    """Authority string carried by a principal holding ``role``."""
    return f"{ROLE_AUTHORITY_PREFIX}{RoleName(role).value}"
