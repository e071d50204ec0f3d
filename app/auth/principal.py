"""
Principal
---------
The authenticated caller of one request, derived from the user's current
role/permission graph. Principals are built fresh for every request and are
passed explicitly to the code that needs them.
"""

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Tuple

from app.auth.roles import RoleName, role_authority
from app.core.exceptions import AccountDeleted, AccountDisabled
from app.models.users_models import User


@dataclass(frozen=True)
class Principal:
    user_id: int
    username: str
    email: str
    roles: FrozenSet[RoleName]
    authorities: Tuple[str, ...]

    def has_role(self, role: RoleName) -> bool:
        return RoleName(role) in self.roles

    def has_any_role(self, roles: Iterable[RoleName]) -> bool:
        return any(self.has_role(role) for role in roles)

    def has_authority(self, authority: str) -> bool:
        return str(getattr(authority, "value", authority)) in self.authorities

    @property
    def authorities_claim(self) -> str:
        """Comma-joined authorities, as written into the token."""
        return ",".join(self.authorities)


def derive_principal(user: User) -> Principal:
    """
    Flatten a user's roles into a principal.

    Authorities are one ``ROLE_<name>`` entry per role followed by every
    permission owned through any role, each listed once in first-seen order.
    """
    authorities = []
    for role in user.roles:
        authorities.append(role_authority(role.name))
    for role in user.roles:
        for permission in role.permissions:
            if permission.value not in authorities:
                authorities.append(permission.value)

    return Principal(
        user_id=user.id,
        username=user.username,
        email=user.email,
        roles=frozenset(role.name for role in user.roles),
        authorities=tuple(authorities),
    )


def evaluate_account_status(user: User) -> None:
    """
    Reject accounts that may not authenticate.

    Raises:
        AccountDeleted: If the account has been soft-deleted
        AccountDisabled: If the account is disabled, locked, expired,
            or its credentials have expired
    """
    if user.deleted:
        raise AccountDeleted()
    if not (
        user.enabled
        and user.account_non_locked
        and user.account_non_expired
        and user.credentials_non_expired
    ):
        raise AccountDisabled()
