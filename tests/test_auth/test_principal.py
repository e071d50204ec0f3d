"""
Principal Tests
---------------
Test authority derivation from the role graph and account status checks.
"""

import pytest

from app.auth.principal import derive_principal, evaluate_account_status
from app.auth.roles import ROLE_CATALOG, PermissionName, RoleName
from app.core.exceptions import AccountDeleted, AccountDisabled, AUTHENTICATION_FAILED_MESSAGE
from app.models.users_models import Role, User


def make_user(*roles: RoleName, **overrides) -> User:
    fields = dict(
        id=7,
        username="alice",
        email="alice@mailbox.org",
        password_hash="$2b$04$hash",
        roles=[Role(name=role, permissions=sorted(ROLE_CATALOG[role])) for role in roles],
    )
    fields.update(overrides)
    return User(**fields)


class TestDerivePrincipal:
    """Test derive_principal."""

    def test_user_role_authorities(self):
        """Test a USER gets its role authority followed by its permissions."""
        principal = derive_principal(make_user(RoleName.USER))

        assert principal.user_id == 7
        assert principal.username == "alice"
        assert principal.roles == frozenset({RoleName.USER})
        assert principal.authorities[0] == "ROLE_USER"
        assert set(principal.authorities[1:]) == {
            "READ_BOOK",
            "ADD_BOOK",
            "EDIT_BOOK",
            "DELETE_BOOK",
        }

    def test_role_authorities_come_first(self):
        """Test every ROLE_ entry precedes every permission."""
        principal = derive_principal(make_user(RoleName.USER, RoleName.ADMIN))

        assert principal.authorities[:2] == ("ROLE_USER", "ROLE_ADMIN")
        assert all(not a.startswith("ROLE_") for a in principal.authorities[2:])

    def test_shared_permissions_listed_once(self):
        """Test a permission granted by two roles appears once."""
        principal = derive_principal(make_user(RoleName.USER, RoleName.DEVELOPER))

        assert len(principal.authorities) == len(set(principal.authorities))
        assert principal.authorities.count("READ_BOOK") == 1
        assert "MANAGE_USERS" not in principal.authorities

    def test_user_without_roles_has_no_authorities(self):
        """Test an account with no roles derives an empty principal."""
        principal = derive_principal(make_user())

        assert principal.roles == frozenset()
        assert principal.authorities == ()

    def test_principal_checks(self):
        """Test role and authority helpers."""
        principal = derive_principal(make_user(RoleName.SUPER_ADMIN))

        assert principal.has_role(RoleName.SUPER_ADMIN)
        assert principal.has_role("SUPER_ADMIN")
        assert not principal.has_role(RoleName.ADMIN)
        assert principal.has_any_role([RoleName.ADMIN, RoleName.SUPER_ADMIN])
        assert principal.has_authority(PermissionName.MANAGE_USERS)
        assert principal.authorities_claim.split(",") == list(principal.authorities)


class TestEvaluateAccountStatus:
    """Test evaluate_account_status."""

    def test_account_in_good_standing(self):
        """Test an enabled, unlocked, unexpired account passes."""
        evaluate_account_status(make_user(RoleName.USER))

    def test_deleted_account(self):
        """Test soft-deleted accounts are refused as deleted."""
        with pytest.raises(AccountDeleted) as exc_info:
            evaluate_account_status(make_user(RoleName.USER, deleted=True, enabled=False))

        assert exc_info.value.error_code == "account_deleted"
        assert exc_info.value.message == AUTHENTICATION_FAILED_MESSAGE

    @pytest.mark.parametrize(
        "flag",
        ["enabled", "account_non_locked", "account_non_expired", "credentials_non_expired"],
    )
    def test_disabled_account(self, flag):
        """Test any false status flag disables the account."""
        with pytest.raises(AccountDisabled) as exc_info:
            evaluate_account_status(make_user(RoleName.USER, **{flag: False}))

        assert exc_info.value.error_code == "account_disabled"
        assert exc_info.value.status_code == 401
