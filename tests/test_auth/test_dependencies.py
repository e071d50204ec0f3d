"""
Auth Dependencies and Middleware Tests
--------------------------------------
Test principal resolution from bearer tokens, the request pipeline and the
role-checking dependencies. Database access is patched out.
"""

import pytest
from unittest.mock import AsyncMock, patch
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from app.auth.dependencies import (
    RoleChecker,
    get_current_principal,
    require_admin,
    require_super_admin,
)
from app.auth.jwt_utils import get_token_codec
from app.auth.middleware import (
    AuthorizationPolicyMiddleware,
    RequestIdentityMiddleware,
    extract_bearer_token,
    resolve_principal,
)
from app.auth.principal import Principal
from app.auth.roles import ROLE_CATALOG, RoleName
from app.core.exceptions import (
    AccessDenied,
    AccountDisabled,
    InvalidToken,
    Unauthenticated,
    register_exception_handlers,
)
from app.models.users_models import Role, User


def make_user(username: str = "alice", *roles: RoleName, **overrides) -> User:
    roles = roles or (RoleName.USER,)
    return User(
        id=1,
        username=username,
        email=f"{username}@mailbox.org",
        password_hash="x",
        roles=[Role(name=role, permissions=sorted(ROLE_CATALOG[role])) for role in roles],
        **overrides,
    )


def make_principal(*roles: RoleName) -> Principal:
    return Principal(
        user_id=1,
        username="alice",
        email="alice@mailbox.org",
        roles=frozenset(roles),
        authorities=tuple(f"ROLE_{role.value}" for role in roles),
    )


class TestExtractBearerToken:
    """Test Authorization header parsing."""

    def test_bearer_header(self):
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    @pytest.mark.parametrize("header", [None, "", "Basic dXNlcjpwdw==", "bearer abc"])
    def test_non_bearer_headers(self, header):
        """Test anything but a 'Bearer ' header is ignored."""
        assert extract_bearer_token(header) is None


class TestResolvePrincipal:
    """Test resolve_principal."""

    async def test_resolves_current_user_record(self):
        """Test the principal reflects the stored roles, not the token."""
        token = get_token_codec().issue("alice", {"authorities": "ROLE_SUPER_ADMIN"})

        with patch("app.auth.middleware.UsersService") as mock_service:
            mock_service.return_value.get_user_by_username = AsyncMock(
                return_value=make_user("alice", RoleName.USER)
            )

            principal = await resolve_principal(token)

        assert principal.username == "alice"
        assert principal.roles == frozenset({RoleName.USER})
        mock_service.return_value.get_user_by_username.assert_awaited_once_with("alice")

    async def test_unknown_subject(self):
        """Test a token for a user that no longer exists is invalid."""
        token = get_token_codec().issue("ghost")

        with patch("app.auth.middleware.UsersService") as mock_service:
            mock_service.return_value.get_user_by_username = AsyncMock(return_value=None)

            with pytest.raises(InvalidToken):
                await resolve_principal(token)

    async def test_disabled_user(self):
        """Test a valid token for a disabled account is refused."""
        token = get_token_codec().issue("alice")

        with patch("app.auth.middleware.UsersService") as mock_service:
            mock_service.return_value.get_user_by_username = AsyncMock(
                return_value=make_user("alice", enabled=False)
            )

            with pytest.raises(AccountDisabled):
                await resolve_principal(token)

    async def test_garbage_token(self):
        """Test verification failures surface as InvalidToken."""
        with pytest.raises(InvalidToken):
            await resolve_principal("garbage")


class TestRoleChecker:
    """Test RoleChecker and get_current_principal."""

    def test_allows_listed_role(self):
        """Test a principal holding one of the roles passes through."""
        principal = make_principal(RoleName.ADMIN)

        assert require_admin(principal) is principal

    def test_rejects_other_roles(self):
        """Test a principal without the roles is denied."""
        with pytest.raises(AccessDenied):
            require_super_admin(make_principal(RoleName.ADMIN))

    def test_needs_at_least_one_role(self):
        """Test an empty role list is a programming error."""
        with pytest.raises(ValueError):
            RoleChecker([])

    async def test_current_principal_required(self):
        """Test handlers cannot run without a principal."""

        class _State:
            principal = None

        class _Request:
            state = _State()

        with pytest.raises(Unauthenticated):
            await get_current_principal(_Request())


class TestRequestPipeline:
    """Test the middleware pair on a minimal app."""

    def setup_method(self):
        """Build an app with one public and one protected route."""
        app = FastAPI()
        register_exception_handlers(app)
        app.add_middleware(AuthorizationPolicyMiddleware)
        app.add_middleware(RequestIdentityMiddleware)

        @app.get("/health")
        async def health():
            return {"status": "healthy"}

        @app.get("/user")
        async def me(principal: Principal = Depends(get_current_principal)):
            return {"username": principal.username}

        self.client = TestClient(app)

    def test_public_route_anonymous(self):
        """Test public routes work without a token."""
        response = self.client.get("/health")

        assert response.status_code == 200

    def test_protected_route_anonymous(self):
        """Test protected routes answer 401 with the uniform body."""
        response = self.client.get("/user")

        assert response.status_code == 401
        assert response.json()["errorCode"] == "unauthorized"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_invalid_token_rejected_even_on_public_route(self):
        """Test a malformed bearer token is refused before routing."""
        response = self.client.get("/health", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401
        assert response.json() == {
            "message": "Invalid or expired token",
            "errorCode": "invalid_token",
        }

    def test_valid_token_reaches_handler(self):
        """Test a valid token installs the principal for the handler."""
        token = get_token_codec().issue("alice")

        with patch("app.auth.middleware.UsersService") as mock_service:
            mock_service.return_value.get_user_by_username = AsyncMock(
                return_value=make_user("alice")
            )
            response = self.client.get("/user", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json() == {"username": "alice"}

    def test_deleted_account_token_rejected(self):
        """Test tokens stop working once the account is deleted."""
        token = get_token_codec().issue("alice")

        with patch("app.auth.middleware.UsersService") as mock_service:
            mock_service.return_value.get_user_by_username = AsyncMock(
                return_value=make_user("alice", deleted=True)
            )
            response = self.client.get("/user", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["errorCode"] == "account_deleted"
