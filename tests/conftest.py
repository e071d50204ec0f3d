"""
Shared fixtures for TomeVault API tests.

Every test gets its own SQLite file. Service tests use the async ``db``
fixture; API tests use ``client``, whose lifespan builds the schema and
seeds the role catalog inside the app's own event loop.
"""

import pytest
from fastapi.testclient import TestClient

from app.auth.jwt_utils import get_token_codec
from app.auth.roles import RoleName
from app.core.config_manager import settings
from app.core.database_connection import db_manager
from app.core.database_schema import create_schema
from app.psql_db_services.roles_service import RolesService
from app.psql_db_services.users_service import UsersService
from app.utils.passwrd_hashing import PasswordHasher

DEFAULT_PASSWORD = "Secret123"


# ============================================================================
# ENVIRONMENT
# ============================================================================


@pytest.fixture(autouse=True)
def database_url(tmp_path, monkeypatch):
    """Point the app at a fresh SQLite file for this test."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'tomevault.db'}"
    monkeypatch.setattr(settings, "database_dsn", url)
    return url


@pytest.fixture(autouse=True)
def reset_token_codec():
    """Codec is cached from settings; rebuild it around every test."""
    get_token_codec.cache_clear()
    yield
    get_token_codec.cache_clear()


# ============================================================================
# DATABASE
# ============================================================================


@pytest.fixture
async def db(database_url):
    """Initialized database with schema and role catalog."""
    await db_manager.initialize(database_url)
    await create_schema(db_manager.engine)
    await RolesService().seed_catalog()
    yield db_manager
    await db_manager.close()


async def create_account(
    username: str,
    roles=(RoleName.USER,),
    password: str = DEFAULT_PASSWORD,
    email: str = None,
):
    """Insert a user directly, bypassing sign-up (the only way to get privileged roles)."""
    return await UsersService().create_user(
        username=username,
        email=email or f"{username}@mailbox.org",
        password_hash=PasswordHasher.hash_password(password),
        roles=list(roles),
    )


# ============================================================================
# API
# ============================================================================


@pytest.fixture
def client():
    from app.app import app

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def login_as(client):
    """
    Log in through the API and return request headers carrying the token.

    Usage:
        headers = login_as("alice")
        client.get("/books", headers=headers)
    """

    def _login(identifier: str, password: str = DEFAULT_PASSWORD) -> dict:
        response = client.post(
            "/auth/login", json={"usernameOrEmail": identifier, "password": password}
        )
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}

    return _login


@pytest.fixture
def account_factory(client, login_as):
    """
    Create an account inside the running app's event loop and log it in.

    Usage:
        user, headers = account_factory("root", [RoleName.SUPER_ADMIN])
    """

    def _create(username: str, roles=(RoleName.USER,), password: str = DEFAULT_PASSWORD):
        user = client.portal.call(create_account, username, roles, password)
        return user, login_as(username, password)

    return _create
