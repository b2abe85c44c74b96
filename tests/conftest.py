"""
Pytest configuration and fixtures
"""
import os

# Settings are cached on first use, so the test environment goes in before any quasar import
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_FILE_ENABLED"] = "false"
os.environ["LOG_FORMAT"] = "text"
os.environ["FCM_SERVER_KEY"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

import quasar.models  # noqa: F401 - register every table on Base.metadata
from quasar.core.database import Base, get_db, get_engine, get_session_local
from quasar.models.user import RoleCode
from quasar.seeders import run_seeders
from quasar.services.auth_service import AuthService


@pytest.fixture(scope="function")
def db() -> Session:
    """Database session on a freshly created in-memory schema"""
    engine = get_engine()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    session = get_session_local()()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client(db):
    """Test client whose requests share the test session"""
    from quasar.main import app

    app.dependency_overrides[get_db] = lambda: db
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def seeded_access(db):
    """Built-in roles and the admin permission set"""
    return run_seeders(db, ["roles", "permissions"])


@pytest.fixture
def admin_user(db, seeded_access):
    return AuthService(db).register_user(
        "admin", "admin@example.com", "admin-password", role_codes=[RoleCode.SUPER_ADMIN.value]
    )


@pytest.fixture
def plain_user(db, seeded_access):
    return AuthService(db).register_user("shopper", "shopper@example.com", "shopper-password")


@pytest.fixture
def auth_headers(db):
    """Factory: bearer headers for a fresh session of `user`"""

    def make(user):
        session = AuthService(db).create_session(user.id)
        return {"Authorization": f"Bearer {session.token}"}

    return make


@pytest.fixture
def admin_headers(auth_headers, admin_user):
    return auth_headers(admin_user)


@pytest.fixture
def user_headers(auth_headers, plain_user):
    return auth_headers(plain_user)
