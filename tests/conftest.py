"""Shared test fixtures."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from dashboard.config import Settings
from dashboard.main import create_app
from dashboard.models.role import ADMIN_ROLE_NAME
from dashboard.models.token import TOKEN_TYPE_RESET_PASSWORD, TOKEN_TYPE_VERIFY_EMAIL
from dashboard.rate_limiter import limiter
from dashboard.services.repositories import SqlStore
from dashboard.services.role_service import RoleService
from tests.fakes import FakeGitHubClient, FakeMailer, InMemoryStore

PASSWORD = "Passw0rdOne"
NEW_PASSWORD = "Passw0rdTwo"
XHR = {"X-Requested-With": "XMLHttpRequest"}


def make_settings(**overrides) -> Settings:
    values = {
        "database_url": "sqlite://",
        "site_url": "http://dashboard.test",
        "sendgrid_api_key": "",
        "log_level": "DEBUG",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def store():
    """Store double for service unit tests, with the well-known roles seeded."""
    store = InMemoryStore()
    RoleService(store).initialize_roles()
    return store


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def github():
    return FakeGitHubClient()


@pytest.fixture
def client(settings, mailer, github):
    """Create test client with in-memory database.

    Yields a tuple of (TestClient, SessionMaker) for use in tests.
    """
    # Clear rate limiter storage between tests
    limiter.reset()

    # Use StaticPool to share same connection across all threads
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    app = create_app(settings=settings, engine=engine, mailer=mailer, github_client=github)

    with TestClient(app) as test_client:
        yield test_client, app.state.session_factory

    engine.dispose()


def sign_up(test_client: TestClient, email: str, password: str = PASSWORD, **headers):
    """Sign up through the API and return the response."""
    return test_client.post(
        "/api/v1/users/signup",
        json={"email": email, "password": password},
        headers=headers,
    )


def login(test_client: TestClient, email: str, password: str = PASSWORD, **headers):
    return test_client.post(
        "/api/v1/users/login",
        json={"email": email, "password": password},
        headers=headers,
    )


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def verify_user(db_session_maker, email: str) -> None:
    """Mark a user verified directly in the database."""
    db = db_session_maker()
    try:
        store = SqlStore(db)
        user = store.get_user_by_email(email)
        store.set_email_verified(user.id, True)
    finally:
        db.close()


def make_admin(db_session_maker, email: str) -> None:
    db = db_session_maker()
    try:
        store = SqlStore(db)
        user = store.get_user_by_email(email)
        RoleService(store).add_user_role(user.id, ADMIN_ROLE_NAME)
    finally:
        db.close()


def tokens_for(db_session_maker, email: str, token_type: str) -> list[str]:
    db = db_session_maker()
    try:
        return [t.token for t in SqlStore(db).get_tokens_by_email(email, token_type)]
    finally:
        db.close()


def verify_tokens_for(db_session_maker, email: str) -> list[str]:
    return tokens_for(db_session_maker, email, TOKEN_TYPE_VERIFY_EMAIL)


def reset_tokens_for(db_session_maker, email: str) -> list[str]:
    return tokens_for(db_session_maker, email, TOKEN_TYPE_RESET_PASSWORD)


def signed_up_verified(test_client, db_session_maker, email: str) -> str:
    """Sign up and verify a user; return its session token."""
    response = sign_up(test_client, email)
    assert response.status_code == 201
    verify_user(db_session_maker, email)
    return response.headers["Token"]
