"""Tests for account orchestration against the in-memory store."""

from datetime import timedelta

import pytest

from dashboard.exceptions import (
    ConflictError,
    IncorrectPasswordError,
    InvalidCredentialsError,
    InvalidEmailError,
    InvalidPasswordError,
    InvalidTokenError,
    LockedAccountError,
    MailError,
    StoreError,
    ValidationError,
)
from dashboard.models.role import ADMIN_ROLE_NAME, USER_ROLE_NAME
from dashboard.models.token import TOKEN_TYPE_RESET_PASSWORD, TOKEN_TYPE_VERIFY_EMAIL
from dashboard.models.user import USER_STATE_ACTIVE, USER_STATE_LOCKED
from dashboard.services.account_service import AccountService
from dashboard.services.credentials import verify_password
from dashboard.services.session_service import ById
from dashboard.utils import utcnow
from tests.conftest import NEW_PASSWORD, PASSWORD

EMAIL = "alice@example.com"


@pytest.fixture
def accounts(store, mailer, settings):
    return AccountService(store, mailer, settings)


@pytest.fixture
def alice(accounts):
    user, _ = accounts.sign_up(EMAIL, PASSWORD, "Alice", "Liddell")
    return user


def test_sign_up_creates_unverified_active_user(accounts, store):
    user, session = accounts.sign_up("Alice@Example.com", PASSWORD, "Alice", "Liddell")

    assert user.email == EMAIL
    assert user.email_verified is False
    assert user.state == USER_STATE_ACTIVE
    assert user.password_hash != PASSWORD
    assert verify_password(user.password_hash, PASSWORD)
    assert store.has_role(user.id, USER_ROLE_NAME) is True
    assert store.has_role(user.id, ADMIN_ROLE_NAME) is False
    assert session.user_id == user.id
    assert store.get_session_by_id(session.id) is session


def test_sign_up_duplicate_email(accounts, alice):
    with pytest.raises(ConflictError):
        accounts.sign_up(EMAIL.upper(), PASSWORD)


def test_sign_up_weak_password(accounts, store):
    with pytest.raises(InvalidPasswordError):
        accounts.sign_up(EMAIL, "password")
    assert store.users == {}


def test_sign_up_invalid_email(accounts):
    with pytest.raises(InvalidEmailError):
        accounts.sign_up("alice at example.com", PASSWORD)


def test_sign_up_name_too_long(accounts):
    with pytest.raises(ValidationError):
        accounts.sign_up(EMAIL, PASSWORD, first_name="x" * 65)


def test_authenticate(accounts, alice):
    user = accounts.authenticate("ALICE@example.com", PASSWORD)

    assert user.id == alice.id
    assert user.is_admin is False


@pytest.mark.parametrize(
    "email,password",
    [
        (EMAIL, ""),
        (EMAIL, "Wr0ngPassword"),
        ("nobody@example.com", PASSWORD),
    ],
)
def test_authenticate_bad_credentials(accounts, alice, email, password):
    with pytest.raises(InvalidCredentialsError):
        accounts.authenticate(email, password)


def test_authenticate_locked_account(accounts, alice):
    accounts.set_user_locked(alice.id, True)

    with pytest.raises(LockedAccountError):
        accounts.authenticate(EMAIL, PASSWORD)


def test_locked_account_with_wrong_password_is_bad_credentials(accounts, alice):
    """The locked state is only revealed after the password checks out."""
    accounts.set_user_locked(alice.id, True)

    with pytest.raises(InvalidCredentialsError):
        accounts.authenticate(EMAIL, "Wr0ngPassword")


def test_logout_is_quiet(accounts, alice, store):
    session = accounts.login(alice)
    store.fail_on.add("delete_session")

    accounts.logout(session.id)
    accounts.logout("")


def test_email_verification_flow(accounts, alice, mailer, store):
    accounts.start_email_verification(alice.id)

    [token] = store.get_tokens_by_email(EMAIL, TOKEN_TYPE_VERIFY_EMAIL)
    to_address, subject, body = mailer.sent[-1]
    assert to_address == EMAIL
    assert subject == "Verify Email"
    assert f"{token.token[:3]} {token.token[3:]}" in body

    user = accounts.complete_email_verification(token.token)

    assert user.id == alice.id
    assert store.get_user_by_id(alice.id).email_verified is True
    assert store.get_token(token.token) is None


def test_start_verification_when_already_verified(accounts, alice, store):
    store.set_email_verified(alice.id, True)

    with pytest.raises(ValidationError):
        accounts.start_email_verification(alice.id)


def test_start_verification_mail_failure_keeps_token(accounts, alice, mailer, store):
    mailer.fail = True

    with pytest.raises(MailError):
        accounts.start_email_verification(alice.id)
    assert len(store.get_tokens_by_email(EMAIL, TOKEN_TYPE_VERIFY_EMAIL)) == 1


def test_resending_verification_supersedes_code(accounts, alice, store):
    accounts.start_email_verification(alice.id)
    [first] = store.get_tokens_by_email(EMAIL, TOKEN_TYPE_VERIFY_EMAIL)
    accounts.start_email_verification(alice.id)

    with pytest.raises(InvalidTokenError):
        accounts.complete_email_verification(first.token)


def test_forgot_password_unknown_email_is_silent(accounts, mailer, store):
    accounts.forgot_password("nobody@example.com")

    assert store.tokens == {}
    assert mailer.sent == []


def test_forgot_password_sends_reset_link(accounts, alice, mailer, store, settings):
    accounts.forgot_password("Alice@Example.com")

    [token] = store.get_tokens_by_email(EMAIL, TOKEN_TYPE_RESET_PASSWORD)
    to_address, subject, body = mailer.sent[-1]
    assert to_address == EMAIL
    assert subject == "Password Reset"
    assert f"{settings.site_url}/reset-password?token={token.token}" in body


def test_reset_password(accounts, alice, store):
    sessions = [accounts.login(alice) for _ in range(2)]
    accounts.forgot_password(EMAIL)
    [token] = store.get_tokens_by_email(EMAIL, TOKEN_TYPE_RESET_PASSWORD)

    accounts.reset_password(token.token, NEW_PASSWORD)

    assert accounts.authenticate(EMAIL, NEW_PASSWORD).id == alice.id
    with pytest.raises(InvalidCredentialsError):
        accounts.authenticate(EMAIL, PASSWORD)
    assert all(accounts.sessions.resolve(ById(s.id)) is None for s in sessions)


def test_reset_password_with_verify_token(accounts, alice, store):
    accounts.start_email_verification(alice.id)
    [token] = store.get_tokens_by_email(EMAIL, TOKEN_TYPE_VERIFY_EMAIL)

    with pytest.raises(InvalidTokenError):
        accounts.reset_password(token.token, NEW_PASSWORD)


def test_reset_password_weak_password_keeps_token(accounts, alice, store):
    accounts.forgot_password(EMAIL)
    [token] = store.get_tokens_by_email(EMAIL, TOKEN_TYPE_RESET_PASSWORD)

    with pytest.raises(InvalidPasswordError):
        accounts.reset_password(token.token, "weak")
    assert store.get_token(token.token) is not None


def test_reset_password_expired_token(accounts, alice, store):
    accounts.forgot_password(EMAIL)
    [token] = store.get_tokens_by_email(EMAIL, TOKEN_TYPE_RESET_PASSWORD)
    token.created_at = utcnow() - timedelta(hours=25)

    with pytest.raises(InvalidTokenError):
        accounts.reset_password(token.token, NEW_PASSWORD)


def test_reset_password_session_cleanup_failure_surfaces(accounts, alice, store):
    accounts.forgot_password(EMAIL)
    [token] = store.get_tokens_by_email(EMAIL, TOKEN_TYPE_RESET_PASSWORD)
    store.fail_on.add("delete_sessions_for_user")

    with pytest.raises(StoreError):
        accounts.reset_password(token.token, NEW_PASSWORD)


def test_change_password(accounts, alice):
    old_sessions = [accounts.login(alice) for _ in range(2)]

    new_session = accounts.change_password(alice.id, PASSWORD, NEW_PASSWORD)

    assert new_session is not None
    assert all(accounts.sessions.resolve(ById(s.id)) is None for s in old_sessions)
    assert accounts.sessions.resolve(ById(new_session.id)) is new_session
    assert accounts.authenticate(EMAIL, NEW_PASSWORD).id == alice.id


def test_change_password_wrong_current(accounts, alice):
    session = accounts.login(alice)

    with pytest.raises(IncorrectPasswordError):
        accounts.change_password(alice.id, "Wr0ngPassword", NEW_PASSWORD)
    assert accounts.sessions.resolve(ById(session.id)) is session
    assert accounts.authenticate(EMAIL, PASSWORD).id == alice.id


def test_change_password_missing_fields(accounts, alice):
    with pytest.raises(ValidationError):
        accounts.change_password(alice.id, "", NEW_PASSWORD)


def test_change_password_relogin_failure_returns_none(accounts, alice, store):
    store.fail_on.add("create_session")

    assert accounts.change_password(alice.id, PASSWORD, NEW_PASSWORD) is None
    assert accounts.authenticate(EMAIL, NEW_PASSWORD).id == alice.id


def test_get_user_sets_admin_flag(accounts, alice):
    assert accounts.get_user(alice.id).is_admin is False

    accounts.roles.add_user_role(alice.id, ADMIN_ROLE_NAME)

    assert accounts.get_user(alice.id).is_admin is True


def test_update_profile_names(accounts, alice, mailer):
    user = accounts.update_profile(alice.id, first_name="Ally")

    assert user.first_name == "Ally"
    assert user.last_name == "Liddell"
    assert mailer.sent == []


def test_update_profile_email_requires_new_verification(accounts, alice, mailer, store):
    store.set_email_verified(alice.id, True)

    user = accounts.update_profile(alice.id, email="Ally@Example.com")

    assert user.email == "ally@example.com"
    assert user.email_verified is False
    assert len(store.get_tokens_by_email("ally@example.com", TOKEN_TYPE_VERIFY_EMAIL)) == 1
    assert mailer.sent[-1][0] == "ally@example.com"


def test_update_profile_email_taken(accounts, alice):
    accounts.sign_up("bob@example.com", PASSWORD)

    with pytest.raises(ConflictError):
        accounts.update_profile(alice.id, email="bob@example.com")


def test_set_user_locked(accounts, alice):
    assert accounts.set_user_locked(alice.id, True).state == USER_STATE_LOCKED
    assert accounts.set_user_locked(alice.id, False).state == USER_STATE_ACTIVE
