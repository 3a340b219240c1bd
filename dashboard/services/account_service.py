"""Account orchestration: sign-up, login, verification and password flows."""

import logging

from dashboard.config import Settings
from dashboard.exceptions import (
    ConflictError,
    DuplicateError,
    IncorrectPasswordError,
    InvalidCredentialsError,
    InvalidTokenError,
    LockedAccountError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from dashboard.models import Session, User
from dashboard.models.role import USER_ROLE_NAME
from dashboard.models.token import TOKEN_TYPE_RESET_PASSWORD, TOKEN_TYPE_VERIFY_EMAIL
from dashboard.services.credentials import (
    hash_password,
    validate_email,
    validate_password,
    verify_password,
)
from dashboard.services.email_service import EmailService
from dashboard.services.interfaces import Mailer, Store
from dashboard.services.role_service import RoleService
from dashboard.services.session_service import SessionService
from dashboard.services.token_service import TokenService

logger = logging.getLogger(__name__)

NAME_MAX_LENGTH = 64


class AccountService:
    """Business logic behind the user endpoints.

    Accounts are ``unverified`` after sign-up and become ``verified`` by
    consuming a verify_email token. ``active``/``locked`` is orthogonal and
    only changed by administrators.
    """

    def __init__(self, store: Store, mailer: Mailer, settings: Settings) -> None:
        self._store = store
        self.sessions = SessionService(store)
        self.tokens = TokenService(store)
        self.roles = RoleService(store)
        self.emails = EmailService(mailer, settings)

    # Users

    def sign_up(
        self, email: str, password: str, first_name: str = "", last_name: str = ""
    ) -> tuple[User, Session]:
        """Create an unverified, active user and log them in.

        Raises:
            ValidationError: Bad email, password or name.
            ConflictError: The email is already registered.
        """
        validate_password(password)
        email = email.lower()
        validate_email(email)
        _validate_names(first_name, last_name)

        user = User(
            email=email,
            password_hash=hash_password(password),
            email_verified=False,
            first_name=first_name,
            last_name=last_name,
        )
        try:
            user = self._store.create_user(user)
        except DuplicateError as e:
            raise ConflictError(str(e), user_message="email exists") from e

        self.roles.add_user_role(user.id, USER_ROLE_NAME)
        logger.info(f"User created: {user.id} ({user.email})")

        return user, self.login(user)

    def get_user(self, user_id: str) -> User | None:
        """Fetch a user with ``is_admin`` resolved from the role table."""
        user = self._store.get_user_by_id(user_id)
        if user is None:
            return None
        user.is_admin = self.roles.is_admin(user.id)
        return user

    def get_user_by_email(self, email: str) -> User | None:
        return self._store.get_user_by_email(email.lower())

    def update_profile(
        self,
        user_id: str,
        email: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> User:
        """Update profile fields.

        Changing the email marks the account unverified and starts a new
        email verification for the new address.
        """
        user = self.get_user(user_id)
        if user is None:
            raise NotFoundError(f"user {user_id} not found")

        changes: dict = {}
        if first_name is not None or last_name is not None:
            _validate_names(first_name or "", last_name or "")
        if first_name is not None:
            changes["first_name"] = first_name
        if last_name is not None:
            changes["last_name"] = last_name

        email_changed = False
        if email is not None and email.lower() != user.email:
            email = email.lower()
            validate_email(email)
            changes["email"] = email
            changes["email_verified"] = False
            email_changed = True

        if changes:
            try:
                self._store.update_user(user_id, **changes)
            except DuplicateError as e:
                raise ConflictError(str(e), user_message="account exists") from e
            logger.info(f"User updated: {user_id}")

        if email_changed:
            self._send_verification(email)

        return self.get_user(user_id)

    def set_user_locked(self, user_id: str, locked: bool) -> User:
        if self._store.get_user_by_id(user_id) is None:
            raise NotFoundError(f"user {user_id} not found")
        self._store.set_user_locked(user_id, locked)
        logger.info(f"User {user_id} {'locked' if locked else 'unlocked'}")
        return self.get_user(user_id)

    # Login / logout

    def authenticate(self, email: str, password: str) -> User:
        """Check credentials, then the account state.

        Raises:
            InvalidCredentialsError: Unknown email, blank or wrong password.
            LockedAccountError: Correct credentials on a locked account.
        """
        if not password:
            raise InvalidCredentialsError("blank password")

        user = self._store.get_user_by_email(email.lower())
        if user is None:
            raise InvalidCredentialsError(f"no user for {email}")

        if not verify_password(user.password_hash, password):
            raise InvalidCredentialsError(f"bad password for {user.id}")

        if user.is_locked:
            raise LockedAccountError(f"attempt to login to locked account {user.id}")

        user.is_admin = self.roles.is_admin(user.id)
        return user

    def login(self, user: User) -> Session:
        session = self.sessions.create(user.id)
        logger.info(f"User logged in: {user.id}")
        return session

    def logout(self, session_id: str) -> None:
        if not session_id:
            return
        try:
            self.sessions.destroy(session_id)
        except StoreError:
            logger.exception(f"Failed to delete session {session_id} on logout")

    # Email verification

    def start_email_verification(self, user_id: str) -> None:
        """Issue a verification code and mail it.

        The token is stored before the mail is sent; if sending fails the
        token stays and a retry supersedes it.
        """
        user = self._store.get_user_by_id(user_id)
        if user is None:
            raise NotFoundError(f"user {user_id} not found")
        if user.email_verified:
            raise ValidationError(
                "user email is already verified", user_message="email already verified"
            )
        self._send_verification(user.email)

    def complete_email_verification(self, token: str) -> User:
        email = self.tokens.consume(token, TOKEN_TYPE_VERIFY_EMAIL)
        user = self._store.get_user_by_email(email)
        if user is None:
            raise InvalidTokenError(f"no user for verified email {email}")

        self._store.set_email_verified(user.id, True)
        logger.info(f"Email verified for user: {user.id}")
        return user

    # Passwords

    def forgot_password(self, email: str) -> None:
        """Send a reset link if the account exists. Silent otherwise."""
        email = email.lower()
        user = self._store.get_user_by_email(email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return

        token = self.tokens.issue(TOKEN_TYPE_RESET_PASSWORD, email)
        self.emails.send_password_reset_email(email, token)
        logger.info(f"Password reset email sent for user: {user.id}")

    def reset_password(self, token: str, new_password: str) -> None:
        """Set a new password from a reset token and log out every device."""
        validate_password(new_password)

        email = self.tokens.consume(token, TOKEN_TYPE_RESET_PASSWORD)
        user = self._store.get_user_by_email(email)
        if user is None:
            raise InvalidTokenError(f"no user for reset email {email}")

        self._store.update_password_hash(user.id, hash_password(new_password))
        self.sessions.destroy_all_for_user(user.id)
        logger.info(f"Password reset for user: {user.id}")

    def change_password(
        self, user_id: str, current_password: str, new_password: str
    ) -> Session | None:
        """Change the password of a logged-in user.

        Every session of the user is invalidated and a fresh one is created
        for the caller. Returns None if that re-login failed; the password
        change itself still stands.

        Raises:
            ValidationError: Missing or weak passwords.
            IncorrectPasswordError: ``current_password`` is wrong.
        """
        if not current_password or not new_password:
            raise ValidationError("current and new password not set")
        validate_password(new_password)

        user = self._store.get_user_by_id(user_id)
        if user is None:
            raise InvalidCredentialsError(f"user {user_id} not found")
        if not verify_password(user.password_hash, current_password):
            raise IncorrectPasswordError(f"bad old password for {user_id}")

        self._store.update_password_hash(user.id, hash_password(new_password))
        self.sessions.destroy_all_for_user(user.id)
        logger.info(f"Password changed for user: {user.id}")

        try:
            return self.login(user)
        except StoreError:
            logger.warning(
                f"error trying to re-login user {user.id} after the password change",
                exc_info=True,
            )
            return None

    def _send_verification(self, email: str) -> None:
        token = self.tokens.issue(TOKEN_TYPE_VERIFY_EMAIL, email)
        self.emails.send_verify_email(email, token)


def _validate_names(first_name: str, last_name: str) -> None:
    if len(first_name) > NAME_MAX_LENGTH:
        raise ValidationError("invalid first name", user_message="invalid first name")
    if len(last_name) > NAME_MAX_LENGTH:
        raise ValidationError("invalid last name", user_message="invalid last name")
