"""
Service-layer interfaces.

Services depend on these protocols, not on SQLAlchemy or SendGrid. The SQL
store and SendGrid mailer satisfy them in production; tests substitute
in-memory doubles.
"""

from datetime import datetime
from typing import Protocol, runtime_checkable

from dashboard.models import OAuthState, Role, Session, Token, User, UserAuthInfo


@runtime_checkable
class Store(Protocol):
    """
    Persistence operations used by the authentication core.

    Every method raises StoreError on an underlying fault. A missing row is
    returned as None. Unique constraint violations raise DuplicateError.
    """

    def get_user_by_id(self, user_id: str) -> User | None: ...

    def get_user_by_email(self, email: str) -> User | None: ...

    def create_user(self, user: User) -> User: ...

    def update_user(self, user_id: str, **fields) -> User | None: ...

    def update_password_hash(self, user_id: str, password_hash: str) -> None: ...

    def set_email_verified(self, user_id: str, verified: bool) -> None: ...

    def set_user_locked(self, user_id: str, locked: bool) -> None: ...

    def create_session(self, session: Session) -> Session: ...

    def get_session_by_id(self, session_id: str) -> Session | None: ...

    def get_session_by_token(self, token: str) -> Session | None: ...

    def delete_session(self, session_id: str) -> None: ...

    def delete_sessions_for_user(self, user_id: str) -> int: ...

    def delete_expired_sessions(self, now: datetime) -> int: ...

    def create_token(self, token: Token) -> Token: ...

    def get_token(self, value: str) -> Token | None: ...

    def get_tokens_by_email(self, email: str, token_type: str) -> list[Token]: ...

    def delete_token(self, value: str) -> None: ...

    def delete_tokens_by_email(self, email: str, token_type: str) -> int: ...

    def sweep_tokens_older_than(self, cutoff: datetime) -> int: ...

    def get_role_by_name(self, name: str) -> Role | None: ...

    def create_role(self, role: Role) -> Role: ...

    def has_role(self, user_id: str, role_name: str) -> bool: ...

    def add_user_role(self, user_id: str, role_id: str) -> None: ...

    def remove_user_role(self, user_id: str, role_id: str) -> None: ...

    def create_oauth_state(self, state: OAuthState) -> OAuthState: ...

    def get_oauth_state_by_id(self, state_id: str) -> OAuthState | None: ...

    def get_oauth_state_by_token(self, token: str) -> OAuthState | None: ...

    def delete_oauth_state(self, state_id: str) -> None: ...

    def delete_expired_oauth_states(self, now: datetime) -> int: ...

    def upsert_user_auth_info(self, info: UserAuthInfo) -> UserAuthInfo: ...

    def get_user_auth_info(self, user_id: str, oauth_provider: str) -> UserAuthInfo | None: ...


@runtime_checkable
class Mailer(Protocol):
    """Outbound email transport."""

    def send(self, to_address: str, subject: str, html_body: str) -> None:
        """
        Deliver one HTML email.

        Raises:
            MailError: If the message could not be handed to the transport.
        """
        ...
