"""SQLAlchemy implementation of the Store protocol."""

from datetime import datetime

from sqlalchemy.orm import Session as DBSession

from dashboard.models import OAuthState, Role, Session, Token, User, UserAuthInfo

from .oauth_repository import OAuthStateRepository, UserAuthInfoRepository
from .role_repository import RoleRepository
from .session_repository import SessionRepository
from .token_repository import TokenRepository
from .user_repository import UserRepository


class SqlStore:
    """Facade over the per-entity repositories sharing one database session."""

    def __init__(self, db: DBSession) -> None:
        self.users = UserRepository(db)
        self.sessions = SessionRepository(db)
        self.tokens = TokenRepository(db)
        self.roles = RoleRepository(db)
        self.oauth_states = OAuthStateRepository(db)
        self.auth_infos = UserAuthInfoRepository(db)

    # Users
    def get_user_by_id(self, user_id: str) -> User | None:
        return self.users.find_by_id(user_id)

    def get_user_by_email(self, email: str) -> User | None:
        return self.users.find_by_email(email)

    def create_user(self, user: User) -> User:
        return self.users.create(user)

    def update_user(self, user_id: str, **fields) -> User | None:
        return self.users.update(user_id, **fields)

    def update_password_hash(self, user_id: str, password_hash: str) -> None:
        self.users.update_password_hash(user_id, password_hash)

    def set_email_verified(self, user_id: str, verified: bool) -> None:
        self.users.set_email_verified(user_id, verified)

    def set_user_locked(self, user_id: str, locked: bool) -> None:
        self.users.set_locked(user_id, locked)

    # Sessions
    def create_session(self, session: Session) -> Session:
        return self.sessions.create(session)

    def get_session_by_id(self, session_id: str) -> Session | None:
        return self.sessions.find_by_id(session_id)

    def get_session_by_token(self, token: str) -> Session | None:
        return self.sessions.find_by_token(token)

    def delete_session(self, session_id: str) -> None:
        self.sessions.delete(session_id)

    def delete_sessions_for_user(self, user_id: str) -> int:
        return self.sessions.delete_for_user(user_id)

    def delete_expired_sessions(self, now: datetime) -> int:
        return self.sessions.delete_expired(now)

    # Tokens
    def create_token(self, token: Token) -> Token:
        return self.tokens.create(token)

    def get_token(self, value: str) -> Token | None:
        return self.tokens.find(value)

    def get_tokens_by_email(self, email: str, token_type: str) -> list[Token]:
        return self.tokens.find_by_email(email, token_type)

    def delete_token(self, value: str) -> None:
        self.tokens.delete(value)

    def delete_tokens_by_email(self, email: str, token_type: str) -> int:
        return self.tokens.delete_by_email(email, token_type)

    def sweep_tokens_older_than(self, cutoff: datetime) -> int:
        return self.tokens.delete_older_than(cutoff)

    # Roles
    def get_role_by_name(self, name: str) -> Role | None:
        return self.roles.find_by_name(name)

    def create_role(self, role: Role) -> Role:
        return self.roles.create(role)

    def has_role(self, user_id: str, role_name: str) -> bool:
        return self.roles.user_has_role(user_id, role_name)

    def add_user_role(self, user_id: str, role_id: str) -> None:
        self.roles.add_user_role(user_id, role_id)

    def remove_user_role(self, user_id: str, role_id: str) -> None:
        self.roles.remove_user_role(user_id, role_id)

    # OAuth
    def create_oauth_state(self, state: OAuthState) -> OAuthState:
        return self.oauth_states.create(state)

    def get_oauth_state_by_id(self, state_id: str) -> OAuthState | None:
        return self.oauth_states.find_by_id(state_id)

    def get_oauth_state_by_token(self, token: str) -> OAuthState | None:
        return self.oauth_states.find_by_token(token)

    def delete_oauth_state(self, state_id: str) -> None:
        self.oauth_states.delete(state_id)

    def delete_expired_oauth_states(self, now: datetime) -> int:
        return self.oauth_states.delete_expired(now)

    def upsert_user_auth_info(self, info: UserAuthInfo) -> UserAuthInfo:
        return self.auth_infos.upsert(info)

    def get_user_auth_info(self, user_id: str, oauth_provider: str) -> UserAuthInfo | None:
        return self.auth_infos.find(user_id, oauth_provider)
