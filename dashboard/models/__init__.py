"""SQLAlchemy ORM models."""

from dashboard.models.oauth_state import OAuthState
from dashboard.models.role import Role, user_roles
from dashboard.models.session import Session
from dashboard.models.token import Token
from dashboard.models.user import User
from dashboard.models.user_auth_info import UserAuthInfo

__all__ = [
    "OAuthState",
    "Role",
    "Session",
    "Token",
    "User",
    "UserAuthInfo",
    "user_roles",
]
