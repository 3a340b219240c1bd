"""Repository layer - data access abstraction.

Repositories handle all database queries, providing a clean interface
for services. Services should use repositories for data access rather
than directly querying SQLAlchemy models.

The Repository pattern separates data access from business logic:
- Repositories: Pure data access (queries, creates, updates)
- Services: Business logic that uses repositories

Dependency direction: Services -> Store -> Repositories -> Models

Every repository call raises StoreError on an underlying fault; a missing
row is returned as None, never raised.
"""

from .oauth_repository import OAuthStateRepository, UserAuthInfoRepository
from .role_repository import RoleRepository
from .session_repository import SessionRepository
from .sql_store import SqlStore
from .token_repository import TokenRepository
from .user_repository import UserRepository

__all__ = [
    "OAuthStateRepository",
    "RoleRepository",
    "SessionRepository",
    "SqlStore",
    "TokenRepository",
    "UserAuthInfoRepository",
    "UserRepository",
]
