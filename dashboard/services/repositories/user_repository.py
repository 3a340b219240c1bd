"""User data access layer."""

import logging

from sqlalchemy.orm import Session

from dashboard.models import User
from dashboard.models.user import USER_STATE_ACTIVE, USER_STATE_LOCKED

from .base import store_errors

logger = logging.getLogger(__name__)


class UserRepository:
    """Centralized user data access.

    Naming conventions:
    - find_* : Query that may return None
    - everything else raises StoreError on failure
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    def find_by_id(self, user_id: str) -> User | None:
        """Find user by primary key."""
        with store_errors(self._db, "get user by id"):
            return self._db.get(User, user_id)

    def find_by_email(self, email: str) -> User | None:
        """Find user by email. Emails are stored lower-cased."""
        with store_errors(self._db, "get user by email"):
            return self._db.query(User).filter(User.email == email).first()

    def create(self, user: User) -> User:
        with store_errors(self._db, "create user", duplicate=("User", "email", user.email)):
            self._db.add(user)
            self._db.commit()
        return user

    def update(self, user_id: str, **fields) -> User | None:
        """Update the given columns. Unique email violations raise DuplicateError."""
        duplicate = ("User", "email", fields["email"]) if "email" in fields else None
        with store_errors(self._db, "update user", duplicate=duplicate):
            user = self._db.get(User, user_id)
            if user is None:
                return None
            for field, value in fields.items():
                setattr(user, field, value)
            self._db.commit()
        return user

    def update_password_hash(self, user_id: str, password_hash: str) -> None:
        with store_errors(self._db, "update user password"):
            self._db.query(User).filter(User.id == user_id).update(
                {User.password_hash: password_hash}
            )
            self._db.commit()

    def set_email_verified(self, user_id: str, verified: bool) -> None:
        with store_errors(self._db, "set user email verification"):
            self._db.query(User).filter(User.id == user_id).update(
                {User.email_verified: verified}
            )
            self._db.commit()

    def set_locked(self, user_id: str, locked: bool) -> None:
        state = USER_STATE_LOCKED if locked else USER_STATE_ACTIVE
        with store_errors(self._db, "set user state"):
            self._db.query(User).filter(User.id == user_id).update({User.state: state})
            self._db.commit()
