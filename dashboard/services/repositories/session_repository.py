"""Session data access layer."""

import logging
from datetime import datetime

from sqlalchemy.orm import Session as DBSession

from dashboard.models import Session

from .base import store_errors

logger = logging.getLogger(__name__)


class SessionRepository:
    """Session rows looked up either by primary id or by bearer token."""

    def __init__(self, db: DBSession) -> None:
        self._db = db

    def create(self, session: Session) -> Session:
        with store_errors(self._db, "create session"):
            self._db.add(session)
            self._db.commit()
        return session

    def find_by_id(self, session_id: str) -> Session | None:
        with store_errors(self._db, "get session by id"):
            return self._db.get(Session, session_id)

    def find_by_token(self, token: str) -> Session | None:
        with store_errors(self._db, "get session by token"):
            return self._db.query(Session).filter(Session.token == token).first()

    def delete(self, session_id: str) -> None:
        with store_errors(self._db, "delete session"):
            self._db.query(Session).filter(Session.id == session_id).delete()
            self._db.commit()

    def delete_for_user(self, user_id: str) -> int:
        with store_errors(self._db, "delete user sessions"):
            count = self._db.query(Session).filter(Session.user_id == user_id).delete()
            self._db.commit()
        return count

    def delete_expired(self, now: datetime) -> int:
        with store_errors(self._db, "delete expired sessions"):
            count = self._db.query(Session).filter(Session.expires_at < now).delete()
            self._db.commit()
        return count
