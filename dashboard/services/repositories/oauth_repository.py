"""OAuth state and connected-account data access layer."""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from dashboard.models import OAuthState, UserAuthInfo
from dashboard.utils import utcnow

from .base import store_errors

logger = logging.getLogger(__name__)


class OAuthStateRepository:
    def __init__(self, db: Session) -> None:
        self._db = db

    def create(self, state: OAuthState) -> OAuthState:
        with store_errors(self._db, "create oauth state"):
            self._db.add(state)
            self._db.commit()
        return state

    def find_by_id(self, state_id: str) -> OAuthState | None:
        with store_errors(self._db, "get oauth state by id"):
            return self._db.get(OAuthState, state_id)

    def find_by_token(self, token: str) -> OAuthState | None:
        with store_errors(self._db, "get oauth state by token"):
            return self._db.query(OAuthState).filter(OAuthState.token == token).first()

    def delete(self, state_id: str) -> None:
        with store_errors(self._db, "delete oauth state"):
            self._db.query(OAuthState).filter(OAuthState.id == state_id).delete()
            self._db.commit()

    def delete_expired(self, now: datetime) -> int:
        with store_errors(self._db, "delete expired oauth states"):
            count = self._db.query(OAuthState).filter(OAuthState.expires_at < now).delete()
            self._db.commit()
        return count


class UserAuthInfoRepository:
    def __init__(self, db: Session) -> None:
        self._db = db

    def find(self, user_id: str, oauth_provider: str) -> UserAuthInfo | None:
        with store_errors(self._db, "get user auth info"):
            return (
                self._db.query(UserAuthInfo)
                .filter(
                    UserAuthInfo.user_id == user_id,
                    UserAuthInfo.oauth_provider == oauth_provider,
                )
                .first()
            )

    def upsert(self, info: UserAuthInfo) -> UserAuthInfo:
        """Insert the link, or refresh token and profile fields of an existing one."""
        with store_errors(self._db, "save user auth info"):
            existing = (
                self._db.query(UserAuthInfo)
                .filter(
                    UserAuthInfo.user_id == info.user_id,
                    UserAuthInfo.oauth_provider == info.oauth_provider,
                )
                .first()
            )
            if existing is None:
                self._db.add(info)
                self._db.commit()
                return info

            # Column defaults only apply on INSERT
            existing.access_token = info.access_token
            existing.username = info.username or ""
            existing.email = info.email or ""
            existing.name = info.name or ""
            existing.avatar_url = info.avatar_url or ""
            existing.updated_at = utcnow()
            self._db.commit()
            return existing
