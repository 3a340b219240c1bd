"""Session creation, lookup, expiry and invalidation."""

import logging
from dataclasses import dataclass

from dashboard.exceptions import StoreError
from dashboard.models import Session
from dashboard.services.interfaces import Store
from dashboard.utils import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ById:
    """Look a record up by its primary id (internal and CLI callers)."""

    value: str


@dataclass(frozen=True)
class ByToken:
    """Look a record up by its bearer secret (clients)."""

    value: str


Identifier = ById | ByToken


class SessionService:
    """Server-side sessions with a fixed 15 day lifetime and no renewal."""

    def __init__(self, store: Store) -> None:
        self._store = store

    def create(self, user_id: str, api_key_session: bool = False) -> Session:
        """Create and store a session.

        The returned session carries the bearer token; treat it as a secret
        to hand back to the client, never log it.
        """
        session = Session.new(user_id, api_key_session=api_key_session)
        return self._store.create_session(session)

    def resolve(self, identifier: Identifier) -> Session | None:
        """Return the live session for ``identifier``.

        An expired session is deleted and reported as absent.

        Raises:
            StoreError: If the lookup itself fails.
        """
        match identifier:
            case ById(value):
                session = self._store.get_session_by_id(value)
            case ByToken(value):
                session = self._store.get_session_by_token(value)
            case _:
                raise TypeError(f"unsupported session identifier: {identifier!r}")

        if session is None:
            return None

        if session.is_expired():
            try:
                self._store.delete_session(session.id)
            except StoreError:
                logger.exception(f"unable to delete expired session {session.id}")
            return None

        return session

    def destroy(self, session_id: str) -> None:
        """Delete a session. Deleting an unknown id is not an error."""
        self._store.delete_session(session_id)

    def destroy_all_for_user(self, user_id: str) -> None:
        """Delete every session of a user, forcing re-authentication everywhere.

        Raises:
            StoreError: Propagated so the caller can report that old
                sessions may still be valid.
        """
        count = self._store.delete_sessions_for_user(user_id)
        logger.info(f"Invalidated {count} sessions for user {user_id}")

    def sweep_expired(self) -> int:
        """Delete sessions past their expiry. Never raises."""
        try:
            return self._store.delete_expired_sessions(utcnow())
        except StoreError:
            logger.exception("Unable to cleanup expired sessions")
            return 0
