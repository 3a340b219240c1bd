"""One-time token data access layer."""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from dashboard.models import Token
from dashboard.models.token import email_extra

from .base import store_errors

logger = logging.getLogger(__name__)


class TokenRepository:
    """Token rows keyed by their secret value."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def create(self, token: Token) -> Token:
        with store_errors(self._db, "create token", duplicate=("Token", "token", "<redacted>")):
            self._db.add(token)
            self._db.commit()
        return token

    def find(self, value: str) -> Token | None:
        with store_errors(self._db, "get token by token value"):
            return self._db.get(Token, value)

    def find_by_email(self, email: str, token_type: str) -> list[Token]:
        with store_errors(self._db, "get tokens by email"):
            return (
                self._db.query(Token)
                .filter(Token.extra == email_extra(email), Token.type == token_type)
                .all()
            )

    def delete(self, value: str) -> None:
        with store_errors(self._db, "delete token"):
            self._db.query(Token).filter(Token.token == value).delete()
            self._db.commit()

    def delete_by_email(self, email: str, token_type: str) -> int:
        with store_errors(self._db, f"delete tokens for email {email}"):
            count = (
                self._db.query(Token)
                .filter(Token.extra == email_extra(email), Token.type == token_type)
                .delete()
            )
            self._db.commit()
        return count

    def delete_older_than(self, cutoff: datetime) -> int:
        with store_errors(self._db, "cleanup token store"):
            count = self._db.query(Token).filter(Token.created_at < cutoff).delete()
            self._db.commit()
        return count
