"""One-time token lifecycle for email verification and password reset."""

import logging
from datetime import timedelta

from dashboard.exceptions import DuplicateError, InvalidTokenError, StoreError, ValidationError
from dashboard.models import Token
from dashboard.models.token import (
    TOKEN_SIZE,
    TOKEN_SIZE_DIGITS,
    TOKEN_TYPE_RESET_PASSWORD,
    TOKEN_TYPE_VERIFY_EMAIL,
    TOKEN_TYPES,
    email_extra,
)
from dashboard.services.interfaces import Store
from dashboard.utils import new_random_number, new_random_string, utcnow

logger = logging.getLogger(__name__)

_TOKEN_SIZES = {
    TOKEN_TYPE_VERIFY_EMAIL: TOKEN_SIZE_DIGITS,
    TOKEN_TYPE_RESET_PASSWORD: TOKEN_SIZE,
}

# Verification codes share a small value space across all addresses
ISSUE_ATTEMPTS = 3


def new_token(token_type: str, email: str) -> Token:
    """Build an unsaved token whose value is sized for its type.

    Verification codes are typed by hand, so they are short and numeric.
    """
    if token_type == TOKEN_TYPE_VERIFY_EMAIL:
        value = new_random_number(TOKEN_SIZE_DIGITS)
    else:
        value = new_random_string(TOKEN_SIZE)
    return Token(token=value, type=token_type, extra=email_extra(email), created_at=utcnow())


def check_token(token: Token) -> None:
    """Check the type and length contract of a token.

    Raises:
        ValidationError: If the token is not well formed.
    """
    if token.type not in TOKEN_TYPES:
        raise ValidationError(f"unsupported token type: ({token.type})")
    expected = _TOKEN_SIZES[token.type]
    if len(token.token) != expected:
        raise ValidationError(f"token length ({len(token.token)}) was expected to be {expected}")
    if token.created_at is None:
        raise ValidationError("token created_at value is not set")


class TokenService:
    """Issue and consume one-time tokens.

    A given email has at most one live token per type: issuing a new one
    deletes the previous ones first.
    """

    def __init__(self, store: Store) -> None:
        self._store = store

    def issue(self, token_type: str, email: str) -> Token:
        """Create and store a new token for ``email``, superseding older ones."""
        if token_type not in TOKEN_TYPES:
            raise ValidationError(f"unsupported token type: ({token_type})")

        self._store.delete_tokens_by_email(email, token_type)

        for attempt in range(1, ISSUE_ATTEMPTS + 1):
            token = new_token(token_type, email)
            check_token(token)
            try:
                return self._store.create_token(token)
            except DuplicateError:
                if attempt == ISSUE_ATTEMPTS:
                    raise
                logger.warning(f"Generated {token_type} token collided, retrying ({attempt})")

    def resolve(self, value: str) -> Token | None:
        """Look a token up by value. Expiry is the caller's concern."""
        return self._store.get_token(value)

    def consume(self, value: str, expected_type: str) -> str:
        """Use a token once and return the email it was issued for.

        Absent, wrong-type and expired tokens fail the same way so the
        caller cannot tell them apart.

        Raises:
            InvalidTokenError: If the token cannot be used.
            CorruptTokenError: If the stored payload is unreadable.
            StoreError: If the lookup fails.
        """
        token = self.resolve(value) if value else None
        if token is None:
            raise InvalidTokenError("token not found")
        if token.type != expected_type:
            raise InvalidTokenError(f"token type {token.type} used as {expected_type}")
        if not token.is_fresh():
            self._delete_quietly(token)
            raise InvalidTokenError(f"{token.type} token expired")

        email = token.get_extra_email()
        self._delete_quietly(token)
        return email

    def sweep(self, max_age: timedelta) -> int:
        """Delete tokens created before ``now - max_age``. Never raises."""
        logger.debug("Cleaning up token store.")
        try:
            count = self._store.sweep_tokens_older_than(utcnow() - max_age)
        except StoreError:
            logger.exception("Unable to cleanup token store")
            return 0
        if count:
            logger.info(f"Removed {count} stale tokens")
        return count

    def _delete_quietly(self, token: Token) -> None:
        # The sweep removes the row later if this fails; the freshness check
        # still bounds how long it stays usable.
        try:
            self._store.delete_token(token.token)
        except StoreError:
            logger.exception(f"Failed to remove claimed {token.type} token")
