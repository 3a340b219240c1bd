"""Password hashing and email/password validation rules."""

import logging
import re

import bcrypt
from email_validator import EmailNotValidError, validate_email as parse_email

from dashboard.exceptions import InvalidEmailError, InvalidPasswordError

logger = logging.getLogger(__name__)

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 72  # bcrypt ignores anything past 72 bytes
EMAIL_MAX_LENGTH = 128
BCRYPT_ROUNDS = 10


def validate_password(password: str) -> None:
    """Check length (in UTF-8 bytes) and character classes.

    Raises:
        InvalidPasswordError: If the password does not meet the rules.
    """
    size = len(password.encode("utf-8"))
    if size < PASSWORD_MIN_LENGTH or size > PASSWORD_MAX_LENGTH:
        raise InvalidPasswordError(
            f"password length {size} outside [{PASSWORD_MIN_LENGTH}, {PASSWORD_MAX_LENGTH}]"
        )

    missing = []
    if not re.search(r"[a-z]", password):
        missing.append("lowercase letter")
    if not re.search(r"[A-Z]", password):
        missing.append("uppercase letter")
    if not re.search(r"[0-9]", password):
        missing.append("number")

    if missing:
        raise InvalidPasswordError(f"password must contain at least one: {', '.join(missing)}")


def validate_email(email: str) -> None:
    """Check that ``email`` is a single, bare, already lower-cased address.

    Case folding is the caller's job and happens once, before validation.

    Raises:
        InvalidEmailError: If the address is rejected.
    """
    if not email or len(email) > EMAIL_MAX_LENGTH:
        raise InvalidEmailError(f"email length {len(email)} outside [1, {EMAIL_MAX_LENGTH}]")
    if email.lower() != email:
        raise InvalidEmailError("email must be lower-cased")
    try:
        # Display-name forms such as "Bob <bob@example.com>" are rejected
        # because allow_display_name defaults to False.
        parse_email(
            email,
            check_deliverability=False,
            globally_deliverable=False,
            allow_domain_literal=True,
            test_environment=True,
        )
    except EmailNotValidError as e:
        raise InvalidEmailError(f"email {email!r} did not parse: {e}") from e


def hash_password(password: str) -> str:
    """Hash a password using bcrypt.

    A failure here means input that validation should already have excluded,
    so the error propagates as an internal error.
    """
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(password_hash: str, password: str) -> bool:
    """Verify a password against its hash."""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError as e:
        logger.error(f"Password verification error: {e}")
        return False
