"""Identifier generation and clock helpers."""

import base64
import secrets
import string
from datetime import UTC, datetime
from uuid import uuid4

# z-base-32 style alphabet used for every generated identifier
ID_ALPHABET = "ybndrfg8ejkmcpqxot1uwisza345h769"
ID_LENGTH = 26

_B32_TO_ID = str.maketrans("ABCDEFGHIJKLMNOPQRSTUVWXYZ234567", ID_ALPHABET)


def new_id() -> str:
    """Return a 26 character identifier built from a random UUID."""
    encoded = base64.b32encode(uuid4().bytes).decode("ascii")
    return encoded.translate(_B32_TO_ID)[:ID_LENGTH]


def new_random_string(length: int) -> str:
    """Return a random string of ``length`` characters from the id alphabet."""
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(length))


def new_random_number(length: int) -> str:
    """Return a random string of ``length`` decimal digits."""
    return "".join(secrets.choice(string.digits) for _ in range(length))


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops the timezone)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
