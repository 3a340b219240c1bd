"""One-time token model used for email verification and password reset."""

import json
from datetime import datetime, timedelta

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from dashboard.database import Base
from dashboard.exceptions import CorruptTokenError
from dashboard.utils import as_utc, utcnow

TOKEN_TYPE_VERIFY_EMAIL = "verify_email"
TOKEN_TYPE_RESET_PASSWORD = "reset_password"
TOKEN_TYPES = (TOKEN_TYPE_VERIFY_EMAIL, TOKEN_TYPE_RESET_PASSWORD)

TOKEN_SIZE = 64
TOKEN_SIZE_DIGITS = 6
TOKEN_EXPIRY = timedelta(hours=24)


def email_extra(email: str) -> str:
    """Serialize the extra payload that binds a token to an address."""
    return json.dumps({"email": email})


class Token(Base):
    """One-time-use token.

    Expiry is relative to ``created_at`` and enforced at consumption time;
    no absolute expiry is stored.
    """

    __tablename__ = "tokens"

    token: Mapped[str] = mapped_column(String(64), primary_key=True)
    type: Mapped[str] = mapped_column(String(32), index=True)
    extra: Mapped[str] = mapped_column(Text, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, index=True
    )

    def is_fresh(self, now: datetime | None = None) -> bool:
        return as_utc(self.created_at) >= (now or utcnow()) - TOKEN_EXPIRY

    def get_extra_email(self) -> str:
        """Return the email bound to this token.

        Raises:
            CorruptTokenError: If the extra payload is not a JSON object with
                a non-empty ``email``.
        """
        try:
            extra = json.loads(self.extra)
        except (TypeError, ValueError) as e:
            raise CorruptTokenError(f"unable to unmarshal extra field: {e}") from e
        email = extra.get("email") if isinstance(extra, dict) else None
        if not email:
            raise CorruptTokenError("email value is empty")
        return email

    def __repr__(self) -> str:
        return f"<Token(type={self.type}, created_at={self.created_at})>"
