"""Anti-CSRF state for the OAuth authorization-code flow."""

from datetime import datetime, timedelta

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from dashboard.database import Base
from dashboard.utils import as_utc, new_id, utcnow

OAUTH_STATE_TTL = timedelta(minutes=10)


class OAuthState(Base):
    """Short-lived nonce passed through the provider's authorize redirect."""

    __tablename__ = "oauth_states"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=new_id)
    token: Mapped[str] = mapped_column(String(26), unique=True, index=True, default=new_id)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)

    @classmethod
    def new(cls) -> "OAuthState":
        now = utcnow()
        return cls(id=new_id(), token=new_id(), created_at=now, expires_at=now + OAUTH_STATE_TTL)

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or utcnow()) > as_utc(self.expires_at)

    def __repr__(self) -> str:
        return f"<OAuthState(id={self.id})>"
