"""Session model for authenticated browser and API clients."""

from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dashboard.database import Base
from dashboard.utils import as_utc, new_id, utcnow

if TYPE_CHECKING:
    from dashboard.models.user import User

SESSION_TTL = timedelta(days=15)


class Session(Base):
    """A server-side proof that a user is authenticated until ``expires_at``.

    ``id``, ``token`` and ``csrf_token`` are generated independently of each
    other. ``token`` is the bearer secret handed to the client.
    """

    __tablename__ = "sessions"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=new_id)
    token: Mapped[str] = mapped_column(String(26), unique=True, index=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    csrf_token: Mapped[str] = mapped_column(String(26), default=new_id)
    is_api_key_session: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)

    # Relationships
    user: Mapped["User"] = relationship(back_populates="sessions")

    @classmethod
    def new(cls, user_id: str, api_key_session: bool = False) -> "Session":
        """Build an unsaved session with fresh identifiers and a fixed expiry."""
        now = utcnow()
        return cls(
            id=new_id(),
            token=new_id(),
            csrf_token=new_id(),
            user_id=user_id,
            is_api_key_session=api_key_session,
            created_at=now,
            expires_at=now + SESSION_TTL,
        )

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or utcnow()) > as_utc(self.expires_at)

    def __repr__(self) -> str:
        return f"<Session(id={self.id}, user_id='{self.user_id}')>"
