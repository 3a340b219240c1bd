"""Link between a dashboard user and an OAuth provider account."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dashboard.database import Base
from dashboard.utils import utcnow

if TYPE_CHECKING:
    from dashboard.models.user import User


class UserAuthInfo(Base):
    """OAuth account connected to a user (one per provider)."""

    __tablename__ = "user_auth_info"
    __table_args__ = (UniqueConstraint("user_id", "oauth_provider"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    oauth_provider: Mapped[str] = mapped_column(String(32))
    access_token: Mapped[str] = mapped_column(String(255))
    username: Mapped[str] = mapped_column(String(255), default="")
    email: Mapped[str] = mapped_column(String(255), default="")
    name: Mapped[str] = mapped_column(String(255), default="")
    avatar_url: Mapped[str] = mapped_column(String(512), default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    user: Mapped["User"] = relationship(back_populates="auth_infos")

    def __repr__(self) -> str:
        return f"<UserAuthInfo(user_id={self.user_id}, provider='{self.oauth_provider}')>"
