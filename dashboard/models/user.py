"""User model for authentication."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dashboard.database import Base
from dashboard.utils import new_id, utcnow

if TYPE_CHECKING:
    from dashboard.models.role import Role
    from dashboard.models.session import Session
    from dashboard.models.user_auth_info import UserAuthInfo

USER_STATE_ACTIVE = "active"
USER_STATE_LOCKED = "locked"


class User(Base):
    """User model representing dashboard accounts."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String(128), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    email_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    first_name: Mapped[str] = mapped_column(String(64), default="")
    last_name: Mapped[str] = mapped_column(String(64), default="")
    state: Mapped[str] = mapped_column(String(16), default=USER_STATE_ACTIVE)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    # Relationships
    sessions: Mapped[list["Session"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )
    roles: Mapped[list["Role"]] = relationship(secondary="user_roles", back_populates="users")
    auth_infos: Mapped[list["UserAuthInfo"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )

    # Filled in by the service layer from the role table; never stored
    is_admin = False

    @property
    def is_locked(self) -> bool:
        return self.state == USER_STATE_LOCKED

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
