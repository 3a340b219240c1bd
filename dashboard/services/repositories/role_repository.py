"""Role and membership data access layer."""

import logging

from sqlalchemy import delete, insert, select
from sqlalchemy.orm import Session

from dashboard.models import Role, user_roles

from .base import store_errors

logger = logging.getLogger(__name__)


class RoleRepository:
    """Roles and the user/role many-to-many relation."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def find_by_name(self, name: str) -> Role | None:
        with store_errors(self._db, f"get role by name {name}"):
            return self._db.query(Role).filter(Role.name == name).first()

    def create(self, role: Role) -> Role:
        with store_errors(self._db, "create role", duplicate=("Role", "name", role.name)):
            self._db.add(role)
            self._db.commit()
        return role

    def user_has_role(self, user_id: str, role_name: str) -> bool:
        query = (
            select(user_roles.c.user_id)
            .join(Role, Role.id == user_roles.c.role_id)
            .where(user_roles.c.user_id == user_id, Role.name == role_name)
        )
        with store_errors(self._db, f"get role {role_name} for user {user_id}"):
            return self._db.execute(query).first() is not None

    def add_user_role(self, user_id: str, role_id: str) -> None:
        with store_errors(
            self._db,
            f"add role {role_id} to user {user_id}",
            duplicate=("UserRole", "role_id", role_id),
        ):
            self._db.execute(insert(user_roles).values(user_id=user_id, role_id=role_id))
            self._db.commit()

    def remove_user_role(self, user_id: str, role_id: str) -> None:
        with store_errors(self._db, f"remove role {role_id} from user {user_id}"):
            self._db.execute(
                delete(user_roles).where(
                    user_roles.c.user_id == user_id, user_roles.c.role_id == role_id
                )
            )
            self._db.commit()
