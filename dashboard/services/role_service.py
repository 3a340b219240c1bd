"""Binary role membership checks."""

import logging

from dashboard.exceptions import ConflictError, DuplicateError, ValidationError
from dashboard.models import Role
from dashboard.models.role import ADMIN_ROLE_NAME, ROLE_NAMES
from dashboard.services.interfaces import Store

logger = logging.getLogger(__name__)


class RoleService:
    """Role lookups, always read fresh from the store."""

    def __init__(self, store: Store) -> None:
        self._store = store

    def has_role(self, user_id: str, role_name: str) -> bool:
        """Return whether the user holds the role. Missing relation means False."""
        return self._store.has_role(user_id, role_name)

    def is_admin(self, user_id: str) -> bool:
        return self.has_role(user_id, ADMIN_ROLE_NAME)

    def create_role(self, name: str) -> Role:
        try:
            return self._store.create_role(Role(name=name))
        except DuplicateError as e:
            raise ConflictError(str(e), user_message="role name exists") from e

    def initialize_roles(self) -> None:
        """Seed the well-known roles. Safe to run on every start."""
        for name in ROLE_NAMES:
            if self._store.get_role_by_name(name) is None:
                self.create_role(name)
                logger.info(f"Created role: {name}")

    def add_user_role(self, user_id: str, role_name: str) -> None:
        role = self._get_role(role_name)
        if self.has_role(user_id, role_name):
            return
        self._store.add_user_role(user_id, role.id)
        logger.info(f"Role {role_name} added to user {user_id}")

    def remove_user_role(self, user_id: str, role_name: str) -> None:
        role = self._get_role(role_name)
        self._store.remove_user_role(user_id, role.id)
        logger.info(f"Role {role_name} removed from user {user_id}")

    def _get_role(self, role_name: str) -> Role:
        role = self._store.get_role_by_name(role_name)
        if role is None:
            raise ValidationError(f"unknown role {role_name}", user_message="unknown role")
        return role
