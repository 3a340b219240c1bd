"""Out-of-band user administration.

The admin role can only be granted from here, never through the API.

Usage:
    python -m scripts.manage_users create-user alice@example.com 'S3cretPass' --verified
    python -m scripts.manage_users add-role alice@example.com admin
    python -m scripts.manage_users remove-role alice@example.com admin
"""

import argparse
import logging
import sys

from dashboard.config import get_settings
from dashboard.database import Base, create_db_engine, create_session_factory
from dashboard.exceptions import DashboardError, NotFoundError
from dashboard.models import User
from dashboard.models.role import USER_ROLE_NAME
from dashboard.services.credentials import hash_password, validate_email, validate_password
from dashboard.services.interfaces import Store
from dashboard.services.repositories import SqlStore
from dashboard.services.role_service import RoleService

logger = logging.getLogger(__name__)


def create_user(store: Store, email: str, password: str, verified: bool = False) -> User:
    """
    Create an active user with the ``user`` role.

    Args:
        store: Store to write to
        email: Address, lower-cased before storing
        password: Plaintext password, validated then hashed
        verified: Mark the email as already verified

    Returns:
        The created user
    """
    email = email.lower()
    validate_email(email)
    validate_password(password)

    roles = RoleService(store)
    roles.initialize_roles()

    user = store.create_user(
        User(email=email, password_hash=hash_password(password), email_verified=verified)
    )
    roles.add_user_role(user.id, USER_ROLE_NAME)
    logger.info("Created user: %s (id: %s)", user.email, user.id)
    return user


def _get_user(store: Store, email: str) -> User:
    user = store.get_user_by_email(email.lower())
    if user is None:
        raise NotFoundError(f"no user with email {email}")
    return user


def add_role(store: Store, email: str, role_name: str) -> None:
    user = _get_user(store, email)
    roles = RoleService(store)
    roles.initialize_roles()
    roles.add_user_role(user.id, role_name)


def remove_role(store: Store, email: str, role_name: str) -> None:
    user = _get_user(store, email)
    RoleService(store).remove_user_role(user.id, role_name)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Manage dashboard users and roles")
    commands = parser.add_subparsers(dest="command", required=True)

    create = commands.add_parser("create-user", help="Create a user")
    create.add_argument("email")
    create.add_argument("password")
    create.add_argument("--verified", action="store_true", help="Mark the email as verified")

    for name, help_text in (("add-role", "Grant a role"), ("remove-role", "Revoke a role")):
        command = commands.add_parser(name, help=help_text)
        command.add_argument("email")
        command.add_argument("role", choices=["admin", "user"])

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = get_settings()

    engine = create_db_engine(settings)
    Base.metadata.create_all(bind=engine)
    db = create_session_factory(engine)()
    store = SqlStore(db)

    try:
        if args.command == "create-user":
            create_user(store, args.email, args.password, verified=args.verified)
        elif args.command == "add-role":
            add_role(store, args.email, args.role)
        else:
            remove_role(store, args.email, args.role)
    except DashboardError as e:
        logger.error("%s failed: %s", args.command, e)
        return 1
    finally:
        db.close()

    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    sys.exit(main())
