"""Shared error translation for repositories."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from dashboard.exceptions import DuplicateError, StoreError

logger = logging.getLogger(__name__)


@contextmanager
def store_errors(
    db: Session, action: str, duplicate: tuple[str, str, str] | None = None
) -> Iterator[None]:
    """Translate SQLAlchemy failures into StoreError.

    Args:
        db: The session to roll back on failure.
        action: Short description used in the error message.
        duplicate: ``(entity_type, field, value)`` reported when a unique
            constraint is violated. Without it, integrity errors are plain
            StoreErrors.
    """
    try:
        yield
    except IntegrityError as e:
        db.rollback()
        if duplicate is not None:
            raise DuplicateError(*duplicate) from e
        raise StoreError(f"failed to {action}: {e}") from e
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreError(f"failed to {action}: {e}") from e
