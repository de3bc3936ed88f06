"""Unit of Work for multi-row writes.

Batch writes (strict batch create, upsert, batch delete) must land
together or not at all. `atomic()` commits on success, rolls back on any
exception and turns storage errors into the application taxonomy:
unique-constraint violations become ConflictError, anything else the
driver raises becomes InternalError.
"""

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from transdesk.core.exceptions import (
    ConflictError,
    InternalError,
    is_duplicate_key_error,
)
from transdesk.core.logging import get_logger

logger = get_logger(__name__)


class UnitOfWork:
    """Manages a database transaction on an existing session.

    Attributes:
        session: The underlying SQLModel session
    """

    def __init__(self, session: Session):
        self._session = session
        self._committed = False

    @property
    def session(self) -> Session:
        return self._session

    def commit(self) -> None:
        """Commit the transaction. Subsequent calls are no-ops."""
        if not self._committed:
            self._session.commit()
            self._committed = True
            logger.debug("uow_committed")

    def rollback(self) -> None:
        """Rollback the transaction. Safe to call after commit."""
        if not self._committed:
            self._session.rollback()
            logger.debug("uow_rolled_back")

    def flush(self) -> None:
        """Flush pending changes, e.g. to obtain generated IDs before commit."""
        self._session.flush()


@contextmanager
def atomic(session: Session) -> Generator[UnitOfWork, None, None]:
    """Run the block in one transaction on `session`.

    Usage:
        with atomic(session) as uow:
            uow.session.add_all(rows)
            uow.flush()  # Get row ids
            # Commits automatically on success

    Raises:
        ConflictError: the storage engine reported a duplicate key
        InternalError: any other storage failure (timeouts, lost connections)
    """
    uow = UnitOfWork(session)

    try:
        yield uow
        uow.commit()
    except IntegrityError as e:
        uow.rollback()
        if is_duplicate_key_error(e):
            logger.info("uow_duplicate_key")
            raise ConflictError("Translation") from e
        logger.exception("uow_integrity_error")
        raise InternalError("Storage constraint violated") from e
    except SQLAlchemyError as e:
        uow.rollback()
        logger.exception("uow_storage_error", error_type=type(e).__name__)
        raise InternalError("Storage operation failed") from e
    except Exception:
        uow.rollback()
        raise
