"""Helpers shared by the persistence functions."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from polymath.exceptions import DatabaseUnavailableError

logger = logging.getLogger(__name__)


def require_db(db: AsyncSession | None, operation: str) -> AsyncSession:
    """Return the session for a write, or raise if the database is unconfigured."""
    if db is None:
        logger.error("Cannot %s: database not available", operation)
        raise DatabaseUnavailableError()
    return db


def db_unavailable(db: AsyncSession | None, operation: str) -> bool:
    """True (after logging a warning) when a read has to degrade."""
    if db is None:
        logger.warning("Cannot %s: database not available", operation)
        return True
    return False
