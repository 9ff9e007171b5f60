"""Shared plumbing for database-backed services."""

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from volunteerhub.exceptions import PersistenceError

logger = structlog.get_logger()


class DBService:
    """Base for services that own an ``AsyncSession``."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _commit(self, operation: str) -> None:
        """Commit, converting datastore failures into PersistenceError."""
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("commit_failed", operation=operation, error=str(e))
            raise PersistenceError(operation, str(e)) from e
