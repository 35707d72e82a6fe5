from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession


class BaseRepository:
    """Thin base class that holds the database session.

    Every concrete repository receives an ``AsyncSession`` at
    construction time so that multiple repositories can share the same
    unit-of-work within a single request or ingestion run.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def flush(self) -> None:
        """Flush pending changes without committing."""
        await self._db.flush()

    async def commit(self) -> None:
        """Commit the current transaction."""
        await self._db.commit()

    async def rollback(self) -> None:
        """Roll back the current transaction."""
        await self._db.rollback()

    @asynccontextmanager
    async def savepoint(self) -> AsyncIterator[None]:
        """Run the block inside a SAVEPOINT.

        An exception rolls back only the work done inside the block and
        is re-raised; the enclosing transaction stays usable.
        """
        async with self._db.begin_nested():
            yield
