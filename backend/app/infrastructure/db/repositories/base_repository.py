"""
Base Repository for the Admissions Backend

Generic async read access shared by every table repository. Writes live on
the concrete repositories because each table has its own invariants
(natural keys for the hierarchy, counters for applications).
"""

from typing import TypeVar, Generic, List, Optional, Type
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel


ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseRepository(Generic[ModelType]):
    """
    Generic async repository.

    Args:
        model: The SQLModel class to operate on
        session: Async database session
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        self._model = model
        self._session = session

    @property
    def session(self) -> AsyncSession:
        """Get the current session."""
        return self._session

    async def get_by_id(self, id: UUID) -> Optional[ModelType]:
        """
        Get a single record by its primary key.

        Returns:
            Model instance or None if not found
        """
        return await self._session.get(self._model, id)

    async def get_all(
        self,
        skip: int = 0,
        limit: int = 100
    ) -> List[ModelType]:
        """Get records with pagination, oldest first."""
        stmt = (
            select(self._model)
            .order_by(self._model.created_at, self._model.id)
            .offset(skip)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

