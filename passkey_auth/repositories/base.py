"""
Base Repository

Provides common database operations for the SQL repositories.
Uses SQLAlchemy async session for all operations.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from passkey_auth.models.orm.base import Base
from passkey_auth.repositories.store import DuplicateRecordError

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """
    Base repository with create and primary-key lookup.
    """

    model: type[ModelT]

    def __init__(self, session: AsyncSession):
        """
        Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def get_by_id(self, id: Any) -> ModelT | None:
        """
        Get entity by primary key.

        Args:
            id: Primary key value

        Returns:
            Entity or None if not found
        """
        result = await self.session.execute(
            select(self.model).where(self.model.id == id)  # type: ignore[attr-defined]
        )
        return result.scalar_one_or_none()

    async def create(self, entity: ModelT) -> ModelT:
        """
        Create a new entity inside a savepoint.

        A unique constraint violation rolls back only the savepoint, leaving
        the surrounding transaction usable.

        Args:
            entity: Entity to create

        Returns:
            Created entity with server defaults loaded

        Raises:
            DuplicateRecordError: If a unique key is already taken
        """
        try:
            async with self.session.begin_nested():
                self.session.add(entity)
                await self.session.flush()
        except IntegrityError as e:
            raise DuplicateRecordError(str(e.orig) if e.orig else str(e)) from e
        await self.session.refresh(entity)
        return entity
