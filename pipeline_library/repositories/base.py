"""Base repository with common CRUD operations."""

from typing import Any, Generic, TypeAlias, TypeVar

from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

ModelT = TypeVar("ModelT", bound=SQLModel)
FilterValueT: TypeAlias = str | int | float


class BaseRepository(Generic[ModelT]):
    """Base repository providing common database operations.

    Mutating helpers stage changes in the session; committing is left to the
    caller so that several changes can be made atomically.
    """

    def __init__(self, session: AsyncSession, model_class: type[ModelT]):
        """Initialize repository with session and model class.

        Args:
            session: Database session
            model_class: SQLModel class this repository operates on
        """
        self.session = session
        self.model_class = model_class

    async def get_optional(self, id: Any) -> ModelT | None:
        """Get entity by ID or return None.

        Args:
            id: Entity ID

        Returns:
            Found entity or None
        """
        return await self.session.get(self.model_class, id)

    async def get_by(self, **filters: FilterValueT) -> ModelT | None:
        """Get single entity by filters.

        Args:
            **filters: Field-value pairs to filter by

        Returns:
            Found entity or None
        """
        statement = select(self.model_class)
        for field, value in filters.items():
            statement = statement.where(getattr(self.model_class, field) == value)

        result = await self.session.execute(statement)
        return result.scalars().first()

    async def exists(self, **filters: FilterValueT) -> bool:
        """Check if entity exists with given filters.

        Args:
            **filters: Field-value pairs to filter by

        Returns:
            True if entity exists
        """
        statement = select(func.count()).select_from(self.model_class)
        for field, value in filters.items():
            statement = statement.where(getattr(self.model_class, field) == value)

        result = await self.session.execute(statement)
        count = result.scalar()
        return count is not None and count > 0

    def add(self, entity: ModelT) -> ModelT:
        """Stage a new or changed entity in the session."""
        self.session.add(entity)
        return entity

    def update(self, entity: ModelT, update_data: dict[str, Any]) -> ModelT:
        """Apply field updates to an entity and stage it.

        Args:
            entity: Entity to update
            update_data: Dictionary with fields to update

        Returns:
            Updated entity
        """
        for field, value in update_data.items():
            setattr(entity, field, value)
        self.session.add(entity)
        return entity

    async def delete(self, entity: ModelT) -> None:
        """Stage deletion of an entity.

        Args:
            entity: Entity to delete
        """
        await self.session.delete(entity)

    async def delete_by(self, **filters: FilterValueT) -> int:
        """Delete all entities matching filters.

        Args:
            **filters: Field-value pairs to filter by

        Returns:
            Number of deleted rows
        """
        statement = delete(self.model_class)
        for field, value in filters.items():
            statement = statement.where(getattr(self.model_class, field) == value)

        result = await self.session.execute(statement)
        return result.rowcount or 0
