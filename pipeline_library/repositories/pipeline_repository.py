"""Repositories for pipeline head records and their revisions."""

from collections.abc import Sequence

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from pipeline_library.exceptions import PipelineNotFoundError
from pipeline_library.models.store import PipelineRecord, PipelineRevisionRecord
from pipeline_library.repositories.base import BaseRepository


class PipelineRepository(BaseRepository[PipelineRecord]):
    """Repository for pipeline head records."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, PipelineRecord)

    async def get(self, id: str) -> PipelineRecord:
        """Get pipeline record by name or raise PipelineNotFoundError.

        Args:
            id: Pipeline name

        Returns:
            Found pipeline record

        Raises:
            PipelineNotFoundError: If the pipeline doesn't exist
        """
        entity = await self.session.get(self.model_class, id)
        if not entity:
            raise PipelineNotFoundError(id)
        return entity

    async def list_ordered(self) -> Sequence[PipelineRecord]:
        """List all pipeline records ordered by name."""
        statement = select(PipelineRecord).order_by(col(PipelineRecord.name))
        result = await self.session.execute(statement)
        return result.scalars().all()


class PipelineRevisionRepository(BaseRepository[PipelineRevisionRecord]):
    """Repository for stored pipeline snapshots."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, PipelineRevisionRecord)

    async def get_revision(self, name: str, rev: str) -> PipelineRevisionRecord | None:
        """Get a single snapshot of a pipeline.

        Args:
            name: Pipeline name
            rev: Concrete revision tag

        Returns:
            The snapshot or None
        """
        return await self.get_by(pipeline_name=name, rev=rev)

    async def history(self, name: str) -> Sequence[PipelineRevisionRecord]:
        """List snapshots of a pipeline, newest first."""
        statement = (
            select(PipelineRevisionRecord)
            .where(PipelineRevisionRecord.pipeline_name == name)
            .order_by(col(PipelineRevisionRecord.id).desc())
        )
        result = await self.session.execute(statement)
        return result.scalars().all()
