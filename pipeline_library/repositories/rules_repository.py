"""Repository for rule-definition documents."""

from sqlalchemy.ext.asyncio import AsyncSession

from pipeline_library.models.store import PipelineRulesRecord
from pipeline_library.repositories.base import BaseRepository


class PipelineRulesRepository(BaseRepository[PipelineRulesRecord]):
    """Repository for rule documents keyed by pipeline name and revision."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, PipelineRulesRecord)

    async def get_rules(self, name: str, rev: str) -> PipelineRulesRecord | None:
        return await self.get_optional((name, rev))

    async def delete_for_pipeline(self, name: str) -> int:
        """Delete the rules of every revision of a pipeline."""
        return await self.delete_by(pipeline_name=name)
