"""
Service layer for the pipeline library.

Combines the pipeline store, the validators and the seed rule table. Every
pipeline handed back to callers carries a verdict computed against the stage
library as it is now; verdicts are never passed to the store.
"""

import enum
from dataclasses import dataclass

from pipeline_library.exceptions import BadRequestError, PipelineLibraryError
from pipeline_library.models import (
    HEAD_REV,
    PipelineConfiguration,
    PipelineInfo,
    PipelineRevInfo,
    RuleDefinitions,
    ValidationVerdict,
)
from pipeline_library.services.pipeline_validator import validate_pipeline
from pipeline_library.services.rule_validator import RuleDefinitionValidator
from pipeline_library.services.seed_rules import build_seed_rule_definitions
from pipeline_library.services.stage_library import StageLibrary
from pipeline_library.store import PipelineStore
from pipeline_library.utils.logger import logger


class PipelineDetail(str, enum.Enum):
    """What ``GET /{name}`` returns."""

    PIPELINE = "pipeline"
    INFO = "info"
    HISTORY = "history"

    @classmethod
    def parse(cls, value: str) -> "PipelineDetail":
        try:
            return cls(value)
        except ValueError:
            raise BadRequestError(f"Invalid value for parameter 'get': {value}") from None


@dataclass(frozen=True)
class ValidatedPipeline:
    """A pipeline configuration together with its fresh verdict."""

    config: PipelineConfiguration
    verdict: ValidationVerdict


class PipelineLibraryService:
    """Service for pipeline and rule-definition business logic."""

    def __init__(self, store: PipelineStore, stage_library: StageLibrary):
        """Initialize the service.

        Args:
            store: Pipeline store
            stage_library: Stage library used by the pipeline validator
        """
        self.store = store
        self.stage_library = stage_library
        self.rule_validator = RuleDefinitionValidator()

    def _validated(self, name: str, config: PipelineConfiguration) -> ValidatedPipeline:
        return ValidatedPipeline(config, validate_pipeline(self.stage_library, name, config))

    async def list_pipelines(self) -> list[PipelineInfo]:
        return await self.store.list_pipelines()

    async def get_pipeline(self, name: str, rev: str = HEAD_REV) -> ValidatedPipeline:
        """Load a pipeline revision and validate it."""
        return self._validated(name, await self.store.load(name, rev))

    async def get_info(self, name: str) -> PipelineInfo:
        return await self.store.get_info(name)

    async def get_history(self, name: str) -> list[PipelineRevInfo]:
        return await self.store.get_history(name)

    async def create_pipeline(self, name: str, description: str, user: str) -> ValidatedPipeline:
        """Create a pipeline and install the seed metric rules.

        If the rules cannot be stored the pipeline is removed again, so that a
        pipeline never exists without its rule definitions.

        Args:
            name: Pipeline name
            description: Pipeline description
            user: Creator

        Returns:
            The new pipeline with its verdict

        Raises:
            PipelineAlreadyExistsError: If the name is taken
        """
        config = await self.store.create(name, description, user)
        try:
            await self.store.store_rules(name, HEAD_REV, build_seed_rule_definitions())
        except Exception:
            logger.warning(f"Seeding rules of pipeline '{name}' failed, removing the pipeline")
            try:
                await self.store.delete(name)
            except PipelineLibraryError as cleanup_error:
                logger.error(f"Could not remove pipeline '{name}': {cleanup_error}")
            raise

        logger.info(f"Pipeline '{name}' created by {user}")
        return self._validated(name, config)

    async def delete_pipeline(self, name: str, user: str) -> None:
        """Delete a pipeline and every rule-definitions document it owns."""
        await self.store.delete(name)
        await self.store.delete_rules(name)
        logger.info(f"Pipeline '{name}' deleted by {user}")

    async def save_pipeline(
        self,
        name: str,
        user: str,
        tag: str,
        tag_description: str | None,
        config: PipelineConfiguration,
    ) -> ValidatedPipeline:
        """Validate and persist a new revision of a pipeline.

        Issues found by validation do not prevent saving; they are reported in
        the returned verdict.
        """
        verdict = validate_pipeline(self.stage_library, name, config)
        saved = await self.store.save(name, user, tag, tag_description, config)
        revision = saved.info.last_rev if saved.info else "?"
        logger.info(
            f"Pipeline '{name}' saved by {user} as revision {revision} "
            f"({len(verdict.issues)} validation issues)"
        )
        return ValidatedPipeline(saved, verdict)

    async def get_rules(self, name: str, rev: str = HEAD_REV) -> RuleDefinitions | None:
        """Load the rule definitions of a pipeline revision and annotate them with issues."""
        rules = await self.store.retrieve_rules(name, rev)
        if rules is not None:
            self.rule_validator.validate_rule_definitions(rules)
        return rules

    async def export_rules(self, name: str, rev: str = HEAD_REV) -> RuleDefinitions | None:
        """Load rule definitions for export, without validating them."""
        return await self.store.retrieve_rules(name, rev)

    async def save_rules(
        self, name: str, rev: str, rules: RuleDefinitions, user: str
    ) -> RuleDefinitions:
        """Validate and persist the rule definitions of a pipeline revision."""
        self.rule_validator.validate_rule_definitions(rules)
        saved = await self.store.store_rules(name, rev, rules)
        logger.info(
            f"Rules of pipeline '{name}' revision {rev} saved by {user} "
            f"({len(saved.rule_issues)} rule issues)"
        )
        return saved
