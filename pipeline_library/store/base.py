"""Contract of the pipeline store consumed by the service layer."""

from abc import ABC, abstractmethod

from pipeline_library.models import (
    HEAD_REV,
    PipelineConfiguration,
    PipelineInfo,
    PipelineRevInfo,
    RuleDefinitions,
)


class PipelineStore(ABC):
    """Persistent, keyed repository of pipelines and their rule definitions.

    Implementations own their serialization; callers may invoke any method
    concurrently. Validation verdicts are never handed to the store.
    """

    @abstractmethod
    async def list_pipelines(self) -> list[PipelineInfo]:
        """Return the summary of every pipeline."""

    @abstractmethod
    async def get_info(self, name: str) -> PipelineInfo:
        """Return the summary of one pipeline.

        Raises:
            PipelineNotFoundError: If the pipeline doesn't exist
        """

    @abstractmethod
    async def get_history(self, name: str) -> list[PipelineRevInfo]:
        """Return every stored revision of a pipeline, newest first."""

    @abstractmethod
    async def load(self, name: str, rev: str = HEAD_REV) -> PipelineConfiguration:
        """Load a pipeline configuration at a revision.

        Raises:
            PipelineNotFoundError: If the pipeline doesn't exist
            PipelineRevisionNotFoundError: If the revision doesn't exist
        """

    @abstractmethod
    async def create(self, name: str, description: str, user: str) -> PipelineConfiguration:
        """Create an empty pipeline.

        Raises:
            PipelineAlreadyExistsError: If the name is taken
        """

    @abstractmethod
    async def save(
        self,
        name: str,
        user: str,
        tag: str,
        tag_description: str | None,
        config: PipelineConfiguration,
    ) -> PipelineConfiguration:
        """Persist a new revision and return it with refreshed metadata.

        Raises:
            PipelineNotFoundError: If the pipeline doesn't exist
            PipelineConflictError: If ``config.uuid`` is stale
        """

    @abstractmethod
    async def delete(self, name: str) -> None:
        """Remove a pipeline and its history.

        Raises:
            PipelineNotFoundError: If the pipeline doesn't exist
        """

    @abstractmethod
    async def retrieve_rules(self, name: str, rev: str = HEAD_REV) -> RuleDefinitions | None:
        """Return the rule definitions stored for a pipeline revision, if any."""

    @abstractmethod
    async def store_rules(self, name: str, rev: str, rules: RuleDefinitions) -> RuleDefinitions:
        """Persist rule definitions and return them with a fresh uuid.

        Raises:
            PipelineNotFoundError: If the pipeline doesn't exist
            RuleDefinitionsConflictError: If ``rules.uuid`` is stale
        """

    @abstractmethod
    async def delete_rules(self, name: str) -> None:
        """Remove every rule-definitions document of a pipeline."""
