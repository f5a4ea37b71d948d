"""Validation verdict attached to pipeline configurations on the way out."""

import enum

from pydantic import Field

from .base import FrozenDocumentModel


class IssueLevel(str, enum.Enum):
    """Where in the pipeline an issue was found."""

    PIPELINE = "PIPELINE"
    STAGE = "STAGE"
    STAGE_CONFIG = "STAGE_CONFIG"


class Issue(FrozenDocumentModel):
    """A single validation finding."""

    code: str
    message: str
    level: IssueLevel = IssueLevel.PIPELINE
    instance_name: str | None = None
    config_name: str | None = None


class ValidationVerdict(FrozenDocumentModel):
    """Outcome of validating a pipeline against the stage library."""

    issues: list[Issue] = Field(default_factory=list)
    valid: bool = True
    can_preview: bool = True

    @property
    def issue_count(self) -> int:
        return len(self.issues)
