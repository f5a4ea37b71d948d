"""
Pipeline documents.

A pipeline configuration is an ordered list of stage instances wired together by
lanes: every stage consumes lanes produced by stages that come before it.
"""

from datetime import datetime
from typing import Any

from pydantic import Field

from .base import FrozenDocumentModel

PIPELINE_SCHEMA_VERSION = 1

DELIVERY_GUARANTEE_CONFIG = "deliveryGuarantee"
CONSTANTS_CONFIG = "constants"


class ConfigValue(FrozenDocumentModel):
    """A single ``name = value`` configuration entry."""

    name: str
    value: Any = None


class StageConfiguration(FrozenDocumentModel):
    """One stage instance inside a pipeline.

    Args:
        instance_name: Unique name of the instance within the pipeline.
        library: Stage library the definition comes from.
        stage_name: Name of the stage definition.
        stage_version: Version of the stage definition.
        configuration: Configuration values for the stage.
        ui_info: Free-form data owned by the UI (positions, labels).
        input_lanes: Lanes consumed by the stage.
        output_lanes: Lanes produced by the stage.
    """

    instance_name: str
    library: str
    stage_name: str
    stage_version: str
    configuration: list[ConfigValue] = Field(default_factory=list)
    ui_info: dict[str, Any] = Field(default_factory=dict)
    input_lanes: list[str] = Field(default_factory=list)
    output_lanes: list[str] = Field(default_factory=list)

    def get_config(self, name: str) -> ConfigValue | None:
        for config in self.configuration:
            if config.name == name:
                return config
        return None


class PipelineInfo(FrozenDocumentModel):
    """Summary record of a pipeline kept by the store."""

    name: str
    description: str = ""
    creator: str
    last_modifier: str
    created: datetime
    last_modified: datetime
    last_rev: str
    uuid: str


class PipelineRevInfo(PipelineInfo):
    """Summary of one historical revision of a pipeline."""

    tag: str | None = None
    tag_description: str | None = None


class PipelineConfiguration(FrozenDocumentModel):
    """Full pipeline document.

    The validation verdict is intentionally not part of this model: it is computed
    on every read or write and joined with the configuration by the envelope layer.
    """

    schema_version: int = PIPELINE_SCHEMA_VERSION
    uuid: str | None = None
    description: str = ""
    configuration: list[ConfigValue] = Field(default_factory=list)
    ui_info: dict[str, Any] = Field(default_factory=dict)
    stages: list[StageConfiguration] = Field(default_factory=list)
    error_stage: StageConfiguration | None = None
    memory_limit_mb: int | None = None
    info: PipelineInfo | None = None

    def get_config(self, name: str) -> ConfigValue | None:
        for config in self.configuration:
            if config.name == name:
                return config
        return None


def default_pipeline_configuration() -> list[ConfigValue]:
    """Pipeline-level parameters given to newly created pipelines."""
    return [
        ConfigValue(name=DELIVERY_GUARANTEE_CONFIG, value="AT_LEAST_ONCE"),
        ConfigValue(name=CONSTANTS_CONFIG, value=[]),
    ]
