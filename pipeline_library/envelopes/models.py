"""
JSON envelopes exchanged with clients.

Field names are camelCase on the wire. These models are only built by the
helpers in :mod:`pipeline_library.envelopes.helper`.
"""

import math
from datetime import datetime
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from pipeline_library.models import MetricElement, MetricType, ThresholdType


def _reject_non_finite(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError("Infinite and NaN numbers are not allowed")
    if isinstance(value, list):
        for item in value:
            _reject_non_finite(item)
    elif isinstance(value, dict):
        for item in value.values():
            _reject_non_finite(item)
    return value


# Free-form JSON value; floats nested anywhere inside must be finite
FiniteJson = Annotated[Any, AfterValidator(_reject_non_finite)]


class JsonModel(BaseModel):
    """Base class of every wire envelope."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, allow_inf_nan=False
    )

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class PipelineInfoJson(JsonModel):
    name: str
    description: str = ""
    creator: str
    last_modifier: str
    created: datetime
    last_modified: datetime
    last_rev: str
    uuid: str


class PipelineRevInfoJson(PipelineInfoJson):
    tag: str | None = None
    tag_description: str | None = None


class ConfigValueJson(JsonModel):
    name: str
    value: FiniteJson = None


class StageConfigurationJson(JsonModel):
    instance_name: str
    library: str
    stage_name: str
    stage_version: str
    configuration: list[ConfigValueJson] = Field(default_factory=list)
    ui_info: dict[str, FiniteJson] = Field(default_factory=dict)
    input_lanes: list[str] = Field(default_factory=list)
    output_lanes: list[str] = Field(default_factory=list)


class IssueJson(JsonModel):
    code: str
    message: str
    level: str
    instance_name: str | None = None
    config_name: str | None = None


class ValidationJson(JsonModel):
    issues: list[IssueJson] = Field(default_factory=list)
    issue_count: int = 0
    valid: bool = True
    can_preview: bool = True


class PipelineConfigurationJson(JsonModel):
    """Pipeline configuration envelope.

    ``info`` and ``validation`` are filled in by the server and ignored when a
    client sends the envelope back.
    """

    schema_version: int = 1
    uuid: str | None = None
    description: str = ""
    configuration: list[ConfigValueJson] = Field(default_factory=list)
    ui_info: dict[str, FiniteJson] = Field(default_factory=dict)
    stages: list[StageConfigurationJson] = Field(default_factory=list)
    error_stage: StageConfigurationJson | None = None
    memory_limit: int | None = None
    info: PipelineInfoJson | PipelineRevInfoJson | None = None
    validation: ValidationJson | None = None


class MetricsRuleDefinitionJson(JsonModel):
    id: str
    alert_text: str
    metric_id: str
    metric_type: MetricType
    metric_element: MetricElement
    condition: str
    send_email: bool = False
    enabled: bool = False
    valid: bool = True


class DataRuleDefinitionJson(JsonModel):
    id: str
    label: str
    lane: str
    sampling_percentage: float = 100.0
    sampling_records_to_retain: int = 10
    condition: str
    alert_enabled: bool = False
    alert_text: str | None = None
    threshold_type: ThresholdType = ThresholdType.COUNT
    threshold_value: float = 0
    min_volume: int = 0
    meter_enabled: bool = False
    send_email: bool = False
    enabled: bool = False
    valid: bool = True


class RuleIssueJson(JsonModel):
    rule_id: str
    property: str | None = None
    code: str
    message: str


class RuleDefinitionsJson(JsonModel):
    """Rule-definitions envelope; ``ruleIssues`` and ``valid`` flags are server-computed."""

    metrics_rules: list[MetricsRuleDefinitionJson] = Field(default_factory=list)
    data_rules: list[DataRuleDefinitionJson] = Field(default_factory=list)
    email_ids: list[str] = Field(default_factory=list)
    uuid: str | None = None
    rule_issues: list[RuleIssueJson] = Field(default_factory=list)


class PipelineExportJson(JsonModel):
    """Export envelope bundling a pipeline with its rule definitions."""

    pipeline_config: Any
    pipeline_rules: RuleDefinitionsJson | None = None
