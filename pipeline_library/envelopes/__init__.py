"""Wire envelopes and conversions to and from the domain documents."""

from .helper import (
    unwrap_pipeline_configuration,
    unwrap_rule_definitions,
    wrap_export,
    wrap_pipeline_configuration,
    wrap_pipeline_info,
    wrap_pipeline_infos,
    wrap_pipeline_rev_infos,
    wrap_rule_definitions,
    wrap_validation,
)
from .models import (
    ConfigValueJson,
    DataRuleDefinitionJson,
    IssueJson,
    JsonModel,
    MetricsRuleDefinitionJson,
    PipelineConfigurationJson,
    PipelineExportJson,
    PipelineInfoJson,
    PipelineRevInfoJson,
    RuleDefinitionsJson,
    RuleIssueJson,
    StageConfigurationJson,
    ValidationJson,
)

__all__ = [
    "ConfigValueJson",
    "DataRuleDefinitionJson",
    "IssueJson",
    "JsonModel",
    "MetricsRuleDefinitionJson",
    "PipelineConfigurationJson",
    "PipelineExportJson",
    "PipelineInfoJson",
    "PipelineRevInfoJson",
    "RuleDefinitionsJson",
    "RuleIssueJson",
    "StageConfigurationJson",
    "ValidationJson",
    "unwrap_pipeline_configuration",
    "unwrap_rule_definitions",
    "wrap_export",
    "wrap_pipeline_configuration",
    "wrap_pipeline_info",
    "wrap_pipeline_infos",
    "wrap_pipeline_rev_infos",
    "wrap_rule_definitions",
    "wrap_validation",
]
