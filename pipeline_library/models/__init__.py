"""
Pipeline Library data models.

This package contains the pydantic domain documents exchanged between the store,
the validators and the API, and the SQLModel tables used by the SQL store.
"""

from .base import HEAD_REV, DocumentModel, FrozenDocumentModel
from .pipeline import (
    ConfigValue,
    PipelineConfiguration,
    PipelineInfo,
    PipelineRevInfo,
    StageConfiguration,
    default_pipeline_configuration,
)
from .rules import (
    DataRuleDefinition,
    MetricElement,
    MetricsRuleDefinition,
    MetricType,
    RuleDefinitions,
    RuleIssue,
    ThresholdType,
)
from .stage import ConfigDefinition, ConfigType, StageDefinition, StageType
from .store import PipelineRecord, PipelineRevisionRecord, PipelineRulesRecord
from .validation import Issue, IssueLevel, ValidationVerdict

__all__ = [
    "HEAD_REV",
    "ConfigDefinition",
    "ConfigType",
    "ConfigValue",
    "DataRuleDefinition",
    "DocumentModel",
    "FrozenDocumentModel",
    "Issue",
    "IssueLevel",
    "MetricElement",
    "MetricType",
    "MetricsRuleDefinition",
    "PipelineConfiguration",
    "PipelineInfo",
    "PipelineRecord",
    "PipelineRevInfo",
    "PipelineRevisionRecord",
    "PipelineRulesRecord",
    "RuleDefinitions",
    "RuleIssue",
    "StageConfiguration",
    "StageDefinition",
    "StageType",
    "ThresholdType",
    "ValidationVerdict",
    "default_pipeline_configuration",
]
