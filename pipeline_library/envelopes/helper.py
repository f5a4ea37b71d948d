"""
Conversions between domain documents and wire envelopes.

``wrap_*`` functions build envelopes for responses and join in the
server-computed parts (validation verdict, rule issues). ``unwrap_*`` functions
turn request envelopes into domain documents and drop those parts again, so
that nothing computed by the server is ever persisted from client input.
"""

from typing import Any

from pipeline_library.models import (
    ConfigValue,
    DataRuleDefinition,
    MetricsRuleDefinition,
    PipelineConfiguration,
    PipelineInfo,
    PipelineRevInfo,
    RuleDefinitions,
    StageConfiguration,
    ValidationVerdict,
)

from .models import (
    ConfigValueJson,
    DataRuleDefinitionJson,
    IssueJson,
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


def wrap_pipeline_info(info: PipelineInfo) -> PipelineInfoJson:
    if isinstance(info, PipelineRevInfo):
        return PipelineRevInfoJson.model_validate(info.model_dump())
    return PipelineInfoJson.model_validate(info.model_dump())


def wrap_pipeline_infos(infos: list[PipelineInfo]) -> list[PipelineInfoJson]:
    return [wrap_pipeline_info(info) for info in infos]


def wrap_pipeline_rev_infos(infos: list[PipelineRevInfo]) -> list[PipelineRevInfoJson]:
    return [PipelineRevInfoJson.model_validate(info.model_dump()) for info in infos]


def wrap_validation(verdict: ValidationVerdict) -> ValidationJson:
    return ValidationJson(
        issues=[
            IssueJson.model_validate(issue.model_dump(mode="json")) for issue in verdict.issues
        ],
        issue_count=verdict.issue_count,
        valid=verdict.valid,
        can_preview=verdict.can_preview,
    )


def _wrap_stage(stage: StageConfiguration) -> StageConfigurationJson:
    return StageConfigurationJson.model_validate(stage.model_dump())


def _unwrap_stage(stage: StageConfigurationJson) -> StageConfiguration:
    return StageConfiguration.model_validate(stage.model_dump())


def wrap_pipeline_configuration(
    config: PipelineConfiguration, verdict: ValidationVerdict | None = None
) -> PipelineConfigurationJson:
    """Build the pipeline envelope, attaching the verdict when one is given."""
    return PipelineConfigurationJson(
        schema_version=config.schema_version,
        uuid=config.uuid,
        description=config.description,
        configuration=[
            ConfigValueJson.model_validate(value.model_dump()) for value in config.configuration
        ],
        ui_info=config.ui_info,
        stages=[_wrap_stage(stage) for stage in config.stages],
        error_stage=_wrap_stage(config.error_stage) if config.error_stage else None,
        memory_limit=config.memory_limit_mb,
        info=wrap_pipeline_info(config.info) if config.info else None,
        validation=wrap_validation(verdict) if verdict is not None else None,
    )


def unwrap_pipeline_configuration(envelope: PipelineConfigurationJson) -> PipelineConfiguration:
    """Convert a client envelope to a domain document.

    ``info`` and ``validation`` are server-owned and are dropped.
    """
    return PipelineConfiguration(
        schema_version=envelope.schema_version,
        uuid=envelope.uuid,
        description=envelope.description,
        configuration=[ConfigValue(name=c.name, value=c.value) for c in envelope.configuration],
        ui_info=envelope.ui_info,
        stages=[_unwrap_stage(stage) for stage in envelope.stages],
        error_stage=_unwrap_stage(envelope.error_stage) if envelope.error_stage else None,
        memory_limit_mb=envelope.memory_limit,
    )


def wrap_rule_definitions(rules: RuleDefinitions | None) -> RuleDefinitionsJson | None:
    if rules is None:
        return None
    return RuleDefinitionsJson(
        metrics_rules=[
            MetricsRuleDefinitionJson.model_validate(rule.model_dump())
            for rule in rules.metrics_rules
        ],
        data_rules=[
            DataRuleDefinitionJson.model_validate(rule.model_dump()) for rule in rules.data_rules
        ],
        email_ids=list(rules.email_ids),
        uuid=rules.uuid,
        rule_issues=[
            RuleIssueJson.model_validate(issue.model_dump()) for issue in rules.rule_issues
        ],
    )


def unwrap_rule_definitions(envelope: RuleDefinitionsJson) -> RuleDefinitions:
    """Convert a client envelope to a domain document.

    Rule issues and per-rule ``valid`` flags are recomputed by the server.
    """
    return RuleDefinitions(
        metrics_rules=[
            MetricsRuleDefinition.model_validate(rule.model_dump(exclude={"valid"}))
            for rule in envelope.metrics_rules
        ],
        data_rules=[
            DataRuleDefinition.model_validate(rule.model_dump(exclude={"valid"}))
            for rule in envelope.data_rules
        ],
        email_ids=list(envelope.email_ids),
        uuid=envelope.uuid,
    )


def wrap_export(pipeline_config: Any, rules: RuleDefinitions | None) -> PipelineExportJson:
    """Bundle already wrapped pipeline data with its rule definitions for download."""
    return PipelineExportJson(
        pipeline_config=pipeline_config,
        pipeline_rules=wrap_rule_definitions(rules),
    )
