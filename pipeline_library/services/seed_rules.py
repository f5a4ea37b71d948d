"""Metric rules installed on every newly created pipeline."""

from typing import NamedTuple

from pipeline_library.models import (
    MetricElement,
    MetricsRuleDefinition,
    MetricType,
    RuleDefinitions,
)


class SeedRule(NamedTuple):
    id: str
    alert_text: str
    metric_id: str
    metric_type: MetricType
    metric_element: MetricElement
    condition: str


SEED_METRICS_RULES: tuple[SeedRule, ...] = (
    SeedRule(
        "badRecordsAlertID",
        "High incidence of Bad Records",
        "pipeline.batchErrorRecords.meter",
        MetricType.METER,
        MetricElement.METER_COUNT,
        "${value() > 100}",
    ),
    SeedRule(
        "stageErrorAlertID",
        "High incidence of Error Messages",
        "pipeline.batchErrorMessages.meter",
        MetricType.METER,
        MetricElement.METER_COUNT,
        "${value() > 100}",
    ),
    SeedRule(
        "idleGaugeID",
        "Pipeline is Idle",
        "RuntimeStatsGauge.gauge",
        MetricType.GAUGE,
        MetricElement.TIME_OF_LAST_RECEIVED_RECORD,
        "${time:now() - value() > 120000}",
    ),
    SeedRule(
        "batchTimeAlertID",
        "Batch taking more time to process",
        "RuntimeStatsGauge.gauge",
        MetricType.GAUGE,
        MetricElement.CURRENT_BATCH_AGE,
        "${value() > 200}",
    ),
    SeedRule(
        "memoryLimitAlertID",
        "Memory limit for pipeline exceeded",
        "pipeline.memoryConsumed.counter",
        MetricType.COUNTER,
        MetricElement.COUNTER_COUNT,
        "${value() > (jvm:maxMemoryMB() * 0.65)}",
    ),
)


def build_seed_rule_definitions() -> RuleDefinitions:
    """Build a fresh rule-definitions document holding the seed metric rules.

    Seed rules are disabled and never send email; the document has no data
    rules, no email ids and no uuid.
    """
    return RuleDefinitions(
        metrics_rules=[
            MetricsRuleDefinition(
                id=seed.id,
                alert_text=seed.alert_text,
                metric_id=seed.metric_id,
                metric_type=seed.metric_type,
                metric_element=seed.metric_element,
                condition=seed.condition,
                send_email=False,
                enabled=False,
            )
            for seed in SEED_METRICS_RULES
        ],
        data_rules=[],
        email_ids=[],
        uuid=None,
    )
