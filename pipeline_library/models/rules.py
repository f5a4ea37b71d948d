"""
Rule-definition documents.

Metric rules raise alerts when a pipeline metric crosses a threshold; data rules
sample records flowing through a lane. Condition strings are stored verbatim and
evaluated by the runtime, never by this service.
"""

import enum

from pydantic import Field

from .base import DocumentModel


class MetricType(str, enum.Enum):
    """Kind of metric a rule watches."""

    METER = "METER"
    GAUGE = "GAUGE"
    COUNTER = "COUNTER"
    HISTOGRAM = "HISTOGRAM"
    TIMER = "TIMER"

    @property
    def metric_id_suffix(self) -> str:
        return f".{self.value.lower()}"


class MetricElement(str, enum.Enum):
    """Element of a metric a rule condition is evaluated against."""

    # Counter
    COUNTER_COUNT = "COUNTER_COUNT"

    # Histogram
    HISTOGRAM_COUNT = "HISTOGRAM_COUNT"
    HISTOGRAM_MAX = "HISTOGRAM_MAX"
    HISTOGRAM_MIN = "HISTOGRAM_MIN"
    HISTOGRAM_MEAN = "HISTOGRAM_MEAN"
    HISTOGRAM_MEDIAN = "HISTOGRAM_MEDIAN"
    HISTOGRAM_P50 = "HISTOGRAM_P50"
    HISTOGRAM_P75 = "HISTOGRAM_P75"
    HISTOGRAM_P95 = "HISTOGRAM_P95"
    HISTOGRAM_P98 = "HISTOGRAM_P98"
    HISTOGRAM_P99 = "HISTOGRAM_P99"
    HISTOGRAM_P999 = "HISTOGRAM_P999"
    HISTOGRAM_STD_DEV = "HISTOGRAM_STD_DEV"

    # Meter
    METER_COUNT = "METER_COUNT"
    METER_M1_RATE = "METER_M1_RATE"
    METER_M5_RATE = "METER_M5_RATE"
    METER_M15_RATE = "METER_M15_RATE"
    METER_M30_RATE = "METER_M30_RATE"
    METER_H1_RATE = "METER_H1_RATE"
    METER_H6_RATE = "METER_H6_RATE"
    METER_H12_RATE = "METER_H12_RATE"
    METER_H24_RATE = "METER_H24_RATE"
    METER_MEAN_RATE = "METER_MEAN_RATE"

    # Timer
    TIMER_COUNT = "TIMER_COUNT"
    TIMER_MAX = "TIMER_MAX"
    TIMER_MIN = "TIMER_MIN"
    TIMER_MEAN = "TIMER_MEAN"
    TIMER_P50 = "TIMER_P50"
    TIMER_P75 = "TIMER_P75"
    TIMER_P95 = "TIMER_P95"
    TIMER_P98 = "TIMER_P98"
    TIMER_P99 = "TIMER_P99"
    TIMER_P999 = "TIMER_P999"
    TIMER_STD_DEV = "TIMER_STD_DEV"
    TIMER_M1_RATE = "TIMER_M1_RATE"
    TIMER_M5_RATE = "TIMER_M5_RATE"
    TIMER_M15_RATE = "TIMER_M15_RATE"
    TIMER_MEAN_RATE = "TIMER_MEAN_RATE"

    # Gauge
    CURRENT_BATCH_AGE = "CURRENT_BATCH_AGE"
    TIME_IN_CURRENT_STAGE = "TIME_IN_CURRENT_STAGE"
    TIME_OF_LAST_RECEIVED_RECORD = "TIME_OF_LAST_RECEIVED_RECORD"

    @property
    def metric_type(self) -> MetricType:
        return _ELEMENT_TYPES[self]


_GAUGE_ELEMENTS = {
    MetricElement.CURRENT_BATCH_AGE,
    MetricElement.TIME_IN_CURRENT_STAGE,
    MetricElement.TIME_OF_LAST_RECEIVED_RECORD,
}


def _element_type(element: MetricElement) -> MetricType:
    if element in _GAUGE_ELEMENTS:
        return MetricType.GAUGE
    return MetricType(element.value.split("_", 1)[0])


_ELEMENT_TYPES = {element: _element_type(element) for element in MetricElement}


class ThresholdType(str, enum.Enum):
    """How a data rule threshold is interpreted."""

    COUNT = "COUNT"
    PERCENTAGE = "PERCENTAGE"


class MetricsRuleDefinition(DocumentModel):
    """Alert rule over a pipeline metric."""

    id: str
    alert_text: str
    metric_id: str
    metric_type: MetricType
    metric_element: MetricElement
    condition: str
    send_email: bool = False
    enabled: bool = False
    valid: bool = True


class DataRuleDefinition(DocumentModel):
    """Data-quality rule sampling the records of one lane."""

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


class RuleIssue(DocumentModel):
    """Validation finding for a single rule property."""

    rule_id: str
    property: str | None = None
    code: str
    message: str


class RuleDefinitions(DocumentModel):
    """Companion document holding every rule of a pipeline.

    Args:
        metrics_rules: Metric alert rules.
        data_rules: Data-quality rules.
        email_ids: Alert destinations.
        uuid: Optimistic concurrency token assigned by the store; None before the first write.
        rule_issues: Findings of the last validation; never persisted.
    """

    metrics_rules: list[MetricsRuleDefinition] = Field(default_factory=list)
    data_rules: list[DataRuleDefinition] = Field(default_factory=list)
    email_ids: list[str] = Field(default_factory=list)
    uuid: str | None = None
    rule_issues: list[RuleIssue] = Field(default_factory=list)
