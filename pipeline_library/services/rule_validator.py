"""
Rule-definition validation.

The validator annotates the document in place: every rule gets its ``valid``
flag and the document gets the full list of findings. Invalid rules are data,
not errors.
"""

from collections import Counter

from pipeline_library.models import (
    DataRuleDefinition,
    MetricsRuleDefinition,
    RuleDefinitions,
    RuleIssue,
    ThresholdType,
)

_OPENING = {"(": ")", "[": "]", "{": "}"}
_CLOSING = set(_OPENING.values())


def is_valid_condition(condition: str) -> bool:
    """Check that a condition is a ``${...}`` expression with balanced brackets and quotes."""
    condition = condition.strip()
    if not (condition.startswith("${") and condition.endswith("}")) or len(condition) <= 3:
        return False

    stack: list[str] = []
    quote: str | None = None
    for char in condition:
        if quote is not None:
            if char == quote:
                quote = None
        elif char in ("'", '"'):
            quote = char
        elif char in _OPENING:
            stack.append(_OPENING[char])
        elif char in _CLOSING:
            if not stack or stack.pop() != char:
                return False
    return quote is None and not stack


class RuleDefinitionValidator:
    """Validator for metric and data rules of a pipeline."""

    def validate_rule_definitions(self, rule_definitions: RuleDefinitions) -> bool:
        """Validate all rules and annotate the document with the findings.

        Args:
            rule_definitions: Document to validate; modified in place

        Returns:
            True if no rule has issues
        """
        ids = Counter(
            rule.id
            for rule in [*rule_definitions.metrics_rules, *rule_definitions.data_rules]
            if rule.id
        )
        duplicates = {rule_id for rule_id, count in ids.items() if count > 1}
        has_email_ids = bool(rule_definitions.email_ids)

        issues: list[RuleIssue] = []
        for metrics_rule in rule_definitions.metrics_rules:
            rule_issues = self._validate_metrics_rule(metrics_rule)
            rule_issues += self._validate_common(metrics_rule, duplicates, has_email_ids)
            metrics_rule.valid = not rule_issues
            issues.extend(rule_issues)

        for data_rule in rule_definitions.data_rules:
            rule_issues = self._validate_data_rule(data_rule)
            rule_issues += self._validate_common(data_rule, duplicates, has_email_ids)
            data_rule.valid = not rule_issues
            issues.extend(rule_issues)

        rule_definitions.rule_issues = issues
        return not issues

    @staticmethod
    def _missing(rule_id: str, property: str) -> RuleIssue:
        return RuleIssue(
            rule_id=rule_id,
            property=property,
            code="VALIDATION_0040",
            message=f"The '{property}' property must have a value",
        )

    def _validate_common(
        self,
        rule: MetricsRuleDefinition | DataRuleDefinition,
        duplicates: set[str],
        has_email_ids: bool,
    ) -> list[RuleIssue]:
        issues: list[RuleIssue] = []
        if not rule.id:
            issues.append(self._missing(rule.id, "id"))
        elif rule.id in duplicates:
            issues.append(
                RuleIssue(
                    rule_id=rule.id,
                    property="id",
                    code="VALIDATION_0041",
                    message=f"Rule id '{rule.id}' is used by more than one rule",
                )
            )

        if not rule.condition.strip():
            issues.append(self._missing(rule.id, "condition"))
        elif not is_valid_condition(rule.condition):
            issues.append(
                RuleIssue(
                    rule_id=rule.id,
                    property="condition",
                    code="VALIDATION_0042",
                    message=f"Condition '{rule.condition}' is not a valid expression",
                )
            )

        if rule.send_email and not has_email_ids:
            issues.append(
                RuleIssue(
                    rule_id=rule.id,
                    property="sendEmail",
                    code="VALIDATION_0047",
                    message="The rule sends email alerts but no email ids are configured",
                )
            )
        return issues

    def _validate_metrics_rule(self, rule: MetricsRuleDefinition) -> list[RuleIssue]:
        issues: list[RuleIssue] = []
        if not rule.alert_text.strip():
            issues.append(self._missing(rule.id, "alertText"))

        if not rule.metric_id.strip():
            issues.append(self._missing(rule.id, "metricId"))
        elif not rule.metric_id.endswith(rule.metric_type.metric_id_suffix):
            issues.append(
                RuleIssue(
                    rule_id=rule.id,
                    property="metricId",
                    code="VALIDATION_0044",
                    message=f"Metric '{rule.metric_id}' is not a {rule.metric_type.value} metric",
                )
            )

        if rule.metric_element.metric_type is not rule.metric_type:
            issues.append(
                RuleIssue(
                    rule_id=rule.id,
                    property="metricElement",
                    code="VALIDATION_0043",
                    message=f"Metric element '{rule.metric_element.value}' does not apply "
                    f"to metric type '{rule.metric_type.value}'",
                )
            )
        return issues

    def _validate_data_rule(self, rule: DataRuleDefinition) -> list[RuleIssue]:
        issues: list[RuleIssue] = []
        if not rule.label.strip():
            issues.append(self._missing(rule.id, "label"))
        if not rule.lane.strip():
            issues.append(self._missing(rule.id, "lane"))
        if rule.alert_enabled and not (rule.alert_text or "").strip():
            issues.append(self._missing(rule.id, "alertText"))

        if not 0 <= rule.sampling_percentage <= 100:
            issues.append(
                RuleIssue(
                    rule_id=rule.id,
                    property="samplingPercentage",
                    code="VALIDATION_0045",
                    message="The sampling percentage must be between 0 and 100",
                )
            )

        too_high = rule.threshold_type is ThresholdType.PERCENTAGE and rule.threshold_value > 100
        if rule.threshold_value < 0 or too_high:
            issues.append(
                RuleIssue(
                    rule_id=rule.id,
                    property="thresholdValue",
                    code="VALIDATION_0046",
                    message=f"Threshold value {rule.threshold_value} is out of range "
                    f"for a {rule.threshold_type.value} threshold",
                )
            )
        return issues
