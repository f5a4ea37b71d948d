"""
Pipeline configuration validation.

Validation is a pure function of the stage library and the pipeline document:
findings are returned as a verdict and never raised.
"""

import re
from typing import Any

from jsonschema import Draft202012Validator

from pipeline_library.models import (
    ConfigDefinition,
    ConfigType,
    ConfigValue,
    Issue,
    IssueLevel,
    PipelineConfiguration,
    StageConfiguration,
    StageDefinition,
    StageType,
    ValidationVerdict,
)
from pipeline_library.models.pipeline import CONSTANTS_CONFIG, DELIVERY_GUARANTEE_CONFIG
from pipeline_library.services.stage_library import StageLibrary

INSTANCE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")

PIPELINE_CONFIG_DEFINITIONS = [
    ConfigDefinition(
        name=DELIVERY_GUARANTEE_CONFIG,
        type=ConfigType.MODEL,
        label="Delivery Guarantee",
        required=True,
        default_value="AT_LEAST_ONCE",
        allowed_values=["AT_LEAST_ONCE", "AT_MOST_ONCE"],
    ),
    ConfigDefinition(
        name=CONSTANTS_CONFIG,
        type=ConfigType.MAP,
        label="Constants",
        default_value=[],
        schema={
            "type": "array",
            "items": {
                "type": "object",
                "required": ["key"],
                "properties": {"key": {"type": "string", "minLength": 1}},
            },
        },
    ),
]

# Issues that leave the pipeline runnable in preview
PREVIEW_TOLERATED_CODES = frozenset({"VALIDATION_0011", "VALIDATION_0060", "VALIDATION_0070"})


def _is_expression(value: Any) -> bool:
    return isinstance(value, str) and value.startswith("${") and value.endswith("}")


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


def _has_type(config_type: ConfigType, value: Any) -> bool:
    match config_type:
        case ConfigType.BOOLEAN:
            return isinstance(value, bool)
        case ConfigType.NUMBER:
            return isinstance(value, int | float) and not isinstance(value, bool)
        case ConfigType.STRING | ConfigType.TEXT:
            return isinstance(value, str)
        case ConfigType.CHARACTER:
            return isinstance(value, str) and len(value) == 1
        case ConfigType.LIST:
            return isinstance(value, list)
        case ConfigType.MAP:
            return isinstance(value, list | dict)
        case ConfigType.MODEL:
            return True


class PipelineConfigurationValidator:
    """Validator for a pipeline configuration against the current stage library.

    Args:
        stage_library: Stage library to resolve stage definitions from
        name: Name of the pipeline being validated
        pipeline: Pipeline configuration to validate

    Examples:
        >>> validator = PipelineConfigurationValidator(library, "orders", pipeline)
        >>> verdict = validator.validate()
        >>> verdict.valid, verdict.can_preview
    """

    def __init__(self, stage_library: StageLibrary, name: str, pipeline: PipelineConfiguration):
        self.stage_library = stage_library
        self.name = name
        self.pipeline = pipeline
        self.issues: list[Issue] = []

    def validate(self) -> ValidationVerdict:
        """Run every check and return the verdict."""
        self.issues = []

        if not self.pipeline.stages:
            self._add("VALIDATION_0001", "The pipeline is empty")
        else:
            self._validate_instance_names()
            definitions = self._resolve_definitions()
            self._validate_stage_order(definitions)
            for stage in self.pipeline.stages:
                definition = definitions.get(stage.instance_name)
                if definition is not None:
                    self._validate_configs(
                        stage.configuration, definition.config_definitions, stage.instance_name
                    )
            self._validate_lanes(definitions)

        self._validate_configs(self.pipeline.configuration, PIPELINE_CONFIG_DEFINITIONS, None)
        self._validate_error_stage()
        self._validate_memory_limit()

        return ValidationVerdict(
            issues=list(self.issues),
            valid=not self.issues,
            can_preview=all(issue.code in PREVIEW_TOLERATED_CODES for issue in self.issues),
        )

    def _add(
        self,
        code: str,
        message: str,
        instance_name: str | None = None,
        config_name: str | None = None,
    ) -> None:
        if config_name is not None and instance_name is not None:
            level = IssueLevel.STAGE_CONFIG
        elif instance_name is not None:
            level = IssueLevel.STAGE
        else:
            level = IssueLevel.PIPELINE
        self.issues.append(
            Issue(
                code=code,
                message=message,
                level=level,
                instance_name=instance_name,
                config_name=config_name,
            )
        )

    def _validate_instance_names(self) -> None:
        seen: set[str] = set()
        for stage in self.pipeline.stages:
            if not INSTANCE_NAME_PATTERN.match(stage.instance_name):
                self._add(
                    "VALIDATION_0005",
                    f"Instance name '{stage.instance_name}' may only contain "
                    "letters, digits and '_'",
                    stage.instance_name,
                )
            if stage.instance_name in seen:
                self._add(
                    "VALIDATION_0002",
                    f"Instance name '{stage.instance_name}' is used by more than one stage",
                    stage.instance_name,
                )
            seen.add(stage.instance_name)

    def _lookup(self, stage: StageConfiguration) -> StageDefinition | None:
        return self.stage_library.get_stage(stage.library, stage.stage_name, stage.stage_version)

    def _resolve_definitions(self) -> dict[str, StageDefinition]:
        definitions: dict[str, StageDefinition] = {}
        for stage in self.pipeline.stages:
            definition = self._lookup(stage)
            if definition is None:
                self._add(
                    "VALIDATION_0006",
                    f"Stage definition '{stage.library}:{stage.stage_name}:{stage.stage_version}' "
                    "is not available in the stage library",
                    stage.instance_name,
                )
            else:
                definitions.setdefault(stage.instance_name, definition)
        return definitions

    def _validate_stage_order(self, definitions: dict[str, StageDefinition]) -> None:
        for index, stage in enumerate(self.pipeline.stages):
            definition = definitions.get(stage.instance_name)
            if definition is None:
                continue
            if index == 0 and definition.type is not StageType.SOURCE:
                self._add(
                    "VALIDATION_0003", "The first stage must be an origin", stage.instance_name
                )
            elif index > 0 and definition.type is StageType.SOURCE:
                self._add(
                    "VALIDATION_0004",
                    f"Only one origin is allowed, '{stage.instance_name}' is an additional origin",
                    stage.instance_name,
                )

    def _validate_configs(
        self,
        values: list[ConfigValue],
        config_definitions: list[ConfigDefinition],
        instance_name: str | None,
    ) -> None:
        by_name = {config.name: config for config in values}
        known = {definition.name for definition in config_definitions}

        for config in values:
            if config.name not in known:
                self._add(
                    "VALIDATION_0008",
                    f"Configuration '{config.name}' is not defined",
                    instance_name,
                    config.name,
                )

        for definition in config_definitions:
            config = by_name.get(definition.name)
            value = config.value if config is not None else None
            if _is_empty(value):
                if definition.required:
                    self._add(
                        "VALIDATION_0007",
                        f"Configuration '{definition.name}' requires a value",
                        instance_name,
                        definition.name,
                    )
                continue
            if _is_expression(value):
                continue
            self._validate_value(definition, value, instance_name)

    def _validate_value(
        self, definition: ConfigDefinition, value: Any, instance_name: str | None
    ) -> None:
        if not _has_type(definition.type, value):
            self._add(
                "VALIDATION_0009",
                f"Configuration '{definition.name}' must be of type {definition.type.value}",
                instance_name,
                definition.name,
            )
            return

        if definition.allowed_values is not None and value not in definition.allowed_values:
            self._add(
                "VALIDATION_0010",
                f"Value '{value}' is not allowed for configuration '{definition.name}'",
                instance_name,
                definition.name,
            )
            return

        if definition.schema_ is not None:
            error = next(Draft202012Validator(definition.schema_).iter_errors(value), None)
            if error is not None:
                self._add(
                    "VALIDATION_0009",
                    f"Configuration '{definition.name}' is invalid: {error.message}",
                    instance_name,
                    definition.name,
                )

    def _validate_lanes(self, definitions: dict[str, StageDefinition]) -> None:
        producers: dict[str, int] = {}
        for index, stage in enumerate(self.pipeline.stages):
            for lane in stage.output_lanes:
                producers.setdefault(lane, index)

        consumed = {lane for stage in self.pipeline.stages for lane in stage.input_lanes}

        for index, stage in enumerate(self.pipeline.stages):
            definition = definitions.get(stage.instance_name)
            stage_type = definition.type if definition is not None else None

            if stage_type is StageType.SOURCE and stage.input_lanes:
                self._add(
                    "VALIDATION_0012", "An origin cannot have input lanes", stage.instance_name
                )
            if stage_type is StageType.TARGET and stage.output_lanes:
                self._add(
                    "VALIDATION_0013",
                    "A destination cannot have output lanes",
                    stage.instance_name,
                )
            if stage_type is not None and stage_type is not StageType.SOURCE:
                if not stage.input_lanes:
                    self._add(
                        "VALIDATION_0016",
                        "The stage is not connected to any upstream stage",
                        stage.instance_name,
                    )

            for lane in stage.input_lanes:
                producer = producers.get(lane)
                if producer is None:
                    self._add(
                        "VALIDATION_0014",
                        f"Input lane '{lane}' is not produced by any stage",
                        stage.instance_name,
                    )
                elif producer >= index:
                    self._add(
                        "VALIDATION_0015",
                        f"Input lane '{lane}' is produced by a downstream stage",
                        stage.instance_name,
                    )

            open_lanes = [lane for lane in stage.output_lanes if lane not in consumed]
            if open_lanes and stage_type is not StageType.TARGET:
                self._add(
                    "VALIDATION_0011",
                    f"Output lanes {', '.join(open_lanes)} are not connected",
                    stage.instance_name,
                )

    def _validate_error_stage(self) -> None:
        error_stage = self.pipeline.error_stage
        if error_stage is None:
            self._add("VALIDATION_0060", "Define the error record handling for the pipeline")
            return

        definition = self._lookup(error_stage)
        if definition is None or not definition.error_stage:
            self._add(
                "VALIDATION_0061",
                f"Stage '{error_stage.library}:{error_stage.stage_name}:"
                f"{error_stage.stage_version}' cannot be used for error records",
                error_stage.instance_name,
            )
            return

        self._validate_configs(
            error_stage.configuration, definition.config_definitions, error_stage.instance_name
        )

    def _validate_memory_limit(self) -> None:
        limit = self.pipeline.memory_limit_mb
        if limit is None or limit <= 0:
            self._add("VALIDATION_0070", "The memory limit must be a positive number of MB")


def validate_pipeline(
    stage_library: StageLibrary, name: str, pipeline: PipelineConfiguration
) -> ValidationVerdict:
    """Validate a pipeline configuration against the stage library."""
    return PipelineConfigurationValidator(stage_library, name, pipeline).validate()
