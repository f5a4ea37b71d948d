"""Stage definitions published by the stage library."""

import enum
from typing import Any

from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError
from pydantic import ConfigDict, Field, field_validator

from .base import FrozenDocumentModel


class StageType(str, enum.Enum):
    """Role a stage plays in a pipeline."""

    SOURCE = "SOURCE"
    PROCESSOR = "PROCESSOR"
    TARGET = "TARGET"


class ConfigType(str, enum.Enum):
    """Value type of a configuration entry."""

    BOOLEAN = "BOOLEAN"
    NUMBER = "NUMBER"
    STRING = "STRING"
    TEXT = "TEXT"
    CHARACTER = "CHARACTER"
    LIST = "LIST"
    MAP = "MAP"
    MODEL = "MODEL"


class ConfigDefinition(FrozenDocumentModel):
    """Definition of one configuration entry of a stage.

    Args:
        name: Configuration name.
        type: Expected value type.
        label: Human readable label.
        required: Whether a value must be provided.
        default_value: Value used by the UI for new instances.
        allowed_values: Closed set of accepted values, if any.
        schema_: Optional JSON schema for LIST/MAP/MODEL values.
    """

    name: str
    type: ConfigType = ConfigType.STRING
    label: str | None = None
    required: bool = False
    default_value: Any = None
    allowed_values: list[Any] | None = None
    schema_: dict[str, Any] | None = Field(default=None, alias="schema")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("schema_")
    @classmethod
    def check_schema(cls, value: dict[str, Any] | None) -> dict[str, Any] | None:
        if value is not None:
            try:
                Draft202012Validator.check_schema(value)
            except SchemaError as e:
                raise ValueError(f"Schema is invalid: {e.message}") from e
        return value


class StageDefinition(FrozenDocumentModel):
    """A stage available for use in pipelines."""

    library: str
    name: str
    version: str
    label: str | None = None
    description: str = ""
    type: StageType
    error_stage: bool = False
    config_definitions: list[ConfigDefinition] = Field(default_factory=list)

    @property
    def key(self) -> tuple[str, str, str]:
        return self.library, self.name, self.version

    def get_config_definition(self, name: str) -> ConfigDefinition | None:
        for definition in self.config_definitions:
            if definition.name == name:
                return definition
        return None
