"""
Stage library access.

The stage library is a read-only catalog of stage definitions. Definitions are
published as JSON files, each holding either a single definition or a list.
"""

import json
from abc import ABC, abstractmethod
from collections.abc import Iterable
from pathlib import Path

import aiofiles
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from pipeline_library.exceptions import ConfigurationError
from pipeline_library.models import StageDefinition
from pipeline_library.utils.logger import logger

_DEFINITIONS_ADAPTER = TypeAdapter(list[StageDefinition] | StageDefinition)


class StageLibrary(ABC):
    """Read-only catalog of stage definitions."""

    @abstractmethod
    def get_stages(self) -> list[StageDefinition]:
        """Return every known stage definition."""

    @abstractmethod
    def get_stage(self, library: str, name: str, version: str) -> StageDefinition | None:
        """Return one stage definition, or None if the library doesn't publish it."""


class StaticStageLibrary(StageLibrary):
    """Stage library over a fixed set of definitions."""

    def __init__(self, stages: Iterable[StageDefinition] = ()):
        self._stages: dict[tuple[str, str, str], StageDefinition] = {}
        for stage in stages:
            if stage.key in self._stages:
                raise ConfigurationError(
                    f"Stage '{stage.library}:{stage.name}:{stage.version}' is defined twice"
                )
            self._stages[stage.key] = stage

    def get_stages(self) -> list[StageDefinition]:
        return list(self._stages.values())

    def get_stage(self, library: str, name: str, version: str) -> StageDefinition | None:
        return self._stages.get((library, name, version))

    def __len__(self) -> int:
        return len(self._stages)


async def read_stage_definitions(path: Path) -> list[StageDefinition]:
    """Read the stage definitions held in one JSON file.

    Args:
        path: JSON file with a definition or a list of definitions

    Returns:
        Parsed stage definitions

    Raises:
        ConfigurationError: If the file is not valid JSON or not a stage definition
    """
    async with aiofiles.open(path, encoding="utf-8") as f:
        content = await f.read()

    try:
        parsed = _DEFINITIONS_ADAPTER.validate_python(json.loads(content))
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Stage definition file {path} is not valid JSON: {e}") from e
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid stage definition in {path}: {e}") from e

    return parsed if isinstance(parsed, list) else [parsed]


async def load_stage_library(directory: str | Path | None) -> StaticStageLibrary:
    """Build a stage library from every ``*.json`` file of a directory.

    Args:
        directory: Directory with stage definition files; None gives an empty library

    Returns:
        Stage library with all definitions found
    """
    if directory is None:
        logger.warning("No stage library directory configured, stage library is empty")
        return StaticStageLibrary()

    path = Path(directory)
    if not path.is_dir():
        logger.warning(f"Stage library directory {path} does not exist, stage library is empty")
        return StaticStageLibrary()

    stages: list[StageDefinition] = []
    for file in sorted(path.glob("*.json")):
        definitions = await read_stage_definitions(file)
        logger.debug(f"Loaded {len(definitions)} stage definitions from {file.name}")
        stages.extend(definitions)

    library = StaticStageLibrary(stages)
    logger.info(f"Stage library loaded with {len(library)} stage definitions from {path}")
    return library
