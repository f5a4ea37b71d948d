"""Tests for stage library loading."""

import json

import pytest

from pipeline_library.exceptions import ConfigurationError
from pipeline_library.models import StageDefinition, StageType
from pipeline_library.services.stage_library import (
    StaticStageLibrary,
    load_stage_library,
    read_stage_definitions,
)

SOURCE = {
    "library": "basic",
    "name": "dev_raw_source",
    "version": "1",
    "type": "SOURCE",
    "config_definitions": [{"name": "rawData", "type": "TEXT", "required": True}],
}
TARGET = {"library": "basic", "name": "trash", "version": "1", "type": "TARGET"}


def test_lookup():
    library = StaticStageLibrary([StageDefinition.model_validate(SOURCE)])

    stage = library.get_stage("basic", "dev_raw_source", "1")

    assert stage is not None
    assert stage.type is StageType.SOURCE
    assert stage.get_config_definition("rawData").required
    assert library.get_stage("basic", "dev_raw_source", "2") is None
    assert len(library) == 1


def test_duplicate_definitions():
    definition = StageDefinition.model_validate(TARGET)

    with pytest.raises(ConfigurationError, match="defined twice"):
        StaticStageLibrary([definition, definition])


@pytest.mark.asyncio
async def test_read_single_and_list(tmp_path):
    (tmp_path / "one.json").write_text(json.dumps(TARGET))
    (tmp_path / "many.json").write_text(json.dumps([SOURCE]))

    assert [s.name for s in await read_stage_definitions(tmp_path / "one.json")] == ["trash"]
    assert [s.name for s in await read_stage_definitions(tmp_path / "many.json")] == [
        "dev_raw_source"
    ]


@pytest.mark.asyncio
async def test_load_directory(tmp_path):
    (tmp_path / "a.json").write_text(json.dumps([SOURCE, TARGET]))
    (tmp_path / "notes.txt").write_text("ignored")

    library = await load_stage_library(tmp_path)

    assert {stage.name for stage in library.get_stages()} == {"dev_raw_source", "trash"}


@pytest.mark.asyncio
async def test_missing_directory_gives_empty_library(tmp_path):
    assert len(await load_stage_library(None)) == 0
    assert len(await load_stage_library(tmp_path / "absent")) == 0


@pytest.mark.asyncio
async def test_invalid_files(tmp_path):
    (tmp_path / "broken.json").write_text("{not json")
    (tmp_path / "wrong.json").write_text(json.dumps({"name": "missing fields"}))

    with pytest.raises(ConfigurationError, match="not valid JSON"):
        await read_stage_definitions(tmp_path / "broken.json")
    with pytest.raises(ConfigurationError, match="Invalid stage definition"):
        await read_stage_definitions(tmp_path / "wrong.json")


@pytest.mark.asyncio
async def test_malformed_config_schema(tmp_path):
    broken = {
        "library": "basic",
        "name": "field_filter",
        "version": "1",
        "type": "PROCESSOR",
        "config_definitions": [{"name": "fields", "type": "LIST", "schema": {"type": 5}}],
    }
    (tmp_path / "broken_schema.json").write_text(json.dumps(broken))

    with pytest.raises(ConfigurationError, match="Schema is invalid"):
        await load_stage_library(tmp_path)
