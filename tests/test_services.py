"""Tests for the pipeline library service layer."""

import pytest

from pipeline_library.exceptions import (
    BadRequestError,
    PipelineNotFoundError,
    StoreError,
)
from pipeline_library.models import HEAD_REV
from pipeline_library.services.pipeline_library import PipelineDetail, PipelineLibraryService


@pytest.fixture
def service(store, stage_library) -> PipelineLibraryService:
    return PipelineLibraryService(store, stage_library)


class TestPipelineDetail:
    @pytest.mark.parametrize("value", ["pipeline", "info", "history"])
    def test_parse(self, value):
        assert PipelineDetail.parse(value).value == value

    def test_parse_invalid(self):
        with pytest.raises(BadRequestError, match="Invalid value for parameter 'get': banana"):
            PipelineDetail.parse("banana")


class TestPipelineLibraryService:
    @pytest.mark.asyncio
    async def test_create_seeds_rules(self, service, store):
        created = await service.create_pipeline("orders", "hello", "alice")

        rules = await store.retrieve_rules("orders", HEAD_REV)
        assert rules is not None
        assert len(rules.metrics_rules) == 5
        assert created.config.info.name == "orders"
        assert "VALIDATION_0001" in [issue.code for issue in created.verdict.issues]

    @pytest.mark.asyncio
    async def test_create_removes_pipeline_when_seeding_fails(self, service, store, monkeypatch):
        async def failing_store_rules(name, rev, rules):
            raise StoreError("disk full")

        monkeypatch.setattr(store, "store_rules", failing_store_rules)

        with pytest.raises(StoreError, match="disk full"):
            await service.create_pipeline("orders", "", "alice")

        assert await store.list_pipelines() == []

    @pytest.mark.asyncio
    async def test_get_pipeline_validates_against_current_library(
        self, service, store, valid_pipeline, stage_library
    ):
        await service.create_pipeline("orders", "", "alice")
        await service.save_pipeline("orders", "alice", "v2", None, valid_pipeline)

        assert (await service.get_pipeline("orders")).verdict.valid

        # Same stored document, a library that no longer publishes its stages
        service.stage_library = type(stage_library)()
        verdict = (await service.get_pipeline("orders")).verdict

        assert not verdict.valid
        assert "VALIDATION_0006" in [issue.code for issue in verdict.issues]

    @pytest.mark.asyncio
    async def test_save_persists_invalid_pipeline(self, service, store, valid_pipeline):
        await service.create_pipeline("orders", "", "alice")
        broken = valid_pipeline.model_copy(update={"memory_limit_mb": 0})

        saved = await service.save_pipeline("orders", "bob", "v2", "broken", broken)

        assert not saved.verdict.valid
        assert saved.config.info.last_rev == "2"
        assert (await store.load("orders")).memory_limit_mb == 0

    @pytest.mark.asyncio
    async def test_delete_removes_rules(self, service, store):
        await service.create_pipeline("orders", "", "alice")

        await service.delete_pipeline("orders", "alice")

        assert await store.retrieve_rules("orders") is None
        with pytest.raises(PipelineNotFoundError):
            await service.get_info("orders")

    @pytest.mark.asyncio
    async def test_get_rules_annotates_but_export_does_not(self, service, store):
        await service.create_pipeline("orders", "", "alice")
        rules = await store.retrieve_rules("orders")
        rules.metrics_rules[0].condition = "not an expression"
        await store.store_rules("orders", HEAD_REV, rules)

        annotated = await service.get_rules("orders")
        exported = await service.export_rules("orders")

        assert [issue.code for issue in annotated.rule_issues] == ["VALIDATION_0042"]
        assert exported.rule_issues == []

    @pytest.mark.asyncio
    async def test_save_rules_returns_issues(self, service):
        await service.create_pipeline("orders", "", "alice")
        rules = await service.get_rules("orders")
        rules.metrics_rules[1].id = rules.metrics_rules[0].id

        saved = await service.save_rules("orders", HEAD_REV, rules, "manager")

        assert [issue.code for issue in saved.rule_issues] == ["VALIDATION_0041"] * 2
        assert saved.uuid != rules.uuid
