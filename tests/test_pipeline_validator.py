"""Tests for the pipeline configuration validator."""

import pytest

from pipeline_library.models import ConfigValue, IssueLevel, PipelineConfiguration
from pipeline_library.services.pipeline_validator import (
    PREVIEW_TOLERATED_CODES,
    validate_pipeline,
)


def codes(verdict) -> list[str]:
    return [issue.code for issue in verdict.issues]


def with_stages(pipeline: PipelineConfiguration, *stages) -> PipelineConfiguration:
    return pipeline.model_copy(update={"stages": list(stages)})


class TestPipelineLevel:
    def test_valid_pipeline(self, stage_library, valid_pipeline):
        verdict = validate_pipeline(stage_library, "orders", valid_pipeline)

        assert verdict.issues == []
        assert verdict.valid
        assert verdict.can_preview
        assert verdict.issue_count == 0

    def test_empty_pipeline(self, stage_library):
        verdict = validate_pipeline(stage_library, "empty", PipelineConfiguration())

        assert "VALIDATION_0001" in codes(verdict)
        assert not verdict.valid
        assert not verdict.can_preview

    def test_validation_is_deterministic(self, stage_library, valid_pipeline, make_stage):
        pipeline = with_stages(valid_pipeline, make_stage("trash", "trash"))

        first = validate_pipeline(stage_library, "orders", pipeline)
        second = validate_pipeline(stage_library, "orders", pipeline)

        assert first == second

    def test_missing_error_stage_still_previewable(self, stage_library, valid_pipeline):
        pipeline = valid_pipeline.model_copy(update={"error_stage": None})

        verdict = validate_pipeline(stage_library, "orders", pipeline)

        assert codes(verdict) == ["VALIDATION_0060"]
        assert not verdict.valid
        assert verdict.can_preview

    def test_error_stage_must_be_error_capable(self, stage_library, valid_pipeline, make_stage):
        pipeline = valid_pipeline.model_copy(update={"error_stage": make_stage("error", "trash")})

        verdict = validate_pipeline(stage_library, "orders", pipeline)

        assert codes(verdict) == ["VALIDATION_0061"]
        assert not verdict.can_preview

    @pytest.mark.parametrize("limit", [None, 0, -5])
    def test_memory_limit(self, stage_library, valid_pipeline, limit):
        pipeline = valid_pipeline.model_copy(update={"memory_limit_mb": limit})

        verdict = validate_pipeline(stage_library, "orders", pipeline)

        assert codes(verdict) == ["VALIDATION_0070"]
        assert verdict.can_preview

    def test_delivery_guarantee_allowed_values(self, stage_library, valid_pipeline):
        pipeline = valid_pipeline.model_copy(
            update={
                "configuration": [
                    ConfigValue(name="deliveryGuarantee", value="EXACTLY_TWICE"),
                    ConfigValue(name="constants", value=[]),
                ]
            }
        )

        verdict = validate_pipeline(stage_library, "orders", pipeline)

        assert codes(verdict) == ["VALIDATION_0010"]
        assert verdict.issues[0].level is IssueLevel.PIPELINE
        assert verdict.issues[0].config_name == "deliveryGuarantee"

    def test_delivery_guarantee_required(self, stage_library, valid_pipeline):
        pipeline = valid_pipeline.model_copy(update={"configuration": []})

        verdict = validate_pipeline(stage_library, "orders", pipeline)

        assert codes(verdict) == ["VALIDATION_0007"]

    def test_constants_schema(self, stage_library, valid_pipeline):
        good = valid_pipeline.model_copy(
            update={
                "configuration": [
                    ConfigValue(name="deliveryGuarantee", value="AT_MOST_ONCE"),
                    ConfigValue(name="constants", value=[{"key": "region", "value": "eu"}]),
                ]
            }
        )
        bad = valid_pipeline.model_copy(
            update={
                "configuration": [
                    ConfigValue(name="deliveryGuarantee", value="AT_MOST_ONCE"),
                    ConfigValue(name="constants", value=[{"value": "eu"}]),
                ]
            }
        )

        assert validate_pipeline(stage_library, "orders", good).valid
        assert codes(validate_pipeline(stage_library, "orders", bad)) == ["VALIDATION_0009"]


class TestStages:
    def test_first_stage_must_be_origin(self, stage_library, valid_pipeline, make_stage):
        pipeline = with_stages(
            valid_pipeline,
            make_stage("identity", "identity", outputs=["identity_out"]),
            make_stage("trash", "trash", inputs=["identity_out"]),
        )

        verdict = validate_pipeline(stage_library, "orders", pipeline)

        assert "VALIDATION_0003" in codes(verdict)

    def test_single_origin(self, stage_library, valid_pipeline, make_stage):
        pipeline = with_stages(
            valid_pipeline,
            make_stage("source", "dev_raw_source", outputs=["a"], rawData="x"),
            make_stage("source2", "dev_raw_source", outputs=["b"], rawData="x"),
            make_stage("trash", "trash", inputs=["a", "b"]),
        )

        verdict = validate_pipeline(stage_library, "orders", pipeline)

        assert codes(verdict) == ["VALIDATION_0004"]
        assert verdict.issues[0].instance_name == "source2"

    def test_instance_names(self, stage_library, valid_pipeline, make_stage):
        pipeline = with_stages(
            valid_pipeline,
            make_stage("source", "dev_raw_source", outputs=["a"], rawData="x"),
            make_stage("bad name", "identity", inputs=["a"], outputs=["b"]),
            make_stage("bad name", "trash", inputs=["b"]),
        )

        verdict = validate_pipeline(stage_library, "orders", pipeline)

        assert "VALIDATION_0005" in codes(verdict)
        assert "VALIDATION_0002" in codes(verdict)

    def test_unknown_stage_definition(self, stage_library, valid_pipeline, make_stage):
        missing = make_stage("mystery", "identity", inputs=["source_out"]).model_copy(
            update={"stage_version": "99"}
        )
        pipeline = with_stages(
            valid_pipeline,
            make_stage("source", "dev_raw_source", outputs=["source_out"], rawData="x"),
            missing,
        )

        verdict = validate_pipeline(stage_library, "orders", pipeline)

        assert codes(verdict) == ["VALIDATION_0006"]
        assert verdict.issues[0].level is IssueLevel.STAGE
        assert verdict.issues[0].instance_name == "mystery"
        assert not verdict.can_preview


class TestStageConfiguration:
    def pipeline_with_filter(self, valid_pipeline, make_stage, **configs):
        return with_stages(
            valid_pipeline,
            make_stage("source", "dev_raw_source", outputs=["a"], rawData="x"),
            make_stage("filter", "field_filter", inputs=["a"], outputs=["b"], **configs),
            make_stage("trash", "trash", inputs=["b"]),
        )

    def test_required_value(self, stage_library, valid_pipeline, make_stage):
        pipeline = with_stages(
            valid_pipeline,
            make_stage("source", "dev_raw_source", outputs=["a"]),
            make_stage("trash", "trash", inputs=["a"]),
        )

        verdict = validate_pipeline(stage_library, "orders", pipeline)

        assert codes(verdict) == ["VALIDATION_0007"]
        issue = verdict.issues[0]
        assert issue.level is IssueLevel.STAGE_CONFIG
        assert (issue.instance_name, issue.config_name) == ("source", "rawData")

    def test_undefined_config(self, stage_library, valid_pipeline, make_stage):
        pipeline = self.pipeline_with_filter(valid_pipeline, make_stage, colour="red")

        assert codes(validate_pipeline(stage_library, "orders", pipeline)) == ["VALIDATION_0008"]

    def test_value_type(self, stage_library, valid_pipeline, make_stage):
        pipeline = self.pipeline_with_filter(valid_pipeline, make_stage, fieldCount="ten")

        assert codes(validate_pipeline(stage_library, "orders", pipeline)) == ["VALIDATION_0009"]

    def test_boolean_is_not_a_number(self, stage_library, valid_pipeline, make_stage):
        pipeline = self.pipeline_with_filter(valid_pipeline, make_stage, fieldCount=True)

        assert codes(validate_pipeline(stage_library, "orders", pipeline)) == ["VALIDATION_0009"]

    def test_allowed_values(self, stage_library, valid_pipeline, make_stage):
        pipeline = self.pipeline_with_filter(valid_pipeline, make_stage, mode="DROP")

        assert codes(validate_pipeline(stage_library, "orders", pipeline)) == ["VALIDATION_0010"]

    def test_schema(self, stage_library, valid_pipeline, make_stage):
        pipeline = self.pipeline_with_filter(valid_pipeline, make_stage, fields=["a", 1])

        assert codes(validate_pipeline(stage_library, "orders", pipeline)) == ["VALIDATION_0009"]

    def test_expressions_are_not_type_checked(self, stage_library, valid_pipeline, make_stage):
        pipeline = self.pipeline_with_filter(
            valid_pipeline, make_stage, fieldCount="${record:value('/count')}", mode="KEEP"
        )

        assert validate_pipeline(stage_library, "orders", pipeline).valid


class TestLanes:
    def test_open_output_lane_is_previewable(self, stage_library, valid_pipeline, make_stage):
        pipeline = with_stages(
            valid_pipeline,
            make_stage("source", "dev_raw_source", outputs=["a"], rawData="x"),
            make_stage("identity", "identity", inputs=["a"], outputs=["b"]),
        )

        verdict = validate_pipeline(stage_library, "orders", pipeline)

        assert codes(verdict) == ["VALIDATION_0011"]
        assert not verdict.valid
        assert verdict.can_preview

    def test_origin_without_inputs_destination_without_outputs(
        self, stage_library, valid_pipeline, make_stage
    ):
        pipeline = with_stages(
            valid_pipeline,
            make_stage("source", "dev_raw_source", inputs=["z"], outputs=["a"], rawData="x"),
            make_stage("trash", "trash", inputs=["a"], outputs=["z"]),
        )

        found = codes(validate_pipeline(stage_library, "orders", pipeline))

        assert "VALIDATION_0012" in found
        assert "VALIDATION_0013" in found

    def test_input_lane_not_produced(self, stage_library, valid_pipeline, make_stage):
        pipeline = with_stages(
            valid_pipeline,
            make_stage("source", "dev_raw_source", outputs=["a"], rawData="x"),
            make_stage("trash", "trash", inputs=["a", "ghost"]),
        )

        assert codes(validate_pipeline(stage_library, "orders", pipeline)) == ["VALIDATION_0014"]

    def test_input_lane_from_downstream(self, stage_library, valid_pipeline, make_stage):
        pipeline = with_stages(
            valid_pipeline,
            make_stage("source", "dev_raw_source", outputs=["a"], rawData="x"),
            make_stage("trash", "trash", inputs=["b"]),
            make_stage("identity", "identity", inputs=["a"], outputs=["b"]),
        )

        assert codes(validate_pipeline(stage_library, "orders", pipeline)) == ["VALIDATION_0015"]

    def test_disconnected_stage(self, stage_library, valid_pipeline, make_stage):
        pipeline = with_stages(
            valid_pipeline,
            make_stage("source", "dev_raw_source", outputs=["a"], rawData="x"),
            make_stage("trash", "trash", inputs=["a"]),
            make_stage("trash2", "trash"),
        )

        assert codes(validate_pipeline(stage_library, "orders", pipeline)) == ["VALIDATION_0016"]


def test_preview_tolerated_codes():
    assert PREVIEW_TOLERATED_CODES == {"VALIDATION_0011", "VALIDATION_0060", "VALIDATION_0070"}
