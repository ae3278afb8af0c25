import base64
import json

import pytest

from conftest import FakeAIService, make_config, make_payload
from dto.visualization import ChartType
from errors import GenerationError, InvalidAIResponseError, MissingCredentialError
from generation import request_builder
from generation.request_builder import (
    analyze_image_and_data,
    parse_visualization_config,
    refine_config,
)
from prompts.schema import REQUIRED_FIELDS, VISUALIZATION_RESPONSE_SCHEMA

PNG_BYTES = b"\x89PNG\r\n\x1a\nnot-really-a-png"


class TestParseVisualizationConfig:

    def test_required_fields_only(self):
        config = parse_visualization_config(json.dumps(make_payload()))
        assert config.chart_type == ChartType.BAR
        assert config.x_axis_key == "Pclass"
        assert config.series_keys is None
        assert config.colors is None

    def test_optional_fields_round_trip(self):
        payload = make_payload(
            chartType="line",
            seriesKeys=["Fare", "Age"],
            groupBy="Sex",
            xLabel="Class",
            yLabel="Fare (GBP)",
            colors=["#111111", "#222222"],
        )
        config = parse_visualization_config(json.dumps(payload))
        assert config.to_payload() == payload

    @pytest.mark.parametrize("missing", REQUIRED_FIELDS)
    def test_missing_required_field(self, missing):
        payload = make_payload()
        del payload[missing]
        with pytest.raises(InvalidAIResponseError) as exc_info:
            parse_visualization_config(json.dumps(payload))
        assert missing in str(exc_info.value)

    def test_unknown_chart_type(self):
        with pytest.raises(InvalidAIResponseError):
            parse_visualization_config(json.dumps(make_payload(chartType="heatmap")))

    def test_wrong_type_for_list_field(self):
        with pytest.raises(InvalidAIResponseError):
            parse_visualization_config(json.dumps(make_payload(seriesKeys="Fare")))

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_empty_response(self, raw):
        with pytest.raises(InvalidAIResponseError, match="No response from AI"):
            parse_visualization_config(raw)

    def test_not_json(self):
        with pytest.raises(InvalidAIResponseError):
            parse_visualization_config("Sorry, I can't do that.")

    def test_invalid_response_is_a_generation_error(self):
        assert issubclass(InvalidAIResponseError, GenerationError)


class TestAnalyzeImageAndData:

    def test_text_only_request(self, fake_service, small_dataset):
        config = analyze_image_and_data(
            None, small_dataset.data, small_dataset.columns, "compare fares",
            service=fake_service,
        )
        assert config.title == "Fare by class"
        call = fake_service.calls[0]
        assert call["kind"] == "text"
        assert call["response_schema"] is VISUALIZATION_RESPONSE_SCHEMA
        assert "User Prompt: compare fares" in call["prompt"]
        assert json.dumps(small_dataset.columns) in call["prompt"]

    def test_prompt_carries_first_three_rows_only(self, fake_service, small_dataset):
        analyze_image_and_data(
            None, small_dataset.data, small_dataset.columns, "x", service=fake_service
        )
        prompt = fake_service.calls[0]["prompt"]
        assert json.dumps(small_dataset.data[:3]) in prompt
        assert "8.05" not in prompt

    def test_data_url_prefix_is_stripped(self, fake_service, small_dataset):
        b64 = base64.b64encode(PNG_BYTES).decode()
        analyze_image_and_data(
            f"data:image/jpeg;base64,{b64}",
            small_dataset.data, small_dataset.columns, "match this",
            service=fake_service,
        )
        call = fake_service.calls[0]
        assert call["kind"] == "media"
        assert call["image_bytes"] == PNG_BYTES
        assert call["mime_type"] == "image/jpeg"

    def test_bare_base64_defaults_to_png(self, fake_service, small_dataset):
        b64 = base64.b64encode(PNG_BYTES).decode()
        analyze_image_and_data(
            b64, small_dataset.data, small_dataset.columns, "", service=fake_service
        )
        call = fake_service.calls[0]
        assert call["image_bytes"] == PNG_BYTES
        assert call["mime_type"] == "image/png"

    def test_blank_prompt_uses_default_instruction(self, fake_service, small_dataset):
        analyze_image_and_data(
            None, small_dataset.data, small_dataset.columns, "", service=fake_service
        )
        assert "Visualize this data effectively" in fake_service.calls[0]["prompt"]

    def test_provider_error_becomes_generation_error(self, small_dataset):
        service = FakeAIService(error=ConnectionError("network down"))
        with pytest.raises(GenerationError, match="network down"):
            analyze_image_and_data(
                None, small_dataset.data, small_dataset.columns, "x", service=service
            )

    def test_malformed_response(self, small_dataset):
        service = FakeAIService(response='{"chartType": "bar"}')
        with pytest.raises(InvalidAIResponseError):
            analyze_image_and_data(
                None, small_dataset.data, small_dataset.columns, "x", service=service
            )

    def test_uses_factory_services_when_none_given(self, monkeypatch, small_dataset):
        text_service = FakeAIService()
        media_service = FakeAIService()
        monkeypatch.setattr(request_builder, "get_decision_service", lambda: text_service)
        monkeypatch.setattr(request_builder, "get_decision_for_media_service", lambda: media_service)

        analyze_image_and_data(None, small_dataset.data, small_dataset.columns, "x")
        analyze_image_and_data(
            base64.b64encode(PNG_BYTES).decode(),
            small_dataset.data, small_dataset.columns, "x",
        )
        assert len(text_service.calls) == 1
        assert len(media_service.calls) == 1

    def test_missing_credential_surfaces_at_call_time(self, monkeypatch, small_dataset):
        for var in ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY"):
            monkeypatch.delenv(var, raising=False)
        monkeypatch.setenv("AI_DECISION_PROVIDER", "gemini")
        with pytest.raises(MissingCredentialError):
            analyze_image_and_data(None, small_dataset.data, small_dataset.columns, "x")


class TestRefineConfig:

    def test_sends_current_config_without_image(self, fake_service):
        current = make_config(colors=["#ff0000"])
        refined = refine_config(current, "use a line chart", service=fake_service)
        call = fake_service.calls[0]
        assert call["kind"] == "text"
        assert json.dumps(current.to_payload()) in call["prompt"]
        assert 'User Update Request: "use a line chart"' in call["prompt"]
        assert call["response_schema"] is VISUALIZATION_RESPONSE_SCHEMA
        assert refined.title == "Fare by class"

    def test_refined_config_replaces_wholesale(self):
        service = FakeAIService(response=json.dumps(make_payload(chartType="pie", title="Share")))
        refined = refine_config(make_config(colors=["#ff0000"]), "pie please", service=service)
        assert refined.chart_type == ChartType.PIE
        assert refined.colors is None
