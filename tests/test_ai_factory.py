import base64
import io

import pytest
from PIL import Image

from ai import factory
from ai.claude_service import ClaudeService, _with_schema
from ai.credentials import require_api_key
from errors import GenerationError, MissingCredentialError
from prompts.schema import REQUIRED_FIELDS, VISUALIZATION_RESPONSE_SCHEMA


class TestFactory:

    def test_unknown_provider(self, monkeypatch):
        monkeypatch.setenv("AI_DECISION_PROVIDER", "llama")
        with pytest.raises(ValueError, match="Unknown AI provider"):
            factory.get_decision_service()

    @pytest.mark.parametrize(
        "provider, env_vars",
        [
            ("gemini", ["GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY"]),
            ("claude", ["ANTHROPIC_API_KEY"]),
            ("anthropic", ["ANTHROPIC_API_KEY"]),
            ("openai", ["OPENAI_API_KEY"]),
        ],
    )
    def test_missing_key_raises_at_construction(self, monkeypatch, provider, env_vars):
        for var in env_vars:
            monkeypatch.delenv(var, raising=False)
        monkeypatch.setenv("AI_MEDIA_PROVIDER", provider)
        with pytest.raises(MissingCredentialError) as exc_info:
            factory.get_decision_for_media_service()
        assert exc_info.value.env_vars == env_vars

    def test_missing_credential_is_a_generation_error(self):
        assert issubclass(MissingCredentialError, GenerationError)


class TestRequireApiKey:

    def test_first_non_empty_wins(self, monkeypatch):
        monkeypatch.setenv("A_KEY", "")
        monkeypatch.setenv("B_KEY", "secret")
        assert require_api_key("x", ["A_KEY", "B_KEY"]) == "secret"


class TestSchema:

    def test_required_fields(self):
        assert VISUALIZATION_RESPONSE_SCHEMA["required"] == REQUIRED_FIELDS
        assert set(REQUIRED_FIELDS) <= set(VISUALIZATION_RESPONSE_SCHEMA["properties"])

    def test_chart_type_enum(self):
        enum = VISUALIZATION_RESPONSE_SCHEMA["properties"]["chartType"]["enum"]
        assert enum == ["bar", "line", "scatter", "area", "pie", "radar", "composed"]

    def test_claude_prompt_embeds_schema(self):
        text = _with_schema("Do it", VISUALIZATION_RESPONSE_SCHEMA)
        assert text.startswith("Do it")
        assert '"pythonCode"' in text
        assert _with_schema("Do it", None) == "Do it"


class TestClaudeMedia:

    @pytest.fixture
    def claude(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test-key")
        service = ClaudeService()
        sent = []

        def fake_create(content):
            sent.append(content)
            return "{}"

        monkeypatch.setattr(service, "_create", fake_create)
        return service, sent

    def test_unsupported_format_is_sent_as_png(self, claude):
        service, sent = claude
        buf = io.BytesIO()
        Image.new("RGB", (2, 2), "blue").save(buf, format="BMP")

        service.get_decision_for_media("Describe", buf.getvalue(), mime_type="image/bmp")

        image_block = sent[0][0]
        assert image_block["source"]["media_type"] == "image/png"
        raw = base64.standard_b64decode(image_block["source"]["data"])
        with Image.open(io.BytesIO(raw)) as img:
            assert img.format == "PNG"

    def test_unreadable_image_falls_back_to_text(self, claude, caplog):
        service, sent = claude
        with caplog.at_level("WARNING"):
            service.get_decision_for_media("Describe", b"garbage", mime_type="image/tiff")
        assert sent == ["Describe"]
        assert "text-only" in caplog.text
