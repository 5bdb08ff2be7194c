"""Tests for the OpenAI text assistant."""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from cvdocument.assist import AssistKind, AssistRequest, OpenAITextAssistant, TextAssistant
from cvdocument.openai_utils import RetryConfig


def _assistant(content="Improved text", finish_reason="stop"):
    assistant = OpenAITextAssistant(api_key="test-key", retry_config=RetryConfig(max_attempts=1))
    client = MagicMock()
    client.chat.completions.create.return_value = SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content), finish_reason=finish_reason)]
    )
    assistant._client = client
    return assistant, client


class TestInit:
    def test_is_text_assistant(self):
        """Test that the adapter is a TextAssistant."""
        with patch.dict("os.environ", {"OPENAI_API_KEY": "test-key"}):
            assert isinstance(OpenAITextAssistant(), TextAssistant)

    def test_model_resolution(self):
        """Test resolving the model from the environment and the default."""
        with patch.dict("os.environ", {"OPENAI_MODEL": "env-model"}, clear=True):
            assert OpenAITextAssistant().model == "env-model"
        with patch.dict("os.environ", {}, clear=True):
            assert OpenAITextAssistant().model == "gpt-4o-mini"

    def test_missing_api_key(self):
        """Test that a missing API key raises."""
        with patch.dict("os.environ", {}, clear=True):
            assistant = OpenAITextAssistant()
            with pytest.raises(RuntimeError, match="OPENAI_API_KEY"):
                assistant.assist(AssistRequest(AssistKind.REWRITE_BULLET, content="Led X"))


class TestValidation:
    @pytest.mark.parametrize(
        "request_",
        [
            AssistRequest(AssistKind.REWRITE_INTRO, content="  "),
            AssistRequest(AssistKind.REWRITE_BULLET),
            AssistRequest(AssistKind.TIGHTEN_TEXT, content=""),
            AssistRequest(AssistKind.GENERATE_MILESTONES, bullets=["", " "]),
            AssistRequest(AssistKind.GENERATE_INTRO_FROM_EXPERIENCE, cv_context=""),
        ],
    )
    def test_missing_input_is_rejected_before_calling(self, request_):
        """Test that requests without input are rejected before any call."""
        assistant, client = _assistant()
        with pytest.raises(ValueError):
            assistant.assist(request_)
        client.chat.completions.create.assert_not_called()


class TestPrompts:
    def test_every_kind_has_prompts(self):
        """Test that every assist kind builds a system and a user prompt."""
        assistant, _ = _assistant()
        for kind in AssistKind:
            request = AssistRequest(kind, content="x", bullets=["a"], cv_context="cv", title="T", company="C")
            messages = assistant.build_messages(request)
            assert [m["role"] for m in messages] == ["system", "user"]
            assert all(m["content"].strip() for m in messages)

    def test_bullet_prompt_contains_content_and_job_context(self):
        """Test that the bullet prompt carries the content and job context."""
        assistant, _ = _assistant()
        request = AssistRequest(
            AssistKind.REWRITE_BULLET, content="Led X", job_description_context="Hiring a PM", language="en"
        )
        user = assistant.build_messages(request)[1]["content"]
        assert "Led X" in user
        assert "Hiring a PM" in user

    def test_milestone_prompt_lists_bullets(self):
        """Test that the milestone prompt lists the bullets."""
        assistant, _ = _assistant()
        request = AssistRequest(AssistKind.GENERATE_MILESTONES, bullets=["Led X", " ", "Coordinated Y"])
        user = assistant.build_messages(request)[1]["content"]
        assert "• Led X\n• Coordinated Y" in user

    def test_system_prompt_names_output_language(self):
        """Test that the system prompt names the output language."""
        assistant, _ = _assistant()
        request = AssistRequest(AssistKind.TIGHTEN_TEXT, content="x", language="da")
        assert "Danish" in assistant.build_messages(request)[0]["content"]


class TestAssist:
    def test_returns_suggestion_with_localized_rationale(self):
        """Test returning the suggestion with an English rationale."""
        assistant, client = _assistant("  Led X across three teams  ")
        response = assistant.assist(AssistRequest(AssistKind.REWRITE_BULLET, content="Led X", language="en"))
        assert response.suggestion == "Led X across three teams"
        assert response.rationale == "Rewritten for clarity"
        assert client.chat.completions.create.call_args.kwargs["model"] == assistant.model

    def test_danish_rationale(self):
        """Test the Danish rationale."""
        assistant, _ = _assistant()
        response = assistant.assist(AssistRequest(AssistKind.REWRITE_INTRO, content="Hej", language="da"))
        assert response.rationale == "Optimeret baseret på din originale tekst"

    def test_kind_given_as_string(self):
        """Test passing the assist kind as a string."""
        assistant, _ = _assistant()
        response = assistant.assist(AssistRequest("tighten-text", content="Some long text"))
        assert response.suggestion == "Improved text"

    def test_empty_answer_is_an_error(self):
        """Test that an empty answer raises."""
        assistant, _ = _assistant("   ")
        with pytest.raises(RuntimeError, match="no content"):
            assistant.assist(AssistRequest(AssistKind.REWRITE_BULLET, content="Led X"))

    def test_service_error_is_wrapped(self):
        """Test that service errors are wrapped in RuntimeError."""
        assistant, client = _assistant()
        error = Exception("invalid api key")
        error.status_code = 401
        client.chat.completions.create.side_effect = error
        with pytest.raises(RuntimeError, match="rejected by OpenAI"):
            assistant.assist(AssistRequest(AssistKind.REWRITE_BULLET, content="Led X"))
