"""
Tests for the LLM bridge: output cleanup, parsing and the HTTP client.
No network access; the HTTP session is mocked.
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest
import requests

from ielts_reader.config import DEFAULT_MODEL, OPENROUTER_ENDPOINT, LLMSettings
from ielts_reader.errors import FormatError
from ielts_reader.llm_bridge import (
    OpenRouterBridge,
    build_messages,
    clean_model_output,
    parse_model_output,
    slice_outer_braces,
    strip_code_fences,
)
from ielts_reader.models import QuestionType


MODEL_JSON = {
    "passageHtml": "<p><i>Intro</i></p><h2><b>Glass</b></h2><p>Body</p>",
    "questions": [
        {
            "id": 1, "type": "true-false", "text": "Glass is old",
            "options": [], "correctAnswer": "TRUE",
        },
        {
            "id": 2, "type": "multiple-choice", "text": "Where?",
            "options": [{"value": "A", "text": "Paris"},
                        {"value": "B", "text": "Lyon"}],
            "correctAnswer": "B", "explanation": "Stated in paragraph 2",
        },
    ],
}


def _settings(api_key="test-key"):
    return LLMSettings(
        OPENROUTER_API_KEY=api_key,
        OPENROUTER_ENDPOINT=OPENROUTER_ENDPOINT,
        OPENROUTER_MODEL=DEFAULT_MODEL,
    )


def _response(status=200, content=None, body=None):
    resp = MagicMock()
    resp.ok = 200 <= status < 300
    resp.status_code = status
    if body is None:
        body = {"choices": [{"message": {"content": content}}]}
    resp.json.return_value = body
    return resp


# ═══════════════════════════════════════════════════════════════════════════════
# CLEANUP / PARSING TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestCleanup:

    def test_strips_code_fences(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
        assert strip_code_fences('```JSON{"a": 1}```') == '{"a": 1}'

    def test_slices_outer_braces(self):
        assert slice_outer_braces('Here you go: {"a": {"b": 1}} thanks') == (
            '{"a": {"b": 1}}'
        )

    def test_slice_leaves_text_without_braces(self):
        assert slice_outer_braces("no json here") == "no json here"

    def test_backticks_become_quotes(self):
        assert clean_model_output("{`passageHtml`: `x`}") == '{"passageHtml": "x"}'

    def test_fenced_output_parses(self):
        content = "```json\n" + json.dumps(MODEL_JSON) + "\n```"
        result = parse_model_output(content)

        assert result.passage_html == MODEL_JSON["passageHtml"]
        assert [q.id for q in result.questions] == [1, 2]
        assert result.questions[0].options is None
        assert result.questions[1].type == QuestionType.MULTIPLE_CHOICE
        assert result.questions[1].correct_answer == "B"

    def test_fenced_output_with_backticks_parses(self):
        content = (
            "```json\n"
            "{`passageHtml`: `<p>Body</p>`, `questions`: ["
            "{`id`: 1, `type`: `fill-blank`, `text`: `Glass is ___`, "
            "`correctAnswer`: `old`}]}\n"
            "```"
        )
        result = parse_model_output(content)
        assert result.passage_html == "<p>Body</p>"
        assert result.questions[0].correct_answer == "old"

    def test_invalid_json_raises_format_error(self):
        with pytest.raises(FormatError):
            parse_model_output("{not json at all")

    def test_wrong_shape_raises_format_error(self):
        with pytest.raises(FormatError):
            parse_model_output('{"questions": []}')

    def test_prompt_has_system_then_user(self):
        messages = build_messages("RAW")
        assert [m["role"] for m in messages] == ["system", "user"]
        assert "Input (RAW TEXT):\nRAW" in messages[1]["content"]


# ═══════════════════════════════════════════════════════════════════════════════
# CLIENT TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestOpenRouterBridge:

    def test_missing_key_fails_without_request(self):
        session = MagicMock()
        bridge = OpenRouterBridge(_settings(api_key=None), session=session)

        assert bridge.generate_passage_and_questions("text") is None
        assert "API key is missing" in bridge.error
        assert bridge.is_calling is False
        session.post.assert_not_called()

    def test_successful_call(self):
        session = MagicMock()
        session.post.return_value = _response(content=json.dumps(MODEL_JSON))
        bridge = OpenRouterBridge(_settings(), session=session)

        result = bridge.generate_passage_and_questions("raw text", timeout=5)

        assert result is not None
        assert len(result.questions) == 2
        assert bridge.error is None

        args, kwargs = session.post.call_args
        assert args[0] == OPENROUTER_ENDPOINT
        payload = kwargs["json"]
        assert payload["model"] == DEFAULT_MODEL
        assert payload["temperature"] == 0.2
        assert payload["stream"] is False
        assert len(payload["messages"]) == 2
        assert kwargs["headers"]["Authorization"] == "Bearer test-key"
        assert kwargs["timeout"] == 5

    def test_default_timeout_from_settings(self):
        session = MagicMock()
        session.post.return_value = _response(content=json.dumps(MODEL_JSON))
        OpenRouterBridge(_settings(), session=session) \
            .generate_passage_and_questions("raw")
        assert session.post.call_args.kwargs["timeout"] == 60.0

    def test_non_2xx_status(self):
        session = MagicMock()
        session.post.return_value = _response(status=500, body={})
        bridge = OpenRouterBridge(_settings(), session=session)

        assert bridge.generate_passage_and_questions("text") is None
        assert "500" in bridge.error
        assert bridge.is_calling is False

    def test_connection_error(self):
        session = MagicMock()
        session.post.side_effect = requests.exceptions.ConnectionError("refused")
        bridge = OpenRouterBridge(_settings(), session=session)

        assert bridge.generate_passage_and_questions("text") is None
        assert "refused" in bridge.error

    def test_empty_content_is_format_error(self):
        session = MagicMock()
        session.post.return_value = _response(body={"choices": []})
        bridge = OpenRouterBridge(_settings(), session=session)

        assert bridge.generate_passage_and_questions("text") is None
        assert bridge.error.startswith("Model returned invalid JSON")

    def test_non_text_content_is_format_error(self):
        session = MagicMock()
        session.post.return_value = _response(
            content=[{"type": "text", "text": "{}"}]
        )
        bridge = OpenRouterBridge(_settings(), session=session)

        assert bridge.generate_passage_and_questions("text") is None
        assert bridge.error == "OpenRouter response has no text content"
        assert bridge.is_calling is False

    def test_true_false_options_from_model_are_dropped(self):
        payload = {
            "passageHtml": "<p>Body</p>",
            "questions": [{
                "id": 1, "type": "true-false", "text": "Glass is old",
                "options": [{"value": "TRUE", "text": "True"},
                            {"value": "FALSE", "text": "False"}],
                "correctAnswer": "TRUE",
            }],
        }
        session = MagicMock()
        session.post.return_value = _response(content=json.dumps(payload))
        bridge = OpenRouterBridge(_settings(), session=session)

        result = bridge.generate_passage_and_questions("text")

        assert result is not None
        assert bridge.error is None
        assert result.questions[0].type == QuestionType.TRUE_FALSE
        assert result.questions[0].options is None
        assert result.questions[0].correct_answer == "TRUE"

    def test_calling_flag_set_during_request(self):
        seen = []
        bridge = OpenRouterBridge(_settings(), session=MagicMock())

        def post(*args, **kwargs):
            seen.append(bridge.is_calling)
            return _response(content=json.dumps(MODEL_JSON))

        bridge.session.post.side_effect = post
        bridge.generate_passage_and_questions("text")

        assert seen == [True]
        assert bridge.is_calling is False

    def test_error_cleared_on_next_attempt(self):
        session = MagicMock()
        session.post.return_value = _response(content=json.dumps(MODEL_JSON))
        bridge = OpenRouterBridge(_settings(), session=session)
        bridge.error = "previous failure"

        bridge.generate_passage_and_questions("text")
        assert bridge.error is None
