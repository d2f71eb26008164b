"""Tests for the LLM backends, personas and the oracle.

All tests use mocks: no network, no API keys.
"""

import random
from unittest.mock import MagicMock, patch

import pytest
import requests
from groq import GroqError

from minnebo.errors import UpstreamUnavailable
from minnebo.generation.gemini_backend import GeminiBackend, extract_text
from minnebo.generation.groq_backend import GroqBackend
from minnebo.generation.llm_backend_base import (
    BackendError,
    GenerationConfig,
    GenerationResult,
    LLMBackend,
)
from minnebo.generation.oracle import EMPTY_ANSWER, Oracle
from minnebo.generation.personas import GUIDE, PERSONAS, SAGE, choose_persona

GEMINI_BODY = {
    "candidates": [{"content": {"parts": [{"text": "The path bends gently toward Yes."}]}}],
    "usageMetadata": {"promptTokenCount": 210, "candidatesTokenCount": 9},
}


def _gemini_response(body=GEMINI_BODY, status=200):
    resp = MagicMock()
    resp.ok = 200 <= status < 300
    resp.status_code = status
    resp.json.return_value = body
    return resp


# ── Data classes ─────────────────────────────────────────────────────


class TestGenerationConfig:
    def test_defaults(self):
        config = GenerationConfig()
        assert config.max_tokens == 1024
        assert config.temperature == 0.9


class TestGenerationResult:
    def test_usage_defaults_to_empty(self):
        result = GenerationResult(answer="a", model="m")
        assert result.usage == {}


# ── Personas ─────────────────────────────────────────────────────────


class TestPersonas:
    def test_decorate_embeds_question(self):
        for persona in PERSONAS:
            prompt = persona.decorate("What is stillness?")
            assert "User question: What is stillness?" in prompt

    def test_braces_in_question_are_literal(self):
        assert "{0} {question}" in SAGE.decorate("{0} {question}")

    def test_choose_persona_is_one_of_two(self):
        rng = random.Random(7)
        names = {choose_persona(rng).name for _ in range(50)}
        assert names == {SAGE.name, GUIDE.name}


# ── Gemini ───────────────────────────────────────────────────────────


class TestGeminiBackend:
    def test_backend_name(self):
        assert GeminiBackend(api_key="k").backend_name == "gemini"

    def test_missing_api_key_raises(self):
        with pytest.raises(ValueError, match="API key"):
            GeminiBackend(api_key="")

    @patch("minnebo.generation.gemini_backend.requests.post")
    def test_generate_basic(self, mock_post):
        mock_post.return_value = _gemini_response()
        backend = GeminiBackend(api_key="test-key", model="gemini-test")

        result = backend.generate("prompt text", max_tokens=256, temperature=0.5)

        assert result.answer == "The path bends gently toward Yes."
        assert result.model == "gemini-test"
        assert result.usage == {"prompt_tokens": 210, "completion_tokens": 9}

        call = mock_post.call_args
        assert call.args[0].endswith("/models/gemini-test:generateContent")
        assert call.kwargs["params"] == {"key": "test-key"}
        payload = call.kwargs["json"]
        assert payload["contents"][0]["parts"][0]["text"] == "prompt text"
        assert payload["generationConfig"] == {"maxOutputTokens": 256, "temperature": 0.5}

    @patch("minnebo.generation.gemini_backend.requests.post")
    def test_http_error(self, mock_post):
        mock_post.return_value = _gemini_response(body={"error": {"message": "quota"}}, status=429)
        with pytest.raises(BackendError, match="429"):
            GeminiBackend(api_key="k").generate("q")

    @patch("minnebo.generation.gemini_backend.requests.post")
    def test_transport_error(self, mock_post):
        mock_post.side_effect = requests.ConnectionError("refused")
        with pytest.raises(BackendError):
            GeminiBackend(api_key="k").generate("q")

    @patch("minnebo.generation.gemini_backend.requests.post")
    def test_missing_text(self, mock_post):
        mock_post.return_value = _gemini_response(body={"candidates": []})
        with pytest.raises(BackendError, match="missing"):
            GeminiBackend(api_key="k").generate("q")

    @patch("minnebo.generation.gemini_backend.requests.post")
    def test_malformed_json(self, mock_post):
        resp = _gemini_response()
        resp.json.side_effect = ValueError("not json")
        mock_post.return_value = resp
        with pytest.raises(BackendError, match="malformed"):
            GeminiBackend(api_key="k").generate("q")

    @patch("minnebo.generation.gemini_backend.requests.get")
    def test_is_available(self, mock_get):
        mock_get.return_value = MagicMock(status_code=200)
        assert GeminiBackend(api_key="k").is_available() is True
        mock_get.side_effect = requests.ConnectionError("refused")
        assert GeminiBackend(api_key="k").is_available() is False

    def test_extract_text(self):
        assert extract_text(GEMINI_BODY) == "The path bends gently toward Yes."
        assert extract_text({"candidates": [{"content": {"parts": [{}]}}]}) is None
        assert extract_text(None) is None


# ── Groq ─────────────────────────────────────────────────────────────


class TestGroqBackend:
    def test_backend_name(self):
        with patch("minnebo.generation.groq_backend.Groq"):
            backend = GroqBackend(api_key="test-key")
            assert backend.backend_name == "groq"

    def test_missing_api_key_raises(self):
        with pytest.raises(ValueError, match="API key"):
            GroqBackend(api_key="")

    @patch("minnebo.generation.groq_backend.Groq")
    def test_is_available_failure(self, MockGroq):
        mock_client = MagicMock()
        mock_client.models.list.side_effect = GroqError("auth error")
        MockGroq.return_value = mock_client
        assert GroqBackend(api_key="bad-key").is_available() is False

    @patch("minnebo.generation.groq_backend.Groq")
    def test_generate_basic(self, MockGroq):
        mock_client = MagicMock()
        MockGroq.return_value = mock_client

        mock_usage = MagicMock()
        mock_usage.prompt_tokens = 80
        mock_usage.completion_tokens = 30
        mock_usage.total_tokens = 110

        mock_choice = MagicMock()
        mock_choice.message.content = "Groq answer"

        mock_response = MagicMock()
        mock_response.choices = [mock_choice]
        mock_response.usage = mock_usage
        mock_client.chat.completions.create.return_value = mock_response

        backend = GroqBackend(api_key="test-key", model="llama-3.3-70b-versatile")
        result = backend.generate("What is stillness?")

        assert result.answer == "Groq answer"
        assert result.usage["total_tokens"] == 110
        call_kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert call_kwargs["messages"] == [{"role": "user", "content": "What is stillness?"}]

    @patch("minnebo.generation.groq_backend.Groq")
    def test_generate_error_is_wrapped(self, MockGroq):
        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = GroqError("rate limited")
        MockGroq.return_value = mock_client
        with pytest.raises(BackendError):
            GroqBackend(api_key="k").generate("q")


# ── Oracle ───────────────────────────────────────────────────────────


@pytest.fixture
def backend():
    llm = MagicMock(spec=LLMBackend)
    llm.backend_name = "mock"
    llm.generate.return_value = GenerationResult(answer="  Water finds the way.  ", model="m")
    return llm


class TestOracle:
    def test_ask_decorates_and_strips(self, backend):
        oracle = Oracle(backend, rng=random.Random(3))
        response = oracle.ask("How do I begin?")

        assert response.answer == "Water finds the way."
        assert response.persona in {SAGE.name, GUIDE.name}
        prompt = backend.generate.call_args.kwargs["prompt"]
        assert "User question: How do I begin?" in prompt

    def test_generation_config_is_passed(self, backend):
        Oracle(backend, config=GenerationConfig(max_tokens=64, temperature=0.1)).ask("q")
        kwargs = backend.generate.call_args.kwargs
        assert kwargs["max_tokens"] == 64
        assert kwargs["temperature"] == 0.1

    def test_empty_answer_placeholder(self, backend):
        backend.generate.return_value = GenerationResult(answer="   ", model="m")
        assert Oracle(backend).ask("q").answer == EMPTY_ANSWER

    def test_backend_error_becomes_upstream_unavailable(self, backend):
        backend.generate.side_effect = BackendError("HTTP 500 from provider: stack trace")
        with pytest.raises(UpstreamUnavailable) as exc_info:
            Oracle(backend).ask("q")
        assert "stack trace" not in exc_info.value.message
        assert exc_info.value.status_code == 500
