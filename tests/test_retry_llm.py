"""
Unit tests for the retry combinator and the completion client
"""
from unittest.mock import MagicMock, patch

import httpx
import openai
import pytest

from studyai.services.llm import (
    CompletionError,
    GroqService,
    ModelParams,
    RateLimitedError,
    complete,
)
from studyai.services.retry import linear_backoff, with_retries

from conftest import FakeLLMService, no_sleep

PARAMS = ModelParams(temperature=0.3, max_tokens=100)


class TestWithRetries:
    def test_returns_first_success(self):
        calls = []

        def operation(attempt):
            calls.append(attempt)
            return "ok"

        outcome = with_retries(3, linear_backoff(1.0), operation, sleep=no_sleep)
        assert outcome.ok
        assert outcome.value == "ok"
        assert outcome.attempts == 1
        assert calls == [1]

    def test_linear_backoff_between_attempts_only(self):
        sleeps = []

        def operation(attempt):
            raise ValueError(f"boom {attempt}")

        outcome = with_retries(3, linear_backoff(1.0), operation, sleep=sleeps.append)
        assert not outcome.ok
        assert outcome.attempts == 3
        assert str(outcome.error) == "boom 3"
        assert sleeps == [1.0, 2.0]

    def test_recovers_after_failures(self):
        def operation(attempt):
            if attempt < 3:
                raise ConnectionError("down")
            return attempt

        outcome = with_retries(3, linear_backoff(0.5), operation, sleep=no_sleep)
        assert outcome.ok
        assert outcome.value == 3

    def test_backoff_values(self):
        backoff = linear_backoff(2.0)
        assert [backoff(n) for n in (1, 2, 3)] == [2.0, 4.0, 6.0]


class TestCompletionClient:
    def test_exactly_max_retries_on_persistent_failure(self):
        service = FakeLLMService(CompletionError("unreachable"))
        completion = complete(service, "sys", "user", PARAMS, max_retries=3, sleep=no_sleep)
        assert len(service.calls) == 3
        assert completion.raw_text == ""
        assert not completion.succeeded
        assert not completion.rate_limited
        assert completion.attempt == 3

    def test_returns_immediately_on_success(self):
        service = FakeLLMService("hello")
        completion = complete(service, "sys", "user", PARAMS, max_retries=3, sleep=no_sleep)
        assert len(service.calls) == 1
        assert completion.raw_text == "hello"
        assert completion.succeeded
        assert completion.attempt == 1

    def test_success_after_one_failure(self):
        service = FakeLLMService(CompletionError("flaky"), "hello")
        completion = complete(service, "sys", "user", PARAMS, max_retries=3, sleep=no_sleep)
        assert len(service.calls) == 2
        assert completion.raw_text == "hello"

    def test_rate_limit_flagged(self):
        service = FakeLLMService(RateLimitedError("429"))
        completion = complete(service, "sys", "user", PARAMS, max_retries=3, sleep=no_sleep)
        assert len(service.calls) == 3
        assert completion.raw_text == ""
        assert completion.rate_limited

    def test_passes_model_params(self):
        service = FakeLLMService("x")
        complete(service, "sys", "user", ModelParams(0.05, 8000, top_p=0.9), sleep=no_sleep)
        call = service.calls[0]
        assert call["temperature"] == 0.05
        assert call["max_tokens"] == 8000
        assert call["top_p"] == 0.9

    def test_uses_configured_retries(self, monkeypatch):
        from studyai import config

        monkeypatch.setattr(config, "LLM_MAX_RETRIES", 2)
        service = FakeLLMService(CompletionError("down"))
        complete(service, "sys", "user", PARAMS, sleep=no_sleep)
        assert len(service.calls) == 2

    def test_zero_retries_still_makes_one_attempt(self, monkeypatch):
        from studyai import config

        monkeypatch.setattr(config, "LLM_MAX_RETRIES", 5)
        service = FakeLLMService(CompletionError("down"))
        completion = complete(service, "sys", "user", PARAMS, max_retries=0, sleep=no_sleep)
        assert len(service.calls) == 1
        assert completion.attempt == 1
        assert not completion.succeeded


def _rate_limit_error():
    request = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")
    response = httpx.Response(429, request=request)
    return openai.RateLimitError("Too many requests", response=response, body=None)


class TestGroqService:
    @patch("studyai.services.llm._get_client")
    def test_complete_returns_message_content(self, mock_get_client):
        mock_client = MagicMock()
        mock_get_client.return_value.with_options.return_value = mock_client
        choice = MagicMock()
        choice.message.content = "answer"
        mock_client.chat.completions.create.return_value = MagicMock(choices=[choice])

        text = GroqService(model="test-model").complete("sys", "user", 0.2, 50)

        assert text == "answer"
        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["messages"][0] == {"role": "system", "content": "sys"}
        assert "top_p" not in kwargs

    @patch("studyai.services.llm._get_client")
    def test_rate_limit_mapped(self, mock_get_client):
        mock_client = MagicMock()
        mock_get_client.return_value.with_options.return_value = mock_client
        mock_client.chat.completions.create.side_effect = _rate_limit_error()

        with pytest.raises(RateLimitedError):
            GroqService().complete("sys", "user", 0.2, 50)

    @patch("studyai.services.llm._get_client")
    def test_transport_error_mapped(self, mock_get_client):
        mock_client = MagicMock()
        mock_get_client.return_value.with_options.return_value = mock_client
        request = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")
        mock_client.chat.completions.create.side_effect = openai.APIConnectionError(request=request)

        with pytest.raises(CompletionError) as exc_info:
            GroqService().complete("sys", "user", 0.2, 50)
        assert not isinstance(exc_info.value, RateLimitedError)

    def test_missing_key(self, monkeypatch):
        from studyai import config

        monkeypatch.setattr(config, "GROQ_API_KEY", None)
        with pytest.raises(RuntimeError):
            GroqService()
