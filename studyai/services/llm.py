from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

import openai
import structlog
from openai import OpenAI

from studyai import config
from studyai.services.logging import preview
from studyai.services.monitoring import LLM_CALL_ATTEMPTS
from studyai.services.retry import linear_backoff, with_retries

logger = structlog.get_logger()


class CompletionError(RuntimeError):
    """The LLM service could not produce a completion."""


class RateLimitedError(CompletionError):
    """The LLM service answered with HTTP 429."""


class LLMService(Protocol):
    def complete(
        self,
        system: str,
        user: str,
        temperature: float,
        max_tokens: int,
        top_p: Optional[float] = None,
    ) -> str:
        ...


@dataclass(frozen=True)
class ModelParams:
    temperature: float
    max_tokens: int
    top_p: Optional[float] = None


@dataclass(frozen=True)
class ModelCompletion:
    raw_text: str
    succeeded: bool
    attempt: int
    rate_limited: bool = False


def _get_client() -> OpenAI:
    api_key = config.GROQ_API_KEY
    if not api_key:
        raise RuntimeError("GROQ_API_KEY not set")
    return OpenAI(api_key=api_key, base_url=config.GROQ_BASE_URL, max_retries=0)


class GroqService:
    """Chat completions against Groq's OpenAI-compatible endpoint.

    Retries are handled by :func:`complete`, so the SDK's own retry loop is
    switched off in ``_get_client``.
    """

    def __init__(self, model: str = None, timeout: float = None):
        self.model = model or config.GROQ_MODEL
        self.timeout = timeout or config.LLM_TIMEOUT_SECONDS
        self._client = _get_client().with_options(timeout=self.timeout)

    def complete(self, system, user, temperature, max_tokens, top_p=None):
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": user})
        kwargs = {}
        if top_p is not None:
            kwargs["top_p"] = top_p
        try:
            rsp = self._client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
                **kwargs,
            )
        except openai.RateLimitError as e:
            raise RateLimitedError(f"Rate limit exceeded: {e}") from e
        except openai.OpenAIError as e:
            raise CompletionError(f"Groq API error: {e}") from e
        if not rsp.choices:
            return ""
        return rsp.choices[0].message.content or ""


def complete(
    service: LLMService,
    system: str,
    user: str,
    params: ModelParams,
    max_retries: int = None,
    sleep: Callable[[float], None] = time.sleep,
) -> ModelCompletion:
    """Call the model with bounded linear-backoff retries.

    Never raises for service failures: once every attempt has failed the
    completion comes back with an empty ``raw_text``, which downstream stages
    read as "model unavailable".
    """
    if max_retries is None:
        max_retries = config.LLM_MAX_RETRIES

    def attempt_call(attempt: int) -> str:
        logger.info("llm_attempt_started", attempt=attempt, max_attempts=max_retries)
        try:
            text = service.complete(
                system,
                user,
                params.temperature,
                params.max_tokens,
                params.top_p,
            )
        except RateLimitedError:
            LLM_CALL_ATTEMPTS.labels(outcome="rate_limited").inc()
            raise
        except Exception:
            LLM_CALL_ATTEMPTS.labels(outcome="error").inc()
            raise
        LLM_CALL_ATTEMPTS.labels(outcome="success").inc()
        logger.info("llm_response_received", attempt=attempt, length=len(text or ""), preview=preview(text))
        return text or ""

    outcome = with_retries(
        max_retries,
        linear_backoff(config.LLM_RETRY_BASE_DELAY),
        attempt_call,
        sleep=sleep,
    )
    if outcome.ok:
        return ModelCompletion(raw_text=outcome.value, succeeded=True, attempt=outcome.attempts)

    rate_limited = isinstance(outcome.error, RateLimitedError)
    logger.warning(
        "llm_retries_exhausted",
        attempts=outcome.attempts,
        rate_limited=rate_limited,
        error=str(outcome.error),
    )
    return ModelCompletion(raw_text="", succeeded=False, attempt=outcome.attempts, rate_limited=rate_limited)
