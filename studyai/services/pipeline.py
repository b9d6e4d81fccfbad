"""
Generation pipeline shared by every call site.

BUILD_PROMPT -> CALL_MODEL -> EXTRACT -> NORMALIZE -> RETURN, with any
failure routed to the fallback generator. Summaries that parse but are too
short get exactly one more pass with the strengthened prompt.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable

import structlog

from studyai.models import GenerationRequest, Task
from studyai.services.extract import extract_text, parse_json
from studyai.services.fallback import fallback
from studyai.services.llm import LLMService, ModelParams, complete
from studyai.services.logging import log_performance
from studyai.services.monitoring import AI_GENERATION_REQUESTS
from studyai.services.normalize import is_usable, normalize, summary_word_count
from studyai.services.prompts import build_prompt

logger = structlog.get_logger()

MODEL_PARAMS = {
    Task.SUMMARY: ModelParams(temperature=0.05, max_tokens=8000, top_p=0.9),
    Task.QUIZ: ModelParams(temperature=0.3, max_tokens=6000),
    Task.FLASHCARDS: ModelParams(temperature=0.4, max_tokens=1500),
    Task.CHAT: ModelParams(temperature=0.3, max_tokens=1000),
    Task.ANALYSIS: ModelParams(temperature=0.2, max_tokens=1024),
}

SUMMARY_PASSES = 2


@dataclass(frozen=True)
class GenerationOutcome:
    result: Any
    source: str
    rate_limited: bool = False
    attempts: int = 0

    @property
    def mode(self) -> str:
        """Value for the ``X-Generation-Mode`` response header."""
        if self.source == "model":
            return "model"
        return "offline" if self.rate_limited else "fallback"


def _parse(task: Task, raw: str) -> Any:
    if task == Task.CHAT:
        return extract_text(raw)
    return parse_json(raw)


def _fall_back(request: GenerationRequest, reason: str, rate_limited: bool, attempts: int) -> GenerationOutcome:
    logger.warning(
        "generation_fallback",
        task=request.task.value,
        locale=request.locale,
        reason=reason,
        rate_limited=rate_limited,
        attempts=attempts,
    )
    AI_GENERATION_REQUESTS.labels(type=request.task.value, status="fallback").inc()
    return GenerationOutcome(
        result=fallback(request, rate_limited=rate_limited),
        source="fallback",
        rate_limited=rate_limited,
        attempts=attempts,
    )


@log_performance("generate")
def generate(
    request: GenerationRequest,
    service: LLMService,
    sleep: Callable[[float], None] = time.sleep,
) -> GenerationOutcome:
    """Run one generation request end to end. Never raises for model or parse failures."""
    params = MODEL_PARAMS[request.task]
    passes = SUMMARY_PASSES if request.task == Task.SUMMARY else 1
    attempts = 0

    for current in range(1, passes + 1):
        prompt = build_prompt(request, strengthened=current > 1)
        completion = complete(service, prompt.system, prompt.user, params, sleep=sleep)
        attempts += completion.attempt
        if not completion.succeeded:
            return _fall_back(request, "model_unavailable", completion.rate_limited, attempts)

        parsed = _parse(request.task, completion.raw_text)
        if parsed is None:
            return _fall_back(request, "unparsable_response", False, attempts)

        if not is_usable(request, parsed):
            if request.task != Task.SUMMARY:
                return _fall_back(request, "incomplete_response", False, attempts)
            summary = parsed.get("summary") if isinstance(parsed, dict) else None
            logger.info(
                "summary_too_short",
                level=request.param("level", "moderate"),
                words=summary_word_count(summary) if isinstance(summary, str) else 0,
                pass_number=current,
            )
            continue

        try:
            result = normalize(request, parsed)
        except Exception as e:
            logger.error("normalize_failed", task=request.task.value, error=str(e), exc_info=True)
            return _fall_back(request, "normalize_failed", False, attempts)

        AI_GENERATION_REQUESTS.labels(type=request.task.value, status="model").inc()
        logger.info("generation_completed", task=request.task.value, locale=request.locale, attempts=attempts)
        return GenerationOutcome(result=result, source="model", attempts=attempts)

    return _fall_back(request, "summary_too_short", False, attempts)
