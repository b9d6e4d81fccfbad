"""
Shared fixtures: a scripted LLM service and an app wired to it
"""
import os

# Read by studyai.config at import time
os.environ.setdefault("GROQ_API_KEY", "test-key")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LLM_RETRY_BASE_DELAY"] = "0"

import pytest

from studyai.models import GenerationRequest, Task


class FakeLLMService:
    """Replays scripted replies; an Exception instance in the script is raised instead."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    def complete(self, system, user, temperature, max_tokens, top_p=None):
        self.calls.append({
            "system": system,
            "user": user,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "top_p": top_p,
        })
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply


def no_sleep(seconds):
    return None


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from studyai.main import app

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def use_llm():
    """Install a scripted service for the generation endpoints."""
    from studyai.main import app
    from studyai.routers.deps import get_llm_service

    def install(*replies):
        service = FakeLLMService(*replies)
        app.dependency_overrides[get_llm_service] = lambda: service
        return service

    yield install
    app.dependency_overrides.clear()


def make_request(task, text="", locale="vi", **params):
    return GenerationRequest(task=Task(task), source_text=text, locale=locale, params=params)


LONG_TEXT = (
    "Pandas is a Python library for data analysis. A DataFrame is a two-dimensional labeled table. "
    "Series: a one-dimensional labeled array used for columns. "
    "Data cleaning removes missing values and fixes inconsistent records before any analysis starts. "
) * 3
