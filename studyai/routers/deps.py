from typing import Optional

from fastapi import HTTPException, Request

from studyai import config
from studyai.services.llm import GroqService, LLMService

LOCALES = ("vi", "en")


def resolve_locale(request: Request, language: Optional[str] = None) -> str:
    """Body ``language`` wins, then ``X-Locale``, then an English ``Accept-Language``; default vi."""
    if language in LOCALES:
        return language
    header = (request.headers.get("x-locale") or "").strip().lower()
    if header in LOCALES:
        return header
    accept = (request.headers.get("accept-language") or "").strip().lower()
    return "en" if accept.startswith("en") else "vi"


def get_llm_service() -> LLMService:
    if not config.GROQ_API_KEY:
        raise HTTPException(status_code=500, detail="Missing GROQ_API_KEY on server")
    return GroqService()


def require_text(text: str, minimum: int) -> str:
    text = (text or "").strip()
    if len(text) < minimum:
        raise HTTPException(
            status_code=400,
            detail=f"Text content is required and should be at least {minimum} characters.",
        )
    return text
