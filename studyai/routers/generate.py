from fastapi import APIRouter, Depends, HTTPException, Request, Response

from studyai.middleware.rate_limit import ai_generation_limit
from studyai.models import (
    ChatReply,
    ChatRequest,
    FlashcardRequest,
    FlashcardSet,
    GenerationRequest,
    QuizRequest,
    QuizResult,
    SummaryRequest,
    SummaryResult,
    Task,
)
from studyai.routers.deps import get_llm_service, require_text, resolve_locale
from studyai.services.llm import LLMService
from studyai.services.pipeline import generate

router = APIRouter(prefix="/api", tags=["generation"])

SUMMARY_MIN_CHARS = 100
QUIZ_MIN_CHARS = 50
FLASHCARD_MIN_CHARS = 20


def _run(generation: GenerationRequest, service: LLMService, response: Response):
    outcome = generate(generation, service)
    response.headers["X-Generation-Mode"] = outcome.mode
    return outcome.result


@router.post("/generate-summary", response_model=SummaryResult)
@ai_generation_limit()
def generate_summary(request: Request, response: Response, body: SummaryRequest, service: LLMService = Depends(get_llm_service)):
    text = require_text(body.text, SUMMARY_MIN_CHARS)
    generation = GenerationRequest(
        task=Task.SUMMARY,
        source_text=text,
        locale=resolve_locale(request, body.language),
        params={"level": body.level},
    )
    return _run(generation, service, response)


@router.post("/generate-quiz", response_model=QuizResult)
@ai_generation_limit()
def generate_quiz(request: Request, response: Response, body: QuizRequest, service: LLMService = Depends(get_llm_service)):
    text = require_text(body.text, QUIZ_MIN_CHARS)
    generation = GenerationRequest(
        task=Task.QUIZ,
        source_text=text,
        locale=resolve_locale(request, body.language),
        params={"num_questions": body.num_questions, "difficulty": body.difficulty},
    )
    return _run(generation, service, response)


@router.post("/generate-flashcards", response_model=FlashcardSet)
@ai_generation_limit()
def generate_flashcards(request: Request, response: Response, body: FlashcardRequest, service: LLMService = Depends(get_llm_service)):
    text = require_text(body.text, FLASHCARD_MIN_CHARS)
    generation = GenerationRequest(
        task=Task.FLASHCARDS,
        source_text=text,
        locale=resolve_locale(request, body.language),
        params={"num_cards": body.num_cards},
    )
    return _run(generation, service, response)


@router.post("/generate-chat", response_model=ChatReply)
@ai_generation_limit()
def generate_chat(request: Request, response: Response, body: ChatRequest, service: LLMService = Depends(get_llm_service)):
    question = (body.question or "").strip()
    if not question or body.lecture_data is None:
        raise HTTPException(status_code=400, detail="Missing required fields: question and lectureData")

    lecture = body.lecture_data
    history = [
        ("user" if message.type == "user" else "assistant", message.content)
        for message in (body.conversation_history or [])
        if message.content
    ]
    generation = GenerationRequest(
        task=Task.CHAT,
        source_text=lecture.content,
        locale=resolve_locale(request, body.language),
        params={
            "question": question,
            "filename": lecture.filename,
            "summary": lecture.summary,
            "key_points": [point.content for point in lecture.key_points if point.content],
            "objectives": [(objective.title, objective.description) for objective in lecture.objectives],
            "history": history,
        },
    )
    return _run(generation, service, response)
