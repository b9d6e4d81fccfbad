import time

from fastapi import APIRouter, Depends, File, HTTPException, Request, Response, UploadFile

from studyai.middleware.rate_limit import file_processing_limit
from studyai.models import FileInsights, FileMetadata, GenerationRequest, ProcessedFile, Task
from studyai.routers.deps import get_llm_service, resolve_locale
from studyai.services.documents import DocumentError, extract_document
from studyai.services.llm import LLMService
from studyai.services.pipeline import generate

router = APIRouter(prefix="/api", tags=["files"])

EXTRACTION_CONFIDENCE = 0.95


@router.post("/process-file", response_model=ProcessedFile)
@file_processing_limit()
def process_file(request: Request, response: Response, file: UploadFile = File(...), service: LLMService = Depends(get_llm_service)):
    content = file.file.read()
    try:
        document = extract_document(file.filename, content, file.content_type or "")
    except DocumentError as e:
        raise HTTPException(status_code=400, detail=str(e))

    locale = resolve_locale(request)
    outcome = generate(
        GenerationRequest(task=Task.ANALYSIS, source_text=document.text, locale=locale),
        service,
    )
    analysis = outcome.result
    response.headers["X-Generation-Mode"] = outcome.mode

    return ProcessedFile(
        id=str(int(time.time() * 1000)),
        filename=file.filename,
        type=file.content_type or "",
        size=len(content),
        content=document.text,
        extracted_text=document.text,
        metadata=FileMetadata(
            pages=document.pages,
            word_count=len(document.text.split()),
            language=analysis.language,
            topics=analysis.topics,
            confidence=EXTRACTION_CONFIDENCE,
        ),
        ai_insights=FileInsights(
            difficulty=analysis.difficulty,
            estimated_read_time=analysis.estimated_read_time,
            key_concepts=analysis.key_concepts,
            recommendations=analysis.recommendations,
        ),
    )
