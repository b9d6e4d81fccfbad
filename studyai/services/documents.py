"""
Text extraction for uploaded study material (PDF, DOCX, TXT)
"""
from __future__ import annotations

import io
import re
from dataclasses import dataclass

import structlog

logger = structlog.get_logger()

MAX_PDF_PAGES = 50
MIN_EXTRACTED_CHARS = 50

BLANK_LINES_RE = re.compile(r"\n\s*\n+")
SPACES_RE = re.compile(r"[ \t\f\v\r]+")


class DocumentError(ValueError):
    """The upload cannot be turned into readable text."""


class UnsupportedFileType(DocumentError):
    pass


@dataclass(frozen=True)
class ExtractedDocument:
    text: str
    pages: int = 1


def clean_text(text: str) -> str:
    text = SPACES_RE.sub(" ", text or "")
    text = BLANK_LINES_RE.sub("\n\n", text)
    return "\n".join(line.strip() for line in text.split("\n")).strip()


def detect_kind(filename: str, content_type: str = "") -> str:
    name = (filename or "").lower()
    content_type = (content_type or "").lower()
    if "pdf" in content_type or name.endswith(".pdf"):
        return "pdf"
    if "word" in content_type or name.endswith(".docx"):
        return "docx"
    if content_type.startswith("text") or name.endswith(".txt"):
        return "txt"
    raise UnsupportedFileType("Unsupported file type. Please upload PDF, DOCX, or TXT files.")


def _read_pdf(content: bytes) -> ExtractedDocument:
    from pypdf import PdfReader

    try:
        reader = PdfReader(io.BytesIO(content))
        pages = reader.pages[:MAX_PDF_PAGES]
        text = "\n".join(page.extract_text() or "" for page in pages)
    except Exception as e:
        raise DocumentError(f"PDF parse error: {e}") from e
    return ExtractedDocument(text=text, pages=max(1, len(reader.pages)))


def _read_docx(content: bytes) -> ExtractedDocument:
    import docx

    try:
        document = docx.Document(io.BytesIO(content))
    except Exception as e:
        raise DocumentError(f"DOCX parse error: {e}") from e
    return ExtractedDocument(text="\n".join(p.text for p in document.paragraphs))


def extract_document(filename: str, content: bytes, content_type: str = "") -> ExtractedDocument:
    """Readable text of an upload; raises ``DocumentError`` when there is not enough of it."""
    kind = detect_kind(filename, content_type)
    if kind == "pdf":
        extracted = _read_pdf(content)
    elif kind == "docx":
        extracted = _read_docx(content)
    else:
        extracted = ExtractedDocument(text=content.decode("utf-8", errors="ignore"))

    text = clean_text(extracted.text)
    logger.info("document_extracted", filename=filename, kind=kind, pages=extracted.pages, chars=len(text))
    if len(text) < MIN_EXTRACTED_CHARS:
        raise DocumentError(
            "Could not extract meaningful text from the file. Please check if the file contains readable text."
        )
    return ExtractedDocument(text=text, pages=extracted.pages)
