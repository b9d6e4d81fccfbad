"""
Map whatever the model returned onto the strict result schemas.

Every field is checked on its own: valid values pass through untouched,
anything missing or mistyped is replaced with a locale default. The
functions here never raise and never return partially-typed data; a
payload that is unusable as a whole is handed to the fallback generator.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog

from studyai.models import (
    Assessment,
    ChatReply,
    DocumentAnalysis,
    Flashcard,
    FlashcardSet,
    GenerationRequest,
    Insights,
    KeyPoint,
    LearningPath,
    Objective,
    QuizQuestion,
    QuizResult,
    Resources,
    SummaryResult,
    Task,
)
from studyai.services.fallback import (
    default_assessment,
    default_learning_path,
    default_resources,
    fallback,
)

logger = structlog.get_logger()

DIFFICULTIES = ("easy", "medium", "hard")
IMPORTANCES = ("high", "medium", "low")
KEY_POINT_DIFFICULTIES = ("basic", "intermediate", "advanced")

MAX_OBJECTIVES = 10
MAX_KEY_POINTS = 10
MAX_TAGS = 6
OPTION_COUNT = 4
MAX_MINUTES = 10000

# Summary content policy: the retry-path thresholds
SUMMARY_MIN_WORDS = {"brief": 150, "moderate": 200, "detailed": 400}
SUMMARY_MIN_CHARS = 100

DEFAULTS = {
    "vi": {
        "objective_title": "Mục tiêu học tập",
        "objective_description": "Mô tả mục tiêu",
        "category": "Tổng quan",
        "sub_objectives": ["Hiểu rõ các khái niệm cơ bản trong tài liệu", "Áp dụng kiến thức vào tình huống thực tế", "Đánh giá và phân tích thông tin"],
        "prerequisites": ["Kiến thức nền tảng về chủ đề", "Kỹ năng đọc hiểu và phân tích"],
        "key_point": "Điểm chính",
        "explanation": "Giải thích chi tiết về điểm này",
        "examples": ["Ví dụ thực tế về ứng dụng kiến thức", "Ví dụ minh họa các khái niệm chính", "Ví dụ về tình huống thực tế"],
        "practice_questions": ["Làm thế nào để áp dụng kiến thức này vào thực tế?", "Bạn có thể giải thích khái niệm này cho người khác không?", "Điểm này liên quan thế nào đến các khái niệm khác?"],
        "question": "Câu hỏi mẫu",
        "options": ["A. Lựa chọn A", "B. Lựa chọn B", "C. Lựa chọn C", "D. Lựa chọn D"],
        "answer_explanation": "Giải thích đáp án",
        "card_question": "Câu hỏi?",
        "card_answer": "Trả lời.",
    },
    "en": {
        "objective_title": "Learning objective",
        "objective_description": "Objective description",
        "category": "Overview",
        "sub_objectives": ["Understand the basic concepts in the document", "Apply the knowledge to real situations", "Evaluate and analyze the information"],
        "prerequisites": ["Background knowledge of the topic", "Reading comprehension and analysis skills"],
        "key_point": "Key point",
        "explanation": "Detailed explanation of this point",
        "examples": ["A practical example of applying this knowledge", "An example illustrating the main concepts", "An example from a real situation"],
        "practice_questions": ["How can you apply this knowledge in practice?", "Can you explain this concept to someone else?", "How does this point relate to other concepts?"],
        "question": "Sample question",
        "options": ["A. Option A", "B. Option B", "C. Option C", "D. Option D"],
        "answer_explanation": "Answer explanation",
        "card_question": "Question?",
        "card_answer": "Answer.",
    },
}


# ----------------- Field coercion -----------------

def as_text(value: Any, default: str) -> str:
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        value = value.strip()
        return value or default
    return default


def as_choice(value: Any, allowed, default: str) -> str:
    if isinstance(value, str) and value.strip().lower() in allowed:
        return value.strip().lower()
    return default


def as_positive_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)) and 1 <= value < MAX_MINUTES:
        return int(value)
    if isinstance(value, str) and value.strip().isdigit() and int(value.strip()) >= 1:
        return int(value.strip())
    return default


def as_string_list(value: Any, default: Optional[List[str]] = None, limit: Optional[int] = None) -> List[str]:
    """Array of non-empty strings; a bare string is wrapped, anything else defaulted."""
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return list(default or [])
    items = [as_text(v, "") for v in value]
    items = [item for item in items if item]
    if not items:
        return list(default or [])[:limit] if limit else list(default or [])
    return items[:limit] if limit else items


def as_answer_index(value: Any, options: List[str]) -> int:
    """0-based correct answer; accepts ints, digit strings and option letters."""
    index = None
    if isinstance(value, bool):
        index = None
    elif isinstance(value, int):
        index = value
    elif isinstance(value, float) and value.is_integer():
        index = int(value)
    elif isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            index = int(text)
        elif text and text[0].upper() in "ABCD" and (len(text) == 1 or text[1] in ".): "):
            index = "ABCD".index(text[0].upper())
        else:
            # the model sometimes repeats the option text instead of its index
            for i, option in enumerate(options):
                if text and text == option:
                    index = i
                    break
    if index is None or index < 0 or index >= OPTION_COUNT:
        return 0
    return index


def _items(value: Any) -> List[Dict]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


# ----------------- Summary -----------------

def summary_word_count(text: str) -> int:
    return len((text or "").split())


def summary_is_adequate(summary: Any, level: str) -> bool:
    """A syntactically valid but short summary is a quality failure."""
    if not isinstance(summary, str):
        return False
    text = summary.strip()
    return (
        len(text) >= SUMMARY_MIN_CHARS
        and summary_word_count(text) >= SUMMARY_MIN_WORDS.get(level, SUMMARY_MIN_WORDS["moderate"])
    )


def _objective(item: Dict, index: int, d: Dict) -> Objective:
    return Objective(
        id=as_text(item.get("id"), f"obj_{index}"),
        title=as_text(item.get("title"), d["objective_title"]),
        description=as_text(item.get("description"), d["objective_description"]),
        category=as_text(item.get("category"), d["category"]),
        importance=as_choice(item.get("importance"), IMPORTANCES, "medium"),
        estimated_time=as_positive_int(item.get("estimatedTime"), 30),
        sub_objectives=as_string_list(item.get("subObjectives"), d["sub_objectives"]),
        prerequisites=as_string_list(item.get("prerequisites"), d["prerequisites"]),
    )


def _key_point(item: Dict, index: int, d: Dict) -> KeyPoint:
    return KeyPoint(
        id=as_text(item.get("id"), f"key_{index}"),
        content=as_text(item.get("content"), d["key_point"]),
        category=as_text(item.get("category"), d["category"]),
        difficulty=as_choice(item.get("difficulty"), KEY_POINT_DIFFICULTIES, "intermediate"),
        related_concepts=as_string_list(item.get("relatedConcepts"), []),
        explanation=as_text(item.get("explanation"), d["explanation"]),
        examples=as_string_list(item.get("examples"), d["examples"]),
        practice_questions=as_string_list(item.get("practiceQuestions"), d["practice_questions"]),
    )


def _learning_path(value: Any, locale: str) -> LearningPath:
    default = default_learning_path(locale)
    if not isinstance(value, dict):
        return default
    return LearningPath(
        beginner=as_string_list(value.get("beginner"), default.beginner),
        intermediate=as_string_list(value.get("intermediate"), default.intermediate),
        advanced=as_string_list(value.get("advanced"), default.advanced),
    )


def _assessment(value: Any, locale: str) -> Assessment:
    default = default_assessment(locale)
    if not isinstance(value, dict):
        return default
    return Assessment(
        knowledge_check=as_string_list(value.get("knowledgeCheck"), default.knowledge_check),
        practical_tasks=as_string_list(value.get("practicalTasks"), default.practical_tasks),
        critical_thinking=as_string_list(value.get("criticalThinking"), default.critical_thinking),
    )


def _resources(value: Any, locale: str) -> Resources:
    default = default_resources(locale)
    if not isinstance(value, dict):
        return default
    return Resources(
        additional_reading=as_string_list(value.get("additionalReading"), default.additional_reading),
        tools=as_string_list(value.get("tools"), default.tools),
        communities=as_string_list(value.get("communities"), default.communities),
    )


def _insights(value: Any, locale: str) -> Insights:
    value = value if isinstance(value, dict) else {}
    return Insights(
        difficulty=as_choice(value.get("difficulty"), DIFFICULTIES, "medium"),
        estimated_read_time=as_positive_int(value.get("estimatedReadTime"), 10),
        key_concepts=as_string_list(value.get("keyConcepts"), []),
        recommendations=as_string_list(value.get("recommendations"), []),
        strengths=as_string_list(value.get("strengths"), []),
        improvements=as_string_list(value.get("improvements"), []),
        learning_path=_learning_path(value.get("learningPath"), locale),
        assessment=_assessment(value.get("assessment"), locale),
        resources=_resources(value.get("resources"), locale),
    )


def normalize_summary(request: GenerationRequest, data: Any) -> SummaryResult:
    level = request.param("level", "moderate")
    summary = data.get("summary") if isinstance(data, dict) else None
    if not summary_is_adequate(summary, level):
        words = summary_word_count(summary) if isinstance(summary, str) else 0
        logger.info("summary_rejected", level=level, words=words)
        return fallback(request)

    d = DEFAULTS[request.locale]
    objectives = _items(data.get("objectives"))[:MAX_OBJECTIVES]
    key_points = _items(data.get("keyPoints"))[:MAX_KEY_POINTS]
    return SummaryResult(
        summary=data["summary"].strip(),
        objectives=[_objective(item, i, d) for i, item in enumerate(objectives, 1)],
        key_points=[_key_point(item, i, d) for i, item in enumerate(key_points, 1)],
        insights=_insights(data.get("insights"), request.locale),
    )


# ----------------- Quiz -----------------

def _options(value: Any, d: Dict) -> List[str]:
    if isinstance(value, list) and len(value) == OPTION_COUNT:
        options = [as_text(v, "") for v in value]
        if all(options):
            return options
    return list(d["options"])


def _question(item: Dict, index: int, d: Dict) -> QuizQuestion:
    options = _options(item.get("options"), d)
    return QuizQuestion(
        id=as_text(item.get("id"), f"q_{index}"),
        question=as_text(item.get("question"), d["question"]),
        options=options,
        correct_answer=as_answer_index(item.get("correctAnswer"), options),
        explanation=as_text(item.get("explanation"), d["answer_explanation"]),
        difficulty=as_choice(item.get("difficulty"), DIFFICULTIES, "medium"),
        category=as_text(item.get("category"), d["category"]),
    )


def normalize_quiz(request: GenerationRequest, data: Any) -> QuizResult:
    items = _items(data.get("questions")) if isinstance(data, dict) else _items(data)
    if not items:
        return fallback(request)
    limit = max(1, int(request.param("num_questions", len(items))))
    d = DEFAULTS[request.locale]
    return QuizResult(questions=[_question(item, i, d) for i, item in enumerate(items[:limit], 1)])


# ----------------- Flashcards -----------------

def _card(item: Dict, index: int, d: Dict) -> Flashcard:
    return Flashcard(
        id=as_text(item.get("id"), f"card_{index}"),
        question=as_text(item.get("question", item.get("front")), d["card_question"]),
        answer=as_text(item.get("answer", item.get("back")), d["card_answer"]),
        category=as_text(item.get("category"), d["category"]),
        difficulty=as_choice(item.get("difficulty"), DIFFICULTIES, "medium"),
        tags=as_string_list(item.get("tags"), [], limit=MAX_TAGS),
    )


def normalize_flashcards(request: GenerationRequest, data: Any) -> FlashcardSet:
    items = _items(data.get("flashcards")) if isinstance(data, dict) else _items(data)
    if not items:
        return fallback(request)
    limit = max(1, int(request.param("num_cards", len(items))))
    d = DEFAULTS[request.locale]
    return FlashcardSet(flashcards=[_card(item, i, d) for i, item in enumerate(items[:limit], 1)])


# ----------------- Chat -----------------

def normalize_chat(request: GenerationRequest, data: Any) -> ChatReply:
    text = as_text(data, "")
    if not text:
        return fallback(request)
    return ChatReply(response=text, success=True)


# ----------------- Document analysis -----------------

def normalize_analysis(request: GenerationRequest, data: Any) -> DocumentAnalysis:
    if not isinstance(data, dict):
        return fallback(request)
    default = fallback(request)
    language = data.get("language")
    return DocumentAnalysis(
        topics=as_string_list(data.get("topics"), default.topics),
        difficulty=as_choice(data.get("difficulty"), DIFFICULTIES, "medium"),
        key_concepts=as_string_list(data.get("keyConcepts"), default.key_concepts),
        recommendations=as_string_list(data.get("recommendations"), default.recommendations),
        estimated_read_time=as_positive_int(data.get("estimatedReadTime"), default.estimated_read_time),
        language=language if language in ("vi", "en") else request.locale,
    )


def is_usable(request: GenerationRequest, data: Any) -> bool:
    """Whether ``data`` carries enough for ``normalize`` to keep model content."""
    if data is None:
        return False
    if request.task == Task.SUMMARY:
        summary = data.get("summary") if isinstance(data, dict) else None
        return summary_is_adequate(summary, request.param("level", "moderate"))
    if request.task == Task.QUIZ:
        return bool(_items(data.get("questions")) if isinstance(data, dict) else _items(data))
    if request.task == Task.FLASHCARDS:
        return bool(_items(data.get("flashcards")) if isinstance(data, dict) else _items(data))
    if request.task == Task.CHAT:
        return bool(as_text(data, ""))
    return isinstance(data, dict)


def normalize(request: GenerationRequest, data: Any):
    """Schema-complete result for ``request.task``; ``None`` goes straight to the fallback."""
    if data is None:
        return fallback(request)
    if request.task == Task.SUMMARY:
        return normalize_summary(request, data)
    if request.task == Task.QUIZ:
        return normalize_quiz(request, data)
    if request.task == Task.FLASHCARDS:
        return normalize_flashcards(request, data)
    if request.task == Task.CHAT:
        return normalize_chat(request, data)
    if request.task == Task.ANALYSIS:
        return normalize_analysis(request, data)
    raise ValueError(f"Unknown task: {request.task}")
