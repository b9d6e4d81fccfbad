from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


Locale = Literal["vi", "en"]
DetailLevel = Literal["brief", "moderate", "detailed"]
Difficulty = Literal["easy", "medium", "hard"]
Importance = Literal["high", "medium", "low"]
KeyPointDifficulty = Literal["basic", "intermediate", "advanced"]


class Task(str, Enum):
    SUMMARY = "summary"
    QUIZ = "quiz"
    FLASHCARDS = "flashcards"
    CHAT = "chat"
    ANALYSIS = "analysis"


class CamelModel(BaseModel):
    """Base for every payload that crosses the HTTP boundary (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ----------------- Pipeline input -----------------

class GenerationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    task: Task
    source_text: str
    locale: Locale = "vi"
    params: Dict[str, Any] = Field(default_factory=dict)

    def param(self, name: str, default: Any = None) -> Any:
        return self.params.get(name, default)


# ----------------- Summary -----------------

class Objective(CamelModel):
    id: str
    title: str
    description: str
    category: str
    importance: Importance
    estimated_time: int = Field(gt=0)
    sub_objectives: List[str]
    prerequisites: List[str]


class KeyPoint(CamelModel):
    id: str
    content: str
    category: str
    difficulty: KeyPointDifficulty
    related_concepts: List[str]
    explanation: str
    examples: List[str]
    practice_questions: List[str]


class LearningPath(CamelModel):
    beginner: List[str]
    intermediate: List[str]
    advanced: List[str]


class Assessment(CamelModel):
    knowledge_check: List[str]
    practical_tasks: List[str]
    critical_thinking: List[str]


class Resources(CamelModel):
    additional_reading: List[str]
    tools: List[str]
    communities: List[str]


class Insights(CamelModel):
    difficulty: Difficulty
    estimated_read_time: int = Field(gt=0)
    key_concepts: List[str]
    recommendations: List[str]
    strengths: List[str]
    improvements: List[str]
    learning_path: LearningPath
    assessment: Assessment
    resources: Resources


class SummaryResult(CamelModel):
    summary: str
    objectives: List[Objective]
    key_points: List[KeyPoint]
    insights: Insights


# ----------------- Quiz -----------------

class QuizQuestion(CamelModel):
    id: str
    question: str
    options: List[str] = Field(min_length=4, max_length=4)
    correct_answer: int = Field(ge=0, le=3)
    explanation: str
    difficulty: Difficulty
    category: str


class QuizResult(CamelModel):
    questions: List[QuizQuestion] = Field(min_length=1)


# ----------------- Flashcards -----------------

class Flashcard(CamelModel):
    id: str
    question: str
    answer: str
    category: str
    difficulty: Difficulty
    tags: List[str] = Field(max_length=6)


class FlashcardSet(CamelModel):
    flashcards: List[Flashcard] = Field(min_length=1)


# ----------------- Chat -----------------

class ChatReply(CamelModel):
    response: str = Field(min_length=1)
    success: bool = True


# ----------------- Document analysis -----------------

class DocumentAnalysis(CamelModel):
    topics: List[str]
    difficulty: Difficulty
    key_concepts: List[str]
    recommendations: List[str]
    estimated_read_time: int = Field(gt=0)
    language: Locale


class FileMetadata(CamelModel):
    pages: int
    word_count: int
    language: Locale
    topics: List[str]
    confidence: float


class FileInsights(CamelModel):
    difficulty: Difficulty
    estimated_read_time: int
    key_concepts: List[str]
    recommendations: List[str]


class ProcessedFile(CamelModel):
    id: str
    filename: str
    type: str
    size: int
    content: str
    extracted_text: str
    summary: str = ""
    metadata: FileMetadata
    ai_insights: FileInsights


# ----------------- Request bodies -----------------

class SummaryRequest(CamelModel):
    text: str = ""
    level: DetailLevel = "moderate"
    language: Optional[Locale] = None


class QuizRequest(CamelModel):
    text: str = ""
    num_questions: int = Field(default=12, ge=1, le=50)
    difficulty: Literal["easy", "medium", "hard", "mixed"] = "mixed"
    language: Optional[Locale] = None


class FlashcardRequest(CamelModel):
    text: str = ""
    num_cards: int = Field(default=9, ge=1, le=50)
    language: Optional[Locale] = None


class LectureKeyPoint(CamelModel):
    content: str = ""


class LectureObjective(CamelModel):
    title: str = ""
    description: str = ""


class LectureData(CamelModel):
    content: str = ""
    summary: str = ""
    filename: str = ""
    key_points: List[LectureKeyPoint] = Field(default_factory=list)
    objectives: List[LectureObjective] = Field(default_factory=list)


class ChatMessage(CamelModel):
    type: str = "user"
    content: str = ""


class ChatRequest(CamelModel):
    question: str = ""
    lecture_data: Optional[LectureData] = None
    conversation_history: Optional[List[ChatMessage]] = None
    language: Optional[Locale] = None
