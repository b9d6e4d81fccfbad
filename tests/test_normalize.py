"""
Unit tests for schema normalization
"""
import pytest

from studyai.models import ChatReply, DocumentAnalysis, FlashcardSet, QuizResult, SummaryResult
from studyai.services.fallback import CHAT_APOLOGY, STUDY_SKILL_QUESTIONS
from studyai.services.normalize import (
    DEFAULTS,
    as_answer_index,
    as_string_list,
    is_usable,
    normalize,
    summary_is_adequate,
)

from conftest import LONG_TEXT, make_request

OPTIONS = ["A. one", "B. two", "C. three", "D. four"]


def words(n):
    return " ".join(["word"] * n)


def valid_question(i=1):
    return {
        "id": f"q_{i}",
        "question": f"Question {i}?",
        "options": list(OPTIONS),
        "correctAnswer": 2,
        "explanation": "Because.",
        "difficulty": "hard",
        "category": "Basics",
    }


def valid_card(i=1):
    return {
        "id": f"card_{i}",
        "question": f"Term {i}?",
        "answer": f"Definition {i}.",
        "category": "Concepts",
        "difficulty": "easy",
        "tags": ["pandas"],
    }


class TestNullInput:
    @pytest.mark.parametrize("locale", ["vi", "en"])
    def test_every_task_returns_full_schema(self, locale):
        assert isinstance(normalize(make_request("summary", LONG_TEXT, locale), None), SummaryResult)
        assert isinstance(normalize(make_request("quiz", LONG_TEXT, locale, num_questions=5), None), QuizResult)
        assert isinstance(normalize(make_request("flashcards", LONG_TEXT, locale, num_cards=9), None), FlashcardSet)
        assert isinstance(normalize(make_request("analysis", LONG_TEXT, locale), None), DocumentAnalysis)

        reply = normalize(make_request("chat", LONG_TEXT, locale, question="?"), None)
        assert isinstance(reply, ChatReply)
        assert reply.response == CHAT_APOLOGY[locale]
        assert reply.success is False


class TestSummaryPolicy:
    def test_moderate_rejects_40_words(self):
        assert not summary_is_adequate(words(40), "moderate")

    def test_moderate_accepts_500_words(self):
        assert summary_is_adequate(words(500), "moderate")

    def test_level_thresholds(self):
        assert summary_is_adequate(words(150), "brief")
        assert not summary_is_adequate(words(149), "brief")
        assert not summary_is_adequate(words(399), "detailed")
        assert summary_is_adequate(words(400), "detailed")

    def test_non_string(self):
        assert not summary_is_adequate(None, "brief")
        assert not summary_is_adequate(["text"], "brief")

    def test_short_summary_falls_back(self):
        request = make_request("summary", LONG_TEXT, "en", level="moderate")
        result = normalize(request, {"summary": words(40)})
        assert result.summary.startswith("This document contains")


class TestSummaryNormalization:
    def test_missing_optional_fields_defaulted(self):
        request = make_request("summary", LONG_TEXT, "en", level="brief")
        summary = words(300)
        result = normalize(request, {
            "summary": summary,
            "objectives": [{"title": "Learn pandas", "importance": "critical", "estimatedTime": "0"}],
            "keyPoints": [{"content": "DataFrames", "examples": "df.head()"}],
        })
        assert result.summary == summary

        objective = result.objectives[0]
        assert objective.title == "Learn pandas"
        assert objective.id == "obj_1"
        assert objective.importance == "medium"
        assert objective.estimated_time == 30
        assert objective.description == DEFAULTS["en"]["objective_description"]

        point = result.key_points[0]
        assert point.content == "DataFrames"
        assert point.difficulty == "intermediate"
        assert point.examples == ["df.head()"]
        assert point.related_concepts == []

        assert result.insights.difficulty == "medium"
        assert result.insights.estimated_read_time == 10
        assert result.insights.learning_path.beginner

    def test_valid_input_unchanged(self):
        request = make_request("summary", LONG_TEXT, "vi", level="brief")
        payload = {
            "summary": words(200),
            "objectives": [{
                "id": "o1", "title": "T", "description": "D", "category": "C", "importance": "high",
                "estimatedTime": 15, "subObjectives": ["s"], "prerequisites": ["p"],
            }],
            "keyPoints": [],
            "insights": {
                "difficulty": "hard", "estimatedReadTime": 7, "keyConcepts": ["k"],
                "recommendations": ["r"], "strengths": ["s"], "improvements": ["i"],
                "learningPath": {"beginner": ["b"], "intermediate": ["m"], "advanced": ["a"]},
                "assessment": {"knowledgeCheck": ["k"], "practicalTasks": ["p"], "criticalThinking": ["c"]},
                "resources": {"additionalReading": ["r"], "tools": ["t"], "communities": ["c"]},
            },
        }
        result = normalize(request, payload)
        assert result.model_dump(by_alias=True) == payload


class TestQuizNormalization:
    def test_truncates_to_requested_count(self):
        request = make_request("quiz", LONG_TEXT, "en", num_questions=3)
        result = normalize(request, {"questions": [valid_question(i) for i in range(1, 8)]})
        assert len(result.questions) == 3
        assert result.questions[0].correct_answer == 2

    def test_bad_fields_coerced(self):
        request = make_request("quiz", LONG_TEXT, "vi", num_questions=5)
        result = normalize(request, {"questions": [{
            "question": "Pandas là gì?",
            "options": ["a", "b"],
            "correctAnswer": 9,
            "difficulty": "extreme",
        }]})
        question = result.questions[0]
        assert question.id == "q_1"
        assert question.options == DEFAULTS["vi"]["options"]
        assert question.correct_answer == 0
        assert question.difficulty == "medium"
        assert question.explanation == DEFAULTS["vi"]["answer_explanation"]

    def test_bare_array_accepted(self):
        request = make_request("quiz", LONG_TEXT, "en", num_questions=5)
        result = normalize(request, [valid_question()])
        assert len(result.questions) == 1

    def test_empty_falls_back(self):
        request = make_request("quiz", LONG_TEXT, "en", num_questions=5)
        result = normalize(request, {"questions": []})
        assert len(result.questions) == len(STUDY_SKILL_QUESTIONS["en"]) + 1


class TestFlashcardNormalization:
    def test_truncates_twelve_to_nine(self):
        request = make_request("flashcards", LONG_TEXT, "en", num_cards=9)
        result = normalize(request, [valid_card(i) for i in range(1, 13)])
        assert len(result.flashcards) == 9
        assert all(card.difficulty in ("easy", "medium", "hard") for card in result.flashcards)

    def test_wrapped_object_and_tags(self):
        request = make_request("flashcards", LONG_TEXT, "en", num_cards=9)
        card = valid_card()
        card["tags"] = "single"
        card["difficulty"] = None
        result = normalize(request, {"flashcards": [card]})
        assert result.flashcards[0].tags == ["single"]
        assert result.flashcards[0].difficulty == "medium"

    def test_tags_capped(self):
        request = make_request("flashcards", LONG_TEXT, "en", num_cards=9)
        card = valid_card()
        card["tags"] = [f"t{i}" for i in range(10)]
        result = normalize(request, [card])
        assert len(result.flashcards[0].tags) == 6


class TestChatAndAnalysis:
    def test_chat_text(self):
        reply = normalize(make_request("chat", LONG_TEXT, "en"), "Pandas is great!")
        assert reply.response == "Pandas is great!"
        assert reply.success

    def test_analysis_language_defaults_to_locale(self):
        request = make_request("analysis", LONG_TEXT, "en")
        result = normalize(request, {"topics": ["Pandas"], "difficulty": "easy", "language": "fr"})
        assert result.topics == ["Pandas"]
        assert result.difficulty == "easy"
        assert result.language == "en"
        assert result.key_concepts


class TestCoercionHelpers:
    @pytest.mark.parametrize("value,expected", [
        (2, 2), ("3", 3), ("B", 1), ("d.", 3), (-1, 0), (7, 0), (None, 0), (True, 0), ("C. three", 2),
    ])
    def test_answer_index(self, value, expected):
        assert as_answer_index(value, OPTIONS) == expected

    def test_string_list(self):
        assert as_string_list("x", []) == ["x"]
        assert as_string_list(["a", "", 3, None], []) == ["a", "3"]
        assert as_string_list({"a": 1}, ["d"]) == ["d"]

    def test_is_usable(self):
        assert not is_usable(make_request("quiz", LONG_TEXT), {"foo": 1})
        assert is_usable(make_request("quiz", LONG_TEXT), {"questions": [valid_question()]})
        assert not is_usable(make_request("chat", LONG_TEXT), "   ")
