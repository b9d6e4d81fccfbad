"""
Unit tests for deterministic fallback content
"""
import pytest

from studyai.services.fallback import (
    CHAT_APOLOGY,
    CHAT_BUSY_APOLOGY,
    classify_topic,
    difficulty_for,
    estimated_read_time,
    extract_keywords,
    fallback,
)

from conftest import LONG_TEXT, make_request


class TestSignals:
    def test_read_time_has_floor(self):
        assert estimated_read_time("a few words") == 5
        assert estimated_read_time(" ".join(["w"] * 3000)) == 20

    def test_difficulty(self):
        assert difficulty_for("short") == "easy"
        assert difficulty_for(" ".join(["w"] * 900)) == "medium"
        assert difficulty_for(" ".join(["w"] * 2500)) == "hard"

    def test_keywords(self):
        keywords = extract_keywords("These pandas dataframes, these pandas series and other columns")
        assert keywords == ["pandas", "dataframes", "series", "columns"]

    def test_topic(self):
        topic, specific = classify_topic("Lab 3: data visualization with pandas", "en")
        assert topic == "data science practice and analysis"
        assert specific == "about data visualization"

        topic, specific = classify_topic("Lập trình Python cơ bản", "vi")
        assert topic == "lập trình và phát triển"
        assert specific == ""


class TestFallbackContent:
    @pytest.mark.parametrize("locale", ["vi", "en"])
    def test_deterministic(self, locale):
        request = make_request("summary", LONG_TEXT, locale, level="detailed")
        assert fallback(request) == fallback(request)

    def test_summary_locale(self):
        vi = fallback(make_request("summary", LONG_TEXT, "vi", level="brief"))
        en = fallback(make_request("summary", LONG_TEXT, "en", level="brief"))
        assert vi.summary.startswith("Tài liệu này chứa")
        assert en.summary.startswith("This document contains")
        assert len(en.objectives) == 4
        assert len(en.key_points) == 3
        assert en.insights.learning_path.beginner[0].startswith("Step 1")

    @pytest.mark.parametrize("locale", ["vi", "en"])
    def test_quiz_shape(self, locale):
        result = fallback(make_request("quiz", "x" * 60, locale, num_questions=5))
        assert len(result.questions) >= 1
        for question in result.questions:
            assert len(question.options) == 4
            assert 0 <= question.correct_answer <= 3
        # 1 word -> 5 minutes floor; option B is the answer
        assert result.questions[0].options[1].startswith("B. 5")

    def test_flashcards_from_definitions(self):
        result = fallback(make_request("flashcards", LONG_TEXT, "en", num_cards=2))
        assert len(result.flashcards) == 2
        assert result.flashcards[0].id == "card_1"

    def test_flashcards_static_when_text_unusable(self):
        result = fallback(make_request("flashcards", "tiny", "vi", num_cards=9))
        assert [card.id for card in result.flashcards] == ["card_1", "card_2"]

    def test_chat_apologies(self):
        request = make_request("chat", "", "en", question="hi")
        assert fallback(request).response == CHAT_APOLOGY["en"]
        busy = fallback(request, rate_limited=True)
        assert busy.response == CHAT_BUSY_APOLOGY["en"]
        assert busy.success is False

    def test_analysis(self):
        result = fallback(make_request("analysis", "z" * 4000, "vi"))
        assert result.estimated_read_time == 20
        assert result.language == "vi"
        assert result.topics[0] == "Chủ đề chính"
