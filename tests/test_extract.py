"""
Unit tests for pulling JSON and text out of model output
"""
import json

from studyai.services.extract import (
    extract_json,
    extract_text,
    parse_json,
    sanitize_json_text,
    strip_code_fences,
)


class TestExtractJson:
    def test_plain_object(self):
        assert json.loads(extract_json('{"summary": "ok"}')) == {"summary": "ok"}

    def test_fenced_block_with_prose(self):
        raw = 'Here is your quiz:\n```json\n{"questions": [{"id": "q_1"}]}\n```\nGood luck!'
        assert json.loads(extract_json(raw)) == {"questions": [{"id": "q_1"}]}

    def test_prose_around_array(self):
        raw = 'Sure! [{"question": "A?", "answer": "B"}] Hope this helps.'
        assert json.loads(extract_json(raw)) == [{"question": "A?", "answer": "B"}]

    def test_raw_newlines_inside_strings(self):
        raw = '{"summary": "line one\nline two\tend"}'
        assert parse_json(raw) == {"summary": "line one\nline two\tend"}

    def test_trailing_commas(self):
        raw = '{"tags": ["a", "b",], "n": 1,}'
        assert parse_json(raw) == {"tags": ["a", "b"], "n": 1}

    def test_control_characters_dropped(self):
        raw = '{"a": "x\x01y"}\x02'
        assert parse_json(raw) == {"a": "xy"}

    def test_no_json(self):
        assert extract_json("I cannot help with that") is None
        assert extract_json("") is None
        assert extract_json(None) is None

    def test_skips_bracket_in_prose(self):
        raw = 'Use {braces} for sets, here it is: {"ok": true}'
        assert parse_json(raw) == {"ok": True}

    def test_citation_in_prose_does_not_hide_payload(self):
        raw = 'Here are the questions based on section [1] of the notes:\n{"questions": [{"id": "q_1"}]}'
        assert parse_json(raw) == {"questions": [{"id": "q_1"}]}

    def test_widest_span_wins_among_plain_values(self):
        assert parse_json("Scores [1] and then [1, 2, 3]") == [1, 2, 3]

    def test_idempotent(self):
        raw = '```json\n{"summary": "Tóm tắt\nbài giảng", "items": [1, 2,],}\n```'
        once = extract_json(raw)
        assert once is not None
        assert extract_json(once) == once


class TestTruncationRepair:
    def test_truncated_array_keeps_complete_items(self):
        raw = '[{"question": "Q1", "answer": "A1"}, {"question": "Q2", "answer": "A2"}, {"question": "Q3", "ans'
        value = parse_json(raw)
        assert value == [
            {"question": "Q1", "answer": "A1"},
            {"question": "Q2", "answer": "A2"},
        ]

    def test_truncated_nested_object(self):
        raw = '{"questions": [{"id": "q_1", "options": ["a", "b"]}, {"id": "q_2", "opt'
        value = parse_json(raw)
        assert value == {"questions": [{"id": "q_1", "options": ["a", "b"]}]}

    def test_truncated_without_complete_element(self):
        assert extract_json('{"summary": "this never ends') is None
        assert extract_json('[{"question": "half') is None

    def test_unterminated_fence(self):
        raw = '```json\n[{"id": "card_1"}, {"id": "card_2"}, {"id": "ca'
        assert parse_json(raw) == [{"id": "card_1"}, {"id": "card_2"}]

    def test_partial_element_with_closed_inner_array_dropped(self):
        raw = (
            '[{"id": "card_1", "question": "Q1?", "answer": "A1.", "tags": ["t"]}, '
            '{"id": "card_2", "question": "Q2?", "tags": ["t"], "answ'
        )
        assert parse_json(raw) == [{"id": "card_1", "question": "Q1?", "answer": "A1.", "tags": ["t"]}]

    def test_partial_nested_object_dropped_from_wrapper(self):
        raw = (
            '{"questions": [{"id": "q_1", "options": ["a", "b", "c", "d"]}, '
            '{"id": "q_2", "options": ["a", "b", "c", "d"], "sub": [{"x": 1}], "expl'
        )
        assert parse_json(raw) == {"questions": [{"id": "q_1", "options": ["a", "b", "c", "d"]}]}

    def test_partial_member_of_outer_object_dropped(self):
        raw = '{"summary": "text", "objectives": [{"id": "o1"}], "insights": {"learningPath": {"beginner": ["a"], "adv'
        assert parse_json(raw) == {"summary": "text", "objectives": [{"id": "o1"}]}

    def test_repaired_output_reparses(self):
        raw = '{"flashcards": [{"q": "1"}, {"q": "2"}, {"q"'
        extracted = extract_json(raw)
        assert extracted is not None
        assert json.loads(extracted)["flashcards"]
        assert extract_json(extracted) == extracted


class TestHelpers:
    def test_strip_code_fences(self):
        assert strip_code_fences('```json\n{"a": 1}\n```').strip() == '{"a": 1}'
        assert strip_code_fences('```\n[1]\n```').strip() == "[1]"

    def test_sanitize_leaves_valid_json(self):
        text = '{"a": "b\\nc", "d": [1, 2]}'
        assert sanitize_json_text(text) == text


class TestExtractText:
    def test_unwraps_whole_fence(self):
        assert extract_text("```\nHello there\n```") == "Hello there"

    def test_keeps_inline_markdown(self):
        text = "Use `df.head()` to preview rows."
        assert extract_text(text) == text

    def test_empty(self):
        assert extract_text("   ") is None
        assert extract_text("\x00\x01") is None
        assert extract_text(None) is None
