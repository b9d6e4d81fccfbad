"""
Prompt construction for every generation task.

All builders are pure functions of the request. The requested language is
stated at the top of each prompt, again inside the output contract and once
more at the end; small models drift into English half-way through a long
Vietnamese answer otherwise.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Dict, List

from studyai.models import GenerationRequest, Task

SUMMARY_TRUNCATE_OVER = 6000
SUMMARY_HEAD_CHARS = 3000
SUMMARY_TAIL_CHARS = 1000
QUIZ_SOURCE_CHARS = 6000
FLASHCARD_SOURCE_CHARS = 3000
ANALYSIS_SOURCE_CHARS = 8000
CHAT_PREVIEW_CHARS = 500
CHAT_HISTORY_TURNS = 10

LANGUAGE_NAMES = {"vi": "Tiếng Việt (Vietnamese)", "en": "English"}

ELISION_MARKER = {
    "vi": "... (nội dung giữa được bỏ qua do độ dài) ...",
    "en": "... (middle section omitted for length) ...",
}

SUMMARY_WORD_TARGETS = {
    "brief": (200, 300),
    "moderate": (400, 500),
    "detailed": (600, 800),
}

# Minimum length demanded on the second, strengthened summary attempt
STRENGTHENED_MIN_WORDS = {"brief": 400, "moderate": 800, "detailed": 1200}


@dataclass(frozen=True)
class Prompt:
    system: str
    user: str


def truncate_source(text: str, limit: int) -> str:
    text = text or ""
    return text if len(text) <= limit else text[:limit]


def head_tail(text: str, locale: str, threshold: int = SUMMARY_TRUNCATE_OVER,
              head: int = SUMMARY_HEAD_CHARS, tail: int = SUMMARY_TAIL_CHARS) -> str:
    """Keep the beginning and the end of a long document around an elision marker."""
    text = text or ""
    if len(text) <= threshold:
        return text
    return f"{text[:head]}\n\n{ELISION_MARKER[locale]}\n\n{text[len(text) - tail:]}"


def language_rules(locale: str) -> str:
    lang = LANGUAGE_NAMES[locale]
    return (
        f"LANGUAGE: {lang}\n"
        f"- ALL returned content MUST be written in {lang}.\n"
        "- DO NOT mix languages.\n"
        f"- CURRENT REQUESTED LANGUAGE: {lang}. ABSOLUTELY DO NOT WRITE IN ANY OTHER LANGUAGE."
    )


def language_reminder(locale: str) -> str:
    lang = LANGUAGE_NAMES[locale]
    return f"FINAL LANGUAGE WARNING: every JSON string value MUST be in {lang}."


def json_only_rule() -> str:
    return "Return ONLY the JSON. No introduction, no explanation, no Markdown fences."


def system_message(locale: str) -> str:
    lang = "Vietnamese" if locale == "vi" else "English"
    return (
        f"You are an AI study assistant that MUST respond in {lang} only. "
        f"NEVER mix languages. The user's requested language is {lang}."
    )


# ----------------- Summary -----------------

def _summary_example(locale: str) -> Dict:
    vi = locale == "vi"
    return {
        "summary": "Viết tóm tắt thực tế về nội dung tài liệu ở đây" if vi else "Write the actual summary of the document here",
        "objectives": [{
            "id": "obj_1",
            "title": "Tên mục tiêu học tập cụ thể" if vi else "Specific learning objective",
            "description": "Mô tả cách đạt được mục tiêu" if vi else "How to achieve the objective",
            "category": "Kiến thức cơ bản" if vi else "Basic Knowledge",
            "importance": "high|medium|low",
            "estimatedTime": 30,
            "subObjectives": ["..."],
            "prerequisites": ["..."],
        }],
        "keyPoints": [{
            "id": "key_1",
            "content": "Điểm chính quan trọng" if vi else "Important key point",
            "category": "Chủ đề" if vi else "Topic",
            "difficulty": "basic|intermediate|advanced",
            "relatedConcepts": ["..."],
            "explanation": "Giải thích chi tiết" if vi else "Detailed explanation",
            "examples": ["...", "...", "..."],
            "practiceQuestions": ["...", "...", "..."],
        }],
        "insights": {
            "difficulty": "easy|medium|hard",
            "estimatedReadTime": 15,
            "keyConcepts": ["..."],
            "recommendations": ["..."],
            "strengths": ["..."],
            "improvements": ["..."],
            "learningPath": {"beginner": ["..."], "intermediate": ["..."], "advanced": ["..."]},
            "assessment": {"knowledgeCheck": ["..."], "practicalTasks": ["..."], "criticalThinking": ["..."]},
            "resources": {"additionalReading": ["..."], "tools": ["..."], "communities": ["..."]},
        },
    }


def summary_prompt(request: GenerationRequest, strengthened: bool = False) -> Prompt:
    locale = request.locale
    level = request.param("level", "moderate")
    if level not in SUMMARY_WORD_TARGETS:
        level = "moderate"
    low, high = SUMMARY_WORD_TARGETS[level]
    content = head_tail(request.source_text, locale)
    lang = LANGUAGE_NAMES[locale]

    user = f"""You are an expert educator and academic document analyst. Write in {lang}.
IMPORTANT WARNING: DO NOT COPY THIS REQUEST INTO THE SUMMARY. WRITE ACTUAL CONTENT FROM THE DOCUMENT.

SUMMARY REQUIREMENT: a {level} summary of {low}-{high} words based only on the actual content of the document.
{language_rules(locale)}

MANDATORY CONTENT RULES:
- The summary MUST mention the main ideas, concepts and specific details of the document.
- DO NOT write a generic summary.
- The summary must have at least {low} words.
- objectives: specific learning objectives from the document, with 3-4 subObjectives and 2-3 prerequisites each.
- keyPoints: create 3-5 different keyPoints, each with 3 examples and 3 practiceQuestions.
- DO NOT use placeholders such as "Example 1" or "Question 1".

Return JSON with exactly this format (all values in {lang}):
{json.dumps(_summary_example(locale), ensure_ascii=False, indent=2)}

CONTENT TO ANALYZE:
\"\"\"
{content}
\"\"\"

{language_reminder(locale)}
- SUMMARY MUST HAVE AT LEAST {low} WORDS.
{json_only_rule()}"""

    if strengthened:
        user += f"""

IMPORTANT NOTE FOR RETRY:
- The previous summary was too short, you MUST write a longer one.
- MINIMUM {STRENGTHENED_MIN_WORDS[level]} words for the summary.
- Expand every idea and explain it in detail. DO NOT write a short summary."""

    return Prompt(system=system_message(locale), user=user)


# ----------------- Quiz -----------------

def quiz_prompt(request: GenerationRequest) -> Prompt:
    locale = request.locale
    vi = locale == "vi"
    num = request.param("num_questions", 12)
    difficulty = request.param("difficulty", "mixed")
    lang = LANGUAGE_NAMES[locale]
    distribution = (
        "40% easy, 40% medium, 20% hard" if difficulty == "mixed"
        else f"all questions {difficulty}"
    )
    example = {
        "questions": [{
            "id": "q_1",
            "question": "Câu hỏi trắc nghiệm?" if vi else "Multiple choice question?",
            "options": ["A. ...", "B. ...", "C. ...", "D. ..."],
            "correctAnswer": 0,
            "explanation": "Giải thích vì sao đáp án đúng" if vi else "Why this answer is correct and the others are wrong",
            "difficulty": "easy|medium|hard",
            "category": "Tên chủ đề/chương" if vi else "Specific topic/chapter name",
        }]
    }
    user = f"""You are an expert educator and test designer. Create {num} high-quality multiple choice questions from the following content.

{language_rules(locale)}

REQUIREMENTS:
- Create exactly {num} questions, no fewer.
- Cover concepts, definitions, applications, analysis and comparisons.
- Exactly 4 options (A, B, C, D) per question, only 1 correct answer, 3 plausible wrong answers.
- correctAnswer is the 0-based index of the correct option.
- Explain why the answer is correct and why the others are wrong.
- Difficulty distribution: {distribution}.
- ALL QUESTIONS, OPTIONS, EXPLANATIONS AND CATEGORIES MUST BE IN {lang.upper()}.

Return JSON with format:
{json.dumps(example, ensure_ascii=False, indent=2)}

Content:
\"\"\"
{truncate_source(request.source_text, QUIZ_SOURCE_CHARS)}
\"\"\"

{language_reminder(locale)}
{json_only_rule()}"""
    return Prompt(system=system_message(locale), user=user)


# ----------------- Flashcards -----------------

def flashcards_prompt(request: GenerationRequest) -> Prompt:
    locale = request.locale
    num = request.param("num_cards", 9)
    lang = LANGUAGE_NAMES[locale]
    user = f"""You are a smart study flashcard assistant.

Task:
- Create {num} high-quality flashcards from the content below.
- Return a plain JSON array only, with the schema: [{{"id", "question", "answer", "category", "difficulty", "tags"}}].

{language_rules(locale)}
- question, answer, category and tags MUST ALL be in {lang}.

Rules:
- Questions are short, clear, and focus on one idea.
- Answers are concise (2-5 sentences or bullet points).
- category follows the matching chapter/section.
- difficulty is one of "easy" | "medium" | "hard".
- tags is an array of 2-5 keywords.

Source content:
\"\"\"
{truncate_source(request.source_text, FLASHCARD_SOURCE_CHARS)}
\"\"\"

{language_reminder(locale)}
Return a single JSON array and nothing else."""
    return Prompt(system=system_message(locale), user=user)


# ----------------- Chat -----------------

def _chat_context(request: GenerationRequest) -> str:
    vi = request.locale == "vi"
    filename = request.param("filename") or ("bài giảng" if vi else "lecture")
    lines = [f"{'Tên tài liệu' if vi else 'Document name'}: {filename}", ""]

    summary = request.param("summary") or ""
    if summary:
        lines += [f"{'Tóm tắt' if vi else 'Summary'}: {summary}", ""]

    key_points: List[str] = request.param("key_points") or []
    if key_points:
        lines.append(f"{'Các điểm chính' if vi else 'Key points'}:")
        lines += [f"{i}. {point}" for i, point in enumerate(key_points, 1)]
        lines.append("")

    objectives = request.param("objectives") or []
    if objectives:
        lines.append(f"{'Mục tiêu học tập' if vi else 'Learning objectives'}:")
        lines += [f"{i}. {title}: {description}" for i, (title, description) in enumerate(objectives, 1)]
        lines.append("")

    content = request.source_text or ""
    if len(content) > CHAT_PREVIEW_CHARS:
        content = content[:CHAT_PREVIEW_CHARS] + "..."
    lines.append(f"{'Nội dung chính' if vi else 'Main content'}: {content}")
    return "\n".join(lines)


def _chat_history(request: GenerationRequest) -> str:
    vi = request.locale == "vi"
    history = (request.param("history") or [])[-CHAT_HISTORY_TURNS:]
    user_label = "Người dùng" if vi else "User"
    return "\n".join(
        f"{user_label if role == 'user' else 'AI'}: {content}" for role, content in history
    )


def chat_system_message(locale: str) -> str:
    vi = locale == "vi"
    lang = LANGUAGE_NAMES[locale]
    persona = (
        'Natural Vietnamese, refer to yourself as "mình" and to the user as "bạn"'
        if vi else "Natural, friendly and encouraging English"
    )
    return f"""You are a smart and friendly AI study assistant.

1. ROLE: support learning and research.
2. PERSONALITY: friendly, empathetic, encouraging.
3. LANGUAGE: {persona}; appropriate emojis are fine.

IMPORTANT: ALL answers MUST be in {lang}. DO NOT mix languages.

4. ABILITIES: explain the lecture content, answer study questions concisely and accurately, motivate the learner.
5. DO NOT paste the whole document into the answer; quote only what is relevant.
6. Always stay focused on effective learning support."""


def chat_prompt(request: GenerationRequest) -> Prompt:
    locale = request.locale
    vi = locale == "vi"
    history = _chat_history(request)
    question = request.param("question", "")

    parts = [
        "You are a smart and friendly AI study assistant. Answer the user's question naturally and helpfully.",
        "",
        language_rules(locale),
        "",
        "LECTURE CONTENT:",
        _chat_context(request),
        "",
    ]
    if history:
        parts += ["RECENT CONVERSATION HISTORY:", history, ""]
    parts += [
        f"CURRENT QUESTION: {question}",
        "",
        "RESPONSE GUIDELINES:",
        "1. DO NOT include the entire file content in the response.",
        "2. Only quote necessary and relevant information.",
        "3. If it's a concept: explain briefly and understandably.",
        "4. If it's a personal question: respond in a friendly, empathetic way and steer back to studying.",
        "5. If you don't know the answer: say so honestly and suggest alternatives.",
        "",
        f"{'TRẢ LỜI' if vi else 'RESPONSE'}:",
    ]
    return Prompt(system=chat_system_message(locale), user="\n".join(parts))


# ----------------- Document analysis -----------------

def analysis_prompt(request: GenerationRequest) -> Prompt:
    locale = request.locale
    vi = locale == "vi"
    example = {
        "topics": ["chủ đề 1", "chủ đề 2", "chủ đề 3"] if vi else ["topic 1", "topic 2", "topic 3"],
        "difficulty": "easy|medium|hard",
        "keyConcepts": ["khái niệm 1", "khái niệm 2", "khái niệm 3"] if vi else ["concept 1", "concept 2", "concept 3"],
        "recommendations": ["gợi ý 1", "gợi ý 2", "gợi ý 3"] if vi else ["suggestion 1", "suggestion 2", "suggestion 3"],
        "estimatedReadTime": 10,
        "language": locale,
    }
    user = f"""You are an expert in analysing academic documents. Analyse the following content and return JSON in exactly this format.

{language_rules(locale)}

{json.dumps(example, ensure_ascii=False, indent=2)}

Content to analyse:
\"\"\"
{truncate_source(request.source_text, ANALYSIS_SOURCE_CHARS)}
\"\"\"

{language_reminder(locale)}
{json_only_rule()}"""
    return Prompt(system=system_message(locale), user=user)


def build_prompt(request: GenerationRequest, strengthened: bool = False) -> Prompt:
    """Dispatch to the task's prompt template."""
    if request.task == Task.SUMMARY:
        return summary_prompt(request, strengthened=strengthened)
    if request.task == Task.QUIZ:
        return quiz_prompt(request)
    if request.task == Task.FLASHCARDS:
        return flashcards_prompt(request)
    if request.task == Task.CHAT:
        return chat_prompt(request)
    if request.task == Task.ANALYSIS:
        return analysis_prompt(request)
    raise ValueError(f"Unknown task: {request.task}")
