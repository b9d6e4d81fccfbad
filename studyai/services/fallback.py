"""
Deterministic content served when the model cannot produce a usable answer.

Nothing here calls the model or uses randomness. A few cheap signals are
read from the source text (length, keywords, coarse topic) so the fallback
still looks like it belongs to the uploaded document.
"""
from __future__ import annotations

import re
from typing import List, Tuple

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

WORD_RE = re.compile(r"\w+", re.UNICODE)
SENTENCE_SPLIT_RE = re.compile(r"[\n\r]+|(?<=[.!?])\s+")

STOP_WORDS = {
    "this", "that", "with", "from", "they", "have", "will", "been", "were",
    "their", "there", "these", "those", "which", "about", "would", "could",
    "should", "where", "while", "other", "being",
}

# (keywords, vi description, en description); first match wins
TOPIC_RULES = [
    (("pandas", "data", "dữ liệu"), ("lab", "thực hành", "bài tập"),
     "thực hành khoa học dữ liệu và phân tích", "data science practice and analysis"),
    (("pandas", "data", "dữ liệu"), (),
     "khoa học dữ liệu và phân tích", "data science and analysis"),
    (("python", "code", "lập trình"), (),
     "lập trình và phát triển", "programming and development"),
    (("lab", "thực hành", "bài tập"), (),
     "thực hành và bài tập", "practice and exercises"),
]

# Later matches override earlier ones
SPECIFIC_RULES = [
    (("video game", "game", "trò chơi"), "về dữ liệu Video Game Sales", "about Video Game Sales data"),
    (("trực quan", "visualization", "biểu đồ"), "về trực quan hóa dữ liệu", "about data visualization"),
    (("tiền xử lý", "preprocessing", "làm sạch"), "về tiền xử lý dữ liệu", "about data preprocessing"),
]

LEVEL_NAMES = {
    "vi": {"brief": "ngắn gọn", "moderate": "tổng quan", "detailed": "chi tiết"},
    "en": {"brief": "brief", "moderate": "moderate", "detailed": "detailed"},
}


# ----------------- Signals from the source text -----------------

def word_count(text: str) -> int:
    return len((text or "").split())


def estimated_read_time(text: str) -> int:
    return max(5, round(word_count(text) / 150))


def difficulty_for(text: str) -> str:
    words = word_count(text)
    if words > 2000:
        return "hard"
    if words > 800:
        return "medium"
    return "easy"


def extract_keywords(text: str, limit: int = 8) -> List[str]:
    candidates = [w for w in WORD_RE.findall((text or "").lower()) if len(w) > 4][:15]
    keywords: List[str] = []
    for word in candidates:
        if word in STOP_WORDS or word in keywords:
            continue
        keywords.append(word)
    return keywords[:limit]


def classify_topic(text: str, locale: str) -> Tuple[str, str]:
    """Coarse topic and an optional "about ..." qualifier from the opening of the text."""
    opening = (text or "")[:1000].lower()
    vi = locale == "vi"

    topic = "chủ đề chính" if vi else "main topic"
    for keywords, required, vi_topic, en_topic in TOPIC_RULES:
        if any(k in opening for k in keywords) and (not required or any(k in opening for k in required)):
            topic = vi_topic if vi else en_topic
            break

    specific = ""
    for keywords, vi_specific, en_specific in SPECIFIC_RULES:
        if any(k in opening for k in keywords):
            specific = vi_specific if vi else en_specific
    return topic, specific


# ----------------- Summary -----------------

def _summary_text(request: GenerationRequest) -> str:
    text = request.source_text
    words = word_count(text)
    minutes = estimated_read_time(text)
    topic, specific = classify_topic(text, request.locale)
    about = f"{topic} {specific}".strip()
    levels = LEVEL_NAMES[request.locale]
    level = levels.get(request.param("level", "moderate"), levels["moderate"])

    if request.locale == "vi":
        return f"""Tài liệu này chứa {words} từ với nội dung {level} về {about}.

Dựa trên phân tích nội dung, tài liệu này tập trung vào việc cung cấp kiến thức thực tế và hướng dẫn chi tiết cho người học về {topic}. Nội dung được cấu trúc rõ ràng với các phần chính và phụ, bao gồm định nghĩa, giải thích, ví dụ minh họa và ứng dụng thực tế.

Các điểm nổi bật trong tài liệu bao gồm:
- Thông tin cơ bản về {topic} được trình bày một cách có hệ thống và dễ hiểu
- Các định nghĩa và giải thích chi tiết về các thuật ngữ quan trọng, giúp người đọc hiểu sâu về bản chất của vấn đề
- Ví dụ và minh họa thực tế để hỗ trợ việc hiểu biết và áp dụng kiến thức vào thực tế
- Phân tích và đánh giá các khía cạnh khác nhau của chủ đề, cung cấp góc nhìn toàn diện
- Kết luận và ứng dụng thực tế của kiến thức được trình bày, giúp người học thấy được giá trị thực tiễn

Tài liệu này phù hợp cho việc học tập và nghiên cứu, cung cấp nền tảng kiến thức vững chắc cho người đọc. Với độ dài {words} từ, tài liệu yêu cầu thời gian đọc và nghiên cứu khoảng {minutes} phút để hiểu đầy đủ.

Để học hiệu quả từ tài liệu này, bạn nên:
- Đọc kỹ từng phần và ghi chú các điểm quan trọng
- Tạo sơ đồ tư duy để kết nối các khái niệm
- Thực hành với các ví dụ được cung cấp
- Ôn tập định kỳ để củng cố kiến thức"""

    return f"""This document contains {words} words with {level} content about {about}.

Based on content analysis, this document focuses on providing practical knowledge and detailed guidance for learners about {topic}. The content is clearly structured with main and secondary sections, including definitions, explanations, illustrative examples and practical applications.

Key highlights in the document include:
- Basic information about {topic} presented systematically and understandably
- Detailed definitions and explanations of important terms, helping readers understand the nature of the subject
- Examples and practical illustrations to support understanding and application of knowledge
- Analysis and evaluation of different aspects of the topic, providing a comprehensive perspective
- Conclusions and practical applications of knowledge, helping learners see practical value

This document is suitable for learning and research, providing a solid knowledge foundation for readers. With {words} words, the document requires approximately {minutes} minutes of reading and research to fully understand.

To learn effectively from this document, you should:
- Read each section carefully and note important points
- Create mind maps to connect concepts
- Practice with provided examples
- Review regularly to consolidate knowledge"""


def _objectives(locale: str) -> List[Objective]:
    if locale == "vi":
        rows = [
            ("Hiểu rõ nội dung chính",
             "Nắm vững các khái niệm và ý tưởng chính được trình bày trong tài liệu, bao gồm các định nghĩa quan trọng và mối quan hệ giữa các khái niệm",
             "Kiến thức cơ bản", "high", 45,
             ["Đọc và hiểu các định nghĩa cơ bản", "Xác định các khái niệm chính", "Hiểu mối quan hệ giữa các khái niệm"],
             ["Kiến thức nền tảng về chủ đề"]),
            ("Áp dụng kiến thức thực tế",
             "Biết cách ứng dụng kiến thức đã học vào các tình huống thực tế và giải quyết các vấn đề liên quan",
             "Ứng dụng", "medium", 60,
             ["Tìm hiểu các ví dụ thực tế", "Thực hành giải quyết vấn đề", "Áp dụng vào tình huống mới"],
             ["Hiểu rõ nội dung chính"]),
            ("Phân tích và đánh giá nội dung",
             "Phân tích sâu sắc và đánh giá chất lượng thông tin từ tài liệu, xác định điểm mạnh và điểm yếu",
             "Tư duy phản biện", "medium", 30,
             ["Phân tích logic của nội dung", "Đánh giá độ tin cậy", "Xác định điểm mạnh và yếu"],
             ["Hiểu rõ nội dung chính", "Áp dụng kiến thức thực tế"]),
            ("Tích hợp kiến thức",
             "Kết hợp kiến thức từ tài liệu với các kiến thức khác để tạo ra hiểu biết toàn diện",
             "Tích hợp", "low", 40,
             ["Kết nối với kiến thức hiện có", "Tạo sơ đồ tư duy", "Tổng hợp thông tin"],
             ["Tất cả các mục tiêu trước"]),
        ]
    else:
        rows = [
            ("Understand Main Content",
             "Master the key concepts and ideas presented in the document, including important definitions and relationships between concepts",
             "Basic Knowledge", "high", 45,
             ["Read and understand basic definitions", "Identify key concepts", "Understand relationships between concepts"],
             ["Basic knowledge of the topic"]),
            ("Apply Practical Knowledge",
             "Know how to apply learned knowledge to real situations and solve related problems",
             "Application", "medium", 60,
             ["Study real examples", "Practice problem solving", "Apply to new situations"],
             ["Understand Main Content"]),
            ("Analyze and Evaluate Content",
             "Deeply analyze and evaluate the quality of information from the document, identify strengths and weaknesses",
             "Critical Thinking", "medium", 30,
             ["Analyze content logic", "Evaluate reliability", "Identify strengths and weaknesses"],
             ["Understand Main Content", "Apply Practical Knowledge"]),
            ("Integrate Knowledge",
             "Combine knowledge from the document with other knowledge to create comprehensive understanding",
             "Integration", "low", 40,
             ["Connect with existing knowledge", "Create mind maps", "Synthesize information"],
             ["All previous objectives"]),
        ]
    return [
        Objective(
            id=f"obj_{i}", title=title, description=description, category=category,
            importance=importance, estimated_time=minutes, sub_objectives=subs, prerequisites=prereqs,
        )
        for i, (title, description, category, importance, minutes, subs, prereqs) in enumerate(rows, 1)
    ]


def _key_points(request: GenerationRequest) -> List[KeyPoint]:
    words = word_count(request.source_text)
    minutes = estimated_read_time(request.source_text)
    if request.locale == "vi":
        rows = [
            ("Tài liệu chứa thông tin quan trọng cần được nghiên cứu kỹ lưỡng và hiểu sâu về các khái niệm được trình bày",
             "Khái niệm chính", "intermediate", ["Lý thuyết", "Thực hành", "Ứng dụng", "Phân tích"],
             "Đây là điểm quan trọng nhất cần nắm vững để hiểu toàn bộ nội dung tài liệu",
             ["Khi đọc tài liệu, hãy ghi chú các khái niệm chính", "Tạo sơ đồ tư duy để kết nối các khái niệm", "Thực hành giải thích lại bằng lời của mình"],
             ["Bạn có thể giải thích khái niệm chính này bằng lời của mình không?", "Hãy tìm 3 ví dụ thực tế minh họa cho khái niệm này", "So sánh khái niệm này với khái niệm tương tự khác"]),
            (f"Với {words} từ, tài liệu yêu cầu thời gian đọc và nghiên cứu khoảng {minutes} phút để hiểu đầy đủ",
             "Thống kê", "basic", ["Thời gian", "Độ dài", "Nội dung", "Học tập"],
             "Hiểu về độ dài và thời gian cần thiết giúp lập kế hoạch học tập hiệu quả",
             ["Chia nhỏ thời gian học thành các phiên 25 phút", "Sử dụng kỹ thuật Pomodoro để tập trung", "Dành thời gian ôn tập sau mỗi phiên học"],
             ["Bạn sẽ chia thời gian học như thế nào?", "Làm thế nào để tối ưu thời gian học tập?", "Bạn có thể tạo lịch học chi tiết không?"]),
            ("Tài liệu được cấu trúc logic với các phần chính và phụ, giúp người đọc dễ dàng theo dõi và hiểu nội dung",
             "Cấu trúc", "basic", ["Tổ chức", "Logic", "Hiểu biết", "Học tập"],
             "Cấu trúc logic giúp người đọc dễ dàng theo dõi và hiểu nội dung một cách có hệ thống",
             ["Đọc phần mục lục trước khi bắt đầu", "Tạo outline cho từng chương", "Sử dụng mind map để tổ chức thông tin"],
             ["Bạn có thể vẽ sơ đồ cấu trúc tài liệu không?", "Hãy tóm tắt cấu trúc chính của tài liệu", "Làm thế nào để cải thiện cấu trúc này?"]),
        ]
    else:
        rows = [
            ("The document contains important information that needs to be thoroughly researched and deeply understood about the presented concepts",
             "Main Concepts", "intermediate", ["Theory", "Practice", "Application", "Analysis"],
             "This is the most important point to master in order to understand the entire document content",
             ["When reading the document, take notes on key concepts", "Create mind maps to connect concepts", "Practice explaining in your own words"],
             ["Can you explain this key concept in your own words?", "Find 3 real-world examples that illustrate this concept", "Compare this concept with a similar one"]),
            (f"With {words} words, the document requires approximately {minutes} minutes of reading and research to fully understand",
             "Statistics", "basic", ["Time", "Length", "Content", "Learning"],
             "Understanding length and required time helps plan effective study sessions",
             ["Break study time into 25-minute sessions", "Use Pomodoro technique for focus", "Allocate review time after each session"],
             ["How would you divide your study time?", "How can you optimize your study time?", "Can you create a detailed study schedule?"]),
            ("The document is logically structured with main and secondary sections, helping readers easily follow and understand the content",
             "Structure", "basic", ["Organization", "Logic", "Understanding", "Learning"],
             "Logical structure helps readers easily follow and understand content systematically",
             ["Read the table of contents before starting", "Create outlines for each chapter", "Use mind maps to organize information"],
             ["Can you draw a diagram of the document structure?", "Summarize the main structure of the document", "How can this structure be improved?"]),
        ]
    return [
        KeyPoint(
            id=f"key_{i}", content=content, category=category, difficulty=difficulty,
            related_concepts=related, explanation=explanation, examples=examples, practice_questions=questions,
        )
        for i, (content, category, difficulty, related, explanation, examples, questions) in enumerate(rows, 1)
    ]


def default_learning_path(locale: str) -> LearningPath:
    if locale == "vi":
        return LearningPath(
            beginner=["Bước 1: Đọc hiểu khái niệm cơ bản và thuật ngữ chính", "Bước 2: Làm quen với cấu trúc và tổ chức nội dung", "Bước 3: Thực hành với ví dụ đơn giản và bài tập cơ bản"],
            intermediate=["Bước 1: Phân tích sâu các khái niệm và mối quan hệ", "Bước 2: Áp dụng kiến thức vào tình huống thực tế", "Bước 3: So sánh và đối chiếu các phương pháp khác nhau"],
            advanced=["Bước 1: Nghiên cứu chuyên sâu và mở rộng kiến thức", "Bước 2: Phát triển ứng dụng mới và sáng tạo", "Bước 3: Đánh giá, cải tiến và chia sẻ kiến thức"],
        )
    return LearningPath(
        beginner=["Step 1: Understand basic concepts and key terminology", "Step 2: Get familiar with the structure and organization of the content", "Step 3: Practice with simple examples and basic exercises"],
        intermediate=["Step 1: Analyze concepts and their relationships in depth", "Step 2: Apply knowledge to real situations", "Step 3: Compare and contrast different methods"],
        advanced=["Step 1: Research in depth and extend your knowledge", "Step 2: Develop new and creative applications", "Step 3: Evaluate, improve and share knowledge"],
    )


def default_assessment(locale: str) -> Assessment:
    if locale == "vi":
        return Assessment(
            knowledge_check=["Bạn có thể giải thích các khái niệm chính trong tài liệu không?", "Bạn có thể áp dụng kiến thức vào tình huống thực tế không?", "Bạn có thể so sánh và đối chiếu các phương pháp khác nhau không?"],
            practical_tasks=["Tạo một bản tóm tắt cá nhân về nội dung chính với ví dụ cụ thể", "Thực hiện một dự án nhỏ áp dụng kiến thức đã học", "Thiết kế một bài thuyết trình chia sẻ kiến thức với người khác"],
            critical_thinking=["Phân tích ưu nhược điểm của các phương pháp được đề cập", "Đề xuất cải tiến hoặc phát triển mới dựa trên kiến thức đã học", "Đánh giá tính ứng dụng và hiệu quả trong bối cảnh thực tế"],
        )
    return Assessment(
        knowledge_check=["Can you explain the main concepts in the document?", "Can you apply the knowledge to real situations?", "Can you compare and contrast the different methods?"],
        practical_tasks=["Write a personal summary of the main content with concrete examples", "Carry out a small project that applies what you learned", "Design a presentation to share the knowledge with others"],
        critical_thinking=["Analyze the pros and cons of the methods mentioned", "Propose improvements or new developments based on what you learned", "Evaluate applicability and effectiveness in a real context"],
    )


def default_resources(locale: str) -> Resources:
    if locale == "vi":
        return Resources(
            additional_reading=["Sách giáo khoa chuyên ngành với các chương liên quan", "Bài báo khoa học và nghiên cứu mới nhất trong lĩnh vực", "Tài liệu tham khảo và hướng dẫn thực hành chi tiết"],
            tools=["Phần mềm phân tích và trực quan hóa dữ liệu", "Công cụ tạo mindmap và sơ đồ tư duy", "Ứng dụng ghi chú và quản lý kiến thức cá nhân"],
            communities=["Diễn đàn học tập trực tuyến và nhóm thảo luận", "Cộng đồng chuyên gia và người làm việc trong lĩnh vực", "Khóa học trực tuyến và workshop thực hành"],
        )
    return Resources(
        additional_reading=["Specialized textbooks with the related chapters", "Recent papers and research in the field", "Detailed references and practice guides"],
        tools=["Data analysis and visualization software", "Mind-mapping tools", "Note-taking and personal knowledge management apps"],
        communities=["Online study forums and discussion groups", "Communities of experts and practitioners in the field", "Online courses and hands-on workshops"],
    )


def _insights(request: GenerationRequest) -> Insights:
    text = request.source_text
    words = word_count(text)
    minutes = estimated_read_time(text)
    if request.locale == "vi":
        recommendations = [
            f"Đọc kỹ tài liệu {words} từ này với thời gian {minutes} phút để nắm vững nội dung chính",
            "Ghi chú các điểm quan trọng và khái niệm chính vào sổ tay học tập",
            "Tạo flashcard để ôn tập các khái niệm quan trọng mỗi ngày",
            "Làm quiz để kiểm tra mức độ hiểu biết và xác định điểm yếu",
            "Ôn tập định kỳ mỗi tuần để ghi nhớ lâu dài và củng cố kiến thức",
            "Áp dụng kiến thức vào thực tế thông qua các bài tập và dự án thực hành",
        ]
        strengths = [
            "Nội dung được trích xuất thành công và đầy đủ với cấu trúc rõ ràng",
            "Có thể tạo flashcard và quiz để hỗ trợ học tập hiệu quả",
            "Tài liệu có cấu trúc logic và dễ hiểu cho người học",
            "Phù hợp cho nhiều đối tượng học viên khác nhau",
        ]
        improvements = [
            "Dịch vụ AI sẽ khả dụng sau để phân tích chi tiết và chuyên sâu hơn",
            "Có thể bổ sung thêm ví dụ và minh họa trực quan",
            "Tích hợp thêm các nguồn tham khảo và tài liệu liên quan",
            "Bổ sung bài tập thực hành và case study cụ thể",
        ]
    else:
        recommendations = [
            f"Read this {words}-word document carefully with {minutes} minutes to master the main content",
            "Note important points and key concepts in your study notebook",
            "Create flashcards to review important concepts daily",
            "Take quizzes to test understanding and identify weaknesses",
            "Review regularly each week for long-term retention and knowledge consolidation",
            "Apply knowledge to practice through exercises and practical projects",
        ]
        strengths = [
            "Content successfully extracted and complete with clear structure",
            "Can create flashcards and quizzes to support effective learning",
            "Document has logical structure and is easy to understand for learners",
            "Suitable for various types of learners",
        ]
        improvements = [
            "AI service will be available later for more detailed and in-depth analysis",
            "Can add more examples and visual illustrations",
            "Integrate additional reference sources and related materials",
            "Add practical exercises and specific case studies",
        ]
    return Insights(
        difficulty=difficulty_for(text),
        estimated_read_time=minutes,
        key_concepts=extract_keywords(text),
        recommendations=recommendations,
        strengths=strengths,
        improvements=improvements,
        learning_path=default_learning_path(request.locale),
        assessment=default_assessment(request.locale),
        resources=default_resources(request.locale),
    )


def summary_fallback(request: GenerationRequest) -> SummaryResult:
    return SummaryResult(
        summary=_summary_text(request),
        objectives=_objectives(request.locale),
        key_points=_key_points(request),
        insights=_insights(request),
    )


# ----------------- Quiz -----------------

STUDY_SKILL_QUESTIONS = {
    "vi": [
        ("Phương pháp học tập nào được khuyến nghị để hiểu sâu nội dung?",
         ["A. Học thuộc lòng", "B. Đọc hiểu và phân tích", "C. Chỉ xem qua một lần", "D. Bỏ qua phần khó"],
         "Đọc hiểu và phân tích giúp nắm vững bản chất của các khái niệm. Học thuộc lòng không giúp hiểu sâu, còn xem qua hoặc bỏ qua sẽ không hiệu quả.",
         "medium", "Phương pháp học tập"),
        ("Tại sao cần tạo flashcard khi học tập?",
         ["A. Để trang trí", "B. Để ôn tập nhanh và hiệu quả", "C. Để tốn thời gian", "D. Để gây rối"],
         "Flashcard giúp ôn tập nhanh và hiệu quả thông qua phương pháp spaced repetition. Các lựa chọn khác không đúng mục đích của flashcard.",
         "easy", "Công cụ học tập"),
        ("Làm thế nào để ghi nhớ kiến thức lâu dài?",
         ["A. Chỉ đọc một lần", "B. Ôn tập định kỳ", "C. Bỏ qua phần khó", "D. Chỉ học khi có bài kiểm tra"],
         "Ôn tập định kỳ giúp củng cố kiến thức và ghi nhớ lâu dài. Các phương pháp khác không hiệu quả cho việc ghi nhớ bền vững.",
         "medium", "Kỹ năng học tập"),
        ("Điều gì quan trọng nhất khi học một khái niệm mới?",
         ["A. Học thuộc định nghĩa", "B. Hiểu bản chất và ứng dụng", "C. Chỉ nhớ tên khái niệm", "D. Bỏ qua nếu khó hiểu"],
         "Hiểu bản chất và ứng dụng giúp nắm vững khái niệm thay vì chỉ ghi nhớ bề ngoài. Điều này giúp áp dụng kiến thức vào thực tế.",
         "hard", "Tư duy học tập"),
        ("Khi gặp nội dung khó hiểu, nên làm gì?",
         ["A. Bỏ qua luôn", "B. Đọc lại nhiều lần và tìm hiểu thêm", "C. Chỉ đọc qua một lần", "D. Chờ người khác giải thích"],
         "Đọc lại nhiều lần và tìm hiểu thêm giúp hiểu sâu vấn đề. Bỏ qua hoặc chỉ đọc qua sẽ không giải quyết được vấn đề.",
         "medium", "Kỹ năng giải quyết vấn đề"),
    ],
    "en": [
        ("Which learning method is recommended for deep understanding?",
         ["A. Memorization", "B. Reading and analysis", "C. Just skim through once", "D. Skip difficult parts"],
         "Reading and analysis helps understand the essence of concepts. Memorization doesn't help deep understanding, while skimming or skipping is ineffective.",
         "medium", "Learning Methods"),
        ("Why create flashcards when studying?",
         ["A. For decoration", "B. For quick and effective review", "C. To waste time", "D. To cause confusion"],
         "Flashcards help with quick and effective review through spaced repetition. Other options are not the purpose of flashcards.",
         "easy", "Study Tools"),
        ("How to remember knowledge for a long time?",
         ["A. Read only once", "B. Regular review", "C. Skip difficult parts", "D. Only study before exams"],
         "Regular review helps consolidate knowledge and remember long-term. Other methods are not effective for sustainable memory.",
         "medium", "Study Skills"),
        ("What is most important when learning a new concept?",
         ["A. Memorize the definition", "B. Understand the essence and application", "C. Only remember the concept name", "D. Skip if difficult to understand"],
         "Understanding the essence and application helps master the concept instead of just surface memorization. This helps apply knowledge in practice.",
         "hard", "Learning Thinking"),
        ("When encountering difficult content, what should you do?",
         ["A. Skip it entirely", "B. Read multiple times and research further", "C. Just read through once", "D. Wait for others to explain"],
         "Reading multiple times and researching further helps understand the issue deeply. Skipping or just reading through won't solve the problem.",
         "medium", "Problem Solving"),
    ],
}


def _read_time_question(request: GenerationRequest) -> QuizQuestion:
    minutes = estimated_read_time(request.source_text)
    words = word_count(request.source_text)
    # ascending and distinct because minutes >= 5
    values = [max(1, minutes // 3), minutes, minutes * 2 + 5, minutes * 4 + 10]
    letters = "ABCD"
    if request.locale == "vi":
        return QuizQuestion(
            id="q_1",
            question="Cần khoảng bao nhiêu phút để đọc và nghiên cứu kỹ tài liệu này?",
            options=[f"{letters[i]}. {v} phút" for i, v in enumerate(values)],
            correct_answer=1,
            explanation=f"Tài liệu có {words} từ; với tốc độ khoảng 150 từ mỗi phút cần khoảng {minutes} phút (tối thiểu 5 phút).",
            difficulty="easy",
            category="Tổng quan",
        )
    return QuizQuestion(
        id="q_1",
        question="Roughly how many minutes does it take to read and study this document carefully?",
        options=[f"{letters[i]}. {v} minutes" for i, v in enumerate(values)],
        correct_answer=1,
        explanation=f"The document has {words} words; at about 150 words per minute that takes about {minutes} minutes (5 minutes at least).",
        difficulty="easy",
        category="Overview",
    )


def quiz_fallback(request: GenerationRequest) -> QuizResult:
    questions = [_read_time_question(request)]
    for i, (question, options, explanation, difficulty, category) in enumerate(STUDY_SKILL_QUESTIONS[request.locale], 2):
        questions.append(QuizQuestion(
            id=f"q_{i}", question=question, options=options, correct_answer=1,
            explanation=explanation, difficulty=difficulty, category=category,
        ))
    return QuizResult(questions=questions)


# ----------------- Flashcards -----------------

STATIC_CARDS = {
    "vi": [
        ("Câu hỏi từ nội dung đã tải lên", "Câu trả lời tương ứng với nội dung", "Tổng quan", ["học tập", "kiến thức"]),
        ("Khái niệm chính trong tài liệu?", "Khái niệm quan trọng được trình bày", "Khái niệm", ["khái niệm", "cơ bản"]),
    ],
    "en": [
        ("Question from uploaded content", "Answer corresponding to the content", "Overview", ["learning", "knowledge"]),
        ("Main concept in the document?", "Important concept presented", "Concepts", ["concepts", "basic"]),
    ],
}


def _cards_from_text(request: GenerationRequest, max_cards: int) -> List[Flashcard]:
    vi = request.locale == "vi"
    parts = [p.strip() for p in SENTENCE_SPLIT_RE.split(request.source_text or "") if len(p.strip()) > 5]
    seen = set()
    cards: List[Flashcard] = []
    for part in parts:
        if len(cards) >= max_cards:
            break
        key = part.lower()
        if key in seen:
            continue
        seen.add(key)

        term, _, definition = part.partition(":")
        if definition.strip() and 0 < len(term.strip()) <= 80:
            question = f"{term.strip()} là gì?" if vi else f"What is {term.strip()}?"
            answer = definition.strip()
            category = "Khái niệm" if vi else "Concepts"
            difficulty = "easy"
        else:
            words = part.split()
            if len(words) < 4:
                continue
            stem = " ".join(words[:8])
            question = (f"Tài liệu nói gì về \"{stem}...\"?" if vi
                        else f"What does the document say about \"{stem}...\"?")
            answer = part
            category = "Tổng quan" if vi else "Overview"
            difficulty = "medium"
        cards.append(Flashcard(
            id=f"card_{len(cards) + 1}",
            question=question,
            answer=answer,
            category=category,
            difficulty=difficulty,
            tags=extract_keywords(part, limit=3),
        ))
    return cards


def flashcards_fallback(request: GenerationRequest) -> FlashcardSet:
    max_cards = max(1, int(request.param("num_cards", 9)))
    cards = _cards_from_text(request, max_cards)
    if not cards:
        cards = [
            Flashcard(id=f"card_{i}", question=q, answer=a, category=c, difficulty="medium", tags=tags)
            for i, (q, a, c, tags) in enumerate(STATIC_CARDS[request.locale], 1)
        ][:max_cards]
    return FlashcardSet(flashcards=cards)


# ----------------- Chat -----------------

CHAT_APOLOGY = {
    "vi": "Xin lỗi bạn, mình không thể tạo câu trả lời lúc này. Bạn vui lòng thử lại sau nhé! 🙏",
    "en": "Sorry, I couldn't generate an answer right now. Please try again in a moment! 🙏",
}
CHAT_BUSY_APOLOGY = {
    "vi": "Xin lỗi bạn, trợ lý AI đang quá tải nên tạm thời chưa trả lời được. Bạn đợi một chút rồi hỏi lại nhé! 🙏",
    "en": "Sorry, the AI assistant is receiving too many requests right now. Please wait a moment and ask again! 🙏",
}


def chat_fallback(request: GenerationRequest, rate_limited: bool = False) -> ChatReply:
    messages = CHAT_BUSY_APOLOGY if rate_limited else CHAT_APOLOGY
    return ChatReply(response=messages[request.locale], success=False)


# ----------------- Document analysis -----------------

def analysis_fallback(request: GenerationRequest) -> DocumentAnalysis:
    vi = request.locale == "vi"
    return DocumentAnalysis(
        topics=(["Chủ đề chính", "Kiến thức cơ bản", "Ứng dụng thực tế"] if vi
                else ["Main Topic", "Basic Knowledge", "Practical Application"]),
        difficulty="medium",
        key_concepts=(["Khái niệm A", "Khái niệm B", "Khái niệm C"] if vi
                      else ["Concept A", "Concept B", "Concept C"]),
        recommendations=(["Đọc kỹ nội dung", "Làm bài tập", "Ôn tập định kỳ"] if vi
                         else ["Read content carefully", "Do exercises", "Review regularly"]),
        estimated_read_time=max(5, round(len(request.source_text or "") / 200)),
        language=request.locale,
    )


def fallback(request: GenerationRequest, rate_limited: bool = False):
    """Schema-valid, locale-correct result for ``request.task``; never raises."""
    if request.task == Task.SUMMARY:
        return summary_fallback(request)
    if request.task == Task.QUIZ:
        return quiz_fallback(request)
    if request.task == Task.FLASHCARDS:
        return flashcards_fallback(request)
    if request.task == Task.CHAT:
        return chat_fallback(request, rate_limited=rate_limited)
    if request.task == Task.ANALYSIS:
        return analysis_fallback(request)
    raise ValueError(f"Unknown task: {request.task}")
