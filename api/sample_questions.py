"""
api/sample_questions.py — 개발용 데모 문제

시험에 등록된 문제가 하나도 없을 때만 제공되며, 응답에 isDemo=true 로 표시된다.
"""

from exam_panel.models.question_model import Question

# ── 샘플 문제 ────────────────────────────────────────────────────────────────
DEMO_QUESTIONS: list[Question] = [
    Question(
        id=1,
        question_text="[DEMO] What is the capital of India?",
        option_a="Mumbai", option_b="New Delhi", option_c="Kolkata", option_d="Chennai",
        is_demo=True,
    ),
    Question(
        id=2,
        question_text="[DEMO] Which planet is known as the Red Planet?",
        option_a="Earth", option_b="Mars", option_c="Jupiter", option_d="Venus",
        is_demo=True,
    ),
    Question(
        id=3,
        question_text="[DEMO] What is 25 × 4?",
        option_a="75", option_b="100", option_c="90", option_d="80",
        is_demo=True,
    ),
    Question(
        id=4,
        question_text="[DEMO] Who wrote the Indian National Anthem?",
        option_a="Bankim Chandra", option_b="Rabindranath Tagore",
        option_c="Sarojini Naidu", option_d="Jawaharlal Nehru",
        is_demo=True,
    ),
    Question(
        id=5,
        question_text="[DEMO] What is the chemical symbol for Gold?",
        option_a="Go", option_b="Gd", option_c="Au", option_d="Ag",
        is_demo=True,
    ),
]
