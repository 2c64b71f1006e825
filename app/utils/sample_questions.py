"""
Built-in question bank used when the generation service cannot produce a quiz.
"""

import logging
from typing import Dict, List

from app.core.config import settings
from app.schemas.quiz import GeneratedQuestion

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_SUBJECT = "mathematics"

SAMPLE_QUESTIONS: Dict[str, List[dict]] = {
    "mathematics": [
        {
            "question": "What is 15 + 27?",
            "options": ["40", "42", "45", "48"],
            "correct_answer": "B",
            "explanation": "15 + 27 = 42",
            "hint": "Break it down: 15 + 20 + 7 = 35 + 7 = 42",
            "difficulty": "easy",
        },
        {
            "question": "If a rectangle has length 8 cm and width 5 cm, what is its area?",
            "options": ["13 cm²", "26 cm²", "40 cm²", "45 cm²"],
            "correct_answer": "C",
            "explanation": "Area = length × width = 8 × 5 = 40 cm²",
            "hint": "Remember: Area of rectangle = length × width",
            "difficulty": "medium",
        },
        {
            "question": "What is the value of x in the equation 2x + 6 = 14?",
            "options": ["2", "4", "6", "8"],
            "correct_answer": "B",
            "explanation": "2x + 6 = 14, so 2x = 8, therefore x = 4",
            "hint": "Subtract 6 from both sides first",
            "difficulty": "medium",
        },
    ],
    "science": [
        {
            "question": "What is the chemical symbol for water?",
            "options": ["H2O", "CO2", "NaCl", "O2"],
            "correct_answer": "A",
            "explanation": "Water is composed of 2 hydrogen atoms and 1 oxygen atom: H2O",
            "hint": "Think about hydrogen and oxygen",
            "difficulty": "easy",
        },
        {
            "question": "Which planet is closest to the Sun?",
            "options": ["Venus", "Mercury", "Earth", "Mars"],
            "correct_answer": "B",
            "explanation": "Mercury is the closest planet to the Sun in our solar system",
            "hint": "Think about the order of planets from the Sun",
            "difficulty": "easy",
        },
    ],
}


def build_sample_questions(
    subject: str, difficulty: str, count: int
) -> List[GeneratedQuestion]:
    """
    Fill a quiz from the sample bank, cycling through the subject's questions.

    Unknown subjects use the mathematics bank; at most `max_sample_questions`
    questions are returned regardless of `count`.
    """
    bank = SAMPLE_QUESTIONS.get(subject) or SAMPLE_QUESTIONS[DEFAULT_SAMPLE_SUBJECT]
    total = min(count, settings.max_sample_questions)
    logger.info(
        f"Using {total} sample questions for {subject} (requested {count}, {difficulty})"
    )

    questions = []
    for index in range(total):
        base = bank[index % len(bank)]
        questions.append(
            GeneratedQuestion(
                question_text=base["question"],
                question_type="multiple_choice",
                options=list(base["options"]),
                correct_answer=base["correct_answer"],
                explanation=base["explanation"],
                hint=base["hint"],
                difficulty=base["difficulty"],
                points=1,
                question_order=index + 1,
            )
        )
    return questions
