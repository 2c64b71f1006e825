# app/services/grading.py
"""
Per-answer grading.

Objective questions (multiple choice, true/false) are compared exactly,
ignoring case. Open-ended questions (short answer, essay) are judged by the
generation service and fall back to a word-overlap similarity when it is
unavailable. Nothing here touches the database.
"""

import logging
from typing import Awaitable, Callable, Dict, Optional

from pydantic import BaseModel

from app.core.exceptions import UpstreamUnavailableError
from app.models.enums import QuestionType
from app.models.quiz import Question
from app.utils.ai_component.interface import GenerationService
from app.utils.mathutils import round_half_up

logger = logging.getLogger(__name__)

SIMILARITY_THRESHOLD = 0.7
SIMILARITY_CORRECT_FEEDBACK = "Good answer!"
SIMILARITY_INCORRECT_FEEDBACK = (
    "Please review the correct answer and try to understand the key concepts."
)


class GradeResult(BaseModel):
    is_correct: bool
    points_earned: int
    feedback: Optional[str] = None


def similarity(answer: str, reference: str) -> float:
    """
    Share of words the two texts have in common.

    Every word of `answer` (duplicates included) that occurs anywhere in
    `reference` counts once, divided by the longer of the two word counts.
    """
    answer_words = (answer or "").casefold().split()
    reference_words = (reference or "").casefold().split()
    longest = max(len(answer_words), len(reference_words))
    if longest == 0:
        return 0.0

    reference_set = set(reference_words)
    common = sum(1 for word in answer_words if word in reference_set)
    return common / longest


def grade_by_similarity(question: Question, user_answer: str) -> GradeResult:
    score = similarity(user_answer, question.correct_answer)
    is_correct = score > SIMILARITY_THRESHOLD
    points = question.points if is_correct else round_half_up(question.points * score)
    return GradeResult(
        is_correct=is_correct,
        points_earned=points,
        feedback=SIMILARITY_CORRECT_FEEDBACK
        if is_correct
        else SIMILARITY_INCORRECT_FEEDBACK,
    )


async def grade_objective(
    question: Question,
    user_answer: str,
    subject: str,
    grade_level: int,
    generation_service: GenerationService,
) -> GradeResult:
    # The request schema trims answers; the stored key is compared as written
    is_correct = user_answer.strip().casefold() == question.correct_answer.casefold()
    return GradeResult(
        is_correct=is_correct,
        points_earned=question.points if is_correct else 0,
        feedback=None,
    )


async def grade_open_ended(
    question: Question,
    user_answer: str,
    subject: str,
    grade_level: int,
    generation_service: GenerationService,
) -> GradeResult:
    try:
        evaluation = await generation_service.evaluate_answer(
            question=question.question_text,
            user_answer=user_answer,
            correct_answer=question.correct_answer,
            subject=subject,
            grade_level=grade_level,
        )
    except UpstreamUnavailableError as e:
        logger.warning(
            f"AI evaluation unavailable for question {question.id}, "
            f"using similarity grading: {e.message}"
        )
        return grade_by_similarity(question, user_answer)

    return GradeResult(
        is_correct=evaluation.is_correct,
        points_earned=round_half_up(question.points * evaluation.partial_credit),
        feedback=evaluation.feedback or None,
    )


Strategy = Callable[
    [Question, str, str, int, GenerationService], Awaitable[GradeResult]
]

GRADING_STRATEGIES: Dict[QuestionType, Strategy] = {
    QuestionType.MULTIPLE_CHOICE: grade_objective,
    QuestionType.TRUE_FALSE: grade_objective,
    QuestionType.SHORT_ANSWER: grade_open_ended,
    QuestionType.ESSAY: grade_open_ended,
}

_missing = set(QuestionType) - set(GRADING_STRATEGIES)
if _missing:
    raise RuntimeError(
        f"No grading strategy for question types: {sorted(t.value for t in _missing)}"
    )


async def grade(
    question: Question,
    user_answer: str,
    subject: str,
    grade_level: int,
    generation_service: GenerationService,
) -> GradeResult:
    strategy = GRADING_STRATEGIES[QuestionType(question.question_type)]
    return await strategy(question, user_answer, subject, grade_level, generation_service)
