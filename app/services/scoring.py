# app/services/scoring.py
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from app.core.exceptions import UpstreamUnavailableError
from app.models.enums import SubmissionStatus
from app.schemas.submission import AnswerResult, PerformanceAnalysis
from app.utils.ai_component.interface import GenerationService
from app.utils.mathutils import round_half_up
from app.utils.timeutils import minutes_between

logger = logging.getLogger(__name__)

# Lower bound (inclusive) -> letter, checked from the top down
GRADE_BOUNDARIES = [
    (90, "A+"),
    (85, "A"),
    (80, "A-"),
    (75, "B+"),
    (70, "B"),
    (65, "B-"),
    (60, "C+"),
    (55, "C"),
    (50, "C-"),
]
FAILING_GRADE = "F"

DEFAULT_SUGGESTIONS = [
    "Review the questions you got wrong and study the explanations.",
    "Practice more problems in areas where you struggled.",
]


def get_grade(score_percentage: Optional[float]) -> str:
    if score_percentage is None:
        return FAILING_GRADE
    for lower_bound, letter in GRADE_BOUNDARIES:
        if score_percentage >= lower_bound:
            return letter
    return FAILING_GRADE


def calculate_score(points_earned: int, points_possible: int) -> float:
    if points_possible <= 0:
        return 0.0
    return round_half_up(points_earned / points_possible * 100, 2)


def analyze_performance(results: List[AnswerResult]) -> PerformanceAnalysis:
    """
    Strengths and weaknesses are question ids.

    Missing timings count as 0 seconds in the average.
    """
    if not results:
        return PerformanceAnalysis()

    total_time = sum(result.time_taken_seconds or 0 for result in results)
    return PerformanceAnalysis(
        strengths=[result.question_id for result in results if result.is_correct],
        weaknesses=[
            result.question_id for result in results if not result.is_correct
        ],
        average_time_per_question=round_half_up(total_time / len(results), 2),
    )


def aggregate_results(
    results: List[AnswerResult],
    total_points_possible: int,
    started_at: Optional[datetime],
    completed_at: datetime,
) -> Dict[str, Any]:
    """Column values that turn an in-progress submission into a completed one."""
    points_earned = sum(result.points_earned for result in results)
    correct_answers = sum(1 for result in results if result.is_correct)

    return {
        "status": SubmissionStatus.COMPLETED.value,
        "completed_at": completed_at,
        "total_points_earned": points_earned,
        "correct_answers": correct_answers,
        "score_percentage": calculate_score(points_earned, total_points_possible),
        "time_taken_minutes": (
            round_half_up(minutes_between(started_at, completed_at), 2)
            if started_at
            else None
        ),
        "performance_analysis": analyze_performance(results).model_dump(),
    }


async def build_suggestions(
    generation_service: GenerationService,
    subject: str,
    grade_level: int,
    correct_count: int,
    total_questions: int,
    score_percentage: float,
    incorrect_questions: List[str],
) -> List[str]:
    """Two improvement suggestions; AI-written only when something was missed."""
    if not incorrect_questions:
        return list(DEFAULT_SUGGESTIONS)

    try:
        return await generation_service.generate_suggestions(
            quiz_meta={"subject": subject, "grade_level": grade_level},
            performance_summary={
                "correct_count": correct_count,
                "total_questions": total_questions,
                "score_percentage": score_percentage,
            },
            incorrect_questions=incorrect_questions,
        )
    except UpstreamUnavailableError as e:
        logger.warning(f"Using default improvement suggestions: {e.message}")
        return list(DEFAULT_SUGGESTIONS)
