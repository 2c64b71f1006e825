# app/services/adaptive.py
"""
Adaptive difficulty: recommend the next quiz's difficulty from recent scores.
"""

import logging
from typing import List, Optional, Sequence

from app.models.enums import QuizDifficulty
from app.schemas.quiz import DifficultyRecommendation
from app.utils.mathutils import round_half_up

logger = logging.getLogger(__name__)

RECENT_WINDOW = 5

REASONING = {
    QuizDifficulty.HARD: "You're doing great! Ready for more challenging questions.",
    QuizDifficulty.MEDIUM: "Good progress! Continuing with moderate difficulty.",
    QuizDifficulty.EASY: "Let's focus on building confidence with easier questions.",
    QuizDifficulty.MIXED: "Mixed difficulty to help you improve gradually.",
}
FAILURE_REASONING = "Using balanced difficulty due to insufficient data."


def calculate_trend(chronological_scores: Sequence[float]) -> float:
    """
    Mean of the later half minus mean of the earlier half.

    Scores run oldest to newest; the earlier half is the first floor(n/2).
    """
    if len(chronological_scores) < 2:
        return 0.0
    split = len(chronological_scores) // 2
    earlier = chronological_scores[:split]
    later = chronological_scores[split:]
    return sum(later) / len(later) - sum(earlier) / len(earlier)


def trend_label(trend: float, threshold: float = 0.0) -> str:
    if trend > threshold:
        return "improving"
    if trend < -threshold:
        return "declining"
    return "stable"


def recommend_difficulty(
    history: List[Optional[float]],
) -> DifficultyRecommendation:
    """
    Args:
        history: score percentages of completed submissions, newest first

    Returns:
        Recommended difficulty with its reasoning, recent average and trend label
    """
    if not history:
        return DifficultyRecommendation(
            difficulty=QuizDifficulty.MIXED,
            reasoning=REASONING[QuizDifficulty.MIXED],
            average_score=0.0,
            trend="no_data",
        )

    try:
        scores = [float(score or 0) for score in history[:RECENT_WINDOW]]
        scores.reverse()

        average = sum(scores) / len(scores)
        trend = calculate_trend(scores)

        if average >= 85 and trend >= 0:
            difficulty = QuizDifficulty.HARD
        elif average >= 70:
            difficulty = QuizDifficulty.MEDIUM
        elif average < 60:
            difficulty = QuizDifficulty.EASY
        else:
            difficulty = QuizDifficulty.MIXED

        return DifficultyRecommendation(
            difficulty=difficulty,
            reasoning=REASONING[difficulty],
            average_score=round_half_up(average, 2),
            trend=trend_label(trend),
        )
    except (TypeError, ValueError) as e:
        logger.error(f"Adaptive difficulty failed: {e}", exc_info=True)
        return DifficultyRecommendation(
            difficulty=QuizDifficulty.MIXED,
            reasoning=FAILURE_REASONING,
            average_score=0.0,
            trend="unknown",
        )
