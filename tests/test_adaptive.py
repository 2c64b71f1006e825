"""
Tests for the adaptive difficulty estimator
"""

import pytest

from app.models.enums import QuizDifficulty
from app.services.adaptive import (
    FAILURE_REASONING,
    REASONING,
    calculate_trend,
    recommend_difficulty,
    trend_label,
)


def test_no_history_recommends_mixed():
    recommendation = recommend_difficulty([])

    assert recommendation.difficulty == QuizDifficulty.MIXED
    assert recommendation.trend == "no_data"
    assert recommendation.reasoning == REASONING[QuizDifficulty.MIXED]
    assert recommendation.average_score == 0.0


def test_low_scores_recommend_easy_even_when_improving():
    # Newest first: the learner went 40 -> 45 -> 50 -> 55 -> 60
    recommendation = recommend_difficulty([60, 55, 50, 45, 40])

    assert recommendation.difficulty == QuizDifficulty.EASY
    assert recommendation.average_score == 50.0
    assert recommendation.trend == "improving"


def test_high_stable_scores_recommend_hard():
    recommendation = recommend_difficulty([90, 90, 90])

    assert recommendation.difficulty == QuizDifficulty.HARD
    assert recommendation.trend == "stable"
    assert recommendation.reasoning == REASONING[QuizDifficulty.HARD]


def test_high_but_declining_scores_recommend_medium():
    # Chronological 100, 95, 85, 80: average 90 but falling
    recommendation = recommend_difficulty([80, 85, 95, 100])

    assert recommendation.difficulty == QuizDifficulty.MEDIUM
    assert recommendation.trend == "declining"


def test_middle_band_recommends_mixed():
    recommendation = recommend_difficulty([65, 65])

    assert recommendation.difficulty == QuizDifficulty.MIXED
    assert recommendation.reasoning == REASONING[QuizDifficulty.MIXED]


def test_only_five_most_recent_scores_are_used():
    recommendation = recommend_difficulty([90, 90, 90, 90, 90, 0, 0, 0])

    assert recommendation.average_score == 90.0
    assert recommendation.difficulty == QuizDifficulty.HARD


def test_missing_scores_count_as_zero():
    recommendation = recommend_difficulty([None, 50])

    assert recommendation.average_score == 25.0
    assert recommendation.difficulty == QuizDifficulty.EASY


def test_malformed_history_falls_back_to_mixed():
    recommendation = recommend_difficulty(["not-a-score", 80])

    assert recommendation.difficulty == QuizDifficulty.MIXED
    assert recommendation.trend == "unknown"
    assert recommendation.reasoning == FAILURE_REASONING


@pytest.mark.parametrize(
    "scores,expected",
    [
        ([], 0.0),
        ([70], 0.0),
        ([40, 60], 20.0),
        ([40, 50, 60], 15.0),
        ([80, 80, 60, 60], -20.0),
    ],
)
def test_calculate_trend(scores, expected):
    assert calculate_trend(scores) == pytest.approx(expected)


def test_trend_label_threshold():
    assert trend_label(3) == "improving"
    assert trend_label(3, threshold=5) == "stable"
    assert trend_label(-6, threshold=5) == "declining"
    assert trend_label(0) == "stable"
