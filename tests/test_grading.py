"""
Tests for per-answer grading and the similarity fallback
"""

import asyncio

import pytest

from app.models.enums import QuestionType
from app.models.quiz import Question
from app.services.grading import (
    GRADING_STRATEGIES,
    SIMILARITY_CORRECT_FEEDBACK,
    SIMILARITY_INCORRECT_FEEDBACK,
    grade,
    grade_by_similarity,
    similarity,
)
from app.utils.ai_component.interface import AnswerEvaluation


def make_question(question_type="multiple_choice", correct_answer="B", points=1):
    return Question(
        id=1,
        question_text="Sample question",
        question_type=question_type,
        correct_answer=correct_answer,
        points=points,
        question_order=1,
    )


def run_grade(question, answer, fake_ai):
    return asyncio.run(grade(question, answer, "science", 7, fake_ai))


# ==================== Similarity ====================


def test_similarity_counts_shared_words_over_longer_text():
    assert similarity("the cat sat", "the cat") == pytest.approx(2 / 3)


def test_similarity_ignores_case():
    assert similarity("Photosynthesis Uses LIGHT", "photosynthesis uses light") == 1.0


def test_similarity_of_empty_inputs_is_zero():
    assert similarity("", "") == 0.0
    assert similarity("", "something") == 0.0
    assert similarity("   ", "something") == 0.0


def test_similarity_counts_repeated_answer_words():
    # Both "the" occurrences match, divided by the longer word count (3)
    assert similarity("the the end", "the start") == pytest.approx(2 / 3)


def test_grade_by_similarity_above_threshold_earns_full_points():
    question = make_question("short_answer", "plants make food from light", points=4)
    result = grade_by_similarity(question, "plants make food from light")

    assert result.is_correct is True
    assert result.points_earned == 4
    assert result.feedback == SIMILARITY_CORRECT_FEEDBACK


def test_grade_by_similarity_below_threshold_earns_partial_points():
    question = make_question("short_answer", "plants make food from light", points=5)
    # 3 of 5 words match -> 0.6, not above the 0.7 threshold
    result = grade_by_similarity(question, "plants make food")

    assert result.is_correct is False
    assert result.points_earned == 3
    assert result.feedback == SIMILARITY_INCORRECT_FEEDBACK


def test_grade_by_similarity_at_threshold_is_not_correct():
    question = make_question(
        "short_answer", "one two three four five six seven eight nine ten", points=10
    )
    result = grade_by_similarity(question, "one two three four five six seven")

    assert result.is_correct is False
    assert result.points_earned == 7


def test_grade_by_similarity_rounds_half_points_up():
    question = make_question("short_answer", "alpha beta", points=5)
    # 1 of 2 words match -> 0.5 * 5 = 2.5 points
    result = grade_by_similarity(question, "alpha gamma")

    assert result.is_correct is False
    assert result.points_earned == 3


# ==================== Objective questions ====================


def test_multiple_choice_is_case_insensitive_and_trimmed(fake_ai):
    question = make_question("multiple_choice", "B", points=2)

    result = run_grade(question, " b ", fake_ai)

    assert result.is_correct is True
    assert result.points_earned == 2
    assert fake_ai.calls == []


def test_multiple_choice_wrong_answer_earns_nothing(fake_ai):
    result = run_grade(make_question("multiple_choice", "B", points=3), "C", fake_ai)

    assert result.is_correct is False
    assert result.points_earned == 0


def test_true_false_is_exact_match(fake_ai):
    question = make_question("true_false", "True")

    assert run_grade(question, "true", fake_ai).is_correct is True
    assert run_grade(question, "false", fake_ai).is_correct is False


def test_answer_key_is_compared_without_trimming(fake_ai):
    question = make_question("multiple_choice", "B ", points=1)

    assert run_grade(question, "b", fake_ai).is_correct is False
    assert run_grade(question, "B ", fake_ai).is_correct is False


# ==================== Open-ended questions ====================


def test_short_answer_uses_ai_partial_credit(fake_ai):
    fake_ai.evaluation = AnswerEvaluation(
        is_correct=False, partial_credit=0.5, feedback="Close, mention chlorophyll."
    )
    question = make_question("short_answer", "Chlorophyll absorbs light", points=4)

    result = run_grade(question, "Leaves absorb light", fake_ai)

    assert result.is_correct is False
    assert result.points_earned == 2
    assert result.feedback == "Close, mention chlorophyll."
    assert fake_ai.calls == ["evaluate_answer"]


def test_ai_partial_credit_rounds_half_points_up(fake_ai):
    fake_ai.evaluation = AnswerEvaluation(
        is_correct=False, partial_credit=0.5, feedback="Half right."
    )
    question = make_question("essay", "Any essay", points=5)

    result = run_grade(question, "My essay", fake_ai)

    assert result.points_earned == 3


def test_essay_full_credit_from_ai(fake_ai):
    fake_ai.evaluation = AnswerEvaluation(
        is_correct=True, partial_credit=1.0, feedback="Well argued."
    )
    result = run_grade(make_question("essay", "Any essay", points=10), "My essay", fake_ai)

    assert result.is_correct is True
    assert result.points_earned == 10


def test_open_ended_falls_back_to_similarity_when_ai_unavailable(fake_ai):
    question = make_question("short_answer", "the water cycle", points=3)

    result = run_grade(question, "the water cycle", fake_ai)

    assert fake_ai.calls == ["evaluate_answer"]
    assert result.is_correct is True
    assert result.points_earned == 3
    assert result.feedback == SIMILARITY_CORRECT_FEEDBACK


def test_every_question_type_has_a_strategy():
    assert set(GRADING_STRATEGIES) == set(QuestionType)
