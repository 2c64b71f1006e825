# app/services/submission.py
import logging
import math
from datetime import datetime, time
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session, joinedload

from app.core.exceptions import (
    InvalidStateError,
    LimitExceededError,
    NotFoundError,
    ValidationFailedError,
)
from app.models.enums import ACCEPTED_STATUSES, SubmissionStatus
from app.models.quiz import Quiz
from app.models.submission import Answer, Submission
from app.models.user import User
from app.schemas.quiz import Pagination
from app.schemas.submission import (
    AnswerDetail,
    AnswerResult,
    HistoryFilters,
    HistoryItem,
    HistoryQuiz,
    HistoryResponse,
    PerformanceAnalysis,
    PerformanceSummaryResponse,
    PreviousAttempt,
    RecentPerformance,
    RetryCheckResponse,
    StartQuizResponse,
    SubjectPerformance,
    SubmissionDetail,
    SubmissionDetailResponse,
    SubmissionSummary,
    SubmitQuizRequest,
    SubmitQuizResponse,
)
from app.services.adaptive import calculate_trend, trend_label
from app.services.grading import grade
from app.services.repository import QuizRepository
from app.services.scoring import aggregate_results, build_suggestions, get_grade
from app.utils.ai_component.interface import GenerationService
from app.utils.mathutils import round_half_up
from app.utils.timeutils import minutes_between, utcnow

logger = logging.getLogger(__name__)

RECENT_ATTEMPTS_SHOWN = 3
RECENT_PERFORMANCE_SHOWN = 5
SUMMARY_TREND_THRESHOLD = 5


class SubmissionService:
    def __init__(
        self, db: Session, generation_service: Optional[GenerationService] = None
    ):
        self.db = db
        self.repository = QuizRepository(db)
        self.generation_service = generation_service

    # ==================== Attempt lifecycle ====================

    def _get_available_quiz(self, quiz_id: int, with_questions: bool = False) -> Quiz:
        quiz = self.repository.get_quiz(quiz_id, with_questions=with_questions)
        if not quiz:
            raise NotFoundError("Quiz not found", "QUIZ_NOT_FOUND")
        if not quiz.is_active:
            raise InvalidStateError("Quiz is not available", "QUIZ_INACTIVE")
        return quiz

    def _count_accepted_attempts(self, user: User, quiz: Quiz) -> int:
        attempts = self.repository.count_submissions(
            user.id, quiz.id, status_in=ACCEPTED_STATUSES
        )
        if attempts >= quiz.max_attempts:
            raise LimitExceededError(
                f"Maximum attempts ({quiz.max_attempts}) reached for this quiz",
                "MAX_ATTEMPTS_REACHED",
            )
        return attempts

    def start_attempt(self, user: User, quiz_id: int) -> Tuple[StartQuizResponse, bool]:
        """
        Start a quiz attempt, or resume the one already in progress.

        Returns:
            The attempt and whether a new submission was created
        """
        quiz = self._get_available_quiz(quiz_id, with_questions=True)
        attempts = self._count_accepted_attempts(user, quiz)

        submission = self.repository.find_in_progress_submission(user.id, quiz.id)
        created = submission is None
        if created:
            # Expired and abandoned attempts are not counted but keep their numbers
            highest = self.repository.get_highest_attempt_number(user.id, quiz.id)
            submission = self.repository.create_submission(
                user_id=user.id,
                quiz_id=quiz.id,
                attempt_number=max(attempts, highest) + 1,
                status=SubmissionStatus.IN_PROGRESS.value,
                total_questions=len(quiz.questions),
                total_points_possible=quiz.total_points,
                started_at=utcnow(),
            )
            logger.info(
                f"User {user.id} started quiz {quiz.id} (attempt {submission.attempt_number})"
            )
        else:
            logger.info(f"User {user.id} resumed submission {submission.id}")

        return (
            StartQuizResponse(
                submission_id=submission.id,
                quiz_id=quiz.id,
                quiz_title=quiz.title,
                attempt_number=submission.attempt_number,
                total_questions=submission.total_questions,
                total_points_possible=submission.total_points_possible,
                time_limit_minutes=quiz.time_limit_minutes,
                started_at=submission.started_at,
                resumed=not created,
            ),
            created,
        )

    async def submit_attempt(
        self, user: User, submission_id: int, request: SubmitQuizRequest
    ) -> SubmitQuizResponse:
        question_ids = [answer.question_id for answer in request.answers]
        if len(question_ids) != len(set(question_ids)):
            raise ValidationFailedError(
                "Each question can only be answered once", "VALIDATION_FAILED"
            )

        submission = self.repository.get_submission(submission_id, user.id)
        if not submission:
            raise NotFoundError("Submission not found", "SUBMISSION_NOT_FOUND")
        if submission.status != SubmissionStatus.IN_PROGRESS.value:
            raise InvalidStateError("Quiz is not in progress", "QUIZ_NOT_IN_PROGRESS")

        quiz = submission.quiz
        now = utcnow()
        if (
            quiz.time_limit_minutes
            and minutes_between(submission.started_at, now) > quiz.time_limit_minutes
        ):
            self.repository.update_submission(
                submission, status=SubmissionStatus.EXPIRED.value
            )
            logger.info(f"Submission {submission.id} expired before submit")
            raise LimitExceededError(
                "Quiz time limit exceeded", "TIME_LIMIT_EXCEEDED"
            )

        questions = {question.id: question for question in quiz.questions}
        results: List[AnswerResult] = []

        for submitted in request.answers:
            question = questions.get(submitted.question_id)
            if question is None:
                continue

            outcome = await grade(
                question,
                submitted.answer,
                quiz.subject,
                quiz.grade_level,
                self.generation_service,
            )
            self.repository.create_answer(
                submission_id=submission.id,
                question_id=question.id,
                user_answer=submitted.answer,
                is_correct=outcome.is_correct,
                points_earned=outcome.points_earned,
                time_taken_seconds=submitted.time_taken,
                hint_used=submitted.hint_used,
                ai_explanation=outcome.feedback,
            )
            results.append(
                AnswerResult(
                    question_id=question.id,
                    question_text=question.question_text,
                    user_answer=submitted.answer,
                    correct_answer=question.correct_answer,
                    is_correct=outcome.is_correct,
                    points_earned=outcome.points_earned,
                    points_possible=question.points,
                    explanation=question.explanation,
                    ai_explanation=outcome.feedback,
                    time_taken_seconds=submitted.time_taken,
                )
            )

        fields = aggregate_results(
            results,
            total_points_possible=submission.total_points_possible,
            started_at=submission.started_at,
            completed_at=utcnow(),
        )
        user.update_stats(fields["score_percentage"])
        submission = self.repository.update_submission(submission, **fields)

        # Same count the start check uses, so expired attempts never block a retry
        accepted = self.repository.count_submissions(
            user.id, quiz.id, status_in=ACCEPTED_STATUSES
        )

        incorrect = [result.question_text for result in results if not result.is_correct]
        suggestions = await build_suggestions(
            self.generation_service,
            subject=quiz.subject,
            grade_level=quiz.grade_level,
            correct_count=submission.correct_answers,
            total_questions=submission.total_questions,
            score_percentage=submission.score_percentage,
            incorrect_questions=incorrect,
        )
        submission = self.repository.update_submission(
            submission, improvement_suggestions=suggestions
        )

        logger.info(
            f"Submission {submission.id} completed: {submission.score_percentage}% "
            f"({submission.correct_answers}/{submission.total_questions})"
        )

        return SubmitQuizResponse(
            submission=SubmissionSummary.model_validate(submission),
            results=results,
            improvement_suggestions=suggestions,
            performance_analysis=PerformanceAnalysis(
                **submission.performance_analysis
            ),
            grade=get_grade(submission.score_percentage),
            can_retry=accepted < quiz.max_attempts,
        )

    def check_retry(self, user: User, quiz_id: int) -> RetryCheckResponse:
        quiz = self._get_available_quiz(quiz_id)
        attempts = self._count_accepted_attempts(user, quiz)

        previous = (
            self.db.query(Submission)
            .filter(
                Submission.user_id == user.id,
                Submission.quiz_id == quiz.id,
                Submission.status == SubmissionStatus.COMPLETED.value,
            )
            .order_by(Submission.completed_at.desc())
            .limit(RECENT_ATTEMPTS_SHOWN)
            .all()
        )

        return RetryCheckResponse(
            quiz_id=quiz.id,
            quiz_title=quiz.title,
            current_attempts=attempts,
            max_attempts=quiz.max_attempts,
            remaining_attempts=quiz.max_attempts - attempts,
            previous_attempts=[
                PreviousAttempt(
                    attempt_number=attempt.attempt_number,
                    score_percentage=attempt.score_percentage,
                    completed_at=attempt.completed_at,
                    grade=get_grade(attempt.score_percentage),
                )
                for attempt in previous
            ],
        )

    # ==================== Read models ====================

    def get_history(self, user: User, filters: HistoryFilters) -> HistoryResponse:
        query = (
            self.db.query(Submission)
            .join(Quiz, Submission.quiz_id == Quiz.id)
            .options(joinedload(Submission.quiz))
            .filter(Submission.user_id == user.id, Submission.status == filters.status)
        )

        if filters.marks_min is not None:
            query = query.filter(Submission.score_percentage >= filters.marks_min)
        if filters.marks_max is not None:
            query = query.filter(Submission.score_percentage <= filters.marks_max)
        if filters.from_date:
            query = query.filter(
                Submission.completed_at >= datetime.combine(filters.from_date, time.min)
            )
        if filters.to_date:
            query = query.filter(
                Submission.completed_at
                <= datetime.combine(filters.to_date, time(23, 59, 59))
            )
        if filters.grade:
            query = query.filter(Quiz.grade_level == filters.grade)
        if filters.subject:
            query = query.filter(Quiz.subject == filters.subject)

        total_count = query.count()
        submissions = (
            query.order_by(Submission.completed_at.desc(), Submission.id.desc())
            .offset((filters.page - 1) * filters.limit)
            .limit(filters.limit)
            .all()
        )

        return HistoryResponse(
            submissions=[
                HistoryItem(
                    id=submission.id,
                    quiz=HistoryQuiz.model_validate(submission.quiz),
                    attempt_number=submission.attempt_number,
                    status=submission.status,
                    score_percentage=submission.score_percentage,
                    correct_answers=submission.correct_answers,
                    total_questions=submission.total_questions,
                    time_taken_minutes=submission.time_taken_minutes,
                    completed_at=submission.completed_at,
                    grade=(
                        get_grade(submission.score_percentage)
                        if submission.score_percentage is not None
                        else None
                    ),
                    improvement_suggestions=submission.improvement_suggestions or [],
                )
                for submission in submissions
            ],
            pagination=build_pagination(filters.page, filters.limit, total_count),
        )

    def get_submission(self, user: User, submission_id: int) -> SubmissionDetailResponse:
        submission = (
            self.db.query(Submission)
            .options(
                joinedload(Submission.quiz),
                joinedload(Submission.answers).joinedload(Answer.question),
            )
            .filter(Submission.id == submission_id, Submission.user_id == user.id)
            .first()
        )
        if not submission:
            raise NotFoundError("Submission not found", "SUBMISSION_NOT_FOUND")

        detail = SubmissionDetail(
            **SubmissionSummary.model_validate(submission).model_dump(),
            quiz=HistoryQuiz.model_validate(submission.quiz),
            improvement_suggestions=submission.improvement_suggestions or [],
            performance_analysis=submission.performance_analysis,
            grade=(
                get_grade(submission.score_percentage)
                if submission.score_percentage is not None
                else None
            ),
        )

        return SubmissionDetailResponse(
            submission=detail,
            answers=[
                AnswerDetail(
                    question_id=answer.question.id,
                    question_text=answer.question.question_text,
                    question_type=answer.question.question_type,
                    options=answer.question.options,
                    user_answer=answer.user_answer,
                    correct_answer=answer.question.correct_answer,
                    is_correct=answer.is_correct,
                    points_earned=answer.points_earned,
                    points_possible=answer.question.points,
                    explanation=answer.question.explanation,
                    ai_explanation=answer.ai_explanation,
                    hint_used=answer.hint_used,
                    time_taken_seconds=answer.time_taken_seconds,
                )
                for answer in submission.answers
            ],
        )

    def get_performance_summary(self, user: User) -> PerformanceSummaryResponse:
        submissions = (
            self.db.query(Submission)
            .options(joinedload(Submission.quiz))
            .filter(
                Submission.user_id == user.id,
                Submission.status == SubmissionStatus.COMPLETED.value,
            )
            .order_by(Submission.completed_at.desc(), Submission.id.desc())
            .all()
        )
        if not submissions:
            return PerformanceSummaryResponse()

        scores = [submission.score_percentage or 0.0 for submission in submissions]

        subject_performance: Dict[str, SubjectPerformance] = {}
        for submission, score in zip(submissions, scores):
            stats = subject_performance.setdefault(
                submission.quiz.subject, SubjectPerformance()
            )
            stats.count += 1
            stats.total_score += score
            stats.best_score = max(stats.best_score, score)
        for stats in subject_performance.values():
            stats.average_score = round_half_up(stats.total_score / stats.count, 2)

        recent = submissions[:RECENT_PERFORMANCE_SHOWN]
        recent_scores = scores[:RECENT_PERFORMANCE_SHOWN]
        trend = calculate_trend(list(reversed(recent_scores)))

        return PerformanceSummaryResponse(
            total_quizzes=len(submissions),
            average_score=round_half_up(sum(scores) / len(scores), 2),
            best_score=max(scores),
            recent_performance=[
                RecentPerformance(
                    quiz_title=submission.quiz.title
                    or f"{submission.quiz.subject} Quiz",
                    subject=submission.quiz.subject,
                    score_percentage=submission.score_percentage,
                    completed_at=submission.completed_at,
                    grade=get_grade(submission.score_percentage),
                )
                for submission in recent
            ],
            subject_performance=subject_performance,
            improvement_trend=trend_label(trend, threshold=SUMMARY_TREND_THRESHOLD),
        )


def build_pagination(page: int, per_page: int, total_count: int) -> Pagination:
    return Pagination(
        current_page=page,
        total_pages=math.ceil(total_count / per_page) if per_page else 0,
        total_count=total_count,
        per_page=per_page,
        has_next=page * per_page < total_count,
        has_prev=page > 1,
    )
