# app/services/quiz.py
import logging
from typing import List, Optional, Tuple, Union

from sqlalchemy import asc, desc, or_
from sqlalchemy.orm import Session, joinedload, selectinload

from app.core.config import settings
from app.core.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    UpstreamUnavailableError,
)
from app.models.enums import SubmissionStatus
from app.models.quiz import Question, Quiz
from app.models.submission import Submission
from app.models.user import User
from app.schemas.quiz import (
    DifficultyAnalysis,
    DifficultyRecommendation,
    GeneratedQuestion,
    GenerateQuizRequest,
    GenerateQuizResponse,
    HintResponse,
    QuizListResponse,
    QuizResponse,
    QuizStatsResponse,
    QuizSummary,
    QuizUpdate,
    QuizWithAnswersResponse,
    ScoreDistribution,
    SortField,
)
from app.services.adaptive import recommend_difficulty
from app.services.repository import QuizRepository
from app.services.submission import build_pagination
from app.utils.ai_component.interface import GenerationService
from app.utils.mathutils import round_half_up
from app.utils.sample_questions import build_sample_questions

logger = logging.getLogger(__name__)

FALLBACK_HINT = (
    "Think about the key concepts related to this topic and what you learned in class."
)

SORT_COLUMNS = {
    "created_at": Quiz.created_at,
    "title": Quiz.title,
    "grade_level": Quiz.grade_level,
    "subject": Quiz.subject,
    "difficulty_level": Quiz.difficulty_level,
}


class QuizService:
    def __init__(
        self, db: Session, generation_service: Optional[GenerationService] = None
    ):
        self.db = db
        self.repository = QuizRepository(db)
        self.generation_service = generation_service

    # ==================== Adaptive difficulty ====================

    def get_difficulty_recommendation(
        self, user: User, subject: str
    ) -> DifficultyRecommendation:
        """Recommend a difficulty from the user's recent completed quizzes in `subject`."""
        history = self.repository.list_recent_completed_submissions(
            user.id, subject=subject, limit=settings.adaptive_history_limit
        )
        return recommend_difficulty(
            [submission.score_percentage for submission in history]
        )

    # ==================== Generation ====================

    async def _generate_questions(
        self, subject: str, grade_level: int, difficulty: str, count: int, topics: List[str]
    ) -> Tuple[List[GeneratedQuestion], bool]:
        try:
            questions = await self.generation_service.generate_questions(
                subject=subject,
                grade_level=grade_level,
                difficulty=difficulty,
                count=count,
                topics=topics,
            )
            if questions:
                return questions, True
            logger.warning("AI returned an empty question list, using samples")
        except UpstreamUnavailableError as e:
            logger.warning(f"Question generation unavailable, using samples: {e.message}")

        return build_sample_questions(subject, difficulty, count), False

    async def generate_quiz(
        self, user: User, request: GenerateQuizRequest
    ) -> GenerateQuizResponse:
        subject = request.subject.value
        difficulty_analysis = None
        difficulty = request.difficulty_level

        if not difficulty or difficulty == "adaptive":
            history = self.repository.list_recent_completed_submissions(
                user.id, subject=subject, limit=settings.adaptive_history_limit
            )
            recommendation = recommend_difficulty(
                [submission.score_percentage for submission in history]
            )
            difficulty = recommendation.difficulty.value
            difficulty_analysis = DifficultyAnalysis(
                recommended_difficulty=recommendation.difficulty,
                based_on_history=bool(history),
                recommendation=recommendation,
            )

        logger.info(
            f"Generating {request.total_questions} {difficulty} questions for "
            f"{subject}, grade {request.grade_level}"
        )
        questions, ai_generated = await self._generate_questions(
            subject,
            request.grade_level,
            difficulty,
            request.total_questions,
            request.topics,
        )

        subject_name = subject.replace("_", " ").title()
        quiz = Quiz(
            title=request.title or f"{subject_name} Quiz - Grade {request.grade_level}",
            description=request.description
            or f"AI-generated {difficulty} level quiz covering {subject} topics.",
            subject=subject,
            grade_level=request.grade_level,
            difficulty_level=difficulty,
            total_questions=len(questions),
            time_limit_minutes=request.time_limit_minutes,
            max_attempts=request.max_attempts or settings.default_max_attempts,
            created_by=user.id,
            tags=list(request.topics),
            ai_generated=ai_generated,
            generation_prompt=(
                f"Subject: {subject}, Grade: {request.grade_level}, "
                f"Difficulty: {difficulty}, Topics: {', '.join(request.topics)}"
            ),
        )
        quiz.questions = [self._to_question(question) for question in questions]

        self.db.add(quiz)
        self.db.commit()
        self.db.refresh(quiz)
        logger.info(f"Quiz {quiz.id} created with {len(questions)} questions")

        return GenerateQuizResponse(
            quiz=QuizWithAnswersResponse.model_validate(quiz),
            difficulty_analysis=difficulty_analysis,
        )

    @staticmethod
    def _to_question(generated: GeneratedQuestion) -> Question:
        return Question(
            question_text=generated.question_text,
            question_type=generated.question_type.value,
            options=generated.options,
            correct_answer=generated.correct_answer,
            explanation=generated.explanation,
            hint=generated.hint,
            difficulty=generated.difficulty.value,
            points=generated.points,
            question_order=generated.question_order,
        )

    # ==================== CRUD ====================

    def list_quizzes(
        self,
        page: int = 1,
        limit: int = 10,
        subject: Optional[str] = None,
        grade_level: Optional[int] = None,
        difficulty_level: Optional[str] = None,
        created_by: Optional[int] = None,
        search: Optional[str] = None,
        sort_by: SortField = "created_at",
        sort_order: str = "desc",
    ) -> QuizListResponse:
        query = self.db.query(Quiz).filter(Quiz.is_active.is_(True))

        if subject:
            query = query.filter(Quiz.subject == subject)
        if grade_level:
            query = query.filter(Quiz.grade_level == grade_level)
        if difficulty_level:
            query = query.filter(Quiz.difficulty_level == difficulty_level)
        if created_by:
            query = query.filter(Quiz.created_by == created_by)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(Quiz.title.ilike(pattern), Quiz.description.ilike(pattern))
            )

        total_count = query.count()
        order = desc if sort_order.lower() == "desc" else asc
        quizzes = (
            query.options(joinedload(Quiz.creator))
            .order_by(order(SORT_COLUMNS[sort_by]), order(Quiz.id))
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )

        return QuizListResponse(
            quizzes=[QuizSummary.model_validate(quiz) for quiz in quizzes],
            pagination=build_pagination(page, limit, total_count),
        )

    def _get_quiz_or_404(self, quiz_id: int) -> Quiz:
        quiz = (
            self.db.query(Quiz)
            .options(selectinload(Quiz.questions), joinedload(Quiz.creator))
            .filter(Quiz.id == quiz_id)
            .first()
        )
        if not quiz:
            raise NotFoundError("Quiz not found", "QUIZ_NOT_FOUND")
        return quiz

    def _get_owned_quiz(self, user: User, quiz_id: int, action: str) -> Quiz:
        quiz = self._get_quiz_or_404(quiz_id)
        if quiz.created_by != user.id:
            raise PermissionDeniedError(
                f"You can only {action} your own quizzes", "INSUFFICIENT_PERMISSIONS"
            )
        return quiz

    def get_quiz(
        self, user: User, quiz_id: int, include_answers: bool = False
    ) -> Union[QuizResponse, QuizWithAnswersResponse]:
        quiz = self._get_quiz_or_404(quiz_id)
        if not quiz.is_active:
            raise NotFoundError("Quiz is not available", "QUIZ_INACTIVE")

        # Answer keys are only ever shown to the quiz's author
        if include_answers and quiz.created_by == user.id:
            return QuizWithAnswersResponse.model_validate(quiz)
        return QuizResponse.model_validate(quiz)

    def update_quiz(
        self, user: User, quiz_id: int, update: QuizUpdate
    ) -> QuizWithAnswersResponse:
        quiz = self._get_owned_quiz(user, quiz_id, "update")

        for field, value in update.model_dump(exclude_unset=True).items():
            if value is None and field not in ("time_limit_minutes", "description"):
                continue
            setattr(quiz, field, value)

        self.db.commit()
        self.db.refresh(quiz)
        logger.info(f"Quiz {quiz.id} updated by user {user.id}")
        return QuizWithAnswersResponse.model_validate(quiz)

    def delete_quiz(self, user: User, quiz_id: int) -> None:
        """Soft delete: submissions keep referencing the quiz."""
        quiz = self._get_owned_quiz(user, quiz_id, "delete")
        quiz.is_active = False
        self.db.commit()
        logger.info(f"Quiz {quiz.id} deactivated by user {user.id}")

    # ==================== Stats & hints ====================

    def get_quiz_stats(self, quiz_id: int) -> QuizStatsResponse:
        if not self.repository.get_quiz(quiz_id):
            raise NotFoundError("Quiz not found", "QUIZ_NOT_FOUND")

        submissions = (
            self.db.query(Submission)
            .filter(
                Submission.quiz_id == quiz_id,
                Submission.status == SubmissionStatus.COMPLETED.value,
            )
            .all()
        )
        if not submissions:
            return QuizStatsResponse()

        scores = [submission.score_percentage or 0.0 for submission in submissions]
        times = [
            submission.time_taken_minutes
            for submission in submissions
            if submission.time_taken_minutes
        ]

        return QuizStatsResponse(
            total_attempts=len(submissions),
            average_score=round_half_up(sum(scores) / len(scores), 2),
            highest_score=max(scores),
            lowest_score=min(scores),
            average_completion_time=round_half_up(sum(times) / len(times), 2) if times else 0.0,
            unique_participants=len({submission.user_id for submission in submissions}),
            score_distribution=ScoreDistribution(
                excellent=sum(1 for score in scores if score >= 90),
                good=sum(1 for score in scores if 70 <= score < 90),
                fair=sum(1 for score in scores if 50 <= score < 70),
                poor=sum(1 for score in scores if score < 50),
            ),
        )

    async def get_hint(self, quiz_id: int, question_id: int) -> HintResponse:
        question = (
            self.db.query(Question)
            .options(joinedload(Question.quiz))
            .filter(Question.id == question_id, Question.quiz_id == quiz_id)
            .first()
        )
        if not question:
            raise NotFoundError("Question not found", "QUESTION_NOT_FOUND")

        hint = question.hint or question.ai_generated_hint
        if not hint:
            try:
                hint = await self.generation_service.generate_hint(
                    question.question_text,
                    question.quiz.subject,
                    question.quiz.grade_level,
                )
                question.ai_generated_hint = hint
                self.db.commit()
            except UpstreamUnavailableError as e:
                logger.warning(f"AI hint unavailable for question {question.id}: {e.message}")
                hint = FALLBACK_HINT

        return HintResponse(hint=hint, question_id=question.id)
