# app/schemas/quiz.py
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.core.config import settings
from app.models.enums import (
    QuestionDifficulty,
    QuestionType,
    QuizDifficulty,
    Subject,
)

SortField = Literal["created_at", "title", "grade_level", "subject", "difficulty_level"]


# ==================== Question Schemas ====================


class GeneratedQuestion(BaseModel):
    """A question as produced by the generation service (or the sample bank)."""

    question_text: str = Field(..., min_length=1)
    question_type: QuestionType = QuestionType.MULTIPLE_CHOICE
    options: Optional[List[str]] = None
    correct_answer: str = Field(..., min_length=1)
    explanation: Optional[str] = None
    hint: Optional[str] = None
    difficulty: QuestionDifficulty = QuestionDifficulty.MEDIUM
    points: int = Field(default=1, ge=1, le=10)
    question_order: int = Field(..., ge=1)

    @model_validator(mode="after")
    def check_options(self):
        if self.question_type == QuestionType.MULTIPLE_CHOICE and (
            not self.options or len(self.options) < 2
        ):
            raise ValueError("Multiple choice questions must have at least 2 options")
        return self


class QuestionForAttempt(BaseModel):
    """Question as shown while taking a quiz - WITHOUT correct answer"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    question_text: str
    question_type: str
    options: Optional[List[str]] = None
    difficulty: str
    points: int
    question_order: int


class QuestionResponse(QuestionForAttempt):
    """Question with answer key - shown to the quiz owner"""

    correct_answer: str
    explanation: Optional[str] = None
    hint: Optional[str] = None


# ==================== Quiz Schemas ====================


class GenerateQuizRequest(BaseModel):
    subject: Subject
    grade_level: int = Field(..., ge=1, le=12)
    total_questions: int = Field(default=settings.default_total_questions, ge=1, le=50)
    difficulty_level: Optional[Literal["easy", "medium", "hard", "mixed", "adaptive"]] = (
        None
    )
    title: Optional[str] = Field(None, min_length=5, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    topics: List[str] = Field(default_factory=list)
    time_limit_minutes: Optional[int] = Field(None, ge=1, le=180)
    max_attempts: Optional[int] = Field(None, ge=1, le=10)


class QuizUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=5, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    time_limit_minutes: Optional[int] = Field(None, ge=1, le=180)
    max_attempts: Optional[int] = Field(None, ge=1, le=10)
    is_active: Optional[bool] = None
    tags: Optional[List[str]] = None


class CreatorSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str


class QuizSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    subject: str
    grade_level: int
    difficulty_level: str
    total_questions: int
    time_limit_minutes: Optional[int] = None
    max_attempts: int
    is_active: bool
    created_by: int
    tags: List[str] = []
    ai_generated: bool
    created_at: Optional[datetime] = None
    creator: Optional[CreatorSummary] = None


class QuizResponse(QuizSummary):
    questions: List[QuestionForAttempt] = []


class QuizWithAnswersResponse(QuizSummary):
    questions: List[QuestionResponse] = []


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total_count: int
    per_page: int
    has_next: bool
    has_prev: bool


class QuizListResponse(BaseModel):
    quizzes: List[QuizSummary]
    pagination: Pagination


class DifficultyRecommendation(BaseModel):
    difficulty: QuizDifficulty
    reasoning: str
    average_score: float = 0.0
    trend: str


class DifficultyAnalysis(BaseModel):
    recommended_difficulty: QuizDifficulty
    based_on_history: bool
    recommendation: DifficultyRecommendation


class GenerateQuizResponse(BaseModel):
    quiz: QuizWithAnswersResponse
    difficulty_analysis: Optional[DifficultyAnalysis] = None


class HintResponse(BaseModel):
    hint: str
    question_id: int


class ScoreDistribution(BaseModel):
    excellent: int = 0
    good: int = 0
    fair: int = 0
    poor: int = 0


class QuizStatsResponse(BaseModel):
    total_attempts: int = 0
    average_score: float = 0.0
    highest_score: float = 0.0
    lowest_score: float = 0.0
    average_completion_time: float = 0.0
    unique_participants: int = 0
    score_distribution: ScoreDistribution = Field(default_factory=ScoreDistribution)


class AIConnectionStatus(BaseModel):
    status: str
    model: Optional[str] = None
    message: Optional[str] = None
    response: Optional[str] = None
    fallback: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
