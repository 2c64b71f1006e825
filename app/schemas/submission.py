# app/schemas/submission.py
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.quiz import Pagination


class SubmittedAnswer(BaseModel):
    question_id: int
    answer: str
    time_taken: Optional[int] = Field(None, ge=0, description="Seconds spent")
    hint_used: bool = False

    @field_validator("answer")
    @classmethod
    def answer_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Each answer must have a response")
        return value


class SubmitQuizRequest(BaseModel):
    answers: List[SubmittedAnswer] = Field(..., min_length=1)


class StartQuizResponse(BaseModel):
    submission_id: int
    quiz_id: int
    quiz_title: str
    attempt_number: int
    total_questions: int
    total_points_possible: int
    time_limit_minutes: Optional[int] = None
    started_at: datetime
    resumed: bool = False


class AnswerResult(BaseModel):
    question_id: int
    question_text: str
    user_answer: str
    correct_answer: str
    is_correct: bool
    points_earned: int
    points_possible: int
    explanation: Optional[str] = None
    ai_explanation: Optional[str] = None
    time_taken_seconds: Optional[int] = None


class PerformanceAnalysis(BaseModel):
    strengths: List[int] = []
    weaknesses: List[int] = []
    average_time_per_question: float = 0.0


class SubmissionSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    quiz_id: int
    attempt_number: int
    status: str
    score_percentage: Optional[float] = None
    correct_answers: int
    total_questions: int
    total_points_earned: int
    total_points_possible: int
    time_taken_minutes: Optional[float] = None
    started_at: datetime
    completed_at: Optional[datetime] = None


class SubmitQuizResponse(BaseModel):
    submission: SubmissionSummary
    results: List[AnswerResult]
    improvement_suggestions: List[str]
    performance_analysis: PerformanceAnalysis
    grade: str
    can_retry: bool


class HistoryQuiz(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    subject: str
    grade_level: int
    difficulty_level: str
    total_questions: int


class HistoryItem(BaseModel):
    id: int
    quiz: HistoryQuiz
    attempt_number: int
    status: str
    score_percentage: Optional[float] = None
    correct_answers: int
    total_questions: int
    time_taken_minutes: Optional[float] = None
    completed_at: Optional[datetime] = None
    grade: Optional[str] = None
    improvement_suggestions: List[str] = []


class HistoryFilters(BaseModel):
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)
    grade: Optional[int] = Field(None, ge=1, le=12)
    subject: Optional[str] = None
    marks_min: Optional[float] = Field(None, ge=0, le=100)
    marks_max: Optional[float] = Field(None, ge=0, le=100)
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    status: str = "completed"


class HistoryResponse(BaseModel):
    submissions: List[HistoryItem]
    pagination: Pagination


class AnswerDetail(BaseModel):
    question_id: int
    question_text: str
    question_type: str
    options: Optional[List[str]] = None
    user_answer: Optional[str] = None
    correct_answer: str
    is_correct: bool
    points_earned: int
    points_possible: int
    explanation: Optional[str] = None
    ai_explanation: Optional[str] = None
    hint_used: bool
    time_taken_seconds: Optional[int] = None


class SubmissionDetail(SubmissionSummary):
    quiz: HistoryQuiz
    improvement_suggestions: List[str] = []
    performance_analysis: Optional[Dict[str, Any]] = None
    grade: Optional[str] = None


class SubmissionDetailResponse(BaseModel):
    submission: SubmissionDetail
    answers: List[AnswerDetail]


class PreviousAttempt(BaseModel):
    attempt_number: int
    score_percentage: Optional[float] = None
    completed_at: Optional[datetime] = None
    grade: Optional[str] = None


class RetryCheckResponse(BaseModel):
    quiz_id: int
    quiz_title: str
    current_attempts: int
    max_attempts: int
    remaining_attempts: int
    previous_attempts: List[PreviousAttempt]


class RecentPerformance(BaseModel):
    quiz_title: str
    subject: str
    score_percentage: Optional[float] = None
    completed_at: Optional[datetime] = None
    grade: Optional[str] = None


class SubjectPerformance(BaseModel):
    count: int = 0
    total_score: float = 0.0
    best_score: float = 0.0
    average_score: float = 0.0


class PerformanceSummaryResponse(BaseModel):
    total_quizzes: int = 0
    average_score: float = 0.0
    best_score: float = 0.0
    recent_performance: List[RecentPerformance] = []
    subject_performance: Dict[str, SubjectPerformance] = {}
    improvement_trend: str = "no_data"
