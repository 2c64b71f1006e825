# app/models/submission.py
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Text,
    String,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from app.core.database import Base
from app.models.enums import SubmissionStatus
from app.models.column_types import JSONType


class Submission(Base):
    __tablename__ = "submissions"
    __table_args__ = (
        # Storage-level guard against two concurrent starts racing to the same number
        UniqueConstraint(
            "user_id", "quiz_id", "attempt_number", name="uq_submission_attempt"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)

    # Relationships
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.id"), nullable=False, index=True)

    # Attempt data
    attempt_number = Column(Integer, nullable=False, default=1)
    status = Column(
        String(20), nullable=False, default=SubmissionStatus.IN_PROGRESS.value
    )
    total_questions = Column(Integer, nullable=False)
    correct_answers = Column(Integer, nullable=False, default=0)
    total_points_earned = Column(Integer, nullable=False, default=0)
    total_points_possible = Column(Integer, nullable=False)
    score_percentage = Column(Float, nullable=True, index=True)  # Null until completed

    # Time tracking
    started_at = Column(DateTime, nullable=False)
    completed_at = Column(DateTime, nullable=True, index=True)
    time_taken_minutes = Column(Float, nullable=True)

    # Feedback
    improvement_suggestions = Column(JSONType, nullable=False, default=list)
    performance_analysis = Column(
        JSONType, nullable=True
    )  # {"strengths": [...], "weaknesses": [...], "average_time_per_question": 0.0}

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self):
        return (
            f"<Submission(id={self.id}, user_id={self.user_id}, quiz_id={self.quiz_id}, "
            f"attempt={self.attempt_number}, status='{self.status}')>"
        )


class Answer(Base):
    __tablename__ = "answers"
    __table_args__ = (
        UniqueConstraint("submission_id", "question_id", name="uq_answer_question"),
    )

    id = Column(Integer, primary_key=True, index=True)
    submission_id = Column(
        Integer, ForeignKey("submissions.id"), nullable=False, index=True
    )
    question_id = Column(Integer, ForeignKey("questions.id"), nullable=False, index=True)

    user_answer = Column(Text, nullable=True)
    is_correct = Column(Boolean, nullable=False, default=False)
    points_earned = Column(Integer, nullable=False, default=0)
    time_taken_seconds = Column(Integer, nullable=True)
    hint_used = Column(Boolean, nullable=False, default=False)
    ai_explanation = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Answer(id={self.id}, submission_id={self.submission_id}, correct={self.is_correct})>"
