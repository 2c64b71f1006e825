# app/models/quiz.py
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.sql import func

from app.core.config import settings
from app.core.database import Base
from app.models.enums import QuestionDifficulty, QuestionType, QuizDifficulty
from app.models.column_types import JSONType


class Quiz(Base):
    __tablename__ = "quizzes"
    __table_args__ = (Index("ix_quizzes_subject_grade", "subject", "grade_level"),)

    id = Column(Integer, primary_key=True, index=True)

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    subject = Column(String(100), nullable=False)
    grade_level = Column(Integer, nullable=False)
    difficulty_level = Column(
        String(20), nullable=False, default=QuizDifficulty.MIXED.value, index=True
    )

    # Quiz settings
    total_questions = Column(Integer, nullable=False)
    time_limit_minutes = Column(Integer, nullable=True)  # Null = untimed
    max_attempts = Column(
        Integer, nullable=False, default=settings.default_max_attempts
    )
    is_active = Column(Boolean, nullable=False, default=True)

    # Ownership & generation metadata
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    tags = Column(JSONType, nullable=False, default=list)
    ai_generated = Column(Boolean, nullable=False, default=True)
    generation_prompt = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    @property
    def total_points(self) -> int:
        return sum(question.points for question in self.questions)

    def __repr__(self):
        return f"<Quiz(id={self.id}, subject='{self.subject}', grade={self.grade_level})>"


class Question(Base):
    __tablename__ = "questions"
    __table_args__ = (Index("ix_questions_quiz_order", "quiz_id", "question_order"),)

    id = Column(Integer, primary_key=True, index=True)
    quiz_id = Column(
        Integer, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False
    )

    question_text = Column(Text, nullable=False)
    question_type = Column(
        String(20), nullable=False, default=QuestionType.MULTIPLE_CHOICE.value
    )
    options = Column(JSONType, nullable=True)  # ["Option A", "Option B", ...]
    correct_answer = Column(Text, nullable=False)
    explanation = Column(Text, nullable=True)
    difficulty = Column(
        String(10), nullable=False, default=QuestionDifficulty.MEDIUM.value, index=True
    )
    points = Column(Integer, nullable=False, default=1)  # 1-10
    question_order = Column(Integer, nullable=False)  # 1-based

    # Hints: author-provided first, AI hint cached on first request
    hint = Column(Text, nullable=True)
    ai_generated_hint = Column(Text, nullable=True)
    tags = Column(JSONType, nullable=False, default=list)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Question(id={self.id}, quiz_id={self.quiz_id}, type='{self.question_type}')>"
