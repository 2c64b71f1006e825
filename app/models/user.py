from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String
from sqlalchemy.sql import func

from app.core.config import settings
from app.core.database import Base
from app.models.column_types import JSONType
from app.utils.mathutils import round_half_up


class User(Base):
    __tablename__ = "users"

    # Primary key
    id = Column(Integer, primary_key=True, index=True)

    # Authentication fields
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(100), unique=True, index=True, nullable=True)
    hashed_password = Column(String(255), nullable=False)

    # Learner profile
    grade_level = Column(Integer, nullable=True, default=settings.default_grade_level)
    preferred_subjects = Column(JSONType, nullable=False, default=list)

    # Rolling statistics (updated after every completed submission)
    total_quizzes_attempted = Column(Integer, nullable=False, default=0)
    average_score = Column(Float, nullable=False, default=0.0)

    # Account status
    is_active = Column(Boolean, default=True, nullable=False)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime,
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
    last_login = Column(DateTime, nullable=True)

    def update_stats(self, new_score: float) -> None:
        """
        Fold a finished quiz score into the running average.

        The previous attempt count weights the old average, so the count is
        incremented only after the new average is computed.
        """
        previous_count = self.total_quizzes_attempted or 0
        previous_average = self.average_score or 0.0
        new_average = ((previous_average * previous_count) + new_score) / (
            previous_count + 1
        )
        self.average_score = round_half_up(new_average, 2)
        self.total_quizzes_attempted = previous_count + 1

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}')>"
