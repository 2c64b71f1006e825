# app/services/repository.py
from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload, selectinload

from app.core.decorator import db_exception
from app.models.enums import SubmissionStatus
from app.models.quiz import Quiz
from app.models.submission import Answer, Submission


class QuizRepository:
    """Storage access used by the attempt lifecycle and the adaptive estimator."""

    def __init__(self, db: Session):
        self.db = db

    def get_quiz(self, quiz_id: int, with_questions: bool = False) -> Optional[Quiz]:
        query = self.db.query(Quiz).filter(Quiz.id == quiz_id)
        if with_questions:
            query = query.options(selectinload(Quiz.questions))
        return query.first()

    def count_submissions(
        self, user_id: int, quiz_id: int, status_in: Iterable[str]
    ) -> int:
        return (
            self.db.query(func.count(Submission.id))
            .filter(
                Submission.user_id == user_id,
                Submission.quiz_id == quiz_id,
                Submission.status.in_(list(status_in)),
            )
            .scalar()
            or 0
        )

    def get_highest_attempt_number(self, user_id: int, quiz_id: int) -> int:
        return (
            self.db.query(func.max(Submission.attempt_number))
            .filter(Submission.user_id == user_id, Submission.quiz_id == quiz_id)
            .scalar()
            or 0
        )

    def find_in_progress_submission(
        self, user_id: int, quiz_id: int
    ) -> Optional[Submission]:
        return (
            self.db.query(Submission)
            .filter(
                Submission.user_id == user_id,
                Submission.quiz_id == quiz_id,
                Submission.status == SubmissionStatus.IN_PROGRESS.value,
            )
            .order_by(Submission.attempt_number.desc())
            .first()
        )

    def get_submission(self, submission_id: int, user_id: int) -> Optional[Submission]:
        return (
            self.db.query(Submission)
            .options(joinedload(Submission.quiz))
            .filter(Submission.id == submission_id, Submission.user_id == user_id)
            .first()
        )

    @db_exception
    def create_submission(self, **fields) -> Submission:
        submission = Submission(**fields)
        self.db.add(submission)
        self.db.commit()
        self.db.refresh(submission)
        return submission

    @db_exception
    def update_submission(self, submission: Submission, **fields) -> Submission:
        for field, value in fields.items():
            setattr(submission, field, value)
        self.db.commit()
        self.db.refresh(submission)
        return submission

    @db_exception
    def create_answer(self, **fields) -> Answer:
        # Flushed only; the caller commits answers together with the finalized submission
        answer = Answer(**fields)
        self.db.add(answer)
        self.db.flush()
        return answer

    def list_recent_completed_submissions(
        self, user_id: int, subject: Optional[str] = None, limit: int = 10
    ) -> List[Submission]:
        """Completed submissions, newest first."""
        query = self.db.query(Submission).filter(
            Submission.user_id == user_id,
            Submission.status == SubmissionStatus.COMPLETED.value,
        )
        if subject:
            query = query.join(Quiz, Submission.quiz_id == Quiz.id).filter(
                Quiz.subject == subject
            )
        return (
            query.order_by(Submission.completed_at.desc(), Submission.id.desc())
            .limit(limit)
            .all()
        )
