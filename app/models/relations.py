# app/models/relations.py

from sqlalchemy.orm import relationship

# Import all relevant models
from .quiz import Question, Quiz
from .submission import Answer, Submission
from .user import User


def setup_relationships():
    """
    Configure all SQLAlchemy relationships between models.
    """

    # --- Quiz Authoring ---

    # 1. User to created Quizzes (One-to-Many)
    User.created_quizzes = relationship("Quiz", back_populates="creator")
    Quiz.creator = relationship("User", back_populates="created_quizzes")

    # 2. Quiz owns its Questions (cascade delete)
    Quiz.questions = relationship(
        "Question",
        back_populates="quiz",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Question.question_order",
    )
    Question.quiz = relationship("Quiz", back_populates="questions")

    # --- Attempts ---

    # 3. User to Submissions (One-to-Many, never cascaded: audit trail)
    User.submissions = relationship("Submission", back_populates="user")
    Submission.user = relationship("User", back_populates="submissions")

    # 4. Quiz to Submissions (One-to-Many)
    Quiz.submissions = relationship("Submission", back_populates="quiz")
    Submission.quiz = relationship("Quiz", back_populates="submissions")

    # 5. Submission to Answers (One-to-Many)
    Submission.answers = relationship(
        "Answer",
        back_populates="submission",
        order_by="Answer.id",
    )
    Answer.submission = relationship("Submission", back_populates="answers")

    # 6. Answer to Question (Many-to-One)
    Question.answers = relationship("Answer", back_populates="question")
    Answer.question = relationship("Question", back_populates="answers")
