import os

# Point the app at a private in-memory database and keep the AI backend offline
# before anything under app/ reads the settings.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AI_API_KEY"] = ""
os.environ["AI_API_ENDPOINT"] = ""
os.environ["AI_MODEL"] = ""
os.environ["PASSWORD_HASH_ROUNDS"] = "4"
os.environ["AUTH_AUTO_REGISTER"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "true"
os.environ["DEBUG"] = "false"

from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from app.core.database import Base, SessionLocal, engine
from app.core.dependencies import get_generation_service
from app.core.exceptions import UpstreamUnavailableError
from app.core.hasher import PasswordHelper
from app.core.limiter import limiter
from app.core.security import jwt_manager
from app.models.quiz import Question, Quiz
from app.models.user import User
from app.schemas.quiz import GeneratedQuestion
from app.utils.ai_component.interface import AnswerEvaluation, GenerationService
from main import app


class FakeGenerationService(GenerationService):
    """
    Scripted generation backend.

    Every attribute left as None makes the matching call raise
    UpstreamUnavailableError, just like the offline service.
    """

    def __init__(self):
        self.questions: Optional[List[GeneratedQuestion]] = None
        self.hint: Optional[str] = None
        self.evaluation: Optional[AnswerEvaluation] = None
        self.suggestions: Optional[List[str]] = None
        self.calls: List[str] = []

    def _respond(self, name: str, value):
        self.calls.append(name)
        if value is None:
            raise UpstreamUnavailableError(f"{name} unavailable in tests")
        return value

    async def generate_questions(self, subject, grade_level, difficulty, count, topics):
        return self._respond("generate_questions", self.questions)

    async def generate_hint(self, question_text, subject, grade_level):
        return self._respond("generate_hint", self.hint)

    async def evaluate_answer(
        self, question, user_answer, correct_answer, subject, grade_level
    ):
        return self._respond("evaluate_answer", self.evaluation)

    async def generate_suggestions(
        self, quiz_meta, performance_summary, incorrect_questions
    ):
        return self._respond("generate_suggestions", self.suggestions)

    async def test_connection(self) -> Dict[str, Any]:
        self.calls.append("test_connection")
        return {"status": "connected", "model": "fake-model", "response": "Hello"}


@pytest.fixture(autouse=True)
def reset_state():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    limiter.reset()
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fake_ai():
    return FakeGenerationService()


@pytest.fixture
def client(fake_ai):
    app.dependency_overrides[get_generation_service] = lambda: fake_ai
    return TestClient(app)


@pytest.fixture
def make_user(db):
    def _make_user(username="student", password="Secret123", **fields):
        user = User(
            username=username,
            email=fields.pop("email", f"{username}@example.com"),
            hashed_password=PasswordHelper.hash_password(password),
            grade_level=fields.pop("grade_level", 8),
            preferred_subjects=fields.pop("preferred_subjects", []),
            **fields,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def auth_headers():
    def _auth_headers(user: User) -> Dict[str, str]:
        return {"Authorization": f"Bearer {jwt_manager.create_access_token(user)}"}

    return _auth_headers


def multiple_choice(text, options, answer, points=1, **fields):
    return {
        "question_text": text,
        "question_type": "multiple_choice",
        "options": options,
        "correct_answer": answer,
        "points": points,
        **fields,
    }


@pytest.fixture
def make_quiz(db):
    def _make_quiz(
        creator: User,
        questions: Optional[List[Dict[str, Any]]] = None,
        subject="mathematics",
        **fields,
    ) -> Quiz:
        questions = questions or [
            multiple_choice("What is 2 + 2?", ["3", "4", "5", "6"], "B"),
            multiple_choice("What is 3 x 3?", ["6", "8", "9", "12"], "C"),
        ]
        quiz = Quiz(
            title=fields.pop("title", "Arithmetic basics"),
            subject=subject,
            grade_level=fields.pop("grade_level", 5),
            difficulty_level=fields.pop("difficulty_level", "easy"),
            total_questions=len(questions),
            max_attempts=fields.pop("max_attempts", 3),
            created_by=creator.id,
            tags=[],
            **fields,
        )
        quiz.questions = [
            Question(question_order=index + 1, tags=[], **question)
            for index, question in enumerate(questions)
        ]
        db.add(quiz)
        db.commit()
        db.refresh(quiz)
        return quiz

    return _make_quiz
