"""
Generation capability consumed by the quiz services.

Two implementations exist: AIService (OpenAI-compatible client) and
OfflineGenerationService. One of them is chosen at startup by
build_generation_service() and injected into the services.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from pydantic import BaseModel, Field

from app.schemas.quiz import GeneratedQuestion


class AnswerEvaluation(BaseModel):
    is_correct: bool
    partial_credit: float = Field(..., ge=0.0, le=1.0)
    feedback: str = ""


class GenerationService(ABC):
    """Every method raises UpstreamUnavailableError when it cannot answer."""

    @abstractmethod
    async def generate_questions(
        self,
        subject: str,
        grade_level: int,
        difficulty: str,
        count: int,
        topics: List[str],
    ) -> List[GeneratedQuestion]: ...

    @abstractmethod
    async def generate_hint(
        self, question_text: str, subject: str, grade_level: int
    ) -> str: ...

    @abstractmethod
    async def evaluate_answer(
        self,
        question: str,
        user_answer: str,
        correct_answer: str,
        subject: str,
        grade_level: int,
    ) -> AnswerEvaluation: ...

    @abstractmethod
    async def generate_suggestions(
        self,
        quiz_meta: Dict[str, Any],
        performance_summary: Dict[str, Any],
        incorrect_questions: List[str],
    ) -> List[str]: ...

    @abstractmethod
    async def test_connection(self) -> Dict[str, Any]: ...

    async def close(self) -> None:
        return None
