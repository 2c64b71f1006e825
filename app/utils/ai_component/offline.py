import logging
from typing import Any, Dict, List

from app.core.exceptions import UpstreamUnavailableError
from app.schemas.quiz import GeneratedQuestion
from app.utils.ai_component.interface import AnswerEvaluation, GenerationService

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "AI service is not configured"


class OfflineGenerationService(GenerationService):
    """
    Used when no AI backend is configured.

    Every capability reports the upstream as unavailable so that callers take
    their regular degradation paths (sample questions, similarity grading,
    fixed hint, generic suggestions).
    """

    async def generate_questions(
        self,
        subject: str,
        grade_level: int,
        difficulty: str,
        count: int,
        topics: List[str],
    ) -> List[GeneratedQuestion]:
        raise UpstreamUnavailableError(UNAVAILABLE_MESSAGE)

    async def generate_hint(
        self, question_text: str, subject: str, grade_level: int
    ) -> str:
        raise UpstreamUnavailableError(UNAVAILABLE_MESSAGE)

    async def evaluate_answer(
        self,
        question: str,
        user_answer: str,
        correct_answer: str,
        subject: str,
        grade_level: int,
    ) -> AnswerEvaluation:
        raise UpstreamUnavailableError(UNAVAILABLE_MESSAGE)

    async def generate_suggestions(
        self,
        quiz_meta: Dict[str, Any],
        performance_summary: Dict[str, Any],
        incorrect_questions: List[str],
    ) -> List[str]:
        raise UpstreamUnavailableError(UNAVAILABLE_MESSAGE)

    async def test_connection(self) -> Dict[str, Any]:
        return {
            "status": "offline",
            "model": None,
            "message": UNAVAILABLE_MESSAGE,
            "fallback": "Sample questions and similarity grading are in use",
        }
