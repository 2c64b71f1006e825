import logging
from typing import Any, Dict, List

from pydantic import ValidationError

from app.core.exceptions import UpstreamUnavailableError
from app.models.enums import QuestionDifficulty
from app.schemas.quiz import GeneratedQuestion
from app.utils.ai_component.interface import AnswerEvaluation
from app.utils.prompts import (
    ADVISOR_SYSTEM_MESSAGE,
    EVALUATOR_SYSTEM_MESSAGE,
    HINT_SYSTEM_MESSAGE,
    QUESTION_GENERATOR_SYSTEM_MESSAGE,
    get_evaluation_prompt,
    get_hint_prompt,
    get_quiz_questions_prompt,
    get_suggestions_prompt,
)

logger = logging.getLogger(__name__)

_QUESTION_DIFFICULTIES = {level.value for level in QuestionDifficulty}


class QuizGeneratorMixin:
    async def generate_questions(
        self,
        subject: str,
        grade_level: int,
        difficulty: str,
        count: int,
        topics: List[str],
    ) -> List[GeneratedQuestion]:
        """
        Generate multiple-choice quiz questions for a subject and grade

        Args:
            subject: Quiz subject (e.g. mathematics)
            grade_level: School grade 1-12
            difficulty: easy, medium, hard or mixed
            count: Number of questions requested
            topics: Optional topics to focus on

        Returns:
            Validated questions numbered from 1

        Raises:
            UpstreamUnavailableError: If the AI call fails or returns an unusable payload
        """
        prompt = get_quiz_questions_prompt(
            subject, grade_level, difficulty, count, topics
        )
        payload = await self.generate_json(
            prompt=prompt,
            system_message=QUESTION_GENERATOR_SYSTEM_MESSAGE,
            temperature=0.7,
            max_tokens=2000,
        )

        if isinstance(payload, dict) and isinstance(payload.get("questions"), list):
            payload = payload["questions"]
        if not isinstance(payload, list) or not payload:
            raise UpstreamUnavailableError("AI returned no questions")

        try:
            questions = [
                self._to_generated_question(item, index + 1, difficulty)
                for index, item in enumerate(payload[:count])
            ]
        except (ValidationError, TypeError, AttributeError) as e:
            logger.error(f"AI returned malformed questions: {e}")
            raise UpstreamUnavailableError("AI returned malformed questions")

        logger.info(f"Generated {len(questions)} {subject} questions via AI")
        return questions

    @staticmethod
    def _to_generated_question(
        item: Dict[str, Any], order: int, requested_difficulty: str
    ) -> GeneratedQuestion:
        difficulty = item.get("difficulty")
        if difficulty not in _QUESTION_DIFFICULTIES:
            difficulty = (
                requested_difficulty
                if requested_difficulty in _QUESTION_DIFFICULTIES
                else QuestionDifficulty.MEDIUM.value
            )

        return GeneratedQuestion(
            question_text=item.get("question") or item.get("question_text"),
            question_type="multiple_choice",
            options=item.get("options"),
            correct_answer=str(
                item.get("correctAnswer") or item.get("correct_answer") or ""
            ).strip(),
            explanation=item.get("explanation"),
            hint=item.get("hint"),
            difficulty=difficulty,
            points=item.get("points") or 1,
            question_order=order,
        )

    async def generate_hint(
        self, question_text: str, subject: str, grade_level: int
    ) -> str:
        """Generate a hint that guides without revealing the answer"""
        hint = await self.generate_completion(
            prompt=get_hint_prompt(question_text, subject, grade_level),
            system_message=HINT_SYSTEM_MESSAGE,
            temperature=0.6,
            max_tokens=200,
        )
        return hint

    async def evaluate_answer(
        self,
        question: str,
        user_answer: str,
        correct_answer: str,
        subject: str,
        grade_level: int,
    ) -> AnswerEvaluation:
        """
        Judge a free-text answer against the reference answer

        Returns:
            AnswerEvaluation with partial credit clamped to [0, 1]
        """
        payload = await self.generate_json(
            prompt=get_evaluation_prompt(
                question, user_answer, correct_answer, subject, grade_level
            ),
            system_message=EVALUATOR_SYSTEM_MESSAGE,
            temperature=0.3,
            max_tokens=300,
        )
        if not isinstance(payload, dict) or "isCorrect" not in payload:
            raise UpstreamUnavailableError("AI returned a malformed evaluation")

        try:
            partial_credit = float(payload.get("partialCredit", 0))
        except (TypeError, ValueError):
            raise UpstreamUnavailableError("AI returned a malformed evaluation")

        return AnswerEvaluation(
            is_correct=bool(payload["isCorrect"]),
            partial_credit=min(max(partial_credit, 0.0), 1.0),
            feedback=str(payload.get("feedback") or ""),
        )

    async def generate_suggestions(
        self,
        quiz_meta: Dict[str, Any],
        performance_summary: Dict[str, Any],
        incorrect_questions: List[str],
    ) -> List[str]:
        """Generate exactly two improvement suggestions for a finished attempt"""
        payload = await self.generate_json(
            prompt=get_suggestions_prompt(
                subject=quiz_meta.get("subject", ""),
                grade_level=quiz_meta.get("grade_level", 0),
                correct_count=performance_summary.get("correct_count", 0),
                total_questions=performance_summary.get("total_questions", 0),
                score_percentage=performance_summary.get("score_percentage", 0),
                incorrect_questions=incorrect_questions,
            ),
            system_message=ADVISOR_SYSTEM_MESSAGE,
            temperature=0.7,
            max_tokens=400,
        )

        if (
            not isinstance(payload, list)
            or len(payload) != 2
            or not all(isinstance(item, str) and item.strip() for item in payload)
        ):
            raise UpstreamUnavailableError("AI returned malformed suggestions")

        return [item.strip() for item in payload]

    async def test_connection(self) -> Dict[str, Any]:
        """Send a trivial prompt and report whether the AI backend answered"""
        try:
            response = await self.generate_completion(
                prompt="Say 'Hello, AI Quizzer!' if you can hear me.",
                temperature=0,
                max_tokens=20,
            )
        except UpstreamUnavailableError as e:
            return {"status": "error", "model": self.model, "message": e.message}

        return {"status": "connected", "model": self.model, "response": response}
