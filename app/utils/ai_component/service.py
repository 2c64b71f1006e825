import logging

from app.core.config import settings
from app.utils.ai_component.base import BaseAIService
from app.utils.ai_component.interface import GenerationService
from app.utils.ai_component.offline import OfflineGenerationService
from app.utils.ai_component.quiz import QuizGeneratorMixin

logger = logging.getLogger(__name__)


class AIService(QuizGeneratorMixin, BaseAIService, GenerationService):
    """
    Service to interact with an OpenAI-compatible AI API
    Combines the quiz generation mixin with the base client
    """

    pass


def build_generation_service() -> GenerationService:
    """Pick the generation backend once, based on the AI_* settings."""
    if settings.ai_enabled:
        logger.info(f"AI generation enabled (model: {settings.ai_model})")
        return AIService()

    logger.warning("AI generation disabled; using offline fallbacks")
    return OfflineGenerationService()


# Create singleton instance
generation_service = build_generation_service()
