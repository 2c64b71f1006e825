from typing import Annotated

from fastapi import APIRouter, Depends

from app.core.config import settings
from app.core.dependencies import get_current_user, get_generation_service
from app.models.user import User
from app.schemas.quiz import AIConnectionStatus
from app.utils.ai_component.interface import GenerationService

router = APIRouter(tags=["system"])


@router.get("/info")
async def api_info() -> dict:
    """Endpoint map of the API"""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": settings.app_description,
        "ai_enabled": settings.ai_enabled,
        "endpoints": {
            "auth": {
                "POST /api/auth/register": "Register a new user",
                "POST /api/auth/login": "Login and receive tokens",
                "POST /api/auth/refresh-token": "Exchange a refresh token",
                "POST /api/auth/logout": "Revoke issued tokens",
                "GET /api/auth/profile": "Current user profile",
                "PUT /api/auth/profile": "Update profile",
                "PUT /api/auth/change-password": "Change password",
                "GET /api/auth/validate-token": "Validate the bearer token",
            },
            "quiz": {
                "POST /api/quiz/generate": "Generate a quiz",
                "GET /api/quiz": "List quizzes",
                "GET /api/quiz/difficulty/recommendation": "Adaptive difficulty",
                "GET /api/quiz/{id}": "Get a quiz",
                "PUT /api/quiz/{id}": "Update a quiz",
                "DELETE /api/quiz/{id}": "Deactivate a quiz",
                "GET /api/quiz/{id}/stats": "Quiz statistics",
                "GET /api/quiz/{quiz_id}/questions/{question_id}/hint": "Question hint",
            },
            "submission": {
                "POST /api/submission/quiz/{quiz_id}/start": "Start or resume an attempt",
                "POST /api/submission/{submission_id}/submit": "Submit answers",
                "GET /api/submission/history": "Attempt history",
                "GET /api/submission/performance/summary": "Performance summary",
                "GET /api/submission/quiz/{quiz_id}/retry": "Retry availability",
                "GET /api/submission/{submission_id}": "Submission details",
            },
        },
    }


@router.get("/test/ai", response_model=AIConnectionStatus)
async def test_ai_connection(
    current_user: Annotated[User, Depends(get_current_user)],
    generation_service: GenerationService = Depends(get_generation_service),
) -> AIConnectionStatus:
    """Check connectivity with the configured AI backend"""
    return AIConnectionStatus(**await generation_service.test_connection())
