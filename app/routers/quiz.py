from typing import Annotated, Literal, Optional, Union

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.dependencies import get_current_user, get_generation_service
from app.core.limiter import limiter
from app.models.enums import QuizDifficulty, Subject
from app.models.user import User
from app.schemas.auth import MessageResponse
from app.schemas.quiz import (
    DifficultyRecommendation,
    GenerateQuizRequest,
    GenerateQuizResponse,
    HintResponse,
    QuizListResponse,
    QuizResponse,
    QuizStatsResponse,
    QuizUpdate,
    QuizWithAnswersResponse,
    SortField,
)
from app.services.quiz import QuizService
from app.utils.ai_component.interface import GenerationService

router = APIRouter(prefix="/quiz", tags=["quiz"])


def get_quiz_service(
    db: Session = Depends(get_db),
    generation_service: GenerationService = Depends(get_generation_service),
) -> QuizService:
    return QuizService(db, generation_service)


@router.post(
    "/generate",
    response_model=GenerateQuizResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.quiz_generation_rate_limit)
async def generate_quiz(
    request: Request,
    payload: GenerateQuizRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    service: QuizService = Depends(get_quiz_service),
) -> GenerateQuizResponse:
    """
    Generate a new quiz

    Missing or "adaptive" difficulty is picked from the user's recent results
    in the same subject. Falls back to built-in sample questions when the AI
    backend is unavailable.
    """
    return await service.generate_quiz(current_user, payload)


@router.get("/", response_model=QuizListResponse)
async def list_quizzes(
    current_user: Annotated[User, Depends(get_current_user)],
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    subject: Optional[Subject] = None,
    grade_level: Optional[int] = Query(None, ge=1, le=12),
    difficulty_level: Optional[QuizDifficulty] = None,
    created_by: Optional[int] = None,
    search: Optional[str] = Query(None, max_length=100),
    sort_by: SortField = "created_at",
    sort_order: Literal["asc", "desc", "ASC", "DESC"] = "desc",
    service: QuizService = Depends(get_quiz_service),
) -> QuizListResponse:
    return service.list_quizzes(
        page=page,
        limit=limit,
        subject=subject.value if subject else None,
        grade_level=grade_level,
        difficulty_level=difficulty_level.value if difficulty_level else None,
        created_by=created_by,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.get("/difficulty/recommendation", response_model=DifficultyRecommendation)
async def get_difficulty_recommendation(
    current_user: Annotated[User, Depends(get_current_user)],
    subject: Subject,
    grade_level: Optional[int] = Query(None, ge=1, le=12),
    service: QuizService = Depends(get_quiz_service),
) -> DifficultyRecommendation:
    """Recommended difficulty for the caller's next quiz in a subject"""
    return service.get_difficulty_recommendation(current_user, subject.value)


@router.get(
    "/{quiz_id}", response_model=Union[QuizWithAnswersResponse, QuizResponse]
)
async def get_quiz(
    quiz_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    include_answers: bool = False,
    service: QuizService = Depends(get_quiz_service),
):
    return service.get_quiz(current_user, quiz_id, include_answers=include_answers)


@router.put("/{quiz_id}", response_model=QuizWithAnswersResponse)
async def update_quiz(
    quiz_id: int,
    payload: QuizUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    service: QuizService = Depends(get_quiz_service),
) -> QuizWithAnswersResponse:
    return service.update_quiz(current_user, quiz_id, payload)


@router.delete("/{quiz_id}", response_model=MessageResponse)
async def delete_quiz(
    quiz_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    service: QuizService = Depends(get_quiz_service),
) -> MessageResponse:
    service.delete_quiz(current_user, quiz_id)
    return MessageResponse(message="Quiz deleted successfully")


@router.get("/{quiz_id}/stats", response_model=QuizStatsResponse)
async def get_quiz_stats(
    quiz_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    service: QuizService = Depends(get_quiz_service),
) -> QuizStatsResponse:
    return service.get_quiz_stats(quiz_id)


@router.get("/{quiz_id}/questions/{question_id}/hint", response_model=HintResponse)
async def get_hint(
    quiz_id: int,
    question_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    service: QuizService = Depends(get_quiz_service),
) -> HintResponse:
    """Stored hint, else a cached or freshly generated AI hint"""
    return await service.get_hint(quiz_id, question_id)
