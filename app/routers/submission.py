from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.dependencies import get_current_user, get_generation_service
from app.core.limiter import limiter
from app.models.user import User
from app.schemas.submission import (
    HistoryFilters,
    HistoryResponse,
    PerformanceSummaryResponse,
    RetryCheckResponse,
    StartQuizResponse,
    SubmissionDetailResponse,
    SubmitQuizRequest,
    SubmitQuizResponse,
)
from app.services.submission import SubmissionService
from app.utils.ai_component.interface import GenerationService

router = APIRouter(prefix="/submission", tags=["submission"])


def get_submission_service(
    db: Session = Depends(get_db),
    generation_service: GenerationService = Depends(get_generation_service),
) -> SubmissionService:
    return SubmissionService(db, generation_service)


@router.post("/quiz/{quiz_id}/start", response_model=StartQuizResponse)
async def start_quiz(
    quiz_id: int,
    response: Response,
    current_user: Annotated[User, Depends(get_current_user)],
    service: SubmissionService = Depends(get_submission_service),
) -> StartQuizResponse:
    """Start a new attempt (201) or resume the one in progress (200)"""
    attempt, created = service.start_attempt(current_user, quiz_id)
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return attempt


@router.get("/history", response_model=HistoryResponse)
async def get_history(
    current_user: Annotated[User, Depends(get_current_user)],
    filters: HistoryFilters = Depends(),
    service: SubmissionService = Depends(get_submission_service),
) -> HistoryResponse:
    return service.get_history(current_user, filters)


@router.get("/performance/summary", response_model=PerformanceSummaryResponse)
async def get_performance_summary(
    current_user: Annotated[User, Depends(get_current_user)],
    service: SubmissionService = Depends(get_submission_service),
) -> PerformanceSummaryResponse:
    return service.get_performance_summary(current_user)


@router.get("/quiz/{quiz_id}/retry", response_model=RetryCheckResponse)
async def check_retry(
    quiz_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    service: SubmissionService = Depends(get_submission_service),
) -> RetryCheckResponse:
    """Report whether another attempt is allowed; does not start one"""
    return service.check_retry(current_user, quiz_id)


@router.post("/{submission_id}/submit", response_model=SubmitQuizResponse)
@limiter.limit(settings.submission_rate_limit)
async def submit_quiz(
    request: Request,
    submission_id: int,
    payload: SubmitQuizRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    service: SubmissionService = Depends(get_submission_service),
) -> SubmitQuizResponse:
    return await service.submit_attempt(current_user, submission_id, payload)


@router.get("/{submission_id}", response_model=SubmissionDetailResponse)
async def get_submission(
    submission_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    service: SubmissionService = Depends(get_submission_service),
) -> SubmissionDetailResponse:
    return service.get_submission(current_user, submission_id)
