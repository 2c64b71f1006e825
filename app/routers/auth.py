from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.dependencies import get_current_user
from app.core.security import jwt_manager
from app.models.user import User
from app.schemas.auth import (
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    MessageResponse,
    RefreshResponse,
    RefreshTokenRequest,
    TokenValidationResponse,
    UpdateProfileRequest,
    UserRegistrationRequest,
    UserResponse,
)
from app.services.auth import auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED
)
async def register_user(
    request: UserRegistrationRequest, db: Session = Depends(get_db)
) -> AuthResponse:
    """Create an account and return it with a fresh token pair"""
    return auth_service.register_user(request, db)


@router.post("/login", response_model=AuthResponse)
async def login(request: LoginRequest, db: Session = Depends(get_db)) -> AuthResponse:
    return auth_service.login(request, db)


@router.post("/refresh-token", response_model=RefreshResponse)
async def refresh_token(
    request: RefreshTokenRequest, db: Session = Depends(get_db)
) -> RefreshResponse:
    """Refresh access token using refresh token"""
    return auth_service.refresh_access_token(request.refresh_token, db)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Session = Depends(get_db),
) -> MessageResponse:
    """Logout current user, revoking every token issued so far"""
    return auth_service.logout(current_user, db)


@router.get("/profile", response_model=UserResponse)
async def get_profile(
    current_user: Annotated[User, Depends(get_current_user)],
) -> UserResponse:
    return UserResponse.model_validate(current_user)


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    request: UpdateProfileRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Session = Depends(get_db),
) -> UserResponse:
    return auth_service.update_profile(current_user, request, db)


@router.put("/change-password", response_model=MessageResponse)
async def change_password(
    request: ChangePasswordRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Session = Depends(get_db),
) -> MessageResponse:
    return auth_service.change_password(current_user, request, db)


@router.get("/validate-token", response_model=TokenValidationResponse)
async def validate_token(
    current_user: Annotated[User, Depends(get_current_user)],
    token: str = Depends(jwt_manager.extract_token),
) -> TokenValidationResponse:
    """Check the bearer token and report when it expires"""
    return TokenValidationResponse(
        user=UserResponse.model_validate(current_user),
        token_expires_at=jwt_manager.get_token_expiration(token),
    )
