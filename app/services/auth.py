# services/auth.py
import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import ValidationFailedError
from app.core.hasher import PasswordHelper
from app.core.security import jwt_manager, unauthorized
from app.models.user import User
from app.schemas.auth import (
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    MessageResponse,
    RefreshResponse,
    TokenPair,
    UpdateProfileRequest,
    UserRegistrationRequest,
    UserResponse,
)
from app.utils.timeutils import utcnow

# Setup logging
logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self):
        self.password_helper = PasswordHelper()

    @property
    def access_token_lifetime(self) -> int:
        return int(jwt_manager.user_token_expire.total_seconds())

    def _issue_tokens(self, user: User, login_time: Optional[datetime]) -> TokenPair:
        access_token, refresh_token = jwt_manager.create_token_pair(
            user=user, login_time=login_time
        )
        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            token_type="Bearer",
            expires_in=self.access_token_lifetime,
        )

    def _ensure_unique(
        self, db: Session, username: Optional[str], email: Optional[str]
    ) -> None:
        if username and db.query(User).filter(User.username == username).first():
            raise ValidationFailedError("Username already exists", "USERNAME_EXISTS")
        if email and db.query(User).filter(User.email == email).first():
            raise ValidationFailedError("Email already exists", "EMAIL_EXISTS")

    def _create_user(
        self,
        db: Session,
        username: str,
        password: str,
        email: Optional[str] = None,
        grade_level: Optional[int] = None,
        preferred_subjects: Optional[list] = None,
    ) -> User:
        login_time = utcnow()
        user = User(
            username=username,
            email=email,
            hashed_password=self.password_helper.hash_password(password),
            grade_level=grade_level or settings.default_grade_level,
            preferred_subjects=preferred_subjects or [],
            is_active=True,
            last_login=login_time,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    def register_user(
        self, request: UserRegistrationRequest, db: Session
    ) -> AuthResponse:
        """Create an account and log it in straight away"""
        self._ensure_unique(db, request.username, request.email)

        user = self._create_user(
            db,
            username=request.username,
            password=request.password,
            email=request.email,
            grade_level=request.grade_level,
            preferred_subjects=[subject.value for subject in request.preferred_subjects],
        )
        logger.info(f"User registered successfully: {user.username}")

        return AuthResponse(
            user=UserResponse.model_validate(user),
            tokens=self._issue_tokens(user, user.last_login),
        )

    def login(self, request: LoginRequest, db: Session) -> AuthResponse:
        """
        Verify credentials and issue a fresh token pair.

        Stamping last_login revokes every access token issued before it. When
        AUTH_AUTO_REGISTER is on, unknown usernames are registered on the fly.
        """
        user = db.query(User).filter(User.username == request.username).first()

        if not user and settings.auth_auto_register:
            self._ensure_unique(db, None, request.email)
            user = self._create_user(
                db,
                username=request.username,
                password=request.password,
                email=request.email,
            )
            logger.info(f"User auto-registered on login: {user.username}")
            return AuthResponse(
                user=UserResponse.model_validate(user),
                tokens=self._issue_tokens(user, user.last_login),
            )

        if not user or not self.password_helper.check_password(
            request.password, user.hashed_password
        ):
            logger.warning(f"Failed login attempt for username: {request.username}")
            raise unauthorized("Invalid username or password")

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN, detail="Account is deactivated"
            )

        login_time = utcnow()
        user.last_login = login_time
        db.commit()
        db.refresh(user)

        logger.info(f"User logged in: {user.username}")
        return AuthResponse(
            user=UserResponse.model_validate(user),
            tokens=self._issue_tokens(user, login_time),
        )

    def refresh_access_token(self, refresh_token: str, db: Session) -> RefreshResponse:
        payload = jwt_manager.verify_token(refresh_token, "refresh")
        user = db.query(User).filter(User.id == payload.get("user_id")).first()

        if not user or not user.is_active:
            raise unauthorized("User not found or inactive")

        # Keep the issue time at or after last_login so the new token is not revoked
        issued_at = max(utcnow(), user.last_login) if user.last_login else utcnow()
        access_token = jwt_manager.create_access_token(user, login_time=issued_at)
        return RefreshResponse(
            access_token=access_token,
            token_type="Bearer",
            expires_in=self.access_token_lifetime,
        )

    def logout(self, user: User, db: Session) -> MessageResponse:
        user.last_login = utcnow()
        db.commit()
        logger.info(f"User logged out: {user.username}")
        return MessageResponse(message="Logged out successfully")

    def update_profile(
        self, user: User, request: UpdateProfileRequest, db: Session
    ) -> UserResponse:
        updates = request.model_dump(exclude_unset=True)

        if updates.get("email") and updates["email"] != user.email:
            self._ensure_unique(db, None, updates["email"])
        if "preferred_subjects" in updates and updates["preferred_subjects"] is not None:
            updates["preferred_subjects"] = [
                subject.value for subject in request.preferred_subjects
            ]

        for field, value in updates.items():
            if value is not None:
                setattr(user, field, value)

        db.commit()
        db.refresh(user)
        logger.info(f"Profile updated for user: {user.username}")
        return UserResponse.model_validate(user)

    def change_password(
        self, user: User, request: ChangePasswordRequest, db: Session
    ) -> MessageResponse:
        if not self.password_helper.check_password(
            request.current_password, user.hashed_password
        ):
            raise ValidationFailedError(
                "Current password is incorrect", "INVALID_PASSWORD"
            )

        user.hashed_password = self.password_helper.hash_password(request.new_password)
        db.commit()
        logger.info(f"Password changed for user: {user.username}")
        return MessageResponse(message="Password changed successfully")


auth_service = AuthService()
