import logging

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.security import jwt_manager, unauthorized
from app.models.user import User
from app.utils.ai_component.interface import GenerationService
from app.utils.ai_component.service import generation_service
from app.utils.timeutils import to_timestamp

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def is_revoked(user: User, payload: dict) -> bool:
    """Tokens issued before the last login or logout no longer count."""
    if not user.last_login:
        return False
    return payload.get("iat", 0) < int(to_timestamp(user.last_login))


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(security),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the bearer token to an active user.

    401 when the token is missing, invalid, revoked or points at no user;
    403 when the account is deactivated.
    """
    if not credentials:
        raise unauthorized("Not authenticated")

    payload = jwt_manager.verify_token(credentials.credentials, "access")
    user_id = payload.get("user_id")
    if user_id is None:
        raise unauthorized("Invalid token: Not a valid user token")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise unauthorized("User not found")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Inactive user")
    if is_revoked(user, payload):
        logger.info(f"Rejected revoked token for user {user.id}")
        raise unauthorized("Token has been revoked")

    return user


def get_generation_service() -> GenerationService:
    """The generation backend chosen at startup; overridden in tests."""
    return generation_service
