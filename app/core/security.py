# core/security.py
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple

from fastapi import Header, HTTPException, status
from jose import JWTError, jwt

from app.core.config import settings
from app.models.user import User
from app.utils.timeutils import from_timestamp, to_timestamp, utcnow

logger = logging.getLogger(__name__)


def unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


class JWTManager:
    """
    Issues and verifies the bearer tokens of learners.

    Access tokens carry the profile fields the services read most often;
    refresh tokens carry only the user id. Both are signed with the same
    secret and distinguished by their `type` claim.
    """

    def __init__(self):
        self.secret_key = settings.jwt_secret
        self.algorithm = settings.jwt_algorithm
        self.user_token_expire = timedelta(days=settings.jwt_user_expiration)
        self.refresh_token_expire = timedelta(days=settings.jwt_refresh_expiration)
        self.issuer = settings.jwt_issuer
        self.audience = settings.jwt_audience

    def _claims(
        self, user: User, token_type: str, issued_at: datetime, lifetime: timedelta
    ) -> Dict[str, Any]:
        return {
            "sub": str(user.id),
            "user_id": user.id,
            "type": token_type,
            "iat": int(to_timestamp(issued_at)),
            "exp": int(to_timestamp(issued_at + lifetime)),
            "iss": self.issuer,
            "aud": self.audience,
        }

    def _sign(self, claims: Dict[str, Any]) -> str:
        try:
            return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)
        except JWTError as e:
            logger.error(f"Failed to sign {claims.get('type')} token: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create token",
            )

    def create_access_token(
        self,
        user: User,
        custom_expiration: Optional[timedelta] = None,
        login_time: Optional[datetime] = None,
    ) -> str:
        """
        Args:
            user: token owner
            custom_expiration: lifetime override
            login_time: issue time stamped into `iat`; tokens issued before the
                user's last_login are treated as revoked

        Returns:
            Signed access token
        """
        claims = self._claims(
            user,
            "access",
            login_time or utcnow(),
            custom_expiration or self.user_token_expire,
        )
        claims.update(
            username=user.username, email=user.email, grade_level=user.grade_level
        )
        token = self._sign(claims)
        logger.info(f"Access token created for user: {user.username}")
        return token

    def create_refresh_token(
        self, user: User, custom_expiration: Optional[timedelta] = None
    ) -> str:
        claims = self._claims(
            user, "refresh", utcnow(), custom_expiration or self.refresh_token_expire
        )
        return self._sign(claims)

    def create_token_pair(
        self, user: User, login_time: Optional[datetime] = None
    ) -> Tuple[str, str]:
        """Returns (access_token, refresh_token)."""
        return (
            self.create_access_token(user=user, login_time=login_time),
            self.create_refresh_token(user),
        )

    def verify_token(self, token: str, token_type: str = "access") -> Dict[str, Any]:
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
            )
        except JWTError as e:
            logger.warning(f"JWT verification failed: {e}")
            raise unauthorized("Invalid or expired token")

        if payload.get("type") != token_type:
            raise unauthorized(f"Invalid token type. Expected {token_type}")
        return payload

    def get_token_expiration(self, token: str) -> Optional[datetime]:
        """Expiry of a token without verifying it; None when unreadable."""
        try:
            claims = jwt.get_unverified_claims(token)
        except JWTError:
            return None
        exp = claims.get("exp")
        return from_timestamp(exp) if exp else None

    def extract_token(
        self, authorization: str = Header(..., description="Bearer token")
    ) -> str:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise unauthorized("Invalid authorization header")
        return token.strip()


# Global instance
jwt_manager = JWTManager()
