# File: app/core/limiter.py

from fastapi import Request
from fastapi.responses import JSONResponse
from jose import JWTError, jwt
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from app.core.config import settings


def get_user_or_remote_address(request: Request) -> str:
    """
    Key requests by the authenticated user id when a bearer token is present,
    falling back to the client's IP address.

    The token is only decoded here (signature checked, expiry ignored); the
    endpoint's own auth dependency still performs full verification.
    """
    authorization = request.headers.get("Authorization", "")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token:
        try:
            payload = jwt.decode(
                token,
                settings.jwt_secret,
                algorithms=[settings.jwt_algorithm],
                options={"verify_exp": False, "verify_aud": False},
            )
            user_id = payload.get("user_id")
            if user_id is not None:
                return f"user:{user_id}"
        except JWTError:
            pass
    return get_remote_address(request)


# Process-wide limiter; counters live in `rate_limit_storage_uri`
# (in-memory by default, so limits are per instance).
limiter = Limiter(
    key_func=get_user_or_remote_address,
    storage_uri=settings.rate_limit_storage_uri,
    strategy="moving-window",
    default_limits=[settings.rate_limit_default],
    enabled=settings.rate_limit_enabled,
)


async def custom_rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """
    Custom exception handler for rate-limited requests to return a JSON response.
    """
    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "detail": f"Too Many Requests: rate limit exceeded ({exc.detail})",
            "error": "RATE_LIMIT_EXCEEDED",
            "message": "You have made too many requests in a short period. Please try again later.",
        },
    )
