"""
Domain error kinds raised by the quiz services.

Each kind carries a machine-readable error code and the HTTP status the API
layer renders it with (see the handler registered in main.py).
"""

from fastapi import status


class QuizzerException(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "BAD_REQUEST"

    def __init__(self, message: str, error_code: str = None):
        self.message = message
        self.error_code = error_code or self.default_code
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"success": False, "detail": self.message, "error": self.error_code}


class NotFoundError(QuizzerException):
    status_code = status.HTTP_404_NOT_FOUND
    default_code = "NOT_FOUND"


class InvalidStateError(QuizzerException):
    default_code = "INVALID_STATE"


class LimitExceededError(QuizzerException):
    default_code = "LIMIT_EXCEEDED"


class PermissionDeniedError(QuizzerException):
    status_code = status.HTTP_403_FORBIDDEN
    default_code = "INSUFFICIENT_PERMISSIONS"


class UpstreamUnavailableError(QuizzerException):
    """The generation backend is unreachable, timed out or answered garbage."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_code = "AI_SERVICE_UNAVAILABLE"


class ValidationFailedError(QuizzerException):
    default_code = "VALIDATION_FAILED"
