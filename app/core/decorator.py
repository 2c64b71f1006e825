import logging
from functools import wraps

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

logger = logging.getLogger(__name__)


class DBException(Exception):
    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def db_exception(func):
    """Translate storage errors raised by repository calls into DBException.

    The session is rolled back first so the request-scoped session stays usable.
    """

    @wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Integrity error in {func.__name__}: {e.orig}")
            raise DBException("Duplicate entry: already exists", 409)
        except SQLAlchemyError:
            self.db.rollback()
            logger.error(f"Database error in {func.__name__}", exc_info=True)
            raise DBException("Database error occurred", 500)

    return wrapper
