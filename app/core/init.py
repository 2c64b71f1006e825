"""
Application initialization module
Handles startup checks that run once the database tables exist
"""

import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.quiz import Quiz
from app.models.user import User

logger = logging.getLogger(__name__)


def log_generation_mode() -> None:
    """Report which generation backend the process will use."""
    if settings.ai_enabled:
        logger.info(f"✅ AI generation enabled (model: {settings.ai_model})")
    else:
        logger.warning(
            "⚠️  AI_API_KEY / AI_API_ENDPOINT / AI_MODEL not set: "
            "sample questions and similarity grading will be used"
        )


def log_database_summary(db: Session) -> None:
    users = db.query(func.count(User.id)).scalar() or 0
    quizzes = db.query(func.count(Quiz.id)).filter(Quiz.is_active.is_(True)).scalar() or 0
    logger.info(f"Database contains {users} users and {quizzes} active quizzes")


def initialize_application(db: Session) -> None:
    """
    Initialize application on startup

    Args:
        db: Database session
    """
    logger.info("Initializing application...")

    log_generation_mode()
    log_database_summary(db)

    if settings.auth_auto_register:
        logger.warning("⚠️  AUTH_AUTO_REGISTER is on: unknown usernames are registered at login")

    logger.info("Application initialization completed")
