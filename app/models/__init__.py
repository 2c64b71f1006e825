"""
Models package initialization
Import all models and setup relationships
"""

from .quiz import Question, Quiz

# Import and setup relationships
from .relations import setup_relationships
from .submission import Answer, Submission
from .user import User

# Setup all relationships after models are imported
setup_relationships()

# Make models available at package level
__all__ = [
    "Answer",
    "Question",
    "Quiz",
    "Submission",
    "User",
]
