from .auth import router as auth_router
from .quiz import router as quiz_router
from .submission import router as submission_router
from .system import router as system_router

routes = [
    auth_router,
    quiz_router,
    submission_router,
    system_router,
]
