import asyncio
import logging
import os
import subprocess
import sys
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

import click
import uvicorn
from alembic import command
from alembic.config import Config
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.database import Base, SessionLocal, engine
from app.core.decorator import DBException
from app.core.exceptions import QuizzerException
from app.core.init import initialize_application
from app.core.limiter import custom_rate_limit_exceeded_handler, limiter
from app.models import *
from app.routers import routes
from app.utils.ai_component.service import generation_service

# ============================================================================
# Paths
# ============================================================================
BASE_DIR = Path(__file__).parent
LOG_FILE = BASE_DIR / settings.log_file
LOGS_DIR = LOG_FILE.parent

LOGS_DIR.mkdir(parents=True, exist_ok=True)
os.chmod(LOGS_DIR, 0o755)


# ============================================================================
# Logging
# ============================================================================
def setup_logging():
    """Send application logs to stdout and the configured log file."""
    default_level = "DEBUG" if settings.debug else "INFO"
    level = getattr(logging, (settings.log_level or default_level).upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(LOG_FILE, mode="a", encoding="utf-8"),
        ],
        force=True,
    )

    # Third-party loggers that are too chatty at INFO
    for noisy in ("sqlalchemy.engine", "uvicorn.access", "httpx", "openai"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return logging.getLogger(__name__)


logger = setup_logging()


# ============================================================================
# Lifespan
# ============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and run startup checks; release the AI client on exit."""
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    try:
        Base.metadata.create_all(bind=engine)
        logger.info("✓ Database schema ready")

        db = SessionLocal()
        try:
            initialize_application(db)
        finally:
            db.close()
    except Exception as e:
        logger.error(f"✗ Startup failed: {e}", exc_info=True)
        raise

    yield

    logger.info("Shutting down...")
    await generation_service.close()
    logger.info("✓ Shutdown complete")


# ============================================================================
# Application
# ============================================================================
app = FastAPI(
    title=settings.app_name,
    description=settings.app_description,
    version=settings.app_version,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    openapi_url="/openapi.json" if settings.debug else None,
    debug=settings.debug,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context(request: Request, call_next):
    """Tag every response with a request id and its processing time."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    started = time.perf_counter()

    response = await call_next(request)

    response.headers["X-Request-ID"] = request_id
    response.headers["X-Process-Time"] = f"{time.perf_counter() - started:.4f}"
    return response


# ============================================================================
# Exception Handlers
# ============================================================================
def error_response(status_code: int, error: str, detail: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, "detail": detail, **extra},
    )


@app.exception_handler(QuizzerException)
async def quizzer_exception_handler(request: Request, exc: QuizzerException):
    logger.info(f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(DBException)
async def db_exception_handler(request: Request, exc: DBException):
    logger.error(f"Storage error on {request.url.path}: {exc.message}")
    code = "CONFLICT" if exc.status_code == 409 else "DATABASE_ERROR"
    return error_response(exc.status_code, code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # ctx may hold exception objects that are not JSON serializable
    details = [
        {key: value for key, value in error.items() if key != "ctx"}
        for error in exc.errors()
    ]
    logger.warning(f"Invalid request to {request.url.path}: {details}")
    return error_response(422, "VALIDATION_FAILED", "Validation error", details=details)


@app.exception_handler(SQLAlchemyError)
async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Unhandled {type(exc).__name__} on {request.url.path}", exc_info=True)
    return error_response(500, "DATABASE_ERROR", "Database error occurred")


app.add_exception_handler(RateLimitExceeded, custom_rate_limit_exceeded_handler)


# ============================================================================
# Service Endpoints
# ============================================================================
@app.get("/")
async def root():
    return {
        "app_name": settings.app_name,
        "version": settings.app_version,
        "status": "healthy",
        "environment": "production" if settings.production else "development",
        "ai_enabled": settings.ai_enabled,
        "api": "/api/info",
    }


@app.get("/health")
@limiter.limit("10/minute")
async def health_check(request: Request):
    """Database probe plus the generation mode."""
    try:
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()
        database = "healthy"
    except SQLAlchemyError as e:
        logger.error(f"Health check database probe failed: {e}")
        database = "unhealthy"

    return {
        "status": "healthy" if database == "healthy" else "degraded",
        "timestamp": time.time(),
        "database": database,
        "ai_service": "configured" if settings.ai_enabled else "offline",
    }


for router in routes:
    app.include_router(router, prefix="/api")

logger.info(f"✓ Registered {len(routes)} routers under /api")


# ============================================================================
# CLI
# ============================================================================
@click.group()
def cli():
    """AI Quizzer management commands."""


def run_migrations():
    try:
        command.upgrade(Config(str(BASE_DIR / "alembic.ini")), "head")
    except Exception as e:
        logger.error(f"Migration failed: {e}")
        raise click.ClickException(str(e))
    logger.info("✓ Migrations applied")


@cli.command()
@click.option("--host", default="127.0.0.1", help="Host to bind the server to")
@click.option("--port", default=8000, help="Port to run the server on")
@click.option("--reload", is_flag=True, help="Enable auto-reload (development only)")
def dev(host: str, port: int, reload: bool):
    """Run the development server with Uvicorn."""
    logger.info(f"Development server on {host}:{port} (reload={reload})")
    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=reload,
        log_level="debug" if settings.debug else "info",
    )


@cli.command()
@click.option("--host", default="0.0.0.0", help="Host to bind the server to")
@click.option("--port", default=8000, help="Port to run the server on")
@click.option("--workers", default=1, help="Number of worker processes")
def prod(host: str, port: int, workers: int):
    """Apply migrations, then serve with Gunicorn and Uvicorn workers."""
    run_migrations()

    if workers > 1 and settings.rate_limit_storage_uri.startswith("memory://"):
        logger.warning(
            "Rate limits are kept in process memory; each worker counts separately"
        )

    logger.info(f"Production server on {host}:{port} with {workers} worker(s)")
    cmd = [
        "gunicorn",
        "main:app",
        "--worker-class",
        "uvicorn.workers.UvicornWorker",
        "--workers",
        str(workers),
        "--bind",
        f"{host}:{port}",
        "--access-logfile",
        "-",
        "--error-logfile",
        "-",
        "--timeout",
        str(int(settings.ai_request_timeout) + 60),
        "--graceful-timeout",
        "30",
    ]

    try:
        subprocess.run(cmd, check=True)
    except subprocess.CalledProcessError as e:
        logger.error(f"Gunicorn exited with an error: {e}")
        raise click.ClickException(str(e))
    except FileNotFoundError:
        raise click.ClickException("Gunicorn not installed")


@cli.command("init-db")
def init_db():
    """Apply migrations without starting a server."""
    run_migrations()


@cli.command("check-ai")
def check_ai():
    """Call the configured generation backend once and print the outcome."""
    result = asyncio.run(generation_service.test_connection())
    click.echo(f"Status: {result.get('status')}")
    click.echo(f"Model: {result.get('model') or '-'}")
    click.echo(f"Detail: {result.get('response') or result.get('message') or '-'}")
    if result.get("status") not in ("connected", "offline"):
        raise click.ClickException("AI backend is not reachable")


@cli.command()
def info():
    """Display application information."""
    click.echo(f"Application: {settings.app_name}")
    click.echo(f"Version: {settings.app_version}")
    click.echo(f"Debug Mode: {settings.debug}")
    click.echo(f"AI Enabled: {settings.ai_enabled}")
    click.echo(f"AI Model: {settings.ai_model or '-'}")
    click.echo(f"Rate Limit Storage: {settings.rate_limit_storage_uri}")
    click.echo(f"Logs Directory: {LOGS_DIR.absolute()}")


if __name__ == "__main__":
    cli()
