"""
FastAPI application for the study-notes engine.

Provides REST API for:
- Flashcard review submission and due queue
- Practice-question answer review
- Knowledge gap scoring and ranking
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from config import get_settings
from studynotes import __version__
from studynotes.db.database import get_engine, init_db
from studynotes.exceptions import NotFoundError, StudyNotesError

settings = get_settings()


def _check_database_health() -> tuple[str, str | None]:
    """
    Check database connectivity.

    Returns:
        Tuple of (status, error_message). Status is "ok" or "error".
    """
    try:
        engine = get_engine()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return "ok", None
    except SQLAlchemyError as e:
        return "error", str(e)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    logger.info("Starting study-notes service...")
    init_db()
    logger.info(f"Service started on {settings.api_host}:{settings.api_port}")

    yield

    logger.info("Shutting down study-notes service...")


app = FastAPI(
    title="Study Notes Engine",
    description="""
    Spaced repetition and knowledge gap service for a study-notes app.

    ## Features

    - **Flashcard Review**: SM-2 rescheduling with a per-concept mastery estimate
    - **Due Queue**: Concepts due today, weakest first
    - **Answer Review**: Practice-question grading with heuristic fallback
    - **Knowledge Gaps**: Priority scoring and ranking of diagnosed gaps
    """,
    version=__version__,
    lifespan=lifespan,
)

# External collaborators; None means heuristic fallback / no analysis
app.state.answer_evaluator = None
app.state.gap_analyzer = None

# CORS middleware for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(StudyNotesError)
async def service_error_handler(request: Request, exc: StudyNotesError) -> JSONResponse:
    logger.warning(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=400, content={"detail": str(exc)})


# ========================================
# Health & Status Endpoints
# ========================================


@app.get("/", tags=["Health"])
def root() -> dict[str, str]:
    """Root endpoint returning service info."""
    return {
        "service": "study-notes",
        "version": __version__,
        "status": "ok",
    }


@app.get("/health", tags=["Health"])
def health_check() -> dict[str, Any]:
    """Health check with an actual database round trip."""
    db_status, db_error = _check_database_health()

    result = {
        "status": "healthy" if db_status == "ok" else "unhealthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "components": {"database": db_status},
    }
    if db_error:
        result["errors"] = {"database": db_error}
    return result


@app.get("/config", tags=["Health"])
def get_config() -> dict[str, Any]:
    """Get current configuration (non-sensitive)."""
    return {
        "database_url": settings.database_url.split("@")[-1]
        if "@" in settings.database_url
        else "configured",
        "scheduling": settings.get_scheduling_config(),
        "gaps": settings.get_gap_config(),
        "answer_evaluation": {
            "heuristic_overlap_threshold": settings.heuristic_overlap_threshold,
        },
    }


# ========================================
# Import and mount routers
# ========================================

from studynotes.api.routers import (  # noqa: E402
    flashcards_router,
    gaps_router,
    reviews_router,
)

app.include_router(flashcards_router.router, prefix="/api/flashcards", tags=["Flashcards"])
app.include_router(reviews_router.router, prefix="/api/reviews", tags=["Answer Review"])
app.include_router(gaps_router.router, prefix="/api/gaps", tags=["Knowledge Gaps"])
