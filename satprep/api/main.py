"""
FastAPI application for the satprep prep service.

Provides REST API for:
- Diagnostic sessions, grading and submission
- Study plans, task progress and adaptive re-planning
- Learner learning-style override
- Performance and study-time recording
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from config import get_settings
from satprep import __version__
from satprep.core.errors import AuthenticationError, ServiceError
from satprep.db.database import get_engine, init_db, session_scope
from satprep.db.seed import seed_all

settings = get_settings()


def _check_database_health() -> tuple[str, str | None]:
    """
    Check database connectivity.

    Returns:
        Tuple of (status, error_message). Status is "ok" or "error".
    """
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return "ok", None
    except SQLAlchemyError as e:
        return "error", str(e)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    logger.info("Starting satprep service...")
    init_db()
    if settings.seed_on_startup:
        with session_scope() as session:
            seed_all(session, settings.demo_learner_name, settings.demo_learner_token)
    logger.info(f"Service started on {settings.api_host}:{settings.api_port}")

    yield

    # Shutdown
    logger.info("Shutting down satprep service...")


app = FastAPI(
    title="SAT Prep Service",
    description="""
    Question bank, scoring authority and study-plan generator for the satprep CLI.

    ## Flow

    ```
    GET  /api/diagnostic/questions   -> session + questions
    POST /api/diagnostic/grade       -> per-answer correctness
    POST /api/diagnostic/submit      -> scores, learning style, study plan
    ```

    All `/api` endpoints require `Authorization: Bearer <token>`.
    """,
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Map service-layer errors onto their HTTP status with a detail body."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.detail}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.detail}")

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=headers,
    )


# ========================================
# Health & Status Endpoints
# ========================================


@app.get("/", tags=["Health"])
def root() -> dict[str, str]:
    """Root endpoint returning service info."""
    return {
        "service": "satprep",
        "version": __version__,
        "status": "ok",
    }


@app.get("/health", tags=["Health"])
def health_check() -> dict[str, Any]:
    """Health check with an actual database round-trip."""
    db_status, db_error = _check_database_health()

    result: dict[str, Any] = {
        "status": "healthy" if db_status == "ok" else "unhealthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "components": {"database": db_status},
    }
    if db_error:
        result["errors"] = {"database": db_error}
    return result


# ========================================
# Import and mount routers
# ========================================

from satprep.api.routers import (  # noqa: E402
    diagnostic_router,
    learner_router,
    performance_router,
    study_plan_router,
)

app.include_router(diagnostic_router.router, prefix="/api/diagnostic", tags=["Diagnostic"])
app.include_router(study_plan_router.router, prefix="/api/studyplan", tags=["Study Plan"])
app.include_router(learner_router.router, prefix="/api/learners", tags=["Learners"])
app.include_router(performance_router.router, prefix="/api/performance", tags=["Performance"])
