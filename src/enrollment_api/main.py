"""
Enrollment API - Main Application Entry Point

This module initializes and configures the FastAPI application including:
- Database and Redis connections
- Background job scheduler
- CORS middleware
- Error envelope handlers
- API routing
- Health check endpoints
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from enrollment_api.api import api_router
from enrollment_api.core.config import settings
from enrollment_api.core.database import STORAGE_UNAVAILABLE_ERRORS, create_database
from enrollment_api.core.exceptions import ServiceError
from enrollment_api.core.redis import close_redis, get_redis, init_redis
from enrollment_api.core.scheduler import (
    list_registered_jobs,
    start_scheduler,
    stop_scheduler,
    trigger_job_manually,
)
from enrollment_api.modules.auth import register_auth_jobs
from enrollment_api.modules.shared import error_body

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events including:
    - Redis connection
    - Database connection (stored on ``app.state.database``)
    - Background job scheduler
    """
    # Startup
    logger.info(f"Starting Enrollment API in {settings.python_env} mode...")

    # Initialize Redis
    try:
        await init_redis()
        logger.info("[OK] Redis connected")
    except Exception as e:
        logger.warning(f"[FAIL] Redis connection failed, rate limits use memory: {e}")
        if settings.is_production:
            raise

    # Initialize Database. Outside production a failure here is retried
    # lazily by the get_db dependency.
    database = create_database()
    app.state.database = database
    try:
        await database.init()
        logger.info("[OK] Database connected")
    except Exception as e:
        logger.error(f"[FAIL] Database connection failed: {e}")
        if settings.is_production:
            raise

    # Initialize Background Job Scheduler
    try:
        register_auth_jobs(database)
        await start_scheduler()
        logger.info("[OK] Background scheduler started")
    except Exception as e:
        logger.error(f"[FAIL] Background scheduler failed to start: {e}")
        if settings.is_production:
            raise

    yield  # Application runs here

    # Shutdown
    logger.info("Shutting down Enrollment API...")

    # Stop the scheduler first (wait for running jobs)
    await stop_scheduler()
    logger.info("[OK] Background scheduler stopped")

    await close_redis()
    await database.close()
    logger.info("[OK] Cleanup complete")


app = FastAPI(
    title="Enrollment API",
    description="School enrollment management and registrar review API",
    version="0.1.0",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

app.include_router(api_router, prefix="/api")

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================
# Error envelope
# ============================================
# Every failure leaves the API as {"success": false, "error": "..."}.


@app.exception_handler(ServiceError)
async def service_error_handler(_request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=error_body("Invalid parameters", details=details),
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(message),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    if isinstance(exc, STORAGE_UNAVAILABLE_ERRORS):
        logger.error(f"Database unavailable: {exc}")
        return JSONResponse(status_code=503, content=error_body("Service unavailable"))

    logger.exception(f"Unhandled error: {exc}")
    return JSONResponse(status_code=500, content=error_body("Internal server error"))


# ============================================
# Root & health
# ============================================


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint - API welcome message."""
    return {
        "message": "Welcome to the Enrollment API",
        "status": "running",
        "environment": settings.python_env,
    }


@app.get("/api", tags=["Root"])
async def api_root() -> dict:
    return {"success": True, "message": "Enrollment API is running"}


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for container orchestration."""
    return {"status": "healthy"}


@app.get("/ready", tags=["Health"])
async def readiness_check(request: Request) -> JSONResponse:
    """Ready once the database is connected. Redis is optional."""
    database_ready = request.app.state.database.is_initialized
    redis_ready = get_redis() is not None
    return JSONResponse(
        status_code=200 if database_ready else 503,
        content={
            "status": "ready" if database_ready else "not ready",
            "database": database_ready,
            "redis": redis_ready,
        },
    )


# ============================================
# Background Job Debug Endpoints
# ============================================
# Manual job control for local testing. Only mounted in development; in
# production, jobs run on schedule.

if settings.is_development:

    @app.get("/debug/jobs", tags=["Debug"])
    async def list_jobs() -> dict:
        """List all registered background jobs and their next run time."""
        return {"jobs": list_registered_jobs()}

    @app.post("/debug/jobs/{job_id}/trigger", tags=["Debug"])
    async def trigger_job(job_id: str) -> dict:
        """
        Run a background job immediately.

        Available jobs:
            - auth_purge_password_reset_tokens
        """
        try:
            return await trigger_job_manually(job_id)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
