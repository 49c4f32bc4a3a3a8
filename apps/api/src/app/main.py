"""
OneAU API - Main Application Entry Point

This module initializes and configures the FastAPI application including:
- Database and Redis connections
- Push messaging and the notification outbox dispatcher
- Request timeout, CORS and error-envelope handling
- API routing and uploaded verification files
- Health check endpoints
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text

from app.api import api_router
from app.core import redis as redis_module
from app.core.auth import CurrentUser, get_current_admin_user
from app.core.config import settings
from app.core.database import async_session_maker, close_db, init_db
from app.core.middleware import RequestTimeoutMiddleware, register_error_handlers
from app.core.push import init_push
from app.core.redis import close_redis, init_redis
from app.core.scheduler import (
    list_registered_jobs,
    start_scheduler,
    stop_scheduler,
    trigger_job_manually,
)
from app.modules.notifications import register_notification_jobs

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events including:
    - Redis connection
    - Database connection
    - Firebase push messaging
    - Background job scheduler
    """
    # Startup
    print(f"Starting OneAU API in {settings.python_env} mode...")

    try:
        await init_redis()
        print("[OK] Redis connected")
    except Exception as e:
        print(f"[FAIL] Redis connection failed: {e}")
        if settings.is_production:
            raise

    try:
        await init_db()
        print("[OK] Database connected")
    except Exception as e:
        print(f"[FAIL] Database connection failed: {e}")
        if settings.is_production:
            raise

    try:
        if init_push():
            print("[OK] Push messaging initialized")
        else:
            print("[OK] Push messaging disabled (no credentials)")
    except Exception as e:
        print(f"[FAIL] Push messaging failed to initialize: {e}")
        if settings.is_production:
            raise

    try:
        # Register jobs before starting the scheduler
        register_notification_jobs()

        await start_scheduler()
        print("[OK] Background scheduler started")
    except Exception as e:
        print(f"[FAIL] Background scheduler failed to start: {e}")
        if settings.is_production:
            raise

    yield  # Application runs here

    # Shutdown
    print("Shutting down OneAU API...")

    # Stop the scheduler first (wait for running jobs)
    await stop_scheduler()
    print("[OK] Background scheduler stopped")

    await close_redis()
    await close_db()
    print("[OK] Cleanup complete")


app = FastAPI(
    title="OneAU API",
    description="University organization, event and approval workflow API",
    version="0.1.0",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

app.include_router(api_router, prefix="/api/v1")

app.mount(
    settings.public_upload_url,
    StaticFiles(directory=settings.upload_dir, check_dir=False),
    name="uploads",
)

register_error_handlers(app)

app.add_middleware(RequestTimeoutMiddleware, timeout_seconds=settings.request_timeout_seconds)

# CORS configuration (added last so it wraps timeout responses too)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint - API welcome message."""
    return {
        "message": "Welcome to OneAU API",
        "status": "running",
        "environment": settings.python_env,
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for container orchestration."""
    return {"status": "healthy"}


@app.get("/ready", tags=["Health"])
async def readiness_check() -> dict:
    """Readiness check: database and Redis reachable."""
    checks = {"database": "ok", "redis": "ok"}

    try:
        async with async_session_maker() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        checks["database"] = f"error: {e}"

    try:
        if redis_module.redis_client is None:
            checks["redis"] = "not initialized"
        else:
            await redis_module.redis_client.ping()
    except Exception as e:
        checks["redis"] = f"error: {e}"

    ready = all(value == "ok" for value in checks.values())
    return {"status": "ready" if ready else "degraded", "checks": checks}


# ============================================
# Background Job Debug Endpoints
# ============================================
# Manual triggering for testing; in production jobs run on schedule.


@app.get("/debug/jobs", tags=["Debug"])
async def list_jobs(_admin: CurrentUser = Depends(get_current_admin_user)):
    """List registered background jobs and their next run time."""
    return {"jobs": list_registered_jobs()}


@app.post("/debug/jobs/{job_id}/trigger", tags=["Debug"])
async def trigger_job(job_id: str, _admin: CurrentUser = Depends(get_current_admin_user)):
    """
    Run a background job immediately, bypassing the schedule.

    Args:
        job_id: The ID of the job to trigger. Available jobs:
            - notifications_dispatch_outbox

    Raises:
        HTTPException 400: If job_id is not found.
    """
    try:
        return await trigger_job_manually(job_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
