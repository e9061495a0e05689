"""
Scene Studio API - Batch Image Generation
FastAPI Backend Entry Point
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from studio.core.config import settings
from studio.core.database import init_db
from studio.core.logging import configure_logging
from studio.api import jobs, queue, settings as settings_api
from studio.services.job_store import JobStore
from studio.services.nai_image import NovelAIImageService
from studio.services.settings_store import SettingsStore
from studio.services.storage import StorageService
from studio.workers.scheduler import Scheduler

logger = logging.getLogger(__name__)


def build_scheduler(job_store: JobStore, settings_store: SettingsStore) -> Scheduler:
    """Wire the scheduler to its production collaborators."""
    return Scheduler(
        job_store=job_store,
        settings_store=settings_store,
        generator=NovelAIImageService(),
        storage=StorageService(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup: tables, stores, scheduler
    configure_logging()
    logger.info("Starting Scene Studio API...")
    init_db()

    job_store = JobStore()
    settings_store = SettingsStore()
    app.state.job_store = job_store
    app.state.settings_store = settings_store
    app.state.scheduler = build_scheduler(job_store, settings_store)

    if settings.RESUME_PENDING_ON_STARTUP:
        restored = app.state.scheduler.restore_from_store()
        if restored:
            logger.info(f"Re-enqueued {len(restored)} unfinished jobs")
    yield
    # Shutdown
    logger.info("Shutting down Scene Studio API...")
    await app.state.scheduler.shutdown()


app = FastAPI(
    title="Scene Studio API",
    description="Batch image generation across scenes with a pausable job queue",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(jobs.router, prefix="/api/v1/jobs", tags=["Jobs"])
app.include_router(queue.router, prefix="/api/v1/queue", tags=["Queue"])
app.include_router(settings_api.router, prefix="/api/v1/settings", tags=["Settings"])


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.
    Returns status of the database and the generation queue.
    """
    status = {
        "status": "healthy",
        "version": "0.1.0",
        "services": {}
    }

    # Check database connection
    try:
        from studio.core.database import SessionLocal
        from sqlalchemy import text
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()
        status["services"]["database"] = "ok"
    except Exception as e:
        status["services"]["database"] = f"error: {str(e)}"
        status["status"] = "degraded"

    scheduler = getattr(app.state, "scheduler", None)
    if scheduler is not None:
        status["services"]["queue"] = scheduler.get_queue_status()

    return status


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint."""
    return {
        "message": "Scene Studio API - Batch Image Generation",
        "docs": "/docs",
        "health": "/health",
    }
