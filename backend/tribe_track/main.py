"""
Tribe Track Backend - FastAPI Application
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tribe_track.core.config import settings
from tribe_track.core.database import init_db
from tribe_track.core.errors import (
    ConflictError,
    NotFoundError,
    TrackError,
    TransientError,
    ValidationError,
)
from tribe_track.core.logging import get_logger, setup_logging
from tribe_track.api import track

logger = get_logger(__name__)

ERROR_STATUS = {
    ValidationError: 400,
    NotFoundError: 404,
    ConflictError: 409,
    TransientError: 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    setup_logging()
    logger.info("Starting Tribe Track Backend", version="1.0.0")
    await init_db()
    logger.info("Database initialized")

    yield

    # Shutdown
    logger.info("Shutting down Tribe Track Backend")


app = FastAPI(
    title="Tribe Track API",
    description="Workout logging, streaks and stats for the Pilates community app",
    version="1.0.0",
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


@app.exception_handler(TrackError)
async def track_error_handler(request: Request, exc: TrackError):
    """Map tracking errors to HTTP responses."""
    status_code = ERROR_STATUS.get(type(exc), 500)
    if status_code >= 500:
        logger.error("Request failed", path=request.url.path, error=exc.message)
    else:
        logger.info("Request rejected", path=request.url.path, status=status_code, error=exc.message)

    body = {"detail": exc.message, "retryable": exc.retryable}
    if isinstance(exc, ValidationError) and exc.field:
        body["field"] = exc.field
    return JSONResponse(status_code=status_code, content=body)


# Include routers
app.include_router(track.router, prefix="/api/track", tags=["track"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "tribe-track-backend"}
