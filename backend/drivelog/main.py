"""
Drive Telemetry Logger - FastAPI Backend

Main application entry point and configuration.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from drivelog.api.recording import router as recording_router, position_router, preferences_router
from drivelog.api.sessions import router as sessions_router
from drivelog.config import Settings
from drivelog.services.runtime import get_runtime, init_runtime, shutdown_runtime


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

APP_NAME = "Drive Telemetry Logger"
APP_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info(f"Starting {APP_NAME}")

    settings = Settings.from_env()
    logging.getLogger().setLevel(settings.log_level)
    init_runtime(settings)
    if settings.simulate:
        logger.info("Simulation mode: replaying a synthetic drive")

    yield

    # Shutdown
    logger.info(f"Shutting down {APP_NAME}")
    shutdown_runtime()


# Create FastAPI app
app = FastAPI(
    title=APP_NAME,
    description="""
    Backend API for the drive telemetry logger.

    ## Features
    - Sample position and speed once per second while recording
    - Accumulate geodesic distance and a rolling 60-second speed window
    - Persist each finished session as a JSON record

    ## Data Flow
    1. Push fixes from the location provider via POST /position
    2. Start recording via POST /recording/start
    3. Watch live values via GET /recording/live
    4. Stop via POST /recording/stop, then browse GET /sessions
    """,
    version=APP_VERSION,
    lifespan=lifespan,
)


# CORS middleware (allow all origins for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Include routers
app.include_router(recording_router)
app.include_router(position_router)
app.include_router(preferences_router)
app.include_router(sessions_router)


@app.get("/")
async def root():
    """Root endpoint - basic health check."""
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "status": "running",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    runtime = get_runtime()

    return {
        "status": "healthy",
        "recorder_state": runtime.recorder.state.value,
        "sessions_folder": str(runtime.store.data_folder),
        "session_count": runtime.store.count(),
    }
