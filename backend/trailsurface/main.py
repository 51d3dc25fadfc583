"""
TrailSurface API

FastAPI application for GPX upload, surface classification and
unpaved section detection.
"""

from contextlib import asynccontextmanager
import logging
import sys

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from trailsurface.config import settings
from trailsurface.api.v1.router import api_router
from trailsurface.features.ingestion import build_ingestion_service
from trailsurface.features.jobs import JobNotFoundError


# === Logging Setup ===
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout),
    ]
)
logger = logging.getLogger(__name__)


# === Lifespan ===
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup
    logger.info("Starting TrailSurface API...")
    runtime = build_ingestion_service(settings)
    await runtime.service.start()
    app.state.ingestion = runtime.service

    yield

    # Shutdown
    await runtime.aclose()
    logger.info("Shutting down...")


# === App Creation ===
app = FastAPI(
    title="TrailSurface API",
    description="GPX track ingestion with surface classification",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)


# === Middleware ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# === Error Handlers ===
@app.exception_handler(JobNotFoundError)
async def job_not_found_handler(request: Request, exc: JobNotFoundError):
    return JSONResponse(status_code=404, content={"error": "invalid_job"})


# === Routes ===
app.include_router(api_router, prefix="/api/v1")


# === Health Check ===
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": "0.1.0"}
