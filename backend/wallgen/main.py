"""Wallgen: FastAPI application entry point.

Mounts the API routes, configures logging and CORS, and maps classified
generation failures to HTTP responses.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from wallgen import __version__
from wallgen.api.generations import classified_error_handler
from wallgen.api.router import api_router
from wallgen.config import get_settings
from wallgen.services.errors import ClassifiedError

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("%s starting up...", settings.APP_NAME)
    logger.info("Image model: %s", settings.IMAGE_MODEL)
    logger.info(
        "Video models: %s / %s", settings.VIDEO_FAST_MODEL, settings.VIDEO_MULTI_REF_MODEL
    )
    if not settings.GEMINI_API_KEY:
        logger.warning("GEMINI_API_KEY not set; requests must carry X-Goog-Api-Key")

    yield

    logger.info("%s shut down", settings.APP_NAME)


app = FastAPI(
    title="Wallgen API",
    description="AI wallpaper generation: image variations and live video wallpapers",
    version=__version__,
    lifespan=lifespan,
    redirect_slashes=False,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(ClassifiedError, classified_error_handler)
app.include_router(api_router)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"service": settings.APP_NAME, "status": "running"}


@app.get("/health")
async def health():
    """Detailed health check."""
    return {
        "status": "healthy",
        "api_key_configured": bool(settings.GEMINI_API_KEY),
        "image_model": settings.IMAGE_MODEL,
    }
