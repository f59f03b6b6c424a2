"""Application configuration using Pydantic Settings."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Wallgen application settings.

    Loaded from environment variables or .env file.
    """

    # --- Application ---
    APP_NAME: str = "Wallgen"
    DEBUG: bool = False
    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"

    # --- Gemini / Veo ---
    GEMINI_API_KEY: str = ""
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com"
    IMAGE_MODEL: str = "gemini-3-pro-image-preview"
    VIDEO_FAST_MODEL: str = "veo-3.1-fast-generate-preview"
    VIDEO_MULTI_REF_MODEL: str = "veo-3.1-generate-preview"
    VIDEO_RESOLUTION: str = "720p"
    HTTP_TIMEOUT: float = 120.0

    # --- Image retry policy ---
    IMAGE_MAX_ATTEMPTS: int = 15
    RETRY_MIN_DELAY: float = 10.0
    RETRY_GROWTH_FACTOR: float = 1.5
    RETRY_MAX_DELAY: float = 90.0
    RETRY_JITTER_MAX: float = 5.0

    # --- Video polling ---
    VIDEO_POLL_INTERVAL: float = 10.0
    VIDEO_MAX_POLLS: int = 120

    # --- Variations ---
    VARIATION_COUNT: int = 4
    VARIATION_STAGGER: float = 8.0

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings singleton."""
    return Settings()


@dataclass(frozen=True)
class OrchestratorConfig:
    """Explicit configuration handed to every orchestrator entry point."""

    base_url: str = "https://generativelanguage.googleapis.com"
    image_model: str = "gemini-3-pro-image-preview"
    video_fast_model: str = "veo-3.1-fast-generate-preview"
    video_multi_ref_model: str = "veo-3.1-generate-preview"
    video_resolution: str = "720p"
    http_timeout: float = 120.0
    image_max_attempts: int = 15
    retry_min_delay: float = 10.0
    retry_growth_factor: float = 1.5
    retry_max_delay: float = 90.0
    retry_jitter_max: float = 5.0
    video_poll_interval: float = 10.0
    video_max_polls: int = 120
    variation_count: int = 4
    variation_stagger: float = 8.0

    @classmethod
    def from_settings(cls, settings: Settings) -> OrchestratorConfig:
        return cls(
            base_url=settings.GEMINI_BASE_URL.rstrip("/"),
            image_model=settings.IMAGE_MODEL,
            video_fast_model=settings.VIDEO_FAST_MODEL,
            video_multi_ref_model=settings.VIDEO_MULTI_REF_MODEL,
            video_resolution=settings.VIDEO_RESOLUTION,
            http_timeout=settings.HTTP_TIMEOUT,
            image_max_attempts=settings.IMAGE_MAX_ATTEMPTS,
            retry_min_delay=settings.RETRY_MIN_DELAY,
            retry_growth_factor=settings.RETRY_GROWTH_FACTOR,
            retry_max_delay=settings.RETRY_MAX_DELAY,
            retry_jitter_max=settings.RETRY_JITTER_MAX,
            video_poll_interval=settings.VIDEO_POLL_INTERVAL,
            video_max_polls=settings.VIDEO_MAX_POLLS,
            variation_count=settings.VARIATION_COUNT,
            variation_stagger=settings.VARIATION_STAGGER,
        )
