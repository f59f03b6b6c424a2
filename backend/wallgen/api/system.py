"""System endpoints: effective orchestrator configuration."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends

from wallgen.config import OrchestratorConfig, Settings, get_settings

router = APIRouter()


@router.get("/config")
async def effective_config(settings: Settings = Depends(get_settings)) -> dict[str, Any]:
    """Return the non-secret configuration the orchestrator runs with."""
    config = asdict(OrchestratorConfig.from_settings(settings))
    config["api_key_configured"] = bool(settings.GEMINI_API_KEY)
    return config
