"""Generation endpoint: runs a request through the variation coordinator.

Failures leave as JSON with the UI sentinel in ``detail``:
  AUTH_INVALID     401 API_KEY_INVALID   (UI asks for a new key)
  QUOTA_EXCEEDED   429 QUOTA_EXCEEDED    (UI shows the quota message)
  CONTENT_FILTERED 422
  RETRYABLE        503 (retries exhausted, try again later)
  FATAL            502
"""

from __future__ import annotations

import logging
from typing import Callable

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse

from wallgen.config import OrchestratorConfig, Settings, get_settings
from wallgen.schemas.generation import (
    GeneratedItem,
    GenerationFailure,
    GenerationRequest,
    GenerationResponse,
)
from wallgen.services.errors import ClassifiedError, FailureKind, missing_credential
from wallgen.services.providers.gemini import GeminiTransport, MediaTransport
from wallgen.services.variations import generate_variations

logger = logging.getLogger(__name__)

router = APIRouter()

TransportFactory = Callable[[str, OrchestratorConfig], MediaTransport]

STATUS_BY_KIND: dict[FailureKind, int] = {
    FailureKind.AUTH_INVALID: 401,
    FailureKind.QUOTA_EXCEEDED: 429,
    FailureKind.CONTENT_FILTERED: 422,
    FailureKind.RETRYABLE: 503,
    FailureKind.FATAL: 502,
}


def get_transport_factory() -> TransportFactory:
    return GeminiTransport


@router.post("", response_model=GenerationResponse)
async def create_generation(
    req: GenerationRequest,
    x_goog_api_key: str | None = Header(None, alias="X-Goog-Api-Key"),
    settings: Settings = Depends(get_settings),
    transport_factory: TransportFactory = Depends(get_transport_factory),
) -> GenerationResponse:
    """Generate image variations or a single video for a prompt."""
    api_key = x_goog_api_key or settings.GEMINI_API_KEY
    if not api_key:
        raise missing_credential()

    config = OrchestratorConfig.from_settings(settings)
    media = await generate_variations(
        req, api_key, config, transport=transport_factory(api_key, config)
    )
    logger.info("Generated %d %s item(s)", len(media), req.mode)
    return GenerationResponse(
        items=[
            GeneratedItem(
                index=m.index, kind=m.kind, mime_type=m.mime_type, url=m.to_data_url()
            )
            for m in media
        ]
    )


async def classified_error_handler(request: Request, exc: ClassifiedError) -> JSONResponse:
    status_code = STATUS_BY_KIND[exc.kind]
    body = GenerationFailure(
        detail=exc.user_message(), kind=exc.kind.value, message=exc.message
    )
    logger.warning("%s %s -> %d %s", request.method, request.url.path, status_code, exc.kind.value)
    return JSONResponse(status_code=status_code, content=body.model_dump())
