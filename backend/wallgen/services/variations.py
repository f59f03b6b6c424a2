"""Variation coordinator: staggered image fan-out and batch-level failure policy.

Lane i waits i * VARIATION_STAGGER before its first submission; the upstream
rejects bursts of concurrent starts. All lanes are awaited to settlement.

Aggregation, in order:
  any AUTH_INVALID        -> raise it
  every lane QUOTA        -> raise the first one
  at least one success    -> return the successes in lane order
  otherwise               -> raise the first rejection

Video mode runs a single job and returns or raises its outcome unchanged.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Literal

from wallgen.config import OrchestratorConfig
from wallgen.schemas.generation import GenerationRequest
from wallgen.services.errors import (
    ClassifiedError,
    FailureKind,
    classify,
    missing_credential,
)
from wallgen.services.image_gen import ImageJobRunner
from wallgen.services.media import GeneratedMedia
from wallgen.services.providers.gemini import GeminiTransport, MediaTransport
from wallgen.services.video_gen import VideoJobRunner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VariationOutcome:
    index: int
    status: Literal["fulfilled", "rejected"]
    value: GeneratedMedia | None = None
    reason: ClassifiedError | None = None


def aggregate(outcomes: list[VariationOutcome]) -> list[GeneratedMedia]:
    """Reduce settled lanes to the caller's result or a single failure."""
    rejected = [o.reason for o in outcomes if o.status == "rejected"]

    for reason in rejected:
        if reason.kind is FailureKind.AUTH_INVALID:
            raise reason

    if outcomes and len(rejected) == len(outcomes) and all(
        r.kind is FailureKind.QUOTA_EXCEEDED for r in rejected
    ):
        raise rejected[0]

    media = [o.value for o in sorted(outcomes, key=lambda o: o.index) if o.status == "fulfilled"]
    for reason in rejected:
        logger.error("One variation failed: %s", reason.message)
    if media:
        return media

    if rejected:
        raise rejected[0]
    raise ClassifiedError(FailureKind.FATAL, "No variations were requested")


class VariationCoordinator:
    """Entry point for one generation request in either mode."""

    def __init__(self, transport: MediaTransport, config: OrchestratorConfig) -> None:
        self.transport = transport
        self.config = config
        self.images = ImageJobRunner(transport, config)
        self.videos = VideoJobRunner(transport, config)

    async def run(
        self, request: GenerationRequest, count: int | None = None
    ) -> list[GeneratedMedia]:
        if request.mode == "video":
            return [await self.videos.run(request)]

        count = self.config.variation_count if count is None else count
        if count < 1:
            raise ValueError(f"count must be >= 1, got {count}")

        logger.info(
            "Starting %d image variation(s), stagger=%.0fs", count, self.config.variation_stagger
        )
        settled = await asyncio.gather(
            *(self._lane(request, i) for i in range(count)),
            return_exceptions=True,
        )

        outcomes: list[VariationOutcome] = []
        for index, result in enumerate(settled):
            if isinstance(result, GeneratedMedia):
                outcomes.append(VariationOutcome(index=index, status="fulfilled", value=result))
            else:
                outcomes.append(
                    VariationOutcome(index=index, status="rejected", reason=classify(result))
                )
        return aggregate(outcomes)

    async def _lane(self, request: GenerationRequest, index: int) -> GeneratedMedia:
        if index > 0:
            await asyncio.sleep(index * self.config.variation_stagger)
        return await self.images.run(request, index=index)


async def generate_variations(
    request: GenerationRequest,
    api_key: str,
    config: OrchestratorConfig,
    *,
    transport: MediaTransport | None = None,
) -> list[GeneratedMedia]:
    """Run a request end to end with an explicit credential and configuration."""
    if not api_key:
        raise missing_credential()

    transport = transport or GeminiTransport(api_key, config)
    try:
        return await VariationCoordinator(transport, config).run(request)
    finally:
        await transport.aclose()
