"""Image job runner: one generate-content request with the retry policy.

Retry policy:
  AUTH_INVALID / QUOTA_EXCEEDED    fail immediately
  RETRYABLE, attempts < max        sleep BackoffPolicy.next_delay(attempt), resubmit
  RETRYABLE exhausted              fail, marked exhausted
  CONTENT_FILTERED / FATAL         fail

A reply without any inline media is FATAL unless the upstream named a
block or safety finish reason, in which case it is CONTENT_FILTERED.
"""

from __future__ import annotations

import asyncio
import logging

from wallgen.config import OrchestratorConfig
from wallgen.schemas.generation import GenerationRequest
from wallgen.services.backoff import BackoffPolicy, RetryState
from wallgen.services.errors import (
    FailureKind,
    classify,
    content_filtered,
    exhausted,
    fatal,
)
from wallgen.services.media import GeneratedMedia, decode_reference
from wallgen.services.providers.gemini import ImageReply, MediaTransport

logger = logging.getLogger(__name__)

_SAFETY_FINISH_REASONS = {
    "SAFETY",
    "IMAGE_SAFETY",
    "PROHIBITED_CONTENT",
    "IMAGE_PROHIBITED_CONTENT",
    "BLOCKLIST",
    "SPII",
}


class ImageJobRunner:
    """Runs a single image generation to a terminal outcome."""

    def __init__(self, transport: MediaTransport, config: OrchestratorConfig) -> None:
        self.transport = transport
        self.config = config
        if config.image_max_attempts < 1:
            raise ValueError("image_max_attempts must be >= 1")
        self.backoff = BackoffPolicy(
            min_delay=config.retry_min_delay,
            growth_factor=config.retry_growth_factor,
            max_delay=config.retry_max_delay,
            jitter_max=config.retry_jitter_max,
        )

    async def run(self, request: GenerationRequest, index: int = 0) -> GeneratedMedia:
        references = [decode_reference(img) for img in request.reference_images]
        max_attempts = self.config.image_max_attempts
        state = RetryState()

        for attempt in range(1, max_attempts + 1):
            state.attempt_count = attempt
            try:
                reply = await self.transport.generate_image(
                    model=self.config.image_model,
                    prompt=request.prompt,
                    references=references,
                    aspect_ratio=request.aspect_ratio,
                    image_size=request.image_size,
                )
            except Exception as e:
                error = classify(e)
            else:
                return self._media_from(reply, index)

            state.last_error = error
            if error.kind is not FailureKind.RETRYABLE:
                logger.error(
                    "image lane %d failed (%s): %s", index, error.kind.value, error.message
                )
                raise error
            if attempt == max_attempts:
                break

            delay = self.backoff.next_delay(attempt)
            state.record(error, delay)
            logger.warning(
                "image lane %d attempt %d/%d failed: %s. Retrying in %.0fs...",
                index, attempt, max_attempts, error.message, delay,
            )
            await asyncio.sleep(delay)

        logger.error(
            "image lane %d: retries exhausted after %d attempts", index, state.attempt_count
        )
        raise exhausted(state.last_error, state.attempt_count)

    def _media_from(self, reply: ImageReply, index: int) -> GeneratedMedia:
        if reply.media:
            first = reply.media[0]
            return GeneratedMedia(
                kind="image", data=first.data, mime_type=first.mime_type, index=index
            )
        if reply.block_reason:
            raise content_filtered(reply.block_reason, reply)
        if reply.finish_reason in _SAFETY_FINISH_REASONS:
            raise content_filtered(reply.finish_reason, reply)
        raise fatal(
            "No image data found in response. The content may have been blocked "
            "by safety settings.",
            reply,
        )

