"""Video job runner for Veo long-running operations.

Lifecycle:
1. submit via the SDK -> operation handle keyed by an opaque name
2. poll every VIDEO_POLL_INTERVAL: SDK operations.get, falling back to
   GET <base>/v1beta/<name>?key=... when the SDK call fails
3. on done: extract the video URI, download it with the key appended

Submission is not retried. Both poll channels failing on the same poll
aborts the job, since nothing could ever observe completion.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from wallgen.config import OrchestratorConfig
from wallgen.schemas.generation import GenerationRequest
from wallgen.services.errors import (
    FailureKind,
    classify,
    content_filtered,
    fatal,
)
from wallgen.services.media import GeneratedMedia, MediaBlob, decode_reference
from wallgen.services.providers.gemini import MediaTransport

logger = logging.getLogger(__name__)

WIDE_ASPECT_RATIOS = frozenset({"16:9", "21:9", "3:2", "4:3"})
MULTI_REF_ASPECT_RATIO = "16:9"
MULTI_REF_RESOLUTION = "720p"

# Kinds that survive a failed submission; everything else is reported FATAL.
_SUBMISSION_KINDS = {
    FailureKind.AUTH_INVALID,
    FailureKind.QUOTA_EXCEEDED,
    FailureKind.CONTENT_FILTERED,
}


def video_aspect_ratio(requested: str) -> str:
    """Veo only renders 16:9 or 9:16."""
    return "16:9" if requested in WIDE_ASPECT_RATIOS else "9:16"


@dataclass(frozen=True)
class VideoPlan:
    model: str
    prompt: str
    aspect_ratio: str
    resolution: str
    image: MediaBlob | None = None
    reference_images: list[MediaBlob] = field(default_factory=list)


def plan_video(request: GenerationRequest, config: OrchestratorConfig) -> VideoPlan:
    """Pick the model and shape the submission for a request."""
    refs = [decode_reference(img) for img in request.reference_images]
    prompt = (
        f"{request.prompt}. Create a smooth, high-quality video with a duration of "
        f"approx {request.duration} seconds at {request.fps}fps."
    )

    if len(refs) > 1:
        return VideoPlan(
            model=config.video_multi_ref_model,
            prompt=prompt,
            aspect_ratio=MULTI_REF_ASPECT_RATIO,
            resolution=MULTI_REF_RESOLUTION,
            reference_images=refs,
        )
    return VideoPlan(
        model=config.video_fast_model,
        prompt=prompt,
        aspect_ratio=video_aspect_ratio(request.aspect_ratio),
        resolution=config.video_resolution,
        image=refs[0] if refs else None,
    )


@dataclass
class OperationHandle:
    """Mutable view of a long-running operation; frozen once terminal."""

    name: str
    done: bool = False
    result: Any = None
    response: Any = None
    error: Any = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> OperationHandle:
        handle = cls(name=payload.get("name") or "")
        handle.apply(payload)
        return handle

    @property
    def terminal(self) -> bool:
        return self.done or self.error is not None

    def apply(self, payload: dict[str, Any]) -> None:
        if self.terminal:
            raise RuntimeError(f"Operation {self.name} is already terminal")
        self.done = bool(payload.get("done"))
        self.result = payload.get("result")
        self.response = payload.get("response")
        self.error = payload.get("error")

    def candidates(self) -> list[Any]:
        """Envelopes that may hold the result, in lookup order."""
        return [
            self.result,
            self.response,
            _get(self.result, "value"),
            _get(self.response, "value"),
        ]


def _get(payload: Any, key: str) -> Any:
    return payload.get(key) if isinstance(payload, dict) else None


def _first_video_uri(items: Any) -> str | None:
    if not isinstance(items, list) or not items:
        return None
    uri = _get(_get(items[0], "video"), "uri")
    return uri or None


def _uri_from_generated_videos(payload: dict[str, Any]) -> str | None:
    return _first_video_uri(
        payload.get("generatedVideos") or payload.get("generated_videos")
    )


def _uri_from_generated_samples(payload: dict[str, Any]) -> str | None:
    return _first_video_uri(payload.get("generatedSamples"))


def _uri_from_generate_video_response(payload: dict[str, Any]) -> str | None:
    return _first_video_uri(_get(payload.get("generateVideoResponse"), "generatedSamples"))


URI_STRATEGIES: tuple[Callable[[dict[str, Any]], str | None], ...] = (
    _uri_from_generated_videos,
    _uri_from_generated_samples,
    _uri_from_generate_video_response,
)


def extract_video_uri(handle: OperationHandle) -> str | None:
    for candidate in handle.candidates():
        if not isinstance(candidate, dict):
            continue
        for strategy in URI_STRATEGIES:
            uri = strategy(candidate)
            if uri:
                return uri
    return None


def _filter_reasons(payload: dict[str, Any]) -> list[str]:
    for source in (payload, _get(payload, "generateVideoResponse")):
        if not isinstance(source, dict):
            continue
        reasons = source.get("raiMediaFilteredReasons") or source.get(
            "rai_media_filtered_reasons"
        )
        if isinstance(reasons, list) and reasons:
            return [str(r) for r in reasons]
    return []


def first_filter_reason(handle: OperationHandle) -> str | None:
    for candidate in handle.candidates():
        if isinstance(candidate, dict):
            reasons = _filter_reasons(candidate)
            if reasons:
                return reasons[0]
    return None


class VideoJobRunner:
    """Runs one video generation job to a downloaded asset or a typed failure."""

    def __init__(self, transport: MediaTransport, config: OrchestratorConfig) -> None:
        self.transport = transport
        self.config = config

    async def run(self, request: GenerationRequest, index: int = 0) -> GeneratedMedia:
        plan = plan_video(request, self.config)
        logger.info(
            "Submitting video job model=%s aspect=%s refs=%d",
            plan.model, plan.aspect_ratio,
            len(plan.reference_images) or (1 if plan.image else 0),
        )
        handle = await self._submit(plan)
        polls = await self._poll(handle)
        logger.info("Video operation %s terminal after %d poll(s)", handle.name, polls)
        return await self._collect(handle, index)

    async def _submit(self, plan: VideoPlan) -> OperationHandle:
        try:
            payload = await self.transport.submit_video(
                model=plan.model,
                prompt=plan.prompt,
                aspect_ratio=plan.aspect_ratio,
                resolution=plan.resolution,
                image=plan.image,
                reference_images=plan.reference_images or None,
            )
        except Exception as e:
            error = classify(e)
            if error.kind not in _SUBMISSION_KINDS:
                error = fatal(f"Video submission failed: {error.message}", e)
            logger.error("Video submission failed (%s): %s", error.kind.value, error.message)
            raise error from e

        if not isinstance(payload, dict) or not payload.get("name"):
            logger.error("Initial video operation missing name: %r", payload)
            raise fatal(
                "Failed to start video generation: No operation name returned.", payload
            )
        return OperationHandle.from_payload(payload)

    async def _poll(self, handle: OperationHandle) -> int:
        polls = 0
        while not handle.terminal:
            if polls >= self.config.video_max_polls:
                raise fatal(
                    f"Video operation {handle.name} timed out after {polls} polls", handle
                )
            await asyncio.sleep(self.config.video_poll_interval)
            polls += 1
            payload = await self._poll_once(handle.name)
            if not isinstance(payload, dict):
                raise fatal(f"Malformed operation status: {payload!r}", payload)
            handle.apply(payload)
            logger.debug("Video operation %s poll %d: done=%s", handle.name, polls, handle.done)
        return polls

    async def _poll_once(self, name: str) -> Any:
        try:
            return await self.transport.get_operation(name)
        except Exception as e:
            logger.warning("SDK polling failed for %s, attempting REST fallback: %s", name, e)

        try:
            return await self.transport.fetch_operation(name)
        except Exception as e:
            logger.error("Critical polling failure for %s: %s", name, e)
            raise fatal("Unable to poll video status via SDK or REST.", e) from e

    async def _collect(self, handle: OperationHandle, index: int) -> GeneratedMedia:
        if handle.error is not None:
            error = classify(handle.error)
            logger.error("Video generation failed (%s): %s", error.kind.value, error.message)
            raise error

        uri = extract_video_uri(handle)
        if not uri:
            reason = first_filter_reason(handle)
            if reason:
                logger.warning("Video filtered: %s", reason)
                raise content_filtered(reason, handle)
            logger.error("Video operation completed but missing URI: %r", handle)
            raise fatal(
                "No video URI returned. The content may have been filtered or the "
                "response was malformed.",
                handle,
            )

        try:
            blob = await self.transport.download(uri)
        except Exception as e:
            raise fatal(f"Failed to download generated video: {e}", e) from e

        return GeneratedMedia(
            kind="video",
            data=blob.data,
            mime_type=blob.mime_type,
            index=index,
            source_uri=uri,
        )

