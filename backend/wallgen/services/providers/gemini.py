"""Gemini / Veo transport.

The only module that talks to the upstream service. Two channels:

  SDK   google-genai ``Client.aio``: image generate-content, video
        submission and the primary operation poll
  REST  httpx: fallback operation poll
        (GET <base>/v1beta/<operationName>?key=...) and asset download

Operation payloads are returned as plain dicts (camelCase, as the REST
channel delivers them) so both channels feed the same extraction code.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import httpx
from google import genai
from google.genai import types

from wallgen.config import OrchestratorConfig
from wallgen.services.media import MediaBlob

logger = logging.getLogger(__name__)


@dataclass
class ImageReply:
    """Inline media parts of the first candidate plus any block signal."""

    media: list[MediaBlob] = field(default_factory=list)
    block_reason: str | None = None
    finish_reason: str | None = None


class MediaTransport(ABC):
    """Upstream operations the job runners depend on."""

    @abstractmethod
    async def generate_image(
        self,
        *,
        model: str,
        prompt: str,
        references: list[MediaBlob],
        aspect_ratio: str,
        image_size: str,
    ) -> ImageReply:
        ...

    @abstractmethod
    async def submit_video(
        self,
        *,
        model: str,
        prompt: str,
        aspect_ratio: str,
        resolution: str,
        image: MediaBlob | None = None,
        reference_images: list[MediaBlob] | None = None,
    ) -> dict[str, Any]:
        ...

    @abstractmethod
    async def get_operation(self, name: str) -> dict[str, Any]:
        """Primary poll channel."""
        ...

    @abstractmethod
    async def fetch_operation(self, name: str) -> dict[str, Any]:
        """Fallback poll channel."""
        ...

    @abstractmethod
    async def download(self, uri: str) -> MediaBlob:
        ...

    async def aclose(self) -> None:
        return None


def _mask_key(key: str) -> str:
    """Mask an API key for safe logging: show first 4 and last 4 chars."""
    if len(key) <= 12:
        return "***"
    return f"{key[:4]}...{key[-4:]}"


def _enum_value(value: Any) -> str | None:
    if value is None:
        return None
    return str(getattr(value, "value", value))


def _dump(model: Any) -> dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


def image_reply_from_response(response: types.GenerateContentResponse) -> ImageReply:
    """Collect inline media from the first candidate of a generate-content reply."""
    reply = ImageReply()
    feedback = response.prompt_feedback
    if feedback is not None:
        reply.block_reason = _enum_value(feedback.block_reason)

    candidates = response.candidates or []
    if not candidates:
        return reply

    first = candidates[0]
    reply.finish_reason = _enum_value(first.finish_reason)
    parts = first.content.parts if first.content and first.content.parts else []
    for part in parts:
        inline = part.inline_data
        if inline is not None and inline.data:
            reply.media.append(
                MediaBlob(mime_type=inline.mime_type or "image/png", data=inline.data)
            )
    return reply


class GeminiTransport(MediaTransport):
    """google-genai SDK for generation, httpx for REST fallback and downloads."""

    def __init__(
        self,
        api_key: str,
        config: OrchestratorConfig,
        *,
        client: genai.Client | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._config = config
        self._client = client or genai.Client(api_key=api_key)
        self._own_client = client is None
        self._http = http_client or httpx.AsyncClient(timeout=config.http_timeout)
        self._own_http = http_client is None

    async def generate_image(
        self,
        *,
        model: str,
        prompt: str,
        references: list[MediaBlob],
        aspect_ratio: str,
        image_size: str,
    ) -> ImageReply:
        parts = [
            types.Part.from_bytes(data=ref.data, mime_type=ref.mime_type)
            for ref in references
        ]
        parts.append(types.Part.from_text(text=prompt))

        response = await self._client.aio.models.generate_content(
            model=model,
            contents=types.Content(role="user", parts=parts),
            config=types.GenerateContentConfig(
                image_config=types.ImageConfig(
                    aspect_ratio=aspect_ratio,
                    image_size=image_size,
                ),
            ),
        )
        return image_reply_from_response(response)

    async def submit_video(
        self,
        *,
        model: str,
        prompt: str,
        aspect_ratio: str,
        resolution: str,
        image: MediaBlob | None = None,
        reference_images: list[MediaBlob] | None = None,
    ) -> dict[str, Any]:
        config = types.GenerateVideosConfig(
            number_of_videos=1,
            aspect_ratio=aspect_ratio,
            resolution=resolution,
        )
        if reference_images:
            config.reference_images = [
                types.VideoGenerationReferenceImage(
                    image=types.Image(image_bytes=ref.data, mime_type=ref.mime_type),
                    reference_type=types.VideoGenerationReferenceType.ASSET,
                )
                for ref in reference_images
            ]

        operation = await self._client.aio.models.generate_videos(
            model=model,
            prompt=prompt,
            image=(
                types.Image(image_bytes=image.data, mime_type=image.mime_type)
                if image is not None
                else None
            ),
            config=config,
        )
        return _dump(operation)

    async def get_operation(self, name: str) -> dict[str, Any]:
        operation = await self._client.aio.operations.get(
            types.GenerateVideosOperation(name=name)
        )
        return _dump(operation)

    async def fetch_operation(self, name: str) -> dict[str, Any]:
        url = f"{self._config.base_url}/v1beta/{name}"
        resp = await self._http.get(url, params={"key": self._api_key})
        if resp.is_error:
            logger.error(
                "REST poll of %s failed: %d %s (key=%s)",
                name, resp.status_code, resp.text[:500], _mask_key(self._api_key),
            )
        resp.raise_for_status()
        return resp.json()

    async def download(self, uri: str) -> MediaBlob:
        # Download links already carry a query (alt=media); merge, never replace.
        url = httpx.URL(uri).copy_merge_params({"key": self._api_key})
        resp = await self._http.get(url, follow_redirects=True)
        resp.raise_for_status()
        mime_type = resp.headers.get("content-type", "video/mp4").split(";")[0]
        return MediaBlob(mime_type=mime_type, data=resp.content)

    async def aclose(self) -> None:
        if self._own_http:
            await self._http.aclose()
        if self._own_client:
            await self._client.aio.aclose()
