"""In-memory MediaTransport for runner tests."""

from __future__ import annotations

from typing import Any

from wallgen.services.media import MediaBlob
from wallgen.services.providers.gemini import ImageReply, MediaTransport

PNG = MediaBlob(mime_type="image/png", data=b"\x89PNG-fake")


def _next(script: list[Any], default: Any = None) -> Any:
    outcome = script.pop(0) if script else default
    if isinstance(outcome, BaseException):
        raise outcome
    return outcome


class FakeTransport(MediaTransport):
    """Replays scripted outcomes; an exception in a script is raised."""

    def __init__(
        self,
        *,
        images: list[Any] | None = None,
        submit: Any = None,
        primary: list[Any] | None = None,
        fallback: list[Any] | None = None,
        download: Any = None,
    ) -> None:
        self.images = list(images or [])
        self.submit = submit
        self.primary = list(primary or [])
        self.fallback = list(fallback or [])
        self.download_result = download or MediaBlob(mime_type="video/mp4", data=b"mp4")
        self.image_calls: list[dict[str, Any]] = []
        self.submit_calls: list[dict[str, Any]] = []
        self.primary_calls = 0
        self.fallback_calls = 0
        self.downloads: list[str] = []
        self.closed = False

    async def generate_image(self, **kwargs: Any) -> ImageReply:
        self.image_calls.append(kwargs)
        return _next(self.images, ImageReply(media=[PNG]))

    async def submit_video(self, **kwargs: Any) -> dict[str, Any]:
        self.submit_calls.append(kwargs)
        if isinstance(self.submit, BaseException):
            raise self.submit
        return self.submit

    async def get_operation(self, name: str) -> dict[str, Any]:
        self.primary_calls += 1
        return _next(self.primary, RuntimeError("SDK poll unavailable"))

    async def fetch_operation(self, name: str) -> dict[str, Any]:
        self.fallback_calls += 1
        return _next(self.fallback, RuntimeError("REST poll unavailable"))

    async def download(self, uri: str) -> MediaBlob:
        self.downloads.append(uri)
        if isinstance(self.download_result, BaseException):
            raise self.download_result
        return self.download_result

    async def aclose(self) -> None:
        self.closed = True
