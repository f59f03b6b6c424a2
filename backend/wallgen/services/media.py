"""Media values passed between the orchestrator and its callers."""

from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass
from typing import Literal

from wallgen.services.errors import fatal

MediaKind = Literal["image", "video"]

_DATA_URL_RE = re.compile(r"^data:([a-zA-Z0-9]+/[a-zA-Z0-9\-.+]+);base64,(.+)$", re.DOTALL)


@dataclass(frozen=True)
class MediaBlob:
    mime_type: str
    data: bytes


@dataclass(frozen=True)
class GeneratedMedia:
    """Terminal artifact of one job; the orchestrator keeps no reference."""

    kind: MediaKind
    data: bytes
    mime_type: str
    index: int = 0
    source_uri: str | None = None

    def to_data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


def split_data_url(value: str) -> tuple[str, str]:
    """Return (mime_type, base64 payload) for a data URL or bare base64 string."""
    match = _DATA_URL_RE.match(value)
    if match:
        return match.group(1), match.group(2)

    mime_type = "image/png"
    head, sep, payload = value.partition(",")
    if sep and "," not in payload:
        mime_match = re.search(r":(.*?);", head)
        if mime_match:
            mime_type = mime_match.group(1)
        return mime_type, payload
    return mime_type, value


def decode_reference(value: str) -> MediaBlob:
    mime_type, payload = split_data_url(value)
    try:
        data = base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError) as e:
        raise fatal(f"Reference image is not valid base64: {e}", e) from e
    return MediaBlob(mime_type=mime_type, data=data)
