"""Pydantic v2 schemas for generation requests and results."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

AspectRatio = Literal["1:1", "2:3", "3:2", "3:4", "4:3", "9:16", "16:9", "21:9"]
ImageSize = Literal["1K", "2K", "4K"]
GenerationMode = Literal["image", "video"]


class GenerationRequest(BaseModel):
    """One user request; immutable once submitted."""

    prompt: str = Field(..., min_length=1)
    reference_images: list[str] = Field(default_factory=list, max_length=3)
    mode: GenerationMode = "image"
    aspect_ratio: AspectRatio = "16:9"
    image_size: ImageSize = "1K"
    duration: int = Field(5, ge=1, le=60)
    fps: int = Field(30, ge=1, le=120)

    model_config = {"frozen": True}


class GeneratedItem(BaseModel):
    """Schema for one generated wallpaper returned to the UI."""

    index: int
    kind: GenerationMode
    mime_type: str
    url: str


class GenerationResponse(BaseModel):
    items: list[GeneratedItem]


class GenerationFailure(BaseModel):
    """Error body; ``detail`` carries the UI sentinel when there is one."""

    detail: str
    kind: str
    message: str
