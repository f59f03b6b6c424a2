"""Pydantic v2 schemas package."""

from wallgen.schemas.generation import (
    AspectRatio,
    GeneratedItem,
    GenerationFailure,
    GenerationMode,
    GenerationRequest,
    GenerationResponse,
    ImageSize,
)

__all__ = [
    "AspectRatio",
    "GeneratedItem",
    "GenerationFailure",
    "GenerationMode",
    "GenerationRequest",
    "GenerationResponse",
    "ImageSize",
]
