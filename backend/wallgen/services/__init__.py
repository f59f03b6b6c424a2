"""Generation orchestrator: classification, retry, polling and fan-out."""

from wallgen.services.errors import ClassifiedError, FailureKind, classify
from wallgen.services.media import GeneratedMedia
from wallgen.services.variations import VariationCoordinator, generate_variations

__all__ = [
    "ClassifiedError",
    "FailureKind",
    "GeneratedMedia",
    "VariationCoordinator",
    "classify",
    "generate_variations",
]
