"""Data models."""

from inpx_splitter.models.result import (
    PipelineStage,
    RunSummary,
    VariantResult,
)
from inpx_splitter.models.variant import (
    DEFAULT_VARIANTS,
    MARKER_PATTERN,
    Variant,
)

__all__ = [
    # Variant models
    "Variant",
    "DEFAULT_VARIANTS",
    "MARKER_PATTERN",
    # Result models
    "PipelineStage",
    "VariantResult",
    "RunSummary",
]
