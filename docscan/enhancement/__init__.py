"""
Enhancement Pipeline.

Shadow removal, contrast normalization, sharpening and the final
color/grayscale/black-and-white filter, applied after rectification.
"""

from docscan.enhancement.operations import (
    apply_filter,
    enhance_contrast,
    remove_shadows,
    sharpen,
)
from docscan.enhancement.pipeline import EnhancementPipeline
from docscan.enhancement.types import EnhancementConfig, FilterMode

__all__ = [
    "EnhancementConfig",
    "EnhancementPipeline",
    "FilterMode",
    "apply_filter",
    "enhance_contrast",
    "remove_shadows",
    "sharpen",
]
