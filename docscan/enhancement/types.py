"""
Data types for the Enhancement module.
"""

from dataclasses import dataclass
from enum import Enum


class FilterMode(str, Enum):
    """Final color treatment of a scan."""

    COLOR = "color"  # Enhanced BGR image passed through
    GRAYSCALE = "grayscale"  # Luminance, re-encoded as 3 channels
    BLACKWHITE = "blackwhite"  # Adaptive binarization, re-encoded as 3 channels


@dataclass
class EnhancementConfig:
    """Tunable constants of the enhancement stages."""

    # Shadow removal
    shadow_kernel_fraction: float = 0.05  # Background blur kernel, fraction of the short side
    shadow_min_kernel: int = 15  # Lower bound for the blur kernel (odd)
    shadow_text_kernel: int = 7  # Dilation that erases text strokes before blurring
    shadow_max_gain: float = 1.5  # Brightening cap per pixel
    shadow_min_background: float = 20.0  # Darker background is left untouched
    shadow_target_percentile: float = 95.0  # Background level everything is lifted to

    # Contrast enhancement
    contrast_low_percentile: float = 1.0
    contrast_high_percentile: float = 99.0
    contrast_blend: float = 0.6  # Share of the stretched image in the result
    contrast_min_range: float = 10.0  # Narrower histograms are not stretched

    # Sharpening
    sharpen_sigma: float = 1.0
    sharpen_amount: float = 0.5

    # Black & white filter
    bw_block_size: int = 31  # Adaptive threshold neighbourhood (odd)
    bw_offset: float = 10.0  # Constant subtracted from the local mean
