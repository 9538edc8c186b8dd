"""
Configuration types for the Rectification module.
"""

from dataclasses import dataclass

import cv2

# Bilinear or better only; nearest-neighbour is not offered
INTERPOLATION_FLAGS = {
    "linear": cv2.INTER_LINEAR,
    "cubic": cv2.INTER_CUBIC,
    "lanczos": cv2.INTER_LANCZOS4,
}


@dataclass
class RectifierConfig:
    """Configuration for perspective rectification."""

    min_area_px: float = 100.0  # Below this the quad is degenerate
    min_edge_px: float = 4.0  # Shortest acceptable quad edge
    interpolation: str = "linear"  # Key of INTERPOLATION_FLAGS
