"""
Data types for the Detection module.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from docscan.common.types import CropBounds, ImageSize


@dataclass
class DetectorConfig:
    """Configuration for quadrilateral detection and confidence scoring."""

    # Preprocessing
    working_max_dimension: int = 1000  # Longest side analysed, larger inputs are downscaled
    blur_kernel: int = 5  # Gaussian blur before edge/threshold maps (odd)
    canny_low: int = 50
    canny_high: int = 150
    dilate_iterations: int = 2  # Closes gaps in the edge map
    close_kernel: int = 5  # Morphological close on the threshold map (odd)

    # Candidate selection
    min_area_ratio: float = 0.15  # Contour must cover this fraction of the image
    max_contours: int = 5  # Largest contours examined per map
    approx_epsilons: List[float] = field(
        default_factory=lambda: [0.02, 0.03, 0.05, 0.08]
    )  # Fractions of the hull perimeter tried by approxPolyDP
    min_fit: float = 0.85  # Candidates whose contour_fit is lower are not quadrilaterals

    # Confidence scoring
    fallback_confidence: float = 0.1  # Reported for the full-frame fallback
    full_area_ratio: float = 0.5  # Area ratio at which the area score saturates
    max_angle_deviation: float = 30.0  # Mean corner deviation from 90 deg that scores 0
    contrast_norm: float = 48.0  # Inside/outside intensity gap that scores 1
    border_margin_ratio: float = 0.02  # Corners this close to the frame corners hug the border
    border_penalty: float = 0.3  # Multiplier applied to border-hugging quads
    weight_fit: float = 0.35
    weight_angle: float = 0.25
    weight_area: float = 0.2
    weight_contrast: float = 0.2


@dataclass
class QuadMetrics:
    """Per-component confidence scores of a detected quadrilateral, each in [0, 1]."""

    fit: float  # Smaller of contour and quad area over the larger
    angle: float  # Closeness of the corners to right angles
    area: float  # Size relative to the image
    contrast: float  # Separation of document from background
    border_factor: float  # 1.0, or the border penalty when the quad is the frame


@dataclass
class DetectionResult:
    """
    Output of the quadrilateral detector.

    Attributes:
        bounds: Best-guess quadrilateral in the image's pixel space.
        confidence: Trust in `bounds`, in [0, 1].
        is_fallback: True when no document was found and `bounds` is the
            full frame.
        image_size: Size of the analysed image.
        method: Map that produced the winning candidate
            ("edges", "threshold" or "fallback").
        metrics: Score breakdown, None for the fallback.
    """

    bounds: CropBounds
    confidence: float
    is_fallback: bool
    image_size: ImageSize
    method: str
    metrics: Optional[QuadMetrics] = None
