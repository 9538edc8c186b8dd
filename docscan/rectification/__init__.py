"""
Perspective Rectifier.

Computes the projective transform that maps a document quadrilateral onto
an upright rectangle and resamples it with bilinear (or better)
interpolation.
"""

from docscan.rectification.geometry import (
    calculate_edge_lengths,
    calculate_output_dimensions,
    is_convex_quadrilateral,
    order_points,
    polygon_area,
    validate_quadrilateral,
)
from docscan.rectification.rectifier import compute_homography, rectify
from docscan.rectification.types import RectifierConfig

__all__ = [
    "RectifierConfig",
    "calculate_edge_lengths",
    "calculate_output_dimensions",
    "compute_homography",
    "is_convex_quadrilateral",
    "order_points",
    "polygon_area",
    "rectify",
    "validate_quadrilateral",
]
