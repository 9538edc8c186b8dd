"""
Quadrilateral Detector.

Locates the document's four corners in a raster image and reports how
trustworthy the result is.
"""

from docscan.detection.quad_detector import QuadrilateralDetector
from docscan.detection.types import DetectionResult, DetectorConfig, QuadMetrics

__all__ = [
    "DetectionResult",
    "DetectorConfig",
    "QuadMetrics",
    "QuadrilateralDetector",
]
