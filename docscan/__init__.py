"""
Document scan core.

Turns a photographed document into a clean, upright, enhanced copy:
quadrilateral detection, perspective rectification, enhancement, and a
manual crop session for when detection is not trusted.

Example:
    >>> from docscan import ScanConfiguration, scan_document
    >>> result = scan_document("receipt.jpg", ScanConfiguration(filter_mode="grayscale"))
    >>> result.auto_crop_applied, result.confidence
    (True, 0.93)
"""

from docscan.common import (
    CropBounds,
    ImageSize,
    NormalizedCropBounds,
    NormalizedPoint,
    PixelPoint,
    encode_image,
    image_to_pdf,
    load_image,
)
from docscan.detection import DetectionResult, QuadrilateralDetector
from docscan.enhancement import EnhancementPipeline, FilterMode
from docscan.exceptions import (
    ContrastEnhancementFailed,
    DegenerateGeometry,
    EncodingFailed,
    FilterFailed,
    InvalidImage,
    InvalidSessionState,
    RectificationFailed,
    ResizeFailed,
    ScanError,
    ShadowRemovalFailed,
    SharpenFailed,
    StageFailed,
)
from docscan.manual_crop import Corner, ManualCropSession, SessionState
from docscan.pipeline import (
    DocumentScanner,
    ScanConfiguration,
    ScannerSettings,
    ScanResult,
    detect_crop_bounds,
    load_config,
    reprocess,
    scan_document,
)
from docscan.rectification import rectify

__version__ = "0.1.0"

__all__ = [
    "ContrastEnhancementFailed",
    "Corner",
    "CropBounds",
    "DegenerateGeometry",
    "DetectionResult",
    "DocumentScanner",
    "EncodingFailed",
    "EnhancementPipeline",
    "FilterFailed",
    "FilterMode",
    "ImageSize",
    "InvalidImage",
    "InvalidSessionState",
    "ManualCropSession",
    "NormalizedCropBounds",
    "NormalizedPoint",
    "PixelPoint",
    "RectificationFailed",
    "ResizeFailed",
    "ScanConfiguration",
    "ScanError",
    "ScanResult",
    "ScannerSettings",
    "SessionState",
    "ShadowRemovalFailed",
    "SharpenFailed",
    "StageFailed",
    "detect_crop_bounds",
    "encode_image",
    "image_to_pdf",
    "load_config",
    "load_image",
    "rectify",
    "reprocess",
    "scan_document",
]
