"""
Data types for the scan orchestrator.

ScanConfiguration is the per-call input, ScanResult the per-call output
and ScannerSettings the tunable policy constants loaded from config.yaml.
"""

from dataclasses import dataclass, field
from typing import Literal, Optional

import numpy as np
from pydantic import BaseModel, Field

from docscan.common.types import CropBounds
from docscan.detection.types import DetectorConfig
from docscan.enhancement.types import EnhancementConfig, FilterMode
from docscan.rectification.types import RectifierConfig


class ScanConfiguration(BaseModel):
    """
    Immutable options for a single scan.

    Attributes:
        filter_mode: color, grayscale or blackwhite.
        enhance_contrast: Run the contrast stage.
        sharpen: Run the unsharp-mask stage.
        remove_shadows: Run the shadow-removal stage.
        auto_crop: Detect the document quadrilateral.
        max_width: Downscale the output to at most this width (pixels).
        crop_bounds: Explicit quadrilateral in pixel space; skips detection.
        output_format: Encoding of ScanResult.encoded_image.

    Example:
        >>> config = ScanConfiguration(filter_mode="blackwhite", max_width=1200)
        >>> config.model_copy(update={"sharpen": False})
    """

    filter_mode: FilterMode = FilterMode.COLOR
    enhance_contrast: bool = True
    sharpen: bool = True
    remove_shadows: bool = True
    auto_crop: bool = True
    max_width: Optional[int] = Field(default=None, gt=0)
    crop_bounds: Optional[CropBounds] = None
    output_format: Literal["jpeg", "png"] = "jpeg"

    model_config = {"frozen": True}


@dataclass
class ScanResult:
    """
    Output of one scan.

    Attributes:
        original_image: The decoded input, untouched, kept so other filters
            or crops can be recomputed without re-acquiring the source.
        processed_image: Rectified, enhanced and resized BGR image.
        auto_crop_applied: True if the quadrilateral came from an accepted
            detection (or explicit bounds with auto_crop enabled).
        confidence: Detector confidence, 1.0 for explicit bounds.
        crop_bounds: Quadrilateral actually used, pixel space of
            original_image.
        filter_mode: Filter the processed image was rendered with.
        encoded_image: processed_image encoded as image_format.
        image_format: "jpeg" or "png".
    """

    original_image: np.ndarray
    processed_image: np.ndarray
    auto_crop_applied: bool
    confidence: float
    crop_bounds: CropBounds
    filter_mode: FilterMode
    encoded_image: bytes
    image_format: str

    def needs_manual_crop(self) -> bool:
        """True when the caller should offer a manual crop session."""
        return not self.auto_crop_applied


@dataclass
class AcceptanceConfig:
    """Confidence gate applied to detector results."""

    min_confidence: float = 0.35


@dataclass
class OutputConfig:
    """Encoding of the processed image."""

    jpeg_quality: int = 95


@dataclass
class ScannerSettings:
    """Complete scanner configuration."""

    acceptance: AcceptanceConfig = field(default_factory=AcceptanceConfig)
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    rectifier: RectifierConfig = field(default_factory=RectifierConfig)
    enhancement: EnhancementConfig = field(default_factory=EnhancementConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
