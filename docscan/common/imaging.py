"""
Small raster helpers shared by the scan stages.
"""

import logging

import cv2
import numpy as np

logger = logging.getLogger(__name__)


def ensure_bgr(image: np.ndarray) -> np.ndarray:
    """
    Convert grayscale, single-channel or BGRA images to 3-channel BGR.

    A 3-channel input is returned as-is (no copy).
    """
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    channels = image.shape[2]
    if channels == 1:
        return cv2.cvtColor(image[:, :, 0], cv2.COLOR_GRAY2BGR)
    if channels == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    return image


def to_gray(image: np.ndarray) -> np.ndarray:
    """Luminance-weighted single channel (ITU-R BT.601, as cv2 uses)."""
    if image.ndim == 2:
        return image
    return cv2.cvtColor(ensure_bgr(image), cv2.COLOR_BGR2GRAY)


def resize_to_max_width(image: np.ndarray, max_width: int) -> np.ndarray:
    """
    Downscale so the width does not exceed `max_width`, keeping aspect ratio.

    Uses area averaging (INTER_AREA) so shrinking does not alias text.
    Images already narrow enough are returned unchanged; never upscales.
    """
    height, width = image.shape[:2]
    if width <= max_width:
        return image

    scale = max_width / width
    new_height = max(1, int(round(height * scale)))
    logger.debug(f"Downscaling {width}x{height} -> {max_width}x{new_height}")
    return cv2.resize(image, (max_width, new_height), interpolation=cv2.INTER_AREA)


def is_finite(image: np.ndarray) -> bool:
    """True if a float intermediate contains no NaN or infinity."""
    return bool(np.isfinite(image).all())
