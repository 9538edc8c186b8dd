"""
Enhancement stages.

Each function is a pure transform taking a BGR uint8 image and returning
a new BGR uint8 image of the same size. Numerical faults surface as
FloatingPointError; the pipeline wraps them into the stage's error.
"""

import logging

import cv2
import numpy as np

from docscan.common.imaging import is_finite, to_gray
from docscan.enhancement.types import EnhancementConfig, FilterMode

logger = logging.getLogger(__name__)


def _odd(value: int) -> int:
    return value if value % 2 == 1 else value + 1


def estimate_background(gray: np.ndarray, config: EnhancementConfig) -> np.ndarray:
    """
    Local paper brightness as a float32 map.

    Text strokes are removed with a dilation (max filter), then the result
    is smoothed with a large Gaussian so only slow illumination changes
    such as shadows remain.
    """
    short_side = min(gray.shape[:2])
    ksize = _odd(max(config.shadow_min_kernel, int(short_side * config.shadow_kernel_fraction)))

    text_kernel = cv2.getStructuringElement(
        cv2.MORPH_RECT, (config.shadow_text_kernel, config.shadow_text_kernel)
    )
    dilated = cv2.dilate(gray, text_kernel)
    background = cv2.GaussianBlur(dilated.astype(np.float32), (ksize, ksize), 0)

    logger.debug(f"Background estimate with kernel {ksize}px")
    return background


def remove_shadows(image: np.ndarray, config: EnhancementConfig) -> np.ndarray:
    """
    Even out illumination by lifting darker background regions.

    Every pixel is multiplied by target / background, where target is a
    high percentile of the background map. The gain never drops below 1
    (bright paper is not darkened) and never exceeds `shadow_max_gain`.
    Per pixel it is further limited so the brightest channel never rises
    above target, including highlights next to a shadow edge.
    Regions darker than `shadow_min_background` are left alone.
    """
    background = estimate_background(to_gray(image), config)
    target = float(np.percentile(background, config.shadow_target_percentile))

    with np.errstate(divide="ignore", invalid="ignore"):
        gain = np.where(
            background > config.shadow_min_background,
            np.clip(target / background, 1.0, config.shadow_max_gain),
            1.0,
        ).astype(np.float32)

    peak = image.max(axis=2).astype(np.float32)
    headroom = np.maximum(target / np.maximum(peak, 1.0), 1.0)
    gain = np.minimum(gain, headroom)

    if not is_finite(gain):
        raise FloatingPointError("Illumination gain map contains non-finite values")

    corrected = image.astype(np.float32) * gain[:, :, np.newaxis]
    logger.debug(f"Shadow gain range [{gain.min():.2f}, {gain.max():.2f}], target {target:.1f}")
    return np.clip(corrected, 0, 255).astype(np.uint8)


def contrast_lut(gray: np.ndarray, config: EnhancementConfig) -> np.ndarray:
    """
    Build a 256-entry lookup table for a percentile contrast stretch.

    Returns the identity table when the histogram is too narrow to stretch
    (for example a blank page).
    """
    identity = np.arange(256, dtype=np.float32)
    low, high = np.percentile(
        gray, [config.contrast_low_percentile, config.contrast_high_percentile]
    )
    if high - low < config.contrast_min_range:
        logger.debug(f"Histogram range {high - low:.1f} too narrow, contrast unchanged")
        return identity.astype(np.uint8)

    stretched = np.clip((identity - low) * 255.0 / (high - low), 0, 255)
    blended = (1.0 - config.contrast_blend) * identity + config.contrast_blend * stretched
    if not is_finite(blended):
        raise FloatingPointError("Contrast lookup table contains non-finite values")
    return np.clip(np.round(blended), 0, 255).astype(np.uint8)


def enhance_contrast(image: np.ndarray, config: EnhancementConfig) -> np.ndarray:
    """Stretch the luminance histogram, blended with the original tones."""
    lut = contrast_lut(to_gray(image), config)
    return cv2.LUT(image, lut)


def sharpen(image: np.ndarray, config: EnhancementConfig) -> np.ndarray:
    """Unsharp mask: image + amount * (image - blurred)."""
    blurred = cv2.GaussianBlur(image, (0, 0), config.sharpen_sigma)
    return cv2.addWeighted(
        image, 1.0 + config.sharpen_amount, blurred, -config.sharpen_amount, 0
    )


def apply_filter(image: np.ndarray, mode: FilterMode, config: EnhancementConfig) -> np.ndarray:
    """
    Apply the final color treatment.

    Args:
        image: Enhanced BGR image.
        mode: COLOR (copy), GRAYSCALE or BLACKWHITE.
        config: Supplies the adaptive-threshold block size and offset.

    Returns:
        3-channel BGR image in every mode.
    """
    mode = FilterMode(mode)

    if mode is FilterMode.COLOR:
        return image.copy()

    gray = to_gray(image)
    if mode is FilterMode.GRAYSCALE:
        return cv2.cvtColor(gray, cv2.COLOR_GRAY2BGR)

    binary = cv2.adaptiveThreshold(
        gray,
        255,
        cv2.ADAPTIVE_THRESH_MEAN_C,
        cv2.THRESH_BINARY,
        config.bw_block_size,
        config.bw_offset,
    )
    return cv2.cvtColor(binary, cv2.COLOR_GRAY2BGR)
