"""
Perspective rectification.

Maps a document quadrilateral onto an upright rectangle whose proportions
follow the document's true edge lengths.
"""

import logging
from typing import Optional

import cv2
import numpy as np

from docscan.common.types import CropBounds, ImageSize
from docscan.exceptions import DegenerateGeometry, InvalidImage, RectificationFailed
from docscan.rectification.geometry import (
    calculate_output_dimensions,
    validate_quadrilateral,
)
from docscan.rectification.types import INTERPOLATION_FLAGS, RectifierConfig

logger = logging.getLogger(__name__)


def compute_homography(
    quad: CropBounds, width: int, height: int
) -> np.ndarray:
    """
    Projective transform taking the quad corners onto a width x height rectangle.

    Source corners are used in the order TL, TR, BR, BL and land on the
    rectangle corners (0, 0), (width, 0), (width, height), (0, height).

    Raises:
        DegenerateGeometry: If the matrix is singular or not finite.
    """
    src = quad.to_numpy(np.float32)
    dst = np.array(
        [
            [0, 0],  # Top-Left
            [width, 0],  # Top-Right
            [width, height],  # Bottom-Right
            [0, height],  # Bottom-Left
        ],
        dtype=np.float32,
    )

    M = cv2.getPerspectiveTransform(src, dst)

    if not np.isfinite(M).all() or abs(np.linalg.det(M)) < 1e-12:
        raise DegenerateGeometry("Perspective transform is singular for this quadrilateral")

    return M


def rectify(
    image: np.ndarray,
    quad: CropBounds,
    target_width: Optional[int] = None,
    config: Optional[RectifierConfig] = None,
) -> np.ndarray:
    """
    Resample a quadrilateral region into an upright rectangle.

    Output size comes from the average of the top/bottom edge lengths
    (width) and of the left/right edge lengths (height). When
    `target_width` is given the output is scaled to that width with the
    same aspect ratio.

    Args:
        image: Source image (H, W, C) or (H, W), uint8.
        quad: Document corners in the source image's pixel space.
        target_width: Optional output width in pixels.
        config: Rectifier configuration; defaults are used if None.

    Returns:
        Rectified image with the same number of channels as the input.

    Raises:
        InvalidImage: If the image is None or empty.
        DegenerateGeometry: If the quadrilateral has near-zero area, a
            collapsed edge, or is not convex. The full
            frame is never rejected.
        RectificationFailed: If resampling fails inside OpenCV.

    Example:
        >>> bounds = CropBounds.from_numpy([[120, 80], [470, 95], [460, 560], [100, 540]])
        >>> page = rectify(image, bounds)
    """
    if config is None:
        config = RectifierConfig()

    if image is None or image.size == 0:
        raise InvalidImage("Invalid input image: image is None or empty")

    if target_width is not None and target_width < 1:
        raise ValueError(f"target_width must be positive, got {target_width}")

    size = ImageSize.of(image)
    full_frame = quad.is_full_frame(size)
    src = quad.to_numpy(np.float64)
    # The frame itself is always a valid target, however small the image
    if not full_frame:
        validate_quadrilateral(src, config.min_area_px, config.min_edge_px)

    width, height = calculate_output_dimensions(src)
    if target_width is not None:
        out_w = int(target_width)
        out_h = max(1, int(round(target_width * height / width)))
    else:
        out_w = max(1, int(round(width)))
        out_h = max(1, int(round(height)))

    if full_frame and (out_w, out_h) == (size.width, size.height):
        logger.debug("Quadrilateral is the full frame, rectification is identity")
        return image.copy()

    flags = INTERPOLATION_FLAGS.get(config.interpolation)
    if flags is None:
        raise ValueError(
            f"Invalid interpolation: {config.interpolation}. "
            f"Must be one of {list(INTERPOLATION_FLAGS)}"
        )

    try:
        M = compute_homography(quad, out_w, out_h)
        rectified = cv2.warpPerspective(
            image, M, (out_w, out_h), flags=flags, borderMode=cv2.BORDER_REPLICATE
        )
    except cv2.error as e:
        logger.error(f"warpPerspective failed: {e}")
        raise RectificationFailed(str(e)) from e

    if rectified is None or rectified.size == 0:
        raise RectificationFailed("warpPerspective produced an empty image")

    logger.info(f"Rectified quadrilateral to {out_w}x{out_h} rectangle")
    return rectified
