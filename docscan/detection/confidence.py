"""
Confidence scoring for detected quadrilaterals.

The score reflects how rectangular and how large a candidate is, and how
clearly it separates from its background. Full-frame shapes are penalised
so that "no document found" never passes the acceptance threshold.
"""

import logging
from typing import Tuple

import cv2
import numpy as np

from docscan.detection.types import DetectorConfig, QuadMetrics

logger = logging.getLogger(__name__)


def contour_fit(contour_area: float, quad_area: float) -> float:
    """
    Agreement between the contour and its four-corner approximation.

    Smaller area over larger, so a round blob squeezed into four corners
    scores as badly as a quad that overshoots a thin contour.
    """
    if quad_area <= 0 or contour_area <= 0:
        return 0.0
    return float(min(contour_area, quad_area) / max(contour_area, quad_area))


def interior_angles(quad: np.ndarray) -> np.ndarray:
    """Interior angles in degrees of an ordered quadrilateral [TL, TR, BR, BL]."""
    angles = []
    for i in range(4):
        prev_pt = quad[(i - 1) % 4]
        cur = quad[i]
        next_pt = quad[(i + 1) % 4]

        v1 = prev_pt - cur
        v2 = next_pt - cur
        denom = np.linalg.norm(v1) * np.linalg.norm(v2)
        if denom == 0:
            angles.append(0.0)
            continue
        cos_angle = np.clip(np.dot(v1, v2) / denom, -1.0, 1.0)
        angles.append(float(np.degrees(np.arccos(cos_angle))))
    return np.array(angles)


def angle_regularity(quad: np.ndarray, max_deviation: float) -> float:
    """1.0 for right angles, falling linearly to 0 at `max_deviation` mean error."""
    deviation = float(np.mean(np.abs(interior_angles(quad) - 90.0)))
    return float(np.clip(1.0 - deviation / max_deviation, 0.0, 1.0))


def area_score(area_ratio: float, min_ratio: float, full_ratio: float) -> float:
    """Linear ramp from 0 at `min_ratio` to 1 at `full_ratio` of the image area."""
    if full_ratio <= min_ratio:
        return 1.0 if area_ratio >= min_ratio else 0.0
    return float(np.clip((area_ratio - min_ratio) / (full_ratio - min_ratio), 0.0, 1.0))


def region_contrast(gray: np.ndarray, quad: np.ndarray) -> float:
    """
    Absolute difference of mean intensity inside and outside the quadrilateral.

    Returns 0.0 when the quadrilateral leaves no background to compare.
    """
    mask = np.zeros(gray.shape[:2], dtype=np.uint8)
    cv2.fillPoly(mask, [np.round(quad).astype(np.int32)], 255)

    inside = gray[mask > 0]
    outside = gray[mask == 0]
    if inside.size == 0 or outside.size == 0:
        return 0.0
    return float(abs(float(inside.mean()) - float(outside.mean())))


def hugs_border(quad: np.ndarray, width: int, height: int, margin_ratio: float) -> bool:
    """True if every corner sits within the margin of its image corner."""
    frame = np.array(
        [[0, 0], [width, 0], [width, height], [0, height]], dtype=np.float64
    )
    limit = margin_ratio * float(np.hypot(width, height))
    distances = np.linalg.norm(quad.astype(np.float64) - frame, axis=1)
    return bool(np.all(distances <= limit))


def score_quadrilateral(
    gray: np.ndarray,
    quad: np.ndarray,
    contour_area: float,
    config: DetectorConfig,
) -> Tuple[float, QuadMetrics]:
    """
    Combine the component scores of a candidate into one confidence.

    Args:
        gray: Grayscale image the quad was found in.
        quad: Ordered corners [TL, TR, BR, BL] in `gray` coordinates.
        contour_area: Area of the contour the quad approximates.
        config: Detector configuration (weights and normalisers).

    Returns:
        Tuple of (confidence in [0, 1], per-component metrics).
    """
    height, width = gray.shape[:2]
    quad_area = float(cv2.contourArea(quad.astype(np.float32)))

    metrics = QuadMetrics(
        fit=contour_fit(contour_area, quad_area),
        angle=angle_regularity(quad, config.max_angle_deviation),
        area=area_score(
            quad_area / float(width * height),
            config.min_area_ratio,
            config.full_area_ratio,
        ),
        contrast=float(
            np.clip(region_contrast(gray, quad) / config.contrast_norm, 0.0, 1.0)
        ),
        border_factor=(
            config.border_penalty
            if hugs_border(quad, width, height, config.border_margin_ratio)
            else 1.0
        ),
    )

    weighted = (
        config.weight_fit * metrics.fit
        + config.weight_angle * metrics.angle
        + config.weight_area * metrics.area
        + config.weight_contrast * metrics.contrast
    )
    total_weight = (
        config.weight_fit
        + config.weight_angle
        + config.weight_area
        + config.weight_contrast
    )
    confidence = float(np.clip(weighted / total_weight * metrics.border_factor, 0.0, 1.0))

    logger.debug(
        f"Candidate score {confidence:.3f}: fit={metrics.fit:.2f}, "
        f"angle={metrics.angle:.2f}, area={metrics.area:.2f}, "
        f"contrast={metrics.contrast:.2f}, border={metrics.border_factor:.2f}"
    )
    return confidence, metrics
