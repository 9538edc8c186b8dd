"""
Quadrilateral geometry for the Rectification module.

Corner ordering, edge measurements and validity checks performed before
computing a perspective transform.
"""

import logging
from typing import Tuple, Union

import numpy as np

from docscan.exceptions import DegenerateGeometry

logger = logging.getLogger(__name__)


def _as_quad(points: Union[np.ndarray, list]) -> np.ndarray:
    pts = np.array(points, dtype=np.float64)
    if pts.shape != (4, 2):
        raise ValueError(
            f"Expected exactly 4 points with shape (4, 2), got shape {pts.shape}"
        )
    return pts


def order_points(pts: Union[np.ndarray, list]) -> np.ndarray:
    """
    Order 4 points as Top-Left, Top-Right, Bottom-Right, Bottom-Left.

    The primary rule uses geometric properties:
    - Top-Left: smallest sum (x + y)
    - Bottom-Right: largest sum (x + y)
    - Top-Right: smallest difference (y - x)
    - Bottom-Left: largest difference (y - x)

    When the rule picks the same point twice (shapes rotated close to 45
    degrees), points are instead sorted clockwise around their centroid,
    starting from the one with the smallest sum.

    Args:
        pts: Array of 4 points with shape (4, 2) or list of [x, y] coordinates.

    Returns:
        Ordered float32 array of shape (4, 2): [TL, TR, BR, BL].

    Raises:
        ValueError: If input does not contain exactly 4 points.

    Example:
        >>> pts = np.array([[300, 150], [100, 200], [320, 400], [80, 380]])
        >>> order_points(pts)[0]
        array([100., 200.], dtype=float32)
    """
    pts = _as_quad(pts)

    s = pts.sum(axis=1)
    diff = np.diff(pts, axis=1).ravel()
    indices = [np.argmin(s), np.argmin(diff), np.argmax(s), np.argmax(diff)]

    if len(set(int(i) for i in indices)) == 4:
        rect = pts[indices]
    else:
        center = pts.mean(axis=0)
        angles = np.arctan2(pts[:, 1] - center[1], pts[:, 0] - center[0])
        clockwise = pts[np.argsort(angles)]
        start = int(np.argmin(clockwise.sum(axis=1)))
        rect = np.roll(clockwise, -start, axis=0)
        logger.debug("Sum/difference ordering was ambiguous, used angular ordering")

    logger.debug(
        f"Ordered points: TL={rect[0]}, TR={rect[1]}, BR={rect[2]}, BL={rect[3]}"
    )
    return rect.astype(np.float32)


def calculate_edge_lengths(
    quad: Union[np.ndarray, list],
) -> Tuple[float, float, float, float]:
    """
    Length of all 4 edges of an ordered quadrilateral.

    Args:
        quad: Corners in order [TL, TR, BR, BL], shape (4, 2).

    Returns:
        Tuple of (top, right, bottom, left) edge lengths.

    Example:
        >>> calculate_edge_lengths([[0, 0], [100, 0], [100, 50], [0, 50]])
        (100.0, 50.0, 100.0, 50.0)
    """
    tl, tr, br, bl = _as_quad(quad)

    top = float(np.linalg.norm(tr - tl))
    right = float(np.linalg.norm(br - tr))
    bottom = float(np.linalg.norm(bl - br))
    left = float(np.linalg.norm(tl - bl))

    return top, right, bottom, left


def calculate_output_dimensions(quad: Union[np.ndarray, list]) -> Tuple[float, float]:
    """
    True-proportion width and height of the document a quadrilateral shows.

    Width is the mean of the top and bottom edges, height the mean of the
    left and right edges, so a document photographed at an angle keeps its
    real aspect ratio rather than its screen-space bounding box.

    Returns:
        Tuple of (width, height) in pixels.
    """
    top, right, bottom, left = calculate_edge_lengths(quad)
    width = (top + bottom) / 2.0
    height = (left + right) / 2.0

    logger.debug(f"Output dimensions: {width:.1f} x {height:.1f}")
    return width, height


def polygon_area(quad: Union[np.ndarray, list]) -> float:
    """Area of an ordered quadrilateral (shoelace formula)."""
    pts = _as_quad(quad)
    x, y = pts[:, 0], pts[:, 1]
    return float(abs(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))) / 2.0)


def is_convex_quadrilateral(quad: Union[np.ndarray, list]) -> bool:
    """
    Check that 4 ordered points form a convex, simple quadrilateral.

    For each consecutive edge pair (P1->P2, P2->P3) the 2D cross product
    is computed. All four share a sign exactly when the quadrilateral is
    convex; mixed signs mean a concave or self-intersecting polygon.
    """
    pts = _as_quad(quad)
    cross_products = []

    for i in range(4):
        p1 = pts[i]
        p2 = pts[(i + 1) % 4]
        p3 = pts[(i + 2) % 4]

        v1 = p2 - p1
        v2 = p3 - p2
        cross_products.append(v1[0] * v2[1] - v1[1] * v2[0])

    positive = [cp > 1e-6 for cp in cross_products]
    negative = [cp < -1e-6 for cp in cross_products]
    is_convex = all(positive) or all(negative)

    if not is_convex:
        logger.debug(f"Non-convex quadrilateral. Cross products: {cross_products}")

    return is_convex


def validate_quadrilateral(
    quad: Union[np.ndarray, list], min_area: float, min_edge: float
) -> None:
    """
    Reject quadrilaterals that cannot produce a meaningful rectification.

    Args:
        quad: Corners in order [TL, TR, BR, BL].
        min_area: Minimum polygon area in square pixels.
        min_edge: Minimum length of any edge in pixels.

    Raises:
        DegenerateGeometry: If any coordinate is not finite, the area or an
            edge is below its minimum, or the polygon is not convex.
    """
    pts = _as_quad(quad)

    if not np.isfinite(pts).all():
        raise DegenerateGeometry("Quadrilateral contains non-finite coordinates")

    area = polygon_area(pts)
    if area < min_area:
        raise DegenerateGeometry(
            f"Quadrilateral area {area:.1f}px^2 below minimum {min_area:.1f}px^2"
        )

    shortest = min(calculate_edge_lengths(pts))
    if shortest < min_edge:
        raise DegenerateGeometry(
            f"Quadrilateral edge {shortest:.1f}px shorter than minimum {min_edge:.1f}px"
        )

    if not is_convex_quadrilateral(pts):
        raise DegenerateGeometry(
            "Corners do not form a convex quadrilateral. "
            "The crop may be self-intersecting or have corners out of order."
        )
