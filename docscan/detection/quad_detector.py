"""
Quadrilateral detector.

Locates the four corners of a document against its background.

Pipeline:
1. Grayscale + downscale to a working resolution
2. Two binary maps: dilated Canny edges and an Otsu threshold
3. Largest external contours covering at least `min_area_ratio` of the image
4. Convex hull + polygon approximation down to exactly four corners
5. Shapes that only loosely fill their four corners are dropped
6. Confidence scoring; the best candidate wins

When no candidate survives, the full frame is returned with a low
confidence instead of raising.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import cv2
import numpy as np

from docscan.common.imaging import to_gray
from docscan.common.types import CropBounds, ImageSize
from docscan.detection.confidence import score_quadrilateral
from docscan.detection.types import DetectionResult, DetectorConfig, QuadMetrics
from docscan.exceptions import InvalidImage
from docscan.rectification.geometry import is_convex_quadrilateral, order_points

logger = logging.getLogger(__name__)


@dataclass
class _Candidate:
    quad: np.ndarray  # Ordered [TL, TR, BR, BL] in working coordinates
    confidence: float
    metrics: QuadMetrics
    method: str


class QuadrilateralDetector:
    """
    Finds the document quadrilateral in a raster image.

    Example:
        >>> detector = QuadrilateralDetector()
        >>> result = detector.detect(cv2.imread("receipt.jpg"))
        >>> if result.confidence >= 0.35:
        ...     print(result.bounds.top_left)
    """

    def __init__(self, config: Optional[DetectorConfig] = None):
        self.config = config if config is not None else DetectorConfig()

    def detect(self, image: np.ndarray) -> DetectionResult:
        """
        Detect the document quadrilateral.

        Args:
            image: Decoded image, BGR or grayscale, uint8.

        Returns:
            DetectionResult with bounds in the image's own pixel space.

        Raises:
            InvalidImage: If the image is None or empty. Any decodable
                image yields a result.
        """
        if image is None or image.size == 0:
            raise InvalidImage("Invalid input image: image is None or empty")

        size = ImageSize.of(image)
        gray = to_gray(image)
        small, scale = self._downscale(gray)

        try:
            candidates = self._find_candidates(small)
        except cv2.error as e:
            logger.warning(f"Contour analysis failed, falling back to full frame: {e}")
            candidates = []

        if not candidates:
            return self._fallback(size)

        best = max(candidates, key=lambda c: c.confidence)
        bounds = self._to_source_space(best.quad, scale, size)

        logger.info(
            f"Detected document via {best.method} map with confidence "
            f"{best.confidence:.3f} ({len(candidates)} candidates)"
        )
        return DetectionResult(
            bounds=bounds,
            confidence=best.confidence,
            is_fallback=False,
            image_size=size,
            method=best.method,
            metrics=best.metrics,
        )

    def _downscale(self, gray: np.ndarray) -> Tuple[np.ndarray, float]:
        height, width = gray.shape[:2]
        longest = max(height, width)
        limit = self.config.working_max_dimension
        if longest <= limit:
            return gray, 1.0

        scale = limit / longest
        new_size = (max(1, int(round(width * scale))), max(1, int(round(height * scale))))
        logger.debug(f"Working resolution {new_size[0]}x{new_size[1]} (scale {scale:.3f})")
        return cv2.resize(gray, new_size, interpolation=cv2.INTER_AREA), scale

    def _edge_map(self, blurred: np.ndarray) -> np.ndarray:
        edges = cv2.Canny(blurred, self.config.canny_low, self.config.canny_high)
        kernel = np.ones((3, 3), np.uint8)
        return cv2.dilate(edges, kernel, iterations=self.config.dilate_iterations)

    def _threshold_map(self, blurred: np.ndarray) -> np.ndarray:
        _, binary = cv2.threshold(blurred, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)

        # The document is the foreground: if the frame border is mostly
        # white, the background was the bright class.
        border = np.concatenate(
            [binary[0, :], binary[-1, :], binary[:, 0], binary[:, -1]]
        )
        if border.mean() > 127:
            binary = cv2.bitwise_not(binary)

        k = self.config.close_kernel
        kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (k, k))
        return cv2.morphologyEx(binary, cv2.MORPH_CLOSE, kernel)

    def _find_candidates(self, gray: np.ndarray) -> List[_Candidate]:
        k = self.config.blur_kernel
        blurred = cv2.GaussianBlur(gray, (k, k), 0)
        min_area = self.config.min_area_ratio * gray.shape[0] * gray.shape[1]

        maps = {
            "edges": self._edge_map(blurred),
            "threshold": self._threshold_map(blurred),
        }

        candidates = []
        for method, binary in maps.items():
            contours, _ = cv2.findContours(
                binary, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE
            )
            contours = sorted(contours, key=cv2.contourArea, reverse=True)

            for contour in contours[: self.config.max_contours]:
                contour_area = float(cv2.contourArea(contour))
                if contour_area < min_area:
                    break

                quad = self._approximate_quad(contour)
                if quad is None:
                    continue

                ordered = order_points(quad).astype(np.float64)
                if not is_convex_quadrilateral(ordered):
                    continue

                confidence, metrics = score_quadrilateral(
                    gray, ordered, contour_area, self.config
                )
                if metrics.fit < self.config.min_fit:
                    logger.debug(
                        f"{method} map: rejected non-quadrilateral contour "
                        f"(fit {metrics.fit:.2f} < {self.config.min_fit})"
                    )
                    continue
                candidates.append(_Candidate(ordered, confidence, metrics, method))

            logger.debug(f"{method} map: {len(contours)} contours examined")

        return candidates

    def _approximate_quad(self, contour: np.ndarray) -> Optional[np.ndarray]:
        """Reduce a contour to exactly four corners, or None."""
        hull = cv2.convexHull(contour)
        perimeter = cv2.arcLength(hull, True)
        for epsilon in self.config.approx_epsilons:
            approx = cv2.approxPolyDP(hull, epsilon * perimeter, True)
            if len(approx) == 4:
                return approx.reshape(4, 2).astype(np.float64)
        return None

    @staticmethod
    def _to_source_space(quad: np.ndarray, scale: float, size: ImageSize) -> CropBounds:
        pts = quad / scale
        pts[:, 0] = np.clip(pts[:, 0], 0, size.width)
        pts[:, 1] = np.clip(pts[:, 1], 0, size.height)
        return CropBounds.from_numpy(pts)

    def _fallback(self, size: ImageSize) -> DetectionResult:
        logger.warning(
            "No document quadrilateral found, falling back to full frame "
            f"(confidence {self.config.fallback_confidence:.2f})"
        )
        return DetectionResult(
            bounds=CropBounds.full_frame(size),
            confidence=self.config.fallback_confidence,
            is_fallback=True,
            image_size=size,
            method="fallback",
        )
