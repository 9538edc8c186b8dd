"""
Unit tests for perspective rectification.
"""

import cv2
import numpy as np
import pytest

from docscan.common.types import CropBounds, ImageSize
from docscan.exceptions import DegenerateGeometry, InvalidImage, RectificationFailed
from docscan.rectification.rectifier import compute_homography, rectify
from docscan.rectification.types import RectifierConfig


def _rotated_corners(center, width, height, angle_deg):
    half = np.array(
        [[-width / 2, -height / 2], [width / 2, -height / 2], [width / 2, height / 2], [-width / 2, height / 2]]
    )
    theta = np.deg2rad(angle_deg)
    rotation = np.array([[np.cos(theta), -np.sin(theta)], [np.sin(theta), np.cos(theta)]])
    return half @ rotation.T + np.asarray(center, dtype=np.float64)


class TestComputeHomography:
    def test_maps_corners_to_rectangle(self):
        bounds = CropBounds.from_numpy([[10, 20], [210, 30], [200, 330], [5, 320]])
        M = compute_homography(bounds, 200, 300)

        src = bounds.to_numpy().reshape(-1, 1, 2)
        dst = cv2.perspectiveTransform(src, M).reshape(4, 2)
        np.testing.assert_allclose(dst, [[0, 0], [200, 0], [200, 300], [0, 300]], atol=1e-3)


class TestRectify:
    def test_rotated_two_by_three_keeps_aspect_ratio(self):
        image = np.full((600, 600, 3), 90, dtype=np.uint8)
        corners = _rotated_corners((300, 300), 200, 300, 30.0)
        cv2.fillPoly(image, [np.round(corners).astype(np.int32)], (255, 255, 255))

        out = rectify(image, CropBounds.from_numpy(corners))

        height, width = out.shape[:2]
        assert width / height == pytest.approx(2 / 3, rel=0.02)
        assert abs(width - 200) <= 1
        assert abs(height - 300) <= 1

    def test_content_is_document(self):
        image = np.full((600, 600, 3), 0, dtype=np.uint8)
        corners = _rotated_corners((300, 300), 200, 300, 12.0)
        cv2.fillPoly(image, [np.round(corners).astype(np.int32)], (255, 255, 255))

        out = rectify(image, CropBounds.from_numpy(corners))

        # Interior is white; only the outermost pixel rows may blend with the background
        assert out[5:-5, 5:-5].min() >= 250

    def test_target_width(self):
        image = np.zeros((400, 400, 3), dtype=np.uint8)
        bounds = CropBounds.from_numpy([[50, 50], [250, 50], [250, 350], [50, 350]])

        out = rectify(image, bounds, target_width=100)
        assert out.shape[:2] == (150, 100)

    def test_full_frame_is_identity(self):
        rng = np.random.default_rng(1)
        image = rng.integers(0, 256, size=(120, 160, 3), dtype=np.uint8)
        bounds = CropBounds.full_frame(ImageSize.of(image))

        out = rectify(image, bounds)
        np.testing.assert_array_equal(out, image)
        assert out is not image

    def test_grayscale_keeps_single_channel(self):
        image = np.zeros((100, 100), dtype=np.uint8)
        bounds = CropBounds.from_numpy([[10, 10], [90, 10], [90, 60], [10, 60]])
        assert rectify(image, bounds).shape == (50, 80)

    def test_degenerate_quad_raises(self):
        image = np.zeros((100, 100, 3), dtype=np.uint8)
        bounds = CropBounds.from_numpy([[50, 50], [50.5, 50], [50.5, 50.5], [50, 50.5]])
        with pytest.raises(DegenerateGeometry):
            rectify(image, bounds)

    def test_crossed_corners_raise(self):
        image = np.zeros((100, 100, 3), dtype=np.uint8)
        bounds = CropBounds.from_numpy([[10, 10], [90, 90], [90, 10], [10, 90]])
        with pytest.raises(DegenerateGeometry):
            rectify(image, bounds)

    def test_empty_image(self, inner_bounds):
        with pytest.raises(InvalidImage):
            rectify(np.zeros((0, 0, 3), dtype=np.uint8), inner_bounds)

    def test_invalid_target_width(self, inner_bounds):
        with pytest.raises(ValueError, match="target_width"):
            rectify(np.zeros((600, 800, 3), dtype=np.uint8), inner_bounds, target_width=0)

    def test_nearest_interpolation_not_offered(self, inner_bounds):
        config = RectifierConfig(interpolation="nearest")
        with pytest.raises(ValueError, match="Invalid interpolation"):
            rectify(np.zeros((600, 800, 3), dtype=np.uint8), inner_bounds, config=config)

    def test_opencv_failure_is_wrapped(self, monkeypatch, inner_bounds):
        def broken(*args, **kwargs):
            raise cv2.error("simulated failure")

        monkeypatch.setattr(cv2, "warpPerspective", broken)
        with pytest.raises(RectificationFailed) as exc_info:
            rectify(np.zeros((600, 800, 3), dtype=np.uint8), inner_bounds)
        assert isinstance(exc_info.value.__cause__, cv2.error)


class TestTinyImages:
    @pytest.mark.parametrize("shape", [(8, 8, 3), (40, 3, 3), (1, 1, 3)])
    def test_full_frame_below_size_limits(self, shape):
        image = np.full(shape, 200, dtype=np.uint8)
        out = rectify(image, CropBounds.full_frame(ImageSize.of(image)))
        np.testing.assert_array_equal(out, image)

    def test_full_frame_with_target_width(self):
        image = np.full((8, 8, 3), 200, dtype=np.uint8)
        out = rectify(image, CropBounds.full_frame(ImageSize.of(image)), target_width=4)
        assert out.shape == (4, 4, 3)

    def test_inner_quad_still_checked(self):
        image = np.full((8, 8, 3), 200, dtype=np.uint8)
        bounds = CropBounds.from_numpy([[1, 1], [7, 1], [7, 7], [1, 7]])
        with pytest.raises(DegenerateGeometry, match="below minimum"):
            rectify(image, bounds)
